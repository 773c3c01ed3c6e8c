"""Media session domain models: reports, blocks, sub-sessions and legs."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Address:
    """One endpoint of a media flow."""

    addr: str
    port: int
    host: str = ""

    def to_doc(self) -> dict:
        doc: dict = {"addr": self.addr, "port": self.port}
        if self.host:
            doc["host"] = self.host
        return doc


@dataclass
class MinMaxAvg:
    """Running min/max/mean over folded samples."""

    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0
    count: int = 0

    def add(self, value: float) -> None:
        if self.count == 0:
            self.min = value
            self.max = value
        else:
            self.min = min(self.min, value)
            self.max = max(self.max, value)
        self.avg = (self.avg * self.count + value) / (self.count + 1)
        self.count += 1

    def merge(self, other: MinMaxAvg) -> None:
        if other.count == 0:
            return
        if self.count == 0:
            self.min, self.max = other.min, other.max
        else:
            self.min = min(self.min, other.min)
            self.max = max(self.max, other.max)
        total = self.count + other.count
        self.avg = (self.avg * self.count + other.avg * other.count) / total
        self.count = total

    def copy(self) -> MinMaxAvg:
        return MinMaxAvg(self.min, self.max, self.avg, self.count)

    def to_doc(self) -> dict:
        return {"min": self.min, "max": self.max, "avg": self.avg}

    @classmethod
    def from_doc(cls, value) -> MinMaxAvg:
        """Accept either a scalar sample or a {min, max, avg} sub-document."""
        if value is None:
            return cls()
        if isinstance(value, dict):
            avg = float(value.get("avg", 0.0))
            return cls(
                min=float(value.get("min", avg)),
                max=float(value.get("max", avg)),
                avg=avg,
                count=1,
            )
        stat = cls()
        stat.add(float(value))
        return stat


@dataclass(frozen=True)
class PacketStatistic:
    """Packet counters. Additive across reports and blocks."""

    expected: int = 0
    received: int = 0
    lost: int = 0
    rejected: int = 0

    def __add__(self, other: PacketStatistic) -> PacketStatistic:
        return PacketStatistic(
            expected=self.expected + other.expected,
            received=self.received + other.received,
            lost=self.lost + other.lost,
            rejected=self.rejected + other.rejected,
        )

    def to_doc(self) -> dict:
        return {
            "expected": self.expected,
            "received": self.received,
            "lost": self.lost,
            "rejected": self.rejected,
        }

    @classmethod
    def from_doc(cls, doc: dict | None) -> PacketStatistic:
        doc = doc or {}
        return cls(
            expected=int(doc.get("expected", 0)),
            received=int(doc.get("received", 0)),
            lost=int(doc.get("lost", 0)),
            rejected=int(doc.get("rejected", 0)),
        )


@dataclass(frozen=True)
class MediaReport:
    """One RTP or RTCP report document as produced by the capture agents."""

    call_id: str
    started_at: int  # epoch millis
    duration: int  # millis
    src: Address
    dst: Address
    packets: PacketStatistic = field(default_factory=PacketStatistic)
    jitter: float = 0.0
    r_factor: float = 0.0
    mos: float = 0.0

    @property
    def terminated_at(self) -> int:
        return self.started_at + self.duration

    @classmethod
    def from_doc(cls, doc: dict) -> MediaReport:
        return cls(
            call_id=doc.get("call_id", ""),
            started_at=int(doc["started_at"]),
            duration=int(doc.get("duration", 0)),
            src=Address(doc["src_addr"], int(doc["src_port"]), doc.get("src_host", "")),
            dst=Address(doc["dst_addr"], int(doc["dst_port"]), doc.get("dst_host", "")),
            packets=PacketStatistic.from_doc(doc.get("packets")),
            jitter=_sample(doc.get("jitter")),
            r_factor=_sample(doc.get("r_factor")),
            mos=_sample(doc.get("mos")),
        )


def _sample(value) -> float:
    if value is None:
        return 0.0
    if isinstance(value, dict):
        return float(value.get("avg", 0.0))
    return float(value)


@dataclass
class MediaStatistic:
    """Statistics of one fixed-width block of a leg."""

    packets: PacketStatistic = field(default_factory=PacketStatistic)
    jitter: MinMaxAvg = field(default_factory=MinMaxAvg)
    r_factor: MinMaxAvg = field(default_factory=MinMaxAvg)
    mos: MinMaxAvg = field(default_factory=MinMaxAvg)
    duration: int = 0

    def fold(self, report: MediaReport) -> None:
        """Add a report (or a chunk of one) to this block."""
        self.packets = self.packets + report.packets
        self.duration += report.duration
        # Zero-packet chunks carry no quality samples
        if report.packets.expected > 0:
            self.jitter.add(report.jitter)
            self.r_factor.add(report.r_factor)
            self.mos.add(report.mos)

    @classmethod
    def from_report(cls, report: MediaReport) -> MediaStatistic:
        stat = cls()
        stat.fold(report)
        return stat

    def to_doc(self) -> dict:
        return {
            "packets": self.packets.to_doc(),
            "jitter": self.jitter.to_doc(),
            "r_factor": self.r_factor.to_doc(),
            "mos": self.mos.to_doc(),
            "duration": self.duration,
        }


@dataclass
class MediaSession:
    """One direction (in or out) of a media leg."""

    src: Address | None = None
    dst: Address | None = None
    created_at: int = 0
    terminated_at: int = 0
    packets: PacketStatistic = field(default_factory=PacketStatistic)
    jitter: MinMaxAvg = field(default_factory=MinMaxAvg)
    r_factor: MinMaxAvg = field(default_factory=MinMaxAvg)
    mos: MinMaxAvg = field(default_factory=MinMaxAvg)
    blocks: list[MediaStatistic] = field(default_factory=list)

    @property
    def duration(self) -> int:
        return max(self.terminated_at - self.created_at, 0)

    @classmethod
    def empty(cls) -> MediaSession:
        return cls()

    def to_doc(self) -> dict:
        return {
            "src": self.src.to_doc() if self.src else None,
            "dst": self.dst.to_doc() if self.dst else None,
            "created_at": self.created_at,
            "terminated_at": self.terminated_at,
            "duration": self.duration,
            "packets": self.packets.to_doc(),
            "jitter": self.jitter.to_doc(),
            "r_factor": self.r_factor.to_doc(),
            "mos": self.mos.to_doc(),
            "blocks": [b.to_doc() for b in self.blocks],
        }


@dataclass
class LegSession:
    """A media leg: both directions between two endpoints of a call."""

    leg_id: str
    call_id: str
    src: Address
    dst: Address
    created_at: int
    terminated_at: int
    out: MediaSession = field(default_factory=MediaSession.empty)
    in_: MediaSession = field(default_factory=MediaSession.empty)

    def __post_init__(self) -> None:
        if self.terminated_at < self.created_at:
            raise ValueError("Leg session cannot terminate before it is created")

    @property
    def duration(self) -> int:
        return self.terminated_at - self.created_at

    def to_doc(self) -> dict:
        return {
            "leg_id": self.leg_id,
            "call_id": self.call_id,
            "src": self.src.to_doc(),
            "dst": self.dst.to_doc(),
            "created_at": self.created_at,
            "terminated_at": self.terminated_at,
            "duration": self.duration,
            "out": self.out.to_doc(),
            "in": self.in_.to_doc(),
        }
