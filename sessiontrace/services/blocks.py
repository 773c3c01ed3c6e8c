"""Block aggregation: fold per-report RTP/RTCP statistics into fixed-width blocks.

A leg's time span is cut into `block_count` blocks of equal width
(`leg.duration // block_count`, the remainder is not represented). Reports of
one party are folded in time order; a report crossing a block boundary is
split into chunks aligned to the boundaries. The result always has exactly
`block_count` blocks, empty blocks standing in for time without reports.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from sessiontrace.models.media import (
    LegSession,
    MediaReport,
    MediaSession,
    MediaStatistic,
    PacketStatistic,
)

logger = logging.getLogger(__name__)


def select_media_session(leg: LegSession, report: MediaReport) -> MediaSession:
    """Pick the sub-session a party's reports belong to.

    Heuristic: RTP and RTCP of a flow use adjacent ports, so a report whose
    source and destination ports are each 0 or 1 above the leg's ports is
    the `out` direction. Everything else is `in`.
    """
    if (0 <= report.src.port - leg.src.port <= 1) and (
        0 <= report.dst.port - leg.dst.port <= 1
    ):
        return leg.out
    return leg.in_


def _apportion(total: int, durations: list[int], full: int) -> list[int]:
    # Cumulative rounding keeps the sum equal to `total`
    shares = []
    elapsed = 0
    assigned = 0
    for duration in durations:
        elapsed += duration
        upto = total * elapsed // full
        shares.append(upto - assigned)
        assigned = upto
    return shares


def split_report(report: MediaReport, remaining: int, width: int) -> list[MediaReport]:
    """Split a report into chunks aligned to block boundaries.

    Chunk durations are `remaining`, then `width` as many times as needed,
    then whatever is left (more than 0, at most `width`). Packet counters are
    apportioned by duration and sum to the report counters; quality
    samples (jitter, R-factor, MOS) are carried unchanged into every chunk.
    """
    if width <= 0:
        raise ValueError("Block width must be positive")
    if report.duration <= remaining:
        return [report]

    durations = [remaining]
    rest = report.duration - remaining
    while rest > width:
        durations.append(width)
        rest -= width
    durations.append(rest)

    packets = report.packets
    expected = _apportion(packets.expected, durations, report.duration)
    received = _apportion(packets.received, durations, report.duration)
    lost = _apportion(packets.lost, durations, report.duration)
    rejected = _apportion(packets.rejected, durations, report.duration)

    chunks = []
    offset = 0
    for i, duration in enumerate(durations):
        chunks.append(
            replace(
                report,
                started_at=report.started_at + offset,
                duration=duration,
                packets=PacketStatistic(
                    expected=expected[i],
                    received=received[i],
                    lost=lost[i],
                    rejected=rejected[i],
                ),
            )
        )
        offset += duration
    return chunks


def aggregate_blocks(
    leg: LegSession,
    media_session: MediaSession,
    reports: list[MediaReport],
    block_count: int,
) -> list[MediaStatistic]:
    """Fold one party's reports into exactly `block_count` blocks.

    Returns an empty list when the sub-session has no duration. The input
    leg, sub-session and reports are left untouched; the caller decides
    where the blocks go.
    """
    if block_count <= 0:
        raise ValueError("Block count must be positive")
    if media_session.duration == 0:
        return []

    width = leg.duration // block_count
    if width == 0:
        logger.debug(
            "Leg %s shorter than %d time units, emitting empty blocks",
            leg.leg_id, block_count,
        )
        return [MediaStatistic() for _ in range(block_count)]

    blocks: list[MediaStatistic] = []
    current = MediaStatistic()

    gap = max(media_session.created_at - leg.created_at, 0)
    blocks.extend(MediaStatistic() for _ in range(gap // width))
    remaining = width - gap % width

    for report in sorted(reports, key=lambda r: r.started_at):
        if report.duration < remaining:
            current.fold(report)
            remaining -= report.duration
        elif report.duration > remaining:
            chunks = split_report(report, remaining, width)
            current.fold(chunks[0])
            for chunk in chunks[1:]:
                blocks.append(current)
                current = MediaStatistic.from_report(chunk)
            remaining = width - chunks[-1].duration
        else:
            current.fold(report)
            blocks.append(current)
            current = MediaStatistic()
            remaining = width

    if current.packets.expected != 0 and len(blocks) < block_count:
        blocks.append(current)

    if len(blocks) > block_count:
        logger.debug(
            "Leg %s: dropping %d blocks past the leg end",
            leg.leg_id, len(blocks) - block_count,
        )
        del blocks[block_count:]

    while len(blocks) < block_count:
        blocks.append(MediaStatistic())

    return blocks
