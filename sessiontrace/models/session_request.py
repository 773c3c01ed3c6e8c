"""Session request domain model and request validation errors."""

from __future__ import annotations

from dataclasses import dataclass


class MissingFieldError(ValueError):
    """A required session request field was not supplied."""

    def __init__(self, field_name: str) -> None:
        super().__init__(field_name)
        self.field = field_name


@dataclass(frozen=True)
class SessionRequest:
    """Query descriptor for call and media session lookups.

    Every field is optional at construction time so that a partially filled
    request can reach the service, which reports the first missing field.
    """

    created_at: int | None = None  # epoch millis
    terminated_at: int | None = None  # epoch millis
    call_id: tuple[str, ...] | None = None

    def require(self) -> tuple[int, int, tuple[str, ...]]:
        """Return (created_at, terminated_at, call_id) or raise MissingFieldError."""
        if self.created_at is None:
            raise MissingFieldError("created_at")
        if self.terminated_at is None:
            raise MissingFieldError("terminated_at")
        if self.call_id is None:
            raise MissingFieldError("call_id")
        return self.created_at, self.terminated_at, self.call_id

    @classmethod
    def from_dict(cls, data: dict) -> SessionRequest:
        call_id = data.get("call_id")
        if isinstance(call_id, str):
            call_id = (call_id,)
        return cls(
            created_at=data.get("created_at"),
            terminated_at=data.get("terminated_at"),
            call_id=tuple(call_id) if call_id is not None else None,
        )
