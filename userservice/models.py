"""Domain models for the user service."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

_RFC3339 = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(\.\d{1,6})?([Zz]|[+-]\d{2}:\d{2})?$"
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as RFC 3339 UTC text with microsecond resolution."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse RFC 3339 text such as the output of :func:`format_timestamp`.

    A date and a time down to the second are required; values without an
    offset are read as UTC. Raises ``ValueError`` for anything else.
    """

    cleaned = value.strip()
    if not _RFC3339.match(cleaned):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"
    parsed = datetime.fromisoformat(cleaned)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class User:
    """Represents a user account held by the repository."""

    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def new(
        cls,
        id: str,
        username: str,
        email: str,
        first_name: str,
        last_name: str,
    ) -> "User":
        """Build a user whose creation and update timestamps are both now."""

        now = utcnow()
        return cls(
            id=id,
            username=username,
            email=email,
            first_name=first_name,
            last_name=last_name,
            created_at=now,
            updated_at=now,
        )


__all__ = ["User", "format_timestamp", "parse_timestamp", "utcnow"]
