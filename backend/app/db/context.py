"""Caller context for ownership enforcement."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class CallerContext:
    """Authenticated caller identity supplied by the session layer.

    Used to scope every document query to the caller's ownership fields.
    """

    user_id: UUID
    role: str
