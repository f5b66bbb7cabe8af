"""
Forum models — what the forum API hands back to the core.

Posts and user records are transient: fetched, inspected, and
dropped once their item has been decided. Mutations come back as
Receipts; adapters never raise for a rejected update or delete,
the failure is captured in the Receipt instead.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Post(BaseModel):
    """A single post as fetched from the forum.

    ``error`` is set when the API answered with an error payload
    instead of a post; the other fields are then meaningless.
    """

    id: int
    raw: str = ""
    deleted: bool = False
    topic_id: int | None = None
    error: str | None = None

    @property
    def has_topic(self) -> bool:
        return self.topic_id is not None

    @property
    def failed(self) -> bool:
        return self.error is not None


class UserRecord(BaseModel):
    """A forum user returned by a filtered admin listing."""

    id: int
    username: str
    email: str = ""


class Receipt(BaseModel):
    """Outcome of a mutating API call (update or delete)."""

    operation: str
    target: str
    succeeded: bool = True
    status: int = 0                 # HTTP status, 0 when no response
    detail: str = ""
    at: str = Field(default_factory=_now_iso)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def success(cls, operation: str, target: str, status: int = 200, **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(operation=operation, target=target, succeeded=True, status=status, **kwargs)

    @classmethod
    def failure(
        cls,
        operation: str,
        target: str,
        detail: str,
        status: int = 0,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            operation=operation,
            target=target,
            succeeded=False,
            status=status,
            detail=detail,
            **kwargs,
        )
