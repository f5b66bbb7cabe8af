"""
Forum client base — the contract between the core and the forum API.

The batch driver and the user purge only talk to the forum through
this interface, never to HTTP directly. Mutations return Receipts;
a rejected update or delete is data, not an exception. Reads that
cannot reach the forum at all raise ForumError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bbmigrate.core.models.forum import Post, Receipt, UserRecord


class ForumError(Exception):
    """Raised when the forum cannot be reached or answers nonsense."""


class ForumClient(ABC):
    """Abstract base class for forum API clients.

    To add a backend:
        1. Subclass ForumClient
        2. Implement the five operations below
    """

    @abstractmethod
    def highest_post_id(self) -> int:
        """The largest post id assigned so far."""

    @abstractmethod
    def fetch_post(self, post_id: int) -> Post:
        """Fetch one post.

        Returns a Post with ``error`` set when the API answered with an
        error payload. Raises ForumError on transport failure.
        """

    @abstractmethod
    def update_post(self, post_id: int, raw: str, edit_reason: str) -> Receipt:
        """Replace a post's raw content, recording ``edit_reason``."""

    @abstractmethod
    def list_users(self, filter_expr: str) -> list[UserRecord]:
        """Return one page of users matching ``filter_expr``."""

    @abstractmethod
    def delete_and_block_user(self, user_id: int, username: str) -> Receipt:
        """Delete a user with their posts and block their email/IP."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
