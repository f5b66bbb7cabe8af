"""
Mock forum — in-memory ForumClient test double.

Holds posts and users in dicts, records every call, and can be told
to fail specific fetches, updates or deletes. Used by the tests and
handy for trying a config against canned content.
"""

from __future__ import annotations

from bbmigrate.adapters.base import ForumClient, ForumError
from bbmigrate.core.models.forum import Post, Receipt, UserRecord


class MockForum(ForumClient):
    """Universal in-memory forum for testing.

    Posts not registered with ``add_post`` fetch as a 404 error payload.
    ``list_users`` serves users matching a filter by substring of
    username or email, ``page_size`` at a time, in id order. Deleted
    users disappear from later pages, as on a real forum.
    """

    def __init__(self, page_size: int = 100):
        self.page_size = page_size
        self.posts: dict[int, Post] = {}
        self.users: dict[int, UserRecord] = {}
        self.updates: list[tuple[int, str, str]] = []
        self.deleted_users: list[int] = []
        self.user_page_requests: list[str] = []
        self._fetch_raises: set[int] = set()
        self._update_rejects: dict[int, str] = {}
        self._delete_rejects: dict[int, str] = {}
        self._scripted_pages: list[list[UserRecord]] | None = None

    # ── Setup ───────────────────────────────────────────────────

    def add_post(
        self,
        post_id: int,
        raw: str,
        deleted: bool = False,
        topic_id: int | None = 1,
    ) -> Post:
        post = Post(id=post_id, raw=raw, deleted=deleted, topic_id=topic_id)
        self.posts[post_id] = post
        return post

    def add_user(self, user_id: int, username: str, email: str = "") -> UserRecord:
        user = UserRecord(id=user_id, username=username, email=email)
        self.users[user_id] = user
        return user

    def fail_fetch(self, post_id: int) -> None:
        """Make fetching this post raise ForumError."""
        self._fetch_raises.add(post_id)

    def reject_update(self, post_id: int, detail: str = "Mock rejection") -> None:
        self._update_rejects[post_id] = detail

    def reject_delete(self, user_id: int, detail: str = "Mock rejection") -> None:
        self._delete_rejects[user_id] = detail

    def script_user_pages(self, pages: list[list[UserRecord]]) -> None:
        """Serve these pages, in order, instead of filtering ``users``."""
        self._scripted_pages = [list(p) for p in pages]

    # ── ForumClient ─────────────────────────────────────────────

    def highest_post_id(self) -> int:
        return max(self.posts, default=0)

    def fetch_post(self, post_id: int) -> Post:
        if post_id in self._fetch_raises:
            raise ForumError(f"GET /posts/{post_id}.json failed: connection reset")
        post = self.posts.get(post_id)
        if post is None:
            return Post(id=post_id, error="HTTP 404 The requested URL or resource could not be found.")
        return post.model_copy()

    def update_post(self, post_id: int, raw: str, edit_reason: str) -> Receipt:
        self.updates.append((post_id, raw, edit_reason))
        target = f"post:{post_id}"
        if post_id in self._update_rejects:
            return Receipt.failure(
                "update_post", target, detail=self._update_rejects[post_id], status=422
            )
        if post_id in self.posts:
            self.posts[post_id] = self.posts[post_id].model_copy(update={"raw": raw})
        return Receipt.success("update_post", target, metadata={"mock": True})

    def list_users(self, filter_expr: str) -> list[UserRecord]:
        self.user_page_requests.append(filter_expr)
        if self._scripted_pages is not None:
            return self._scripted_pages.pop(0) if self._scripted_pages else []

        needle = filter_expr.lower()
        matches = [
            u
            for _, u in sorted(self.users.items())
            if needle in u.username.lower() or needle in u.email.lower()
        ]
        return matches[: self.page_size]

    def delete_and_block_user(self, user_id: int, username: str) -> Receipt:
        target = f"user:{user_id}"
        if user_id in self._delete_rejects:
            return Receipt.failure(
                "delete_user", target, detail=self._delete_rejects[user_id], status=403
            )
        self.users.pop(user_id, None)
        self.deleted_users.append(user_id)
        return Receipt.success("delete_user", target, metadata={"username": username})
