"""
Discourse adapter — ForumClient over the Discourse REST API.

Plain urllib, JSON in and out, authenticated with the ``Api-Key`` and
``Api-Username`` headers of an admin API key. One request at a time;
timeouts come from the configured socket timeout and nothing is retried.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Callable
from typing import Any

from bbmigrate.adapters.base import ForumClient, ForumError
from bbmigrate.core.models.forum import Post, Receipt, UserRecord
from bbmigrate.core.models.settings import ForumSettings

logger = logging.getLogger(__name__)

_USER_AGENT = "bbmigrate/1.0"


class DiscourseClient(ForumClient):
    """Talks to one Discourse instance."""

    def __init__(
        self,
        settings: ForumSettings,
        opener: Callable[..., Any] | None = None,
    ):
        self._settings = settings
        self._opener = opener or urllib.request.urlopen

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    # ── Transport ───────────────────────────────────────────────

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> tuple[int, Any]:
        """Send one request and return (status, decoded JSON or None).

        HTTP error statuses are returned, not raised. Only failures to get
        any response at all raise ForumError.
        """
        url = f"{self.base_url}{path}"
        if params:
            url += "?" + urllib.parse.urlencode(params)

        headers = {
            "Api-Key": self._settings.api_key,
            "Api-Username": self._settings.api_username,
            "Accept": "application/json",
            "User-Agent": _USER_AGENT,
        }
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = urllib.request.Request(url, data=data, method=method, headers=headers)
        logger.debug("%s %s", method, url)

        try:
            with self._opener(req, timeout=self._settings.timeout) as resp:
                status = resp.status
                payload = resp.read()
        except urllib.error.HTTPError as e:
            status = e.code
            payload = e.read() or b""
        except (urllib.error.URLError, OSError) as e:
            raise ForumError(f"{method} {path} failed: {e}") from e

        return status, _decode(payload)

    # ── Posts ───────────────────────────────────────────────────

    def highest_post_id(self) -> int:
        status, data = self._request("GET", "/posts.json")
        if status != 200 or not isinstance(data, dict):
            raise ForumError(f"Cannot list latest posts: HTTP {status} {_error_text(data)}")
        posts = data.get("latest_posts") or []
        return max((int(p["id"]) for p in posts if "id" in p), default=0)

    def fetch_post(self, post_id: int) -> Post:
        status, data = self._request("GET", f"/posts/{post_id}.json")
        if status != 200 or not isinstance(data, dict):
            return Post(id=post_id, error=f"HTTP {status} {_error_text(data)}".strip())
        return Post(
            id=post_id,
            raw=data.get("raw") or "",
            deleted=bool(data.get("deleted_at")),
            topic_id=data.get("topic_id"),
        )

    def update_post(self, post_id: int, raw: str, edit_reason: str) -> Receipt:
        target = f"post:{post_id}"
        try:
            status, data = self._request(
                "PUT",
                f"/posts/{post_id}.json",
                body={"post": {"raw": raw, "edit_reason": edit_reason}},
            )
        except ForumError as e:
            return Receipt.failure("update_post", target, detail=str(e))

        if status == 200:
            return Receipt.success("update_post", target, status=status)
        return Receipt.failure("update_post", target, detail=_error_text(data), status=status)

    # ── Users ───────────────────────────────────────────────────

    def list_users(self, filter_expr: str) -> list[UserRecord]:
        status, data = self._request(
            "GET",
            "/admin/users/list/all.json",
            params={"filter": filter_expr, "show_emails": "true"},
        )
        if status != 200 or not isinstance(data, list):
            raise ForumError(
                f"Cannot list users for {filter_expr!r}: HTTP {status} {_error_text(data)}"
            )
        return [
            UserRecord(id=u["id"], username=u.get("username", ""), email=u.get("email") or "")
            for u in data
        ]

    def delete_and_block_user(self, user_id: int, username: str) -> Receipt:
        target = f"user:{user_id}"
        try:
            status, data = self._request(
                "DELETE",
                f"/admin/users/{user_id}.json",
                body={
                    "delete_posts": True,
                    "block_email": True,
                    "block_urls": True,
                    "block_ip": True,
                },
            )
        except ForumError as e:
            return Receipt.failure("delete_user", target, detail=str(e))

        if status == 200 and not (isinstance(data, dict) and data.get("deleted") is False):
            return Receipt.success("delete_user", target, status=status, metadata={"username": username})
        return Receipt.failure(
            "delete_user",
            target,
            detail=_error_text(data),
            status=status,
            metadata={"username": username},
        )


def _decode(payload: bytes) -> Any:
    if not payload:
        return None
    try:
        return json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return payload.decode("utf-8", errors="replace")


def _error_text(data: Any) -> str:
    """Best-effort human-readable error from a Discourse response body."""
    if isinstance(data, dict):
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            return "; ".join(str(e) for e in errors)
        if data.get("error"):
            return str(data["error"])
        return ""
    if isinstance(data, str):
        return data[:200]
    return ""
