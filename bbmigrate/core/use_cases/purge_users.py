"""
Purge users use case — delete and block spam accounts in bulk.

Takes filter expressions, one per line (an email domain, a username
fragment, an IP). For each filter, fetch a page of matching users,
delete and block every one of them, and fetch again: deleted users
drop out of the listing, so the next page is the next batch. A page
shorter than the page size means the filter is exhausted.

A failed delete, whether refused by the forum or raised, is logged and
counted and the purge carries on with the next user. A failed listing
abandons that filter only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from bbmigrate.adapters.base import ForumClient, ForumError
from bbmigrate.core.config.loader import ConfigError, load_settings
from bbmigrate.core.models.forum import UserRecord
from bbmigrate.core.models.settings import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)


@dataclass
class PurgeSummary:
    """Counters across all filters of one purge."""

    filters: int = 0
    pages_fetched: int = 0
    deleted: int = 0
    errors: int = 0
    deleted_usernames: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "filters": self.filters,
            "pages_fetched": self.pages_fetched,
            "deleted": self.deleted,
            "errors": self.errors,
            "deleted_usernames": self.deleted_usernames,
        }


def parse_filters(filters_text: str) -> list[str]:
    """One filter per non-blank line, surrounding whitespace dropped."""
    return [line.strip() for line in filters_text.splitlines() if line.strip()]


def purge_users(
    client: ForumClient,
    filters_text: str,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PurgeSummary:
    """Delete and block every user matching any of the filter lines."""
    summary = PurgeSummary()

    for filter_expr in parse_filters(filters_text):
        summary.filters += 1
        _purge_filter(client, filter_expr, page_size, summary)

    logger.info("Total users deleted: %d, errors: %d", summary.deleted, summary.errors)
    return summary


def _purge_filter(
    client: ForumClient,
    filter_expr: str,
    page_size: int,
    summary: PurgeSummary,
) -> None:
    while True:
        try:
            page = client.list_users(filter_expr)
        except ForumError as e:
            logger.error("Cannot list users for %r: %s", filter_expr, e)
            summary.errors += 1
            return
        except Exception:
            logger.exception("Unexpected error listing users for %r", filter_expr)
            summary.errors += 1
            return

        summary.pages_fetched += 1
        logger.info("Filter %r: %d users in page", filter_expr, len(page))

        deleted_here = 0
        for user in page:
            if _delete_one(client, user, summary):
                deleted_here += 1

        if len(page) < page_size:
            return

        # A full page where nothing could be deleted would come back
        # unchanged on the next fetch.
        if deleted_here == 0:
            logger.warning(
                "Filter %r: no user in a full page could be deleted, giving up on it",
                filter_expr,
            )
            return


def _delete_one(client: ForumClient, user: UserRecord, summary: PurgeSummary) -> bool:
    """Delete and block one user. Any failure is logged and counted."""
    try:
        receipt = client.delete_and_block_user(user.id, user.username)
    except Exception:
        logger.exception("Unexpected error deleting %s (id %d)", user.username, user.id)
        summary.errors += 1
        return False

    if not receipt.succeeded:
        logger.error(
            "Error deleting %s (id %d): HTTP %d %s",
            user.username,
            user.id,
            receipt.status,
            receipt.detail,
        )
        summary.errors += 1
        return False

    logger.info("Deleted and blocked %s <%s>", user.username, user.email)
    summary.deleted += 1
    summary.deleted_usernames.append(user.username)
    return True


# ── Use case ────────────────────────────────────────────────────────


@dataclass
class PurgeRunResult:
    """Result of the ``purge-users`` command."""

    summary: PurgeSummary | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {"summary": self.summary.to_dict() if self.summary else None}


def run_purge(
    filters_text: str,
    config_path: Path | None = None,
    page_size: int | None = None,
    client: ForumClient | None = None,
) -> PurgeRunResult:
    """Load config and purge users matching ``filters_text``."""
    result = PurgeRunResult()

    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    if client is None:
        from bbmigrate.adapters.discourse import DiscourseClient

        client = DiscourseClient(settings.forum)

    result.summary = purge_users(
        client,
        filters_text,
        page_size=page_size or settings.purge_page_size,
    )
    return result
