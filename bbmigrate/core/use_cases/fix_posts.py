"""
Fix posts use case — walk every post id and clean up its markup.

For each id in ``first_id..last_id``: fetch the post, skip it if it is
gone or deleted, run the post processor, report warnings, and write
the rewrite back when the significance policy says it is worth a
revision (or just log it in dry-run mode).

Failures stay inside their post. A fetch error, a rejected update, or
an exception anywhere in the per-post path is logged with the post id
and counted; the loop moves on. Only a failure outside that boundary,
such as not being able to learn the highest post id, ends the run.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from bbmigrate.adapters.base import ForumClient, ForumError
from bbmigrate.core.config.loader import ConfigError, load_settings
from bbmigrate.core.models.settings import DEFAULT_EDIT_REASON_PREFIX
from bbmigrate.core.persistence.audit import AuditWriter, RevisionEntry
from bbmigrate.core.services.post_processor import PostProcessor, ProcessingResult
from bbmigrate.core.services.quote_refs import load_quote_table
from bbmigrate.core.services.significance import DEFAULT_INSIGNIFICANT_RULES, should_persist

logger = logging.getLogger(__name__)

NO_TOPIC_WARNING = "no topic id"
COLOR_TAG = "[color="


@dataclass
class BatchSummary:
    """Counters for one pass over the post id space."""

    run_id: str = ""
    first_id: int = 1
    last_id: int = 0
    dry_run: bool = False

    processed: int = 0           # fetched, live, and run through the rules
    updated: int = 0
    would_update: int = 0        # dry-run only
    unchanged: int = 0
    insignificant: int = 0       # changed, but not worth a revision
    skipped_deleted: int = 0
    fetch_errors: int = 0
    update_errors: int = 0
    faults: int = 0
    warned_posts: int = 0
    color_posts: int = 0
    failed_ids: list[int] = field(default_factory=list)

    @property
    def color_unused(self) -> bool:
        """No post used [color=...]; the color plugin can go."""
        return self.color_posts == 0

    @property
    def errors(self) -> int:
        return self.fetch_errors + self.update_errors + self.faults

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "first_id": self.first_id,
            "last_id": self.last_id,
            "dry_run": self.dry_run,
            "processed": self.processed,
            "updated": self.updated,
            "would_update": self.would_update,
            "unchanged": self.unchanged,
            "insignificant": self.insignificant,
            "skipped_deleted": self.skipped_deleted,
            "fetch_errors": self.fetch_errors,
            "update_errors": self.update_errors,
            "faults": self.faults,
            "warned_posts": self.warned_posts,
            "color_posts": self.color_posts,
            "color_unused": self.color_unused,
            "failed_ids": self.failed_ids,
        }


def generate_run_id() -> str:
    """Generate a unique run ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"fix-{now}-{short}"


class BatchDriver:
    """Runs the post processor over a range of post ids."""

    def __init__(
        self,
        client: ForumClient,
        processor: PostProcessor,
        base_url: str = "",
        dry_run: bool = False,
        insignificant: Collection[str] = DEFAULT_INSIGNIFICANT_RULES,
        edit_reason_prefix: str = DEFAULT_EDIT_REASON_PREFIX,
        audit: AuditWriter | None = None,
    ):
        self._client = client
        self._processor = processor
        self._base_url = base_url.rstrip("/")
        self._dry_run = dry_run
        self._insignificant = frozenset(insignificant)
        self._prefix = edit_reason_prefix
        self._audit = audit

    def post_link(self, post_id: int) -> str:
        return f"{self._base_url}/p/{post_id}"

    def run(
        self,
        first_id: int = 1,
        last_id: int | None = None,
        run_id: str | None = None,
    ) -> BatchSummary:
        """Process every id in ``first_id..last_id`` inclusive.

        ``last_id`` defaults to the forum's highest post id.
        """
        if last_id is None:
            last_id = self._client.highest_post_id()

        summary = BatchSummary(
            run_id=run_id or generate_run_id(),
            first_id=first_id,
            last_id=last_id,
            dry_run=self._dry_run,
        )
        mode = " (dry run)" if self._dry_run else ""
        logger.info("Processing posts %d..%d%s", first_id, last_id, mode)

        for post_id in range(first_id, last_id + 1):
            try:
                self._process_one(post_id, summary)
            except Exception:
                logger.exception("Unexpected error processing post %s", self.post_link(post_id))
                summary.faults += 1
                summary.failed_ids.append(post_id)

        self._log_summary(summary)
        return summary

    # ── Per-post ────────────────────────────────────────────────

    def _process_one(self, post_id: int, summary: BatchSummary) -> None:
        link = self.post_link(post_id)

        try:
            post = self._client.fetch_post(post_id)
        except ForumError as e:
            logger.error("Cannot fetch post %s: %s", link, e)
            summary.fetch_errors += 1
            summary.failed_ids.append(post_id)
            return

        if post.failed:
            logger.error("Error fetching post %s: %s", link, post.error)
            summary.fetch_errors += 1
            summary.failed_ids.append(post_id)
            return

        if post.deleted:
            logger.debug("Skipping deleted post %s", link)
            summary.skipped_deleted += 1
            return

        summary.processed += 1
        if COLOR_TAG in post.raw:
            summary.color_posts += 1

        result = self._processor.process(post.raw)

        found = {w.label: w.count for w in result.warnings}
        reported = [str(w) for w in result.warnings]
        if not post.has_topic:
            found[NO_TOPIC_WARNING] = 1
            reported.append(NO_TOPIC_WARNING)
        if reported:
            summary.warned_posts += 1
            logger.warning("WARNING: post %s contains: %s", link, ", ".join(reported))

        if not result.changed:
            summary.unchanged += 1
            return

        if not should_persist(result.fired_rules, self._insignificant):
            logger.debug("Not saving post %s, only %s", link, ", ".join(result.fired_rules))
            summary.insignificant += 1
            self._record(summary, post_id, "skipped", result, found)
            return

        reason = result.change_summary(self._prefix)

        if self._dry_run:
            logger.info(
                "[dry-run] Would fix post %s: %s\n%s",
                link,
                ", ".join(result.fired_rules),
                result.text,
            )
            summary.would_update += 1
            self._record(summary, post_id, "dry-run", result, found, edit_reason=reason)
            return

        receipt = self._client.update_post(post_id, result.text, reason)
        if receipt.succeeded:
            logger.info("Fixed in post %s: %s", link, ", ".join(result.fired_rules))
            summary.updated += 1
            self._record(summary, post_id, "updated", result, found, edit_reason=reason)
        else:
            logger.error(
                "Update rejected for post %s: HTTP %d %s",
                link,
                receipt.status,
                receipt.detail,
            )
            summary.update_errors += 1
            summary.failed_ids.append(post_id)
            self._record(
                summary,
                post_id,
                "rejected",
                result,
                found,
                edit_reason=reason,
                status=receipt.status,
                detail=receipt.detail,
            )

    def _record(
        self,
        summary: BatchSummary,
        post_id: int,
        outcome: str,
        result: ProcessingResult,
        warnings: dict[str, int],
        **kwargs,
    ) -> None:
        if self._audit is None:
            return
        self._audit.write(
            RevisionEntry(
                run_id=summary.run_id,
                post_id=post_id,
                outcome=outcome,
                fired_rules=result.fired_rules,
                warnings=warnings,
                **kwargs,
            )
        )

    def _log_summary(self, summary: BatchSummary) -> None:
        if summary.dry_run:
            logger.info("Total posts that would be updated: %d", summary.would_update)
        else:
            logger.info("Total posts updated: %d", summary.updated)
        if summary.errors:
            logger.warning(
                "Errors: %d fetch, %d update, %d unexpected",
                summary.fetch_errors,
                summary.update_errors,
                summary.faults,
            )
        if summary.color_unused:
            logger.info(
                "No [color=...] tags were actually used. You can uninstall the "
                "bbcode-color plugin if you don't want to allow colors."
            )


def fix_posts(
    client: ForumClient,
    processor: PostProcessor,
    *,
    base_url: str = "",
    dry_run: bool = False,
    first_id: int = 1,
    last_id: int | None = None,
    insignificant: Collection[str] = DEFAULT_INSIGNIFICANT_RULES,
    edit_reason_prefix: str = DEFAULT_EDIT_REASON_PREFIX,
    audit: AuditWriter | None = None,
) -> BatchSummary:
    """Run one batch pass; see ``BatchDriver``."""
    driver = BatchDriver(
        client,
        processor,
        base_url=base_url,
        dry_run=dry_run,
        insignificant=insignificant,
        edit_reason_prefix=edit_reason_prefix,
        audit=audit,
    )
    return driver.run(first_id=first_id, last_id=last_id)


# ── Use case ────────────────────────────────────────────────────────


@dataclass
class FixRunResult:
    """Result of the ``fix`` command."""

    summary: BatchSummary | None = None
    quote_map_available: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        result: dict = {"quote_map_available": self.quote_map_available}
        if self.summary:
            result["summary"] = self.summary.to_dict()
        return result


def run_fix(
    config_path: Path | None = None,
    dry_run: bool | None = None,
    first_id: int = 1,
    last_id: int | None = None,
    client: ForumClient | None = None,
) -> FixRunResult:
    """Load config, build the pipeline, and run the batch.

    Args:
        config_path: Optional explicit path to bbmigrate.yml.
        dry_run: Overrides the config's ``dry_run`` when not None.
        first_id: First post id to process.
        last_id: Last post id; None = the forum's highest.
        client: Optional pre-built forum client (default: Discourse).
    """
    result = FixRunResult()

    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    table = load_quote_table(settings.quote_map)
    result.quote_map_available = table.available
    processor = PostProcessor.from_settings(settings, table)

    if client is None:
        from bbmigrate.adapters.discourse import DiscourseClient

        client = DiscourseClient(settings.forum)

    audit = AuditWriter(Path(settings.audit_log)) if settings.audit_log else None

    try:
        result.summary = fix_posts(
            client,
            processor,
            base_url=settings.forum.base_url,
            dry_run=settings.dry_run if dry_run is None else dry_run,
            first_id=first_id,
            last_id=last_id,
            insignificant=settings.insignificant_rules,
            edit_reason_prefix=settings.edit_reason_prefix,
            audit=audit,
        )
    except ForumError as e:
        result.error = str(e)

    return result
