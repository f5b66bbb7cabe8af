"""
Revision ledger — append-only record of what the batch decided per post.

Every post the rules changed writes one entry to an NDJSON
(newline-delimited JSON) file: which rules fired, which warnings were
raised, and whether the rewrite was saved, skipped, dry-run, or
rejected. Discourse keeps the revision itself; the ledger keeps the
reasoning alongside it so a run can be reviewed afterwards.

The ledger is append-only: entries are never modified or deleted.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_DIR = ".state"
DEFAULT_AUDIT_FILE = "revisions.ndjson"

Outcome = Literal["updated", "dry-run", "skipped", "rejected"]


class RevisionEntry(BaseModel):
    """A single ledger entry for one post."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    run_id: str = ""
    post_id: int

    outcome: Outcome
    fired_rules: list[str] = Field(default_factory=list)
    warnings: dict[str, int] = Field(default_factory=dict)
    edit_reason: str = ""

    # Rejections
    status: int = 0
    detail: str = ""


class AuditWriter:
    """Append-only revision ledger writer.

    Each call to write() appends a single JSON line to the ledger file.
    The file is created if it doesn't exist.
    """

    def __init__(self, path: Path | None = None):
        self._path = path if path is not None else Path(DEFAULT_AUDIT_DIR) / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: RevisionEntry) -> None:
        """Append an entry to the ledger.

        A failed write is logged and otherwise ignored; losing a ledger
        line must not stop a batch that is already mutating the forum.
        """
        data = entry.model_dump(mode="json")
        line = json.dumps(data, ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Ledger entry written: post %d %s", entry.post_id, entry.outcome)
        except OSError as e:
            logger.error("Failed to write ledger entry for post %d: %s", entry.post_id, e)

    def read_all(self) -> list[RevisionEntry]:
        """Read all entries from the ledger, oldest first."""
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(RevisionEntry.model_validate(json.loads(line)))
                    except ValueError as e:
                        logger.warning("Skipping corrupt ledger entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read revision ledger: %s", e)

        return entries
