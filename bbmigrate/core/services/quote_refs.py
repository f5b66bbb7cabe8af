"""
Quote reference table — legacy post id → Discourse post locator.

The table is produced by a patched importer run that prints one
``"<old_pid>": "post:<post_number>, topic:<topic_id>"`` pair per quoted
post; those pairs are collected into a JSON object on disk.

Loading never fails hard. A missing or unreadable file yields a table
in the *unavailable* state, which turns the quote rule into a no-op.
An *empty* table is different: it is loaded and simply resolves
nothing, so quotes keep their normalized username and lose the locator.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

logger = logging.getLogger(__name__)


class QuoteReferenceTable:
    """Immutable legacy-pid lookup with an explicit unavailable state."""

    __slots__ = ("_entries", "_available")

    def __init__(self, entries: Mapping[str, str] | None = None, available: bool = True):
        self._entries = MappingProxyType(dict(entries or {}))
        self._available = available

    @classmethod
    def unavailable(cls) -> QuoteReferenceTable:
        return cls(available=False)

    @property
    def available(self) -> bool:
        return self._available

    def resolve(self, pid: str) -> str | None:
        """Return the locator for a legacy post id, or None."""
        return self._entries.get(str(pid)) or None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pid: object) -> bool:
        return str(pid) in self._entries

    def __repr__(self) -> str:
        state = f"{len(self)} entries" if self._available else "unavailable"
        return f"<QuoteReferenceTable {state}>"


def load_quote_table(path: Path | str | None) -> QuoteReferenceTable:
    """Load the quote reference table from a JSON object file.

    Returns an unavailable table (and logs once) when the path is unset,
    unreadable, not JSON, or not a mapping of strings.
    """
    if path is None:
        logger.warning("No quote map configured — [quote] attributions will not be rewritten")
        return QuoteReferenceTable.unavailable()

    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Cannot load quote map %s: %s — [quote] rule disabled", path, e)
        return QuoteReferenceTable.unavailable()

    if not isinstance(data, dict):
        logger.error(
            "Quote map %s must be a JSON object, got %s — [quote] rule disabled",
            path,
            type(data).__name__,
        )
        return QuoteReferenceTable.unavailable()

    entries = {str(k): str(v) for k, v in data.items() if v is not None}
    logger.debug("Loaded %d quote references from %s", len(entries), path)
    return QuoteReferenceTable(entries)
