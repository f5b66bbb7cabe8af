"""
Post processor — runs the rewrite rules and the warning pass over one post.

Pure: the only inputs are the raw text and the rules/detector the
processor was built with (the quote table inside the rules is
immutable). Safe to share across threads.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from bbmigrate.core.models.settings import DEFAULT_EDIT_REASON_PREFIX, Settings
from bbmigrate.core.services.quote_refs import QuoteReferenceTable
from bbmigrate.core.services.rules import Rule, build_rules
from bbmigrate.core.services.warning_detector import (
    PostWarning,
    WarningDetector,
    build_patterns,
)

logger = logging.getLogger(__name__)


@dataclass
class ProcessingResult:
    """Rewritten text plus what happened to it."""

    text: str
    fired_rules: list[str] = field(default_factory=list)
    warnings: list[PostWarning] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.fired_rules)

    def change_summary(self, prefix: str = DEFAULT_EDIT_REASON_PREFIX) -> str:
        """Edit reason recorded with the revision."""
        return prefix + ", ".join(self.fired_rules)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "fired_rules": self.fired_rules,
            "warnings": [{"label": w.label, "count": w.count} for w in self.warnings],
        }


class PostProcessor:
    """Applies the rules in order, then audits the result."""

    def __init__(
        self,
        rules: Sequence[Rule] | None = None,
        detector: WarningDetector | None = None,
    ):
        self._rules = list(rules) if rules is not None else build_rules()
        self._detector = detector or WarningDetector()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        table: QuoteReferenceTable,
    ) -> PostProcessor:
        """Build a processor from configuration and a loaded quote table."""
        return cls(
            rules=build_rules(table, settings.aliases),
            detector=WarningDetector(
                build_patterns(
                    html_allowlist=settings.html_allowlist,
                    legacy_domain=settings.legacy_domain,
                )
            ),
        )

    @classmethod
    def with_table(
        cls,
        table: QuoteReferenceTable,
        aliases: Mapping[str, str] | None = None,
    ) -> PostProcessor:
        return cls(rules=build_rules(table, aliases))

    @property
    def rule_names(self) -> list[str]:
        return [r.name for r in self._rules]

    def process(self, raw: str) -> ProcessingResult:
        """Rewrite ``raw`` and report the fired rules and residual warnings."""
        text = raw
        fired: list[str] = []

        for rule in self._rules:
            result = rule(text)
            if result != text:
                fired.append(rule.name)
                text = result

        warnings = self._detector.detect(text)
        if fired:
            logger.debug("Rules fired: %s", ", ".join(fired))

        return ProcessingResult(text=text, fired_rules=fired, warnings=warnings)

    def pipeline(self, raw: str) -> str:
        """Just the rewritten text."""
        return self.process(raw).text
