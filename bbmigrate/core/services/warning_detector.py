"""
Warning detector — flags residual risk in rewritten posts.

The detectors run against the *final* text of a post, after every
rewrite rule. They never change text and never block an update; they
exist so an operator can go back and fix by hand what the rules
deliberately leave alone.

Each detector reports how many non-overlapping matches it found.
All detectors run on every post.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from bbmigrate.core.models.settings import DEFAULT_HTML_ALLOWLIST, DEFAULT_LEGACY_DOMAIN


@dataclass(frozen=True)
class WarningPattern:
    """A labeled regex whose matches indicate a likely rendering problem."""

    label: str
    pattern: re.Pattern

    def count(self, text: str) -> int:
        return sum(1 for _ in self.pattern.finditer(text))


@dataclass(frozen=True)
class PostWarning:
    """A detector that fired, with its match count."""

    label: str
    count: int

    def __str__(self) -> str:
        return f"{self.label} (x{self.count})"


def _unescaped_lt(allowlist: Iterable[str]) -> re.Pattern:
    tags = sorted({t.strip().lower() for t in allowlist if t.strip()})
    if not tags:
        return re.compile(r"<")
    alternation = "|".join(re.escape(t) for t in tags)
    return re.compile(rf"<(?!/?(?:{alternation})\b)", re.IGNORECASE)


def build_patterns(
    html_allowlist: Iterable[str] = DEFAULT_HTML_ALLOWLIST,
    legacy_domain: str = DEFAULT_LEGACY_DOMAIN,
) -> list[WarningPattern]:
    """Return the warning patterns in reporting order.

    Args:
        html_allowlist: Inline HTML tags Discourse renders, so a ``<``
            opening one of them (or its closing tag) is not reported.
        legacy_domain: Host name of the old forum; links to it are stale.
    """
    return [
        WarningPattern("unescaped '<' character", _unescaped_lt(html_allowlist)),
        WarningPattern(
            "leading spaces that bbcode ignores but Discourse formats as code",
            re.compile(r"^ {4,}\S", re.MULTILINE),
        ),
        WarningPattern("list in BBCode format", re.compile(r"\[list[\]=]")),
        # Discourse renders [u], but it may also be the underline of a converted link
        WarningPattern("BBCode underline", re.compile(r"\[u\]")),
        WarningPattern(
            "blank line between nested [quote]s may force raw display",
            re.compile(r"\[quote.+\[quote.+\[quote", re.DOTALL),
        ),
        WarningPattern("potential missing attachment", re.compile(r"attach")),
        WarningPattern("link to MyBB post/thread", re.compile(re.escape(legacy_domain))),
        WarningPattern(
            "potential old post number reference",
            re.compile(r"post.*?#\d+", re.IGNORECASE),
        ),
        WarningPattern("potential code block", re.compile(r"\(\) \{")),
        WarningPattern(
            "potential list item without preceding newline",
            re.compile(r"^(?![-*+]\s|\d+\.\s)[^\n]+\n-[ \t]", re.MULTILINE),
        ),
        WarningPattern("BBCode font tag", re.compile(r"\[font=")),  # echoed raw
        WarningPattern("BBCode size tag", re.compile(r"\[size=")),  # silently ignored
    ]


class WarningDetector:
    """Runs every warning pattern over a text and reports the ones that fired."""

    def __init__(self, patterns: list[WarningPattern] | None = None):
        self._patterns = list(patterns) if patterns is not None else build_patterns()

    @property
    def labels(self) -> list[str]:
        return [p.label for p in self._patterns]

    def detect(self, text: str) -> list[PostWarning]:
        warnings = []
        for pattern in self._patterns:
            n = pattern.count(text)
            if n:
                warnings.append(PostWarning(pattern.label, n))
        return warnings
