"""
Rewrite rules — the ordered BBCode → Markdown cleanup pipeline.

Each rule is a named, pure ``str -> str`` function. A rule that finds
nothing to do returns its input unchanged, and every rule is idempotent
on its own output.

Order matters and is fixed by ``build_rules``:

  1. HRs               ``[hr]`` lines → Markdown horizontal rule
  2. BBCodeAutoURL     ``[url=X]X[/url]`` → ``X`` (Discourse autolinks)
  3. URLsInParens      ``(http://x)`` → ``([http://x](http://x))``
  4. BBCodeURL         ``[url=X]label[/url]`` → ``[label](X)``
  5. align             ``[align=center]t[/align]`` → ``# t``
  6. BBCodeBoldItalic  ``[i]``/``[b]`` → ``*``/``**`` on safe spans
  7. quote             MyBB quote attribution → Discourse attribution
  8. rmCRs             strip ``\\r``

URLsInParens runs before BBCodeURL so it never sees the Markdown links
BBCodeURL produces. rmCRs runs last so the earlier patterns only have
to tolerate ``\\r\\n`` where they explicitly say so.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from bbmigrate.core.models.settings import DEFAULT_ALIASES
from bbmigrate.core.services.quote_refs import QuoteReferenceTable


@dataclass(frozen=True)
class Rule:
    """A named text transform."""

    name: str
    transform: Callable[[str], str]

    def __call__(self, raw: str) -> str:
        return self.transform(raw)


# ── 1. Horizontal rules ─────────────────────────────────────────────

_HR_RE = re.compile(r"\r?\n\[hr\](?=\r?\n)")
_MD_HR = "\n\n----------\n"


def hrs(raw: str) -> str:
    """Turn a line holding only ``[hr]`` into a blank-line-separated ``----------``.

    The trailing line break is left in place, so the rule followed by
    that break yields the blank line after the rule.
    """
    return _HR_RE.sub(_MD_HR, raw)


# ── 2. Autolinks ────────────────────────────────────────────────────

_AUTO_URL_RE = re.compile(r"\[url=(.*?)\]\1\[/url\]")


def bbcode_auto_url(raw: str) -> str:
    """Collapse ``[url=X]X[/url]`` to the bare ``X``."""
    return _AUTO_URL_RE.sub(r"\1", raw)


# ── 3. URLs in parentheses ──────────────────────────────────────────

# MyBB hyperlinks "(http://example.com)"; Discourse does not when the
# open paren touches the scheme. A "(" right after "]" is the target
# half of a Markdown link and is left alone.
_PAREN_URL_RE = re.compile(r"(?<!\])\(([a-z]+://[^ )]+)\)")


def urls_in_parens(raw: str) -> str:
    return _PAREN_URL_RE.sub(r"([\1](\1))", raw)


# ── 4. Labeled links ────────────────────────────────────────────────

_URL_RE = re.compile(r"\[url=(.*?)\](.*?)\[/url\]")


def bbcode_url(raw: str) -> str:
    """Convert ``[url=TARGET]LABEL[/url]`` to ``[LABEL](TARGET)``."""
    return _URL_RE.sub(r"[\2](\1)", raw)


# ── 5. Centering ────────────────────────────────────────────────────

_ALIGN_RE = re.compile(r"\[align=center\](.*?)\[/align\]")


def align(raw: str) -> str:
    return _ALIGN_RE.sub(r"# \1", raw)


# ── 6. Bold / italic ────────────────────────────────────────────────

# Markdown *'s don't work across newlines or around literal asterisks
_ITALIC_RE = re.compile(r"\[i\]([^*\n]+?)\[/i\]")
_BOLD_RE = re.compile(r"\[b\]([^*\n]+?)\[/b\]")


def bbcode_bold_italic(raw: str) -> str:
    return _BOLD_RE.sub(r"**\1**", _ITALIC_RE.sub(r"*\1*", raw))


# ── 7. Quote attribution ────────────────────────────────────────────

_QUOTE_RE = re.compile(r"\[quote='([^']+)'.*?pid='(\d+).*?\]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_username(username: str, aliases: Mapping[str, str] | None = None) -> str:
    """Map a MyBB display name to its Discourse username.

    Whitespace runs become underscores, then each alias replaces its
    first occurrence inside the name, so a suffixed account such as
    "Gary_Isaac_Wolf2" maps to "Agaricus2".

    >>> normalize_username("Gary Isaac Wolf")
    'Agaricus'
    """
    if aliases is None:
        aliases = DEFAULT_ALIASES
    name = _WHITESPACE_RE.sub("_", username)
    for old, new in aliases.items():
        name = name.replace(old, new, 1)
    return name


def quote(
    raw: str,
    table: QuoteReferenceTable,
    aliases: Mapping[str, str] | None = None,
) -> str:
    """Rewrite ``[quote='User Name' pid='42' ...]`` attributions.

    Resolved pids get the Discourse locator appended; unresolved ones keep
    the username only. With an unavailable table the text is returned as is.
    """
    if not table.available:
        return raw

    def _replace(m: re.Match) -> str:
        username = normalize_username(m.group(1), aliases)
        locator = table.resolve(m.group(2))
        suffix = f", {locator}" if locator else ""
        return f'[quote="{username}{suffix}"]'

    return _QUOTE_RE.sub(_replace, raw)


# ── 8. Carriage returns ─────────────────────────────────────────────


def rm_crs(raw: str) -> str:
    """Drop every ``\\r``; ``\\n`` is all Discourse needs."""
    return raw.replace("\r", "")


# ── Registry ────────────────────────────────────────────────────────

RULE_NAMES = (
    "HRs",
    "BBCodeAutoURL",
    "URLsInParens",
    "BBCodeURL",
    "align",
    "BBCodeBoldItalic",
    "quote",
    "rmCRs",
)


def build_rules(
    table: QuoteReferenceTable | None = None,
    aliases: Mapping[str, str] | None = None,
) -> list[Rule]:
    """Return the rules in application order.

    Args:
        table: Quote reference table; None means unavailable.
        aliases: Username alias table for the quote rule.
    """
    if table is None:
        table = QuoteReferenceTable.unavailable()
    alias_map = dict(DEFAULT_ALIASES if aliases is None else aliases)

    return [
        Rule("HRs", hrs),
        Rule("BBCodeAutoURL", bbcode_auto_url),
        Rule("URLsInParens", urls_in_parens),
        Rule("BBCodeURL", bbcode_url),
        Rule("align", align),
        Rule("BBCodeBoldItalic", bbcode_bold_italic),
        Rule("quote", lambda raw: quote(raw, table, alias_map)),
        Rule("rmCRs", rm_crs),
    ]
