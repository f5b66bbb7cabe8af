"""
Persistence-significance policy — is a rewrite worth a new revision?

Every update leaves a revision in Discourse's edit history, so posts
whose only change is invisible to readers are not written back. By
default that means carriage-return stripping on its own.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence

DEFAULT_INSIGNIFICANT_RULES = frozenset({"rmCRs"})


def should_persist(
    fired_rules: Sequence[str],
    insignificant: Collection[str] = DEFAULT_INSIGNIFICANT_RULES,
) -> bool:
    """Decide whether a post's rewritten content should be saved.

    True when two or more rules fired, or exactly one fired and it is
    not in ``insignificant``.

    >>> should_persist(["rmCRs"])
    False
    >>> should_persist(["rmCRs", "HRs"])
    True
    """
    if len(fired_rules) >= 2:
        return True
    if len(fired_rules) == 1:
        return fired_rules[0] not in insignificant
    return False
