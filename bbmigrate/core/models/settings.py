"""
Settings model — the validated contents of bbmigrate.yml.

Everything the core needs to know about the run that isn't a post:
where the forum lives, how to authenticate, and the policy knobs
for the rewrite pipeline and the warning pass.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_ALIASES = {"Gary_Isaac_Wolf": "Agaricus"}
DEFAULT_HTML_ALLOWLIST = ["a", "kbd", "img"]
DEFAULT_LEGACY_DOMAIN = "forum.quantifiedself.com"
DEFAULT_EDIT_REASON_PREFIX = "Fix formatting post-migration: "
DEFAULT_PAGE_SIZE = 100


class ForumSettings(BaseModel):
    """Connection details for the destination forum."""

    url: str
    api_key: str = ""
    api_username: str = "system"
    timeout: float = 30.0

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")


class Settings(BaseModel):
    """Root configuration — loaded from bbmigrate.yml."""

    forum: ForumSettings

    # Rewrite pipeline
    quote_map: str | None = None
    aliases: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_ALIASES))

    # Warning pass
    legacy_domain: str = DEFAULT_LEGACY_DOMAIN
    html_allowlist: list[str] = Field(default_factory=lambda: list(DEFAULT_HTML_ALLOWLIST))

    # Persistence policy
    dry_run: bool = False
    insignificant_rules: list[str] = Field(default_factory=lambda: ["rmCRs"])
    edit_reason_prefix: str = DEFAULT_EDIT_REASON_PREFIX
    audit_log: str | None = None

    # User purge
    purge_page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)
