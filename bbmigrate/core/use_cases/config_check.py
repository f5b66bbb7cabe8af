"""
Config check use case — validate bbmigrate.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bbmigrate.core.config.loader import ConfigError, find_config_file, load_settings
from bbmigrate.core.models.settings import Settings
from bbmigrate.core.services.rules import RULE_NAMES


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    settings: Settings | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "forum_url": self.settings.forum.base_url if self.settings else None,
            "dry_run": self.settings.dry_run if self.settings else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate configuration and report issues.

    Args:
        config_path: Optional explicit path to bbmigrate.yml.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        result.errors.append("No bbmigrate.yml found.")
        return result
    result.config_path = config_path

    try:
        settings = load_settings(config_path)
        result.settings = settings
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Semantic checks
    if not settings.forum.base_url.startswith(("http://", "https://")):
        result.errors.append(f"forum.url must be an http(s) URL: {settings.forum.url}")

    if not settings.forum.api_key:
        result.warnings.append(
            "No API key configured (forum.api_key or BBM_API_KEY). Requests will be rejected."
        )

    unknown = sorted(set(settings.insignificant_rules) - set(RULE_NAMES))
    if unknown:
        result.errors.append(
            f"Unknown rule names in insignificant_rules: {', '.join(unknown)} "
            f"(known: {', '.join(RULE_NAMES)})"
        )

    if settings.quote_map is None:
        result.warnings.append("No quote_map configured. [quote] attributions will not be rewritten.")
    elif not Path(settings.quote_map).is_file():
        result.warnings.append(
            f"quote_map not found: {settings.quote_map}. [quote] attributions will not be rewritten."
        )

    if not settings.html_allowlist:
        result.warnings.append("html_allowlist is empty. Every '<' will be reported.")

    result.valid = len(result.errors) == 0
    return result
