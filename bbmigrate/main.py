"""
bbmigrate — CLI entrypoint.

Usage:
    python -m bbmigrate.main --help
    python -m bbmigrate.main fix --dry-run
    python -m bbmigrate.main preview post.txt
    python -m bbmigrate.main purge-users spammers.txt
    python -m bbmigrate.main config check
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from bbmigrate import __version__
from bbmigrate.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="bbmigrate")
@click.option("--verbose", "-v", is_flag=True, help="Log every post, not just changes.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to bbmigrate.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """bbmigrate — clean up BBCode left behind by a MyBB → Discourse migration."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(resolve_level(verbose=debug or verbose, quiet=quiet))


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Report changes without saving them (default: from config).")
@click.option("--from", "first_id", type=int, default=1, show_default=True, help="First post id.")
@click.option("--to", "last_id", type=int, default=None, help="Last post id (default: highest).")
@click.option("--post", "post_id", type=int, default=None, help="Process a single post id.")
@click.pass_context
def fix(
    ctx: click.Context,
    as_json: bool,
    dry_run: bool,
    first_id: int,
    last_id: int | None,
    post_id: int | None,
) -> None:
    """Rewrite legacy BBCode in every post and report residual problems.

    Examples:

        bbmigrate fix --dry-run

        bbmigrate fix --from 5000

        bbmigrate fix --post 77
    """
    from bbmigrate.core.use_cases.fix_posts import run_fix

    if post_id is not None:
        first_id = last_id = post_id

    result = run_fix(
        config_path=ctx.obj.get("config_path"),
        dry_run=True if dry_run else None,
        first_id=first_id,
        last_id=last_id,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    summary = result.summary
    assert summary is not None

    mode_label = "[dry-run] " if summary.dry_run else ""
    click.echo()
    click.secho(
        f"🧹 {mode_label}Posts {summary.first_id}..{summary.last_id}",
        fg="cyan",
        bold=True,
    )
    if not result.quote_map_available:
        click.secho("   ⚠️  Quote map unavailable — [quote] rule was skipped", fg="yellow")

    if summary.dry_run:
        click.secho(f"   Would update: {summary.would_update}", fg="green", bold=True)
    else:
        click.secho(f"   Total posts updated: {summary.updated}", fg="green", bold=True)
    click.echo(
        f"   Processed: {summary.processed} | Unchanged: {summary.unchanged} | "
        f"Not significant: {summary.insignificant} | Deleted: {summary.skipped_deleted}"
    )
    click.echo(f"   Posts with warnings: {summary.warned_posts}")

    if summary.errors:
        click.secho(
            f"   Errors: {summary.fetch_errors} fetch, {summary.update_errors} update, "
            f"{summary.faults} unexpected",
            fg="red",
        )
        if ctx.obj.get("verbose"):
            click.echo(f"     ids: {', '.join(str(i) for i in summary.failed_ids)}")

    if summary.color_unused:
        click.echo()
        click.echo(
            "   No [color=...] tags were actually used. You can uninstall the "
            "bbcode-color plugin if you don't want to allow colors."
        )

    click.echo()


@cli.command()
@click.argument("source", type=click.File("rb"), default="-")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--quote-map",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Quote reference JSON (default: from config, if any).",
)
@click.pass_context
def preview(ctx: click.Context, source, as_json: bool, quote_map: str | None) -> None:
    """Run the rewrite rules on a local file (or stdin) and show the result."""
    from bbmigrate.core.config.loader import ConfigError, find_config_file, load_settings
    from bbmigrate.core.models.settings import ForumSettings, Settings
    from bbmigrate.core.services.post_processor import PostProcessor
    from bbmigrate.core.services.quote_refs import load_quote_table
    from bbmigrate.core.services.significance import should_persist

    config_path = ctx.obj.get("config_path") or find_config_file()
    settings = Settings(forum=ForumSettings(url="http://localhost"))
    if config_path is not None:
        try:
            settings = load_settings(config_path)
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red")
            sys.exit(1)

    table = load_quote_table(quote_map or settings.quote_map)
    processor = PostProcessor.from_settings(settings, table)

    try:
        raw = source.read().decode("utf-8")
    except UnicodeDecodeError as e:
        click.secho(f"❌ {source.name} is not valid UTF-8: {e}", fg="red")
        sys.exit(1)

    result = processor.process(raw)
    persist = should_persist(result.fired_rules, settings.insignificant_rules)

    if as_json:
        data = result.to_dict()
        data["persist"] = persist
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(result.text)
    click.echo()
    if result.fired_rules:
        click.secho(f"Rules fired: {', '.join(result.fired_rules)}", fg="cyan")
    else:
        click.secho("Rules fired: none", fg="cyan")
    for warning in result.warnings:
        click.secho(f"⚠️  {warning}", fg="yellow")
    click.secho(
        "Would save" if persist else "Would not save",
        fg="green" if persist else "white",
        bold=True,
    )


@cli.command("purge-users")
@click.argument("filters", type=click.File("r", encoding="utf-8"))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--page-size", type=int, default=None, help="Users per listing page.")
@click.confirmation_option(prompt="Delete and block every matching user?")
@click.pass_context
def purge_users(ctx: click.Context, filters, as_json: bool, page_size: int | None) -> None:
    """Delete and block users matching each line of FILTERS."""
    from bbmigrate.core.use_cases.purge_users import run_purge

    result = run_purge(
        filters.read(),
        config_path=ctx.obj.get("config_path"),
        page_size=page_size,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    summary = result.summary
    assert summary is not None

    click.echo()
    click.secho(f"🚫 Filters: {summary.filters}", fg="cyan", bold=True)
    click.secho(f"   Deleted: {summary.deleted}", fg="green", bold=True)
    if summary.errors:
        click.secho(f"   Errors: {summary.errors}", fg="red")
    click.echo()


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate bbmigrate.yml configuration."""
    from bbmigrate.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.settings is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Forum: {result.settings.forum.base_url}")
        click.echo(f"   Dry run: {'yes' if result.settings.dry_run else 'no'}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


if __name__ == "__main__":
    cli()
