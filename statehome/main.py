"""CLI entry point for the state backend.

Commands:
    - env: Print the resolved Cloudflare environment
    - bootstrap: Make sure the state bucket exists
    - passphrase get|set: Read or store the secrets passphrase of an app stage
    - blob get|put|rm: Raw access to state blobs

Example::

    $ statehome bootstrap
    $ statehome passphrase get my-app production
    $ statehome blob get app my-app production --output state.json
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
import structlog
from pydantic import ValidationError

from statehome.config.settings import HomeSettings
from statehome.exceptions import ConfigurationError, CredentialError, StateHomeError
from statehome.providers.base import Home
from statehome.providers.factory import create_home_provider
from statehome.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _load_settings(config: str | None) -> HomeSettings:
    if config is not None:
        return HomeSettings.from_yaml(config)

    try:
        return HomeSettings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid STATEHOME_* environment settings: {e}") from e


def _fail(error: StateHomeError) -> None:
    click.echo(click.style(f"Error: {error.message}", fg="red"), err=True)
    if isinstance(error, CredentialError) and error.suggestion:
        click.echo(click.style(f"Suggestion: {error.suggestion}", fg="yellow"), err=True)
    log.debug("command_failed", error=str(error), exc_info=True)
    sys.exit(1)


def _mask(value: str) -> str:
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}...{value[-4:]}"


def _run(ctx: click.Context, action: Callable[[Any], None], bootstrap: bool = True) -> None:
    """Build the configured provider, run ``action`` with it, and map errors to exit codes."""
    settings: HomeSettings = ctx.obj["settings"]
    try:
        provider = create_home_provider(settings.home, settings)
    except ValueError as e:
        _fail(ConfigurationError(str(e)))
        return

    try:
        provider.init(settings.provider_overrides(settings.home))
        action(provider.as_home() if bootstrap else provider)
    except StateHomeError as e:
        _fail(e)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(click.style(f"Unexpected error: {e}", fg="red"), err=True)
        log.error("command_unexpected_error", exc_info=True)
        sys.exit(1)
    finally:
        provider.close()


@click.group()
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to YAML settings file (defaults to STATEHOME_* environment variables)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (overrides settings)",
)
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """statehome: Cloudflare R2 state backend."""
    try:
        settings = _load_settings(config)
    except ConfigurationError as e:
        configure_logging(log_level or "INFO")
        _fail(e)
        return

    configure_logging(log_level or settings.log_level)
    ctx.obj = {"settings": settings}


@cli.command(name="env")
@click.option("--show-values", is_flag=True, help="Show full credential values (default: masked)")
@click.pass_context
def env_command(ctx: click.Context, show_values: bool) -> None:
    """Print the resolved Cloudflare environment as KEY=VALUE lines."""

    def action(provider: Home) -> None:
        for name, value in sorted(provider.env().items()):
            if not show_values and not name.endswith("_ACCOUNT_ID"):
                value = _mask(value)
            click.echo(f"{name}={value}")

    _run(ctx, action, bootstrap=False)


@cli.command(name="bootstrap")
@click.pass_context
def bootstrap_command(ctx: click.Context) -> None:
    """Make sure the state bucket exists."""

    def action(provider: Any) -> None:
        record = provider.bootstrap
        status = "created" if record.created else "found"
        click.echo(click.style(f"State bucket {record.bucket} {status}", fg="green"))

    _run(ctx, action)


@cli.group(name="passphrase")
def passphrase_group() -> None:
    """Read or store the secrets passphrase of an app stage."""
    pass


@passphrase_group.command(name="get")
@click.argument("app")
@click.argument("stage")
@click.pass_context
def get_passphrase(ctx: click.Context, app: str, stage: str) -> None:
    """Print the passphrase of APP/STAGE; exits 1 if none is stored."""

    def action(home: Home) -> None:
        passphrase = home.lookup_passphrase(app, stage)
        if passphrase is None:
            click.echo(click.style(f"No passphrase stored for {app}/{stage}", fg="yellow"), err=True)
            sys.exit(1)
        click.echo(passphrase)

    _run(ctx, action)


@passphrase_group.command(name="set")
@click.argument("app")
@click.argument("stage")
@click.option(
    "--value",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Passphrase (will prompt if not provided)",
)
@click.pass_context
def set_passphrase(ctx: click.Context, app: str, stage: str, value: str) -> None:
    """Store the passphrase of APP/STAGE."""

    def action(home: Home) -> None:
        home.set_passphrase(app, stage, value)
        click.echo(click.style("Passphrase stored successfully", fg="green"))

    _run(ctx, action)


@cli.group(name="blob")
def blob_group() -> None:
    """Raw access to state blobs addressed by KIND APP STAGE."""
    pass


@blob_group.command(name="get")
@click.argument("kind")
@click.argument("app")
@click.argument("stage")
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), help="Write to file instead of stdout")
@click.pass_context
def get_blob(ctx: click.Context, kind: str, app: str, stage: str, output: Path | None) -> None:
    """Download a blob; exits 1 if it does not exist."""

    def action(home: Home) -> None:
        data = home.get(kind, app, stage)
        if data is None:
            click.echo(click.style(f"No blob at {kind}/{app}/{stage}", fg="yellow"), err=True)
            sys.exit(1)
        if output is not None:
            output.write_bytes(data)
        else:
            click.echo(data, nl=False)

    _run(ctx, action)


@blob_group.command(name="put")
@click.argument("kind")
@click.argument("app")
@click.argument("stage")
@click.option("--input", "input_file", type=click.File("rb"), default="-", help="File to upload (default: stdin)")
@click.pass_context
def put_blob(ctx: click.Context, kind: str, app: str, stage: str, input_file: Any) -> None:
    """Upload a blob, replacing any existing content."""
    data = input_file.read()

    def action(home: Home) -> None:
        home.put(kind, app, stage, data)
        click.echo(click.style(f"Stored {len(data)} bytes at {kind}/{app}/{stage}", fg="green"), err=True)

    _run(ctx, action)


@blob_group.command(name="rm")
@click.argument("kind")
@click.argument("app")
@click.argument("stage")
@click.pass_context
def remove_blob(ctx: click.Context, kind: str, app: str, stage: str) -> None:
    """Delete a blob."""

    def action(home: Home) -> None:
        home.remove(kind, app, stage)
        click.echo(click.style(f"Removed {kind}/{app}/{stage}", fg="green"), err=True)

    _run(ctx, action)


if __name__ == "__main__":
    cli()
