"""Shipyard CLI - deploy, status and reset commands for the NFT marketplace."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

import click
import structlog

from shipyard import __version__
from shipyard.core.config import ShipyardConfig, load_config
from shipyard.core.exceptions import ProcessFailedError, ShipyardError
from shipyard.core.log_setup import configure_logging
from shipyard.core.models import PipelineReport
from shipyard.facade import Shipyard


logger = structlog.get_logger()

# Shell convention for "terminated by SIGINT".
EXIT_INTERRUPTED = 130
STDERR_TAIL_LINES = 20

SUCCESS_MESSAGE = """
Success!

Your Simple NFT Marketplace has now been deployed and the UI can be launched
by running the following command:

npm run serve --prefix marketplace

To mint and send your first NFT, you can start by creating an account on the UI
as listed in the docs starting from here:

https://github.com/aws-samples/simple-nft-marketplace/blob/main/docs/en/DOCS_04_FRONTEND.md#create-an-account
"""

# Settings shown by `status`. The private key is deliberately absent.
STATUS_FIELDS = (
    ("address", "address"),
    ("amb_endpoint", "ambEndpoint"),
    ("region", "region"),
    ("contract_address", "contractAddress"),
    ("user_pool_id", "userPoolId"),
    ("user_pool_client_id", "userPoolClientId"),
    ("nft_api_endpoint", "nftApiEndpoint"),
)


def _tail(text: str, lines: int = STDERR_TAIL_LINES) -> str:
    return "\n".join(text.rstrip().splitlines()[-lines:])


def _report_failure(error: BaseException) -> None:
    """Print a failed deploy to stderr."""
    if isinstance(error, ShipyardError):
        click.secho(f"[{error.error_code}] {error.message}", fg="red", bold=True, err=True)
        if isinstance(error, ProcessFailedError) and error.stderr.strip():
            click.echo(_tail(error.stderr), err=True)
    else:
        click.secho(f"[{type(error).__name__}] {error}", fg="red", bold=True, err=True)
    click.echo(
        "Completed steps are saved; run `shipyard deploy` again to resume.",
        err=True,
    )


def _print_summary(report: PipelineReport) -> None:
    if report.skipped:
        click.echo(f"Resumed: skipped {', '.join(report.skipped)}")
    click.secho(SUCCESS_MESSAGE, fg="green")


# =============================================================================
# Command group
# =============================================================================
@click.group()
@click.version_option(version=__version__, prog_name="shipyard")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML configuration file (default: ./shipyard.yaml if present).",
)
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root containing contract/, provision/ and marketplace/.",
)
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR.")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Structured log renderer.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    root: Optional[Path],
    log_level: Optional[str],
    log_format: Optional[str],
) -> None:
    """Deploy the Simple NFT Marketplace, resuming after completed steps."""
    overrides: dict[str, Any] = {}
    if log_level:
        overrides["log_level"] = log_level
    if log_format:
        overrides["log_format"] = log_format

    try:
        config = load_config(config_path, **overrides)
    except FileNotFoundError as e:
        raise click.ClickException(str(e)) from e
    except ShipyardError as e:
        raise click.ClickException(f"[{e.error_code}] {e.message}") from e

    if root is not None:
        config.paths = config.paths.model_copy(update={"root": root})

    configure_logging(level=config.log_level, fmt=config.log_format)
    ctx.obj = config


def _shipyard(ctx: click.Context) -> Shipyard:
    config: ShipyardConfig = ctx.obj
    return Shipyard(config)


# =============================================================================
# Commands
# =============================================================================
@cli.command()
@click.pass_context
def deploy(ctx: click.Context) -> None:
    """Run the deployment pipeline."""
    shipyard = _shipyard(ctx)
    try:
        report = asyncio.run(shipyard.deploy())
    except KeyboardInterrupt:
        click.echo("\nInterrupted. Run `shipyard deploy` again to resume.", err=True)
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        logger.error(
            "deploy_failed",
            error=str(e),
            error_type=type(e).__name__,
            failed_step=shipyard.last_report.failed_step
            if shipyard.last_report else None,
        )
        _report_failure(e)
        sys.exit(1)
    _print_summary(report)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show which steps are done and what has been recorded."""
    shipyard = _shipyard(ctx)
    click.echo(f"Settings: {shipyard.config.paths.settings_path}")

    steps = asyncio.run(shipyard.status())
    for step, done in steps:
        if not step.run_once:
            state = "always-run"
        else:
            state = "done" if done else "pending"
        click.echo(f"  {state:<11} {step.name}")

    settings = asyncio.run(shipyard.settings())
    recorded = [
        (key, getattr(settings, attr))
        for attr, key in STATUS_FIELDS
        if getattr(settings, attr) is not None
    ]
    if recorded:
        click.echo("Recorded values:")
        for key, value in recorded:
            click.echo(f"  {key}: {value}")
    if settings.private_key:
        click.echo("  privateKey: (hidden)")


@cli.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def reset(ctx: click.Context, yes: bool) -> None:
    """Delete the settings document so the next deploy starts over.

    Deployed cloud resources are not touched.
    """
    shipyard = _shipyard(ctx)
    path = shipyard.config.paths.settings_path
    if not yes:
        click.confirm(
            f"Delete {path}? The deploy account's private key is stored there",
            abort=True,
        )
    if asyncio.run(shipyard.reset()):
        click.echo(f"Deleted {path}")
    else:
        click.echo(f"Nothing to reset: {path} does not exist")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
