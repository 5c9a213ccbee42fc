"""
shipyard.orchestration.progress - Operator Progress Banners
=============================================================

Human-facing output for the person attending the deploy. Structured logs
go to stderr through structlog; these banners go to stdout between the
mirrored output of the external tools, so the operator can see where one
step ends and the next begins.
"""

from __future__ import annotations

import shutil

import click

from shipyard.core.models import StepDefinition


class ProgressReporter:
    """Prints step banners to stdout.

    Args:
        quiet: Suppress all output (tests, JSON-only runs).
    """

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet

    def _banner(self, text: str) -> None:
        if not self.quiet:
            click.secho(text, bg="green", fg="white", bold=True)

    def step_started(self, step: StepDefinition) -> None:
        width = shutil.get_terminal_size().columns
        self._banner(f"⌛ {step.label} \n{'-' * width}")

    def step_completed(self, step: StepDefinition) -> None:
        self._banner(f"🙌 {step.label} Complete ")

    def step_skipped(self, step: StepDefinition) -> None:
        if not self.quiet:
            click.echo(f"Skipping {step.name} since it has already been completed")
