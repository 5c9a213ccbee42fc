"""
shipyard.infrastructure.gate - Operator Checkpoints
=====================================================

Some steps must not start until a person says so: kicking off a
thirty-minute infrastructure deploy, or continuing after the operator has
funded an account by hand. The InteractiveGate prints a prompt and blocks
the pipeline until a single key is pressed.

There is no timeout. An unattended deploy waits at the gate indefinitely.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

import click
import structlog


logger = structlog.get_logger()


def _read_keypress() -> str:
    """Read one raw keypress without waiting for Enter."""
    return click.getchar()


class InteractiveGate:
    """Blocks until the operator presses a key.

    Args:
        reader: Callable that blocks until one key is pressed and returns
            it. Defaults to a raw-terminal read via ``click.getchar``.
            Tests pass a stub.
    """

    def __init__(self, reader: Optional[Callable[[], str]] = None) -> None:
        self._reader = reader or _read_keypress
        self._logger = logger.bind(component="interactive_gate")

    async def acknowledge(self, prompt: str) -> None:
        """Show ``prompt`` and wait for exactly one keypress.

        The blocking read runs on a worker thread so the event loop stays
        responsive; no pipeline work proceeds until it returns.

        Raises:
            KeyboardInterrupt: If the operator presses Ctrl-C.
        """
        click.secho(prompt, fg="green", bold=True)
        self._logger.info("gate_waiting")
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._reader)
        self._logger.info("gate_acknowledged")
