"""
shipyard.infrastructure.process_runner - External Command Execution
=====================================================================

Runs the external tools the deploy steps depend on (npm, npx hardhat,
npx cdk, node scripts) and captures their output for value extraction.

Behavior:
    - Output of both streams is mirrored live to the operator's terminal
      AND buffered, so long-running tools (a CDK deploy can take half an
      hour) stay observable while their stdout is still available to
      OutputExtractor afterwards.
    - The environment overlay is additive: overlay entries win, every
      other ambient variable (PATH, HOME, AWS_*) passes through.
    - There is no timeout. Cancellation is the operator's Ctrl-C.
    - A non-zero exit raises ProcessFailedError with the captured streams.

Usage:
    >>> runner = ProcessRunner()
    >>> result = await runner.run(
    ...     "npx hardhat account",
    ...     cwd=Path("contract"),
    ...     env={"AMB_HTTP_ENDPOINT": endpoint},
    ... )
    >>> result.stdout
"""

from __future__ import annotations

import asyncio
import codecs
import os
import shlex
import sys
import time
from pathlib import Path
from typing import Mapping, Optional, Sequence, TextIO, Union

import structlog

from shipyard.core.exceptions import ProcessFailedError
from shipyard.core.models import ProcessResult


logger = structlog.get_logger()

# Exit status reported when the program could not be started at all,
# matching what a shell reports for "command not found".
COMMAND_NOT_FOUND = 127

_CHUNK_SIZE = 4096

Command = Union[str, Sequence[str]]


class ProcessRunner:
    """Async runner for external commands.

    Attributes:
        stdout: Where the child's stdout is mirrored. Defaults to sys.stdout
            at call time (so pytest's capsys and CliRunner both see it).
        stderr: Where the child's stderr is mirrored. Defaults to sys.stderr.
        mirror: Set False to capture without echoing.
    """

    def __init__(
        self,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        mirror: bool = True,
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.mirror = mirror
        self._logger = logger.bind(component="process_runner")

    async def run(
        self,
        command: Command,
        *,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, Optional[str]]] = None,
    ) -> ProcessResult:
        """Run ``command`` to completion.

        Args:
            command: A command line (split with shell quoting rules; no shell
                is spawned) or an argv sequence.
            cwd: Working directory. Defaults to the current directory.
            env: Environment overlay. Entries whose value is None are
                ignored rather than unsetting the ambient variable.

        Returns:
            The ProcessResult of a successful (exit code 0) run.

        Raises:
            ProcessFailedError: If the command exits non-zero or cannot be
                started.
        """
        argv = shlex.split(command) if isinstance(command, str) else list(command)
        if not argv:
            raise ValueError("Empty command")

        overlay = {k: str(v) for k, v in (env or {}).items() if v is not None}
        merged_env = {**os.environ, **overlay}

        # Overlay values may be credentials: only the names are logged.
        self._logger.info(
            "process_starting",
            command=argv,
            cwd=str(cwd) if cwd else None,
            env_overlay=sorted(overlay),
        )
        started = time.monotonic()

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self._logger.error("process_not_started", command=argv, error=str(e))
            raise ProcessFailedError(
                command=argv,
                exit_code=COMMAND_NOT_FOUND,
                stderr=str(e),
                message=f"Unable to start {argv[0]}: {e}",
            ) from e

        stdout_text, stderr_text = await asyncio.gather(
            self._drain(proc.stdout, self.stdout or sys.stdout),
            self._drain(proc.stderr, self.stderr or sys.stderr),
        )
        exit_code = await proc.wait()

        result = ProcessResult(
            command=argv,
            exit_code=exit_code,
            stdout=stdout_text,
            stderr=stderr_text,
            duration_seconds=time.monotonic() - started,
        )
        self._logger.info(
            "process_finished",
            command=argv,
            exit_code=exit_code,
            duration_seconds=round(result.duration_seconds, 3),
        )

        if not result.succeeded:
            raise ProcessFailedError(
                command=argv,
                exit_code=exit_code,
                stdout=stdout_text,
                stderr=stderr_text,
            )
        return result

    async def _drain(
        self,
        stream: Optional[asyncio.StreamReader],
        sink: TextIO,
    ) -> str:
        """Copy ``stream`` to ``sink`` chunk by chunk and return all of it.

        Chunks rather than lines, so progress output that rewrites a line
        with carriage returns shows up as it happens.
        """
        if stream is None:
            return ""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        parts: list[str] = []
        while True:
            chunk = await stream.read(_CHUNK_SIZE)
            text = decoder.decode(chunk, final=not chunk)
            if text:
                parts.append(text)
                if self.mirror:
                    sink.write(text)
                    sink.flush()
            if not chunk:
                break
        return "".join(parts)
