"""
Shared Test Fixtures for Shipyard
===================================

This module provides reusable pytest fixtures used across the entire
test suite. Fixtures are organized by layer:

    1. Configuration fixtures (rooted in tmp_path)
    2. Orchestration fixtures (settings stores, quiet reporter)
    3. Infrastructure fakes (ScriptedProcessRunner, StubGate)
    4. Marketplace fixtures (fully scripted tool output)
    5. Facade fixtures (Shipyard)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence, Union

import pytest

from shipyard.core.config import PathsConfig, ShipyardConfig
from shipyard.core.exceptions import ProcessFailedError
from shipyard.core.log_setup import configure_logging
from shipyard.core.models import ProcessResult
from shipyard.facade import Shipyard
from shipyard.infrastructure.credentials import AwsCredentials
from shipyard.orchestration.progress import ProgressReporter
from shipyard.orchestration.settings_store import (
    InMemorySettingsStore,
    JsonFileSettingsStore,
)


# =============================================================================
# Canned tool output
# =============================================================================
ACCOUNT_ADDRESS = "0x8ba1f109551bD432803012645Ac136ddd64DBA72"
ACCOUNT_PRIVATE_KEY = "0x" + "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
CONTRACT_ADDR = "0x5FbDB2315678afecb367f032d93F642f64180aa3"

ACCOUNT_STDOUT = f"Address: {ACCOUNT_ADDRESS}\nPrivate Key: {ACCOUNT_PRIVATE_KEY}\n"
DEPLOY_CONTRACT_STDOUT = f"Compiling...\nNFT contract deployed to: {CONTRACT_ADDR}\n"

NODE_STACK_OUTPUTS = {
    "AmbHttpEndpoint": "nd-abc123.ethereum.managedblockchain.us-east-1.amazonaws.com",
    "DeployRegion": "us-east-1",
}
API_STACK_OUTPUTS = {
    "UserPoolId": "us-east-1_Example1",
    "UserPoolClientId": "4exampleclientid",
    "NftApiEndpoint": "https://abc.execute-api.us-east-1.amazonaws.com/prod/",
}


# =============================================================================
# Infrastructure fakes
# =============================================================================
Effect = Callable[[list[str], Optional[Path], dict[str, Any]], None]


class RecordedCall:
    """One invocation seen by ScriptedProcessRunner."""

    def __init__(self, argv: list[str], cwd: Optional[Path], env: dict[str, Any]) -> None:
        self.argv = argv
        self.cwd = cwd
        self.env = env

    @property
    def line(self) -> str:
        return " ".join(self.argv)


class ScriptedProcessRunner:
    """Stands in for ProcessRunner without starting processes.

    Commands are matched by argv prefix; the most recently added matching
    rule wins, so a test can override one command of a scripted set.
    Unmatched commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[RecordedCall] = []
        self._rules: list[tuple[tuple[str, ...], dict[str, Any]]] = []

    def on(
        self,
        prefix: Sequence[str],
        *,
        stdout: str = "",
        exit_code: int = 0,
        stderr: str = "",
        effect: Optional[Effect] = None,
        times: Optional[int] = None,
    ) -> "ScriptedProcessRunner":
        self._rules.append(
            (
                tuple(prefix),
                {
                    "stdout": stdout,
                    "exit_code": exit_code,
                    "stderr": stderr,
                    "effect": effect,
                    "times": times,
                },
            )
        )
        return self

    def fail(self, prefix: Sequence[str], exit_code: int = 1, stderr: str = "boom", times: Optional[int] = None) -> "ScriptedProcessRunner":
        return self.on(prefix, exit_code=exit_code, stderr=stderr, times=times)

    async def run(
        self,
        command: Union[str, Sequence[str]],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, Any]] = None,
    ) -> ProcessResult:
        argv = command.split() if isinstance(command, str) else list(command)
        overlay = {k: v for k, v in (env or {}).items() if v is not None}
        self.calls.append(RecordedCall(argv, cwd, overlay))

        for prefix, rule in reversed(self._rules):
            if tuple(argv[: len(prefix)]) != prefix:
                continue
            if rule["times"] is not None:
                if rule["times"] <= 0:
                    continue
                rule["times"] -= 1
            if rule["effect"] is not None:
                rule["effect"](argv, cwd, overlay)
            if rule["exit_code"] != 0:
                raise ProcessFailedError(
                    command=argv,
                    exit_code=rule["exit_code"],
                    stdout=rule["stdout"],
                    stderr=rule["stderr"],
                )
            return ProcessResult(
                command=argv,
                exit_code=0,
                stdout=rule["stdout"],
                stderr=rule["stderr"],
            )
        return ProcessResult(command=argv, exit_code=0)

    def lines(self) -> list[str]:
        return [c.line for c in self.calls]

    def count(self, prefix: Sequence[str]) -> int:
        prefix = tuple(prefix)
        return sum(1 for c in self.calls if tuple(c.argv[: len(prefix)]) == prefix)


class StubGate:
    """InteractiveGate stand-in that records prompts and returns at once."""

    def __init__(self) -> None:
        self.prompts: list[str] = []

    async def acknowledge(self, prompt: str) -> None:
        self.prompts.append(prompt)


def write_stack_outputs(path: Path, stack: str, outputs: Mapping[str, Any]) -> None:
    """Merge one stack's outputs into a CDK outputs file, as cdk deploy does."""
    data: dict[str, Any] = {}
    if path.exists():
        data = json.loads(path.read_text())
    data[stack] = dict(outputs)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))


def script_marketplace(runner: ScriptedProcessRunner, config: ShipyardConfig) -> ScriptedProcessRunner:
    """Script every marketplace tool with successful, realistic output."""
    outputs_path = config.paths.stack_outputs_path

    def deploy_stack(argv: list[str], cwd: Optional[Path], env: dict[str, Any]) -> None:
        stack = argv[3]
        if stack == config.stacks.blockchain_node:
            write_stack_outputs(outputs_path, stack, NODE_STACK_OUTPUTS)
        elif stack == config.stacks.api:
            write_stack_outputs(outputs_path, stack, API_STACK_OUTPUTS)

    runner.on(["npx", "hardhat", "account"], stdout=ACCOUNT_STDOUT)
    runner.on(["npx", "cdk", "deploy"], effect=deploy_stack)
    runner.on(["npx", "hardhat", "run"], stdout=DEPLOY_CONTRACT_STDOUT)
    return runner


# =============================================================================
# Logging
# =============================================================================

@pytest.fixture(autouse=True)
def _logs_to_stderr() -> None:
    """Send structlog output to the (captured) stderr so stdout holds only banners."""
    configure_logging(level="DEBUG")


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config(tmp_path: Path) -> ShipyardConfig:
    """Shipyard configuration rooted in a temporary project directory."""
    return ShipyardConfig(paths=PathsConfig(root=tmp_path))


# =============================================================================
# Orchestration
# =============================================================================

@pytest.fixture
def memory_store() -> InMemorySettingsStore:
    """Fresh, empty InMemorySettingsStore."""
    return InMemorySettingsStore()


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "deploy-settings.json"


@pytest.fixture
def file_store(settings_path: Path) -> JsonFileSettingsStore:
    """JsonFileSettingsStore on a file that does not exist yet."""
    return JsonFileSettingsStore(settings_path)


@pytest.fixture
def reporter() -> ProgressReporter:
    """Reporter that prints nothing."""
    return ProgressReporter(quiet=True)


# =============================================================================
# Infrastructure fakes
# =============================================================================

@pytest.fixture
def runner() -> ScriptedProcessRunner:
    """Scripted runner with no rules: every command succeeds silently."""
    return ScriptedProcessRunner()


@pytest.fixture
def gate() -> StubGate:
    return StubGate()


@pytest.fixture
def credentials() -> AwsCredentials:
    return AwsCredentials(access_key_id="AKIDEXAMPLE", secret_access_key="secret-example")


# =============================================================================
# Marketplace
# =============================================================================

@pytest.fixture
def marketplace_runner(runner: ScriptedProcessRunner, config: ShipyardConfig) -> ScriptedProcessRunner:
    """Runner scripted with successful output for every marketplace tool."""
    return script_marketplace(runner, config)


# =============================================================================
# Facade
# =============================================================================

@pytest.fixture
def shipyard(config, file_store, marketplace_runner, gate, reporter, credentials) -> Shipyard:
    """Shipyard facade on a file store with every collaborator faked."""
    return Shipyard(
        config,
        store=file_store,
        runner=marketplace_runner,
        gate=gate,
        reporter=reporter,
        credentials=credentials,
    )
