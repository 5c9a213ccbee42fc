"""
Tests for shipyard.core.exceptions
====================================

These tests verify the error taxonomy: codes, messages, details and the
hierarchy the CLI relies on when it catches ShipyardError.
"""

import pytest

from shipyard.core.exceptions import (
    ConfigurationError,
    ExtractionError,
    MissingSettingError,
    PipelineDefinitionError,
    PipelineError,
    ProcessFailedError,
    SettingsReadError,
    SettingsWriteError,
    SettingsError,
    ShipyardError,
    StackOutputError,
    StepContractError,
)


class TestShipyardError:
    """Tests for the base exception."""

    def test_defaults(self) -> None:
        error = ShipyardError("something broke")
        assert str(error) == "something broke"
        assert error.error_code == "UNKNOWN_ERROR"
        assert error.details == {}

    def test_to_dict(self) -> None:
        error = ShipyardError("bad", error_code="BAD", details={"k": 1})
        assert error.to_dict() == {
            "error_type": "ShipyardError",
            "message": "bad",
            "error_code": "BAD",
            "details": {"k": 1},
        }

    def test_repr_includes_code(self) -> None:
        assert "BAD" in repr(ShipyardError("bad", error_code="BAD"))

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("x"),
            SettingsReadError("x"),
            SettingsWriteError("x"),
            ProcessFailedError(["x"], 1),
            ExtractionError("thing", "x"),
            MissingSettingError(["x"]),
            StackOutputError("x", path="p"),
            PipelineDefinitionError("x"),
            StepContractError("x"),
        ],
    )
    def test_all_errors_are_shipyard_errors(self, error: ShipyardError) -> None:
        assert isinstance(error, ShipyardError)


class TestSpecificErrors:
    """Tests for codes and attributes of the concrete errors."""

    def test_settings_errors(self) -> None:
        assert isinstance(SettingsReadError("x"), SettingsError)
        assert SettingsWriteError("x", path="s.json").details["path"] == "s.json"

    def test_process_failed(self) -> None:
        error = ProcessFailedError(
            command=["npx", "hardhat", "compile"],
            exit_code=2,
            stdout="out",
            stderr="err",
        )
        assert error.error_code == "PROCESS_FAILED"
        assert error.exit_code == 2
        assert error.stderr == "err"
        assert "npx hardhat compile" in error.message
        assert error.details == {"command": ["npx", "hardhat", "compile"], "exit_code": 2}

    @pytest.mark.parametrize(
        "kind, code",
        [
            ("ethereum address", "UNABLE_TO_PARSE_ETHEREUM_ADDRESS"),
            ("ethereum private key", "UNABLE_TO_PARSE_ETHEREUM_PRIVATE_KEY"),
            ("contract address", "UNABLE_TO_PARSE_CONTRACT_ADDRESS"),
        ],
    )
    def test_extraction_codes(self, kind: str, code: str) -> None:
        error = ExtractionError(kind, pattern="0x")
        assert error.error_code == code
        assert error.message == f"Unable to parse {kind}"

    def test_missing_setting(self) -> None:
        error = MissingSettingError(["region", "userPoolId"], step_name="writeFrontendConfig")
        assert error.error_code == "MISSING_SETTING"
        assert error.keys == ["region", "userPoolId"]
        assert "region, userPoolId" in error.message
        assert "writeFrontendConfig" in error.message

    def test_stack_output(self) -> None:
        error = StackOutputError("gone", path="out.json", stack="S", key="K")
        assert error.details == {"path": "out.json", "stack": "S", "key": "K"}

    def test_pipeline_errors(self) -> None:
        assert PipelineDefinitionError("x").error_code == "INVALID_PIPELINE"
        contract = StepContractError("x", step_name="a")
        assert isinstance(contract, PipelineError)
        assert contract.error_code == "STEP_CONTRACT_VIOLATION"
        assert contract.step_name == "a"
