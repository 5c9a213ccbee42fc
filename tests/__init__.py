"""
Shipyard Test Suite
===================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/           → Tests for shipyard.core (config, models, errors)
    ├── test_orchestration/  → Tests for shipyard.orchestration (store, registry, pipeline)
    ├── test_infrastructure/ → Tests for shipyard.infrastructure (processes, gate, files)
    ├── test_deploy/         → Tests for the marketplace step bodies
    ├── test_integration/    → End-to-end deploy, crash and resume
    ├── test_cli.py          → Command line through click's CliRunner
    ├── test_facade.py       → Shipyard facade
    └── conftest.py          → Shared fixtures and scripted fakes

Running Tests:
    pytest                            # Run all tests
    pytest tests/test_orchestration/  # Run only the engine tests
"""
