"""
Custom Pipeline Example: Resumable Steps Without the Marketplace
=================================================================

This example builds a three-step pipeline from scratch with StepRegistry
and runs it twice against the same JSON settings file. The second run
skips the RUN_ONCE steps and only repeats the ALWAYS_RUN one.

This is useful for:
    - Seeing how completion markers are recorded
    - Trying out requires/produces validation
    - Reusing the engine for a different deployment

Usage:
    python examples/custom_pipeline.py
"""

from __future__ import annotations

import asyncio
import json
import tempfile
from pathlib import Path

from shipyard.core.enums import StepKind
from shipyard.orchestration.context import StepContext
from shipyard.orchestration.pipeline import Pipeline
from shipyard.orchestration.settings_store import JsonFileSettingsStore
from shipyard.orchestration.step_registry import StepRegistry


def build_registry() -> StepRegistry:
    registry = StepRegistry()

    @registry.step("provisionBucket", title="Provision Bucket", produces={"bucketName"})
    async def provision_bucket(ctx: StepContext) -> dict:
        # Pretend this was expensive and must not be repeated
        return {"bucketName": "shipyard-demo-bucket"}

    @registry.step(
        "uploadAssets",
        title="Upload Assets",
        requires={"bucketName"},
        produces={"assetCount"},
    )
    async def upload_assets(ctx: StepContext) -> dict:
        bucket = await ctx.require("bucketName")
        print(f"uploading to {bucket}")
        return {"assetCount": 3}

    @registry.step(
        "printSummary",
        kind=StepKind.ALWAYS_RUN,
        title="Summary",
        requires={"bucketName", "assetCount"},
    )
    async def print_summary(ctx: StepContext) -> None:
        values = await ctx.require_all("bucketName", "assetCount")
        print(f"{values['assetCount']} assets in {values['bucketName']}")

    return registry


async def main() -> None:
    """Run the pipeline twice and show what was persisted."""
    with tempfile.TemporaryDirectory() as workdir:
        settings = Path(workdir) / "settings.json"
        registry = build_registry()

        for attempt in (1, 2):
            print(f"\n--- run {attempt} ---")
            pipeline = Pipeline(registry, JsonFileSettingsStore(settings))
            report = await pipeline.run()
            print(f"executed: {report.executed}")
            print(f"skipped:  {report.skipped}")

        print("\nSettings document:")
        print(json.dumps(json.loads(settings.read_text()), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
