"""
shipyard.orchestration.step_registry - Ordered Step Registration
==================================================================

The StepRegistry holds the pipeline's steps in execution order. Order is
the only dependency mechanism: a step may read any key produced by a step
registered before it.

Because steps declare what they read (``requires``) and write
(``produces``), the registry can reject a broken ordering when the
pipeline is built, instead of letting it surface as a missing value
halfway through a thirty-minute deploy:

    registry = StepRegistry()

    @registry.step("createAccount", produces={"address", "privateKey"})
    async def create_account(ctx): ...

    @registry.step("fundAccount", kind=StepKind.ALWAYS_RUN, requires={"address"})
    async def fund_account(ctx): ...

    @registry.step("deployContract", requires={"contractAddress"})   # ✗ nothing
    async def deploy_contract(ctx): ...                               #   produces it
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, Optional

import structlog

from shipyard.core.enums import StepKind
from shipyard.core.exceptions import PipelineDefinitionError
from shipyard.core.models import StepBody, StepDefinition


logger = structlog.get_logger()


class StepRegistry:
    """Ordered, validated collection of StepDefinitions.

    Attributes:
        seed_keys: Keys assumed to be present before the first step runs
            (for pipelines that start from a pre-populated settings file).
    """

    def __init__(self, seed_keys: Iterable[str] = ()) -> None:
        self.seed_keys: frozenset[str] = frozenset(seed_keys)
        self._steps: list[StepDefinition] = []

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, step: StepDefinition) -> StepDefinition:
        """Append a step to the sequence after validating its contract.

        Args:
            step: The step to append.

        Returns:
            The same step, for chaining.

        Raises:
            PipelineDefinitionError: If the name is taken, a required key has
                no earlier producer, or a key collides with a marker name.
        """
        names = {s.name for s in self._steps}
        if step.name in names:
            raise PipelineDefinitionError(
                message=f"Duplicate step name: {step.name!r}",
                step_name=step.name,
            )

        available = self.available_keys
        if step.name in available:
            raise PipelineDefinitionError(
                message=f"Step name {step.name!r} collides with a settings key",
                step_name=step.name,
            )

        missing = sorted(step.requires - available)
        if missing:
            raise PipelineDefinitionError(
                message=(
                    f"Step {step.name!r} requires {', '.join(missing)} "
                    f"but no earlier step produces it"
                ),
                step_name=step.name,
                details={"missing": missing},
            )

        collisions = sorted((step.requires | step.produces) & (names | {step.name}))
        if collisions:
            raise PipelineDefinitionError(
                message=(
                    f"Step {step.name!r} uses completion marker key(s) "
                    f"{', '.join(collisions)} as settings"
                ),
                step_name=step.name,
                details={"collisions": collisions},
            )

        self._steps.append(step)
        logger.debug(
            "step_registered",
            component="step_registry",
            step=step.name,
            kind=step.kind.value,
            position=len(self._steps),
        )
        return step

    def step(
        self,
        name: str,
        *,
        kind: StepKind = StepKind.RUN_ONCE,
        requires: Iterable[str] = (),
        produces: Iterable[str] = (),
        title: str = "",
        description: str = "",
    ) -> Callable[[StepBody], StepBody]:
        """Decorator form of :meth:`register`.

        The decorated coroutine function is registered as the step body and
        returned unchanged.
        """

        def decorator(body: StepBody) -> StepBody:
            self.register(
                StepDefinition(
                    name=name,
                    kind=kind,
                    body=body,
                    requires=frozenset(requires),
                    produces=frozenset(produces),
                    title=title,
                    description=description,
                )
            )
            return body

        return decorator

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def available_keys(self) -> frozenset[str]:
        """Keys guaranteed to exist once every registered step has run."""
        produced: set[str] = set(self.seed_keys)
        for s in self._steps:
            produced |= s.produces
        return frozenset(produced)

    @property
    def steps(self) -> list[StepDefinition]:
        return list(self._steps)

    def get(self, name: str) -> Optional[StepDefinition]:
        for s in self._steps:
            if s.name == name:
                return s
        return None

    def __iter__(self) -> Iterator[StepDefinition]:
        return iter(list(self._steps))

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, name: object) -> bool:
        return any(s.name == name for s in self._steps)
