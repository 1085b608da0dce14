from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from .plan import InstallContext, MountState

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single forward transition of the install state machine."""

    step_id: str
    reaches: MountState

    def run(self, ctx: InstallContext) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]
    state: MountState


def run_pipeline(*, ctx: InstallContext, steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order; the first failure stops the pipeline and propagates."""

    ran: List[str] = []

    for step in steps:
        if step.reaches <= ctx.state:
            raise RuntimeError(f"Step {step.step_id} would move state backwards from {ctx.state.name}")
        logger.info("Running step %s", step.step_id)
        step.run(ctx)
        ctx.state = step.reaches
        ran.append(step.step_id)

    return PipelineResult(ran_steps=ran, state=ctx.state)
