"""Moves the point where each upgrade is allowed to finalize."""

from __future__ import annotations

import logging
import random

from mixver.core.mutation import Mutation
from mixver.core.plan import UpgradePlan
from mixver.core.steps import AllowUpgradeStep, PlanStep, StepKind
from mixver.mutators.base import BaseMutator

logger = logging.getLogger(__name__)


class PreserveDowngradeOptionRandomizer(BaseMutator):
    """Re-randomizes when ``preserve_downgrade_option`` is reset.

    The base plan resets the option only after every node runs the new
    binary. This mutator removes each of those AllowUpgradeSteps and puts
    a fresh one in front of a random node restart of the same upgrade,
    so finalization may be allowed while the cluster is still mixed.

    All removals come first in the output, then all insertions, so the
    applier can process removals as one batch. The output normally holds
    two mutations per AllowUpgradeStep. The exception is an
    AllowUpgradeStep with no other step in the plan to anchor on: it
    stays where it is and contributes no mutations. A plan made only of
    AllowUpgradeSteps therefore yields ``[]``.

    An upgrade without restart steps anchors on the nearest other step
    after the removed one, else the nearest before it.
    """

    @property
    def name(self) -> str:
        return "preserve_downgrade_option_randomizer"

    def generate(self, rng: random.Random, plan: UpgradePlan) -> list[Mutation]:
        removals: list[Mutation] = []
        insertions: list[Mutation] = []

        for step in plan.of_kind(StepKind.ALLOW_UPGRADE):
            anchor = self._pick_anchor(rng, plan, step)
            if anchor is None:
                logger.debug(f"No anchor to move allow-upgrade step {step.id}, leaving it in place")
                continue
            removals.append(Mutation.remove(step))
            insertions.append(Mutation.insert_before(anchor, AllowUpgradeStep()))

        logger.debug(f"{self.name}: moving {len(removals)} allow-upgrade step(s)")
        return removals + insertions

    def _pick_anchor(self, rng: random.Random, plan: UpgradePlan, step: PlanStep) -> PlanStep | None:
        stage = plan.stage_of(step)
        if stage is not None:
            restarts = stage.of_kind(StepKind.RESTART_WITH_NEW_BINARY)
            if restarts:
                return rng.choice(restarts)

        # Stage without restarts: stay as close to the old position as
        # possible, never anchoring on a step that is itself being removed.
        flat = plan.steps()
        idx = next(j for j, s in enumerate(flat) if s.id == step.id)
        for candidate in flat[idx + 1:]:
            if candidate.kind is not StepKind.ALLOW_UPGRADE:
                return candidate
        for candidate in reversed(flat[:idx]):
            if candidate.kind is not StepKind.ALLOW_UPGRADE:
                return candidate
        return None
