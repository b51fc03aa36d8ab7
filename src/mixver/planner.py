"""Builds base upgrade plans for mutators to work on.

The planner is deliberately simple: start the cluster, then for every
consecutive pair of versions restart each node on the new binary in a
random order and let the cluster finalize. Each step's context is the
topology at the moment the step runs, so a restart step still sees the
node on its old version.
"""

from __future__ import annotations

import logging
import random

from mixver.core.context import Context, Stage
from mixver.core.plan import UpgradePlan, UpgradeStage
from mixver.core.steps import (
    AllowUpgradeStep,
    PlanStep,
    PreserveDowngradeOptionStep,
    RestartWithNewBinaryStep,
    StartStep,
    StepImpl,
    WaitForStableClusterVersionStep,
)
from mixver.errors import PlanConfigError
from mixver.versions import Version

logger = logging.getLogger(__name__)

DEFAULT_NODES = 4


class UpgradePlanner:
    """Generates an UpgradePlan for a version path and a set of nodes.

    Attributes:
        versions: Release path, oldest first. At least two entries.
        nodes: Node ids taking part in the test.

    Example:
        >>> planner = UpgradePlanner(parse_versions(["v23.2.7", "v24.1.3"]), [1, 2, 3])
        >>> plan = planner.plan(random.Random(42))
        >>> print(plan.pretty_print())
    """

    def __init__(self, versions: list[Version], nodes: list[int] | None = None) -> None:
        nodes = list(range(1, DEFAULT_NODES + 1)) if nodes is None else list(nodes)

        if len(versions) < 2:
            raise PlanConfigError(
                message="An upgrade plan needs at least two versions",
                field="versions",
                value=[str(v) for v in versions],
            )
        for older, newer in zip(versions, versions[1:]):
            if not newer > older:
                raise PlanConfigError(
                    message=f"Versions must be strictly increasing: {older} then {newer}",
                    field="versions",
                    value=[str(v) for v in versions],
                )
        if not nodes:
            raise PlanConfigError(message="An upgrade plan needs at least one node", field="nodes", value=nodes)
        if len(set(nodes)) != len(nodes):
            raise PlanConfigError(message="Node ids must be unique", field="nodes", value=nodes)

        self.versions = list(versions)
        self.nodes = sorted(nodes)
        self._next_id = 1

    def _step(self, context: Context, impl: StepImpl) -> PlanStep:
        step = PlanStep(id=self._next_id, context=context, impl=impl)
        self._next_id += 1
        return step

    def plan(self, rng: random.Random) -> UpgradePlan:
        """Build the plan; node restart order is drawn from ``rng``."""
        self._next_id = 1
        initial = self.versions[0]
        context = Context.create({n: initial for n in self.nodes}, Stage.CLUSTER_SETUP)

        setup = (
            self._step(context, StartStep(initial)),
            self._step(context, WaitForStableClusterVersionStep(initial)),
        )

        upgrades: list[UpgradeStage] = []
        for from_version, to_version in zip(self.versions, self.versions[1:]):
            context = Context.create(
                {n: from_version for n in self.nodes},
                Stage.UPGRADING,
                from_version=from_version,
                to_version=to_version,
            )
            steps = [self._step(context, PreserveDowngradeOptionStep())]

            for node in rng.sample(self.nodes, len(self.nodes)):
                steps.append(self._step(context, RestartWithNewBinaryStep(node, to_version)))
                context = context.with_node_version(node, to_version)

            context = context.with_stage(Stage.FINALIZING)
            steps.append(self._step(context, AllowUpgradeStep()))
            steps.append(self._step(context, WaitForStableClusterVersionStep(to_version)))
            upgrades.append(UpgradeStage(from_version, to_version, tuple(steps)))

        plan = UpgradePlan(initial_version=initial, setup=setup, upgrades=tuple(upgrades))
        logger.debug(f"Planned {len(upgrades)} upgrade(s) across {len(self.nodes)} node(s): {plan.step_count} steps")
        return plan
