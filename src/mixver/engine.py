"""Runs a set of mutators against a base plan."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field

from mixver.applier import apply_mutations
from mixver.core.mutation import Mutation
from mixver.core.plan import UpgradePlan
from mixver.mutators.base import Mutator

logger = logging.getLogger(__name__)


@dataclass
class AppliedMutator:
    """What one mutator contributed to the final plan."""

    name: str
    mutations: list[Mutation] = field(default_factory=list)


@dataclass
class MutationReport:
    """Outcome of MutationEngine.run().

    Attributes:
        base_plan: The plan the engine started from.
        plan: The plan after every selected mutator was applied.
        seed: Seed of the engine that produced this report.
        applied: Mutators that were selected, in the order they ran.
        skipped: Names of mutators whose probability roll failed.
    """

    base_plan: UpgradePlan
    plan: UpgradePlan
    seed: int | None = None
    applied: list[AppliedMutator] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def mutation_count(self) -> int:
        return sum(len(a.mutations) for a in self.applied)


class MutationEngine:
    """Selects mutators by probability and applies them one at a time.

    Each selected mutator sees the plan produced by the previous one, so
    mutation anchors always refer to steps that exist. The engine owns a
    single random.Random and is not thread-safe; use one engine per
    thread.

    Example:
        >>> engine = MutationEngine([PreserveDowngradeOptionRandomizer()], seed=42)
        >>> report = engine.run(plan)
        >>> print(report.plan.pretty_print())
    """

    def __init__(self, mutators: list[Mutator], seed: int | None = None) -> None:
        self.mutators = list(mutators)
        self.seed = seed if seed is not None else random.SystemRandom().randrange(2**63)
        self._rng = random.Random(self.seed)

    def run(self, plan: UpgradePlan, force: bool = False) -> MutationReport:
        """Mutate ``plan``.

        Args:
            plan: The base plan.
            force: Run every mutator regardless of its probability.
        """
        logger.info(f"Mutating plan of {plan.step_count} steps with {len(self.mutators)} mutator(s), seed={self.seed}")
        report = MutationReport(base_plan=plan, plan=plan, seed=self.seed)

        for mutator in self.mutators:
            if not force and self._rng.random() >= mutator.probability:
                report.skipped.append(mutator.name)
                continue

            mutations = mutator.generate(self._rng, report.plan)
            report.plan = apply_mutations(report.plan, mutations)
            report.applied.append(AppliedMutator(name=mutator.name, mutations=mutations))
            logger.info(f"Mutator {mutator.name} produced {len(mutations)} mutation(s)")

        return report
