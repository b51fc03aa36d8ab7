"""Injects random changes to one cluster setting into a plan.

The sequence of changes is produced by a small state machine so that
every output is valid by construction:

    START ──SET(v)──▶ AFTER_SET(v) ──SET(w≠v)──▶ AFTER_SET(w)
                          │    ▲
                        RESET  └────SET(any)────┐
                          ▼                      │
                      AFTER_RESET ───────────────┘

- The first change is always a SET.
- A SET never repeats the value of the SET right before it.
- A RESET always follows a SET.
- With a minimum version, changes only land next to steps where at
  least one node already runs that version.

Some transition is always legal, so the only limit is the number of
steps that can host a change. With none the result is an empty list;
infeasible plans never raise.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mixver.core.context import Stage
from mixver.core.mutation import Mutation, MutationOp
from mixver.core.plan import UpgradePlan
from mixver.core.steps import ClusterSettingStep, PlanStep, ResetClusterSettingStep, SetClusterSettingStep
from mixver.errors import ErrorContext, MutatorConfigError, VersionParseError
from mixver.mutators.base import BaseMutator
from mixver.versions import Version

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHANGES = 3
DEFAULT_PROBABILITY = 0.3

ClusterSettingOption = Callable[["ClusterSettingMutator"], None]


def minimum_version(version: Version | str) -> ClusterSettingOption:
    """Only change the setting where some node runs ``version`` or newer."""

    def apply(mutator: ClusterSettingMutator) -> None:
        try:
            mutator.min_version = Version.coerce(version)
        except VersionParseError as e:
            raise MutatorConfigError(
                message=f"Invalid minimum version {version!r} for cluster setting {mutator.setting_name!r}",
                field="min_version",
                value=version,
                cause=e,
                context=ErrorContext(mutator_name=mutator.name),
            ) from e

    return apply


def max_changes(n: int) -> ClusterSettingOption:
    """Generate at most ``n`` changes to the setting."""

    def apply(mutator: ClusterSettingMutator) -> None:
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise MutatorConfigError(
                message=f"max_changes must be a positive integer, got {n!r}",
                field="max_changes",
                value=n,
                context=ErrorContext(mutator_name=mutator.name),
            )
        mutator.max_changes = n

    return apply


class _Phase(Enum):
    START = "start"
    AFTER_SET = "after_set"
    AFTER_RESET = "after_reset"


@dataclass(frozen=True)
class _State:
    phase: _Phase
    value: Any = None


_START = _State(_Phase.START)


class ClusterSettingMutator(BaseMutator):
    """Adds a random sequence of SET/RESET steps for one cluster setting.

    Attributes:
        setting_name: Name of the cluster setting.
        possible_values: Values the setting may be SET to.
        min_version: If set, a node on at least this version must be
            present wherever the setting is changed.
        max_changes: Upper bound on the number of changes generated.

    Example:
        >>> mutator = ClusterSettingMutator(
        ...     "kv.expiration_leases_only.enabled",
        ...     [True, False],
        ...     minimum_version("v23.2.0"),
        ...     max_changes(5),
        ... )
        >>> mutations = mutator.generate(random.Random(7), plan)
    """

    def __init__(
        self,
        setting_name: str,
        possible_values: Sequence[Any],
        *options: ClusterSettingOption,
        probability: float = DEFAULT_PROBABILITY,
    ) -> None:
        self.setting_name = setting_name
        self.possible_values = list(possible_values) if possible_values is not None else []
        self.min_version: Version | None = None
        self.max_changes = DEFAULT_MAX_CHANGES

        if not isinstance(setting_name, str) or not setting_name.strip():
            raise MutatorConfigError(
                message="cluster setting name cannot be empty",
                field="name",
                value=setting_name,
            )
        if not self.possible_values:
            raise MutatorConfigError(
                message=f"cluster setting {setting_name!r} needs at least one possible value",
                field="possible_values",
                value=possible_values,
                context=ErrorContext(mutator_name=self.name),
            )

        super().__init__(probability=probability)
        for option in options:
            option(self)

    @property
    def name(self) -> str:
        return f"cluster_setting[{self.setting_name}]"

    def generate(self, rng: random.Random, plan: UpgradePlan) -> list[Mutation]:
        positions = self._candidate_positions(plan)
        if not positions:
            logger.debug(f"{self.name}: no step where the setting can be changed (min_version={self.min_version})")
            return []

        num_changes = min(rng.randint(1, self.max_changes), len(positions))
        chosen = sorted(rng.sample(range(len(positions)), num_changes))

        mutations: list[Mutation] = []
        state = _START
        for idx in chosen:
            anchor = positions[idx]
            step = self._next_step(rng, state)
            op = rng.choice((MutationOp.INSERT_BEFORE, MutationOp.INSERT_AFTER))
            mutations.append(Mutation(op, anchor, step))
            state = self._advance(step)

        logger.debug(f"{self.name}: generated {len(mutations)} change(s) over {len(positions)} candidate step(s)")
        return mutations

    def _candidate_positions(self, plan: UpgradePlan) -> list[PlanStep]:
        """Steps next to which the setting can be changed, in plan order."""
        return [
            step
            for step in plan
            if step.context.stage is not Stage.CLUSTER_SETUP and self._serviceable(step)
        ]

    def _serviceable(self, step: PlanStep) -> bool:
        if self.min_version is None:
            return True
        return step.context.any_node_at_least(self.min_version)

    def _set_candidates(self, state: _State) -> list[Any]:
        if state.phase is _Phase.AFTER_SET:
            return [v for v in self.possible_values if v != state.value]
        return list(self.possible_values)

    def _next_step(self, rng: random.Random, state: _State) -> ClusterSettingStep:
        """Pick a legal change from ``state``; ``possible_values`` is never empty."""
        moves: list[str] = []
        set_values = self._set_candidates(state)
        if set_values:
            moves.append("set")
        if state.phase is _Phase.AFTER_SET:
            moves.append("reset")

        if rng.choice(moves) == "reset":
            return ResetClusterSettingStep(name=self.setting_name, min_version=self.min_version)
        return SetClusterSettingStep(
            name=self.setting_name,
            value=rng.choice(set_values),
            min_version=self.min_version,
        )

    @staticmethod
    def _advance(step: ClusterSettingStep) -> _State:
        if isinstance(step, SetClusterSettingStep):
            return _State(_Phase.AFTER_SET, step.value)
        return _State(_Phase.AFTER_RESET)
