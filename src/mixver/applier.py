"""Applies mutations to a plan, producing a new plan."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from mixver.core.mutation import Mutation, MutationOp
from mixver.core.plan import UpgradePlan
from mixver.core.steps import PlanStep
from mixver.errors import ErrorContext, MutationApplyError

logger = logging.getLogger(__name__)

# Setup steps live in segment -1; upgrade stage j lives in segment j.
_SETUP = -1


def apply_mutations(plan: UpgradePlan, mutations: Sequence[Mutation]) -> UpgradePlan:
    """Return a copy of ``plan`` with ``mutations`` applied.

    Removals are applied first, then insertions in the order given. An
    inserted step takes its anchor's context and joins the anchor's
    segment (setup or upgrade stage). Step ids are renumbered in the
    result.

    Raises:
        MutationApplyError: If a mutation's anchor is not in the plan,
            including a step that an earlier removal already deleted.
    """
    segments: dict[int, list[PlanStep]] = {_SETUP: list(plan.setup)}
    for j, stage in enumerate(plan.upgrades):
        segments[j] = list(stage.steps)

    removals = [m for m in mutations if m.op is MutationOp.REMOVE]
    insertions = [m for m in mutations if m.op is not MutationOp.REMOVE]

    for mutation in removals:
        seg, idx = _locate(segments, mutation.reference)
        del segments[seg][idx]

    # Inserted steps get negative placeholder ids until renumbering.
    placeholder = 0
    for mutation in insertions:
        seg, idx = _locate(segments, mutation.reference)
        placeholder -= 1
        new_step = PlanStep(id=placeholder, context=mutation.reference.context, impl=mutation.impl)
        if mutation.op is MutationOp.INSERT_AFTER:
            idx += 1
        segments[seg].insert(idx, new_step)

    next_id = 1

    def renumber(steps: list[PlanStep]) -> tuple[PlanStep, ...]:
        nonlocal next_id
        out = []
        for step in steps:
            out.append(replace(step, id=next_id))
            next_id += 1
        return tuple(out)

    setup = renumber(segments[_SETUP])
    upgrades = tuple(
        replace(stage, steps=renumber(segments[j])) for j, stage in enumerate(plan.upgrades)
    )

    logger.debug(f"Applied {len(removals)} removal(s) and {len(insertions)} insertion(s)")
    return replace(plan, setup=setup, upgrades=upgrades)


def _locate(segments: dict[int, list[PlanStep]], reference: PlanStep) -> tuple[int, int]:
    # Anchors are matched by identity of id and content, so a step that was
    # already removed (or never belonged to this plan) is reported.
    for seg, steps in segments.items():
        for idx, step in enumerate(steps):
            if step.id == reference.id and step.impl == reference.impl:
                return seg, idx
    raise MutationApplyError(
        message=f"Step {reference.id} ({reference.describe()}) is not in the plan",
        context=ErrorContext(step_id=reference.id),
    )
