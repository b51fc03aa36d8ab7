"""Edit descriptors produced by mutators."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from mixver.core.steps import PlanStep, StepImpl


class MutationOp(Enum):
    """How a mutation changes the plan around its reference step."""

    INSERT_BEFORE = "insert_before"
    INSERT_AFTER = "insert_after"
    REMOVE = "remove"

    @property
    def is_insert(self) -> bool:
        return self is not MutationOp.REMOVE


@dataclass(frozen=True)
class Mutation:
    """One edit against a base plan.

    ``reference`` is the anchor step. For REMOVE it is the step being
    deleted; for inserts, ``impl`` is spliced in next to it.
    """

    op: MutationOp
    reference: PlanStep
    impl: StepImpl | None = None

    def __post_init__(self) -> None:
        if self.op.is_insert and self.impl is None:
            raise ValueError(f"{self.op.value} mutation needs a step to insert")
        if self.op is MutationOp.REMOVE and self.impl is not None:
            raise ValueError("remove mutation cannot carry a step")

    @classmethod
    def insert_before(cls, reference: PlanStep, impl: StepImpl) -> Mutation:
        return cls(MutationOp.INSERT_BEFORE, reference, impl)

    @classmethod
    def insert_after(cls, reference: PlanStep, impl: StepImpl) -> Mutation:
        return cls(MutationOp.INSERT_AFTER, reference, impl)

    @classmethod
    def remove(cls, reference: PlanStep) -> Mutation:
        return cls(MutationOp.REMOVE, reference)

    def __str__(self) -> str:
        if self.impl is None:
            return f"{self.op.value} step {self.reference.id} ({self.reference.describe()})"
        return f"{self.op.value} step {self.reference.id}: {self.impl.describe()}"
