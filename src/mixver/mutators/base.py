"""Mutator protocol and base class."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from mixver.core.mutation import Mutation
from mixver.core.plan import UpgradePlan
from mixver.errors import ErrorContext, MutatorConfigError


@runtime_checkable
class Mutator(Protocol):
    """Protocol for plan mutators.

    A mutator looks at a base plan and describes edits to it. It never
    changes the plan itself; the applier does that.
    """

    @property
    def name(self) -> str:
        """Identifies the mutator in logs and reports."""
        ...

    @property
    def probability(self) -> float:
        """Chance that the engine runs this mutator for a given plan."""
        ...

    def generate(self, rng: random.Random, plan: UpgradePlan) -> list[Mutation]:
        """Describe the edits to make to ``plan``.

        Args:
            rng: The only source of randomness. The same seed and plan
                must produce the same mutations.
            plan: The base plan. Read only.

        Returns:
            Mutations in the order they should be applied.
        """
        ...


class BaseMutator(ABC):
    """Base class for mutator implementations."""

    def __init__(self, probability: float = 0.5) -> None:
        if not 0.0 <= probability <= 1.0:
            raise MutatorConfigError(
                message=f"probability must be between 0.0 and 1.0, got {probability}",
                field="probability",
                value=probability,
                context=ErrorContext(mutator_name=self.name),
            )
        self._probability = probability

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    def probability(self) -> float:
        return self._probability

    @abstractmethod
    def generate(self, rng: random.Random, plan: UpgradePlan) -> list[Mutation]:
        """Describe the edits to make to ``plan``."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, probability={self.probability})"
