"""The linear upgrade plan mutators operate on."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from mixver.core.steps import PlanStep, StepKind
from mixver.versions import Version


@dataclass(frozen=True)
class UpgradeStage:
    """The steps that move the cluster from one release to the next."""

    from_version: Version
    to_version: Version
    steps: tuple[PlanStep, ...] = field(default_factory=tuple)

    def of_kind(self, kind: StepKind) -> list[PlanStep]:
        return [s for s in self.steps if s.kind is kind]

    def __str__(self) -> str:
        return f"upgrade cluster from {self.from_version} to {self.to_version}"


@dataclass(frozen=True)
class UpgradePlan:
    """Setup steps followed by one stage per upgrade, in execution order.

    Plans are values: mutators read them, the applier builds new ones.
    """

    initial_version: Version
    setup: tuple[PlanStep, ...] = field(default_factory=tuple)
    upgrades: tuple[UpgradeStage, ...] = field(default_factory=tuple)

    def steps(self) -> list[PlanStep]:
        """All steps, flattened in execution order."""
        flat = list(self.setup)
        for stage in self.upgrades:
            flat.extend(stage.steps)
        return flat

    def __iter__(self) -> Iterator[PlanStep]:
        return iter(self.steps())

    def __len__(self) -> int:
        return self.step_count

    @property
    def step_count(self) -> int:
        return len(self.setup) + sum(len(stage.steps) for stage in self.upgrades)

    def find(self, step_id: int) -> PlanStep | None:
        for step in self:
            if step.id == step_id:
                return step
        return None

    def stage_of(self, step: PlanStep) -> UpgradeStage | None:
        """The upgrade stage containing ``step``, or None for setup steps."""
        for stage in self.upgrades:
            if any(s.id == step.id for s in stage.steps):
                return stage
        return None

    def of_kind(self, kind: StepKind) -> list[PlanStep]:
        return [s for s in self if s.kind is kind]

    def pretty_print(self) -> str:
        """Render the plan as an indented, numbered list."""
        lines = [f"mixed-version test plan (initial version {self.initial_version}):"]
        for step in self.setup:
            lines.append(f"├── {step.describe()} ({step.id})")
        for stage in self.upgrades:
            lines.append(f"├── {stage}")
            for j, step in enumerate(stage.steps):
                branch = "└──" if j == len(stage.steps) - 1 else "├──"
                lines.append(f"│   {branch} {step.describe()} ({step.id})")
        return "\n".join(lines)
