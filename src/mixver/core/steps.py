"""Step kinds that can appear in an upgrade test plan.

Every step kind is a frozen dataclass registered under one StepKind.
The set is closed: ``STEP_TYPES`` maps each kind to exactly one class,
and the module refuses to import if the two ever drift apart.

A plan entry (PlanStep) pairs one of these values with the topology
snapshot it was generated against. Mutators never edit a step; they
build a new one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from mixver.core.context import Context
from mixver.versions import Version


class StepKind(Enum):
    """Every kind of step a plan may contain."""

    START = "start"
    WAIT_FOR_STABLE_CLUSTER_VERSION = "wait_for_stable_cluster_version"
    PRESERVE_DOWNGRADE_OPTION = "preserve_downgrade_option"
    RESTART_WITH_NEW_BINARY = "restart_with_new_binary"
    ALLOW_UPGRADE = "allow_upgrade"
    SET_CLUSTER_SETTING = "set_cluster_setting"
    RESET_CLUSTER_SETTING = "reset_cluster_setting"


def _sql_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("'", "''")
    return f"'{text}'"


@dataclass(frozen=True)
class StartStep:
    """Start every node of the cluster on the initial version."""

    kind: ClassVar[StepKind] = StepKind.START

    version: Version

    def describe(self) -> str:
        return f"start cluster at version {self.version}"


@dataclass(frozen=True)
class WaitForStableClusterVersionStep:
    """Wait until every node reports ``version`` as the cluster version."""

    kind: ClassVar[StepKind] = StepKind.WAIT_FOR_STABLE_CLUSTER_VERSION

    version: Version

    def describe(self) -> str:
        return f"wait for all nodes to acknowledge cluster version {self.version}"


@dataclass(frozen=True)
class PreserveDowngradeOptionStep:
    """Block automatic upgrade finalization while nodes are restarted."""

    kind: ClassVar[StepKind] = StepKind.PRESERVE_DOWNGRADE_OPTION

    def describe(self) -> str:
        return "prevent auto-upgrades by setting `preserve_downgrade_option`"

    def statement(self, from_version: Version) -> str:
        return f"SET CLUSTER SETTING cluster.preserve_downgrade_option = '{from_version.series}'"


@dataclass(frozen=True)
class RestartWithNewBinaryStep:
    """Restart one node on a different binary."""

    kind: ClassVar[StepKind] = StepKind.RESTART_WITH_NEW_BINARY

    node: int
    version: Version

    def describe(self) -> str:
        return f"restart node {self.node} with binary version {self.version}"


@dataclass(frozen=True)
class AllowUpgradeStep:
    """Reset ``preserve_downgrade_option`` so the cluster may finalize."""

    kind: ClassVar[StepKind] = StepKind.ALLOW_UPGRADE

    def describe(self) -> str:
        return "allow upgrade to happen by resetting `preserve_downgrade_option`"

    def statement(self) -> str:
        return "RESET CLUSTER SETTING cluster.preserve_downgrade_option"


@dataclass(frozen=True)
class SetClusterSettingStep:
    """Set a cluster setting to ``value``.

    When ``min_version`` is set, the statement must be sent to a node
    running at least that version.
    """

    kind: ClassVar[StepKind] = StepKind.SET_CLUSTER_SETTING

    name: str
    value: Any
    min_version: Version | None = None

    def describe(self) -> str:
        return f"set cluster setting {self.name!r} to '{self.value}'"

    def statement(self) -> str:
        return f"SET CLUSTER SETTING {self.name} = {_sql_literal(self.value)}"


@dataclass(frozen=True)
class ResetClusterSettingStep:
    """Reset a cluster setting to its default value."""

    kind: ClassVar[StepKind] = StepKind.RESET_CLUSTER_SETTING

    name: str
    min_version: Version | None = None

    def describe(self) -> str:
        return f"reset cluster setting {self.name!r}"

    def statement(self) -> str:
        return f"RESET CLUSTER SETTING {self.name}"


StepImpl = Union[
    StartStep,
    WaitForStableClusterVersionStep,
    PreserveDowngradeOptionStep,
    RestartWithNewBinaryStep,
    AllowUpgradeStep,
    SetClusterSettingStep,
    ResetClusterSettingStep,
]

ClusterSettingStep = Union[SetClusterSettingStep, ResetClusterSettingStep]

STEP_TYPES: dict[StepKind, type] = {
    StepKind.START: StartStep,
    StepKind.WAIT_FOR_STABLE_CLUSTER_VERSION: WaitForStableClusterVersionStep,
    StepKind.PRESERVE_DOWNGRADE_OPTION: PreserveDowngradeOptionStep,
    StepKind.RESTART_WITH_NEW_BINARY: RestartWithNewBinaryStep,
    StepKind.ALLOW_UPGRADE: AllowUpgradeStep,
    StepKind.SET_CLUSTER_SETTING: SetClusterSettingStep,
    StepKind.RESET_CLUSTER_SETTING: ResetClusterSettingStep,
}


def _check_registry() -> None:
    missing = [k.name for k in StepKind if k not in STEP_TYPES]
    if missing:
        raise RuntimeError(f"step kinds without a step class: {missing}")
    mismatched = [k.name for k, cls in STEP_TYPES.items() if cls.kind is not k]
    if mismatched:
        raise RuntimeError(f"step classes registered under the wrong kind: {mismatched}")
    if set(STEP_TYPES.values()) != set(StepImpl.__args__):
        raise RuntimeError("STEP_TYPES and StepImpl list different step classes")


_check_registry()


@dataclass(frozen=True)
class PlanStep:
    """One entry of a test plan.

    Attributes:
        id: Position-derived identifier, unique within a plan.
        context: Topology snapshot the step was generated against.
        impl: What the step does.
    """

    id: int
    context: Context
    impl: StepImpl

    @property
    def kind(self) -> StepKind:
        return self.impl.kind

    def describe(self) -> str:
        return self.impl.describe()
