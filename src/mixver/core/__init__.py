"""Core data model: topology snapshots, steps, mutations and plans."""

from mixver.core.context import Context, Stage
from mixver.core.mutation import Mutation, MutationOp
from mixver.core.plan import UpgradePlan, UpgradeStage
from mixver.core.steps import (
    STEP_TYPES,
    AllowUpgradeStep,
    ClusterSettingStep,
    PlanStep,
    PreserveDowngradeOptionStep,
    ResetClusterSettingStep,
    RestartWithNewBinaryStep,
    SetClusterSettingStep,
    StartStep,
    StepImpl,
    StepKind,
    WaitForStableClusterVersionStep,
)

__all__ = [
    "Context",
    "Stage",
    "Mutation",
    "MutationOp",
    "UpgradePlan",
    "UpgradeStage",
    "STEP_TYPES",
    "StepKind",
    "StepImpl",
    "ClusterSettingStep",
    "PlanStep",
    "StartStep",
    "WaitForStableClusterVersionStep",
    "PreserveDowngradeOptionStep",
    "RestartWithNewBinaryStep",
    "AllowUpgradeStep",
    "SetClusterSettingStep",
    "ResetClusterSettingStep",
]
