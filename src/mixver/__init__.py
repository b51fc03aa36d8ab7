"""mixver - randomized mutations for mixed-version upgrade test plans.

Given a linear upgrade plan, mixver's mutators describe extra steps to
inject (cluster-setting changes, a different point at which an upgrade
is allowed to finalize) without breaking the plan's invariants.

Example:
    >>> import random
    >>> from mixver import (
    ...     ClusterSettingMutator, MutationEngine, UpgradePlanner,
    ...     max_changes, parse_versions,
    ... )
    >>> plan = UpgradePlanner(parse_versions(["v23.2.7", "v24.1.3"]), [1, 2, 3]).plan(random.Random(1))
    >>> mutator = ClusterSettingMutator("kv.rangefeed.enabled", [True, False], max_changes(4))
    >>> mutations = mutator.generate(random.Random(1), plan)
    >>> report = MutationEngine([mutator], seed=1).run(plan, force=True)
"""

from mixver.applier import apply_mutations
from mixver.core import (
    AllowUpgradeStep,
    Context,
    Mutation,
    MutationOp,
    PlanStep,
    PreserveDowngradeOptionStep,
    ResetClusterSettingStep,
    RestartWithNewBinaryStep,
    SetClusterSettingStep,
    Stage,
    StartStep,
    StepKind,
    UpgradePlan,
    UpgradeStage,
    WaitForStableClusterVersionStep,
)
from mixver.engine import MutationEngine, MutationReport
from mixver.errors import (
    ConfigValidationError,
    MixverError,
    MutationApplyError,
    MutatorConfigError,
    NodeNotFoundError,
    PlanConfigError,
    VersionParseError,
)
from mixver.mutators import (
    ClusterSettingMutator,
    Mutator,
    PreserveDowngradeOptionRandomizer,
    max_changes,
    minimum_version,
)
from mixver.planner import UpgradePlanner
from mixver.versions import Version, parse_versions

__version__ = "0.1.0"

__all__ = [
    # Versions and topology
    "Version",
    "parse_versions",
    "Context",
    "Stage",
    # Steps and plans
    "StepKind",
    "PlanStep",
    "StartStep",
    "WaitForStableClusterVersionStep",
    "PreserveDowngradeOptionStep",
    "RestartWithNewBinaryStep",
    "AllowUpgradeStep",
    "SetClusterSettingStep",
    "ResetClusterSettingStep",
    "UpgradePlan",
    "UpgradeStage",
    "UpgradePlanner",
    # Mutations
    "Mutation",
    "MutationOp",
    "Mutator",
    "ClusterSettingMutator",
    "PreserveDowngradeOptionRandomizer",
    "max_changes",
    "minimum_version",
    "apply_mutations",
    "MutationEngine",
    "MutationReport",
    # Errors
    "MixverError",
    "ConfigValidationError",
    "MutatorConfigError",
    "VersionParseError",
    "PlanConfigError",
    "NodeNotFoundError",
    "MutationApplyError",
]
