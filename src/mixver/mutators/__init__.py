"""Plan mutators."""

from mixver.mutators.base import BaseMutator, Mutator
from mixver.mutators.cluster_settings import (
    DEFAULT_MAX_CHANGES,
    ClusterSettingMutator,
    ClusterSettingOption,
    max_changes,
    minimum_version,
)
from mixver.mutators.downgrade import PreserveDowngradeOptionRandomizer

__all__ = [
    "Mutator",
    "BaseMutator",
    "ClusterSettingMutator",
    "ClusterSettingOption",
    "DEFAULT_MAX_CHANGES",
    "max_changes",
    "minimum_version",
    "PreserveDowngradeOptionRandomizer",
]
