"""Topology snapshots attached to every plan step.

A Context records which nodes exist and which binary each of them runs
at the point in the plan where a step executes. Contexts are immutable:
the planner produces a new snapshot every time a node changes version.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum

from mixver.errors import ErrorContext, NodeNotFoundError
from mixver.versions import Version


class Stage(Enum):
    """Where in the test lifecycle a step runs."""

    CLUSTER_SETUP = "cluster-setup"  # Cluster is being started
    UPGRADING = "upgrading"  # Nodes are being restarted on a new binary
    FINALIZING = "finalizing"  # All nodes upgraded, cluster version moving


@dataclass(frozen=True)
class Context:
    """Snapshot of the cluster topology at one point in a plan.

    Attributes:
        nodes: Node ids, in ascending order.
        versions: Binary version of each node, aligned with ``nodes``.
        stage: Lifecycle stage of the step this snapshot belongs to.
        from_version: Version the current upgrade started from, if any.
        to_version: Version the current upgrade is moving to, if any.
    """

    nodes: tuple[int, ...]
    versions: tuple[Version, ...]
    stage: Stage = Stage.CLUSTER_SETUP
    from_version: Version | None = None
    to_version: Version | None = None

    def __post_init__(self) -> None:
        if len(self.nodes) != len(self.versions):
            raise ValueError("every node needs exactly one version")

    @classmethod
    def create(
        cls,
        node_versions: Mapping[int, Version],
        stage: Stage = Stage.CLUSTER_SETUP,
        from_version: Version | None = None,
        to_version: Version | None = None,
    ) -> Context:
        nodes = tuple(sorted(node_versions))
        return cls(
            nodes=nodes,
            versions=tuple(node_versions[n] for n in nodes),
            stage=stage,
            from_version=from_version,
            to_version=to_version,
        )

    def node_version(self, node: int) -> Version:
        """Return the binary version ``node`` runs.

        Raises:
            NodeNotFoundError: If the node is not part of this snapshot.
        """
        try:
            idx = self.nodes.index(node)
        except ValueError:
            raise NodeNotFoundError(
                message=f"Node {node} is not part of the topology (nodes: {list(self.nodes)})",
                context=ErrorContext(node=node),
            ) from None
        return self.versions[idx]

    def nodes_at_least(self, version: Version | str) -> list[int]:
        """Nodes running ``version`` or newer."""
        return [n for n in self.nodes if self.node_version(n).at_least(version)]

    def any_node_at_least(self, version: Version | str) -> bool:
        return bool(self.nodes_at_least(version))

    def with_node_version(self, node: int, version: Version) -> Context:
        """Return a copy of this snapshot where ``node`` runs ``version``."""
        idx = self.nodes.index(node) if node in self.nodes else -1
        if idx < 0:
            raise NodeNotFoundError(
                message=f"Cannot change version of unknown node {node}",
                context=ErrorContext(node=node),
            )
        versions = list(self.versions)
        versions[idx] = version
        return replace(self, versions=tuple(versions))

    def with_stage(self, stage: Stage) -> Context:
        return replace(self, stage=stage)

    @property
    def mixed(self) -> bool:
        """True while nodes disagree on their binary version."""
        return len(set(self.versions)) > 1

    def describe(self) -> str:
        pairs = ", ".join(f"n{n}={v}" for n, v in zip(self.nodes, self.versions))
        return f"[{self.stage.value}] {pairs}"
