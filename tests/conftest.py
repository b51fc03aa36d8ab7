"""Pytest fixtures for mixver tests."""

from __future__ import annotations

import random
from collections.abc import Callable

import pytest

from mixver.core import Context, PlanStep, Stage, UpgradePlan, UpgradeStage
from mixver.planner import UpgradePlanner
from mixver.versions import Version, parse_versions

CURRENT_VERSION = "v24.2.12"

# Release path used by the planner in tests; upgrades take the newest
# ``n + 1`` entries so the last upgrade always ends on CURRENT_VERSION.
RELEASES = ["v19.2.0", "v22.1.28", "v22.2.2", "v23.1.9", "v23.2.7", "v24.1.3", CURRENT_VERSION]


def build_plan(num_upgrades: int = 3, num_nodes: int = 4, seed: int = 1) -> UpgradePlan:
    versions = parse_versions(RELEASES[-(num_upgrades + 1):])
    planner = UpgradePlanner(versions, list(range(1, num_nodes + 1)))
    return planner.plan(random.Random(seed))


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def make_plan() -> Callable[..., UpgradePlan]:
    """Factory for planner-built plans: make_plan(num_upgrades=3, num_nodes=4, seed=1)."""
    return build_plan


@pytest.fixture
def basic_plan() -> UpgradePlan:
    return build_plan(num_upgrades=3)


def hand_plan(stages: list[list[tuple[dict[int, str], Stage, object]]]) -> UpgradePlan:
    """Build an UpgradePlan from explicit (node versions, stage, step) triples.

    Each inner list becomes one upgrade stage. Handy for plans the
    planner would never produce.
    """
    next_id = 1
    upgrades = []
    initial = None
    for entries in stages:
        steps = []
        for node_versions, stage, impl in entries:
            ctx = Context.create({n: Version.parse(v) for n, v in node_versions.items()}, stage)
            steps.append(PlanStep(id=next_id, context=ctx, impl=impl))
            next_id += 1
        first = min(steps[0].context.versions)
        last = max(steps[-1].context.versions)
        initial = initial or first
        upgrades.append(UpgradeStage(first, last, tuple(steps)))
    return UpgradePlan(initial_version=initial, setup=(), upgrades=tuple(upgrades))
