"""Tests for ClusterSettingMutator.

Rather than pinning the exact mutations for a seed, most of these tests
check the properties every generated sequence must have: the number of
changes, no RESET without a SET before it, no two SETs in a row to the
same value, and a node able to serve the change wherever one lands.
"""

from __future__ import annotations

import random
import string
from typing import Any

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from mixver.core import (
    AllowUpgradeStep,
    Mutation,
    MutationOp,
    ResetClusterSettingStep,
    RestartWithNewBinaryStep,
    SetClusterSettingStep,
    Stage,
    StepKind,
    WaitForStableClusterVersionStep,
)
from mixver.errors import ErrorCode, MutatorConfigError
from mixver.mutators import (
    DEFAULT_MAX_CHANGES,
    ClusterSettingMutator,
    max_changes,
    minimum_version,
)
from mixver.versions import Version

from tests.conftest import CURRENT_VERSION, build_plan, hand_plan

SETTING = "test_cluster_setting"


def assert_valid_mutations(mutator: ClusterSettingMutator, plan, mutations: list[Mutation]) -> None:
    assert 1 <= len(mutations) <= mutator.max_changes, plan.pretty_print()

    order = {step.id: j for j, step in enumerate(plan)}
    anchors = [order[m.reference.id] for m in mutations]
    assert anchors == sorted(anchors), "mutations must follow plan order"
    assert len(set(anchors)) == len(anchors), "each anchor is used once"

    prev = None
    for j, m in enumerate(mutations):
        assert m.op in (MutationOp.INSERT_BEFORE, MutationOp.INSERT_AFTER)
        assert m.reference.context.stage is not Stage.CLUSTER_SETUP

        if mutator.min_version is not None:
            ctx = m.reference.context
            serving = [n for n in ctx.nodes if ctx.node_version(n).at_least(mutator.min_version)]
            assert serving, "attempting to change setting but no node can service request"

        step = m.impl
        assert step.name == SETTING
        assert step.min_version == mutator.min_version

        if isinstance(step, SetClusterSettingStep):
            assert step.value in mutator.possible_values
            if isinstance(prev, SetClusterSettingStep):
                assert step.value != prev.value, f"found two consecutive SET steps to value {step.value!r}"
        elif isinstance(step, ResetClusterSettingStep):
            assert j > 0, "first step cannot RESET cluster setting"
            assert isinstance(prev, SetClusterSettingStep), f"step prior to RESET should be SET, found {prev!r}"
        else:
            pytest.fail(f"unexpected mutation type: {type(step).__name__}")

        prev = step


@st.composite
def possible_values(draw: st.DrawFn) -> list[Any]:
    kind = draw(st.sampled_from(["bools", "ints", "strings"]))
    if kind == "bools":
        # Exercise the case where a boolean setting only has one value.
        if draw(st.booleans()):
            return [draw(st.booleans())]
        return [True, False]
    if kind == "ints":
        return draw(st.lists(st.integers(), min_size=1, max_size=10))
    return draw(
        st.lists(st.text(alphabet=string.printable, min_size=1, max_size=64), min_size=1, max_size=10)
    )


@st.composite
def mutator_options(draw: st.DrawFn) -> list:
    options = []
    if draw(st.booleans()):
        # Make sure settings introduced in the latest version can be changed too.
        options.append(minimum_version(draw(st.sampled_from(["v23.2.12", CURRENT_VERSION]))))
    if draw(st.booleans()):
        options.append(max_changes(draw(st.integers(min_value=1, max_value=20))))
    return options


class TestClusterSettingMutatorInvariants:
    @given(
        num_upgrades=st.integers(min_value=3, max_value=6),
        values=possible_values(),
        options=mutator_options(),
        seed=st.integers(min_value=0, max_value=2**32),
    )
    @settings(max_examples=100, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_generated_sequences_are_valid(self, num_upgrades, values, options, seed):
        plan = build_plan(num_upgrades=num_upgrades, seed=seed)
        mutator = ClusterSettingMutator(SETTING, values, *options)

        mutations = mutator.generate(random.Random(seed), plan)

        assert_valid_mutations(mutator, plan, mutations)

    def test_boolean_setting_scenario(self):
        plan = build_plan(num_upgrades=3)
        mutator = ClusterSettingMutator(SETTING, [True, False], max_changes(20))

        for seed in range(50):
            mutations = mutator.generate(random.Random(seed), plan)
            assert isinstance(mutations[0].impl, SetClusterSettingStep)
            assert mutations[0].impl.value in (True, False)
            assert_valid_mutations(mutator, plan, mutations)

    def test_single_value_alternates_set_and_reset(self):
        plan = build_plan(num_upgrades=4)
        mutator = ClusterSettingMutator(SETTING, ["on"], max_changes(20))

        for seed in range(20):
            mutations = mutator.generate(random.Random(seed), plan)
            kinds = [m.impl.kind for m in mutations]
            expected = [
                StepKind.SET_CLUSTER_SETTING if j % 2 == 0 else StepKind.RESET_CLUSTER_SETTING
                for j in range(len(kinds))
            ]
            assert kinds == expected

    def test_steps_copy_configuration(self, basic_plan, rng):
        mutator = ClusterSettingMutator(SETTING, [1, 2, 3], minimum_version("v24.1.0"))
        for m in mutator.generate(rng, basic_plan):
            assert m.impl.name == SETTING
            assert m.impl.min_version == Version.parse("v24.1.0")

    def test_every_sampled_position_gets_a_change(self, basic_plan):
        positions = [s for s in basic_plan if s.context.stage is not Stage.CLUSTER_SETUP]
        for values in (["on"], [True, False], [1, 2, 3]):
            mutator = ClusterSettingMutator(SETTING, values, max_changes(20))
            for seed in range(30):
                # generate() draws the number of changes first.
                expected = min(random.Random(seed).randint(1, 20), len(positions))
                assert len(mutator.generate(random.Random(seed), basic_plan)) == expected

    def test_deterministic_for_seed(self, basic_plan):
        mutator = ClusterSettingMutator(SETTING, ["a", "b", "c"], max_changes(10))
        first = mutator.generate(random.Random(1234), basic_plan)
        second = mutator.generate(random.Random(1234), basic_plan)
        assert first == second

    def test_does_not_touch_plan(self, basic_plan, rng):
        before = basic_plan.steps()
        ClusterSettingMutator(SETTING, [True, False], max_changes(10)).generate(rng, basic_plan)
        assert basic_plan.steps() == before

    def test_never_anchors_on_setup(self, rng):
        plan = build_plan(num_upgrades=3)
        setup_ids = {s.id for s in plan.setup}
        mutator = ClusterSettingMutator(SETTING, [True, False], max_changes(20))
        for _ in range(20):
            assert not any(m.reference.id in setup_ids for m in mutator.generate(rng, plan))


class TestClusterSettingMutatorDegradation:
    def test_unreachable_min_version_yields_nothing(self, basic_plan, rng):
        mutator = ClusterSettingMutator(SETTING, [True, False], minimum_version("v99.1.0"))
        assert mutator.generate(rng, basic_plan) == []

    def test_plan_without_upgrades_yields_nothing(self, rng):
        plan = build_plan(num_upgrades=1)
        stripped = type(plan)(initial_version=plan.initial_version, setup=plan.setup, upgrades=())
        assert ClusterSettingMutator(SETTING, [1]).generate(rng, stripped) == []

    def test_single_value_single_position_stops_after_set(self):
        old, new = "v23.2.7", CURRENT_VERSION
        plan = hand_plan([[
            ({1: old, 2: old}, Stage.UPGRADING, RestartWithNewBinaryStep(1, Version.parse(new))),
            ({1: new, 2: old}, Stage.UPGRADING, RestartWithNewBinaryStep(2, Version.parse(new))),
        ]])
        mutator = ClusterSettingMutator(SETTING, [True], minimum_version(new), max_changes(20))

        for seed in range(20):
            mutations = mutator.generate(random.Random(seed), plan)
            assert len(mutations) == 1
            assert isinstance(mutations[0].impl, SetClusterSettingStep)
            assert mutations[0].reference.id == 2

    def test_change_count_capped_by_positions(self):
        v = "v24.1.3"
        plan = hand_plan([[
            ({1: v}, Stage.FINALIZING, AllowUpgradeStep()),
            ({1: v}, Stage.FINALIZING, WaitForStableClusterVersionStep(Version.parse(v))),
        ]])
        mutator = ClusterSettingMutator(SETTING, [1, 2, 3], max_changes(20))
        for seed in range(20):
            assert 1 <= len(mutator.generate(random.Random(seed), plan)) <= 2


class TestClusterSettingMutatorConfig:
    def test_defaults(self):
        mutator = ClusterSettingMutator(SETTING, [True])
        assert mutator.max_changes == DEFAULT_MAX_CHANGES
        assert mutator.min_version is None
        assert mutator.name == f"cluster_setting[{SETTING}]"

    def test_options(self):
        mutator = ClusterSettingMutator(SETTING, [True], minimum_version("v24.1.0"), max_changes(7))
        assert mutator.min_version == Version.parse("v24.1.0")
        assert mutator.max_changes == 7

    def test_empty_values_rejected(self):
        with pytest.raises(MutatorConfigError) as exc_info:
            ClusterSettingMutator(SETTING, [])
        assert exc_info.value.field == "possible_values"
        assert exc_info.value.error_code is ErrorCode.INVALID_MUTATOR

    def test_empty_name_rejected(self):
        with pytest.raises(MutatorConfigError, match="name cannot be empty"):
            ClusterSettingMutator("  ", [True])

    @pytest.mark.parametrize("n", [0, -3, True, 2.5])
    def test_bad_max_changes_rejected(self, n):
        with pytest.raises(MutatorConfigError) as exc_info:
            ClusterSettingMutator(SETTING, [True], max_changes(n))
        assert exc_info.value.field == "max_changes"

    def test_bad_min_version_rejected(self):
        with pytest.raises(MutatorConfigError) as exc_info:
            ClusterSettingMutator(SETTING, [True], minimum_version("latest"))
        assert exc_info.value.field == "min_version"
        assert exc_info.value.cause is not None

    def test_bad_probability_rejected(self):
        with pytest.raises(MutatorConfigError, match="probability"):
            ClusterSettingMutator(SETTING, [True], probability=1.5)
