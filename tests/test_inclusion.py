"""InclusionResolver tests — effective-path resolution over a registry."""

import logging

import pytest

from mindflow.constants import TERMINAL
from mindflow.inclusion import InclusionResolver
from mindflow.models.flow import Direction
from mindflow.models.step import Predicate, TextInputStep
from mindflow.registry import StepRegistry

from test_engine import medication_steps


def _registry_with_hidden_ends():
    """Steps a and e are hidden unless "show" was answered "yes"."""
    hidden = [Predicate(step="show", op="eq", value="yes")]
    return StepRegistry([
        TextInputStep(id="a", prompt="A", include_when=hidden),
        TextInputStep(id="show", prompt="Show?"),
        TextInputStep(id="c", prompt="C"),
        TextInputStep(id="e", prompt="E", include_when=hidden),
    ])


@pytest.fixture
def resolver():
    return InclusionResolver(StepRegistry(medication_steps()))


class TestNextEffectiveIndex:

    def test_forward_to_next_included(self, resolver):
        assert resolver.next_effective_index(0, Direction.FORWARD, {1: "some"}) == 1

    def test_forward_skips_excluded(self, resolver):
        assert resolver.next_effective_index(0, Direction.FORWARD, {1: "none"}) == 2

    def test_forward_past_end_is_terminal(self, resolver):
        assert resolver.next_effective_index(2, Direction.FORWARD, {}) == TERMINAL

    def test_backward_skips_excluded(self, resolver):
        assert resolver.next_effective_index(2, Direction.BACKWARD, {1: "none"}) == 0

    def test_backward_from_first_clamps(self, resolver):
        assert resolver.next_effective_index(0, Direction.BACKWARD, {}) == 0

    def test_backward_clamps_at_first_included(self):
        resolver = InclusionResolver(_registry_with_hidden_ends())
        assert resolver.next_effective_index(1, Direction.BACKWARD, {}) == 1

    def test_forward_over_trailing_excluded_is_terminal(self):
        resolver = InclusionResolver(_registry_with_hidden_ends())
        assert resolver.next_effective_index(2, Direction.FORWARD, {"show": "no"}) == TERMINAL
        assert resolver.next_effective_index(2, Direction.FORWARD, {"show": "yes"}) == 3


class TestPositions:

    def test_first_effective_index(self):
        resolver = InclusionResolver(_registry_with_hidden_ends())
        assert resolver.first_effective_index({}) == 1
        assert resolver.first_effective_index({"show": "yes"}) == 0

    def test_first_effective_index_when_nothing_included(self):
        registry = StepRegistry([TextInputStep(id="x", prompt="X", include_if=lambda a: False)])
        assert InclusionResolver(registry).first_effective_index({}) == TERMINAL

    def test_effective_position(self, resolver):
        assert resolver.effective_position(2, {1: "none"}) == 1
        assert resolver.effective_position(2, {1: "some"}) == 2
        assert resolver.effective_position(3, {1: "none"}) == 2, "Past-the-end counts all"

    def test_registry_index_for(self, resolver):
        assert resolver.registry_index_for(1, {1: "none"}) == 2
        assert resolver.registry_index_for(1, {1: "some"}) == 1
        assert resolver.registry_index_for(2, {1: "none"}) is None
        assert resolver.registry_index_for(-1, {}) is None


class TestPredicateFailures:

    def test_raising_predicate_includes_step(self, caplog):
        def broken(answers):
            raise KeyError("missing")

        step = TextInputStep(id="x", prompt="X", include_if=broken)
        resolver = InclusionResolver(StepRegistry([step]))
        with caplog.at_level(logging.WARNING, logger="mindflow.inclusion"):
            assert resolver.is_included(step, {}) is True
        assert "fail-open" in caplog.text

    def test_both_predicates_must_hold(self):
        step = TextInputStep(
            id="x",
            prompt="X",
            include_if=lambda a: a.get("flag") is True,
            include_when=[Predicate(step="score", op="gt", value=3)],
        )
        resolver = InclusionResolver(StepRegistry([step]))
        assert resolver.is_included(step, {"flag": True, "score": 5}) is True
        assert resolver.is_included(step, {"flag": False, "score": 5}) is False
        assert resolver.is_included(step, {"flag": True, "score": 1}) is False
