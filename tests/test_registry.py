"""StepRegistry tests — ordering, lookup and key mapping."""

import pytest

from mindflow.models.schema import FlowDefinition
from mindflow.models.step import TextInputStep
from mindflow.registry import StepRegistry

from test_engine import checkin_steps, medication_steps


class TestLookup:

    def test_get_step_in_order(self):
        registry = StepRegistry(checkin_steps(), flow_id="mood_checkin")
        assert [registry.get_step(i).id for i in range(4)] == [
            "mood", "intensity", "activities", "notes",
        ]

    def test_get_step_out_of_range_is_none(self):
        registry = StepRegistry(checkin_steps())
        assert registry.get_step(4) is None
        assert registry.get_step(-1) is None

    def test_count_and_len(self):
        registry = StepRegistry(checkin_steps())
        assert registry.count() == 4
        assert len(registry) == 4

    def test_index_of_and_find(self):
        registry = StepRegistry(checkin_steps())
        assert registry.index_of("activities") == 2
        assert registry.index_of("ghost") is None
        assert registry.find("notes").kind == "text_input"
        assert registry.find("ghost") is None

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate step id"):
            StepRegistry([
                TextInputStep(id="notes", prompt="A"),
                TextInputStep(id="notes", prompt="B"),
            ])


class TestKeyMapping:

    def test_string_key_maps_to_int_id(self):
        registry = StepRegistry(medication_steps())
        assert registry.key_for("2") == 2
        assert registry.key_for(2) == 2

    def test_unknown_key_raises(self):
        registry = StepRegistry(medication_steps())
        with pytest.raises(KeyError):
            registry.key_for("7")


class TestFromDefinition:

    def test_carries_flow_id_and_title(self):
        definition = FlowDefinition(
            flow_id="mini", title="Mini flow", steps=checkin_steps()[:2],
        )
        registry = StepRegistry.from_definition(definition)
        assert registry.flow_id == "mini"
        assert registry.title == "Mini flow"
        assert registry.count() == 2
        assert "mini" in repr(registry)
