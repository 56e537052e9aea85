"""ValidationGate unit tests — one class per step kind.

Every failure must carry an actionable message and ask for focus; every
success carries the normalised value that would be committed.
"""

import pytest

from mindflow.errors import ValidationError
from mindflow.models.answer import MoodAnswer, Sentinel
from mindflow.models.step import (
    MediaCaptureStep,
    MoodSelectionStep,
    MultipleChoiceStep,
    NumberInputStep,
    Option,
    RatingScaleStep,
    Scale,
    SingleChoiceStep,
    SummaryStep,
    TextInputStep,
    YesNoStep,
)
from mindflow.validation import ValidationGate


@pytest.fixture
def gate():
    return ValidationGate()


def _gender():
    return SingleChoiceStep(
        id=2,
        prompt="What's your gender?",
        options=[Option(id="male", label="I am male"), Option(id="female", label="I am female")],
    )


def _symptoms(**kwargs):
    return MultipleChoiceStep(
        id=11,
        prompt="Do you have other mental health symptoms?",
        options=[
            Option(id="anxiety", label="Anxiety"),
            Option(id="depression", label="Depression"),
            Option(id="none", label="None of these"),
        ],
        **kwargs,
    )


def _intensity(**kwargs):
    bounds = {"min_value": 1, "max_value": 10}
    bounds.update(kwargs)
    return NumberInputStep(id="intensity", prompt="How intense?", **bounds)


# =====================================================================
# Choice-like kinds
# =====================================================================


class TestChoiceKinds:

    def test_single_choice_accepts_known_id(self, gate):
        result = gate.check(_gender(), "female")
        assert result.valid is True
        assert result.value == "female"
        assert result.step_id == 2

    def test_single_choice_accepts_option_dict(self, gate):
        assert gate.check(_gender(), {"id": "male", "label": "I am male"}).value == "male"

    def test_single_choice_missing(self, gate):
        result = gate.check(_gender(), None)
        assert result.valid is False
        assert result.message == "Select an option to continue"
        assert result.request_focus is True

    def test_single_choice_unknown_id(self, gate):
        result = gate.check(_gender(), "other")
        assert result.message == "Select one of the listed options to continue"

    def test_yes_no_accepts_bool(self, gate):
        step = YesNoStep(id=6, prompt="Have you sought professional help before?")
        assert gate.check(step, True).value == "yes"
        assert gate.check(step, False).value == "no"
        assert gate.check(step, "no").value == "no"

    def test_yes_no_rejects_other(self, gate):
        step = YesNoStep(id=6, prompt="Have you sought professional help before?")
        assert gate.check(step, "maybe").message == "Answer yes or no to continue"
        assert gate.check(step, None).message == "Answer yes or no to continue"

    @pytest.mark.parametrize("candidate", [["female"], {"id": ["female"]}, {"id": {"value": "female"}}])
    def test_single_choice_rejects_container_candidates(self, gate, candidate):
        result = gate.check(_gender(), candidate)
        assert result.valid is False
        assert result.message == "Select one of the listed options to continue"

    @pytest.mark.parametrize("candidate", [["yes"], {"id": ["yes"]}, {"answer": "yes"}])
    def test_yes_no_rejects_container_candidates(self, gate, candidate):
        step = YesNoStep(id=6, prompt="Have you sought professional help before?")
        assert gate.check(step, candidate).message == "Answer yes or no to continue"

    def test_mood_normalised_to_structured_answer(self, gate):
        step = MoodSelectionStep(
            id="mood",
            prompt="How are you feeling?",
            options=[Option(id="calm", label="Calm", emoji="😌")],
        )
        result = gate.check(step, "calm")
        assert result.value == MoodAnswer(id="calm", emoji="😌", label="Calm")

    def test_mood_required(self, gate):
        step = MoodSelectionStep(id="mood", prompt="How are you feeling?", options=[])
        assert gate.check(step, "").message == "Mood is required to continue"

    def test_mood_unknown(self, gate):
        step = MoodSelectionStep(
            id="mood", prompt="How are you feeling?", options=[Option(id="calm", label="Calm")],
        )
        assert gate.check(step, "ecstatic").message == "Select one of the listed moods to continue"


# =====================================================================
# Multiple choice
# =====================================================================


class TestMultipleChoice:

    def test_selection_is_ordered_like_options(self, gate):
        result = gate.check(_symptoms(), ["depression", "anxiety"])
        assert result.value == ["anxiety", "depression"]

    def test_empty_selection_required(self, gate):
        result = gate.check(_symptoms(), [])
        assert result.valid is False
        assert result.message == "Select at least one option to continue"

    def test_empty_selection_optional(self, gate):
        result = gate.check(_symptoms(optional=True), None)
        assert result.valid is True
        assert result.value == []

    def test_bare_string_is_wrapped(self, gate):
        assert gate.check(_symptoms(), "anxiety").value == ["anxiety"]

    def test_unknown_option(self, gate):
        result = gate.check(_symptoms(), ["anxiety", "boredom"])
        assert result.message == "Select only the listed options to continue"

    @pytest.mark.parametrize("candidate", [
        [["anxiety"]],
        [{"id": ["anxiety"]}],
        {"anxiety": True},
        [{"anxiety"}],
    ])
    def test_nested_containers_rejected(self, gate, candidate):
        result = gate.check(_symptoms(), candidate)
        assert result.valid is False
        assert result.message == "Select only the listed options to continue"

    def test_option_dicts_accepted(self, gate):
        assert gate.check(_symptoms(), [{"id": "anxiety"}]).value == ["anxiety"]
        assert gate.check(_symptoms(), {"id": "anxiety"}).value == ["anxiety"]

    def test_exclusive_option_cannot_be_combined(self, gate):
        result = gate.check(_symptoms(), ["none", "anxiety"])
        assert result.message == "'None of these' cannot be combined with other options"

    def test_exclusive_option_alone_is_valid(self, gate):
        assert gate.check(_symptoms(), ["none"]).value == ["none"]

    def test_no_exclusive_option_configured(self, gate):
        result = gate.check(_symptoms(exclusive_option=None), ["none", "anxiety"])
        assert result.valid is True

    def test_toggle(self, gate):
        step = _symptoms()
        assert gate.toggle(step, None, "depression") == ["depression"]
        assert gate.toggle(step, ["depression"], "anxiety") == ["anxiety", "depression"]
        assert gate.toggle(step, ["anxiety", "depression"], "none") == ["none"]
        assert gate.toggle(step, ["none"], "anxiety") == ["anxiety"]
        assert gate.toggle(step, ["anxiety"], "anxiety") == []


    def test_toggle_unknown_option(self, gate):
        with pytest.raises(ValidationError, match="Select one of the listed options"):
            gate.toggle(_symptoms(), ["anxiety"], "boredom")

    def test_toggle_ignores_malformed_selection(self, gate):
        assert gate.toggle(_symptoms(), [["anxiety"], "boredom"], "depression") == ["depression"]
        assert gate.toggle(_symptoms(), 7, "anxiety") == ["anxiety"]


# =====================================================================
# Value inputs
# =====================================================================


class TestNumberInput:

    def test_in_range(self, gate):
        result = gate.check(_intensity(), 7)
        assert result.valid is True
        assert result.value == 7
        assert isinstance(result.value, int)

    def test_bounds_are_inclusive(self, gate):
        assert gate.check(_intensity(), 1).valid is True
        assert gate.check(_intensity(), 10).valid is True

    def test_out_of_range(self, gate):
        assert gate.check(_intensity(), 11).message == "Answer must be between 1 and 10"
        assert gate.check(_intensity(), 0).message == "Answer must be between 1 and 10"

    def test_numeric_string_accepted(self, gate):
        assert gate.check(_intensity(), " 8 ").value == 8

    def test_fractional_value_kept(self, gate):
        assert gate.check(_intensity(), 7.5).value == 7.5

    def test_not_a_number(self, gate):
        assert gate.check(_intensity(), "abc").message == "Enter a number between 1 and 10"
        assert gate.check(_intensity(), None).message == "Enter a number between 1 and 10"
        assert gate.check(_intensity(), float("nan")).valid is False

    def test_integer_too_large_for_float(self, gate):
        result = gate.check(_intensity(), 10 ** 400)
        assert result.valid is False
        assert result.message == "Enter a number between 1 and 10"

    def test_bool_is_not_a_number(self, gate):
        assert gate.check(_intensity(), True).valid is False

    def test_lower_bound_only(self, gate):
        step = NumberInputStep(id="age", prompt="Age?", min_value=10)
        assert gate.check(step, 5).message == "Answer must be at least 10"
        assert gate.check(step, 500).valid is True

    def test_upper_bound_only(self, gate):
        step = NumberInputStep(id="weight", prompt="Weight?", max_value=200)
        assert gate.check(step, 201).message == "Answer must be at most 200"

    def test_unbounded(self, gate):
        step = NumberInputStep(id="n", prompt="Any number")
        assert gate.check(step, -3).value == -3
        assert gate.check(step, "x").message == "Enter a number to continue"


class TestTextInput:

    def test_trimmed(self, gate):
        step = TextInputStep(id="notes", prompt="Notes")
        assert gate.check(step, "  slept well  ").value == "slept well"

    def test_blank_required(self, gate):
        step = TextInputStep(id="notes", prompt="Notes")
        assert gate.check(step, "   ").message == "Enter a response to continue"

    def test_blank_optional(self, gate):
        step = TextInputStep(id="notes", prompt="Notes", optional=True)
        result = gate.check(step, None)
        assert result.valid is True
        assert result.value == ""

    def test_non_text(self, gate):
        step = TextInputStep(id="notes", prompt="Notes")
        assert gate.check(step, 42).message == "Enter a text answer to continue"


class TestRatingScale:

    def test_in_range(self, gate):
        step = RatingScaleStep(id=8, prompt="Sleep quality?", scale=Scale(min=1, max=10))
        assert gate.check(step, 6).value == 6

    def test_out_of_range_or_fractional(self, gate):
        step = RatingScaleStep(id=8, prompt="Sleep quality?", scale=Scale(min=1, max=10))
        assert gate.check(step, 0).message == "Choose a rating between 1 and 10"
        assert gate.check(step, 5.5).message == "Choose a rating between 1 and 10"

    def test_integer_too_large_for_float(self, gate):
        step = RatingScaleStep(id=8, prompt="Sleep quality?", scale=Scale(min=1, max=5))
        assert gate.check(step, 10 ** 400).message == "Choose a rating between 1 and 5"

    def test_step_granularity(self, gate):
        step = RatingScaleStep(id="r", prompt="Rate", scale=Scale(min=0, max=10, step=2))
        assert gate.check(step, 4).valid is True
        assert gate.check(step, 3).message == "Choose a rating in steps of 2"


# =====================================================================
# Special kinds
# =====================================================================


class TestSpecialKinds:

    def test_capture_completed(self, gate):
        step = MediaCaptureStep(id=13, prompt="Voice analysis")
        assert gate.check(step, "analysis_completed").value is Sentinel.CAPTURE_COMPLETED

    def test_capture_skipped(self, gate):
        step = MediaCaptureStep(id=13, prompt="Voice analysis")
        assert gate.check(step, Sentinel.SKIPPED).value is Sentinel.SKIPPED

    def test_capture_missing(self, gate):
        step = MediaCaptureStep(id=13, prompt="Voice analysis")
        message = gate.check(step, None).message
        assert message == "Complete the voice sample or skip this step to continue"

    def test_capture_cannot_be_skipped(self, gate):
        step = MediaCaptureStep(id=14, prompt="Expression", capture="expression", skippable=False)
        assert gate.check(step, Sentinel.SKIPPED).message == "This step cannot be skipped"

    def test_summary_always_valid(self, gate):
        result = gate.check(SummaryStep(id=15, prompt="Review"), None)
        assert result.valid is True
        assert result.value is None


# =====================================================================
# Overrides
# =====================================================================


class TestOverrides:
    """Step-level validators and messages replace the defaults."""

    def test_error_message_override(self, gate):
        step = _intensity(error_message="Pick a value from 1 to 10")
        assert gate.check(step, 42).message == "Pick a value from 1 to 10"

    def test_custom_validator_replaces_rule(self, gate):
        step = TextInputStep(id="code", prompt="Code", validator=lambda v: v == "1234")
        assert gate.check(step, "1234").valid is True
        result = gate.check(step, "0000")
        assert result.valid is False
        assert result.message == "Please provide a valid answer to continue"

    def test_custom_validator_message(self, gate):
        def weekday(value):
            raise ValidationError("Pick a weekday")

        step = TextInputStep(id="day", prompt="Day", validator=weekday)
        assert gate.check(step, "Sunday").message == "Pick a weekday"

    def test_crashing_validator_is_invalid(self, gate):
        def broken(value):
            raise RuntimeError("bug")

        step = TextInputStep(id="x", prompt="X", validator=broken)
        result = gate.check(step, "anything")
        assert result.valid is False
        assert result.message == "Please provide a valid answer to continue"

    def test_can_advance(self, gate):
        assert gate.can_advance(_intensity(), 5) is True
        assert gate.can_advance(_intensity(), 50) is False
