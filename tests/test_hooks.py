"""Side-effect hook tests — crisis keywords, low mood support and the runner."""

import pytest

from mindflow.hooks import (
    CrisisKeywordDetector,
    HookRunner,
    LowMoodSupportSuggester,
    SideEffectHook,
)
from mindflow.models.answer import MoodAnswer
from mindflow.models.flow import SideEffect
from mindflow.models.schema import CrisisKeywords, SupportResource
from mindflow.models.step import MoodSelectionStep, Option, TextInputStep

NOTES = TextInputStep(id="notes", prompt="Anything else on your mind?")
MOOD = MoodSelectionStep(
    id="mood",
    prompt="How are you feeling?",
    options=[Option(id="sad", label="Sad"), Option(id="calm", label="Calm")],
)

RESOURCES = [
    SupportResource(id="text", name="Crisis Text Line", number="741741",
                    description="Text HOME", type="text", keyword="HOME", priority=2),
    SupportResource(id="lifeline", name="988 Lifeline", number="988",
                    description="24/7 support", priority=1),
]


# =====================================================================
# CrisisKeywordDetector
# =====================================================================


class TestCrisisKeywordDetector:

    def test_matches_case_insensitively(self):
        detector = CrisisKeywordDetector()
        assert detector.matches("Some days I WANT TO DIE") == ["want to die"]

    def test_no_match(self):
        detector = CrisisKeywordDetector()
        assert detector.matches("I died laughing at that film") == []

    @pytest.mark.parametrize("text, expected", [
        ("I want to hurt myself", ["hurt myself"]),
        ("I want to hurt   myself", ["hurt   myself"]),
        ("hurtmyself", ["hurtmyself"]),
        ("I could kill myself", ["kill myself"]),
        ("thoughts of suicide", ["suicide"]),
        ("Everything feels HOPELESS", ["hopeless"]),
        ("I feel worthless", ["worthless"]),
        ("hopeless and worthless", ["hopeless", "worthless"]),
    ])
    def test_default_terms(self, text, expected):
        assert CrisisKeywordDetector().matches(text) == expected

    def test_terms_need_word_boundaries(self):
        assert CrisisKeywordDetector().matches("hopelessly romantic") == []

    def test_raises_active_notice_with_resources(self):
        detector = CrisisKeywordDetector(resources=RESOURCES)
        effects = detector.on_answer_committed(NOTES, "I feel suicidal", {})
        assert len(effects) == 1
        assert effects[0].active is True
        assert effects[0].matched_terms == ["suicidal"]
        assert [r["id"] for r in effects[0].resources] == ["lifeline", "text"], (
            "Resources are ordered by priority"
        )

    def test_clean_text_reports_inactive(self):
        effects = CrisisKeywordDetector().on_answer_committed(NOTES, "A good day", {})
        assert [e.active for e in effects] == [False]

    def test_ignores_other_kinds(self):
        assert CrisisKeywordDetector().on_answer_committed(MOOD, "suicide", {}) == []

    def test_from_config(self):
        config = CrisisKeywords(patterns=[r"\bgive up\b"], message="Help is here.")
        detector = CrisisKeywordDetector.from_config(config)
        effects = detector.on_answer_committed(NOTES, "I just want to give up", {})
        assert effects[0].message == "Help is here."
        assert detector.matches("I want to die") == [], "Custom patterns replace defaults"


# =====================================================================
# LowMoodSupportSuggester
# =====================================================================


class TestLowMoodSupportSuggester:

    def test_low_mood_is_active(self):
        effects = LowMoodSupportSuggester().on_answer_committed(
            MOOD, MoodAnswer(id="sad", label="Sad"), {},
        )
        assert effects[0].kind == "support_resources"
        assert effects[0].active is True
        assert effects[0].message

    def test_mood_as_dict_or_id(self):
        suggester = LowMoodSupportSuggester(mood_ids=["calm"])
        assert suggester.on_answer_committed(MOOD, {"id": "calm"}, {})[0].active is True
        assert suggester.on_answer_committed(MOOD, "sad", {})[0].active is False

    def test_ignores_other_kinds(self):
        assert LowMoodSupportSuggester().on_answer_committed(NOTES, "sad", {}) == []


# =====================================================================
# HookRunner
# =====================================================================


class _Broken(SideEffectHook):
    name = "broken"

    def on_answer_committed(self, step, answer, answers):
        raise RuntimeError("hook bug")


class TestHookRunner:

    def test_failing_hook_is_skipped(self):
        runner = HookRunner([_Broken(), CrisisKeywordDetector()])
        effects = runner.run(NOTES, "I want to end it all", {})
        assert [e.kind for e in effects] == ["crisis_resources"]

    def test_inactive_emitted_only_after_active(self):
        runner = HookRunner([CrisisKeywordDetector()])
        assert runner.run(NOTES, "Fine", {}) == []

        runner.run(NOTES, "I want to die", {})
        assert len(runner.active()) == 1

        cleared = runner.run(NOTES, "Fine now", {})
        assert [e.active for e in cleared] == [False]
        assert runner.active() == []

    def test_clear(self):
        runner = HookRunner([LowMoodSupportSuggester()])
        runner.run(MOOD, "sad", {})
        runner.clear()
        assert runner.active() == []

    def test_add(self):
        runner = HookRunner()
        runner.add(LowMoodSupportSuggester())
        assert [h.name for h in runner.hooks] == ["low_mood_support"]

    def test_hook_returning_none_is_tolerated(self):
        class Quiet(SideEffectHook):
            def on_answer_committed(self, step, answer, answers):
                return None

        assert HookRunner([Quiet()]).run(NOTES, "x", {}) == []

    def test_abstract_hook_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            SideEffectHook()

    def test_notices_are_keyed_per_step(self):
        other = TextInputStep(id="more", prompt="More?")
        runner = HookRunner([CrisisKeywordDetector()])
        runner.run(NOTES, "I want to die", {})
        runner.run(other, "self-harm", {})
        assert {e.step_id for e in runner.active()} == {"notes", "more"}
        assert all(isinstance(e, SideEffect) for e in runner.active())
