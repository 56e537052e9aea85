"""Side-effect hooks — observers that react to committed answers.

Hooks run after an answer is written to the answer store and before the
controller resolves the next step, so they always see fully committed
state.  They never influence navigation: whatever a hook returns or
raises, the transition proceeds.

Two hooks ship with the SDK:

  - CrisisKeywordDetector: free-text answers matching self-harm language
    raise a persistent crisis-resources notice
  - LowMoodSupportSuggester: low-mood selections raise a support-resources
    notice

A hook reports ``active=False`` for a step it has no concern with any
more, which lets the runner clear a notice once the triggering answer is
edited.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping

from mindflow.constants import DEFAULT_CRISIS_PATTERNS, LOW_MOOD_IDS
from mindflow.models.flow import SideEffect
from mindflow.models.schema import CrisisKeywords, LowMoodConfig, SupportResource
from mindflow.models.step import StepDescriptor

logger = logging.getLogger(__name__)


def _resource_dicts(resources: Iterable[SupportResource] | None) -> list[dict]:
    if not resources:
        return []
    ordered = sorted(resources, key=lambda r: r.priority)
    return [r.model_dump(mode="json") for r in ordered]


class SideEffectHook(ABC):
    """Base class for answer observers."""

    name: str = "hook"

    @abstractmethod
    def on_answer_committed(
        self,
        step: StepDescriptor,
        answer: Any,
        answers: Mapping[Any, Any],
    ) -> list[SideEffect]:
        """React to ``answer`` having been committed for ``step``.

        Parameters
        ----------
        step:
            Descriptor of the step that was just committed.
        answer:
            The normalised committed answer.
        answers:
            Read-only view of every committed answer, including this one.

        Returns
        -------
        list[SideEffect]
            Notices to raise (``active=True``) or clear (``active=False``).
            An empty list means the hook has nothing to say about this step.
        """
        ...


class CrisisKeywordDetector(SideEffectHook):
    """Flags self-harm language in free-text answers.

    Args:
        patterns: regular expressions, matched case-insensitively
        message: notice text shown alongside the resources
        resources: crisis lines to surface with the notice
    """

    name = "crisis_keywords"

    def __init__(
        self,
        patterns: Iterable[str] | None = None,
        *,
        message: str | None = None,
        resources: Iterable[SupportResource] | None = None,
    ) -> None:
        raw = list(patterns) if patterns is not None else list(DEFAULT_CRISIS_PATTERNS)
        self._patterns = [re.compile(p, re.IGNORECASE) for p in raw]
        self._message = message or CrisisKeywords(patterns=raw).message
        self._resources = _resource_dicts(resources)

    @classmethod
    def from_config(
        cls,
        config: CrisisKeywords,
        resources: Iterable[SupportResource] | None = None,
    ) -> "CrisisKeywordDetector":
        return cls(config.patterns, message=config.message, resources=resources)

    def matches(self, text: str) -> list[str]:
        """Return the matched fragments of ``text`` (lower-cased, unique)."""
        found: list[str] = []
        for pattern in self._patterns:
            m = pattern.search(text)
            if m and m.group(0).lower() not in found:
                found.append(m.group(0).lower())
        return found

    def on_answer_committed(self, step, answer, answers) -> list[SideEffect]:
        if step.kind != "text_input":
            return []
        matched = self.matches(answer) if isinstance(answer, str) else []
        if matched:
            logger.info("Crisis keywords detected at step %r", step.id)
        return [
            SideEffect(
                kind="crisis_resources",
                step_id=step.id,
                active=bool(matched),
                message=self._message if matched else None,
                matched_terms=matched,
                resources=self._resources if matched else [],
            )
        ]


class LowMoodSupportSuggester(SideEffectHook):
    """Surfaces support resources when a low mood is selected.

    Args:
        mood_ids: mood option ids considered low
        message: notice text
        resources: support lines to surface with the notice
    """

    name = "low_mood_support"

    def __init__(
        self,
        mood_ids: Iterable[str] | None = None,
        *,
        message: str | None = None,
        resources: Iterable[SupportResource] | None = None,
    ) -> None:
        self._mood_ids = frozenset(mood_ids) if mood_ids is not None else LOW_MOOD_IDS
        self._message = message or LowMoodConfig(mood_ids=list(self._mood_ids)).message
        self._resources = _resource_dicts(resources)

    @classmethod
    def from_config(
        cls,
        config: LowMoodConfig,
        resources: Iterable[SupportResource] | None = None,
    ) -> "LowMoodSupportSuggester":
        return cls(config.mood_ids, message=config.message, resources=resources)

    def on_answer_committed(self, step, answer, answers) -> list[SideEffect]:
        if step.kind != "mood_selection":
            return []
        if isinstance(answer, Mapping):
            mood_id = answer.get("id")
        else:
            mood_id = getattr(answer, "id", answer)
        low = mood_id in self._mood_ids
        return [
            SideEffect(
                kind="support_resources",
                step_id=step.id,
                active=low,
                message=self._message if low else None,
                resources=self._resources if low else [],
            )
        ]


class HookRunner:
    """Dispatches hooks in registration order and tracks active notices.

    A failing hook is logged and skipped; the remaining hooks still run.
    """

    def __init__(self, hooks: Iterable[SideEffectHook] | None = None) -> None:
        self._hooks: list[SideEffectHook] = list(hooks or [])
        self._active: dict[tuple[str, Any], SideEffect] = {}

    @property
    def hooks(self) -> list[SideEffectHook]:
        return list(self._hooks)

    def add(self, hook: SideEffectHook) -> None:
        self._hooks.append(hook)

    def run(
        self,
        step: StepDescriptor,
        answer: Any,
        answers: Mapping[Any, Any],
    ) -> list[SideEffect]:
        """Run every hook for one commit.

        Returns the notices raised by this commit plus the clearances of
        notices that were previously active.
        """
        emitted: list[SideEffect] = []
        for hook in self._hooks:
            try:
                effects = hook.on_answer_committed(step, answer, answers)
            except Exception:
                logger.warning(
                    "Side-effect hook %r failed on step %r", hook.name, step.id, exc_info=True,
                )
                continue

            for effect in effects or []:
                key = (effect.kind, effect.step_id)
                if effect.active:
                    self._active[key] = effect
                    emitted.append(effect)
                elif self._active.pop(key, None) is not None:
                    emitted.append(effect)
        return emitted

    def active(self) -> list[SideEffect]:
        """Notices currently raised, in the order they were first raised."""
        return list(self._active.values())

    def clear(self) -> None:
        self._active.clear()
