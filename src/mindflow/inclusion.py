"""InclusionResolver — computes the effective path through a registry.

A step is part of the effective path when its inclusion predicate holds for
the current answers.  Predicates depend only on answers, never on the
cursor or direction, so repeated resolution is deterministic.

A predicate that raises is treated as "include the step" (fail-open):
excluding a step we cannot evaluate could strand the user with no path
forward.  The failure is logged for diagnostics and never surfaced.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from mindflow.constants import TERMINAL
from mindflow.errors import InclusionPredicateError
from mindflow.evaluator import ConditionalEvaluator
from mindflow.models.flow import Direction
from mindflow.models.step import StepDescriptor
from mindflow.registry import StepRegistry

logger = logging.getLogger(__name__)


class InclusionResolver:
    """Resolves effective-path positions for one registry.

    Args:
        registry: the static step catalogue
        evaluator: evaluator for declarative ``include_when`` predicates
    """

    def __init__(
        self,
        registry: StepRegistry,
        evaluator: ConditionalEvaluator | None = None,
    ) -> None:
        self._registry = registry
        self._evaluator = evaluator or ConditionalEvaluator()

    def is_included(self, step: StepDescriptor, answers: Mapping[Any, Any]) -> bool:
        """Evaluate the step's inclusion predicates against ``answers``.

        Both the programmatic ``include_if`` and the declarative
        ``include_when`` must hold when both are present.
        """
        if not step.is_conditional:
            return True
        try:
            if step.include_if is not None and not step.include_if(answers):
                return False
            return self._evaluator.evaluate(step.include_when, answers)
        except Exception as exc:
            err = InclusionPredicateError(step.id, exc)
            logger.warning("%s; including step (fail-open)", err)
            return True

    def next_effective_index(
        self,
        from_index: int,
        direction: Direction,
        answers: Mapping[Any, Any],
    ) -> int:
        """Return the next included registry index in ``direction``.

        Starts at ``from_index + direction`` and skips excluded steps.
        Advancing forward past the last step yields ``TERMINAL``.  Retreating
        past the start clamps at the first included step, so a caller at the
        first effective step gets ``from_index`` back.
        """
        stride = direction.step
        candidate = from_index + stride
        while 0 <= candidate < self._registry.count():
            step = self._registry.get_step(candidate)
            if self.is_included(step, answers):
                return candidate
            candidate += stride

        if direction is Direction.FORWARD:
            return TERMINAL
        return self.first_effective_index(answers, default=from_index)

    def first_effective_index(self, answers: Mapping[Any, Any], *, default: int = TERMINAL) -> int:
        """Registry index of the first included step, or ``default`` if none."""
        for i, step in enumerate(self._registry):
            if self.is_included(step, answers):
                return i
        return default

    def effective_position(self, registry_index: int, answers: Mapping[Any, Any]) -> int:
        """0-based position of ``registry_index`` within the effective path."""
        return sum(
            1
            for i in range(min(registry_index, self._registry.count()))
            if self.is_included(self._registry.get_step(i), answers)
        )

    def registry_index_for(self, position: int, answers: Mapping[Any, Any]) -> int | None:
        """Registry index of the ``position``-th included step, or ``None``."""
        if position < 0:
            return None
        seen = 0
        for i, step in enumerate(self._registry):
            if self.is_included(step, answers):
                if seen == position:
                    return i
                seen += 1
        return None
