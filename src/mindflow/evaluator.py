"""ConditionalEvaluator — evaluates declarative inclusion predicates.

Steps loaded from YAML cannot carry Python callables, so their conditional
inclusion is written as a list of predicates under ``include_when``::

    include_when:
      - {step: 9, op: eq, value: "yes"}

The inclusion resolver calls :meth:`evaluate` with the current answers; all
predicates must hold (AND).  An empty list always evaluates true.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping

from pydantic import BaseModel

from mindflow.models.step import Predicate

logger = logging.getLogger(__name__)


class ConditionalEvaluator:
    """Evaluates predicate lists against a flow's committed answers."""

    def evaluate(self, predicates: Iterable[Predicate], answers: Mapping[Any, Any]) -> bool:
        """Return True if every predicate holds for ``answers``.

        Args:
            predicates: the step's ``include_when`` list
            answers: committed answers keyed by step id

        Returns:
            True when all predicates pass (vacuously True for an empty list).
        """
        return all(self._eval_predicate(pred, answers) for pred in predicates)

    # ------------------------------------------------------------------
    # Predicate evaluation
    # ------------------------------------------------------------------

    def _eval_predicate(self, pred: Predicate, answers: Mapping[Any, Any]) -> bool:
        """Evaluate a single predicate against the answers mapping.

        If the referenced step has not been answered yet, the predicate
        evaluates to False.
        """
        answer = answers.get(pred.step)
        if answer is None:
            return False

        # Drill into structured answers (e.g. the ``id`` of a mood answer)
        if pred.field is not None:
            if isinstance(answer, BaseModel):
                answer = getattr(answer, pred.field, None)
            elif isinstance(answer, dict):
                answer = answer.get(pred.field)
            else:
                return False
            if answer is None:
                return False

        return self._compare(pred.op, answer, pred.value)

    @staticmethod
    def _compare(op: str, answer: Any, value: Any) -> bool:
        """Apply an operator to an answer and an expected value.

        Handles type coercion for numeric comparisons (answers from YAML
        or user input may be strings).
        """
        if op == "eq":
            return answer == value

        if op == "ne":
            return answer != value

        # --- Numeric comparisons ---
        if op in ("lt", "le", "gt", "ge", "between"):
            try:
                ans_num = float(answer)
            except (TypeError, ValueError):
                return False

            if op == "lt":
                return ans_num < float(value)
            if op == "le":
                return ans_num <= float(value)
            if op == "gt":
                return ans_num > float(value)
            if op == "ge":
                return ans_num >= float(value)
            if op == "between":
                lo, hi = float(value[0]), float(value[1])
                return lo <= ans_num <= hi

        # --- Collection / string membership ---
        if op == "contains":
            if isinstance(answer, list):
                return value in answer
            return str(value) in str(answer)

        if op == "not_contains":
            if isinstance(answer, list):
                return value not in answer
            return str(value) not in str(answer)

        if op == "contains_any":
            if isinstance(answer, list):
                return any(v in answer for v in value)
            ans_str = str(answer)
            return any(str(v) in ans_str for v in value)

        if op == "contains_all":
            if isinstance(answer, list):
                return all(v in answer for v in value)
            ans_str = str(answer)
            return all(str(v) in ans_str for v in value)

        if op == "matches":
            return bool(re.search(str(value), str(answer)))

        logger.warning("Unknown predicate operator: %s", op)
        return False
