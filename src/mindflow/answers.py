"""AnswerStore — the single owner of committed answers for one flow instance.

Keys are step ids; values are answers shaped per step kind (see
``mindflow.models.answer``).  A key exists only once the user has reached and
committed that step; re-committing overwrites, never appends.

The store is created empty at flow start, mutated only through the flow
controller's commit path, and cleared when the answers are accepted by the
answer sink or the flow is abandoned.
"""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from pydantic import BaseModel


def to_jsonable(value: Any) -> Any:
    """Convert an answer into a JSON-safe value (models → dict, enums → value)."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


class AnswerStore:
    """Mapping of step id → committed answer."""

    def __init__(self, initial: Mapping[Any, Any] | None = None) -> None:
        self._answers: dict[Any, Any] = dict(initial or {})

    def commit(self, step_id: Any, value: Any) -> None:
        """Record ``value`` for ``step_id``, overwriting any previous answer."""
        self._answers[step_id] = value

    def get(self, step_id: Any, default: Any = None) -> Any:
        return self._answers.get(step_id, default)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._answers)

    def view(self) -> Mapping[Any, Any]:
        """Read-only view over a copy; later commits do not leak into it."""
        return MappingProxyType(dict(self._answers))

    def clear(self) -> None:
        self._answers.clear()

    def to_json(self) -> dict[str, Any]:
        """JSON-safe dict keyed by ``str(step_id)``."""
        return {str(k): to_jsonable(v) for k, v in self._answers.items()}

    def __repr__(self) -> str:
        return f"AnswerStore({self._answers!r})"
