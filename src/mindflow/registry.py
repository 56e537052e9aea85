"""StepRegistry — ordered, immutable catalogue of step descriptors.

The registry defines canonical step order.  It is read-only after
construction and never raises on lookups: out-of-range indices return
``None`` so the controller can detect end-of-flow.

Usage::

    registry = StepRegistry([
        MoodSelectionStep(id="mood", prompt="How are you feeling?", options=[...]),
        NumberInputStep(id="intensity", prompt="How intense?", min_value=1, max_value=10),
    ], flow_id="mood_checkin")

    registry.get_step(0).id      # "mood"
    registry.get_step(5)         # None
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Sequence

from mindflow.models.schema import FlowDefinition
from mindflow.models.step import StepDescriptor


class StepRegistry:
    """Ordered step descriptors for one flow definition.

    Args:
        steps: step descriptors in canonical order; ids must be unique
        flow_id: identifier of the definition the steps came from
        title: optional display title
    """

    def __init__(
        self,
        steps: Iterable[StepDescriptor],
        *,
        flow_id: str = "adhoc",
        title: str | None = None,
    ) -> None:
        self._steps: tuple[StepDescriptor, ...] = tuple(steps)
        self.flow_id = flow_id
        self.title = title

        self._positions: dict[Any, int] = {}
        for i, step in enumerate(self._steps):
            if step.id in self._positions:
                raise ValueError(f"Duplicate step id {step.id!r} in flow '{flow_id}'")
            self._positions[step.id] = i

        # JSON round-trips turn every key into a string
        self._string_keys: dict[str, Any] = {str(s.id): s.id for s in self._steps}

    @classmethod
    def from_definition(cls, definition: FlowDefinition) -> "StepRegistry":
        """Build a registry from a parsed YAML flow definition."""
        return cls(definition.steps, flow_id=definition.flow_id, title=definition.title)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_step(self, index: int) -> StepDescriptor | None:
        """Return the step at ``index``, or ``None`` when out of range."""
        if 0 <= index < len(self._steps):
            return self._steps[index]
        return None

    def count(self) -> int:
        """Number of steps in the static registry."""
        return len(self._steps)

    def index_of(self, step_id: Any) -> int | None:
        """Registry index of ``step_id``, or ``None`` if unknown."""
        return self._positions.get(step_id)

    def find(self, step_id: Any) -> StepDescriptor | None:
        """Step descriptor for ``step_id``, or ``None`` if unknown."""
        index = self.index_of(step_id)
        return None if index is None else self._steps[index]

    def key_for(self, raw_key: Any) -> Any:
        """Map a persisted (stringified) key back to the typed step id.

        Raises:
            KeyError: if no step has that id.
        """
        if raw_key in self._positions:
            return raw_key
        return self._string_keys[str(raw_key)]

    @property
    def steps(self) -> Sequence[StepDescriptor]:
        return self._steps

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[StepDescriptor]:
        return iter(self._steps)

    def __repr__(self) -> str:
        return f"<StepRegistry(flow_id={self.flow_id!r}, steps={len(self._steps)})>"
