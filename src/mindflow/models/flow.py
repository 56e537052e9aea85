"""Flow and transition models — the contract between the engine and its host.

These models define what the controller returns for each user action.  They
are intentionally decoupled from the ORM models in ``mindflow_db`` so that
hosts never see database internals.

  - ValidationResult: outcome of staging a candidate answer
  - SideEffect: notice emitted by a side-effect hook
  - TransitionResult: outcome of next / previous / select / skip / exit
  - SubmitResult: outcome of handing answers to the answer sink
  - FlowState: the live cursor
  - FlowSnapshot: persisted layout {flow_id, current_index, answers}
  - StepPayload: flattened step for rendering
  - FlowView / FlowInfo: service-level views for API consumers
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FlowStatus(str, enum.Enum):
    """Lifecycle states for a flow instance.

    Transitions:
        active -> completed   (last effective step committed, submission pending)
        completed -> submitted (answer sink accepted the answers)
        active -> abandoned   (previous from the first step, or explicit exit)
    """

    ACTIVE = "active"
    COMPLETED = "completed"
    SUBMITTED = "submitted"
    ABANDONED = "abandoned"


class Direction(str, enum.Enum):
    """Navigation direction; selects the transition animation only."""

    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def step(self) -> int:
        return 1 if self is Direction.FORWARD else -1


class ValidationResult(BaseModel):
    """Outcome of checking a candidate answer against the active step.

    ``value`` is the normalised answer that would be committed.
    ``request_focus`` asks the host to move accessibility focus to the error.
    """

    model_config = ConfigDict(frozen=True)

    valid: bool
    step_id: Any = None
    value: Any = None
    message: Optional[str] = None
    request_focus: bool = False


class SideEffect(BaseModel):
    """A notice emitted by a side-effect hook.

    ``active`` is False when the hook clears a notice it previously raised.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["crisis_resources", "support_resources"]
    step_id: Any
    active: bool
    message: Optional[str] = None
    matched_terms: list[str] = Field(default_factory=list)
    resources: list[dict] = Field(default_factory=list)


class SubmitResult(BaseModel):
    """Outcome of handing completed answers to the answer sink."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    error: Optional[str] = None
    retryable: bool = False


class TransitionResult(BaseModel):
    """Outcome of a navigation action.

    ``outcome``:
      - "moved": cursor moved to another step
      - "staged": candidate staged, waiting for an explicit continue
      - "rejected": validation failed, cursor unchanged
      - "completed": the flow reached its terminal state
      - "exited": the flow was abandoned (previous from first step / exit)
      - "ignored": the flow is closed and accepts no further navigation
    """

    model_config = ConfigDict(frozen=True)

    outcome: Literal["moved", "staged", "rejected", "completed", "exited", "ignored"]
    direction: Optional[Direction] = None
    current_index: Optional[int] = None
    step_id: Any = None
    progress: float = 0.0
    validation: Optional[ValidationResult] = None
    side_effects: list[SideEffect] = Field(default_factory=list)


class FlowState(BaseModel):
    """The live cursor of a flow instance."""

    model_config = ConfigDict(frozen=True)

    flow_id: str
    current_index: int
    registry_index: int
    step_id: Any = None
    direction: Direction = Direction.FORWARD
    is_terminal: bool = False
    status: FlowStatus = FlowStatus.ACTIVE


class FlowSnapshot(BaseModel):
    """Persisted flow layout for resume.

    ``answers`` is keyed by ``str(step_id)`` so it survives a JSON round-trip.
    """

    flow_id: str
    current_index: int = 0
    answers: dict[str, Any] = Field(default_factory=dict)
    status: FlowStatus = FlowStatus.ACTIVE


class StepPayload(BaseModel):
    """Flattened step for host renderers.

    Strips inclusion/validation internals and presents only what the UI
    needs to render the step.
    """

    step_id: Any
    kind: str
    prompt: str
    subtitle: str | None = None
    # [{id, label, icon, color, emoji, description}] for choice-like kinds
    options: list[dict] | None = None
    # {min, max, step, default, unit, labels} for numeric kinds
    constraints: dict | None = None
    optional: bool = False
    auto_advance: bool = False
    # Extra context (e.g. capture mode, exclusive option)
    metadata: dict | None = None


class FlowView(BaseModel):
    """Service step: what the host should show after an action."""

    type: Literal["step", "completed", "submitted", "abandoned"]
    flow_id: str
    definition_id: str
    current_index: int
    progress: float
    step: StepPayload | None = None
    staged: Any = None
    validation: ValidationResult | None = None
    notices: list[SideEffect] = Field(default_factory=list)
    submission: SubmitResult | None = None
    result: dict | None = None


class FlowInfo(BaseModel):
    """Public view of a persisted flow instance."""

    user_id: str
    flow_id: str
    definition_id: str
    status: str
    current_index: int
    created_at: datetime
    updated_at: datetime
