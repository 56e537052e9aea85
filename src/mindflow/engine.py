"""FlowController — the state machine that drives one stepped flow instance.

The controller composes the registry, answer store, inclusion resolver,
validation gate and side-effect hooks.  Every user action goes through it:

    flow = create_flow(registry, hooks=[CrisisKeywordDetector()])
    flow.select("happy")          # mood step auto-advances
    flow.stage_answer(7)          # number step waits for continue
    flow.next()
    ...
    if flow.status is FlowStatus.COMPLETED:
        await flow.submit()

States:
    active     cursor sits on an included step (``AtStep(i)``)
    completed  every effective step committed; answers await submission
    submitted  the answer sink accepted the answers; store cleared
    abandoned  previous from the first step, or explicit exit; store cleared

Each commit runs in a fixed order: validate the staged candidate, write
it to the answer store, run the side-effect hooks against the updated
store, then resolve the next effective step.  Hooks therefore always see
fully committed state.

The controller is synchronous apart from :meth:`submit`.  Nothing in here
raises into the host for ordinary user input: rejected input comes back as
a ``"rejected"`` :class:`TransitionResult` and actions on a closed flow as
``"ignored"``.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping, Union

from mindflow.answers import AnswerStore
from mindflow.constants import AUTO_ADVANCE_KINDS, TERMINAL
from mindflow.errors import BoundaryError, SubmissionError, ValidationError
from mindflow.hooks import HookRunner, SideEffectHook
from mindflow.inclusion import InclusionResolver
from mindflow.models.answer import MoodAnswer, Sentinel
from mindflow.models.flow import (
    Direction,
    FlowSnapshot,
    FlowState,
    FlowStatus,
    SideEffect,
    StepPayload,
    SubmitResult,
    TransitionResult,
    ValidationResult,
)
from mindflow.models.step import (
    MediaCaptureStep,
    MultipleChoiceStep,
    NumberInputStep,
    RatingScaleStep,
    StepDescriptor,
    TextInputStep,
)
from mindflow.registry import StepRegistry
from mindflow.validation import ValidationGate

logger = logging.getLogger(__name__)

# Receives a read-only view of the answers; may be sync or async.  Returning
# None counts as success.
CompletionCallback = Callable[
    [Mapping[Any, Any]],
    Union[SubmitResult, bool, None, Awaitable[Union[SubmitResult, bool, None]]],
]
TransitionListener = Callable[[TransitionResult], None]


def to_payload(step: StepDescriptor) -> StepPayload:
    """Flatten a step descriptor into the payload hosts render."""
    payload = StepPayload(
        step_id=step.id,
        kind=step.kind,
        prompt=step.prompt,
        subtitle=step.subtitle,
        auto_advance=step.kind in AUTO_ADVANCE_KINDS,
    )

    options = getattr(step, "options", None)
    if options is not None:
        payload.options = [o.model_dump(exclude_none=True) for o in options]

    if isinstance(step, MultipleChoiceStep):
        payload.optional = step.optional
        exclusive = step.exclusive_option
        if exclusive is not None and any(o.id == exclusive for o in step.options):
            payload.metadata = {"exclusive_option": exclusive}

    elif isinstance(step, NumberInputStep):
        payload.constraints = {
            "min": step.min_value,
            "max": step.max_value,
            "default": step.default_value,
            "unit": step.unit,
        }

    elif isinstance(step, RatingScaleStep):
        payload.constraints = step.scale.model_dump()

    elif isinstance(step, TextInputStep):
        payload.optional = step.optional
        if step.placeholder:
            payload.metadata = {"placeholder": step.placeholder}

    elif isinstance(step, MediaCaptureStep):
        payload.optional = step.skippable
        payload.metadata = {"capture": step.capture, "skippable": step.skippable}

    return payload


def _revive(step: StepDescriptor, raw: Any) -> Any:
    """Turn a JSON-decoded answer back into its in-memory shape."""
    if step.kind == "mood_selection" and isinstance(raw, dict):
        return MoodAnswer(**raw)
    if step.kind == "media_capture" and isinstance(raw, str):
        return Sentinel(raw)
    return raw


class FlowController:
    """Drives one instance of a stepped flow.

    Args:
        registry: the static step catalogue
        flow_id: instance identifier; defaults to the registry's flow id
        hooks: side-effect hooks run after every commit
        gate: validation gate (a default one is built when omitted)
    """

    def __init__(
        self,
        registry: StepRegistry,
        *,
        flow_id: str | None = None,
        hooks: Iterable[SideEffectHook] | None = None,
        gate: ValidationGate | None = None,
    ) -> None:
        self._registry = registry
        self.flow_id = flow_id or registry.flow_id
        self._answers = AnswerStore()
        self._gate = gate or ValidationGate()
        self._resolver = InclusionResolver(registry)
        self._hooks = HookRunner(hooks)
        self._listeners: list[TransitionListener] = []
        self._on_complete: CompletionCallback | None = None

        self._status = FlowStatus.ACTIVE
        self._direction = Direction.FORWARD
        self._staged: Any = None
        self._validation: ValidationResult | None = None

        start = self._resolver.first_effective_index(self._answers.view())
        if start == TERMINAL:
            # Nothing to ask; the flow is complete from the outset
            self._position = registry.count()
            self._status = FlowStatus.COMPLETED
        else:
            self._enter(start)

    # ==================================================================
    # Resume
    # ==================================================================

    @classmethod
    def restore(
        cls,
        registry: StepRegistry,
        snapshot: FlowSnapshot,
        *,
        flow_id: str | None = None,
        hooks: Iterable[SideEffectHook] | None = None,
        gate: ValidationGate | None = None,
    ) -> "FlowController":
        """Rebuild a controller from a persisted snapshot.

        Side-effect hooks are replayed over the restored answers of an open
        flow so that notices still in force reappear.

        Raises:
            BoundaryError: if the snapshot references an unknown step or
                its cursor lies outside the effective path.
        """
        flow = cls(registry, flow_id=flow_id or snapshot.flow_id, hooks=hooks, gate=gate)

        answers: dict[Any, Any] = {}
        for raw_key, raw in snapshot.answers.items():
            try:
                key = registry.key_for(raw_key)
            except KeyError:
                raise BoundaryError(
                    f"Snapshot answer for unknown step {raw_key!r} in flow '{registry.flow_id}'"
                ) from None
            answers[key] = _revive(registry.find(key), raw)
        flow._answers = AnswerStore(answers)

        view = flow._answers.view()
        if snapshot.status in (FlowStatus.ACTIVE, FlowStatus.COMPLETED):
            for step in registry:
                if step.id in view:
                    flow._hooks.run(step, view[step.id], view)

        flow._status = snapshot.status
        if snapshot.status is FlowStatus.ACTIVE:
            index = flow._resolver.registry_index_for(snapshot.current_index, view)
            if index is None:
                raise BoundaryError(
                    f"Cursor {snapshot.current_index} is outside the effective path "
                    f"of flow '{registry.flow_id}'"
                )
            flow._enter(index)
        else:
            flow._position = registry.count()
            flow._staged = None

        logger.debug(
            "Restored flow %s at position %d (%s)",
            flow.flow_id, flow.current_index, flow._status.value,
        )
        return flow

    def to_record(self) -> FlowSnapshot:
        """Serialisable ``{flow_id, current_index, answers, status}`` layout."""
        return FlowSnapshot(
            flow_id=self.flow_id,
            current_index=self.current_index,
            answers=self._answers.to_json(),
            status=self._status,
        )

    # ==================================================================
    # Read-only views
    # ==================================================================

    @property
    def registry(self) -> StepRegistry:
        return self._registry

    @property
    def status(self) -> FlowStatus:
        return self._status

    @property
    def staged(self) -> Any:
        """Candidate answer staged for the current step (not committed)."""
        return self._staged

    @property
    def last_validation(self) -> ValidationResult | None:
        return self._validation

    @property
    def current_index(self) -> int:
        """0-based position of the cursor within the effective path."""
        return self._resolver.effective_position(self._position, self._answers.view())

    @property
    def state(self) -> FlowState:
        step = self.current_step()
        return FlowState(
            flow_id=self.flow_id,
            current_index=self.current_index,
            registry_index=self._position,
            step_id=step.id if step is not None else None,
            direction=self._direction,
            is_terminal=step is None or step.kind == "summary",
            status=self._status,
        )

    def current_step(self) -> StepDescriptor | None:
        """The active step, or ``None`` once the flow is closed."""
        if self._status is not FlowStatus.ACTIVE:
            return None
        return self._registry.get_step(self._position)

    def current_payload(self) -> StepPayload | None:
        step = self.current_step()
        return None if step is None else to_payload(step)

    def snapshot(self) -> Mapping[Any, Any]:
        """Read-only view of the committed answers."""
        return self._answers.view()

    def notices(self) -> list[SideEffect]:
        """Side-effect notices currently in force."""
        return self._hooks.active()

    def progress(self) -> float:
        """Fraction of the flow done, in [0, 1].

        ``n / (n + r)`` where ``n`` is the 1-based effective position and
        ``r`` the number of static registry steps after the cursor.
        Excluded steps behind the cursor drop out of ``n``, steps ahead are
        counted until they are resolved, so moving forward never lowers the
        value.
        """
        if self._status in (FlowStatus.COMPLETED, FlowStatus.SUBMITTED):
            return 1.0
        if self._status is FlowStatus.ABANDONED:
            return 0.0
        n = self.current_index + 1
        remaining = self._registry.count() - self._position - 1
        return n / (n + remaining)

    # ==================================================================
    # Staging
    # ==================================================================

    def stage_answer(self, candidate: Any) -> ValidationResult:
        """Stage ``candidate`` for the current step without committing it."""
        step = self.current_step()
        if step is None:
            return ValidationResult(
                valid=False, message="This flow is no longer accepting answers",
            )
        self._staged = candidate
        self._validation = self._gate.check(step, candidate)
        return self._validation

    def select(self, candidate: Any) -> TransitionResult:
        """Stage a selection; auto-advancing kinds move on when it is valid."""
        step = self.current_step()
        if step is None:
            return self._emit("ignored")

        result = self.stage_answer(candidate)
        if not result.valid:
            return self._emit("rejected", validation=result)
        if step.kind in AUTO_ADVANCE_KINDS:
            return self.next()
        return self._emit("staged", validation=result)

    def toggle_option(self, option_id: str) -> TransitionResult:
        """Toggle one option of a multiple-choice step.

        The exclusive option ("none") clears every other selection and
        any other option clears it.  An unknown option id is rejected.
        """
        step = self.current_step()
        if step is None:
            return self._emit("ignored")
        if not isinstance(step, MultipleChoiceStep):
            return self._emit(
                "rejected",
                validation=ValidationResult(
                    valid=False,
                    step_id=step.id,
                    message="This question takes a single answer",
                    request_focus=True,
                ),
            )

        try:
            selection = self._gate.toggle(step, self._staged, option_id)
        except ValidationError as exc:
            return self._emit(
                "rejected",
                validation=ValidationResult(
                    valid=False, step_id=step.id, message=exc.message, request_focus=True,
                ),
            )
        result = self.stage_answer(selection)
        return self._emit("staged", validation=result)

    # ==================================================================
    # Navigation
    # ==================================================================

    def next(self) -> TransitionResult:
        """Validate, commit, run hooks, then move to the next effective step.

        Reaching the end of the effective path moves the flow to
        ``completed``; call :meth:`submit` to hand the answers over.
        """
        step = self.current_step()
        if step is None:
            return self._emit("ignored")

        result = self._gate.check(step, self._staged)
        self._validation = result
        if not result.valid:
            logger.debug("Flow %s: step %r rejected: %s", self.flow_id, step.id, result.message)
            return self._emit("rejected", validation=result)

        effects: list[SideEffect] = []
        if step.kind != "summary":
            self._answers.commit(step.id, result.value)
            effects = self._hooks.run(step, result.value, self._answers.view())

        self._direction = Direction.FORWARD
        target = self._resolver.next_effective_index(
            self._position, Direction.FORWARD, self._answers.view(),
        )
        if target == TERMINAL:
            self._position = self._registry.count()
            self._staged = None
            self._status = FlowStatus.COMPLETED
            logger.info("Flow %s completed with %d answers", self.flow_id, len(self._answers))
            return self._emit("completed", validation=result, side_effects=effects)

        self._enter(target)
        return self._emit("moved", validation=result, side_effects=effects)

    def previous(self) -> TransitionResult:
        """Move back to the previous effective step; exits from the first one.

        Going back never validates and never touches the answer store.
        """
        if self.current_step() is None:
            return self._emit("ignored")

        target = self._resolver.next_effective_index(
            self._position, Direction.BACKWARD, self._answers.view(),
        )
        if target == self._position:
            return self.exit()

        self._direction = Direction.BACKWARD
        self._enter(target)
        return self._emit("moved")

    def skip(self) -> TransitionResult:
        """Commit the "skipped" sentinel for a skippable capture step."""
        step = self.current_step()
        if step is None:
            return self._emit("ignored")
        if not isinstance(step, MediaCaptureStep) or not step.skippable:
            return self._emit(
                "rejected",
                validation=ValidationResult(
                    valid=False,
                    step_id=step.id,
                    message="This step cannot be skipped",
                    request_focus=True,
                ),
            )
        self._staged = Sentinel.SKIPPED
        return self.next()

    def complete_capture(self) -> TransitionResult:
        """Record a finished capture/analysis and advance."""
        step = self.current_step()
        if step is None:
            return self._emit("ignored")
        self._staged = Sentinel.CAPTURE_COMPLETED
        return self.next()

    def exit(self) -> TransitionResult:
        """Abandon the flow and discard its answers.

        A completed flow is left alone: its answers are pending submission
        and stay available to :meth:`submit` until delivered.
        """
        if self._status is not FlowStatus.ACTIVE:
            return self._emit("ignored")

        self._status = FlowStatus.ABANDONED
        self._answers.clear()
        self._hooks.clear()
        self._staged = None
        self._validation = None
        self._direction = Direction.BACKWARD
        logger.info("Flow %s abandoned", self.flow_id)
        return self._emit("exited", direction=Direction.BACKWARD)

    # ==================================================================
    # Submission
    # ==================================================================

    def on_complete(self, callback: CompletionCallback) -> None:
        """Register the answer sink invoked by :meth:`submit`."""
        self._on_complete = callback

    def on_transition(self, listener: TransitionListener) -> None:
        """Register a listener called with every :class:`TransitionResult`."""
        self._listeners.append(listener)

    async def submit(self) -> SubmitResult:
        """Hand the completed answers to the registered callback.

        On success the answer store is cleared and the flow becomes
        ``submitted``.  On failure the answers are kept and the flow stays
        ``completed`` so the same snapshot can be retried.
        """
        if self._status is FlowStatus.SUBMITTED:
            return SubmitResult(ok=True)
        if self._status is not FlowStatus.COMPLETED:
            return SubmitResult(ok=False, error="Finish the flow before submitting", retryable=False)
        if self._on_complete is None:
            return SubmitResult(ok=False, error="No answer sink is registered", retryable=False)

        try:
            outcome = self._on_complete(self.snapshot())
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except SubmissionError as exc:
            result = SubmitResult(ok=False, error=str(exc), retryable=exc.retryable)
        except Exception:
            logger.warning("Answer sink raised for flow %s", self.flow_id, exc_info=True)
            result = SubmitResult(
                ok=False,
                error="Your answers could not be sent. Please try again.",
                retryable=True,
            )
        else:
            if isinstance(outcome, SubmitResult):
                result = outcome
            else:
                result = SubmitResult(ok=outcome is None or bool(outcome), retryable=True)

        if result.ok:
            self._answers.clear()
            self._hooks.clear()
            self._status = FlowStatus.SUBMITTED
            logger.info("Flow %s submitted", self.flow_id)
        else:
            logger.warning("Submission of flow %s failed: %s", self.flow_id, result.error)
        return result

    # ==================================================================
    # Internal helpers
    # ==================================================================

    def _enter(self, index: int) -> None:
        """Move the cursor and pre-stage the step's existing answer."""
        self._position = index
        self._validation = None
        step = self._registry.get_step(index)
        if step.id in self._answers:
            self._staged = self._answers.get(step.id)
        elif isinstance(step, NumberInputStep) and step.default_value is not None:
            value = step.default_value
            self._staged = int(value) if float(value).is_integer() else value
        else:
            self._staged = None

    def _emit(
        self,
        outcome: str,
        *,
        direction: Direction | None = None,
        validation: ValidationResult | None = None,
        side_effects: list[SideEffect] | None = None,
    ) -> TransitionResult:
        step = self.current_step()
        result = TransitionResult(
            outcome=outcome,
            direction=direction or self._direction,
            current_index=self.current_index,
            step_id=step.id if step is not None else None,
            progress=self.progress(),
            validation=validation,
            side_effects=side_effects or [],
        )
        for listener in self._listeners:
            try:
                listener(result)
            except Exception:
                logger.warning("Transition listener failed for flow %s", self.flow_id, exc_info=True)
        return result

    def __repr__(self) -> str:
        return (
            f"<FlowController(flow_id={self.flow_id!r}, status={self._status.value}, "
            f"index={self.current_index})>"
        )


def create_flow(
    registry: StepRegistry | Iterable[StepDescriptor],
    *,
    flow_id: str | None = None,
    hooks: Iterable[SideEffectHook] | None = None,
) -> FlowController:
    """Build a controller positioned at the first effective step.

    ``registry`` may be a :class:`StepRegistry` or a plain list of step
    descriptors.
    """
    if not isinstance(registry, StepRegistry):
        registry = StepRegistry(registry, flow_id=flow_id or "adhoc")
    return FlowController(registry, flow_id=flow_id, hooks=hooks)
