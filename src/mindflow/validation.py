"""ValidationGate — decides whether forward navigation is permitted.

The gate checks a staged candidate answer against the active step and
returns a :class:`ValidationResult` carrying the normalised answer that
would be committed.  Checking never mutates anything, so staging the same
candidate twice yields the same result.

Per-kind default rules:
    single_choice / yes_no   candidate must be an id in ``step.options``
    mood_selection           same, normalised to ``MoodAnswer{id, emoji, label}``
    multiple_choice          non-empty list of known ids (empty allowed when
                             optional); the exclusive option stands alone
    number_input             finite number within declared bounds
    text_input               non-empty after trimming unless optional
    rating_scale             integer in [min, max] at ``step`` granularity
    media_capture            "analysis completed" or "skipped" sentinel
    summary                  always valid; carries no answer

A step-level ``validator`` replaces the default rule.  Failure messages are
actionable instructions; ``step.error_message`` overrides the default text.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable

from mindflow.errors import ValidationError
from mindflow.models.answer import MoodAnswer, Sentinel
from mindflow.models.flow import ValidationResult
from mindflow.models.step import (
    MediaCaptureStep,
    MoodSelectionStep,
    MultipleChoiceStep,
    NumberInputStep,
    RatingScaleStep,
    StepDescriptor,
    TextInputStep,
)

logger = logging.getLogger(__name__)

_GENERIC_MESSAGE = "Please provide a valid answer to continue"


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _as_number(candidate: Any) -> float | None:
    """Parse ``candidate`` as a finite number, or return None."""
    if isinstance(candidate, bool) or candidate is None:
        return None
    try:
        number = float(candidate.strip() if isinstance(candidate, str) else candidate)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


class ValidationGate:
    """Validates staged candidates against step descriptors."""

    def __init__(self) -> None:
        self._rules: dict[str, Callable[[Any, Any], Any]] = {
            "single_choice": self._check_choice,
            "yes_no": self._check_yes_no,
            "mood_selection": self._check_mood,
            "multiple_choice": self._check_multiple,
            "number_input": self._check_number,
            "text_input": self._check_text,
            "rating_scale": self._check_rating,
            "media_capture": self._check_capture,
            "summary": self._check_summary,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check(self, step: StepDescriptor, candidate: Any) -> ValidationResult:
        """Validate ``candidate`` for ``step`` without side effects."""
        if step.validator is not None:
            return self._check_custom(step, candidate)

        try:
            value = self._rules[step.kind](step, candidate)
        except ValidationError as exc:
            return self._reject(step, exc.message)
        return ValidationResult(valid=True, step_id=step.id, value=value)

    def can_advance(self, step: StepDescriptor, candidate: Any) -> bool:
        return self.check(step, candidate).valid

    def toggle(self, step: MultipleChoiceStep, selection: Any, option_id: str) -> list[str]:
        """Return ``selection`` with ``option_id`` toggled.

        Selecting the exclusive option clears every other selection;
        selecting any other option clears the exclusive one.  The result is
        ordered like ``step.options``.

        Raises:
            ValidationError: ``option_id`` is not one of the step's options
        """
        known = [opt.id for opt in step.options]
        if not self._is_id(option_id) or option_id not in known:
            raise ValidationError("Select one of the listed options to continue")
        if isinstance(selection, str):
            selection = [selection]
        elif not isinstance(selection, (list, tuple, set)):
            selection = []
        current = {s for s in selection if self._is_id(s) and s in known}
        exclusive = step.exclusive_option
        if option_id in current:
            current.discard(option_id)
        elif exclusive is not None and option_id == exclusive:
            current = {option_id}
        else:
            current.discard(exclusive)
            current.add(option_id)
        return [opt.id for opt in step.options if opt.id in current]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _reject(step: StepDescriptor, default_message: str) -> ValidationResult:
        return ValidationResult(
            valid=False,
            step_id=step.id,
            message=step.error_message or default_message,
            request_focus=True,
        )

    def _check_custom(self, step: StepDescriptor, candidate: Any) -> ValidationResult:
        """Run the step's override validator; crashes count as invalid."""
        try:
            ok = step.validator(candidate)
        except ValidationError as exc:
            return ValidationResult(
                valid=False, step_id=step.id, message=exc.message, request_focus=True,
            )
        except Exception:
            logger.warning("Validator for step %r raised; rejecting candidate", step.id, exc_info=True)
            return self._reject(step, _GENERIC_MESSAGE)
        if not ok:
            return self._reject(step, _GENERIC_MESSAGE)
        return ValidationResult(valid=True, step_id=step.id, value=candidate)

    @staticmethod
    def _option_id(candidate: Any) -> Any:
        """Accept a bare id, a dict with ``id``, or a model with ``id``."""
        if isinstance(candidate, dict):
            return candidate.get("id")
        return getattr(candidate, "id", candidate)

    @staticmethod
    def _is_id(value: Any) -> bool:
        return isinstance(value, (str, int)) and not isinstance(value, bool)

    # ------------------------------------------------------------------
    # Per-kind rules: return the normalised value or raise ValidationError
    # ------------------------------------------------------------------

    def _check_choice(self, step, candidate) -> str:
        option_id = self._option_id(candidate)
        if option_id is None or option_id == "":
            raise ValidationError("Select an option to continue")
        if not self._is_id(option_id) or option_id not in {opt.id for opt in step.options}:
            raise ValidationError("Select one of the listed options to continue")
        return option_id

    def _check_yes_no(self, step, candidate) -> str:
        if isinstance(candidate, bool):
            candidate = "yes" if candidate else "no"
        option_id = self._option_id(candidate)
        if option_id is None or option_id == "":
            raise ValidationError("Answer yes or no to continue")
        if not self._is_id(option_id) or option_id not in {opt.id for opt in step.options}:
            raise ValidationError("Answer yes or no to continue")
        return option_id

    def _check_mood(self, step: MoodSelectionStep, candidate) -> MoodAnswer:
        option_id = self._option_id(candidate)
        if option_id is None or option_id == "":
            raise ValidationError("Mood is required to continue")
        for opt in step.options:
            if opt.id == option_id:
                return MoodAnswer(id=opt.id, emoji=opt.emoji, label=opt.label)
        raise ValidationError("Select one of the listed moods to continue")

    def _check_multiple(self, step: MultipleChoiceStep, candidate) -> list[str]:
        if candidate is None:
            selected: list[Any] = []
        elif isinstance(candidate, (str, dict)):
            selected = [self._option_id(candidate)]
        else:
            try:
                selected = [self._option_id(c) for c in candidate]
            except TypeError:
                raise ValidationError("Select at least one option to continue")

        if not selected:
            if step.optional:
                return []
            raise ValidationError("Select at least one option to continue")

        known = {opt.id for opt in step.options}
        if any(not self._is_id(s) or s not in known for s in selected):
            raise ValidationError("Select only the listed options to continue")

        exclusive = step.exclusive_option
        if exclusive is not None and exclusive in selected and len(set(selected)) > 1:
            label = next((o.label for o in step.options if o.id == exclusive), exclusive)
            raise ValidationError(f"'{label}' cannot be combined with other options")

        chosen = set(selected)
        return [opt.id for opt in step.options if opt.id in chosen]

    def _check_number(self, step: NumberInputStep, candidate):
        number = _as_number(candidate)
        lo, hi = step.min_value, step.max_value
        if number is None:
            if lo is not None and hi is not None:
                raise ValidationError(
                    f"Enter a number between {_format_number(lo)} and {_format_number(hi)}"
                )
            raise ValidationError("Enter a number to continue")

        if (lo is not None and number < lo) or (hi is not None and number > hi):
            if lo is not None and hi is not None:
                raise ValidationError(
                    f"Answer must be between {_format_number(lo)} and {_format_number(hi)}"
                )
            if lo is not None:
                raise ValidationError(f"Answer must be at least {_format_number(lo)}")
            raise ValidationError(f"Answer must be at most {_format_number(hi)}")

        return int(number) if number.is_integer() else number

    def _check_text(self, step: TextInputStep, candidate) -> str:
        if candidate is None:
            text = ""
        elif isinstance(candidate, str):
            text = candidate
        else:
            raise ValidationError("Enter a text answer to continue")
        if not text.strip() and not step.optional:
            raise ValidationError("Enter a response to continue")
        return text.strip()

    def _check_rating(self, step: RatingScaleStep, candidate) -> int:
        scale = step.scale
        number = _as_number(candidate)
        message = f"Choose a rating between {scale.min} and {scale.max}"
        if number is None or not number.is_integer():
            raise ValidationError(message)
        rating = int(number)
        if rating < scale.min or rating > scale.max:
            raise ValidationError(message)
        if (rating - scale.min) % scale.step != 0:
            raise ValidationError(f"Choose a rating in steps of {scale.step}")
        return rating

    def _check_capture(self, step: MediaCaptureStep, candidate) -> Sentinel:
        try:
            sentinel = Sentinel(candidate)
        except ValueError:
            what = "voice sample" if step.capture == "voice" else "expression capture"
            if step.skippable:
                raise ValidationError(f"Complete the {what} or skip this step to continue")
            raise ValidationError(f"Complete the {what} to continue")
        if sentinel is Sentinel.SKIPPED and not step.skippable:
            raise ValidationError("This step cannot be skipped")
        return sentinel

    def _check_summary(self, step, candidate) -> None:
        return None
