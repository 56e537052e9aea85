"""Step descriptor models for stepped flows.

Each step kind maps to a specific UI component and answer handling logic:

  Choice-like (answer references ``options`` ids):
    - single_choice: pick one option (auto-advances)
    - multiple_choice: pick one or more options; an exclusive "none" option
      clears the others
    - mood_selection: pick one mood; answer is a structured {id, emoji, label}
    - yes_no: pick "yes" or "no" (auto-advances)

  Value inputs:
    - number_input: numeric entry with optional [min, max] bounds
    - text_input: free text, non-empty unless ``optional``
    - rating_scale: integer on a discrete scale {min, max, step, labels}

  Special:
    - media_capture: voice / expression analysis; answer is a sentinel
    - summary: terminal review step, carries no answer

Descriptors are immutable once built.  Conditional inclusion is expressed
either as a Python callable (``include_if``) or as declarative predicates
(``include_when``) that YAML definitions can carry.

The discriminated ``StepDescriptor`` union uses ``kind`` as its discriminator.
The ``step_mapper`` dict maps kind strings to their Pydantic classes.
"""

from __future__ import annotations

from typing import Any, Annotated, Callable, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mindflow.constants import EXCLUSIVE_OPTION_ID

StepId = Union[int, str]

# Signature of a programmatic inclusion predicate: answers -> include?
InclusionPredicate = Callable[[Mapping[Any, Any]], bool]

# Signature of a per-step validator override: candidate -> valid?
CandidateValidator = Callable[[Any], bool]


# --- Shared option/scale models ---

class Option(BaseModel):
    """A selectable option with an id and display label."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    icon: Optional[str] = None
    color: Optional[str] = None
    emoji: Optional[str] = None
    description: Optional[str] = None


class Scale(BaseModel):
    """Discrete rating scale: ``min``..``max`` in increments of ``step``."""

    model_config = ConfigDict(frozen=True)

    min: int
    max: int
    step: int = 1
    labels: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _chk(self):
        if self.min >= self.max:
            raise ValueError("scale min must be < max")
        if self.step <= 0:
            raise ValueError("scale step must be positive")
        if self.labels and len(self.labels) != 2:
            raise ValueError("scale labels must be [low_label, high_label]")
        return self


class Predicate(BaseModel):
    """A single condition that references a prior answer.

    Operators:
      - eq, ne: equality / inequality
      - lt, le, gt, ge: numeric comparisons
      - between: value is [min, max] inclusive
      - contains, not_contains: substring / element membership
      - contains_any, contains_all: set membership
      - matches: regex match
    """

    model_config = ConfigDict(frozen=True)

    step: StepId
    field: Optional[str] = None
    op: Literal[
        "eq", "ne", "contains", "not_contains", "matches",
        "contains_any", "contains_all",
        "lt", "le", "gt", "ge", "between",
    ]
    value: Any


# --- Base step type ---

class BaseStep(BaseModel):
    """Fields shared by all step kinds."""

    model_config = ConfigDict(frozen=True)

    id: StepId
    prompt: str
    subtitle: Optional[str] = None
    # Declarative inclusion: all predicates must hold (AND)
    include_when: List[Predicate] = Field(default_factory=list)
    # Programmatic inclusion; excluded from serialisation
    include_if: Optional[InclusionPredicate] = Field(default=None, exclude=True, repr=False)
    # Replaces the per-kind default rule when set
    validator: Optional[CandidateValidator] = Field(default=None, exclude=True, repr=False)
    # Overrides the default user-facing message on validation failure
    error_message: Optional[str] = None

    @property
    def is_conditional(self) -> bool:
        """True if inclusion depends on prior answers."""
        return self.include_if is not None or bool(self.include_when)


# --- Choice-like kinds ---

class SingleChoiceStep(BaseStep):
    """Pick exactly one option; auto-advances on selection."""

    kind: Literal["single_choice"] = "single_choice"
    options: List[Option]


class MultipleChoiceStep(BaseStep):
    """Pick one or more options.

    ``exclusive_option`` names the option that cannot be combined with any
    other (typically "none").  ``optional`` allows an empty selection.
    """

    kind: Literal["multiple_choice"] = "multiple_choice"
    options: List[Option]
    optional: bool = False
    exclusive_option: Optional[str] = EXCLUSIVE_OPTION_ID


class MoodSelectionStep(BaseStep):
    """Pick one mood; options carry the emoji recorded with the answer."""

    kind: Literal["mood_selection"] = "mood_selection"
    options: List[Option]


def _yes_no_options() -> List[Option]:
    return [Option(id="yes", label="Yes"), Option(id="no", label="No")]


class YesNoStep(BaseStep):
    """Binary choice; auto-advances on selection."""

    kind: Literal["yes_no"] = "yes_no"
    options: List[Option] = Field(default_factory=_yes_no_options)


# --- Value inputs ---

class NumberInputStep(BaseStep):
    """Numeric entry with optional inclusive bounds."""

    kind: Literal["number_input"] = "number_input"
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    default_value: Optional[float] = None
    unit: Optional[str] = None

    @model_validator(mode="after")
    def _chk(self):
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.min_value >= self.max_value
        ):
            raise ValueError("min_value must be < max_value")
        return self


class TextInputStep(BaseStep):
    """Free-text entry; non-empty after trimming unless ``optional``."""

    kind: Literal["text_input"] = "text_input"
    optional: bool = False
    placeholder: Optional[str] = None


class RatingScaleStep(BaseStep):
    """Integer rating on a discrete scale."""

    kind: Literal["rating_scale"] = "rating_scale"
    scale: Scale


# --- Special kinds ---

class MediaCaptureStep(BaseStep):
    """Voice or facial-expression capture followed by (simulated) analysis.

    The answer is a sentinel: capture completed, or skipped when the user
    invokes the explicit skip action.
    """

    kind: Literal["media_capture"] = "media_capture"
    capture: Literal["voice", "expression"] = "voice"
    skippable: bool = True


class SummaryStep(BaseStep):
    """Terminal review step; reaching it makes the flow terminal."""

    kind: Literal["summary"] = "summary"


# --- Discriminated union of all step kinds ---

StepDescriptor = Annotated[
    Union[
        SingleChoiceStep,
        MultipleChoiceStep,
        MoodSelectionStep,
        YesNoStep,
        NumberInputStep,
        TextInputStep,
        RatingScaleStep,
        MediaCaptureStep,
        SummaryStep,
    ],
    Field(discriminator="kind"),
]

# Maps kind string → Pydantic class for dynamic deserialisation from YAML.
step_mapper = {
    "single_choice": SingleChoiceStep,
    "multiple_choice": MultipleChoiceStep,
    "mood_selection": MoodSelectionStep,
    "yes_no": YesNoStep,
    "number_input": NumberInputStep,
    "text_input": TextInputStep,
    "rating_scale": RatingScaleStep,
    "media_capture": MediaCaptureStep,
    "summary": SummaryStep,
}
