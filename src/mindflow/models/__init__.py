"""Public model re-exports for mindflow.

Consumers should import from ``mindflow.models`` rather than reaching into
sub-modules directly.
"""

# --- Answers ---
from mindflow.models.answer import MoodAnswer, Sentinel

# --- Flow / transition contract ---
from mindflow.models.flow import (
    Direction,
    FlowInfo,
    FlowSnapshot,
    FlowState,
    FlowStatus,
    FlowView,
    SideEffect,
    StepPayload,
    SubmitResult,
    TransitionResult,
    ValidationResult,
)

# --- Definitions / constants ---
from mindflow.models.schema import (
    CrisisKeywords,
    FlowDefinition,
    LowMoodConfig,
    SupportResource,
)

# --- Steps ---
from mindflow.models.step import (
    BaseStep,
    MediaCaptureStep,
    MoodSelectionStep,
    MultipleChoiceStep,
    NumberInputStep,
    Option,
    Predicate,
    RatingScaleStep,
    Scale,
    SingleChoiceStep,
    StepDescriptor,
    SummaryStep,
    TextInputStep,
    YesNoStep,
    step_mapper,
)

__all__ = [
    # Answers
    "MoodAnswer",
    "Sentinel",
    # Flow
    "Direction",
    "FlowInfo",
    "FlowSnapshot",
    "FlowState",
    "FlowStatus",
    "FlowView",
    "SideEffect",
    "StepPayload",
    "SubmitResult",
    "TransitionResult",
    "ValidationResult",
    # Definitions
    "CrisisKeywords",
    "FlowDefinition",
    "LowMoodConfig",
    "SupportResource",
    # Steps
    "BaseStep",
    "MediaCaptureStep",
    "MoodSelectionStep",
    "MultipleChoiceStep",
    "NumberInputStep",
    "Option",
    "Predicate",
    "RatingScaleStep",
    "Scale",
    "SingleChoiceStep",
    "StepDescriptor",
    "SummaryStep",
    "TextInputStep",
    "YesNoStep",
    "step_mapper",
]
