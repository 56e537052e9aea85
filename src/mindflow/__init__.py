"""mindflow — Stepped flow engine for mood check-ins and assessments.

Public API:
    create_flow       — build a FlowController for a registry or step list
    FlowController    — state machine driving one flow instance
    StepRegistry      — ordered, immutable step catalogue
    FlowCatalog       — loads YAML flow definitions and support constants
    FlowService       — database-backed, stateless host for controllers
    AnswerStore       — owner of committed answers
    ValidationGate    — per-kind answer validation
    InclusionResolver — effective-path resolution for conditional steps

Side-effect hooks:
    SideEffectHook          — ABC for answer observers
    CrisisKeywordDetector   — flags self-harm language in free text
    LowMoodSupportSuggester — surfaces support resources for low moods

Collaborators:
    AnswerSink        — ABC for the destination of completed answers
    score_assessment  — wellbeing report for the assessment flow
"""

from mindflow.answers import AnswerStore
from mindflow.catalog import FlowCatalog
from mindflow.engine import FlowController, create_flow
from mindflow.hooks import (
    CrisisKeywordDetector,
    HookRunner,
    LowMoodSupportSuggester,
    SideEffectHook,
)
from mindflow.inclusion import InclusionResolver
from mindflow.interfaces import AnswerSink
from mindflow.models.flow import (
    FlowSnapshot,
    FlowState,
    FlowStatus,
    FlowView,
    SubmitResult,
    TransitionResult,
    ValidationResult,
)
from mindflow.registry import StepRegistry
from mindflow.scoring import AssessmentResult, score_assessment
from mindflow.service import FlowService
from mindflow.validation import ValidationGate

__all__ = [
    # Engine
    "create_flow",
    "FlowController",
    "StepRegistry",
    "FlowCatalog",
    "FlowService",
    "AnswerStore",
    "ValidationGate",
    "InclusionResolver",
    # Hooks
    "SideEffectHook",
    "HookRunner",
    "CrisisKeywordDetector",
    "LowMoodSupportSuggester",
    # Collaborators
    "AnswerSink",
    "AssessmentResult",
    "score_assessment",
    # Models
    "FlowSnapshot",
    "FlowState",
    "FlowStatus",
    "FlowView",
    "SubmitResult",
    "TransitionResult",
    "ValidationResult",
]
