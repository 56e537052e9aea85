"""Pydantic models for flow definitions and support reference data.

These models mirror the YAML files under ``flows/``:

  Flow definitions (flows/*.yaml):
    - FlowDefinition: flow id, title, hook names, ordered step list

  Constants (flows/const/):
    - SupportResource: crisis / support line from support_resources.yaml
    - CrisisKeywords: pattern list from crisis_keywords.yaml
    - LowMoodConfig: mood ids that surface support resources
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .step import StepDescriptor


# ---------------------------------------------------------------------------
# Flow definitions: flows/*.yaml
# ---------------------------------------------------------------------------

class FlowDefinition(BaseModel):
    """A complete flow definition loaded from YAML.

    ``hooks`` names the side-effect hooks the catalog attaches to every
    controller built from this definition.  ``scoring`` names the result
    scorer applied on submission (``None`` for flows without one).
    """

    flow_id: str
    title: str
    description: Optional[str] = None
    hooks: List[Literal["crisis_keywords", "low_mood_support"]] = Field(default_factory=list)
    scoring: Optional[Literal["assessment"]] = None
    steps: List[StepDescriptor]


# ---------------------------------------------------------------------------
# Constants: flows/const/*.yaml
# ---------------------------------------------------------------------------

class SupportResource(BaseModel):
    """Crisis or support line shown alongside hook notices."""

    id: str
    name: str
    number: str
    description: str
    type: Literal["voice", "text", "emergency"] = "voice"
    keyword: Optional[str] = None
    priority: int = 99
    country: str = "US"


class CrisisKeywords(BaseModel):
    """Case-insensitive regex patterns that flag self-harm language."""

    patterns: List[str]
    message: str = (
        "If you are having thoughts of hurting yourself, you don't have to go "
        "through this alone. Reach out for immediate help."
    )


class LowMoodConfig(BaseModel):
    """Mood ids that surface the support-resources notice."""

    mood_ids: List[str]
    message: str = "Support resources are available if you'd like to talk to someone."
