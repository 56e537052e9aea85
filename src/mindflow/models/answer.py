"""Answer value models.

The shape of an answer depends on the step kind:

  - single_choice / yes_no: the selected option id (``str``)
  - multiple_choice: list of option ids, ordered like the step's options
  - number_input / rating_scale: ``int`` or ``float``
  - text_input: ``str``
  - mood_selection: :class:`MoodAnswer`
  - media_capture: a :class:`Sentinel`

Sentinels stand in for normal data when a step has no conventional answer.
"""

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Sentinel(str, enum.Enum):
    """Special recorded values for steps without a conventional answer."""

    SKIPPED = "skipped"
    CAPTURE_COMPLETED = "analysis_completed"


class MoodAnswer(BaseModel):
    """Structured mood-selection answer: {id, emoji, label}."""

    model_config = ConfigDict(frozen=True)

    id: str
    emoji: Optional[str] = None
    label: str
