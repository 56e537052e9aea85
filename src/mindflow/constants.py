"""Flow engine constants shared across the SDK.

These values are referenced by the validation gate, inclusion resolver,
controller and side-effect hooks.  They mirror conventions encoded in the
YAML flow definitions under ``flows/``.

Several constants can be overridden via environment variables so that
deployments can adjust screening behaviour without code changes.
"""

import os

# Sentinel index returned by the inclusion resolver when advancing forward
# past the last included step.
TERMINAL = -1

# Option id that is exclusive within a multiple_choice step: selecting it
# clears every other selection, selecting anything else clears it.
# Overridable via MINDFLOW_EXCLUSIVE_OPTION_ID.
EXCLUSIVE_OPTION_ID = os.getenv("MINDFLOW_EXCLUSIVE_OPTION_ID", "none")

# Mood ids that surface the "support resources available" notice.
# Overridable via MINDFLOW_LOW_MOOD_IDS (comma-separated).
LOW_MOOD_IDS: frozenset[str] = frozenset(
    m.strip()
    for m in os.getenv("MINDFLOW_LOW_MOOD_IDS", "sad,anxious,angry,depressed").split(",")
    if m.strip()
)

# Step kinds that commit and advance as soon as a valid selection is made.
AUTO_ADVANCE_KINDS: set[str] = {"single_choice", "mood_selection", "yes_no"}

# Fallback crisis patterns used when no crisis_keywords.yaml is loaded.
# Matched case-insensitively against free-text answers.
DEFAULT_CRISIS_PATTERNS: list[str] = [
    r"\bsuicid(e|al)\b",
    r"\bkill\s*myself\b",
    r"\bend\s*my\s*life\b",
    r"\bend\s*it\s*all\b",
    r"\bwant\s*to\s*die\b",
    r"\bbetter\s*off\s*dead\b",
    r"\b(hurt|harm|cut)\s*myself\b",
    r"\bself[-\s]*harm\b",
    r"\bno\s*reason\s*to\s*live\b",
    r"\bcan'?t\s*go\s*on\b",
    r"\bhopeless(ness)?\b",
    r"\bworthless(ness)?\b",
]
