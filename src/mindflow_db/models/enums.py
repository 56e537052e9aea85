"""Database-level enumerations for flow records."""

import enum


class RecordStatus(str, enum.Enum):
    """Lifecycle states of a persisted flow instance.

    Values match ``mindflow.models.flow.FlowStatus``.

    Transitions:
        active -> completed    (last step committed, submission pending or failed)
        completed -> submitted (answer sink accepted, result written)
        active/completed -> abandoned
    """

    ACTIVE = "active"
    COMPLETED = "completed"
    SUBMITTED = "submitted"
    ABANDONED = "abandoned"
