"""Exception taxonomy for the flow engine.

All flow errors derive from ``ValueError`` so that hosts which already map
``ValueError`` to a client error (the HTTP server does) need no extra wiring.

Most of these never reach the host: the validation gate turns
``ValidationError`` into a failed ``ValidationResult``, the inclusion resolver
swallows ``InclusionPredicateError`` after logging it (fail-open), and the
controller converts ``SubmissionError`` into a failed ``SubmitResult``.
"""


class FlowError(ValueError):
    """Base class for flow engine errors."""


class ValidationError(FlowError):
    """A candidate answer failed the active step's rule.

    Custom step validators raise this to supply their own user-facing
    message.  ``message`` is always an actionable instruction.
    """

    def __init__(self, message: str, *, step_id=None) -> None:
        super().__init__(message)
        self.message = message
        self.step_id = step_id


class SubmissionError(FlowError):
    """The answer sink rejected or failed to receive the completed answers."""

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class InclusionPredicateError(FlowError):
    """A conditional-inclusion predicate raised while being evaluated."""

    def __init__(self, step_id, cause: Exception) -> None:
        super().__init__(f"Inclusion predicate for step {step_id!r} failed: {cause!r}")
        self.step_id = step_id
        self.cause = cause


class BoundaryError(FlowError):
    """A persisted cursor points outside the flow's effective path."""
