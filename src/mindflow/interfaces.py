"""Abstract interfaces for collaborators outside the flow engine.

The SDK ships no network client for submitted answers: the host decides
where a completed flow goes (an API, a queue, a local file).  The flow
service only depends on the contract below.

Typical integration::

    class HttpAnswerSink(AnswerSink):
        async def submit(self, flow_id, definition_id, answers):
            resp = await client.post("/answers", json={...})
            if resp.status_code >= 500:
                return SubmitResult(ok=False, error="Server unavailable", retryable=True)
            return SubmitResult(ok=True)

    service = FlowService(catalog, sink=HttpAnswerSink())
"""

from abc import ABC, abstractmethod
from typing import Any

from mindflow.models.flow import SubmitResult


class AnswerSink(ABC):
    """Receives the answers of a completed flow.

    Implementations may either return a failed :class:`SubmitResult` or
    raise; both leave the answers in place so the submission can be retried
    with the same snapshot.
    """

    @abstractmethod
    async def submit(
        self,
        flow_id: str,
        definition_id: str,
        answers: dict[str, Any],
    ) -> SubmitResult:
        """Deliver completed answers.

        Parameters
        ----------
        flow_id:
            Host-assigned identifier of the flow instance.
        definition_id:
            Identifier of the flow definition (e.g. ``"assessment"``).
        answers:
            JSON-safe answers keyed by ``str(step_id)``.

        Returns
        -------
        SubmitResult
            ``ok=True`` once the answers are durably accepted.
        """
        ...
