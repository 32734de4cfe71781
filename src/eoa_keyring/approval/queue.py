"""
Pending signing request queue.

Requests are consumed exactly once: approve or reject removes them, and
their ids are never accepted again.
"""

from typing import Any, Dict, List, Optional, Union

import structlog

from eoa_keyring.approval.models import KeyringRequest, SubmitRequestResponse
from eoa_keyring.errors import InvalidParametersError, NotFoundError
from eoa_keyring.messaging.events import RequestApprovedEvent, RequestRejectedEvent
from eoa_keyring.monitoring import metrics
from eoa_keyring.signing.dispatcher import SigningDispatcher
from eoa_keyring.state.commit import StateCommitter

logger = structlog.get_logger()


class RequestQueue:
    """Queue of signing requests awaiting approval."""

    def __init__(self, committer: StateCommitter, dispatcher: SigningDispatcher):
        self.committer = committer
        self.dispatcher = dispatcher

    @property
    def _pending(self) -> Dict[str, KeyringRequest]:
        return self.committer.state.pending_requests

    @property
    def sync_approvals(self) -> bool:
        return self.committer.state.use_sync_approvals

    def list_requests(self) -> List[KeyringRequest]:
        """List all pending requests."""
        return list(self._pending.values())

    def find_request(self, request_id: str) -> Optional[KeyringRequest]:
        """Get pending request by ID, or ``None``."""
        return self._pending.get(request_id)

    def is_consumed(self, request_id: str) -> bool:
        """Whether the id belongs to an approved or rejected request."""
        return request_id in self.committer.state.consumed_request_ids

    def get_request(self, request_id: str) -> KeyringRequest:
        """Get pending request by ID. Raises ``NotFoundError`` if absent."""
        request = self.find_request(request_id)
        if request is None:
            raise NotFoundError(f"Request '{request_id}' not found")
        return request

    async def submit_request(
        self,
        request: Union[KeyringRequest, Dict[str, Any]],
    ) -> SubmitRequestResponse:
        """
        Submit a signing request.

        In synchronous mode the request is signed immediately and never
        stored. Otherwise it is queued until approved or rejected.
        """
        if isinstance(request, dict):
            try:
                request = KeyringRequest.from_dict(request)
            except (KeyError, TypeError, AttributeError) as e:
                raise InvalidParametersError(f"Malformed request: {e}") from e

        if self.is_consumed(request.id):
            raise InvalidParametersError(f"Request '{request.id}' was already processed")

        if self.sync_approvals:
            metrics.requests_submitted_total.labels(mode="sync").inc()
            result = self.dispatcher.handle(request.method, request.params)
            logger.info("request_signed_sync", request_id=request.id, method=request.method)
            return SubmitRequestResponse(pending=False, result=result)

        if request.id in self._pending:
            raise InvalidParametersError(f"Request '{request.id}' is already pending")

        async with self.committer.transaction() as state:
            state.pending_requests[request.id] = request

        metrics.requests_submitted_total.labels(mode="async").inc()
        logger.info("request_queued", request_id=request.id, method=request.method)
        return SubmitRequestResponse(pending=True)

    async def approve_request(self, request_id: str) -> Any:
        """
        Sign a pending request and remove it.

        A signing failure leaves the request pending.

        Returns:
            The signing result
        """
        request = self.get_request(request_id)
        result = self.dispatcher.handle(request.method, request.params)

        async with self.committer.transaction() as state:
            del state.pending_requests[request_id]
            state.consumed_request_ids.append(request_id)
        await self.committer.notify(RequestApprovedEvent(request_id, result))

        metrics.requests_approved_total.labels(method=request.method).inc()
        logger.info("request_approved", request_id=request_id, method=request.method)
        return result

    async def reject_request(self, request_id: str) -> None:
        """Remove a pending request without signing."""
        self.get_request(request_id)

        async with self.committer.transaction() as state:
            del state.pending_requests[request_id]
            state.consumed_request_ids.append(request_id)
        await self.committer.notify(RequestRejectedEvent(request_id))

        metrics.requests_rejected_total.inc()
        logger.info("request_rejected", request_id=request_id)


__all__ = ["RequestQueue"]
