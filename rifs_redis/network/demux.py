"""
Response Demultiplexer Module

Routes each incoming response to the caller waiting for it, keyed by
correlation id. A client owns one demultiplexer per connection, so any
number of requests can be in flight without attaching a reader per call.
"""

import asyncio
import logging
from typing import Dict, Tuple

from ..protocol.messages import Request, Response

logger = logging.getLogger(__name__)


class ResponseDemultiplexer:
    """
    Map of correlation id -> pending waiter.

    Every waiter is removed exactly once: when a matching response
    resolves it, when its caller discards it (timeout or cancellation),
    or when fail_all() tears the connection down.
    """

    def __init__(self):
        self._pending: Dict[str, Tuple[Request, asyncio.Future]] = {}

    def register(self, request: Request) -> asyncio.Future:
        """
        Register a waiter for the response to a request.

        Args:
            request: The request about to be sent

        Returns:
            Future resolved with the matching Response

        Raises:
            ValueError: If the correlation id is already pending
        """
        if request.correlation_id in self._pending:
            raise ValueError(f"correlation id already pending: {request.correlation_id}")

        future = asyncio.get_running_loop().create_future()
        self._pending[request.correlation_id] = (request, future)
        return future

    def dispatch(self, response: Response) -> bool:
        """
        Resolve the waiter matching a response.

        Both the correlation id and the action must match. A response
        that matches nothing leaves every waiter untouched.

        Returns:
            True if a waiter was resolved, False otherwise
        """
        entry = self._pending.get(response.correlation_id)
        if entry is None:
            return False

        request, future = entry
        if not response.matches(request):
            logger.debug(
                f"Action mismatch for {response.correlation_id}: "
                f"expected {request.action.value}, got {response.action.value}"
            )
            return False

        del self._pending[response.correlation_id]
        if not future.done():
            future.set_result(response)
        return True

    def discard(self, correlation_id: str) -> None:
        """Remove a waiter without resolving it."""
        entry = self._pending.pop(correlation_id, None)
        if entry is not None and not entry[1].done():
            entry[1].cancel()

    def fail_all(self, exc: BaseException) -> None:
        """Fail every pending waiter with exc and forget them."""
        pending, self._pending = self._pending, {}
        for _, future in pending.values():
            if not future.done():
                future.set_exception(exc)

    def pending(self) -> int:
        """Number of outstanding waiters."""
        return len(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, correlation_id: str) -> bool:
        return correlation_id in self._pending
