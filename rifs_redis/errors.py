"""Exception hierarchy shared by the RifsRedis server and client."""


class RifsRedisError(Exception):
    """Base class for every RifsRedis error."""


class ProtocolError(RifsRedisError, ValueError):
    """A payload could not be decoded into a message."""


class StoreClientError(RifsRedisError):
    """Base class for client-side failures."""


class ConnectionClosedError(StoreClientError):
    """The client is not connected, or the connection was lost."""


class RequestTimeoutError(StoreClientError, TimeoutError):
    """No matching response arrived inside the wait window."""

    def __init__(self, correlation_id: str, timeout: float):
        super().__init__(f"no response for {correlation_id} after {timeout:.2f}s")
        self.correlation_id = correlation_id
        self.timeout = timeout
