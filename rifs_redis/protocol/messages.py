"""
Protocol Request and Response Definitions

This module defines the two message shapes exchanged between the
RifsRedis client and server.
"""

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Action(Enum):
    """Enumeration of request actions."""
    SET = "SET"
    GET = "GET"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_name(cls, name: str) -> "Action":
        """Map a wire action name to an Action, UNKNOWN if unsupported."""
        if name in (cls.SET.value, cls.GET.value):
            return cls(name)
        return cls.UNKNOWN


def new_correlation_id() -> str:
    """Generate a globally unique correlation identifier."""
    return str(uuid.uuid4())


@dataclass
class Request:
    """
    Represents a client request.

    Attributes:
        action: SET, GET, or UNKNOWN for unsupported actions
        key: The key for the operation
        value: The value for SET operations (empty for GET)
        correlation_id: Token pairing this request with its response
        raw_action: The action name as received on the wire
    """
    action: Action
    key: str = ""
    value: str = ""
    correlation_id: str = field(default_factory=new_correlation_id)
    raw_action: str = ""

    def __post_init__(self):
        if not self.raw_action:
            self.raw_action = self.action.value

    @classmethod
    def set(cls, key: str, value: str) -> "Request":
        """Create a SET request with a fresh correlation id."""
        return cls(action=Action.SET, key=key, value=value)

    @classmethod
    def get(cls, key: str) -> "Request":
        """Create a GET request with a fresh correlation id."""
        return cls(action=Action.GET, key=key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.raw_action,
            "key": self.key,
            "value": self.value,
            "correlationId": self.correlation_id,
        }


@dataclass
class Response:
    """
    Represents a server response.

    Attributes:
        action: SET or GET (unknown actions are answered as GET)
        response: Echo of the stored pair for SET, the value (or None) for GET
        success: True when the action produced a usable value
        correlation_id: Copied from the originating request
    """
    action: Action
    response: Optional[str]
    success: bool
    correlation_id: str

    @classmethod
    def stored(cls, request: Request) -> "Response":
        """Acknowledge a SET with a compact JSON echo of the pair."""
        echo = json.dumps({request.key: request.value}, separators=(",", ":"))
        return cls(Action.SET, echo, True, request.correlation_id)

    @classmethod
    def value_response(cls, request: Request, value: Optional[str]) -> "Response":
        """Answer a GET; success is True iff the key existed."""
        return cls(Action.GET, value, value is not None, request.correlation_id)

    @classmethod
    def unknown_action(cls, request: Request) -> "Response":
        """Failure shape for requests with an unsupported action."""
        return cls(Action.GET, None, False, request.correlation_id)

    def matches(self, request: Request) -> bool:
        """Check whether this response answers the given request."""
        return (
            self.correlation_id == request.correlation_id
            and self.action == request.action
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "response": self.response,
            "success": self.success,
            "correlationId": self.correlation_id,
        }
