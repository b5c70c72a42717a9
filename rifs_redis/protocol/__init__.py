"""Protocol module for RifsRedis."""

from .codec import MessageCodec, read_frame
from .messages import Action, Request, Response, new_correlation_id

__all__ = [
    "Action",
    "Request",
    "Response",
    "MessageCodec",
    "read_frame",
    "new_correlation_id",
]
