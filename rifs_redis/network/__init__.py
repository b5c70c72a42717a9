"""Network module for RifsRedis: the store server and its client."""

from .client import StoreClient
from .demux import ResponseDemultiplexer
from .tcp_server import StoreServer, run_server

__all__ = ["StoreClient", "StoreServer", "ResponseDemultiplexer", "run_server"]
