"""
RifsRedis: Embedded Key-Value Network Service

A small in-memory key-value server and its asyncio client, talking
newline-delimited JSON over a persistent TCP connection.
"""

__version__ = "1.0.0"
