"""
Protocol Codec Module

This module turns Request/Response objects into wire payloads and back.

Wire Format:
    One compact JSON object per message, UTF-8 encoded, terminated by
    a single newline. JSON escapes control characters inside strings,
    so the newline can only ever appear as the message delimiter.

    Request:  {"action":"SET"|"GET","key":..,"value":..,"correlationId":..}\n
    Response: {"action":"SET"|"GET","response":..|null,"success":..,"correlationId":..}\n
"""

import asyncio
import json
from asyncio import StreamReader
from typing import Any, Dict, Union

from ..errors import ProtocolError
from .messages import Action, Request, Response

DELIMITER = b"\n"


class MessageCodec:
    """
    Encoder/decoder for the RifsRedis newline-delimited JSON protocol.

    Decoding is strict about structure (a JSON object carrying string
    `action` and `correlationId` fields) and lenient about content:
    an unsupported action decodes to Action.UNKNOWN so the server can
    still answer it.
    """

    def encode_request(self, request: Request) -> bytes:
        return self._encode(request.to_dict())

    def encode_response(self, response: Response) -> bytes:
        return self._encode(response.to_dict())

    def decode_request(self, data: Union[bytes, str]) -> Request:
        """
        Decode one request payload.

        Args:
            data: A single message, with or without its trailing newline

        Returns:
            The decoded Request

        Raises:
            ProtocolError: If the payload is not a well-formed request
        """
        payload = self._decode(data)
        action = self._require_str(payload, "action")
        correlation_id = self._require_str(payload, "correlationId")
        key = self._optional_str(payload, "key")
        value = self._optional_str(payload, "value")

        return Request(
            action=Action.from_name(action),
            key=key,
            value=value,
            correlation_id=correlation_id,
            raw_action=action,
        )

    def decode_response(self, data: Union[bytes, str]) -> Response:
        """
        Decode one response payload.

        Raises:
            ProtocolError: If the payload is not a well-formed response
        """
        payload = self._decode(data)
        action = Action.from_name(self._require_str(payload, "action"))
        if action == Action.UNKNOWN:
            raise ProtocolError(f"invalid response action: {payload['action']!r}")

        correlation_id = self._require_str(payload, "correlationId")

        response = payload.get("response")
        if response is not None and not isinstance(response, str):
            raise ProtocolError("field 'response' must be a string or null")

        success = payload.get("success")
        if not isinstance(success, bool):
            raise ProtocolError("field 'success' must be a boolean")

        return Response(action, response, success, correlation_id)

    @staticmethod
    def _encode(payload: Dict[str, Any]) -> bytes:
        return json.dumps(payload, separators=(",", ":")).encode("utf-8") + DELIMITER

    @staticmethod
    def _decode(data: Union[bytes, str]) -> Dict[str, Any]:
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ProtocolError("invalid encoding") from exc

        text = data.strip()
        if not text:
            raise ProtocolError("empty message")

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ProtocolError(f"invalid JSON: {exc.msg}") from exc

        if not isinstance(payload, dict):
            raise ProtocolError("message must be a JSON object")
        return payload

    @staticmethod
    def _require_str(payload: Dict[str, Any], name: str) -> str:
        value = payload.get(name)
        if not isinstance(value, str):
            raise ProtocolError(f"field {name!r} must be a string")
        return value

    @staticmethod
    def _optional_str(payload: Dict[str, Any], name: str) -> str:
        value = payload.get(name, "")
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ProtocolError(f"field {name!r} must be a string")
        return value


async def read_frame(reader: StreamReader) -> bytes:
    """
    Read one newline-terminated message from a stream.

    A message longer than the reader's limit is consumed up to and
    including its delimiter, then reported, so the next call starts
    cleanly on the following message.

    Returns:
        The message with its delimiter, a trailing partial message at
        EOF, or b"" once the stream is exhausted

    Raises:
        ProtocolError: If the message exceeded the reader's limit
    """
    try:
        return await reader.readuntil(DELIMITER)
    except asyncio.IncompleteReadError as exc:
        return exc.partial
    except asyncio.LimitOverrunError as exc:
        await _skip_line(reader, exc.consumed)
        raise ProtocolError("message exceeds the size limit") from None


async def _skip_line(reader: StreamReader, consumed: int) -> None:
    # consumed bytes are already buffered and hold no delimiter
    try:
        while True:
            await reader.readexactly(consumed)
            try:
                await reader.readuntil(DELIMITER)
                return
            except asyncio.LimitOverrunError as exc:
                consumed = exc.consumed
    except asyncio.IncompleteReadError:
        return
