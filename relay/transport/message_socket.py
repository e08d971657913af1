"""Message-socket binding: one JSON message per event, discriminated by `type`.

Outbound: word, response_time, timing, error, end. Inbound: question.
Timings travel as strings with two decimals, errors in the `error` field.
"""

from __future__ import annotations

import json
from typing import Any

from relay.core.errors import DecodeFailure
from relay.core.events import (
    End,
    Error,
    Event,
    RelayRequest,
    ResponseTime,
    Timing,
    Token,
    make_request,
)

QUESTION = "question"


def encode_event(event: Event) -> dict[str, Any]:
    if isinstance(event, Token):
        return {"type": "word", "content": event.text}
    if isinstance(event, ResponseTime):
        return {"type": "response_time", "content": f"{event.seconds:.2f}"}
    if isinstance(event, Timing):
        return {"type": "timing", "content": f"{event.seconds:.2f}"}
    if isinstance(event, Error):
        return {"type": "error", "content": "", "error": event.message}
    if isinstance(event, End):
        return {"type": "end", "content": ""}
    raise TypeError(f"not an event: {event!r}")


def dumps(event: Event) -> str:
    return json.dumps(encode_event(event))


def error_message(message: str) -> str:
    """Protocol-level rejection sent outside any request's event sequence."""
    return dumps(Error(message=message))


def _load(raw: str | bytes) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeFailure(f"invalid JSON: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise DecodeFailure("message must be an object with a string 'type'")
    return data


def _seconds(data: dict[str, Any]) -> float:
    try:
        return float(data.get("content"))
    except (TypeError, ValueError) as e:
        raise DecodeFailure(f"bad seconds in {data.get('type')} message") from e


def decode_event(raw: str | bytes) -> Event:
    """Parse one outbound message. Raises DecodeFailure."""
    data = _load(raw)
    kind = data["type"]
    if kind == "word":
        content = data.get("content")
        if not isinstance(content, str):
            raise DecodeFailure("word message without string content")
        return Token(text=content)
    if kind == "response_time":
        return ResponseTime(seconds=_seconds(data))
    if kind == "timing":
        return Timing(seconds=_seconds(data))
    if kind == "error":
        return Error(message=str(data.get("error") or data.get("content") or ""))
    if kind == "end":
        return End()
    raise DecodeFailure(f"unknown message type: {kind}")


def encode_question(prompt: str) -> str:
    return json.dumps({"type": QUESTION, "content": prompt})


def decode_question(raw: str | bytes) -> RelayRequest | None:
    """Parse an inbound message. None for non-question types.

    Raises DecodeFailure for unparseable input and InvalidRequest for an empty question.
    """
    data = _load(raw)
    if data["type"] != QUESTION:
        return None
    content = data.get("content")
    if not isinstance(content, str):
        raise DecodeFailure("question without string content")
    return make_request(content)
