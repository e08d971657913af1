"""Push-stream text binding (server-sent events).

Each event is one frame, ``data: <payload>\\n\\n``. Control events use reserved
payload sentinels; anything else is literal token text:

    data: [RESPONSE_TIME] 0.42
    data: Hello
    data: [TIMING] 1.37
    data: [END]

Sentinels share a namespace with token text, so a generated token that is
literally ``[END]`` is read back as End. Multi-line payloads are split across
several ``data:`` lines and rejoined with ``\\n`` when decoding. Lines end with
``\\n`` only: a ``\\r`` is payload and survives the round trip.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from relay.core.errors import DecodeFailure
from relay.core.events import End, Error, Event, ResponseTime, Timing, Token

logger = logging.getLogger(__name__)

END = "[END]"
ERROR = "[ERROR]"
TIMING = "[TIMING]"
RESPONSE_TIME = "[RESPONSE_TIME]"

HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "X-Accel-Buffering": "no",
}


def encode_payload(event: Event) -> str:
    if isinstance(event, Token):
        return event.text
    if isinstance(event, ResponseTime):
        return f"{RESPONSE_TIME} {event.seconds:.2f}"
    if isinstance(event, Timing):
        return f"{TIMING} {event.seconds:.2f}"
    if isinstance(event, Error):
        return f"{ERROR} {event.message}"
    if isinstance(event, End):
        return END
    raise TypeError(f"not an event: {event!r}")


def encode_frame(event: Event) -> str:
    lines = encode_payload(event).split("\n")
    return "".join(f"data: {line}\n" for line in lines) + "\n"


def encode_stream(events: Iterable[Event]) -> Iterator[str]:
    """Frames for `events`, closing the source when the consumer stops early."""
    try:
        for event in events:
            yield encode_frame(event)
    finally:
        close = getattr(events, "close", None)
        if close is not None:
            close()


def _seconds(raw: str, payload: str) -> float:
    try:
        return float(raw.strip())
    except ValueError as e:
        raise DecodeFailure(f"bad seconds in frame: {payload!r}") from e


def decode_payload(payload: str) -> Event:
    if payload == END:
        return End()
    if payload.startswith(ERROR):
        return Error(message=payload[len(ERROR) :].removeprefix(" "))
    if payload.startswith(RESPONSE_TIME):
        return ResponseTime(seconds=_seconds(payload[len(RESPONSE_TIME) :], payload))
    if payload.startswith(TIMING):
        return Timing(seconds=_seconds(payload[len(TIMING) :], payload))
    return Token(text=payload)


class FrameDecoder:
    """Incremental decoder: feed text chunks as they arrive, get whole events back.

    Undecodable frames are logged and skipped.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, chunk: str) -> list[Event]:
        self._buffer += chunk
        events: list[Event] = []
        while "\n\n" in self._buffer:
            frame, self._buffer = self._buffer.split("\n\n", 1)
            try:
                event = self._decode_frame(frame)
            except DecodeFailure as e:
                logger.warning("dropping frame: %s", e)
                continue
            if event is not None:
                events.append(event)
        return events

    def _decode_frame(self, frame: str) -> Event | None:
        data: list[str] = []
        for line in frame.split("\n"):
            if line.startswith("data:"):
                data.append(line[5:].removeprefix(" "))
            elif line.startswith(":") or not line:
                continue
            elif ":" not in line:
                raise DecodeFailure(f"malformed frame line: {line!r}")
        if not data:
            return None
        return decode_payload("\n".join(data))
