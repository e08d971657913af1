"""Event grammar for one request. All events are Pydantic models.

A request produces exactly one of:
  [ResponseTime?, Token*, Timing, End]   success (zero tokens allowed)
  [Error]                                failure
"""

from __future__ import annotations

from typing import Annotated, Any, Iterable, Literal, Union

from pydantic import BaseModel, Field

from relay.core.errors import InvalidRequest


class RelayRequest(BaseModel):
    """User prompt. Consumed once by the adapter; no identity beyond one call."""

    prompt: str = Field(description="Prompt text as submitted")


class Token(BaseModel):
    """One display unit. Whitespace-only tokens still carry spacing."""

    kind: Literal["token"] = "token"
    text: str


class ResponseTime(BaseModel):
    """Seconds from request start to the first non-empty fragment."""

    kind: Literal["response_time"] = "response_time"
    seconds: float


class Timing(BaseModel):
    """Total seconds for the whole response. Success path only, right before End."""

    kind: Literal["timing"] = "timing"
    seconds: float


class Error(BaseModel):
    """Terminal failure."""

    kind: Literal["error"] = "error"
    message: str


class End(BaseModel):
    """Terminal success."""

    kind: Literal["end"] = "end"


Event = Annotated[
    Union[Token, ResponseTime, Timing, Error, End],
    Field(discriminator="kind"),
]


def is_terminal(event: Event) -> bool:
    return isinstance(event, (Error, End))


def parse_question(payload: Any) -> RelayRequest:
    """Validate a `{question: ...}` body. Raises InvalidRequest."""
    if not isinstance(payload, dict) or not isinstance(payload.get("question"), str):
        raise InvalidRequest("Invalid request body")
    return make_request(payload["question"])


def make_request(prompt: str) -> RelayRequest:
    if not prompt.strip():
        raise InvalidRequest("Question cannot be empty")
    return RelayRequest(prompt=prompt)


def validate_sequence(events: Iterable[Event]) -> None:
    """Raise ValueError unless events form one complete success or failure sequence."""
    seq = list(events)
    if not seq:
        raise ValueError("empty event sequence")
    if isinstance(seq[0], Error):
        if len(seq) != 1:
            raise ValueError("Error must be the only event of a failed request")
        return
    if any(isinstance(ev, Error) for ev in seq):
        raise ValueError("Error cannot follow other events")
    if len(seq) < 2 or not isinstance(seq[-1], End) or not isinstance(seq[-2], Timing):
        raise ValueError("success sequence must finish with Timing, End")
    body = seq[:-2]
    if body and isinstance(body[0], ResponseTime):
        body = body[1:]
    for ev in body:
        if not isinstance(ev, Token):
            raise ValueError(f"unexpected {ev.kind} event before Timing")
