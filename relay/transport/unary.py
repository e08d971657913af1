"""Unary-response binding: one JSON body per request, no intermediate events.

Request `{question}`. Response `{response, timing, response_time, status}`
or `{error}`. `response_time` always equals `timing`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError

from relay.core.adapter import UnaryResult
from relay.core.errors import DecodeFailure, UpstreamFailure


class UnaryPayload(BaseModel):
    response: str
    timing: float
    response_time: float
    status: str = "success"


def encode_result(result: UnaryResult) -> dict[str, Any]:
    return UnaryPayload(
        response=result.text,
        timing=result.timing,
        response_time=result.timing,
    ).model_dump()


def encode_error(message: str) -> dict[str, Any]:
    return {"error": message}


def decode_response(data: Any) -> UnaryPayload:
    """Raises UpstreamFailure for an error body, DecodeFailure for anything unparseable."""
    if isinstance(data, dict) and data.get("error"):
        raise UpstreamFailure(str(data["error"]))
    try:
        return UnaryPayload.model_validate(data)
    except ValidationError as e:
        raise DecodeFailure(f"invalid unary payload: {e}") from e
