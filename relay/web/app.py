"""HTTP bindings: push-stream (/ai/stream), unary (/ai/nostream), probe (/ai/test), demo (/stream)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncIterator

from flask import Flask, Response, current_app, jsonify, request, stream_with_context

from relay.core.adapter import RelayAdapter, words_only
from relay.core.errors import InvalidRequest, ServiceUnavailable, UpstreamFailure
from relay.core.events import Event, RelayRequest, parse_question
from relay.transport import push_stream, unary
from relay.web.bridge import LoopBridge

logger = logging.getLogger(__name__)


@dataclass
class RelayServices:
    adapter: RelayAdapter
    demo_adapter: RelayAdapter
    bridge: LoopBridge


def _services() -> RelayServices:
    return current_app.extensions["relay"]


def _question() -> RelayRequest:
    return parse_question(request.get_json(silent=True))


def _event_stream(events: AsyncIterator[Event], bridge: LoopBridge) -> Response:
    return Response(
        stream_with_context(push_stream.encode_stream(bridge.iterate(events))),
        mimetype="text/event-stream",
        headers=push_stream.HEADERS,
    )


def ai_stream():
    svc = _services()
    try:
        svc.adapter.ensure_available()
        req = _question()
    except ServiceUnavailable as e:
        return str(e), 503
    except InvalidRequest as e:
        logger.info("rejected request: %s", e, extra={"binding": "push_stream"})
        return str(e), 400
    logger.info(
        "question received", extra={"binding": "push_stream", "prompt_chars": len(req.prompt)}
    )
    return _event_stream(svc.adapter.open_stream(req), svc.bridge)


def ai_nostream():
    svc = _services()
    try:
        svc.adapter.ensure_available()
        req = _question()
    except ServiceUnavailable as e:
        return str(e), 503
    except InvalidRequest as e:
        logger.info("rejected request: %s", e, extra={"binding": "unary"})
        return str(e), 400
    logger.info("question received", extra={"binding": "unary", "prompt_chars": len(req.prompt)})
    try:
        result = svc.bridge.call(svc.adapter.complete(req))
    except UpstreamFailure as e:
        return jsonify(unary.encode_error(f"Failed to get response from upstream: {e}")), 500
    return jsonify(unary.encode_result(result))


def ai_test():
    svc = _services()
    try:
        svc.adapter.ensure_available()
    except ServiceUnavailable as e:
        return str(e), 503
    try:
        reply = svc.bridge.call(svc.adapter.probe())
    except UpstreamFailure as e:
        return jsonify({"status": "error", "message": f"Upstream API test failed: {e}"}), 500
    logger.info("upstream probe succeeded", extra={"upstream": svc.adapter.upstream.name})
    return jsonify(
        {"status": "success", "message": "Upstream API is working correctly", "response": reply}
    )


def demo_stream():
    svc = _services()
    events = words_only(svc.demo_adapter.open_stream(RelayRequest(prompt="demo")))
    return _event_stream(events, svc.bridge)


def create_app(
    adapter: RelayAdapter, demo_adapter: RelayAdapter, bridge: LoopBridge
) -> Flask:
    app = Flask(__name__)
    app.extensions["relay"] = RelayServices(adapter=adapter, demo_adapter=demo_adapter, bridge=bridge)
    app.add_url_rule("/ai/stream", view_func=ai_stream, methods=["POST"])
    app.add_url_rule("/ai/nostream", view_func=ai_nostream, methods=["POST"])
    app.add_url_rule("/ai/test", view_func=ai_test, methods=["GET"])
    app.add_url_rule("/stream", view_func=demo_stream, methods=["GET"])
    return app
