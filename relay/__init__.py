"""Streaming relay: one event grammar over push-stream, message-socket and unary bindings."""

__version__ = "0.1.0"
