"""Tests for the relay-chat argument parser."""

import pytest

from relay.client.cli import build_parser


def test_defaults_from_config():
    args = build_parser().parse_args([])
    assert args.question is None
    assert args.protocol == "sse"
    assert args.url == "http://localhost:8080"
    assert args.ws_url == "ws://localhost:8081/ai/ws"
    assert args.token_delay_ms == 10


def test_one_shot_question_and_protocol():
    args = build_parser().parse_args(["--protocol", "nostream", "What is up?"])
    assert args.protocol == "nostream"
    assert args.question == "What is up?"


def test_unknown_protocol_rejected():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--protocol", "carrier-pigeon"])
