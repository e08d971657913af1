"""Tests for the receiver state machine."""

import pytest

from relay.client.receiver import Phase, PlaybackSummary, Receiver
from relay.core.errors import InvalidRequest
from relay.core.events import End, Error, ResponseTime, Timing, Token
from relay.tests.fakes import StepClock


class RecordingRenderer:
    def __init__(self):
        self.calls = []

    def begin(self, state):
        self.calls.append(("begin", state.prompt))

    def clear_placeholder(self, state):
        self.calls.append(("clear",))

    def append(self, state, text):
        self.calls.append(("append", text))

    def finish(self, state):
        self.calls.append(("finish", state.content))

    def fail(self, state):
        self.calls.append(("fail", state.error))


async def _events(*events, log=None):
    for ev in events:
        yield ev
    if log is not None:
        log.append("exhausted")


def test_successful_sequence():
    renderer = RecordingRenderer()
    receiver = Receiver(renderer, clock=StepClock(0.5))
    assert receiver.phase is Phase.IDLE
    receiver.submit("Hi")
    assert receiver.phase is Phase.AWAITING
    receiver.feed(ResponseTime(seconds=0.4))
    assert receiver.phase is Phase.RECEIVING
    for text in ["Hello", " ", "there", "!"]:
        receiver.feed(Token(text=text))
    receiver.feed(Timing(seconds=1.2))
    receiver.feed(End())
    state = receiver.state
    assert receiver.phase is Phase.TERMINAL
    assert state.content == "Hello there!"
    assert state.finalized and not state.failed
    assert state.response_time == 0.4
    assert state.timing == 1.2
    assert state.first_content_latency == pytest.approx(0.5)
    assert renderer.calls[0] == ("begin", "Hi")
    assert renderer.calls.count(("clear",)) == 1
    assert renderer.calls[-1] == ("finish", "Hello there!")


def test_placeholder_cleared_on_first_token_even_if_whitespace():
    renderer = RecordingRenderer()
    receiver = Receiver(renderer)
    state = receiver.submit("Hi")
    assert state.placeholder
    receiver.feed(Token(text=" "))
    assert not state.placeholder
    assert state.first_content_latency is None
    receiver.feed(Token(text="x"))
    assert state.first_content_latency is not None
    assert renderer.calls.count(("clear",)) == 1


def test_error_without_content():
    renderer = RecordingRenderer()
    receiver = Receiver(renderer)
    state = receiver.submit("Hi")
    receiver.feed(Error(message="Upstream client not initialized"))
    assert receiver.phase is Phase.TERMINAL
    assert state.failed
    assert state.error == "Upstream client not initialized"
    assert state.content == ""
    assert not state.placeholder
    assert renderer.calls[-1] == ("fail", "Upstream client not initialized")


def test_error_keeps_partial_content():
    receiver = Receiver()
    state = receiver.submit("Hi")
    receiver.feed(Token(text="Hel"))
    receiver.fail("connection lost")
    assert state.content == "Hel"
    assert state.failed
    assert state.error == "connection lost"


def test_events_after_terminal_are_ignored():
    receiver = Receiver()
    state = receiver.submit("Hi")
    receiver.feed(Timing(seconds=1))
    receiver.feed(End())
    receiver.feed(Token(text="late"))
    receiver.fail("late failure")
    assert state.content == ""
    assert not state.failed
    assert state.finalized


def test_empty_prompt_rejected():
    receiver = Receiver()
    with pytest.raises(InvalidRequest):
        receiver.submit("   ")
    assert receiver.phase is Phase.IDLE
    assert receiver.state is None


def test_no_second_submit_while_busy():
    receiver = Receiver()
    receiver.submit("one")
    with pytest.raises(RuntimeError):
        receiver.submit("two")


def test_new_request_after_terminal():
    receiver = Receiver()
    first = receiver.submit("one")
    receiver.feed(Error(message="x"))
    second = receiver.submit("two")
    assert second is not first
    assert receiver.phase is Phase.AWAITING
    assert second.content == ""


def test_finish_playback_records_summary():
    receiver = Receiver()
    state = receiver.submit("Hi")
    receiver.feed(Token(text="ok"))
    receiver.finish_playback(PlaybackSummary(backend_timing=0.8, display_duration=0.03))
    assert state.finalized
    assert state.timing == 0.8
    assert state.playback.total == pytest.approx(0.83)


@pytest.mark.asyncio
async def test_consume_stops_at_terminal():
    receiver = Receiver()
    receiver.submit("Hi")
    log = []
    state = await receiver.consume(
        _events(Token(text="a"), Timing(seconds=1), End(), Token(text="extra"), log=log)
    )
    assert state.content == "a"
    assert state.finalized
    assert log == []


@pytest.mark.asyncio
async def test_consume_without_terminal_fails():
    receiver = Receiver()
    receiver.submit("Hi")
    state = await receiver.consume(_events(ResponseTime(seconds=0.1), Token(text="part")))
    assert state.failed
    assert state.content == "part"
    assert "closed" in state.error
