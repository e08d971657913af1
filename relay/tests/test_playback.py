"""Tests for the unary playback simulator."""

import pytest

from relay.client.playback import PlaybackSimulator
from relay.client.receiver import Receiver
from relay.transport.unary import UnaryPayload
from relay.tests.fakes import StepClock


class FakeSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.mark.asyncio
async def test_tokens_follow_segmentation():
    sleeps = []

    async def sleep(s):
        sleeps.append(s)

    sim = PlaybackSimulator(token_delay=0.01, sleep=sleep)
    units = [t.text async for t in sim.tokens("Go fast.")]
    assert units == ["Go ", "fast."]
    assert sleeps == [0.01, 0.01]


@pytest.mark.asyncio
async def test_replay_total_is_backend_plus_display():
    clock = StepClock(0.02)
    sim = PlaybackSimulator(token_delay=0.01, clock=clock, sleep=FakeSleep())
    receiver = Receiver()
    state = receiver.submit("Go")
    payload = UnaryPayload(response="Go fast.", timing=0.8, response_time=0.8)
    summary = await sim.replay(receiver, payload)
    assert summary.backend_timing == 0.8
    assert summary.display_duration == pytest.approx(0.02)
    assert summary.total == pytest.approx(0.82)
    assert state.content == "Go fast."
    assert state.finalized
    assert state.response_time == 0.8
    assert state.timing == 0.8
    assert state.playback is summary


@pytest.mark.asyncio
async def test_replay_empty_response():
    sim = PlaybackSimulator(token_delay=0.01, sleep=FakeSleep())
    receiver = Receiver()
    state = receiver.submit("Hi")
    summary = await sim.replay(receiver, UnaryPayload(response="", timing=0.1, response_time=0.1))
    assert state.finalized
    assert state.content == ""
    assert summary.display_duration >= 0
