from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from voicegate.core.events import EventBroadcaster
from voicegate.core.preferences import ConversationTiming, VoicePreferences
from voicegate.core.utterances import UtteranceQueue
from voicegate.core.waiting import WaitCoordinator


class CountingSound:
    def __init__(self, fail: bool = False) -> None:
        self.plays = 0
        self.fail = fail

    def play(self) -> None:
        self.plays += 1
        if self.fail:
            raise OSError("no audio device")


def _build(**overrides):
    queue = UtteranceQueue()
    prefs = VoicePreferences(voice_input_active=True)
    timing = ConversationTiming()
    broadcaster = EventBroadcaster()
    sound = overrides.pop("sound", CountingSound())
    options = {"poll_interval": 0.01, "min_seconds": 0.1, "max_seconds": 0.3}
    options.update(overrides)
    waiter = WaitCoordinator(queue, prefs, timing, broadcaster, sound, **options)
    return waiter, queue, prefs, timing, broadcaster, sound


@pytest.mark.asyncio
async def test_rejected_immediately_when_voice_input_inactive() -> None:
    waiter, queue, prefs, _, broadcaster, sound = _build()
    prefs.voice_input_active = False
    channel = broadcaster.subscribe()

    result = await waiter.wait_for_utterance()

    assert result.outcome == "rejected"
    assert sound.plays == 0
    assert channel.pending() == 1  # connected only, no wait status


@pytest.mark.asyncio
async def test_found_returns_oldest_first_and_marks_delivered() -> None:
    waiter, queue, _, _, _, sound = _build()
    base = datetime.now(timezone.utc)
    queue.add("later", base + timedelta(seconds=1))
    queue.add("earlier", base)

    result = await waiter.wait_for_utterance()

    assert result.found
    assert [u.text for u in result.utterances] == ["earlier", "later"]
    assert all(u.status == "delivered" for u in result.utterances)
    assert sound.plays == 0


@pytest.mark.asyncio
async def test_utterance_arriving_mid_wait_is_picked_up() -> None:
    waiter, queue, _, _, _, sound = _build(max_seconds=2.0)

    async def speak_later() -> None:
        await asyncio.sleep(0.05)
        queue.add("are you there?")

    result, _ = await asyncio.gather(waiter.wait_for_utterance(), speak_later())

    assert result.found
    assert result.utterances[0].text == "are you there?"
    assert result.waited_ms < 2000
    assert sound.plays == 1


@pytest.mark.asyncio
async def test_timeout_records_last_timeout() -> None:
    waiter, _, _, timing, _, sound = _build()

    result = await waiter.wait_for_utterance(0.1)

    assert result.outcome == "not_found"
    assert result.waited_ms >= 100
    assert "No utterances found" in result.message
    assert timing.last_timeout_at is not None
    assert sound.plays == 1


@pytest.mark.asyncio
async def test_deactivation_mid_wait_returns_early() -> None:
    waiter, _, prefs, timing, _, _ = _build(max_seconds=2.0, min_seconds=2.0)

    async def stop_listening() -> None:
        await asyncio.sleep(0.05)
        prefs.voice_input_active = False

    result, _ = await asyncio.gather(waiter.wait_for_utterance(), stop_listening())

    assert result.outcome == "not_found"
    assert result.message == "Voice input was deactivated"
    assert result.utterances == []
    assert result.waited_ms < 2000
    assert timing.last_timeout_at is None


@pytest.mark.asyncio
async def test_broadcasts_wait_status_around_the_wait() -> None:
    waiter, queue, _, _, broadcaster, _ = _build()
    channel = broadcaster.subscribe()
    queue.add("hello")

    await waiter.wait_for_utterance()

    frames = [json.loads((await channel.get())[len("data: "):]) for _ in range(3)]
    assert [f["type"] for f in frames] == ["connected", "waitStatus", "waitStatus"]
    assert [f["isWaiting"] for f in frames[1:]] == [True, False]


@pytest.mark.asyncio
async def test_overlapping_waits_report_one_waiting_period() -> None:
    waiter, _, _, _, broadcaster, _ = _build()
    channel = broadcaster.subscribe()

    def statuses() -> list:
        frames = []
        while channel.pending():
            frames.append(json.loads(channel._queue.get_nowait()[len("data: "):]))
        return [f["isWaiting"] for f in frames if f["type"] == "waitStatus"]

    long_wait = asyncio.create_task(waiter.wait_for_utterance(0.3))
    await waiter.wait_for_utterance(0.1)

    assert not long_wait.done()
    assert waiter.active_waits == 1
    assert statuses() == [True]

    await long_wait
    assert waiter.active_waits == 0
    assert statuses() == [False]


@pytest.mark.asyncio
async def test_sound_failure_does_not_break_the_wait() -> None:
    sound = CountingSound(fail=True)
    waiter, *_ = _build(sound=sound)

    result = await waiter.wait_for_utterance(0.1)

    assert result.outcome == "not_found"
    assert sound.plays == 1


def test_clamp_bounds_requested_duration() -> None:
    waiter, *_ = _build(min_seconds=30, max_seconds=60)
    assert waiter.clamp(None) == 60
    assert waiter.clamp(1) == 30
    assert waiter.clamp(45) == 45
    assert waiter.clamp(3600) == 60


def test_min_above_max_is_refused() -> None:
    with pytest.raises(ValueError):
        _build(min_seconds=10, max_seconds=5)
