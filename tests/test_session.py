from __future__ import annotations

import asyncio
import sys

import pytest

from voicegate.core.errors import InvalidInput, PreconditionNotMet
from voicegate.core.notify import NotificationSound
from voicegate.core.preferences import VoicePreferences
from voicegate.core.session import VoiceSession


def test_preferences_coerce_to_bool() -> None:
    prefs = VoicePreferences()
    prefs.voice_input_active = 1
    prefs.voice_responses_enabled = "yes"
    assert prefs.as_dict() == {"voiceResponsesEnabled": True, "voiceInputActive": True}
    prefs.reset()
    assert prefs.as_dict() == {"voiceResponsesEnabled": False, "voiceInputActive": False}


def test_last_browser_leaving_turns_voice_off(session: VoiceSession) -> None:
    session.preferences.voice_input_active = True
    session.preferences.voice_responses_enabled = True
    first = session.broadcaster.subscribe()
    second = session.broadcaster.subscribe()

    session.broadcaster.unsubscribe(first)
    assert session.preferences.voice_input_active is True

    session.broadcaster.unsubscribe(second)
    assert session.preferences.as_dict() == {"voiceResponsesEnabled": False, "voiceInputActive": False}


def test_voice_kept_on_disconnect_when_configured(settings) -> None:
    session = VoiceSession(settings.model_copy(update={"disable_voice_on_disconnect": False}))
    session.preferences.voice_input_active = True
    session.broadcaster.unsubscribe(session.broadcaster.subscribe())
    assert session.preferences.voice_input_active is True


def test_dequeue_and_wait_need_voice_input(session: VoiceSession) -> None:
    with pytest.raises(PreconditionNotMet):
        session.dequeue()
    with pytest.raises(PreconditionNotMet):
        asyncio.run(session.wait())


def test_speak_errors(session: VoiceSession) -> None:
    with pytest.raises(InvalidInput):
        session.speak("   ")
    with pytest.raises(PreconditionNotMet):
        session.speak("hello")
    assert session.timing.last_speak_at is None


@pytest.mark.asyncio
async def test_notification_sound_runs_command() -> None:
    sound = NotificationSound(f'"{sys.executable}" -c "pass"')
    sound.play()
    tasks = list(sound._tasks)
    assert len(tasks) == 1
    await asyncio.gather(*tasks)


@pytest.mark.asyncio
async def test_notification_sound_failure_is_swallowed() -> None:
    sound = NotificationSound("voicegate-no-such-player --chime")
    sound.play()
    await asyncio.gather(*list(sound._tasks))


@pytest.mark.asyncio
async def test_notification_sound_disabled_or_invalid_is_noop() -> None:
    for sound in (NotificationSound("afplay x", enabled=False), NotificationSound('"unbalanced'), NotificationSound(None)):
        sound.play()
        assert not sound._tasks
