from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from voicegate.core.config import Settings
from voicegate.core.errors import InvalidInput, PreconditionNotMet
from voicegate.core.events import EventBroadcaster
from voicegate.core.gate import ConversationGate
from voicegate.core.logger import get_logger
from voicegate.core.notify import NotificationSound
from voicegate.core.preferences import ConversationTiming, VoicePreferences
from voicegate.core.utterances import Utterance, UtteranceQueue, utcnow
from voicegate.core.waiting import VOICE_INPUT_INACTIVE, WaitCoordinator, WaitResult

logger = get_logger("server")

DEQUEUE_INACTIVE = (
    "Voice input is not active. Cannot dequeue utterances when voice input is disabled."
)


class VoiceSession:
    """All conversation state of one running process, wired together."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.queue = UtteranceQueue()
        self.preferences = VoicePreferences()
        self.timing = ConversationTiming()
        self.broadcaster = EventBroadcaster(
            heartbeat_sec=settings.sse_heartbeat_sec,
            on_last_disconnect=self._on_last_observer_left,
        )
        self.sound = NotificationSound(
            settings.notification_sound_command,
            enabled=settings.notification_sound_enabled,
        )
        self.waiter = WaitCoordinator(
            self.queue,
            self.preferences,
            self.timing,
            self.broadcaster,
            self.sound,
            poll_interval=settings.wait_poll_interval_ms / 1000,
            min_seconds=settings.wait_min_seconds,
            max_seconds=settings.wait_max_seconds,
        )
        self.gate = ConversationGate(self.queue, self.preferences, self.timing, self.waiter)

    def _on_last_observer_left(self) -> None:
        if not self.settings.disable_voice_on_disconnect:
            return
        if self.preferences.voice_input_active or self.preferences.voice_responses_enabled:
            logger.info("Last browser disconnected, turning voice features off")
        self.preferences.reset()

    def ingest(self, text: str, timestamp: Optional[datetime] = None) -> Utterance:
        return self.queue.add(text, timestamp)

    def dequeue(self) -> List[Utterance]:
        """Deliver every pending utterance, most recent first."""
        if not self.preferences.voice_input_active:
            raise PreconditionNotMet(DEQUEUE_INACTIVE)
        batch = self.queue.drain_pending()
        batch.reverse()
        return batch

    async def wait(self, seconds: Optional[float] = None) -> WaitResult:
        result = await self.waiter.wait_for_utterance(seconds)
        if result.outcome == "rejected":
            raise PreconditionNotMet(VOICE_INPUT_INACTIVE)
        return result

    def speak(self, text: str) -> int:
        """Push ``text`` to the browsers and answer every delivered utterance."""
        cleaned = (text or "").strip()
        if not cleaned:
            raise InvalidInput("Text is required")
        if not self.preferences.voice_responses_enabled:
            raise PreconditionNotMet(
                "Voice responses are disabled",
                details="Cannot speak when voice responses are disabled",
            )
        observers = self.broadcaster.speak(cleaned)
        responded = self.queue.mark_all_delivered_as_responded()
        self.timing.last_speak_at = utcnow()
        logger.info("Spoke to %d observer(s), %d utterance(s) answered", observers, responded)
        return responded

    def clear(self) -> int:
        cleared = self.queue.clear()
        self.timing.last_timeout_at = None
        return cleared
