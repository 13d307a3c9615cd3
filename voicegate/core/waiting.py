"""Long-poll wait for the next utterance.

The wait ends on the first of: voice input switched off, pending utterances
found, or the (clamped) maximum duration elapsed. Switching voice input off is
not an error; the caller gets an empty result and carries on.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional

from voicegate.core.events import EventBroadcaster
from voicegate.core.logger import get_logger
from voicegate.core.metrics import inc_wait_outcome
from voicegate.core.notify import NotificationSound
from voicegate.core.preferences import ConversationTiming, VoicePreferences
from voicegate.core.utterances import Utterance, UtteranceQueue, utcnow

WaitOutcome = Literal["found", "not_found", "rejected"]

VOICE_INPUT_INACTIVE = (
    "Voice input is not active. Cannot wait for utterances when voice input is disabled."
)
VOICE_INPUT_DEACTIVATED = "Voice input was deactivated"

logger = get_logger("wait")


@dataclass
class WaitResult:
    outcome: WaitOutcome
    utterances: List[Utterance] = field(default_factory=list)
    waited_ms: int = 0
    message: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.outcome == "found"

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": True,
            "utterances": [u.to_dict() for u in self.utterances],
            "waitTime": self.waited_ms,
        }
        if self.found:
            body["count"] = len(self.utterances)
        if self.message:
            body["message"] = self.message
        return body


class WaitCoordinator:
    def __init__(
        self,
        queue: UtteranceQueue,
        preferences: VoicePreferences,
        timing: ConversationTiming,
        broadcaster: EventBroadcaster,
        sound: NotificationSound,
        *,
        poll_interval: float = 0.1,
        min_seconds: float = 30.0,
        max_seconds: float = 60.0,
        monotonic: Optional[Callable[[], float]] = None,
    ) -> None:
        if min_seconds > max_seconds:
            raise ValueError("min_seconds must not exceed max_seconds")
        self._queue = queue
        self._preferences = preferences
        self._timing = timing
        self._broadcaster = broadcaster
        self._sound = sound
        self.poll_interval = poll_interval
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds
        self._monotonic = monotonic
        self._active_waits = 0

    @property
    def active_waits(self) -> int:
        return self._active_waits

    def clamp(self, seconds: Optional[float]) -> float:
        if seconds is None:
            return self.max_seconds
        return min(max(float(seconds), self.min_seconds), self.max_seconds)

    def _now(self) -> float:
        if self._monotonic is not None:
            return self._monotonic()
        return asyncio.get_running_loop().time()

    async def wait_for_utterance(self, seconds: Optional[float] = None) -> WaitResult:
        if not self._preferences.voice_input_active:
            inc_wait_outcome("rejected")
            return WaitResult("rejected", message=VOICE_INPUT_INACTIVE)

        timeout = self.clamp(seconds)
        started = self._now()
        chimed = False
        logger.info("Waiting up to %.1fs for utterances", timeout)
        self._active_waits += 1
        if self._active_waits == 1:
            self._broadcaster.wait_status(True)
        try:
            while True:
                waited_ms = int((self._now() - started) * 1000)

                if not self._preferences.voice_input_active:
                    result = WaitResult("not_found", waited_ms=waited_ms, message=VOICE_INPUT_DEACTIVATED)
                    break

                batch = self._queue.drain_pending()
                if batch:
                    result = WaitResult("found", utterances=batch, waited_ms=waited_ms)
                    break

                if waited_ms >= timeout * 1000:
                    self._timing.last_timeout_at = utcnow()
                    result = WaitResult(
                        "not_found",
                        waited_ms=waited_ms,
                        message=f"No utterances found after waiting {timeout:g} seconds.",
                    )
                    break

                if not chimed:
                    chimed = True
                    try:
                        self._sound.play()
                    except Exception:
                        logger.warning("Could not start notification sound", exc_info=True)

                await asyncio.sleep(self.poll_interval)
        finally:
            self._active_waits -= 1
            if self._active_waits == 0:
                self._broadcaster.wait_status(False)

        inc_wait_outcome(result.outcome)
        logger.info(
            "Wait finished: %s after %dms (%d utterance(s))",
            result.outcome,
            result.waited_ms,
            len(result.utterances),
        )
        return result
