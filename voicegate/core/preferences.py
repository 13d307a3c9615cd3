from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


class VoicePreferences:
    """Voice switches driven by the browser.

    Values are read on every gate check and every wait poll; a change is seen by
    the very next reader.
    """

    def __init__(self, voice_responses_enabled: bool = False, voice_input_active: bool = False) -> None:
        self._responses = bool(voice_responses_enabled)
        self._input = bool(voice_input_active)

    @property
    def voice_responses_enabled(self) -> bool:
        return self._responses

    @voice_responses_enabled.setter
    def voice_responses_enabled(self, value: object) -> None:
        self._responses = bool(value)

    @property
    def voice_input_active(self) -> bool:
        return self._input

    @voice_input_active.setter
    def voice_input_active(self, value: object) -> None:
        self._input = bool(value)

    def reset(self) -> None:
        self._responses = False
        self._input = False

    def as_dict(self) -> dict[str, bool]:
        return {
            "voiceResponsesEnabled": self._responses,
            "voiceInputActive": self._input,
        }


@dataclass
class ConversationTiming:
    last_tool_use_at: Optional[datetime] = None
    last_speak_at: Optional[datetime] = None
    last_timeout_at: Optional[datetime] = None

    def spoke_since_last_tool(self) -> bool:
        if self.last_tool_use_at is None:
            return True
        return self.last_speak_at is not None and self.last_speak_at >= self.last_tool_use_at

    def as_dict(self) -> dict[str, str | None]:
        return {
            "lastToolUseAt": self.last_tool_use_at.isoformat() if self.last_tool_use_at else None,
            "lastSpeakAt": self.last_speak_at.isoformat() if self.last_speak_at else None,
            "lastTimeoutAt": self.last_timeout_at.isoformat() if self.last_timeout_at else None,
        }
