from __future__ import annotations

from fastapi import Request

from voicegate.core.session import VoiceSession


def get_session(request: Request) -> VoiceSession:
    return request.app.state.voice
