import os
import tempfile
from pathlib import Path

import pytest

os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "voicegate-test-logs"))

from voicegate.core.config import Settings  # noqa: E402
from voicegate.core.session import VoiceSession  # noqa: E402
from voicegate.main import create_app  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(
        wait_poll_interval_ms=10,
        wait_min_seconds=0.2,
        wait_max_seconds=0.5,
        notification_sound_enabled=False,
        sse_heartbeat_sec=0.05,
    )


@pytest.fixture
def session(settings: Settings) -> VoiceSession:
    return VoiceSession(settings)


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)
