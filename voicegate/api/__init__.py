from __future__ import annotations

from .routes_health import router as health_router
from .routes_hooks import router as hooks_router
from .routes_metrics import router as metrics_router
from .routes_utterances import router as utterances_router
from .routes_voice import router as voice_router

__all__ = [
    "health_router",
    "hooks_router",
    "metrics_router",
    "utterances_router",
    "voice_router",
]
