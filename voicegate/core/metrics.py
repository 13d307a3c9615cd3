from __future__ import annotations

import time

from prometheus_client import Counter, Histogram


REQ_COUNTER = Counter("voicegate_http_requests_total", "HTTP requests", ["endpoint", "status"])
REQ_LATENCY = Histogram("voicegate_http_request_seconds", "HTTP request latency", ["endpoint"])
GATE_DECISIONS = Counter("voicegate_gate_decisions_total", "Hook decisions", ["action", "decision"])
WAIT_OUTCOMES = Counter("voicegate_wait_outcomes_total", "Wait for utterance outcomes", ["outcome"])
UTTERANCES_INGESTED = Counter("voicegate_utterances_ingested_total", "Utterances accepted into the queue")


def record_request(endpoint: str, status: int, duration_s: float) -> None:
    REQ_COUNTER.labels(endpoint=endpoint, status=str(status)).inc()
    REQ_LATENCY.labels(endpoint=endpoint).observe(duration_s)


def inc_gate_decision(action: str, decision: str) -> None:
    GATE_DECISIONS.labels(action=action, decision=decision).inc()


def inc_wait_outcome(outcome: str) -> None:
    WAIT_OUTCOMES.labels(outcome=outcome).inc()


def inc_utterances(n: int = 1) -> None:
    UTTERANCES_INGESTED.inc(n)


async def metrics_middleware(request, call_next):  # type: ignore
    start = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start
    record_request(request.url.path, response.status_code, duration)
    return response
