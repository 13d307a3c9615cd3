"""Conversation-flow gate consulted by the host before each agent lifecycle event.

Checks run as an ordered rule list; the first rule that matches decides. All
actions share the same prefix:

1. auto-drain: voice input is live and utterances are pending, so deliver them
   and block with their text;
2. unanswered speech: voice responses are on and delivered utterances still
   await an answer, so block everything except ``speak``.

Wait and stop then require a speak after the most recent tool use. Stop finally
waits for the microphone when voice input is live.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, Optional, Sequence

from voicegate.core.logger import get_logger
from voicegate.core.metrics import inc_gate_decision
from voicegate.core.preferences import ConversationTiming, VoicePreferences
from voicegate.core.utterances import Utterance, UtteranceQueue, utcnow
from voicegate.core.waiting import WaitCoordinator

Action = Literal["tool", "speak", "wait", "stop"]

logger = get_logger("gate")


@dataclass(frozen=True)
class Decision:
    decision: Literal["approve", "block"]
    reason: Optional[str] = None

    @classmethod
    def approve(cls, reason: Optional[str] = None) -> "Decision":
        return cls("approve", reason)

    @classmethod
    def block(cls, reason: str) -> "Decision":
        return cls("block", reason)

    @property
    def blocked(self) -> bool:
        return self.decision == "block"

    def to_dict(self) -> Dict[str, str]:
        body = {"decision": self.decision}
        if self.reason:
            body["reason"] = self.reason
        return body


@dataclass
class GateContext:
    action: Action
    queue: UtteranceQueue
    preferences: VoicePreferences
    timing: ConversationTiming


@dataclass(frozen=True)
class Rule:
    name: str
    applies: Callable[[GateContext], bool]
    decide: Callable[[GateContext], Decision]


def quote_utterances(utterances: Sequence[Utterance]) -> str:
    return "\n".join(f'"{u.text}"' for u in utterances)


def _pending_while_listening(ctx: GateContext) -> bool:
    return ctx.preferences.voice_input_active and bool(ctx.queue.pending())


def _drain(ctx: GateContext) -> Decision:
    batch = ctx.queue.drain_pending()
    if ctx.preferences.voice_responses_enabled:
        follow_up = "Respond to the user with the speak tool before continuing."
    else:
        follow_up = "Address what the user said before continuing."
    return Decision.block(
        f"{len(batch)} pending utterance(s) dequeued from the user:\n\n"
        f"{quote_utterances(batch)}\n\n{follow_up}"
    )


def _owes_spoken_answer(ctx: GateContext) -> bool:
    return (
        ctx.action != "speak"
        and ctx.preferences.voice_responses_enabled
        and bool(ctx.queue.delivered())
    )


def _require_speak(ctx: GateContext) -> Decision:
    count = len(ctx.queue.delivered())
    return Decision.block(
        f"{count} delivered utterance(s) require voice response. "
        "Please use the speak tool to respond before proceeding."
    )


def _silent_since_tool(ctx: GateContext) -> bool:
    return ctx.preferences.voice_responses_enabled and not ctx.timing.spoke_since_last_tool()


def _require_narration(ctx: GateContext) -> Decision:
    target = "waiting for utterances" if ctx.action == "wait" else "proceeding"
    return Decision.block(
        "Assistant must speak after using tools. "
        f"Please use the speak tool to respond before {target}."
    )


COMMON_RULES: List[Rule] = [
    Rule("auto-drain", _pending_while_listening, _drain),
    Rule("unanswered-speech", _owes_spoken_answer, _require_speak),
]

ACTION_RULES: Dict[str, List[Rule]] = {
    "tool": [],
    "speak": [],
    "wait": [Rule("speak-after-tool", _silent_since_tool, _require_narration)],
    "stop": [Rule("speak-after-tool", _silent_since_tool, _require_narration)],
}


class ConversationGate:
    def __init__(
        self,
        queue: UtteranceQueue,
        preferences: VoicePreferences,
        timing: ConversationTiming,
        waiter: WaitCoordinator,
        clock: Callable = utcnow,
    ) -> None:
        self._queue = queue
        self._preferences = preferences
        self._timing = timing
        self._waiter = waiter
        self._clock = clock

    def rules_for(self, action: Action) -> List[Rule]:
        return COMMON_RULES + ACTION_RULES[action]

    def _evaluate(self, action: Action) -> Optional[Decision]:
        ctx = GateContext(action, self._queue, self._preferences, self._timing)
        for rule in self.rules_for(action):
            if rule.applies(ctx):
                logger.info("%s hook blocked by %s", action, rule.name)
                return rule.decide(ctx)
        return None

    def _record(self, action: Action, decision: Decision) -> Decision:
        inc_gate_decision(action, decision.decision)
        return decision

    def before_tool(self) -> Decision:
        decision = self._evaluate("tool")
        if decision is None:
            self._timing.last_tool_use_at = self._clock()
            decision = Decision.approve()
        return self._record("tool", decision)

    def before_speak(self) -> Decision:
        return self._record("speak", self._evaluate("speak") or Decision.approve())

    def before_wait(self) -> Decision:
        return self._record("wait", self._evaluate("wait") or Decision.approve())

    async def before_stop(self) -> Decision:
        decision = self._evaluate("stop")
        if decision is not None:
            return self._record("stop", decision)
        if not self._preferences.voice_input_active:
            return self._record("stop", Decision.approve())

        result = await self._waiter.wait_for_utterance()
        if result.found:
            decision = Decision.block(
                "Assistant tried to end its response, but the user said:\n\n"
                f"{quote_utterances(result.utterances)}\n\n"
                "Continue the conversation and respond to them."
            )
        else:
            decision = Decision.approve(result.message)
        return self._record("stop", decision)
