"""Dependency wiring for one operator console.

``OpsConsole`` owns the long-lived state (approval list, conversation
history, ops board) and builds a fresh stream session for every turn.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

import httpx

from skyops.approval.gate import ApprovalGate
from skyops.config import SkyopsSettings
from skyops.core.chat_client import ChatCompletionClient
from skyops.core.pipeline import AdmittedDirective, DirectivePipeline
from skyops.core.prompts import build_messages
from skyops.core.turn import TurnResult, TurnRunner
from skyops.directives.extractor import DirectiveExtractor
from skyops.directives.impact import classify_impact
from skyops.execution.dispatcher import CapabilityRegistry, ExecutionDispatcher
from skyops.models.messages import ChatMessage, ChatRole
from skyops.ops.board import Flight, OpsBoard
from skyops.protocols.display import ApprovalListener, DisplaySink
from skyops.stream.frames import EventFrameParser

logger = logging.getLogger(__name__)

# Operator shortcuts from the flight detail panel.
QUICK_ACTIONS: dict[str, Callable[[Flight], dict[str, object]]] = {
    "delay-15": lambda f: {"type": "DELAY_FLIGHT", "flightId": f.id, "minutes": 15, "reason": "OPS"},
    "delay-30": lambda f: {"type": "DELAY_FLIGHT", "flightId": f.id, "minutes": 30, "reason": "OPS"},
    "swap-tail": lambda f: {"type": "SWAP_AIRCRAFT", "fromFlightId": f.id},
    "mx-check": lambda f: {"type": "SCHEDULE_MAINT", "tail": f.tail, "slot": "next-available"},
    "pr-note": lambda f: {
        "type": "OPEN_PR_STATEMENT",
        "topic": f"Delay {f.id}",
        "keyPoints": ["weather", "de-icing", "safety first"],
    },
}


class OpsConsole:
    def __init__(
        self,
        settings: SkyopsSettings,
        *,
        board: OpsBoard | None = None,
        registry: CapabilityRegistry | None = None,
        http_client: httpx.AsyncClient | None = None,
        on_approval_change: ApprovalListener | None = None,
    ) -> None:
        self.settings = settings
        self.board = board or OpsBoard()
        self.registry = registry or self.board.register_handlers(CapabilityRegistry())
        self.dispatcher = ExecutionDispatcher(self.registry)
        self.gate = ApprovalGate(self.dispatcher, on_change=on_approval_change)
        self.pipeline = DirectivePipeline(
            gate=self.gate,
            duplicate_policy=settings.directives.duplicate_policy,
        )
        self.client = ChatCompletionClient(settings.llm, http_client)
        self.runner = TurnRunner(
            self.client,
            self.pipeline,
            parser=EventFrameParser(
                data_prefix=settings.stream.data_prefix,
                done_sentinel=settings.stream.done_sentinel,
                delta_paths=settings.stream.delta_paths,
            ),
            extractor=DirectiveExtractor(
                settings.directives.start_marker,
                settings.directives.end_marker,
            ),
        )
        self._history: list[ChatMessage] = []

    @property
    def history(self) -> list[ChatMessage]:
        return list(self._history)

    async def send(self, user_text: str, *, sink: DisplaySink | None = None) -> TurnResult:
        messages = build_messages(
            user_text,
            self.board.summary(),
            history=self._history,
            airline=self.settings.airline_name,
        )
        result = await self.runner.run(messages, sink=sink)
        if not result.aborted:
            self._remember(user_text, result.text)
        return result

    def _remember(self, user_text: str, reply: str) -> None:
        self._history.extend(
            [
                ChatMessage(role=ChatRole.user, content=user_text),
                ChatMessage(role=ChatRole.assistant, content=reply),
            ]
        )
        limit = self.settings.history_turns * 2
        del self._history[: max(0, len(self._history) - limit)]

    def abort(self) -> bool:
        return self.runner.abort()

    def approve(self, approval_id: str, *, resolved_by: str = "operator") -> bool:
        return self.gate.approve(approval_id, resolved_by=resolved_by)

    def reject(self, approval_id: str, *, resolved_by: str = "operator") -> bool:
        return self.gate.reject(approval_id, resolved_by=resolved_by)

    def propose(self, payload: Mapping[str, object]) -> AdmittedDirective:
        """Gate an operator-built directive exactly like a model-emitted one.

        Raises ``DirectiveValidationError`` when *payload* does not conform.
        """
        directive = self.pipeline.validator.validate_mapping(payload)
        record = self.gate.propose(directive)
        return AdmittedDirective(directive=directive, impact=classify_impact(directive), record=record)

    def quick_action(self, action: str, flight_id: str) -> AdmittedDirective:
        builder = QUICK_ACTIONS.get(action)
        if builder is None:
            raise KeyError(f"unknown quick action: {action}")
        flight = self.board.flights.get(flight_id)
        if flight is None:
            raise KeyError(f"unknown flight: {flight_id}")
        return self.propose(builder(flight))

    async def aclose(self) -> None:
        await self.client.aclose()


__all__ = ["QUICK_ACTIONS", "OpsConsole"]
