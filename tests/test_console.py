from __future__ import annotations

import pytest

from skyops.config import DirectivesConfig, SkyopsSettings
from skyops.core.console import QUICK_ACTIONS, OpsConsole
from skyops.core.prompts import build_messages, system_prompt
from skyops.directives.validator import DirectiveValidationError
from skyops.models.approval import ApprovalStatus
from skyops.models.directives import DirectiveType, ImpactLevel
from skyops.models.messages import ChatMessage, ChatRole
from skyops.ops.board import FlightStatus

from tests.fakes import ApprovalEvents, FakeCompletionServer
from tests.helpers import sse_body


class TestPrompts:
    def test_system_prompt_lists_types_and_state(self) -> None:
        prompt = system_prompt("CA1 JFK->LHR delayed", airline="Alpine Air")

        assert '"Alpine Air"' in prompt
        assert "CA1 JFK->LHR delayed" in prompt
        for item in DirectiveType:
            assert item.value in prompt

    def test_empty_state(self) -> None:
        assert "(no state summary yet)" in system_prompt("   ")

    def test_message_order(self) -> None:
        history = [
            ChatMessage(role=ChatRole.user, content="earlier"),
            ChatMessage(role=ChatRole.assistant, content="reply"),
        ]
        messages = build_messages("now", "state", history=history)

        assert [m.role for m in messages] == [
            ChatRole.system,
            ChatRole.user,
            ChatRole.assistant,
            ChatRole.user,
        ]
        assert messages[-1].content == "now"


@pytest.mark.asyncio
async def test_send_streams_and_remembers(
    console: OpsConsole, server: FakeCompletionServer
) -> None:
    server.fragments = [
        sse_body(
            "Holding CA220 ",
            '<action>{"type":"DELAY_FLIGHT","flightId":"CA220","minutes":10}</action>',
        )
    ]

    result = await console.send("Delay CA220 by ten")

    assert result.completed
    assert console.board.flights["CA220"].delay_min == 10
    assert [m.content for m in console.history] == ["Delay CA220 by ten", result.text]
    system = server.payloads[0]["messages"][0]
    assert system["role"] == "system"
    assert "CA220 ZRH->JFK" in system["content"]


@pytest.mark.asyncio
async def test_history_is_trimmed(settings: SkyopsSettings, server: FakeCompletionServer) -> None:
    console = OpsConsole(
        settings.model_copy(update={"history_turns": 1}), http_client=server.client()
    )

    for text in ["one", "two", "three"]:
        server.fragments = [sse_body(f"re {text}")]
        await console.send(text)

    assert [m.content for m in console.history] == ["three", "re three"]
    assert len(server.payloads[-1]["messages"]) == 4


@pytest.mark.asyncio
async def test_high_impact_waits_for_operator(
    settings: SkyopsSettings, server: FakeCompletionServer, approval_events: ApprovalEvents
) -> None:
    console = OpsConsole(settings, http_client=server.client(), on_approval_change=approval_events)
    server.fragments = [
        sse_body('<action>{"type":"CANCEL_FLIGHT","flightId":"CA220"}</action>')
    ]

    result = await console.send("Cancel CA220")

    [record] = result.approvals
    assert record.impact == ImpactLevel.high
    assert console.board.flights["CA220"].status == FlightStatus.on_time

    assert console.approve(record.id) is True
    assert console.board.flights["CA220"].status == FlightStatus.cancelled
    assert console.approve(record.id) is False
    assert [r.status for r in approval_events.records] == [
        ApprovalStatus.pending,
        ApprovalStatus.approved,
    ]


def test_quick_action_low_executes(console: OpsConsole) -> None:
    admitted = console.quick_action("delay-15", "CA220")

    assert admitted.record is None
    assert console.board.flights["CA220"].etd == "12:25"


def test_quick_action_swap_is_queued(console: OpsConsole) -> None:
    admitted = console.quick_action("swap-tail", "CA1347")

    assert admitted.impact == ImpactLevel.medium
    assert admitted.record is not None
    assert console.reject(admitted.record.id)
    assert console.gate.get(admitted.record.id).status == ApprovalStatus.rejected


def test_every_quick_action_validates(console: OpsConsole) -> None:
    for action in QUICK_ACTIONS:
        console.quick_action(action, "CA1347")


def test_quick_action_unknown(console: OpsConsole) -> None:
    with pytest.raises(KeyError, match="unknown quick action"):
        console.quick_action("launch", "CA220")
    with pytest.raises(KeyError, match="unknown flight"):
        console.quick_action("delay-15", "XX9")


def test_propose_validates_payload(console: OpsConsole) -> None:
    with pytest.raises(DirectiveValidationError):
        console.propose({"type": "DELAY_FLIGHT", "flightId": "CA220"})


@pytest.mark.asyncio
async def test_configured_markers_are_used(
    settings: SkyopsSettings, server: FakeCompletionServer
) -> None:
    custom = settings.model_copy(
        update={"directives": DirectivesConfig(start_marker="[[", end_marker="]]")}
    )
    console = OpsConsole(custom, http_client=server.client())
    server.fragments = [
        sse_body(
            '<action>{"type":"CANCEL_FLIGHT","flightId":"CA220"}</action> ',
            '[[{"type":"DELAY_FLIGHT","flightId":"CA220","minutes":5}]]',
        )
    ]

    result = await console.send("go")

    assert [item.directive.directive_type for item in result.directives] == [
        DirectiveType.delay_flight
    ]
    assert console.board.flights["CA220"].status == FlightStatus.delayed
