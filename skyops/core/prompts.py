from __future__ import annotations

from collections.abc import Sequence

from skyops.models.directives import DirectiveType
from skyops.models.messages import ChatMessage, ChatRole

_SYSTEM_TEMPLATE = """\
You are the Airline Brain for "{airline}". You role-play ALL roles except the CEO (the player).
Roles you embody: OCC/Dispatch, Crew Scheduling, Maintenance Control, Network Planning, \
Revenue Mgmt, PR/Comms, Safety, ATC liaison, Ground Ops.
Constraints:
- Only act within provided game state & airline policy.
- When you need an action, emit a JSON directive like:
  <action>{{"type":"DELAY_FLIGHT","flightId":"CA1347","minutes":30,"reason":"de-icing queue"}}</action>
- Allowed directive types: {types}.
- Cancellations, aircraft swaps and crew reassignments wait for CEO approval.
- Keep replies concise and structured.
- If info is missing, ask exactly one clarifying question or propose 2-3 realistic options.
State:
{state}"""


def system_prompt(state_summary: str, *, airline: str = "Crown Aviation") -> str:
    return _SYSTEM_TEMPLATE.format(
        airline=airline,
        types=", ".join(item.value for item in DirectiveType),
        state=state_summary.strip() or "(no state summary yet)",
    ).strip()


def build_messages(
    user_text: str,
    state_summary: str,
    *,
    history: Sequence[ChatMessage] = (),
    airline: str = "Crown Aviation",
) -> list[ChatMessage]:
    """System prompt, prior exchanges, then the new operator message."""
    return [
        ChatMessage(role=ChatRole.system, content=system_prompt(state_summary, airline=airline)),
        *history,
        ChatMessage(role=ChatRole.user, content=user_text),
    ]


__all__ = ["build_messages", "system_prompt"]
