from __future__ import annotations

import logging

import pytest

from skyops.models.stream import DirectiveCandidate, Envelope
from skyops.stream.accumulator import TokenAccumulator
from skyops.stream.session import StreamSession

from tests.fakes import ListSink


def test_tokens_append_in_order(session: StreamSession, sink: ListSink) -> None:
    accumulator = TokenAccumulator(session, sink=sink)

    for delta in ["Hel", "lo ", "world"]:
        accumulator.accept(Envelope.token(delta))

    assert session.text_buffer == "Hello world"
    assert accumulator.text == "Hello world"
    assert sink.deltas == ["Hel", "lo ", "world"]


def test_empty_and_non_token_envelopes_are_ignored(session: StreamSession, sink: ListSink) -> None:
    accumulator = TokenAccumulator(session, sink=sink)

    assert accumulator.accept(Envelope.token("")) == []
    assert accumulator.accept(Envelope.end()) == []
    assert accumulator.accept(Envelope.malformed("{oops")) == []

    assert session.text_buffer == ""
    assert sink.deltas == []


def test_display_happens_before_candidate_callback(session: StreamSession) -> None:
    events: list[str] = []

    def on_candidate(candidate: DirectiveCandidate) -> None:
        events.append(f"candidate:{candidate.raw}")

    accumulator = TokenAccumulator(
        session,
        sink=lambda delta: events.append(f"display:{delta}"),
        on_candidate=on_candidate,
    )
    accumulator.append("<action>x</action>")

    assert events == ["display:<action>x</action>", "candidate:x"]


def test_candidates_are_returned_and_passed_to_callback(session: StreamSession) -> None:
    seen: list[DirectiveCandidate] = []
    accumulator = TokenAccumulator(session, on_candidate=seen.append)

    assert accumulator.append("<action>{") == []
    returned = accumulator.append('"a":1}</action><action>2</action>')

    assert [c.raw for c in returned] == ['{"a":1}', "2"]
    assert seen == returned


def test_failing_sink_does_not_stop_accumulation(
    session: StreamSession, caplog: pytest.LogCaptureFixture
) -> None:
    def broken_sink(delta: str) -> None:
        raise RuntimeError("terminal gone")

    seen: list[DirectiveCandidate] = []
    accumulator = TokenAccumulator(session, sink=broken_sink, on_candidate=seen.append)

    with caplog.at_level(logging.WARNING, logger="skyops.stream.accumulator"):
        accumulator.append("<action>1</action>")

    assert session.text_buffer == "<action>1</action>"
    assert [c.raw for c in seen] == ["1"]
    assert "Display sink failed" in caplog.text
