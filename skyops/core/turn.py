"""One conversational turn: request, stream, reassemble, accumulate, gate.

A turn suspends only while awaiting the response headers or the next network
fragment, and both waits race the abort event. Everything triggered by a
fragment (display, extraction, validation, gating and LOW dispatch) runs to
completion before the next fragment is read, so directives are handled in the
order they appear in the reply.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

import httpx

from skyops.core.chat_client import ChatCompletionClient, TransportError
from skyops.core.logging import correlation_scope
from skyops.core.metrics import FRAMES_MALFORMED_TOTAL, TURNS_TOTAL, observe_turn_duration
from skyops.core.pipeline import AdmittedDirective, DirectivePipeline
from skyops.core.telemetry import get_tracer
from skyops.directives.extractor import DirectiveExtractor
from skyops.models.approval import ApprovalRecord
from skyops.models.messages import ChatMessage, ChatRequest
from skyops.models.stream import DirectiveCandidate, EnvelopeKind
from skyops.protocols.display import DisplaySink
from skyops.stream.accumulator import TokenAccumulator
from skyops.stream.frames import EventFrameParser, FrameReassembler
from skyops.stream.session import StreamSession

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class TurnInProgressError(RuntimeError):
    """A turn was started while another one is still being read."""


@dataclass(slots=True)
class TurnResult:
    turn_id: str
    text: str
    directives: list[AdmittedDirective] = field(default_factory=list)
    # True only when the stream ended with the done sentinel.
    completed: bool = False
    aborted: bool = False

    @property
    def approvals(self) -> list[ApprovalRecord]:
        return [item.record for item in self.directives if item.record is not None]


async def _pull(iterator: AsyncIterator[bytes]) -> bytes | None:
    try:
        return await anext(iterator)
    except StopAsyncIteration:
        return None


class TurnRunner:
    def __init__(
        self,
        client: ChatCompletionClient,
        pipeline: DirectivePipeline,
        *,
        parser: EventFrameParser | None = None,
        extractor: DirectiveExtractor | None = None,
    ) -> None:
        self._client = client
        self._pipeline = pipeline
        self._parser = parser or EventFrameParser()
        self._extractor = extractor or DirectiveExtractor()
        self._abort: asyncio.Event | None = None

    @property
    def active(self) -> bool:
        return self._abort is not None

    def abort(self) -> bool:
        """Stop reading the active turn at its current suspension point."""
        if self._abort is None:
            return False
        self._abort.set()
        return True

    async def run(
        self,
        messages: Sequence[ChatMessage],
        *,
        sink: DisplaySink | None = None,
    ) -> TurnResult:
        if self._abort is not None:
            raise TurnInProgressError("a turn is already streaming")
        abort = asyncio.Event()
        self._abort = abort

        session = StreamSession()
        admitted: list[AdmittedDirective] = []

        def on_candidate(candidate: DirectiveCandidate) -> None:
            result = self._pipeline.process(candidate)
            if result is not None:
                admitted.append(result)

        accumulator = TokenAccumulator(
            session, self._extractor, sink=sink, on_candidate=on_candidate
        )
        reassembler = FrameReassembler(session, self._parser)
        self._pipeline.begin_turn(session.turn_id)

        outcome = "transport_error"
        try:
            with (
                correlation_scope(turn_id=session.turn_id),
                _tracer.start_as_current_span("skyops.turn") as span,
                observe_turn_duration(),
            ):
                span.set_attribute("skyops.turn.id", session.turn_id)
                logger.info("Turn started (%d messages)", len(messages))
                request = self._client.build_request(messages)
                abort_wait = asyncio.ensure_future(abort.wait())
                try:
                    response = await self._connect(request, abort_wait)
                    if response is not None:
                        async with self._client.read_stream(response) as fragments:
                            await self._consume(
                                fragments, reassembler, accumulator, session, abort_wait
                            )
                finally:
                    abort_wait.cancel()
                if abort.is_set() and not session.ended:
                    session.aborted = True
                    logger.info(
                        "Turn aborted; %d chars read, open block dropped: %s",
                        len(session.text_buffer),
                        session.open_block_start is not None,
                    )

                if not session.closed:
                    for line in reassembler.finish():
                        if self._handle_line(line, accumulator, session):
                            break

                outcome = "aborted" if session.aborted else "completed"
                span.set_attribute("skyops.turn.outcome", outcome)
                span.set_attribute("skyops.turn.directives", len(admitted))
                logger.info(
                    "Turn %s: %d chars, %d directive(s) admitted",
                    outcome,
                    len(session.text_buffer),
                    len(admitted),
                )
        except TransportError:
            logger.error("Turn ended by transport failure")
            raise
        finally:
            TURNS_TOTAL.labels(outcome=outcome).inc()
            self._abort = None

        return TurnResult(
            turn_id=session.turn_id,
            text=session.text_buffer,
            directives=admitted,
            completed=session.ended,
            aborted=session.aborted,
        )

    async def _consume(
        self,
        fragments: AsyncIterator[bytes],
        reassembler: FrameReassembler,
        accumulator: TokenAccumulator,
        session: StreamSession,
        abort_wait: asyncio.Future[object],
    ) -> None:
        while not abort_wait.done():
            fragment = await self._next_fragment(fragments, abort_wait)
            if fragment is None:
                return
            for line in reassembler.feed(fragment):
                if self._handle_line(line, accumulator, session):
                    return

    async def _connect(
        self,
        request: ChatRequest,
        abort_wait: asyncio.Future[object],
    ) -> httpx.Response | None:
        """Open the completion stream unless the turn is aborted first."""
        connect = asyncio.ensure_future(self._client.send(request))
        try:
            done, _ = await asyncio.wait(
                {connect, abort_wait}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            connect.cancel()
            raise
        if connect in done:
            return connect.result()
        connect.cancel()
        try:
            response = await connect
        except (asyncio.CancelledError, TransportError):
            return None
        # Headers arrived while the abort was being handled.
        await response.aclose()
        return None

    async def _next_fragment(
        self,
        fragments: AsyncIterator[bytes],
        abort_wait: asyncio.Future[object],
    ) -> bytes | None:
        pull = asyncio.ensure_future(_pull(fragments))
        try:
            done, _ = await asyncio.wait({pull, abort_wait}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            pull.cancel()
            raise
        if pull in done:
            return pull.result()
        pull.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pull
        return None

    def _handle_line(
        self,
        line: str,
        accumulator: TokenAccumulator,
        session: StreamSession,
    ) -> bool:
        """Apply one line; True once the done sentinel has been seen."""
        envelope = self._parser.parse(line)
        if envelope is None:
            return False
        if envelope.kind == EnvelopeKind.end:
            session.ended = True
            return True
        if envelope.kind == EnvelopeKind.malformed:
            FRAMES_MALFORMED_TOTAL.inc()
            logger.debug("Dropping malformed frame: %.120s", envelope.raw)
            return False
        accumulator.accept(envelope)
        return False


__all__ = ["TurnInProgressError", "TurnResult", "TurnRunner"]
