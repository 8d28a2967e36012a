"""HTTP surface: completion relay, turn runner and approval commands.

``/api/chat`` is a thin relay that keeps the upstream API key on the server
and streams the upstream ``text/event-stream`` body back unchanged. The other
routes drive an ``OpsConsole`` held by the app.
"""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import BaseModel, Field, ValidationError
from starlette.background import BackgroundTask

from skyops.core.chat_client import TransportError
from skyops.core.console import OpsConsole
from skyops.core.metrics import metrics_generate_latest
from skyops.core.turn import TurnInProgressError, TurnResult
from skyops.directives.validator import DirectiveError
from skyops.models.messages import ChatMessage, ChatRequest

logger = logging.getLogger(__name__)


class RelayPayload(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)
    model: str | None = None
    temperature: float | None = None


class TurnPayload(BaseModel):
    text: str = Field(min_length=1)


class QuickActionPayload(BaseModel):
    action: str
    flight_id: str = Field(alias="flightId")


def _turn_body(result: TurnResult) -> dict[str, object]:
    return {
        "turnId": result.turn_id,
        "text": result.text,
        "completed": result.completed,
        "aborted": result.aborted,
        "directives": [
            {
                "action": item.directive.as_action(),
                "impact": item.impact.value,
                "approvalId": item.record.id if item.record is not None else None,
            }
            for item in result.directives
        ],
        "approvals": [record.as_display() for record in result.approvals],
    }


def create_app(console: OpsConsole) -> FastAPI:
    settings = console.settings
    cors = {"Access-Control-Allow-Origin": settings.web.allow_origin}
    app = FastAPI(title="skyops")
    app.state.console = console

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "turn_active": console.runner.active,
                "pending_approvals": len(console.gate.pending()),
            }
        )

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(metrics_generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.options("/api/chat")
    async def relay_preflight() -> Response:
        return Response(
            status_code=204,
            headers={
                **cors,
                "Access-Control-Allow-Headers": "Content-Type",
                "Access-Control-Allow-Methods": "POST,OPTIONS",
            },
        )

    @app.post("/api/chat")
    async def relay(request: Request) -> Response:
        if not settings.llm.resolve_api_key():
            return JSONResponse({"error": "API key missing"}, status_code=500, headers=cors)

        try:
            raw = json.loads((await request.body()) or b"{}")
            payload = RelayPayload.model_validate(raw)
        except (ValueError, ValidationError):
            return JSONResponse({"error": "Invalid JSON"}, status_code=400, headers=cors)

        chat_request = ChatRequest(
            model=payload.model or settings.llm.model,
            messages=payload.messages,
            temperature=(
                payload.temperature if payload.temperature is not None else settings.llm.temperature
            ),
            stream=True,
        )
        try:
            upstream = await console.client.send(chat_request)
        except TransportError as exc:
            return JSONResponse(
                {"error": "Upstream error", "detail": exc.detail or str(exc)},
                status_code=502,
                headers=cors,
            )

        return StreamingResponse(
            upstream.aiter_raw(),
            media_type="text/event-stream; charset=utf-8",
            headers={**cors, "Cache-Control": "no-cache, no-transform"},
            background=BackgroundTask(upstream.aclose),
        )

    @app.post("/api/turns")
    async def run_turn(payload: TurnPayload) -> JSONResponse:
        try:
            result = await console.send(payload.text)
        except TurnInProgressError as exc:
            return JSONResponse({"error": str(exc)}, status_code=409)
        except TransportError as exc:
            return JSONResponse(
                {"error": "Upstream error", "detail": exc.detail or str(exc)},
                status_code=502,
            )
        return JSONResponse(_turn_body(result))

    @app.post("/api/turns/abort")
    async def abort_turn() -> JSONResponse:
        return JSONResponse({"aborted": console.abort()})

    @app.get("/api/approvals")
    async def list_approvals() -> JSONResponse:
        return JSONResponse(console.gate.as_display())

    @app.post("/api/approvals/{approval_id}/approve")
    async def approve(approval_id: str) -> JSONResponse:
        return JSONResponse(_decision_body(console, approval_id, console.approve(approval_id)))

    @app.post("/api/approvals/{approval_id}/reject")
    async def reject(approval_id: str) -> JSONResponse:
        return JSONResponse(_decision_body(console, approval_id, console.reject(approval_id)))

    @app.get("/api/board")
    async def board() -> JSONResponse:
        return JSONResponse(
            {
                "flights": [f.model_dump(mode="json") for f in console.board.flights.values()],
                "feed": [event.model_dump(mode="json") for event in console.board.feed],
            }
        )

    @app.post("/api/quick-actions")
    async def quick_action(payload: QuickActionPayload) -> JSONResponse:
        try:
            admitted = console.quick_action(payload.action, payload.flight_id)
        except KeyError as exc:
            return JSONResponse({"error": str(exc.args[0])}, status_code=404)
        except DirectiveError as exc:
            return JSONResponse({"error": str(exc)}, status_code=422)
        return JSONResponse(
            {
                "action": admitted.directive.as_action(),
                "impact": admitted.impact.value,
                "approvalId": admitted.record.id if admitted.record is not None else None,
            }
        )

    return app


def _decision_body(console: OpsConsole, approval_id: str, changed: bool) -> dict[str, object]:
    record = console.gate.get(approval_id)
    return {
        "id": approval_id,
        "changed": changed,
        "status": record.status.value if record is not None else None,
    }


__all__ = ["create_app"]
