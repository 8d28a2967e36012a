from __future__ import annotations

import pytest

from skyops.approval.gate import ApprovalGate
from skyops.config import LLMConfig, SkyopsSettings
from skyops.core.chat_client import ChatCompletionClient
from skyops.core.console import OpsConsole
from skyops.core.pipeline import DirectivePipeline
from skyops.core.turn import TurnRunner
from skyops.execution.dispatcher import ExecutionDispatcher
from skyops.stream.session import StreamSession

from tests.fakes import (
    ApprovalEvents,
    FakeCompletionServer,
    ListSink,
    RecordingDispatcher,
    RecordingHandlers,
)
from tests.helpers import TEST_ENDPOINT


@pytest.fixture
def session() -> StreamSession:
    return StreamSession()


@pytest.fixture
def handlers() -> RecordingHandlers:
    return RecordingHandlers()


@pytest.fixture
def recording_dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def approval_events() -> ApprovalEvents:
    return ApprovalEvents()


@pytest.fixture
def sink() -> ListSink:
    return ListSink()


@pytest.fixture
def gate(handlers: RecordingHandlers, approval_events: ApprovalEvents) -> ApprovalGate:
    return ApprovalGate(ExecutionDispatcher(handlers.registry()), on_change=approval_events)


@pytest.fixture
def pipeline(gate: ApprovalGate) -> DirectivePipeline:
    return DirectivePipeline(gate=gate)


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig(endpoint=TEST_ENDPOINT, api_key="test-key")


@pytest.fixture
def server() -> FakeCompletionServer:
    return FakeCompletionServer()


@pytest.fixture
def runner(
    server: FakeCompletionServer,
    pipeline: DirectivePipeline,
    llm_config: LLMConfig,
) -> TurnRunner:
    return TurnRunner(ChatCompletionClient(llm_config, server.client()), pipeline)


@pytest.fixture
def settings(llm_config: LLMConfig) -> SkyopsSettings:
    return SkyopsSettings(llm=llm_config)


@pytest.fixture
def console(settings: SkyopsSettings, server: FakeCompletionServer) -> OpsConsole:
    return OpsConsole(settings, http_client=server.client())

