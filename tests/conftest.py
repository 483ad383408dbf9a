"""
Shared fixtures: a temporary database, a content root, a recording client
and a scripted agent process standing in for the LLM.
"""

import asyncio
from typing import Any, AsyncIterator, Callable

import pytest
import pytest_asyncio

from bang_tutor.agent import NarrationUnit, ProcessConfig, ResultUnit, SessionManager
from bang_tutor.content import ContentStore
from bang_tutor.models import init_database
from bang_tutor.store import TranscriptStore


async def reply_script(process: "FakeAgentProcess", text: str) -> AsyncIterator[Any]:
    """Default script: one narration and a successful result per input."""
    yield NarrationUnit(f"reply {len(process.received)}")
    yield ResultUnit(success=True)


class FakeAgentProcess:
    """Agent process that answers each input by running a script."""

    def __init__(self, config: ProcessConfig, script: Callable[..., AsyncIterator[Any]]):
        self.config = config
        self.inputs = config.inputs
        self.tools = config.tools
        self.script = script
        self.received: list[str] = []
        self.closed = False
        self.stream_started = False

    def send(self, text: str) -> None:
        self.inputs.enqueue(text)

    async def stream(self) -> AsyncIterator[Any]:
        if self.stream_started:
            raise RuntimeError("stream already consumed")
        self.stream_started = True
        async for text in self.inputs:
            if self.closed:
                return
            self.received.append(text)
            async for unit in self.script(self, text):
                if self.closed:
                    return
                yield unit

    def close(self) -> None:
        self.closed = True
        self.inputs.close()


class FakeProcessFactory:
    """Process factory recording every process it starts."""

    def __init__(self) -> None:
        self.script = reply_script
        self.processes: list[FakeAgentProcess] = []

    def __call__(self, config: ProcessConfig) -> FakeAgentProcess:
        process = FakeAgentProcess(config, self.script)
        self.processes.append(process)
        return process

    @property
    def last(self) -> FakeAgentProcess:
        return self.processes[-1]


class RecordingClient:
    """Client sink that records every event it is sent."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    async def send(self, event: dict[str, Any]) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [e for e in self.events if e["type"] == event_type]

    def types(self) -> list[str]:
        return [e["type"] for e in self.events]

    async def wait_for(self, predicate: Callable[[dict[str, Any]], bool], timeout: float = 2.0) -> dict[str, Any]:
        """Wait until an event matching ``predicate`` has been sent."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            for event in self.events:
                if predicate(event):
                    return event
            if loop.time() > deadline:
                raise AssertionError(f"No matching event in {self.types()}")
            await asyncio.sleep(0.01)


@pytest_asyncio.fixture
async def store(tmp_path):
    session_maker = await init_database(f"sqlite+aiosqlite:///{tmp_path / 'bang.db'}")
    yield TranscriptStore(session_maker)
    await session_maker.kw["bind"].dispose()


@pytest.fixture
def content(tmp_path):
    return ContentStore(tmp_path / "data")


@pytest.fixture
def fake_factory():
    return FakeProcessFactory()


@pytest.fixture
def client():
    return RecordingClient()


@pytest_asyncio.fixture
async def manager(store, content, fake_factory, client):
    manager = SessionManager(store, content, fake_factory)
    manager.attach(client.send)
    yield manager
    await manager.shutdown()
