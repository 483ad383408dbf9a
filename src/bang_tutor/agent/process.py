"""
Agent process - the conversational engine the session bridge talks to.

An agent process reads an ordered input stream (the InputFeeder) and
produces an output stream of units:

- NarrationUnit: text for the student
- ToolUseUnit: the agent invoked a tool (informational)
- ResultUnit: the turn finished, successfully or not

Tool calls are dispatched by the process itself. Presentation tools block
inside their handler until the client answers, which suspends the turn
without blocking anything else on the event loop.
"""

import asyncio
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Protocol, Union

import structlog

from ..llm import BaseLLM, LLMMessage
from ..tools import ToolRegistry
from .feeder import InputFeeder

logger = structlog.get_logger()


@dataclass
class NarrationUnit:
    text: str


@dataclass
class ToolUseUnit:
    name: str
    tool_call_id: str


@dataclass
class ResultUnit:
    success: bool = True
    errors: list[str] = field(default_factory=list)


OutputUnit = Union[NarrationUnit, ToolUseUnit, ResultUnit]


class AgentProcessHandle(Protocol):
    """Binding to one live agent process."""

    def send(self, text: str) -> None:
        """Queue text for the agent."""
        ...

    def stream(self) -> AsyncIterator[OutputUnit]:
        """Output units. May be consumed once; yields nothing after close."""
        ...

    def close(self) -> None:
        ...


@dataclass
class ProcessConfig:
    """Everything needed to start an agent process for a session."""

    topic: str
    system_prompt: str
    inputs: InputFeeder
    tools: ToolRegistry
    history: list[LLMMessage] = field(default_factory=list)


ProcessFactory = Callable[[ProcessConfig], AgentProcessHandle]


class AgentProcess:
    """LLM-backed agent process with a tool-execution loop per turn."""

    def __init__(self, llm: BaseLLM, config: ProcessConfig, max_tool_iterations: int = 25):
        self.llm = llm
        self.topic = config.topic
        self.system_prompt = config.system_prompt
        self.inputs = config.inputs
        self.tools = config.tools
        self.context: list[LLMMessage] = list(config.history)
        self.max_tool_iterations = max_tool_iterations

        self._outputs: asyncio.Queue[OutputUnit | None] = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._started = False
        self._closed = False
        self._error: BaseException | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, text: str) -> None:
        self.inputs.enqueue(text)

    async def stream(self) -> AsyncIterator[OutputUnit]:
        if self._started:
            raise RuntimeError("Agent output stream can only be consumed once")
        self._started = True
        if self._closed:
            return

        self._task = asyncio.create_task(self._run(), name=f"agent-process-{self.topic}")
        while True:
            unit = await self._outputs.get()
            if self._closed:
                return
            if unit is None:
                if self._error is not None:
                    raise self._error
                return
            yield unit

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.inputs.close()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._outputs.put_nowait(None)
        logger.info("Agent process closed", topic=self.topic)

    def _emit(self, unit: OutputUnit) -> None:
        if not self._closed:
            self._outputs.put_nowait(unit)

    async def _run(self) -> None:
        try:
            async for text in self.inputs:
                await self._run_turn(text)
        except Exception as e:
            self._error = e
        finally:
            self._outputs.put_nowait(None)

    async def _run_turn(self, text: str) -> None:
        last = self.context[-1] if self.context else None
        if last is not None and last.role == "user":
            # Replayed history can end on an unanswered user message
            last.content = f"{last.content}\n\n{text}"
        else:
            self.context.append(LLMMessage(role="user", content=text))
        definitions = self.tools.get_definitions()

        for _ in range(self.max_tool_iterations):
            try:
                response = await self.llm.generate(
                    messages=self.context,
                    tools=definitions or None,
                    system_prompt=self.system_prompt,
                )
            except Exception as e:
                logger.error("LLM generation error", error=str(e))
                self._emit(ResultUnit(success=False, errors=[str(e)]))
                return

            if response.content:
                self._emit(NarrationUnit(response.content))

            if not response.tool_calls:
                self.context.append(LLMMessage(role="assistant", content=response.content))
                self._emit(ResultUnit(success=True))
                return

            self.context.append(LLMMessage(
                role="assistant",
                content=response.content,
                tool_calls=response.tool_calls,
            ))
            for tool_call in response.tool_calls:
                self._emit(ToolUseUnit(name=tool_call.name, tool_call_id=tool_call.id))
                result = await self.tools.execute(tool_call.name, tool_call.arguments)
                self.context.append(LLMMessage(
                    role="tool",
                    content=result.output if result.success else f"Error: {result.error}",
                    tool_call_id=tool_call.id,
                    name=tool_call.name,
                ))

        logger.warning("Reached max tool iterations", limit=self.max_tool_iterations)
        self._emit(ResultUnit(
            success=False,
            errors=[f"Reached the maximum of {self.max_tool_iterations} tool iterations"],
        ))


def llm_process_factory(llm_factory: Callable[[], BaseLLM], max_tool_iterations: int = 25) -> ProcessFactory:
    """Factory that starts an AgentProcess with a fresh LLM client per session."""

    def factory(config: ProcessConfig) -> AgentProcessHandle:
        return AgentProcess(llm_factory(), config, max_tool_iterations=max_tool_iterations)

    return factory
