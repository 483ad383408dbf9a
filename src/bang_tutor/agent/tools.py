"""
Tutor tool set, including the presentation tools that ask the student
something through the client UI.

Each presentation call registers a pending tool call, shows the payload in the client
and suspends the agent's turn until the student answers. The answer is
returned to the model as JSON.
"""

import json
from typing import Any

from ..content.store import ContentStore
from ..errors import ToolCallTimeout
from ..tools import ToolRegistry, create_content_tools, create_sm2_tool
from ..tools.base import Tool, ToolParameter, ToolResult
from .tool_calls import PresentationKind, ToolCallRegistry

EXERCISE_TYPES = ["listening", "translation", "writing_prompt", "spot_the_error"]

EXERCISE_SCHEMA = {
    "properties": {
        "type": {"type": "string", "enum": EXERCISE_TYPES},
        "id": {"type": "string", "description": "Stable id for this exercise"},
        "prompt": {"type": "string", "description": "Instruction shown to the student"},
        "targetText": {
            "type": "string",
            "description": "Target-language sentence (hidden for listening until revealed)",
        },
        "nativeText": {"type": "string", "description": "Native-language sentence for translation"},
        "concepts": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Concepts or vocabulary to use in writing prompts",
        },
    },
    "required": ["type", "id", "prompt"],
}

OPTIONS_SCHEMA = {
    "items": {
        "type": "object",
        "properties": {
            "id": {"type": "string"},
            "label": {"type": "string"},
            "description": {"type": "string"},
        },
        "required": ["id", "label"],
    },
    "minItems": 1,
}

PROPOSALS_SCHEMA = {
    "items": {
        "type": "object",
        "properties": {
            "file": {"type": "string", "description": "Artifact name, e.g. current.md"},
            "action": {"type": "string", "enum": ["add", "remove", "move"]},
            "item": {"type": "string"},
            "to": {"type": "string", "description": "Destination artifact for a move"},
        },
        "required": ["file", "action", "item"],
    },
}


def _answered(answer: Any) -> ToolResult:
    return ToolResult(success=True, output=json.dumps(answer, ensure_ascii=False), data=answer)


def create_presentation_tools(
    calls: ToolCallRegistry,
    timeout: float | None = None,
) -> list[Tool]:
    """Create the tools that block on a client answer."""

    async def ask(kind: PresentationKind, payload: dict[str, Any]) -> ToolResult:
        try:
            answer = await calls.request(kind, payload, timeout=timeout)
        except ToolCallTimeout:
            return ToolResult(success=False, error="The student did not answer in time.")
        return _answered(answer)

    async def present_exercise(exercise: dict[str, Any]) -> ToolResult:
        if exercise.get("type") not in EXERCISE_TYPES:
            return ToolResult(
                success=False,
                error=f"Unknown exercise type {exercise.get('type')!r}; use one of {', '.join(EXERCISE_TYPES)}",
            )
        return await ask(PresentationKind.EXERCISE, {"exercise": exercise})

    async def present_options(prompt: str, options: list[dict[str, Any]]) -> ToolResult:
        if not options:
            return ToolResult(success=False, error="At least one option is required.")
        return await ask(PresentationKind.OPTIONS, {"prompt": prompt, "options": options})

    async def propose_file_changes(proposals: list[dict[str, Any]], prompt: str = "") -> ToolResult:
        return await ask(
            PresentationKind.PROPOSE_FILE_CHANGES,
            {
                "prompt": prompt or "The tutor proposes the following changes. Accept?",
                "proposals": proposals,
                "options": [
                    {"id": "accept", "label": "Accept"},
                    {"id": "reject", "label": "Reject"},
                ],
            },
        )

    return [
        Tool(
            name="present_exercise",
            description=(
                "Show an interactive exercise card to the student and wait for their answer. "
                "Returns the student's response as JSON."
            ),
            parameters=[
                ToolParameter(
                    name="exercise",
                    param_type="object",
                    description="The exercise to present",
                    schema=EXERCISE_SCHEMA,
                ),
            ],
            handler=present_exercise,
        ),
        Tool(
            name="present_options",
            description=(
                "Show clickable options to the student and wait for a choice. Always use this "
                "instead of typing a list of choices. Returns the chosen option as JSON."
            ),
            parameters=[
                ToolParameter(name="prompt", param_type="string", description="Question shown above the options"),
                ToolParameter(
                    name="options",
                    param_type="array",
                    description="Options with id, label and optional description",
                    schema=OPTIONS_SCHEMA,
                ),
            ],
            handler=present_options,
        ),
        Tool(
            name="propose_file_changes",
            description=(
                "Propose changes to the student's language files (move items between "
                "current/review/learned, add or remove items) and wait for them to accept or reject. "
                "Only apply the changes after they are accepted."
            ),
            parameters=[
                ToolParameter(
                    name="proposals",
                    param_type="array",
                    description="The individual changes",
                    schema=PROPOSALS_SCHEMA,
                ),
                ToolParameter(
                    name="prompt",
                    param_type="string",
                    description="Optional question shown with the proposals",
                    required=False,
                ),
            ],
            handler=propose_file_changes,
        ),
    ]


def build_tutor_tools(
    calls: ToolCallRegistry,
    content: ContentStore,
    topic: str,
    timeout: float | None = None,
) -> ToolRegistry:
    """Full tool set for one tutoring session."""
    return ToolRegistry(
        create_presentation_tools(calls, timeout=timeout)
        + [create_sm2_tool()]
        + create_content_tools(content, topic)
    )
