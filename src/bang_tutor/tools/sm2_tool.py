"""
SM-2 tool - lets the agent schedule review items.
"""

import json

from ..sm2 import compute_sm2
from .base import Tool, ToolParameter, ToolResult


def create_sm2_tool() -> Tool:
    """Create the stateless ``compute_sm2`` tool."""

    async def compute_sm2_tool(
        quality: float,
        current_repetitions: int | None = None,
        current_easiness: float | None = None,
        current_interval: int | None = None,
    ) -> ToolResult:
        result = compute_sm2(
            quality,
            repetitions=current_repetitions,
            easiness=current_easiness,
            interval=current_interval,
        )
        return ToolResult(success=True, output=json.dumps(result.to_dict()), data=result)

    return Tool(
        name="compute_sm2",
        description=(
            "Compute the next SM-2 spaced repetition state for an item given a quality score. "
            "Returns updated repetitions, easiness factor, interval, and next review date."
        ),
        parameters=[
            ToolParameter(
                name="quality",
                param_type="number",
                description=(
                    "Quality of response: 0=complete blackout, 1=incorrect but remembered on seeing "
                    "answer, 2=incorrect but easy to recall, 3=correct with serious difficulty, "
                    "4=correct after hesitation, 5=perfect response"
                ),
                schema={"minimum": 0, "maximum": 5},
            ),
            ToolParameter(
                name="current_repetitions",
                param_type="integer",
                description="Current repetition count",
                required=False,
            ),
            ToolParameter(
                name="current_easiness",
                param_type="number",
                description="Current easiness factor",
                required=False,
            ),
            ToolParameter(
                name="current_interval",
                param_type="integer",
                description="Current interval in days",
                required=False,
            ),
        ],
        handler=compute_sm2_tool,
    )
