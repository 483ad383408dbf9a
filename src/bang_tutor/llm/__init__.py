"""
LLM module - the model behind the tutor agent.

Providers:
- Anthropic Claude (native SDK)
- OpenAI GPT (native SDK), also used for OpenRouter
"""

from .anthropic import AnthropicLLM
from .base import BaseLLM, LLMMessage, LLMResponse, ToolCall, ToolDefinition
from .factory import create_llm
from .openai import OpenAILLM

__all__ = [
    "BaseLLM",
    "LLMMessage",
    "LLMResponse",
    "ToolCall",
    "ToolDefinition",
    "AnthropicLLM",
    "OpenAILLM",
    "create_llm",
]
