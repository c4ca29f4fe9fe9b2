"""System message assembly for a model call."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from ..providers import ModelProfile

WEB_SEARCH_TOOL_PROMPT = (
    "You have access to a web search tool. Use it when you need current information, "
    "recent news, or facts not in your training data. Call the webSearch tool with "
    "relevant queries."
)
NATIVE_SEARCH_PROMPT = (
    "You have native web search capabilities integrated into your responses. You can "
    "automatically search for and include current information when needed."
)
MEMORY_PROMPT = (
    "You have access to memory tools that allow you to save and retrieve important user "
    "information for personalized interactions. Use memorySave when users share personal "
    "preferences, information, or important details worth remembering. Use memoryRetrieve "
    "when you need context about the user to provide personalized responses. Always show "
    "when you're saving or retrieving memories."
)
CODE_BLOCK_PROMPT = (
    "When providing code examples, use markdown code blocks with appropriate language "
    "specifiers: ```python code ```"
)


def format_current_time(now: Optional[datetime] = None) -> str:
    """Render ``now`` in UTC, e.g. ``Monday, June 2, 2025 at 10:00 AM UTC``."""

    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return (
        f"{moment:%A}, {moment:%B} {moment.day}, {moment.year} "
        f"at {moment:%I:%M %p} UTC"
    )


def build_system_message(
    profile: ModelProfile,
    *,
    search_enabled: bool,
    memory_enabled: bool = True,
    user_traits: Optional[str] = None,
    assistant_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Compose the system prompt for ``profile``.

    The web search tool is only announced when the model has no native search;
    models with native search are told about that instead.
    """

    native_search = profile.has_capability("search")
    sentences = [
        f"You are a helpful AI assistant. The current time is {format_current_time(now)}. "
        "Respond naturally and clearly.",
    ]
    if assistant_name:
        sentences.append(
            f"The assistant's name is {assistant_name}. "
            "Address yourself by name when appropriate."
        )
    if user_traits:
        sentences.append(f'Here are the traits user wants you to follow: "{user_traits}"')
    if search_enabled and not native_search:
        sentences.append(WEB_SEARCH_TOOL_PROMPT)
    if search_enabled and native_search:
        sentences.append(NATIVE_SEARCH_PROMPT)
    if memory_enabled:
        sentences.append(MEMORY_PROMPT)
    if profile.has_capability("image"):
        sentences.append("You can analyze images.")
    if profile.has_capability("pdf"):
        sentences.append("You can read PDFs.")
    sentences.append(CODE_BLOCK_PROMPT)
    return " ".join(sentences)


__all__ = [
    "CODE_BLOCK_PROMPT",
    "MEMORY_PROMPT",
    "NATIVE_SEARCH_PROMPT",
    "WEB_SEARCH_TOOL_PROMPT",
    "build_system_message",
    "format_current_time",
]
