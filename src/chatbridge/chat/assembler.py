"""Consolidate a provider's response segments into one assistant message."""

from __future__ import annotations

import logging
from typing import Annotated, Any, Iterable, Mapping, Sequence

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..schemas.messages import (
    ContentItem,
    CoreMessage,
    ReasoningContent,
    ReasoningDetail,
    ReasoningPart,
    TextContent,
    TextPart,
    ToolCallContent,
    ToolInvocation,
    ToolInvocationPart,
    ToolResultContent,
    UIMessage,
    UIPart,
)

logger = logging.getLogger(__name__)


_CONTENT_ITEM = TypeAdapter(Annotated[ContentItem, Field(discriminator="type")])


def _coerce_segment(segment: CoreMessage | Mapping[str, Any]) -> CoreMessage | None:
    if isinstance(segment, CoreMessage):
        return segment
    try:
        return CoreMessage.model_validate(segment)
    except PydanticValidationError as exc:
        logger.debug("Segment failed validation, salvaging known items: %s", exc)

    if not isinstance(segment, Mapping) or not isinstance(segment.get("content"), list):
        logger.warning("Skipping unreadable response segment")
        return None

    items: list[ContentItem] = []
    for raw in segment["content"]:
        try:
            items.append(_CONTENT_ITEM.validate_python(raw))
        except PydanticValidationError:
            logger.debug(
                "Skipping unsupported content item %r",
                raw.get("type") if isinstance(raw, Mapping) else raw,
            )
    try:
        return CoreMessage(role=segment.get("role"), content=items)
    except PydanticValidationError:
        logger.warning("Skipping segment with role %r", segment.get("role"))
        return None


def _coerce_segments(
    segments: Iterable[CoreMessage | Mapping[str, Any]],
) -> list[CoreMessage]:
    coerced: list[CoreMessage] = []
    for segment in segments:
        message = _coerce_segment(segment)
        if message is not None:
            coerced.append(message)
    return coerced


def _find_tool_result(
    segments: Sequence[CoreMessage],
    tool_call_id: str,
) -> ToolResultContent | None:
    for segment in segments:
        if segment.role != "tool":
            continue
        for item in segment.items:
            if isinstance(item, ToolResultContent) and item.tool_call_id == tool_call_id:
                return item
    return None


def assemble_assistant_message(
    segments: Iterable[CoreMessage | Mapping[str, Any]],
    message_id: str,
) -> UIMessage:
    """Merge the segments of one assistant turn into a single `UIMessage`.

    Each tool call becomes a ``tool-invocation`` part paired with the matching
    tool result from any tool segment. Unmatched calls are still emitted, with
    no result, so step numbers stay monotonic. ``message_id`` comes from the
    caller so it can later be reconciled with the persisted id.
    """

    ordered = _coerce_segments(segments)
    parts: list[UIPart] = []
    content = ""
    step = 0

    for segment in ordered:
        if segment.role != "assistant":
            continue
        for item in segment.items:
            if isinstance(item, TextContent):
                parts.append(TextPart(text=item.text))
                content += item.text
            elif isinstance(item, ToolCallContent):
                match = _find_tool_result(ordered, item.tool_call_id)
                if match is None:
                    logger.warning(
                        "No tool result found for call %s (%s)",
                        item.tool_call_id,
                        item.tool_name,
                    )
                parts.append(
                    ToolInvocationPart(
                        tool_invocation=ToolInvocation(
                            tool_call_id=item.tool_call_id,
                            tool_name=item.tool_name,
                            args=item.args,
                            result=match.result if match is not None else None,
                            state="result",
                            step=step,
                        )
                    )
                )
                step += 1
            elif isinstance(item, ReasoningContent):
                if not item.text:
                    continue
                parts.append(
                    ReasoningPart(
                        reasoning=item.text,
                        details=[
                            ReasoningDetail(
                                type="text",
                                text=item.text,
                                signature=item.signature,
                            )
                        ],
                    )
                )

    return UIMessage(id=message_id, role="assistant", content=content, parts=parts)


__all__ = ["assemble_assistant_message"]
