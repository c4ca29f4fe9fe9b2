"""Conversion between stored message parts and UI message parts."""

from __future__ import annotations

import logging
from typing import Annotated, Any, Iterable, Iterator, Sequence

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..schemas.messages import (
    ConversationRecord,
    FilePart,
    ReasoningPart,
    StoredFile,
    StoredFilePart,
    StoredPart,
    StoredTextPart,
    TextPart,
    ToolInvocationPart,
    UIMessage,
    UIPart,
)

logger = logging.getLogger(__name__)


_STORED_PART_ADAPTER: TypeAdapter[StoredPart] = TypeAdapter(
    Annotated[StoredPart, Field(discriminator="type")]
)
_UI_PART_ADAPTER: TypeAdapter[UIPart] = TypeAdapter(
    Annotated[UIPart, Field(discriminator="type")]
)


def _as_mapping(raw: Any) -> Any:
    if isinstance(raw, BaseModel):
        return raw.model_dump(by_alias=True)
    return raw


def parse_stored_part(raw: Any) -> StoredPart | None:
    """Validate one persisted part, returning ``None`` when it is malformed."""

    try:
        return _STORED_PART_ADAPTER.validate_python(_as_mapping(raw))
    except PydanticValidationError as exc:
        logger.debug("Dropping malformed stored part: %s", exc.errors()[:1])
        return None


def parse_ui_part(raw: Any) -> UIPart | None:
    """Validate one UI part, returning ``None`` when it is malformed."""

    try:
        return _UI_PART_ADAPTER.validate_python(_as_mapping(raw))
    except PydanticValidationError as exc:
        logger.debug("Dropping malformed UI part: %s", exc.errors()[:1])
        return None


def iter_ui_parts(parts: Iterable[Any] | None) -> Iterator[UIPart]:
    for raw in parts or ():
        part = parse_ui_part(raw)
        if part is not None:
            yield part


def _stored_to_ui(part: StoredPart) -> UIPart:
    if isinstance(part, StoredTextPart):
        return TextPart(text=part.text)
    if isinstance(part, StoredFilePart):
        stored = part.file
        return FilePart(
            url=stored.url,
            mime_type=stored.mime_type,
            filename=stored.name,
            path=stored.path,
            size=stored.size,
        )
    return part


def decode_parts(record: ConversationRecord) -> list[UIPart]:
    """Map each stored part of ``record`` to its UI shape, skipping bad entries."""

    decoded: list[UIPart] = []
    for raw in record.parts:
        part = parse_stored_part(raw)
        if part is None:
            continue
        decoded.append(_stored_to_ui(part))
    return decoded


def encode_parts(message: UIMessage) -> list[StoredPart]:
    """Build the persisted parts for ``message``.

    Parts are deduplicated per kind: text by value, files by URL, tool
    invocations by call id and reasoning by text. Tool invocations without a
    result are not persisted. A message without structured parts falls back to
    its trimmed ``content``.
    """

    if not message.parts:
        text = message.content.strip() if message.content else ""
        return [StoredTextPart(text=text)] if text else []

    stored: list[StoredPart] = []
    seen_text: set[str] = set()
    seen_urls: set[str] = set()
    seen_calls: set[str] = set()
    seen_reasoning: set[str] = set()

    for part in iter_ui_parts(message.parts):
        if isinstance(part, TextPart):
            if not part.text or part.text in seen_text:
                continue
            seen_text.add(part.text)
            stored.append(StoredTextPart(text=part.text))
        elif isinstance(part, FilePart):
            if part.url in seen_urls:
                continue
            seen_urls.add(part.url)
            stored.append(
                StoredFilePart(
                    file=StoredFile(
                        name=part.filename or "file",
                        path=part.path or "",
                        url=part.url,
                        size=part.size or 0,
                        mime_type=part.mime_type,
                    )
                )
            )
        elif isinstance(part, ToolInvocationPart):
            invocation = part.tool_invocation
            if not invocation.has_result:
                logger.debug(
                    "Skipping unfinished tool invocation %s (%s)",
                    invocation.tool_call_id,
                    invocation.tool_name,
                )
                continue
            if invocation.tool_call_id in seen_calls:
                continue
            seen_calls.add(invocation.tool_call_id)
            stored.append(part)
        elif isinstance(part, ReasoningPart):
            if part.reasoning in seen_reasoning:
                continue
            seen_reasoning.add(part.reasoning)
            stored.append(part)

    return stored


def dump_parts(parts: Sequence[BaseModel]) -> list[dict[str, Any]]:
    """Serialize parts to JSON-ready dictionaries using their camelCase aliases."""

    return [part.model_dump(mode="json", by_alias=True, exclude_none=True) for part in parts]


__all__ = [
    "decode_parts",
    "dump_parts",
    "encode_parts",
    "iter_ui_parts",
    "parse_stored_part",
    "parse_ui_part",
]
