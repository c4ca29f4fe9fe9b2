"""Translate between persisted conversation records and UI messages."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..errors import ValidationError
from ..providers import get_model_by_id
from ..schemas.messages import (
    ConversationRecord,
    FilePart,
    ModelConfigSnapshot,
    ReasoningLevel,
    TextPart,
    UIMessage,
)
from .decoding import decode_message_saved, find_annotation
from .parts import decode_parts, dump_parts, encode_parts

logger = logging.getLogger(__name__)

ATTACHMENT_PLACEHOLDER = "[Attachment]"


@dataclass(frozen=True)
class RecordContext:
    """Request-scoped data needed to persist a UI message."""

    session_id: Optional[str]
    user_id: Optional[str]
    model: Optional[str] = None
    model_provider: Optional[str] = None
    reasoning_level: Optional[ReasoningLevel] = None
    search_enabled: Optional[bool] = None
    provider_metadata: Optional[Mapping[str, Any]] = None


def extract_grounding_metadata(
    provider_metadata: Mapping[str, Any] | None,
) -> Any | None:
    """Return Google grounding metadata from provider metadata, if any."""

    if not isinstance(provider_metadata, Mapping):
        return None
    google = provider_metadata.get("google")
    if not isinstance(google, Mapping):
        return None
    grounding = google.get("groundingMetadata")
    if not grounding:
        return None
    if isinstance(grounding, Mapping):
        logger.debug(
            "Grounding metadata: queries=%d chunks=%d supports=%d",
            len(grounding.get("webSearchQueries") or []),
            len(grounding.get("groundingChunks") or []),
            len(grounding.get("groundingSupports") or []),
        )
    return grounding


def _message_complete_annotation(record: ConversationRecord) -> dict[str, Any]:
    data: dict[str, Any] = {
        "modelUsed": record.model_used,
        "modelProvider": record.model_provider,
    }
    grounding = (record.metadata or {}).get("grounding")
    if grounding:
        data["grounding"] = grounding
        data["hasGrounding"] = True
    return {"type": "message_complete", "data": data}


def to_ui_message(record: ConversationRecord | Mapping[str, Any]) -> UIMessage:
    if not isinstance(record, ConversationRecord):
        record = ConversationRecord.model_validate(record)

    parts = decode_parts(record)
    first_text = next((part for part in parts if isinstance(part, TextPart)), None)
    content = first_text.text.strip() if first_text is not None else ""
    if not content and any(isinstance(part, FilePart) for part in parts):
        content = ATTACHMENT_PLACEHOLDER

    return UIMessage(
        id=record.id,
        role=record.role,
        content=content,
        parts=parts,
        created_at=record.created_at,
        annotations=[_message_complete_annotation(record)],
    )


def to_ui_messages(
    records: Iterable[ConversationRecord | Mapping[str, Any]],
) -> list[UIMessage]:
    """Convert persisted records into UI messages, preserving order."""

    return [to_ui_message(record) for record in records]


def _resolve_model_used(
    model: Optional[str],
    reasoning_level: Optional[str],
) -> Optional[str]:
    if not model:
        return None
    if reasoning_level:
        profile = get_model_by_id(model)
        if profile is not None and profile.supports_reasoning_levels:
            return f"{model} ({reasoning_level})"
    return model


def to_record(message: UIMessage, context: RecordContext) -> ConversationRecord:
    """Prepare ``message`` for persistence; ``created_at`` is left to storage.

    Raises:
        ValidationError: ``session_id`` or ``user_id`` is missing.
    """

    if not context.session_id or not context.session_id.strip():
        raise ValidationError("session_id")
    if not context.user_id or not context.user_id.strip():
        raise ValidationError("user_id")

    snapshot = ModelConfigSnapshot(
        reasoning_level=context.reasoning_level,
        search_enabled=context.search_enabled,
    )

    metadata: dict[str, Any] = {}
    provider_metadata = context.provider_metadata or {}
    usage = provider_metadata.get("usage")
    if usage:
        metadata["usage"] = usage
    grounding = extract_grounding_metadata(provider_metadata)
    if grounding:
        metadata["grounding"] = grounding

    return ConversationRecord(
        id=message.id or str(uuid.uuid4()),
        session_id=context.session_id,
        user_id=context.user_id,
        role=message.role,
        parts=dump_parts(encode_parts(message)),
        model_used=_resolve_model_used(context.model, context.reasoning_level),
        model_provider=context.model_provider or None,
        generation_config=snapshot.model_dump(by_alias=True, exclude_none=True),
        metadata=metadata,
    )


def ensure_unique_messages(messages: Sequence[UIMessage]) -> list[UIMessage]:
    """Drop duplicate ids, keeping the latest version at the first position."""

    unique: list[UIMessage] = []
    index_by_id: dict[str, int] = {}
    for message in messages:
        existing = index_by_id.get(message.id)
        if existing is None:
            index_by_id[message.id] = len(unique)
            unique.append(message)
            continue
        logger.warning(
            "Duplicate message ID detected: %s, keeping latest version", message.id
        )
        unique[existing] = message
    return unique


def reconcile_message_ids(messages: Sequence[UIMessage]) -> list[UIMessage]:
    """Replace provisional client ids with the ids assigned at persistence.

    Uses the ``message_saved`` annotation. Messages are copied, never mutated.
    """

    reconciled: list[UIMessage] = []
    for message in messages:
        saved = find_annotation(message.annotations, decode_message_saved)
        if saved is not None and saved.database_id != message.id:
            logger.debug("Reconciling message id %s -> %s", message.id, saved.database_id)
            message = message.model_copy(update={"id": saved.database_id})
        reconciled.append(message)
    return ensure_unique_messages(reconciled)


__all__ = [
    "ATTACHMENT_PLACEHOLDER",
    "RecordContext",
    "ensure_unique_messages",
    "extract_grounding_metadata",
    "reconcile_message_ids",
    "to_record",
    "to_ui_message",
    "to_ui_messages",
]
