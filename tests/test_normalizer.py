from __future__ import annotations

from datetime import datetime, timezone

import pytest

from chatbridge.chat.normalizer import (
    ATTACHMENT_PLACEHOLDER,
    RecordContext,
    ensure_unique_messages,
    extract_grounding_metadata,
    reconcile_message_ids,
    to_record,
    to_ui_messages,
)
from chatbridge.errors import ValidationError
from chatbridge.schemas.messages import ConversationRecord, UIMessage


def _record(**overrides) -> ConversationRecord:
    values = {
        "id": "rec-1",
        "session_id": "session-1",
        "user_id": "user-1",
        "role": "assistant",
        "parts": [{"type": "text", "text": "  Hello!  "}],
        "model_used": "gemini-2.5-pro (high)",
        "model_provider": "Google",
        "created_at": datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return ConversationRecord(**values)


def test_to_ui_uses_first_text_part_and_attaches_provenance() -> None:
    (message,) = to_ui_messages([_record()])

    assert message.id == "rec-1"
    assert message.role == "assistant"
    assert message.content == "Hello!"
    assert message.created_at == datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert message.annotations == [
        {
            "type": "message_complete",
            "data": {"modelUsed": "gemini-2.5-pro (high)", "modelProvider": "Google"},
        }
    ]


def test_to_ui_uses_placeholder_for_file_only_records() -> None:
    record = _record(
        parts=[
            {
                "type": "file",
                "file": {
                    "name": "scan.pdf",
                    "url": "https://files.example.com/scan.pdf",
                    "mimeType": "application/pdf",
                },
            }
        ]
    )

    (message,) = to_ui_messages([record])

    assert message.content == ATTACHMENT_PLACEHOLDER


def test_to_ui_flags_grounding_metadata() -> None:
    grounding = {"webSearchQueries": ["green tea"]}
    record = _record(metadata={"grounding": grounding, "usage": {"totalTokens": 12}})

    (message,) = to_ui_messages([record])

    data = message.annotations[0]["data"]
    assert data["grounding"] == grounding
    assert data["hasGrounding"] is True


def test_to_ui_accepts_raw_rows() -> None:
    row = {
        "id": "rec-2",
        "session_id": "s",
        "user_id": "u",
        "role": "user",
        "parts": [],
        "model_config": {"searchEnabled": True},
    }

    (message,) = to_ui_messages([row])

    assert message.content == ""
    assert message.parts == []


def test_to_record_appends_reasoning_level_for_multi_level_models() -> None:
    message = UIMessage(id="m-1", role="assistant", content="Answer")
    record = to_record(
        message,
        RecordContext(
            session_id="s",
            user_id="u",
            model="gemini-2.5-pro",
            model_provider="Google",
            reasoning_level="high",
            search_enabled=False,
        ),
    )

    assert record.id == "m-1"
    assert record.model_used == "gemini-2.5-pro (high)"
    assert record.model_provider == "Google"
    assert record.generation_config == {"reasoningLevel": "high", "searchEnabled": False}
    assert record.parts == [{"type": "text", "text": "Answer"}]
    assert record.created_at is None


def test_to_record_keeps_plain_model_name_without_reasoning_levels() -> None:
    record = to_record(
        UIMessage(id="m", role="assistant", content="x"),
        RecordContext(session_id="s", user_id="u", model="gpt-4o", reasoning_level="low"),
    )

    assert record.model_used == "gpt-4o"
    assert record.generation_config == {"reasoningLevel": "low"}


def test_to_record_copies_usage_and_grounding() -> None:
    grounding = {"groundingChunks": [{"web": {"uri": "https://example.com"}}]}
    record = to_record(
        UIMessage(id="m", role="assistant", content="x"),
        RecordContext(
            session_id="s",
            user_id="u",
            provider_metadata={
                "usage": {"promptTokens": 5},
                "google": {"groundingMetadata": grounding},
            },
        ),
    )

    assert record.metadata == {"usage": {"promptTokens": 5}, "grounding": grounding}


def test_to_record_degrades_missing_optional_fields() -> None:
    record = to_record(UIMessage(role="user"), RecordContext(session_id="s", user_id="u"))

    assert record.id
    assert record.parts == []
    assert record.model_used is None
    assert record.model_provider is None
    assert record.generation_config == {}
    assert record.metadata == {}


@pytest.mark.parametrize(
    ("session_id", "user_id", "field"),
    [(None, "u", "session_id"), ("s", "", "user_id"), ("  ", "u", "session_id")],
)
def test_to_record_requires_identifiers(session_id, user_id, field) -> None:
    with pytest.raises(ValidationError) as excinfo:
        to_record(
            UIMessage(id="m", role="user", content="hi"),
            RecordContext(session_id=session_id, user_id=user_id),
        )

    assert excinfo.value.field == field


def test_extract_grounding_metadata_ignores_other_providers() -> None:
    assert extract_grounding_metadata(None) is None
    assert extract_grounding_metadata({"openai": {"groundingMetadata": {}}}) is None
    assert extract_grounding_metadata({"google": {}}) is None


def test_ensure_unique_messages_keeps_latest_in_first_position() -> None:
    first = UIMessage(id="a", role="user", content="v1")
    other = UIMessage(id="b", role="assistant", content="reply")
    updated = UIMessage(id="a", role="user", content="v2")

    unique = ensure_unique_messages([first, other, updated])

    assert [message.id for message in unique] == ["a", "b"]
    assert unique[0].content == "v2"


def test_reconcile_message_ids_uses_message_saved_annotation() -> None:
    provisional = UIMessage(
        id="client-123",
        role="user",
        content="hello",
        annotations=[
            {"type": "message_complete", "data": {}},
            {"type": "message_saved", "databaseId": "db-1"},
        ],
    )
    untouched = UIMessage(id="db-2", role="assistant", content="hi")

    reconciled = reconcile_message_ids([provisional, untouched])

    assert [message.id for message in reconciled] == ["db-1", "db-2"]
    assert provisional.id == "client-123"


def test_reconcile_ignores_malformed_saved_annotation() -> None:
    message = UIMessage(
        id="client-1",
        role="user",
        annotations=[{"type": "message_saved"}, {"type": "message_saved", "databaseId": ""}],
    )

    (reconciled,) = reconcile_message_ids([message])

    assert reconciled.id == "client-1"


def test_reconcile_reads_nested_saved_annotation() -> None:
    message = UIMessage(
        id="client-1",
        role="user",
        content="hello",
        annotations=[
            {"type": "message_saved", "data": {"databaseId": "db-9", "sessionId": "s-1"}}
        ],
    )

    (reconciled,) = reconcile_message_ids([message])

    assert reconciled.id == "db-9"
