"""Conversion routes between persisted records and UI messages."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ..chat.normalizer import RecordContext, to_record, to_ui_messages
from ..errors import ValidationError
from ..schemas.api import RecordsRequest, ToRecordRequest
from ..schemas.messages import ConversationRecord, UIMessage

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.post("/ui", response_model=list[UIMessage])
async def records_to_ui(payload: RecordsRequest) -> list[UIMessage]:
    return to_ui_messages(payload.records)


@router.post("/record", response_model=ConversationRecord)
async def message_to_record(payload: ToRecordRequest) -> ConversationRecord:
    context = RecordContext(
        session_id=payload.session_id,
        user_id=payload.user_id,
        model=payload.model,
        model_provider=payload.model_provider,
        reasoning_level=payload.reasoning_level,
        search_enabled=payload.search_enabled,
        provider_metadata=payload.provider_metadata,
    )
    try:
        return to_record(payload.message, context)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"field": exc.field, "message": str(exc)},
        ) from exc


__all__ = ["router"]
