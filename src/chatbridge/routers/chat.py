"""Chat translation API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..chat.assembler import assemble_assistant_message
from ..chat.attachments import AttachmentResolver
from ..chat.builder import build_core_messages
from ..chat.normalizer import reconcile_message_ids
from ..chat.parts import dump_parts
from ..chat.system_prompt import build_system_message
from ..config import Settings, get_settings
from ..errors import ModelNotFoundError, ValidationError
from ..providers import MODELS, build_provider_options, resolve_profile
from ..schemas.api import (
    AssembleRequest,
    ModelSummary,
    PrepareChatRequest,
    PrepareChatResponse,
    UserMessageToSavePayload,
)
from ..schemas.messages import UIMessage
from ..tools.registry import get_tools_for_model

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def get_attachment_resolver(
    settings: Settings = Depends(get_settings),
) -> AttachmentResolver:
    return AttachmentResolver(settings)


@router.post("/chat/prepare", response_model=PrepareChatResponse)
async def prepare_chat(
    payload: PrepareChatRequest,
    settings: Settings = Depends(get_settings),
    resolver: AttachmentResolver = Depends(get_attachment_resolver),
) -> PrepareChatResponse:
    """Translate UI history into the provider message sequence for one call."""

    try:
        if not payload.messages:
            raise ValidationError("messages", "messages must not be empty")
        profile = resolve_profile(payload.model or settings.default_model)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except ModelNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    messages = reconcile_message_ids(payload.messages)
    result = await build_core_messages(messages, profile, resolver)

    to_save = None
    if result.user_message_to_save is not None:
        to_save = UserMessageToSavePayload(
            message=result.user_message_to_save.message,
            parts=dump_parts(result.user_message_to_save.parts),
        )

    return PrepareChatResponse(
        model=profile.id,
        provider=profile.provider,
        core_messages=result.core_messages,
        user_message_to_save=to_save,
        system_message=build_system_message(
            profile,
            search_enabled=payload.search_enabled,
            memory_enabled=payload.memory_enabled,
            user_traits=payload.user_traits,
            assistant_name=payload.assistant_name,
        ),
        provider_options=build_provider_options(
            profile, payload.reasoning_level or settings.default_reasoning_level
        ),
        tools=get_tools_for_model(
            profile,
            search_enabled=payload.search_enabled,
            memory_enabled=payload.memory_enabled,
        ),
    )


@router.post("/chat/assemble", response_model=UIMessage)
async def assemble_chat_response(payload: AssembleRequest) -> UIMessage:
    """Merge a provider's response segments into one assistant message."""

    return assemble_assistant_message(payload.segments, payload.message_id)


@router.get("/models", response_model=list[ModelSummary])
async def list_models() -> list[ModelSummary]:
    return [
        ModelSummary(
            id=model.id,
            name=model.name,
            provider=model.provider,
            capabilities=sorted(model.capabilities),
            reasoning_levels=list(model.reasoning_levels),
            supports_functions=model.supports_functions,
        )
        for model in MODELS
    ]


__all__ = ["get_attachment_resolver", "router"]
