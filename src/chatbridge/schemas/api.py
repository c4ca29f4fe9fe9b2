"""Request and response bodies for the HTTP surface."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .messages import (
    ConversationRecord,
    CoreMessage,
    ReasoningLevel,
    UIMessage,
)


class PrepareChatRequest(BaseModel):
    """UI history to translate for one model call."""

    messages: List[UIMessage]
    model: Optional[str] = None
    search_enabled: bool = Field(default=False, alias="searchEnabled")
    memory_enabled: bool = Field(default=True, alias="memoryEnabled")
    reasoning_level: Optional[ReasoningLevel] = Field(
        default=None, alias="reasoningLevel"
    )
    user_traits: Optional[str] = Field(default=None, alias="userTraits")
    assistant_name: Optional[str] = Field(default=None, alias="assistantName")

    model_config = ConfigDict(populate_by_name=True)


class UserMessageToSavePayload(BaseModel):
    message: UIMessage
    parts: List[Dict[str, Any]]


class PrepareChatResponse(BaseModel):
    model: str
    provider: str
    core_messages: List[CoreMessage] = Field(alias="coreMessages")
    user_message_to_save: Optional[UserMessageToSavePayload] = Field(
        default=None, alias="userMessageToSave"
    )
    system_message: str = Field(default="", alias="systemMessage")
    provider_options: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, alias="providerOptions"
    )
    tools: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class AssembleRequest(BaseModel):
    segments: List[Dict[str, Any]]
    message_id: str = Field(alias="messageId", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class RecordsRequest(BaseModel):
    records: List[ConversationRecord]


class ToRecordRequest(BaseModel):
    message: UIMessage
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    user_id: Optional[str] = Field(default=None, alias="userId")
    model: Optional[str] = None
    model_provider: Optional[str] = Field(default=None, alias="modelProvider")
    reasoning_level: Optional[ReasoningLevel] = Field(
        default=None, alias="reasoningLevel"
    )
    search_enabled: Optional[bool] = Field(default=None, alias="searchEnabled")
    provider_metadata: Optional[Dict[str, Any]] = Field(
        default=None, alias="providerMetadata"
    )

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())


class WebSearchRequest(BaseModel):
    query: str = Field(min_length=1)
    options: Optional[Dict[str, Any]] = None


class MemorySaveRequest(BaseModel):
    content: str = Field(min_length=1)
    user_id: Optional[str] = Field(default=None, alias="userId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class MemoryRetrieveRequest(BaseModel):
    query: str = Field(min_length=1)
    user_id: Optional[str] = Field(default=None, alias="userId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    limit: int = Field(default=5, ge=1, le=10)

    model_config = ConfigDict(populate_by_name=True)


class ToolCallRequest(BaseModel):
    name: str = Field(min_length=1)
    arguments: Dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[str] = Field(default=None, alias="userId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)


class ModelSummary(BaseModel):
    id: str
    name: str
    provider: str
    capabilities: List[str]
    reasoning_levels: List[str] = Field(alias="reasoningLevels")
    supports_functions: bool = Field(alias="supportsFunctions")

    model_config = ConfigDict(populate_by_name=True)


__all__ = [
    "AssembleRequest",
    "MemoryRetrieveRequest",
    "MemorySaveRequest",
    "ModelSummary",
    "PrepareChatRequest",
    "PrepareChatResponse",
    "RecordsRequest",
    "ToRecordRequest",
    "ToolCallRequest",
    "UserMessageToSavePayload",
    "WebSearchRequest",
]
