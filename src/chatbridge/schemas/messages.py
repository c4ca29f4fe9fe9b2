"""Pydantic models for persisted, UI-facing and provider-facing messages."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant", "system", "tool"]
ToolInvocationState = Literal["call", "partial-call", "result"]
ReasoningLevel = Literal["low", "medium", "high"]


# =============================================================================
# Shared part payloads
# =============================================================================


class ToolInvocation(BaseModel):
    """A model-issued tool call together with its eventual result.

    ``result`` stays ``None`` until the tool has finished.
    """

    tool_call_id: str = Field(alias="toolCallId", min_length=1)
    tool_name: str = Field(alias="toolName", min_length=1)
    args: Any = Field(default_factory=dict)
    result: Any = None
    state: ToolInvocationState = "call"
    step: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def has_result(self) -> bool:
        return self.result is not None


class ReasoningDetail(BaseModel):
    """A single reasoning detail, optionally carrying a provider signature."""

    type: str = "text"
    text: Optional[str] = None
    signature: Optional[str] = None

    model_config = ConfigDict(extra="allow")


# =============================================================================
# Stored parts (ConversationRecord.parts)
# =============================================================================


class StoredFile(BaseModel):
    name: str = "file"
    path: str = ""
    url: str = Field(min_length=1)
    size: int = 0
    mime_type: str = Field(alias="mimeType")

    model_config = ConfigDict(populate_by_name=True)


class StoredTextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class StoredFilePart(BaseModel):
    type: Literal["file"] = "file"
    file: StoredFile


class ToolInvocationPart(BaseModel):
    """Tool invocation part; identical in storage and UI form."""

    type: Literal["tool-invocation"] = "tool-invocation"
    tool_invocation: ToolInvocation = Field(alias="toolInvocation")

    model_config = ConfigDict(populate_by_name=True)


class ReasoningPart(BaseModel):
    """Reasoning part; identical in storage and UI form."""

    type: Literal["reasoning"] = "reasoning"
    reasoning: str = Field(min_length=1)
    details: List[ReasoningDetail] = Field(default_factory=list)


StoredPart = Union[StoredTextPart, StoredFilePart, ToolInvocationPart, ReasoningPart]


# =============================================================================
# UI parts (UIMessage.parts)
# =============================================================================


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class FilePart(BaseModel):
    """File part as rendered by the chat UI."""

    type: Literal["file"] = "file"
    url: str = Field(min_length=1)
    mime_type: str = Field(alias="mimeType")
    filename: Optional[str] = None
    path: Optional[str] = None
    size: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_image(self) -> bool:
        return self.mime_type.lower().startswith("image/")


UIPart = Union[TextPart, FilePart, ToolInvocationPart, ReasoningPart]


class Attachment(BaseModel):
    """Client-side attachment descriptor sent alongside a user message."""

    url: str
    content_type: Optional[str] = Field(default=None, alias="contentType")
    name: Optional[str] = None
    path: Optional[str] = None
    size: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class UIMessage(BaseModel):
    """Message shape consumed by the chat UI.

    ``parts`` may hold typed part models or raw dictionaries; the part codec
    validates each entry individually and skips anything malformed.
    """

    id: str = ""
    role: Role
    content: str = ""
    parts: List[Any] = Field(default_factory=list)
    attachments: List[Attachment] = Field(
        default_factory=list,
        alias="experimental_attachments",
    )
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    annotations: List[Any] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="allow")


# =============================================================================
# Persisted record
# =============================================================================


class ModelConfigSnapshot(BaseModel):
    reasoning_level: Optional[ReasoningLevel] = Field(
        default=None, alias="reasoningLevel"
    )
    search_enabled: Optional[bool] = Field(default=None, alias="searchEnabled")

    model_config = ConfigDict(populate_by_name=True)


class ConversationRecord(BaseModel):
    """A persisted conversation message, keyed the way the database stores it."""

    id: str
    session_id: str
    user_id: str
    role: Role
    parts: List[Any] = Field(default_factory=list)
    model_used: Optional[str] = None
    model_provider: Optional[str] = None
    generation_config: Optional[Dict[str, Any]] = Field(
        default=None,
        alias="model_config",
    )
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        protected_namespaces=(),
    )


# =============================================================================
# Provider wire format
# =============================================================================


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    type: Literal["image"] = "image"
    image: bytes
    mime_type: Optional[str] = Field(default=None, alias="mimeType")

    model_config = ConfigDict(
        populate_by_name=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )


class FileContent(BaseModel):
    type: Literal["file"] = "file"
    data: bytes
    mime_type: str = Field(alias="mimeType")

    model_config = ConfigDict(
        populate_by_name=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    @property
    def is_image(self) -> bool:
        return self.mime_type.lower().startswith("image/")


class ToolCallContent(BaseModel):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    args: Any = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class ToolResultContent(BaseModel):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    result: Any = None

    model_config = ConfigDict(populate_by_name=True)


class ReasoningContent(BaseModel):
    type: Literal["reasoning"] = "reasoning"
    text: str
    signature: Optional[str] = None


ContentItem = Union[
    TextContent,
    ImageContent,
    FileContent,
    ToolCallContent,
    ToolResultContent,
    ReasoningContent,
]


class CoreMessage(BaseModel):
    """Provider-facing message; built fresh per model call and never stored."""

    role: Role
    content: Union[str, List[Annotated[ContentItem, Field(discriminator="type")]]]

    @property
    def items(self) -> list[ContentItem]:
        if isinstance(self.content, str):
            return [TextContent(text=self.content)]
        return list(self.content)


__all__ = [
    "Attachment",
    "ContentItem",
    "ConversationRecord",
    "CoreMessage",
    "FileContent",
    "FilePart",
    "ImageContent",
    "ModelConfigSnapshot",
    "ReasoningContent",
    "ReasoningDetail",
    "ReasoningLevel",
    "ReasoningPart",
    "Role",
    "StoredFile",
    "StoredFilePart",
    "StoredPart",
    "StoredTextPart",
    "TextContent",
    "TextPart",
    "ToolCallContent",
    "ToolInvocation",
    "ToolInvocationPart",
    "ToolInvocationState",
    "ToolResultContent",
    "UIMessage",
    "UIPart",
]
