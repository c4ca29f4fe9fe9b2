"""Out-of-band annotations attached to UI messages."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MessageSavedAnnotation(BaseModel):
    """Links a client-generated message id to the id assigned at persistence.

    Accepts the streamed shape ``{"type", "data": {"databaseId", "sessionId"}}``
    and the flat ``{"type", "databaseId"}`` shape; nested values win.
    """

    type: Literal["message_saved"] = "message_saved"
    database_id: str = Field(alias="databaseId", min_length=1)
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _lift_data(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        data = value.get("data")
        if not isinstance(data, dict):
            return value
        lifted = {key: item for key, item in value.items() if key != "data"}
        if data.get("databaseId"):
            lifted["databaseId"] = data["databaseId"]
        if data.get("sessionId"):
            lifted["sessionId"] = data["sessionId"]
        return lifted


class MessageCompleteData(BaseModel):
    model_used: Optional[str] = Field(default=None, alias="modelUsed")
    model_provider: Optional[str] = Field(default=None, alias="modelProvider")
    grounding: Optional[Any] = None
    has_grounding: bool = Field(default=False, alias="hasGrounding")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class MessageCompleteAnnotation(BaseModel):
    """Provenance marker: which model and provider produced a message."""

    type: Literal["message_complete"] = "message_complete"
    data: MessageCompleteData = Field(default_factory=MessageCompleteData)


__all__ = [
    "MessageCompleteAnnotation",
    "MessageCompleteData",
    "MessageSavedAnnotation",
]
