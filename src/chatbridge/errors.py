"""Exceptions raised across the message pipeline."""

from __future__ import annotations


class ChatBridgeError(Exception):
    """Base error for the message translation pipeline."""


class ValidationError(ChatBridgeError, ValueError):
    """Raised when a required identifier is missing from a request."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"{field} is required")


class ModelNotFoundError(ChatBridgeError, LookupError):
    """Raised when a model id is not present in the registry."""

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(f"Model {model_id} not found")


class UnknownToolError(ChatBridgeError, LookupError):
    """Raised when a tool call names a tool that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


__all__ = [
    "ChatBridgeError",
    "ModelNotFoundError",
    "UnknownToolError",
    "ValidationError",
]
