"""Tagged decoding for annotations and tool payloads.

Each decoder takes an untrusted value and returns a `DecodeResult` instead of
raising, so callers can skip malformed entries without try/except noise.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..schemas.annotations import MessageCompleteAnnotation, MessageSavedAnnotation
from ..schemas.messages import ToolInvocation
from ..schemas.tools import (
    MemoryRetrieveToolData,
    MemorySaveToolData,
    WebSearchToolData,
)

T = TypeVar("T")


@dataclass(frozen=True)
class DecodeError:
    kind: str
    reason: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.reason}"


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T | None = None) -> T | None:
        return self.value if self.error is None else default


MemoryToolData = Union[MemorySaveToolData, MemoryRetrieveToolData]

_MEMORY_ADAPTER: TypeAdapter[MemoryToolData] = TypeAdapter(MemoryToolData)


def _failure(kind: str, reason: str) -> DecodeResult[Any]:
    return DecodeResult(error=DecodeError(kind=kind, reason=reason))


def _summarize(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def _loads_if_text(value: Any) -> Any:
    if isinstance(value, (str, bytes, bytearray)):
        return json.loads(value)
    return value


def _decode_tagged(
    kind: str,
    value: Any,
    *,
    tag_field: str,
    tag: str,
    parse: Callable[[Any], T],
) -> DecodeResult[T]:
    if not isinstance(value, dict):
        return _failure(kind, f"expected an object, got {type(value).__name__}")
    if value.get(tag_field) != tag:
        return _failure(kind, f"{tag_field} is not {tag!r}")
    try:
        return DecodeResult(value=parse(value))
    except PydanticValidationError as exc:
        return _failure(kind, _summarize(exc))


def decode_message_saved(value: Any) -> DecodeResult[MessageSavedAnnotation]:
    return _decode_tagged(
        "message_saved",
        value,
        tag_field="type",
        tag="message_saved",
        parse=MessageSavedAnnotation.model_validate,
    )


def decode_message_complete(value: Any) -> DecodeResult[MessageCompleteAnnotation]:
    return _decode_tagged(
        "message_complete",
        value,
        tag_field="type",
        tag="message_complete",
        parse=MessageCompleteAnnotation.model_validate,
    )


def decode_tool_invocation(value: Any) -> DecodeResult[ToolInvocation]:
    if isinstance(value, ToolInvocation):
        return DecodeResult(value=value)
    if not isinstance(value, dict):
        return _failure(
            "tool_invocation", f"expected an object, got {type(value).__name__}"
        )
    try:
        return DecodeResult(value=ToolInvocation.model_validate(value))
    except PydanticValidationError as exc:
        return _failure("tool_invocation", _summarize(exc))


def decode_web_search_data(value: Any) -> DecodeResult[WebSearchToolData]:
    """Decode a web search tool result given as a mapping or a JSON string."""

    if isinstance(value, WebSearchToolData):
        return DecodeResult(value=value)
    try:
        payload = _loads_if_text(value)
    except ValueError as exc:
        return _failure("web_search", f"invalid JSON: {exc}")
    return _decode_tagged(
        "web_search",
        payload,
        tag_field="toolName",
        tag="webSearch",
        parse=WebSearchToolData.model_validate,
    )


def decode_memory_result(value: Any) -> DecodeResult[MemoryToolData]:
    """Decode a memory save or retrieve tool result (mapping or JSON string)."""

    if isinstance(value, (MemorySaveToolData, MemoryRetrieveToolData)):
        return DecodeResult(value=value)
    try:
        payload = _loads_if_text(value)
    except ValueError as exc:
        return _failure("memory", f"invalid JSON: {exc}")
    if not isinstance(payload, dict):
        return _failure("memory", f"expected an object, got {type(payload).__name__}")
    if payload.get("toolName") not in {"memorySave", "memoryRetrieve"}:
        return _failure("memory", "toolName is not a memory tool")
    try:
        return DecodeResult(value=_MEMORY_ADAPTER.validate_python(payload))
    except PydanticValidationError as exc:
        return _failure("memory", _summarize(exc))


def find_annotation(
    annotations: Iterable[Any] | None,
    decoder: Callable[[Any], DecodeResult[T]],
) -> T | None:
    """Return the first annotation the decoder accepts, or ``None``."""

    for annotation in annotations or ():
        result = decoder(annotation)
        if result.ok:
            return result.value
    return None


__all__ = [
    "DecodeError",
    "DecodeResult",
    "MemoryToolData",
    "decode_memory_result",
    "decode_message_complete",
    "decode_message_saved",
    "decode_tool_invocation",
    "decode_web_search_data",
    "find_annotation",
]
