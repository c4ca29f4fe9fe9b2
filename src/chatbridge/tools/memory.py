"""Long-term user memory backed by the Mem0 HTTP API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings, get_settings
from ..schemas.tools import (
    MemoryItem,
    MemoryMessage,
    MemoryRetrieveToolData,
    MemorySaveToolData,
)

logger = logging.getLogger(__name__)


MEMORY_SAVE_TOOL_NAME = "memorySave"
MEMORY_RETRIEVE_TOOL_NAME = "memoryRetrieve"

DEFAULT_RETRIEVE_LIMIT = 5
# Low threshold favors recall over precision.
DEFAULT_RETRIEVE_THRESHOLD = 0.1


class MemoryServiceError(RuntimeError):
    """Raised internally when the memory API cannot be used or returns an error."""


class MemoryClient:
    """Save and retrieve user memories; every failure becomes a structured result."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http_client = http_client

    @property
    def _base_url(self) -> str:
        return str(self._settings.mem0_base_url).rstrip("/")

    def _headers(self) -> dict[str, str]:
        if not self._settings.memory_configured:
            raise MemoryServiceError("MEM0_API_KEY environment variable is not set")
        api_key = self._settings.mem0_api_key
        assert api_key is not None
        return {
            "Authorization": f"Token {api_key.get_secret_value()}",
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, payload: Mapping[str, Any]) -> Any:
        headers = self._headers()
        url = f"{self._base_url}{path}"
        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, headers=headers, json=payload)
            else:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self._settings.request_timeout, connect=10.0)
                ) as client:
                    response = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise MemoryServiceError(str(exc) or type(exc).__name__) from exc

        if response.status_code >= 400:
            raise MemoryServiceError(
                f"Mem0 API error: {response.status_code} - {response.text}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise MemoryServiceError(f"Mem0 API returned invalid JSON: {exc}") from exc

    async def save(
        self,
        content: str,
        user_id: Optional[str],
        *,
        session_id: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        messages: Optional[Sequence[MemoryMessage]] = None,
    ) -> MemorySaveToolData:
        """Store ``content`` for ``user_id`` tagged with high importance."""

        base_metadata = dict(metadata or {})
        if not user_id or not user_id.strip():
            return MemorySaveToolData(
                content=content,
                metadata=base_metadata,
                user_id="",
                session_id=session_id,
                success=False,
                message="Cannot save memory: User ID is required but not provided.",
            )

        memory_messages = list(messages or [MemoryMessage(role="user", content=content)])
        stored_metadata = {
            **base_metadata,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "importance": "high",
        }
        payload: dict[str, Any] = {
            "messages": [message.model_dump() for message in memory_messages],
            "user_id": user_id,
            "metadata": stored_metadata,
        }
        if session_id:
            payload["run_id"] = session_id

        joined_content = " ".join(message.content for message in memory_messages)
        try:
            body = await self._post("/v1/memories/", payload)
        except MemoryServiceError as exc:
            logger.error("Error saving memory for user %s: %s", user_id, exc)
            return MemorySaveToolData(
                content=joined_content,
                metadata=base_metadata,
                user_id=user_id,
                session_id=session_id,
                success=False,
                message=f"Failed to save memory: {exc}",
            )

        first = body[0] if isinstance(body, list) and body else {}
        if not isinstance(first, dict):
            first = {}
        data = first.get("data") if isinstance(first.get("data"), dict) else {}
        logger.info("Saved memory %s for user %s", first.get("id", "unknown"), user_id)
        return MemorySaveToolData(
            memory_id=str(first.get("id") or "unknown"),
            content=data.get("memory") or joined_content,
            metadata=stored_metadata,
            user_id=user_id,
            session_id=session_id,
            success=True,
            message=(
                "Memory saved successfully! Stored important information about the "
                "user for future conversations."
            ),
        )

    async def retrieve(
        self,
        query: str,
        user_id: Optional[str],
        *,
        session_id: Optional[str] = None,
        limit: int = DEFAULT_RETRIEVE_LIMIT,
        threshold: float = DEFAULT_RETRIEVE_THRESHOLD,
    ) -> MemoryRetrieveToolData:
        """Semantic search over the user's memories, optionally scoped to a session."""

        if not user_id or not user_id.strip():
            return MemoryRetrieveToolData(
                query=query,
                strategy="error",
                success=False,
                message="Cannot retrieve memories: User ID is required but not provided.",
            )

        conditions: list[dict[str, str]] = [{"user_id": user_id}]
        if session_id:
            conditions.append({"run_id": session_id})
        payload = {
            "query": query,
            "filters": {"AND": conditions},
            "limit": limit,
            "threshold": threshold,
        }

        try:
            body = await self._post("/v2/memories/search/", payload)
        except MemoryServiceError as exc:
            logger.error("Error retrieving memories for user %s: %s", user_id, exc)
            return MemoryRetrieveToolData(
                query=query,
                strategy="error",
                success=False,
                message=f"Failed to retrieve memories: {exc}",
            )

        items = body.get("results") if isinstance(body, dict) else body
        try:
            memories = [
                _to_memory_item(item) for item in items or [] if isinstance(item, dict)
            ]
        except (TypeError, ValueError, PydanticValidationError) as exc:
            logger.error("Malformed memory search response for user %s: %s", user_id, exc)
            return MemoryRetrieveToolData(
                query=query,
                strategy="error",
                success=False,
                message=f"Failed to retrieve memories: unexpected response ({exc})",
            )
        logger.info("Retrieved %d memories for query %r", len(memories), query)
        if memories:
            strategy = f"Found {len(memories)} relevant memories using semantic search"
            message = (
                f"Retrieved {len(memories)} relevant memories that can help provide "
                "personalized responses."
            )
        else:
            strategy = "No relevant memories found for this query"
            message = (
                "No relevant memories found for this query. This might be a new "
                "topic for this user."
            )
        return MemoryRetrieveToolData(
            query=query,
            memories=memories,
            total_found=len(memories),
            strategy=strategy,
            success=True,
            message=message,
        )


def _to_memory_item(item: Mapping[str, Any]) -> MemoryItem:
    metadata = item.get("metadata") if isinstance(item.get("metadata"), dict) else {}
    return MemoryItem(
        id=str(item.get("id", "")),
        content=str(item.get("memory", "")),
        category=str(metadata.get("category") or "general"),
        metadata=metadata,
        relevance_score=float(item.get("score") or 0.0),
        created_at=item.get("created_at"),
        updated_at=item.get("updated_at"),
    )


__all__ = [
    "DEFAULT_RETRIEVE_LIMIT",
    "DEFAULT_RETRIEVE_THRESHOLD",
    "MEMORY_RETRIEVE_TOOL_NAME",
    "MEMORY_SAVE_TOOL_NAME",
    "MemoryClient",
    "MemoryServiceError",
]
