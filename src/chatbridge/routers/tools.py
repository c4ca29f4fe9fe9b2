"""Direct HTTP access to the model-callable tools."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from ..config import Settings, get_settings
from ..errors import UnknownToolError
from ..schemas.api import (
    MemoryRetrieveRequest,
    MemorySaveRequest,
    ToolCallRequest,
    WebSearchRequest,
)
from ..schemas.tools import (
    MemoryRetrieveToolData,
    MemorySaveToolData,
    WebSearchToolData,
)
from ..tools.memory import MemoryClient
from ..tools.registry import ToolExecutor
from ..tools.web_search import WebSearchClient

router = APIRouter(prefix="/api/tools", tags=["tools"])


def get_search_client(settings: Settings = Depends(get_settings)) -> WebSearchClient:
    return WebSearchClient(settings)


def get_memory_client(settings: Settings = Depends(get_settings)) -> MemoryClient:
    return MemoryClient(settings)


@router.post("/web-search", response_model=WebSearchToolData)
async def web_search(
    payload: WebSearchRequest,
    search_client: WebSearchClient = Depends(get_search_client),
    memory_client: MemoryClient = Depends(get_memory_client),
) -> WebSearchToolData:
    executor = ToolExecutor(
        user_id=None,
        search_client=search_client,
        memory_client=memory_client,
    )
    result = await executor.call_tool(
        "webSearch", {"query": payload.query, "options": payload.options}
    )
    return WebSearchToolData.model_validate(result)


@router.post("/memory/save", response_model=MemorySaveToolData)
async def save_memory(
    payload: MemorySaveRequest,
    memory_client: MemoryClient = Depends(get_memory_client),
) -> MemorySaveToolData:
    return await memory_client.save(
        payload.content,
        payload.user_id,
        session_id=payload.session_id,
        metadata=payload.metadata,
    )


@router.post("/memory/retrieve", response_model=MemoryRetrieveToolData)
async def retrieve_memory(
    payload: MemoryRetrieveRequest,
    memory_client: MemoryClient = Depends(get_memory_client),
) -> MemoryRetrieveToolData:
    return await memory_client.retrieve(
        payload.query,
        payload.user_id,
        session_id=payload.session_id,
        limit=payload.limit,
    )


@router.post("/call")
async def call_tool(
    payload: ToolCallRequest,
    search_client: WebSearchClient = Depends(get_search_client),
    memory_client: MemoryClient = Depends(get_memory_client),
) -> dict[str, Any]:
    """Run a tool by name the way the model would, with the user id bound server-side."""

    executor = ToolExecutor(
        user_id=payload.user_id,
        session_id=payload.session_id,
        search_client=search_client,
        memory_client=memory_client,
    )
    try:
        return await executor.call_tool(payload.name, payload.arguments)
    except UnknownToolError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


__all__ = ["get_memory_client", "get_search_client", "router"]
