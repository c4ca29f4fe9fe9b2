"""Tool definitions exposed to the model and the executor that runs them."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..errors import UnknownToolError
from ..providers import ModelProfile
from ..schemas.tools import SearchOptions
from .memory import (
    DEFAULT_RETRIEVE_LIMIT,
    DEFAULT_RETRIEVE_THRESHOLD,
    MEMORY_RETRIEVE_TOOL_NAME,
    MEMORY_SAVE_TOOL_NAME,
    MemoryClient,
)
from .web_search import (
    WEB_SEARCH_TOOL_NAME,
    WebSearchClient,
    create_web_search_tool_data,
    generate_search_queries,
)

logger = logging.getLogger(__name__)


ADVANCED_CHUNKS_PER_SOURCE = 3
EMPTY_QUERY_MESSAGE = "Search query must not be empty"

WEB_SEARCH_DESCRIPTION = (
    "Search the web for current information.\n"
    "This tool returns a JSON object with search results. You must use these results "
    "to answer the user's request.\n"
    "In your response, you MUST use inline citations for every piece of information "
    "you use from the search results.\n"
    "The 'citations' array in the JSON lists every source with its number. For each "
    "successful query the summary answer (if any) is numbered first, followed by the "
    "query's results, continuing across queries in order.\n"
    "Cite sources using [1], [2], [3], etc. The first source is [1], the second is [2], "
    "and so on.\n"
    'Example response: "The first source says that X is Y [1]. The second adds that... [2]."'
)

MEMORY_SAVE_DESCRIPTION = (
    "Save important user information for personalized future interactions. Use when "
    "users share personal info, preferences, goals, constraints, or important context. "
    "Don't save generic responses or temporary information."
)

MEMORY_RETRIEVE_DESCRIPTION = (
    "Retrieve relevant user memories to provide personalized responses. Use when you "
    "need context about user preferences, background, or past conversations for better "
    "recommendations and advice."
)


def _function(name: str, description: str, parameters: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": parameters,
        },
    }


WEB_SEARCH_TOOL = _function(
    WEB_SEARCH_TOOL_NAME,
    WEB_SEARCH_DESCRIPTION,
    {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": (
                    "The main search query or question. Additional queries are "
                    "generated automatically for complex requests."
                ),
            },
            "options": {
                "type": "object",
                "description": "Advanced search configuration options",
                "properties": {
                    "topic": {"type": "string", "enum": ["general", "news"]},
                    "search_depth": {"type": "string", "enum": ["basic", "advanced"]},
                    "max_results": {"type": "integer", "minimum": 1, "maximum": 10},
                    "time_range": {
                        "type": "string",
                        "enum": ["day", "week", "month", "year"],
                    },
                    "include_domains": {"type": "array", "items": {"type": "string"}},
                    "exclude_domains": {"type": "array", "items": {"type": "string"}},
                    "include_images": {"type": "boolean"},
                    "enable_detailed_analysis": {"type": "boolean"},
                },
            },
        },
        "required": ["query"],
    },
)

MEMORY_SAVE_TOOL = _function(
    MEMORY_SAVE_TOOL_NAME,
    MEMORY_SAVE_DESCRIPTION,
    {
        "type": "object",
        "properties": {
            "content": {
                "type": "string",
                "description": "The information to remember. Should be clear and specific.",
            },
            "sessionId": {
                "type": "string",
                "description": "Optional session identifier for grouping related memories",
            },
            "metadata": {
                "type": "object",
                "description": "Optional additional metadata to store with the memory",
                "additionalProperties": {"type": ["string", "number", "boolean"]},
            },
        },
        "required": ["content"],
    },
)

MEMORY_RETRIEVE_TOOL = _function(
    MEMORY_RETRIEVE_TOOL_NAME,
    MEMORY_RETRIEVE_DESCRIPTION,
    {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "What kind of information to look for.",
            },
            "limit": {
                "type": "integer",
                "minimum": 1,
                "maximum": 10,
                "description": f"Maximum number of memories (default: {DEFAULT_RETRIEVE_LIMIT})",
            },
            "sessionId": {
                "type": "string",
                "description": "Optional session identifier to search within",
            },
        },
        "required": ["query"],
    },
)


def get_tools_for_model(
    profile: ModelProfile | None,
    *,
    search_enabled: bool,
    memory_enabled: bool = True,
) -> list[dict[str, Any]]:
    """Tool definitions to offer ``profile``.

    Models with native search never get the web search tool. Models that cannot
    call functions get no tools at all.
    """

    if profile is not None and not profile.supports_functions:
        return []

    tools: list[dict[str, Any]] = []
    has_native_search = profile is not None and profile.has_capability("search")
    if search_enabled and not has_native_search:
        tools.append(WEB_SEARCH_TOOL)
    if memory_enabled:
        tools.extend([MEMORY_SAVE_TOOL, MEMORY_RETRIEVE_TOOL])
    return tools


def _search_options(defaults: SearchOptions, raw: Mapping[str, Any] | None) -> SearchOptions:
    base = defaults.model_copy(
        update={
            "include_images": False,
            "include_image_descriptions": False,
            "chunks_per_source": ADVANCED_CHUNKS_PER_SOURCE,
        }
    )
    if not raw:
        return base
    overrides = {
        key: raw[key]
        for key in (
            "topic",
            "search_depth",
            "max_results",
            "time_range",
            "include_domains",
            "exclude_domains",
        )
        if raw.get(key) is not None
    }
    overrides["include_images"] = bool(raw.get("include_images", False))
    overrides["include_image_descriptions"] = overrides["include_images"]
    overrides["chunks_per_source"] = ADVANCED_CHUNKS_PER_SOURCE
    overrides["include_raw_content"] = bool(raw.get("enable_detailed_analysis", False))
    merged = {**defaults.model_dump(), **overrides}
    try:
        return SearchOptions.model_validate(merged)
    except PydanticValidationError as exc:
        logger.warning("Ignoring invalid search options %s: %s", raw, exc.errors()[:1])
        return base


class ToolExecutor:
    """Runs the model-callable tools for one user and session.

    The user id is bound here rather than supplied by the model, so memory
    tools always act on the authenticated user.
    """

    def __init__(
        self,
        *,
        user_id: Optional[str],
        session_id: Optional[str] = None,
        search_client: WebSearchClient | None = None,
        memory_client: MemoryClient | None = None,
        tools: Iterable[Mapping[str, Any]] | None = None,
    ) -> None:
        self._user_id = user_id
        self._session_id = session_id
        self._search = search_client or WebSearchClient()
        self._memory = memory_client or MemoryClient()
        self._tools = list(tools) if tools is not None else [
            WEB_SEARCH_TOOL,
            MEMORY_SAVE_TOOL,
            MEMORY_RETRIEVE_TOOL,
        ]

    def get_openai_tools(self) -> list[dict[str, Any]]:
        return [dict(tool) for tool in self._tools]

    @property
    def tool_names(self) -> list[str]:
        return [tool["function"]["name"] for tool in self._tools]

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        arguments = dict(arguments or {})
        if name not in self.tool_names:
            raise UnknownToolError(name)

        logger.info("Executing tool %s", name)
        if name == WEB_SEARCH_TOOL_NAME:
            result: BaseModel = await self._web_search(arguments)
        elif name == MEMORY_SAVE_TOOL_NAME:
            result = await self._memory.save(
                str(arguments.get("content") or ""),
                self._user_id,
                session_id=arguments.get("sessionId") or self._session_id,
                metadata=arguments.get("metadata") or {},
            )
        elif name == MEMORY_RETRIEVE_TOOL_NAME:
            result = await self._memory.retrieve(
                str(arguments.get("query") or ""),
                self._user_id,
                session_id=arguments.get("sessionId"),
                limit=_as_limit(arguments.get("limit")),
                threshold=DEFAULT_RETRIEVE_THRESHOLD,
            )
        else:
            raise UnknownToolError(name)
        return result.model_dump(mode="json", by_alias=True)

    async def _web_search(self, arguments: Mapping[str, Any]) -> BaseModel:
        query = str(arguments.get("query") or "").strip()
        if not query:
            logger.warning("Rejecting web search call with an empty query")
            return create_web_search_tool_data(query, [], []).model_copy(
                update={"has_errors": True, "errors": [EMPTY_QUERY_MESSAGE]}
            )
        queries = generate_search_queries(query)
        logger.info("Generated %d queries for %r: %s", len(queries), query, queries)
        options = _search_options(self._search.default_options(), arguments.get("options"))
        results = await self._search.search(queries, options)
        data = create_web_search_tool_data(query, queries, results)
        logger.info(
            "Web search completed for %r with %d sources across %d queries",
            query,
            data.total_results,
            len(queries),
        )
        return data

    @staticmethod
    def format_tool_result(result: Any) -> str:
        if isinstance(result, str):
            return result
        if isinstance(result, BaseModel):
            result = result.model_dump(mode="json", by_alias=True)
        return json.dumps(result, ensure_ascii=False)


def _as_limit(value: Any) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return DEFAULT_RETRIEVE_LIMIT
    return min(max(limit, 1), 10)


__all__ = [
    "MEMORY_RETRIEVE_TOOL",
    "MEMORY_SAVE_TOOL",
    "WEB_SEARCH_TOOL",
    "ToolExecutor",
    "get_tools_for_model",
]
