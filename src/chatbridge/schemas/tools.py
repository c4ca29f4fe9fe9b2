"""Pydantic models for web search and memory tool payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SearchTopic = Literal["general", "news"]
SearchDepth = Literal["basic", "advanced"]
TimeRange = Literal["day", "week", "month", "year", "d", "w", "m", "y"]


# =============================================================================
# Web search
# =============================================================================


class SearchHit(BaseModel):
    """One source returned by the search service."""

    title: str = ""
    url: str = ""
    content: str = ""
    score: float = 0.0
    published_date: Optional[str] = None
    raw_content: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class SearchResult(BaseModel):
    """Outcome of a single search query; ``error`` is set when it failed."""

    query: str
    answer: Optional[str] = None
    results: List[SearchHit] = Field(default_factory=list)
    images: List[Any] = Field(default_factory=list)
    response_time: float = 0.0
    error: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def ok(self) -> bool:
        return self.error is None


class SearchOptions(BaseModel):
    """Request body options forwarded to the search service."""

    topic: SearchTopic = "general"
    search_depth: SearchDepth = "advanced"
    max_results: int = Field(default=5, ge=1, le=10)
    include_answer: bool = True
    include_images: bool = True
    include_raw_content: bool = False
    include_image_descriptions: bool = False
    chunks_per_source: Optional[int] = Field(default=None, ge=1, le=3)
    time_range: Optional[TimeRange] = None
    include_domains: List[str] = Field(default_factory=list)
    exclude_domains: List[str] = Field(default_factory=list)

    def to_payload(self, query: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"query": query}
        payload.update(self.model_dump(exclude_none=True))
        if not self.include_domains:
            payload.pop("include_domains", None)
        if not self.exclude_domains:
            payload.pop("exclude_domains", None)
        return payload


class Citation(BaseModel):
    """A numbered source the model may reference inline as ``[n]``."""

    number: int = Field(ge=1)
    kind: Literal["answer", "result"]
    query: str
    title: str
    url: Optional[str] = None
    content: str = ""
    published_date: Optional[str] = Field(default=None, alias="publishedDate")

    model_config = ConfigDict(populate_by_name=True)


class WebSearchToolData(BaseModel):
    """Structured web search tool result shared by the model and the UI."""

    tool_name: Literal["webSearch"] = Field(default="webSearch", alias="toolName")
    original_query: str = Field(alias="originalQuery")
    generated_queries: List[str] = Field(default_factory=list, alias="generatedQueries")
    search_results: List[SearchResult] = Field(
        default_factory=list, alias="searchResults"
    )
    citations: List[Citation] = Field(default_factory=list)
    total_results: int = Field(default=0, alias="totalResults")
    has_errors: bool = Field(default=False, alias="hasErrors")
    errors: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="allow")


# =============================================================================
# Memory
# =============================================================================


class MemoryMessage(BaseModel):
    role: Literal["user", "assistant", "system"] = "user"
    content: str


class MemoryItem(BaseModel):
    """A memory returned by semantic retrieval."""

    id: str
    content: str
    category: str = "general"
    metadata: Dict[str, Any] = Field(default_factory=dict)
    relevance_score: float = Field(default=0.0, alias="relevanceScore")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class MemorySaveToolData(BaseModel):
    tool_name: Literal["memorySave"] = Field(default="memorySave", alias="toolName")
    memory_id: str = Field(default="", alias="memoryId")
    content: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    user_id: str = Field(default="", alias="userId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    success: bool
    message: str

    model_config = ConfigDict(populate_by_name=True)


class MemoryRetrieveToolData(BaseModel):
    tool_name: Literal["memoryRetrieve"] = Field(
        default="memoryRetrieve", alias="toolName"
    )
    query: str = ""
    memories: List[MemoryItem] = Field(default_factory=list)
    total_found: int = Field(default=0, alias="totalFound")
    strategy: str = ""
    success: bool
    message: str

    model_config = ConfigDict(populate_by_name=True)


__all__ = [
    "Citation",
    "MemoryItem",
    "MemoryMessage",
    "MemoryRetrieveToolData",
    "MemorySaveToolData",
    "SearchDepth",
    "SearchHit",
    "SearchOptions",
    "SearchResult",
    "SearchTopic",
    "TimeRange",
    "WebSearchToolData",
]
