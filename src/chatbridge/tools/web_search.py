"""Multi-query web search with positional citation numbering."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable, Optional, Sequence

import httpx

from ..chat.concurrency import settle_all
from ..chat.decoding import decode_web_search_data
from ..chat.parts import iter_ui_parts
from ..config import Settings, get_settings
from ..schemas.messages import ToolInvocationPart, UIMessage
from ..schemas.tools import (
    Citation,
    SearchOptions,
    SearchResult,
    WebSearchToolData,
)

logger = logging.getLogger(__name__)


WEB_SEARCH_TOOL_NAME = "webSearch"
NOT_CONFIGURED_MESSAGE = "Web search is not configured. Please contact administrator."

MAX_QUERIES = 3
_SHORT_QUERY_LENGTH = 100
_LONG_UTTERANCE_LENGTH = 150

_LEADING_PROMPT = re.compile(
    r"^(what|how|why|when|where|who|can you|could you|please|tell me|explain)",
    re.IGNORECASE,
)
_TRAILING_QUESTION_MARKS = re.compile(r"\?+$")
_CONJUNCTION_SPLIT = re.compile(r"\s+(?:and|or|but|however|also)\s+", re.IGNORECASE)
_CITATION_MARKER = re.compile(r"\[(\d+(?:\s*,\s*\d+)*)\]")


def generate_search_queries(utterance: str) -> list[str]:
    """Derive between one and three search queries from a user utterance.

    Short statements are used as-is. Questions and longer requests lose their
    leading prompt words and trailing question marks, and compound requests
    also contribute one query per conjunction-separated clause.
    """

    stripped = utterance.strip()
    lowered = stripped.lower()
    if len(lowered) <= _SHORT_QUERY_LENGTH and "?" not in lowered:
        return [stripped] if stripped else [utterance]

    queries: list[str] = []
    main_query = _LEADING_PROMPT.sub("", stripped, count=1)
    main_query = _TRAILING_QUESTION_MARKS.sub("", main_query).strip()
    if main_query:
        queries.append(main_query)

    if " and " in lowered or " or " in lowered or len(lowered) > _LONG_UTTERANCE_LENGTH:
        for clause in _CONJUNCTION_SPLIT.split(main_query):
            clause = clause.strip()
            if 10 < len(clause) < _SHORT_QUERY_LENGTH:
                queries.append(clause)

    if not queries:
        queries.append(stripped)
    return queries[:MAX_QUERIES]


def _error_result(query: str, error: str) -> SearchResult:
    return SearchResult(query=query, results=[], response_time=0.0, error=error)


class WebSearchClient:
    """Issue search queries concurrently against the configured search API."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http_client = http_client

    @property
    def configured(self) -> bool:
        return self._settings.search_configured

    @property
    def _base_url(self) -> str:
        return str(self._settings.tavily_base_url).rstrip("/")

    @property
    def _headers(self) -> dict[str, str]:
        api_key = self._settings.tavily_api_key
        assert api_key is not None
        return {
            "Authorization": f"Bearer {api_key.get_secret_value()}",
            "Content-Type": "application/json",
        }

    def default_options(self) -> SearchOptions:
        return SearchOptions(
            topic=self._settings.search_topic,
            search_depth=self._settings.search_depth,
            max_results=self._settings.search_max_results,
        )

    async def search(
        self,
        queries: Sequence[str],
        options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        """Run every query and return one `SearchResult` per query, in order.

        Never raises: a missing credential or a failing call becomes an
        error-tagged result for the affected queries only.
        """

        if not queries:
            return []

        if not self.configured:
            logger.error("TAVILY_API_KEY is not set; skipping %d search queries", len(queries))
            return [_error_result(query, NOT_CONFIGURED_MESSAGE) for query in queries]

        options = options or self.default_options()
        logger.info("Starting web search for %d queries", len(queries))

        if self._http_client is not None:
            results = await self._search_all(self._http_client, queries, options)
        else:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._settings.request_timeout, connect=10.0)
            ) as client:
                results = await self._search_all(client, queries, options)

        for index, result in enumerate(results, start=1):
            if result.error:
                logger.info("Query %d: ERROR - %s", index, result.error)
            else:
                logger.info(
                    "Query %d: %d results, %d images",
                    index,
                    len(result.results),
                    len(result.images),
                )
        return results

    async def _search_all(
        self,
        client: httpx.AsyncClient,
        queries: Sequence[str],
        options: SearchOptions,
    ) -> list[SearchResult]:
        outcomes = await settle_all(
            self._search_one(client, query, options) for query in queries
        )
        results: list[SearchResult] = []
        for query, outcome in zip(queries, outcomes):
            if outcome.ok and outcome.value is not None:
                results.append(outcome.value)
                continue
            logger.warning("Search failed for %r: %s", query, outcome.error)
            message = str(outcome.error) or type(outcome.error).__name__
            results.append(_error_result(query, message or "Unknown search error"))
        return results

    async def _search_one(
        self,
        client: httpx.AsyncClient,
        query: str,
        options: SearchOptions,
    ) -> SearchResult:
        logger.debug("Searching: %r", query)
        response = await client.post(
            f"{self._base_url}/search",
            headers=self._headers,
            json=options.to_payload(query),
        )
        if response.status_code >= 400:
            logger.error(
                "Search API error for %r: %s",
                query,
                _extract_error_detail(response.content),
            )
            return _error_result(
                query,
                f"Search failed: {response.status_code} {response.reason_phrase}".rstrip(),
            )

        body = response.json()
        if not isinstance(body, dict):
            return _error_result(query, "Search failed: unexpected response payload")
        return SearchResult(
            query=body.get("query") or query,
            answer=body.get("answer") or None,
            results=body.get("results") or [],
            images=body.get("images") or [],
            response_time=_as_float(body.get("response_time")),
        )


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _extract_error_detail(raw: bytes) -> Any:
    if not raw:
        return "empty error response"
    text = raw.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(payload, dict):
        return payload.get("detail") or payload.get("error") or payload
    return payload


# =============================================================================
# Citations
# =============================================================================


def build_citations(results: Iterable[SearchResult]) -> list[Citation]:
    """Number sources 1..n across non-error results, in query order.

    Within each result the answer (when present) comes first, then each hit.
    The same numbering is shown to the model and used to resolve ``[n]``.
    """

    citations: list[Citation] = []
    for result in results:
        if not result.ok:
            continue
        if result.answer:
            citations.append(
                Citation(
                    number=len(citations) + 1,
                    kind="answer",
                    query=result.query,
                    title=f"Summary for: {result.query}",
                    content=result.answer,
                )
            )
        for hit in result.results:
            citations.append(
                Citation(
                    number=len(citations) + 1,
                    kind="result",
                    query=result.query,
                    title=hit.title,
                    url=hit.url,
                    content=hit.content,
                    published_date=hit.published_date,
                )
            )
    return citations


def create_web_search_tool_data(
    original_query: str,
    queries: Sequence[str],
    results: Sequence[SearchResult],
) -> WebSearchToolData:
    """Bundle search results into the tool payload returned to the model."""

    errors = [f'Query "{result.query}": {result.error}' for result in results if not result.ok]
    return WebSearchToolData(
        original_query=original_query,
        generated_queries=list(queries),
        search_results=list(results),
        citations=build_citations(results),
        total_results=sum(len(result.results) for result in results if result.ok),
        has_errors=bool(errors),
        errors=errors,
    )


def format_sources_for_model(citations: Sequence[Citation]) -> str:
    """Render citations as the numbered list the model cites from."""

    lines: list[str] = []
    for citation in citations:
        lines.append(f"[{citation.number}] {citation.title}")
        if citation.url:
            lines.append(f"URL: {citation.url}")
        if citation.published_date:
            lines.append(f"Published: {citation.published_date}")
        if citation.content:
            lines.append(citation.content.strip())
        lines.append("")
    return "\n".join(lines).strip()


def format_search_results_for_display(results: Sequence[SearchResult]) -> str:
    """Markdown summary of search results for chat display."""

    if not results:
        return ""

    sections: list[str] = ["**Web Search Results:**", ""]
    for index, result in enumerate(results, start=1):
        sections.append(f"**Query {index}:** {result.query}")
        if result.error:
            sections.append(f"Error: {result.error}")
            sections.append("")
            continue
        if result.answer:
            sections.append(f"**Summary:** {result.answer}")
            sections.append("")
        if result.results:
            sections.append("**Sources:**")
            for position, hit in enumerate(result.results, start=1):
                sections.append(f"{position}. **{hit.title}**")
                sections.append(f"   {hit.url}")
                if hit.published_date:
                    sections.append(f"   Published: {hit.published_date}")
                sections.append(f"   {hit.content[:200]}...")
                sections.append("")
        if result.images:
            sections.append(f"**Images:** {len(result.images)} found")
            sections.append("")
        sections.append("---")
        sections.append("")
    return "\n".join(sections)


def citations_from_message(message: UIMessage) -> list[Citation]:
    """Collect citations from every web search result in ``message``.

    Multiple searches are concatenated and renumbered in order of appearance.
    """

    collected: list[Citation] = []
    for part in iter_ui_parts(message.parts):
        if not isinstance(part, ToolInvocationPart):
            continue
        invocation = part.tool_invocation
        if invocation.tool_name != WEB_SEARCH_TOOL_NAME or not invocation.has_result:
            continue
        decoded = decode_web_search_data(invocation.result)
        if not decoded.ok or decoded.value is None:
            logger.debug("Ignoring undecodable web search result: %s", decoded.error)
            continue
        data = decoded.value
        citations = data.citations or build_citations(data.search_results)
        for citation in citations:
            collected.append(citation.model_copy(update={"number": len(collected) + 1}))
    return collected


def extract_citation_numbers(text: str) -> list[int]:
    """Return the citation numbers referenced as ``[n]`` or ``[n, m]`` in ``text``."""

    numbers: list[int] = []
    for match in _CITATION_MARKER.finditer(text or ""):
        for raw in match.group(1).split(","):
            numbers.append(int(raw.strip()))
    return numbers


def resolve_citation(citations: Sequence[Citation], number: int) -> Optional[Citation]:
    if 1 <= number <= len(citations):
        return citations[number - 1]
    return None


__all__ = [
    "MAX_QUERIES",
    "NOT_CONFIGURED_MESSAGE",
    "WEB_SEARCH_TOOL_NAME",
    "WebSearchClient",
    "build_citations",
    "citations_from_message",
    "create_web_search_tool_data",
    "extract_citation_numbers",
    "format_search_results_for_display",
    "format_sources_for_model",
    "generate_search_queries",
    "resolve_citation",
]
