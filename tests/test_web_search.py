from __future__ import annotations

import asyncio
import json
from unittest.mock import patch

import httpx
import pytest

from chatbridge.schemas.messages import UIMessage
from chatbridge.schemas.tools import SearchHit, SearchOptions, SearchResult
from chatbridge.tools.web_search import (
    NOT_CONFIGURED_MESSAGE,
    WebSearchClient,
    build_citations,
    citations_from_message,
    create_web_search_tool_data,
    extract_citation_numbers,
    format_search_results_for_display,
    format_sources_for_model,
    generate_search_queries,
    resolve_citation,
)

GREEN_TEA = "What are the health benefits of green tea and black tea?"


# ---------------------------------------------------------------------------
# query generation
# ---------------------------------------------------------------------------


def test_short_statement_is_used_unchanged() -> None:
    assert generate_search_queries("latest python release notes") == [
        "latest python release notes"
    ]


def test_question_is_cleaned_and_split_on_conjunctions() -> None:
    queries = generate_search_queries(GREEN_TEA)

    assert queries[0] == "are the health benefits of green tea and black tea"
    assert queries[1] == "are the health benefits of green tea"
    # "black tea" is too short to stand alone as a query.
    assert len(queries) == 2


def test_compound_question_yields_three_queries() -> None:
    queries = generate_search_queries(
        "What are the health benefits of green tea and the risks of drinking black tea?"
    )

    assert queries == [
        "are the health benefits of green tea and the risks of drinking black tea",
        "are the health benefits of green tea",
        "the risks of drinking black tea",
    ]


def test_long_utterance_is_capped_at_three_queries() -> None:
    utterance = (
        "Please compare the environmental impact of electric cars and hybrid cars "
        "and also diesel trucks or cargo bicycles however consider the battery supply chain?"
    )

    queries = generate_search_queries(utterance)

    assert 1 <= len(queries) <= 3
    assert all(query for query in queries)
    assert not queries[0].lower().startswith("please")


@pytest.mark.parametrize(
    "utterance",
    ["Why?", "how???", "explain", "x" * 250, "Tell me about tea?", "?"],
)
def test_query_generation_never_returns_empty(utterance: str) -> None:
    queries = generate_search_queries(utterance)

    assert 1 <= len(queries) <= 3
    assert all(query.strip() for query in queries)


# ---------------------------------------------------------------------------
# search client
# ---------------------------------------------------------------------------


def _tavily_body(query: str, *, answer: str | None = None, hits: int = 2) -> dict:
    return {
        "query": query,
        "answer": answer,
        "images": [],
        "results": [
            {
                "title": f"{query} source {index}",
                "url": f"https://example.com/{query.replace(' ', '-')}/{index}",
                "content": f"content {index}",
                "score": 0.9 - index / 10,
            }
            for index in range(1, hits + 1)
        ],
        "response_time": 0.42,
    }


@pytest.mark.asyncio
async def test_search_without_credential_makes_no_calls(make_settings) -> None:
    client = WebSearchClient(make_settings(tavily_api_key=None))

    with patch("chatbridge.tools.web_search.httpx.AsyncClient") as mock_client_cls:
        results = await client.search(["one", "two", "three"])

    mock_client_cls.assert_not_called()
    assert [result.query for result in results] == ["one", "two", "three"]
    assert all(result.error == NOT_CONFIGURED_MESSAGE for result in results)


@pytest.mark.asyncio
async def test_search_without_credential_does_not_touch_injected_client(make_settings) -> None:
    calls: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    client = WebSearchClient(
        make_settings(tavily_api_key=None),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
    )

    results = await client.search(["a", "b"])

    assert len(results) == 2
    assert calls == []


@pytest.mark.asyncio
async def test_search_sends_authenticated_request(make_settings) -> None:
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_tavily_body("green tea", answer="It is healthy."))

    client = WebSearchClient(
        make_settings(tavily_api_key="tvly-test"),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
    )

    (result,) = await client.search(["green tea"], SearchOptions(time_range="week"))

    request = seen[0]
    assert request.url == "https://api.tavily.com/search"
    assert request.headers["Authorization"] == "Bearer tvly-test"
    body = json.loads(request.content)
    assert body["query"] == "green tea"
    assert body["search_depth"] == "advanced"
    assert body["topic"] == "general"
    assert body["max_results"] == 5
    assert body["include_answer"] is True
    assert body["time_range"] == "week"
    assert result.ok
    assert result.answer == "It is healthy."
    assert len(result.results) == 2
    assert result.response_time == pytest.approx(0.42)


@pytest.mark.asyncio
async def test_search_isolates_failures_and_keeps_input_order(make_settings) -> None:
    async def _handler(request: httpx.Request) -> httpx.Response:
        query = json.loads(request.content)["query"]
        if query == "slow":
            await asyncio.sleep(0.05)
        if query == "server-error":
            return httpx.Response(502)
        if query == "network":
            raise httpx.ConnectTimeout("timed out", request=request)
        return httpx.Response(200, json=_tavily_body(query))

    client = WebSearchClient(
        make_settings(tavily_api_key="tvly-test"),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
    )

    results = await client.search(["slow", "server-error", "network", "fast"])

    assert [result.query for result in results] == ["slow", "server-error", "network", "fast"]
    assert results[0].ok and results[3].ok
    assert results[1].error == "Search failed: 502 Bad Gateway"
    assert results[2].error == "timed out"
    assert results[1].results == [] and results[2].results == []


@pytest.mark.asyncio
async def test_search_runs_queries_concurrently(make_settings) -> None:
    in_flight = 0
    peak = 0

    async def _handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.02)
        in_flight -= 1
        return httpx.Response(200, json=_tavily_body(json.loads(request.content)["query"]))

    client = WebSearchClient(
        make_settings(tavily_api_key="tvly-test"),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
    )

    await client.search(["a", "b", "c"])

    assert peak == 3


@pytest.mark.asyncio
async def test_green_tea_scenario_with_one_failed_query(make_settings) -> None:
    queries = generate_search_queries(GREEN_TEA) + ["black tea caffeine content"]
    failing = queries[1]

    async def _handler(request: httpx.Request) -> httpx.Response:
        query = json.loads(request.content)["query"]
        if query == failing:
            return httpx.Response(500)
        return httpx.Response(200, json=_tavily_body(query, hits=2))

    client = WebSearchClient(
        make_settings(tavily_api_key="tvly-test"),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
    )

    results = await client.search(queries)
    data = create_web_search_tool_data(GREEN_TEA, queries, results)

    assert len(results) == 3
    assert [result.ok for result in results] == [True, False, True]
    assert data.has_errors
    assert len(data.errors) == 1
    assert data.total_results == 4
    assert [citation.number for citation in data.citations] == [1, 2, 3, 4]
    assert {citation.query for citation in data.citations} == {queries[0], queries[2]}
    assert [citation.url for citation in data.citations] == [
        hit.url for result in results if result.ok for hit in result.results
    ]


# ---------------------------------------------------------------------------
# citations and formatting
# ---------------------------------------------------------------------------


def _result(query: str, *, answer: str | None = None, hits: int = 1, error: str | None = None) -> SearchResult:
    return SearchResult(
        query=query,
        answer=answer,
        error=error,
        results=[
            SearchHit(title=f"{query} {i}", url=f"https://{query}.example/{i}", content="c")
            for i in range(hits)
        ]
        if error is None
        else [],
    )


def test_build_citations_numbers_answers_then_hits_across_queries() -> None:
    citations = build_citations(
        [
            _result("first", answer="summary one", hits=2),
            _result("broken", error="Search failed: 500 Internal Server Error"),
            _result("second", hits=1),
        ]
    )

    assert [(c.number, c.kind, c.query) for c in citations] == [
        (1, "answer", "first"),
        (2, "result", "first"),
        (3, "result", "first"),
        (4, "result", "second"),
    ]
    assert citations[0].content == "summary one"
    assert citations[3].url == "https://second.example/0"


def test_format_sources_for_model_lists_numbered_sources() -> None:
    citations = build_citations([_result("tea", answer="Tea is good.", hits=1)])

    text = format_sources_for_model(citations)

    assert text.startswith("[1] Summary for: tea")
    assert "[2] tea 0" in text
    assert "URL: https://tea.example/0" in text


def test_format_search_results_for_display() -> None:
    text = format_search_results_for_display(
        [_result("tea", answer="Tea is good.", hits=1), _result("bad", error="boom")]
    )

    assert "**Query 1:** tea" in text
    assert "**Summary:** Tea is good." in text
    assert "**Query 2:** bad" in text
    assert "Error: boom" in text
    assert format_search_results_for_display([]) == ""


def test_citations_from_message_resolves_numbers_across_searches() -> None:
    first = create_web_search_tool_data("tea", ["tea"], [_result("tea", hits=2)])
    second = create_web_search_tool_data("coffee", ["coffee"], [_result("coffee", hits=1)])
    message = UIMessage(
        id="m",
        role="assistant",
        content="Tea [1] and coffee [3].",
        parts=[
            {
                "type": "tool-invocation",
                "toolInvocation": {
                    "toolCallId": "call-1",
                    "toolName": "webSearch",
                    "args": {"query": "tea"},
                    "result": first.model_dump(by_alias=True),
                    "state": "result",
                },
            },
            {
                "type": "tool-invocation",
                "toolInvocation": {
                    "toolCallId": "call-2",
                    "toolName": "webSearch",
                    "args": {"query": "coffee"},
                    "result": second.model_dump_json(by_alias=True),
                    "state": "result",
                },
            },
            {
                "type": "tool-invocation",
                "toolInvocation": {
                    "toolCallId": "call-3",
                    "toolName": "webSearch",
                    "args": {"query": "bad"},
                    "result": "not json",
                    "state": "result",
                },
            },
            {"type": "text", "text": "Tea [1] and coffee [3]."},
        ],
    )

    citations = citations_from_message(message)

    assert [c.number for c in citations] == [1, 2, 3]
    numbers = extract_citation_numbers(message.content)
    assert numbers == [1, 3]
    assert resolve_citation(citations, 3).query == "coffee"
    assert resolve_citation(citations, 4) is None


def test_extract_citation_numbers_handles_grouped_markers() -> None:
    assert extract_citation_numbers("See [1, 2] and [5].") == [1, 2, 5]
    assert extract_citation_numbers("No citations here.") == []
