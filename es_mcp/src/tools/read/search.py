import asyncio
import json
import logging
import time
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from ...tools.base import ElasticsearchToolBase
from ...tools.params import (
    get_bool,
    get_int,
    get_string,
    parse_json_param,
    parse_query,
    require_string,
    validate_pagination,
    validate_timeout,
)
from ....errors import ElasticsearchError, ErrorCodes
from ....models import RawSearchResponse, SearchRequest, SearchResult

logger = logging.getLogger(__name__)


def parse_search_request(arguments: Mapping[str, Any]) -> SearchRequest:
    """Validate caller arguments; stops at the first bad parameter."""
    index = require_string(arguments, "index")
    size = get_int(arguments, "size", 10)
    from_ = get_int(arguments, "from", 0)
    track_total_hits = get_bool(arguments, "track_total_hits", True)
    validate_pagination(size, from_)
    timeout = validate_timeout(get_string(arguments, "timeout"))

    query = parse_query(arguments.get("query"))
    sort = parse_json_param("sort", arguments.get("sort"))
    aggs = parse_json_param("aggs", arguments.get("aggs"), object_only=True)
    source = parse_json_param("_source", arguments.get("_source"))
    highlight = parse_json_param("highlight", arguments.get("highlight"), object_only=True)

    return SearchRequest(
        index=index,
        query=query,
        size=size,
        from_=from_,
        sort=sort,
        aggs=aggs,
        source=source,
        highlight=highlight,
        track_total_hits=track_total_hits,
        timeout=timeout,
    )


def build_search_body(request: SearchRequest) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "query": request.query,
        "size": request.size,
        "from": request.from_,
        "track_total_hits": request.track_total_hits,
    }
    if request.sort is not None:
        body["sort"] = request.sort
    if request.aggs is not None:
        body["aggs"] = request.aggs
    if request.source is not None:
        body["_source"] = request.source
    if request.highlight is not None:
        body["highlight"] = request.highlight
    if request.timeout is not None:
        body["timeout"] = request.timeout
    return body


def normalize_search_response(request: SearchRequest, raw: Any) -> SearchResult:
    try:
        response = RawSearchResponse.model_validate(raw)
    except ValidationError as e:
        raise ElasticsearchError(ErrorCodes.DECODE_ERROR, f"Failed to decode response: {e}")

    total = response.hits.total
    if total is None:
        total_hits, relation = 0, None
    elif isinstance(total, int):
        total_hits, relation = total, "eq"
    else:
        total_hits, relation = total.value, total.relation

    return SearchResult(
        index=request.index,
        took=response.took,
        timed_out=response.timed_out,
        total_hits=total_hits,
        total_hits_relation=relation,
        max_score=response.hits.max_score,
        hits=response.hits.hits,
        shards=response.shards,
        from_=request.from_,
        size=request.size,
        aggregations=response.aggregations or None,
    )


class SearchTool(ElasticsearchToolBase):
    @property
    def name(self) -> str:
        return "search"

    @property
    def description(self) -> str:
        return ("Execute Elasticsearch search queries with aggregations, filtering, and sorting. "
                "Returns structured search results.")

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "index": {
                    "type": "string",
                    "description": "Index name or pattern to search",
                },
                "query": {
                    "type": "string",
                    "default": "{}",
                    "description": "Elasticsearch query DSL as JSON string",
                },
                "size": {
                    "type": "number",
                    "default": 10,
                    "description": "Maximum number of documents to return (0-10000)",
                },
                "from": {
                    "type": "number",
                    "default": 0,
                    "description": "Offset from the first result (for pagination)",
                },
                "sort": {
                    "type": "string",
                    "default": "",
                    "description": ("Sort specification as JSON string "
                                    "(e.g., '[{\"@timestamp\": {\"order\": \"desc\"}}]')"),
                },
                "aggs": {
                    "type": "string",
                    "default": "",
                    "description": ("Aggregations specification as JSON string "
                                    "(e.g., '{\"avg_price\": {\"avg\": {\"field\": \"price\"}}}')"),
                },
                "_source": {
                    "type": "string",
                    "default": "",
                    "description": ("Source filtering as JSON string (e.g., '[\"field1\", \"field2\"]' "
                                    "or '{\"includes\": [\"field1\"], \"excludes\": [\"field2\"]}')"),
                },
                "highlight": {
                    "type": "string",
                    "default": "",
                    "description": "Highlight specification as JSON string (e.g., '{\"fields\": {\"title\": {}}}')",
                },
                "track_total_hits": {
                    "type": "boolean",
                    "default": True,
                    "description": "Whether to track the total number of hits",
                },
                "timeout": {
                    "type": "string",
                    "default": "",
                    "description": "Search timeout as an Elasticsearch time unit (e.g., '5s')",
                },
            },
            "required": ["index"],
        }

    async def execute(self, arguments: Mapping[str, Any],
                      cancel: Optional[asyncio.Event] = None) -> Dict[str, Any]:
        try:
            request = parse_search_request(arguments)
            body = build_search_body(request)

            logger.info("Executing search", extra={
                "index": request.index,
                "size": request.size,
                "from": request.from_,
                "track_total_hits": request.track_total_hits,
            })
            logger.debug("Search request body", extra={"search_body": json.dumps(body)})

            started = time.perf_counter()
            raw = await self.dispatch(
                self.session.search(request.index, body), cancel, "execute search", request.index
            )
            result = normalize_search_response(request, raw)

            logger.info("Search executed successfully", extra={
                "operation": self.name,
                "index": request.index,
                "total_hits": result.total_hits,
                "returned_hits": len(result.hits),
                "took_ms": result.took,
                "agg_count": len(result.aggregations or {}),
                "elapsed_ms": self.elapsed_ms(started),
            })
            return self.format_result(result.to_response())

        except Exception as e:
            return self.handle_error(e)
