import asyncio
import logging
import time
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from es_mcp.errors import ElasticsearchError, ErrorCodes
from es_mcp.models import IndexListing, IndexSummary, RawIndexInfo
from es_mcp.src.tools.base import ElasticsearchToolBase
from es_mcp.src.tools.params import get_string

logger = logging.getLogger(__name__)


def normalize_indices(pattern: str, raw: Any) -> IndexListing:
    if not isinstance(raw, list):
        raise ElasticsearchError(
            ErrorCodes.DECODE_ERROR,
            f"Failed to decode response: expected a list of indices, got {type(raw).__name__}"
        )
    try:
        rows = [RawIndexInfo.model_validate(row) for row in raw]
    except ValidationError as e:
        raise ElasticsearchError(ErrorCodes.DECODE_ERROR, f"Failed to decode response: {e}")

    indices = [IndexSummary.from_raw(row) for row in rows]
    return IndexListing(total_indices=len(indices), pattern=pattern, indices=indices)


class ListIndicesTool(ElasticsearchToolBase):
    @property
    def name(self) -> str:
        return "list_indices"

    @property
    def description(self) -> str:
        return ("List all Elasticsearch indices with optional pattern filtering. "
                "Returns index names, health status, and document counts.")

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "pattern": {
                    "type": "string",
                    "default": "*",
                    "description": "Index pattern filter (e.g., 'logs-*', 'apm-*')",
                },
            },
        }

    async def execute(self, arguments: Mapping[str, Any],
                      cancel: Optional[asyncio.Event] = None) -> Dict[str, Any]:
        try:
            pattern = get_string(arguments, "pattern", "*") or "*"
            logger.info("Listing indices", extra={"pattern": pattern})

            started = time.perf_counter()
            raw: List[Dict[str, Any]] = await self.dispatch(
                self.session.list_indices(pattern), cancel, "list indices", pattern
            )
            listing = normalize_indices(pattern, raw)

            logger.info("Listed indices successfully", extra={
                "operation": self.name,
                "pattern": pattern,
                "count": listing.total_indices,
                "elapsed_ms": self.elapsed_ms(started),
            })
            return self.format_result(listing.model_dump())

        except Exception as e:
            return self.handle_error(e)
