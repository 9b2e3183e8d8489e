import asyncio
import logging
import time
from typing import Any, Dict, Mapping, Optional

from ...tools.base import ElasticsearchToolBase
from ...tools.params import require_string
from ....errors import ElasticsearchError, ErrorCodes
from ....models import IndexMappings

logger = logging.getLogger(__name__)


class IndexMappingsTool(ElasticsearchToolBase):
    @property
    def name(self) -> str:
        return "get_index_mappings"

    @property
    def description(self) -> str:
        return ("Get field mappings for one or more Elasticsearch indices. "
                "Useful for understanding index structure before querying.")

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "index": {
                    "type": "string",
                    "description": "Index name or pattern (e.g., 'logs-*', 'apm-errors-*')",
                },
            },
            "required": ["index"],
        }

    async def execute(self, arguments: Mapping[str, Any],
                      cancel: Optional[asyncio.Event] = None) -> Dict[str, Any]:
        try:
            index = require_string(arguments, "index")
            logger.info("Getting index mappings", extra={"index": index})

            started = time.perf_counter()
            mappings = await self.dispatch(
                self.session.get_mappings(index), cancel, "get mappings", index
            )
            if not isinstance(mappings, dict):
                raise ElasticsearchError(
                    ErrorCodes.DECODE_ERROR,
                    f"Failed to decode response: expected an object, got {type(mappings).__name__}"
                )

            logger.info("Retrieved mappings successfully", extra={
                "operation": self.name,
                "index": index,
                "index_count": len(mappings),
                "elapsed_ms": self.elapsed_ms(started),
            })
            return self.format_result(IndexMappings(index=index, mappings=mappings).model_dump())

        except Exception as e:
            return self.handle_error(e)
