import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, TypeVar

from elasticsearch import ApiError, AsyncElasticsearch, SerializationError, TransportError
from mcp import types

from ...config import ElasticsearchConfig
from ...errors import ElasticsearchError, ErrorCodes

logger = logging.getLogger(__name__)

T = TypeVar("T")

CAT_INDICES_COLUMNS = (
    "index,health,status,uuid,docs.count,docs.deleted,store.size,"
    "pri.store.size,pri,rep,creation.date,creation.date.string"
)


class SearchBackend(Protocol):
    """The calls the tools make against the search cluster."""

    async def info(self) -> Dict[str, Any]: ...

    async def list_indices(self, pattern: str) -> List[Dict[str, Any]]: ...

    async def get_mappings(self, index: str) -> Dict[str, Any]: ...

    async def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]: ...


def _describe_api_error(error: ApiError) -> str:
    body = error.body
    if isinstance(body, (dict, list)):
        body = json.dumps(body)
    return f"[{error.meta.status}] {body or error.message}"


class ElasticsearchSession:
    """Owns the AsyncElasticsearch client shared by every tool call."""

    def __init__(self, config: ElasticsearchConfig,
                 client_factory: Callable[..., AsyncElasticsearch] = AsyncElasticsearch):
        self.config = config
        self.client: Optional[AsyncElasticsearch] = None
        self._client_factory = client_factory

    def client_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "hosts": [self.config.url],
            "request_timeout": self.config.request_timeout,
        }
        method = self.config.auth_method
        if method == "api_key":
            options["api_key"] = self.config.api_key
        elif method == "basic":
            options["basic_auth"] = (self.config.username, self.config.password)
        else:
            raise ElasticsearchError(
                ErrorCodes.MISCONFIGURED_CONNECTION,
                "No authentication configured: set an API key or username and password"
            )
        return options

    async def connect(self) -> None:
        options = self.client_options()
        logger.info("Creating Elasticsearch client", extra={
            "url": self.config.url, "auth": self.config.auth_method
        })
        self.client = self._client_factory(**options)
        try:
            cluster = await self.info()
        except ElasticsearchError as e:
            await self.close()
            logger.error("Elasticsearch connection failed", extra={"error": e.message})
            raise ElasticsearchError(
                ErrorCodes.MISCONFIGURED_CONNECTION,
                f"Failed to connect to Elasticsearch at {self.config.url}: {e.message}",
                details=e.details
            )
        logger.info("Elasticsearch connection successful", extra={
            "cluster_name": cluster.get("cluster_name"),
            "es_version": cluster.get("version", {}).get("number"),
        })

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            self.client = None

    def _require_client(self) -> AsyncElasticsearch:
        if self.client is None:
            raise ElasticsearchError(
                ErrorCodes.NOT_CONNECTED_TO_ELASTICSEARCH, "Not connected to Elasticsearch"
            )
        return self.client

    async def _call(self, operation: str, target: str, call: Awaitable[Any]) -> Any:
        try:
            response = await call
        except ApiError as e:
            raise ElasticsearchError(
                ErrorCodes.ELASTICSEARCH_ERROR,
                f"Elasticsearch error: {_describe_api_error(e)}",
                details=e.body
            )
        except SerializationError as e:
            raise ElasticsearchError(
                ErrorCodes.DECODE_ERROR, f"Failed to decode response: {e}"
            )
        except TransportError as e:
            raise ElasticsearchError(
                ErrorCodes.CONNECTION_ERROR,
                f"Failed to {operation} for '{target}': {e}"
            )
        return response.body

    async def info(self) -> Dict[str, Any]:
        client = self._require_client()
        return await self._call("get cluster info", self.config.url, client.info())

    async def list_indices(self, pattern: str) -> List[Dict[str, Any]]:
        client = self._require_client()
        return await self._call("list indices", pattern, client.cat.indices(
            index=pattern, format="json", h=CAT_INDICES_COLUMNS
        ))

    async def get_mappings(self, index: str) -> Dict[str, Any]:
        client = self._require_client()
        return await self._call("get mappings", index, client.indices.get_mapping(index=index))

    async def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        client = self._require_client()
        return await self._call("execute search", index, client.search(index=index, body=body))


class ElasticsearchToolBase(ABC):
    def __init__(self, session: SearchBackend):
        self.session = session

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    @property
    @abstractmethod
    def input_schema(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def execute(self, arguments: Mapping[str, Any],
                      cancel: Optional[asyncio.Event] = None) -> Dict[str, Any]:
        pass

    def definition(self, name: Optional[str] = None) -> types.Tool:
        return types.Tool(
            name=name or self.name,
            description=self.description,
            inputSchema=self.input_schema,
        )

    async def dispatch(self, call: Awaitable[T], cancel: Optional[asyncio.Event],
                       operation: str, target: str) -> T:
        """Await a backend call, aborting it if `cancel` fires first.

        Over MCP no event is passed: the SDK cancels the request task when the
        client sends a cancel notification, and that CancelledError aborts the
        backend call here. `cancel` serves callers that drive tools directly.
        """
        if cancel is None:
            return await call
        if cancel.is_set():
            if asyncio.iscoroutine(call):
                call.close()
            raise self._cancelled(operation, target)

        backend = asyncio.ensure_future(call)
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({backend, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            backend.cancel()
            raise
        finally:
            waiter.cancel()

        if backend.done():
            return backend.result()

        backend.cancel()
        try:
            await backend
        except asyncio.CancelledError:
            pass
        raise self._cancelled(operation, target)

    @staticmethod
    def _cancelled(operation: str, target: str) -> ElasticsearchError:
        return ElasticsearchError(
            ErrorCodes.REQUEST_CANCELLED,
            f"{operation} on '{target}' was cancelled"
        )

    @staticmethod
    def elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)

    def format_result(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Format a tool payload for MCP response"""
        return {
            "content": [
                {
                    "type": "text",
                    "text": json.dumps(payload, default=str)
                }
            ]
        }

    def handle_error(self, error: Exception) -> Dict[str, Any]:
        """Handle and format errors for MCP response"""
        if isinstance(error, ElasticsearchError):
            level = logging.WARNING if error.is_parameter_error else logging.ERROR
            logger.log(level, error.message, extra={"operation": self.name, "code": error.code.value})
            return {
                "content": [
                    {
                        "type": "text",
                        "text": f"Elasticsearch Error [{error.code.value}]: {error.message}"
                    }
                ],
                "isError": True,
                "errorCode": error.code.value
            }

        logger.exception("Unexpected error", extra={"operation": self.name})
        return {
            "content": [
                {
                    "type": "text",
                    "text": f"Unexpected error: {str(error)}"
                }
            ],
            "isError": True
        }
