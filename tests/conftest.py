"""
Pytest configuration and shared fixtures

The tools only talk to the cluster through the SearchBackend protocol, so the
fake backend here stands in for Elasticsearch in every tool test.
"""
import asyncio
import json
from fnmatch import fnmatch
from typing import Any, Dict, List, Optional

import pytest


def make_index_row(name: str, health: str = "green", status: str = "open",
                   docs: str = "10", size: str = "1.2kb") -> Dict[str, Any]:
    """A `_cat/indices?format=json` row as Elasticsearch reports it."""
    return {
        "index": name,
        "health": health,
        "status": status,
        "uuid": f"uuid-{name}",
        "docs.count": docs,
        "docs.deleted": "0",
        "store.size": size,
        "pri.store.size": size,
        "pri": "1",
        "rep": "1",
        "creation.date": "1700000000000",
        "creation.date.string": "2023-11-14T22:13:20.000Z",
    }


def make_search_reply(hits: Optional[List[Dict[str, Any]]] = None,
                      aggregations: Optional[Dict[str, Any]] = None,
                      max_score: Optional[float] = 1.0,
                      total: Any = None) -> Dict[str, Any]:
    hits = hits if hits is not None else [
        {"_index": "logs-a", "_id": "1", "_score": 1.0, "_source": {"message": "first"}},
        {"_index": "logs-a", "_id": "2", "_score": 0.5, "_source": {"message": "second"}},
    ]
    reply: Dict[str, Any] = {
        "took": 3,
        "timed_out": False,
        "_shards": {"total": 1, "successful": 1, "skipped": 0, "failed": 0},
        "hits": {
            "total": total if total is not None else {"value": len(hits), "relation": "eq"},
            "max_score": max_score,
            "hits": hits,
        },
    }
    if aggregations is not None:
        reply["aggregations"] = aggregations
    return reply


class FakeBackend:
    """In-memory SearchBackend recording the calls it receives."""

    def __init__(self, indices: Optional[List[str]] = None,
                 search_reply: Optional[Dict[str, Any]] = None,
                 delay: float = 0.0):
        self.indices = indices if indices is not None else ["logs-a", "logs-b", "metrics-a"]
        self.search_reply = search_reply if search_reply is not None else make_search_reply()
        self.delay = delay
        self.error: Optional[Exception] = None
        self.calls: List[tuple] = []
        self.cancelled = False

    async def _respond(self, value: Any) -> Any:
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        return value

    async def info(self) -> Dict[str, Any]:
        self.calls.append(("info",))
        return await self._respond({"cluster_name": "test", "version": {"number": "8.13.0"}})

    async def list_indices(self, pattern: str) -> List[Dict[str, Any]]:
        self.calls.append(("list_indices", pattern))
        patterns = pattern.split(",")
        rows = [make_index_row(name) for name in self.indices
                if any(fnmatch(name, p) for p in patterns)]
        return await self._respond(rows)

    async def get_mappings(self, index: str) -> Dict[str, Any]:
        self.calls.append(("get_mappings", index))
        mappings = {
            name: {"mappings": {"properties": {"message": {"type": "text"}}}}
            for name in self.indices if fnmatch(name, index)
        }
        return await self._respond(mappings)

    async def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("search", index, body))
        return await self._respond(self.search_reply)


def payload(result: Dict[str, Any]) -> Any:
    """Decode the JSON document a successful tool result carries."""
    assert not result.get("isError"), result
    return json.loads(result["content"][0]["text"])


def error_text(result: Dict[str, Any]) -> str:
    assert result.get("isError") is True, result
    return result["content"][0]["text"]


@pytest.fixture
def backend():
    return FakeBackend()
