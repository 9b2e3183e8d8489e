import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from .tools.base import ElasticsearchSession, ElasticsearchToolBase, SearchBackend
from .tools.read.index_mappings import IndexMappingsTool
from .tools.read.search import SearchTool
from ..config import Config, ServerConfig
from ..errors import ElasticsearchError
from ..logging_config import setup_logging
from ..metadata.list_indices import ListIndicesTool

logger = logging.getLogger(__name__)

# Extra names a tool is also reachable under
TOOL_ALIASES = {
    "list_collections": "list_indices",
}


class ToolCallError(Exception):
    """Carries a tool's error text back to the MCP client as an error result."""


def build_tools(session: SearchBackend) -> Dict[str, ElasticsearchToolBase]:
    tools: List[ElasticsearchToolBase] = [
        ListIndicesTool(session),
        IndexMappingsTool(session),
        SearchTool(session),
    ]
    return {tool.name: tool for tool in tools}


def tool_definitions(tools: Dict[str, ElasticsearchToolBase]) -> List[types.Tool]:
    definitions = [tool.definition() for tool in tools.values()]
    definitions += [tools[target].definition(alias) for alias, target in TOOL_ALIASES.items()]
    return definitions


async def call_tool_by_name(tools: Dict[str, ElasticsearchToolBase], name: str,
                            arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
    tool = tools.get(TOOL_ALIASES.get(name, name))
    if tool is None:
        raise ToolCallError(f"Unknown tool: {name}")

    result = await tool.execute(arguments or {})
    text = "\n".join(item["text"] for item in result["content"])
    if result.get("isError"):
        # The SDK turns handler exceptions into isError results
        raise ToolCallError(text)
    return [types.TextContent(type="text", text=text)]


def build_server(session: SearchBackend, config: ServerConfig) -> Server:
    server = Server(config.name, version=config.version)
    tools = build_tools(session)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return tool_definitions(tools)

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        return await call_tool_by_name(tools, name, arguments)

    return server


async def serve(config: Config) -> None:
    session = ElasticsearchSession(config.elasticsearch)
    await session.connect()
    try:
        server = build_server(session, config.server)
        logger.info("MCP Elasticsearch server initialized, serving on stdio", extra={
            "server_name": config.server.name, "version": config.server.version
        })
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await session.close()


def main() -> None:
    try:
        config = Config.from_env()
    except ElasticsearchError as e:
        print(f"Error: failed to load configuration: {e.message}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.logging)
    logger.info("Configuration loaded", extra={
        "server_name": config.server.name,
        "version": config.server.version,
        "log_level": config.logging.level,
        "elasticsearch_url": config.elasticsearch.url,
        "auth": config.elasticsearch.auth_method,
    })

    try:
        asyncio.run(serve(config))
    except ElasticsearchError as e:
        logger.critical("Failed to start server", extra={"error": e.message, "code": e.code.value})
        sys.exit(1)


if __name__ == "__main__":
    main()
