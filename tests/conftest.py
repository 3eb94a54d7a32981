"""Shared fixtures and fakes for toolbridge tests.

Fakes stand in for the Anthropic API and for live MCP sessions so the
orchestration code runs without spawning processes or touching the network.
"""

from contextlib import AsyncExitStack
from typing import Any, Dict, List, Optional

import pytest
from mcp.types import CallToolResult, TextContent, Tool

from toolbridge.llm_client.model import ModelResponse
from toolbridge.tool.manager import ServerConnection, ToolManager
from toolbridge.tool.types import ServerConfig


@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_tool(name: str, description: str = "") -> Tool:
    return Tool(
        name=name,
        description=description or f"{name} tool",
        inputSchema={"type": "object", "properties": {}},
    )


class FakeSession:
    def __init__(self, results: Optional[Dict[str, str]] = None, error: Exception | None = None):
        self.results = results or {}
        self.error = error
        self.calls: List[tuple[str, Dict[str, Any]]] = []

    async def call_tool(self, name: str, arguments: Dict[str, Any] | None = None):
        self.calls.append((name, arguments or {}))
        if self.error is not None:
            raise self.error
        return CallToolResult(
            content=[TextContent(type="text", text=self.results.get(name, ""))]
        )


class FakeLLM:
    """Returns queued responses and records every request."""

    def __init__(self, responses: List[ModelResponse]):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    async def create_message(self, messages, tools=None, name="fake"):
        self.requests.append(
            {"messages": [dict(m) for m in messages], "tools": tools, "name": name}
        )
        return self.responses.pop(0)


def make_connection(
    name: str, tool_names: List[str], session: Optional[FakeSession] = None
) -> ServerConnection:
    return ServerConnection(
        config=ServerConfig(name=name, path=f"{name}.py"),
        session=session or FakeSession(),
        exit_stack=AsyncExitStack(),
        tools=[make_tool(t) for t in tool_names],
    )


def make_manager(*connections: ServerConnection) -> ToolManager:
    manager = ToolManager([c.config for c in connections])
    for connection in connections:
        manager.connections[connection.name] = connection
    return manager
