from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from mcp import ClientSession
from mcp.client.stdio import stdio_client
from mcp.types import CallToolResult, Implementation, Tool

from toolbridge.constants import CLIENT_VERSION
from toolbridge.tool import catalog as tool_catalog
from toolbridge.tool.catalog import CatalogTool
from toolbridge.tool.config_loader import resolve_server

from .types import ResolvedServer, ServerConfig

logger = logging.getLogger(__name__)


class ServerConnectionError(RuntimeError):
    """A configured server could not be spawned, initialized or listed."""

    def __init__(self, server_name: str, cause: BaseException):
        super().__init__(f'Failed to connect to server "{server_name}": {cause}')
        self.server_name = server_name
        self.cause = cause


@dataclass
class ServerConnection:
    config: ServerConfig
    session: ClientSession
    exit_stack: AsyncExitStack
    tools: List[Tool] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.config.name

    async def close(self) -> None:
        await self.exit_stack.aclose()


class ToolManager:
    def __init__(self, server_configs: List[ServerConfig]) -> None:
        self.server_configs = server_configs
        self.connections: Dict[str, ServerConnection] = {}
        logger.info(
            "ToolManager initialized with servers: %s",
            [cfg.name for cfg in server_configs],
        )

    async def __aenter__(self) -> "ToolManager":
        await self.connect_all()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def connect_all(self) -> None:
        """Connect every configured server in order, aborting on the first failure."""
        for cfg in self.server_configs:
            try:
                connection = await self._connect(cfg)
            except Exception as e:
                logger.exception('Failed to connect to server "%s"', cfg.name)
                await self.close()
                raise ServerConnectionError(cfg.name, e) from e

            self.connections[cfg.name] = connection
            logger.info(
                'Connected to server "%s" with tools: %s',
                cfg.name,
                [tool_catalog.qualify_name(cfg.name, t.name) for t in connection.tools],
            )

    async def _connect(self, cfg: ServerConfig) -> ServerConnection:
        # Raises before anything is spawned when the launch descriptor is invalid
        resolved = resolve_server(cfg)
        exit_stack = AsyncExitStack()
        try:
            session = await self._open_session(resolved, exit_stack)
            await session.initialize()
            tools_response = await session.list_tools()
        except BaseException:
            await exit_stack.aclose()
            raise
        return ServerConnection(
            config=cfg,
            session=session,
            exit_stack=exit_stack,
            tools=list(tools_response.tools),
        )

    async def _open_session(
        self, resolved: ResolvedServer, exit_stack: AsyncExitStack
    ) -> ClientSession:
        read, write = await exit_stack.enter_async_context(stdio_client(resolved.params))
        return await exit_stack.enter_async_context(
            ClientSession(
                read,
                write,
                client_info=Implementation(
                    name=f"mcp-client-{resolved.name}", version=CLIENT_VERSION
                ),
            )
        )

    def catalog(self) -> List[CatalogTool]:
        return tool_catalog.build_catalog(self.connections)

    def resolve(self, qualified_name: str) -> Optional[Tuple[ServerConnection, str]]:
        return tool_catalog.resolve(self.connections, qualified_name)

    async def call_tool(
        self, server_name: str, tool_name: str, arguments: Dict[str, Any]
    ) -> CallToolResult:
        connection = self.connections.get(server_name)
        if connection is None:
            raise KeyError(f"Unknown server '{server_name}'")
        return await connection.session.call_tool(tool_name, arguments=arguments)

    async def close(self) -> None:
        """Close every connection; a failure on one does not stop the rest."""
        # Transports hold anyio task groups, which must be exited in LIFO order
        for name, connection in reversed(list(self.connections.items())):
            try:
                await connection.close()
            except Exception:
                logger.exception('Failed to close connection to server "%s"', name)
        self.connections.clear()
