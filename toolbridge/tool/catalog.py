"""
Unified tool namespace across every connected server.

Tools are exposed to the model as ``<server>__<tool>``. Server names are
restricted so that the first ``__`` in a qualified name is always the one
inserted here; tool names come from the servers and are never rewritten.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from toolbridge.tool.manager import ServerConnection

SEPARATOR = "__"

_SERVER_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_server_name(name: str) -> None:
    if not _SERVER_NAME_RE.match(name):
        raise ValueError(
            f"Server name '{name}' may only contain letters, digits, '_' and '-'"
        )
    if SEPARATOR in name or name.endswith("_"):
        raise ValueError(
            f"Server name '{name}' must not contain '{SEPARATOR}' or end with '_'"
        )


def qualify_name(server_name: str, tool_name: str) -> str:
    return f"{server_name}{SEPARATOR}{tool_name}"


def split_qualified_name(qualified_name: str) -> Tuple[str, str]:
    server_name, sep, tool_name = qualified_name.partition(SEPARATOR)
    if not sep or not server_name or not tool_name:
        raise ValueError(f"'{qualified_name}' is not a qualified tool name")
    return server_name, tool_name


class CatalogTool(BaseModel):
    name: str
    description: str = ""
    input_schema: Dict[str, Any] = Field(default_factory=dict)
    server_name: str
    tool_name: str

    def to_anthropic(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


def build_catalog(connections: Mapping[str, "ServerConnection"]) -> List[CatalogTool]:
    catalog: List[CatalogTool] = []
    for server_name, connection in connections.items():
        for tool in connection.tools:
            schema = tool.inputSchema or {}
            # The model API only accepts object schemas
            if schema.get("type") != "object":
                schema = {"type": "object", "properties": {}}
            catalog.append(
                CatalogTool(
                    name=qualify_name(server_name, tool.name),
                    description=tool.description or f"{server_name}.{tool.name}",
                    input_schema=schema,
                    server_name=server_name,
                    tool_name=tool.name,
                )
            )
    return catalog


def resolve(
    connections: Mapping[str, "ServerConnection"], qualified_name: str
) -> Optional[Tuple["ServerConnection", str]]:
    """Find the connection owning ``qualified_name``, or ``None``."""
    try:
        server_name, tool_name = split_qualified_name(qualified_name)
    except ValueError:
        return None

    connection = connections.get(server_name)
    if connection is None:
        return None
    if not any(tool.name == tool_name for tool in connection.tools):
        return None
    return connection, tool_name
