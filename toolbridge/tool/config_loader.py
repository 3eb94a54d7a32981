from __future__ import annotations

import os
import sys
from typing import Dict, List

import yaml
from mcp import StdioServerParameters

from toolbridge.constants import DEFAULT_CONFIG_PATH
from toolbridge.tool.catalog import validate_server_name

from .types import ResolvedServer, ServerConfig

PACKAGE_RUNNERS = ("npx",)
EXPLICIT_INTERPRETERS = ("python", "python3", "node")
SCRIPT_INTERPRETERS = {".py": "python", ".js": "node"}


def _interpolate_env(value: str) -> str:
    # format: ${env:VAR}
    if isinstance(value, str) and value.startswith("${env:") and value.endswith("}"):
        var_name = value[len("${env:") : -1]
        return os.environ.get(var_name, value)
    return value


def load_servers_config(config_path: str | os.PathLike | None = None) -> List[ServerConfig]:
    """Read the server descriptor file.

    The file is parsed with ``yaml.safe_load``, so the conventional
    ``mcp-server.json`` and an equivalent YAML file are both accepted.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Config file {path} could not be parsed: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping object")

    servers = data.get("servers")
    if not isinstance(servers, list):
        raise ValueError("Config must contain 'servers' as a list")

    server_configs: List[ServerConfig] = []
    seen: set[str] = set()
    for i, item in enumerate(servers):
        if not isinstance(item, dict):
            raise ValueError(f"Server entry at index {i} must be a mapping")

        name = item.get("name")
        command = item.get("command")
        path_value = item.get("path")
        args = item.get("args", []) or []
        env = item.get("env", {}) or {}
        description = item.get("description")

        if not name:
            raise ValueError(f"Server entry at index {i} requires 'name'")
        name = str(name)
        validate_server_name(name)
        if name in seen:
            raise ValueError(f"Duplicate server name '{name}'")
        seen.add(name)

        if command is not None and command not in PACKAGE_RUNNERS + EXPLICIT_INTERPRETERS:
            raise ValueError(
                f"'command' for server '{name}' must be one of "
                f"{', '.join(PACKAGE_RUNNERS + EXPLICIT_INTERPRETERS)}"
            )
        if command not in PACKAGE_RUNNERS and not path_value:
            raise ValueError(f"Server '{name}' requires 'path' unless run through npx")
        if command in PACKAGE_RUNNERS and not args:
            raise ValueError(f"Server '{name}' requires 'args' when run through npx")

        if not isinstance(args, list):
            raise ValueError(f"'args' for server '{name}' must be a list of strings")
        if not isinstance(env, dict):
            raise ValueError(f"'env' for server '{name}' must be a mapping of strings")

        interpolated_env: Dict[str, str] = {}
        for k, v in env.items():
            interpolated_env[str(k)] = str(_interpolate_env(v))

        server_configs.append(
            ServerConfig(
                name=name,
                command=command,
                path=str(path_value) if path_value else None,
                args=[str(a) for a in args],
                description=str(description) if description else None,
                env=interpolated_env,
            )
        )

    return server_configs


def _script_command(server: ServerConfig) -> tuple[str, List[str]]:
    script_path = os.path.abspath(os.path.join(os.getcwd(), server.path or ""))
    _, ext = os.path.splitext(script_path)
    interpreter = SCRIPT_INTERPRETERS.get(ext.lower())
    if interpreter is None:
        raise ValueError(
            f"Server script for '{server.name}' must be a .js or .py file: {server.path}"
        )

    command = server.command or interpreter
    # Run python servers inside the same environment as the client
    if command in ("python", "python3"):
        command = sys.executable
    return command, [script_path, *server.args]


def resolve_server(server: ServerConfig) -> ResolvedServer:
    """Turn a descriptor into the stdio launch parameters for its process."""
    if server.command in PACKAGE_RUNNERS:
        command, args = server.command, list(server.args)
    else:
        command, args = _script_command(server)

    # Merge the current process environment with per-server overrides so
    # child MCP processes inherit all necessary variables (API keys, etc.).
    merged_env = dict(os.environ)
    if server.env:
        merged_env.update(server.env)
    params = StdioServerParameters(command=command, args=args, env=merged_env)
    return ResolvedServer(name=server.name, params=params)
