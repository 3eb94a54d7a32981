from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from mcp import StdioServerParameters


@dataclass(frozen=True)
class ServerConfig:
    name: str
    command: Optional[str] = None
    path: Optional[str] = None
    args: List[str] = field(default_factory=list)
    description: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)


@dataclass
class ResolvedServer:
    name: str
    params: StdioServerParameters
