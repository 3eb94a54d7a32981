"""
Command-line entry point: connect the configured MCP servers and chat.
"""

import asyncio
import logging
import sys

from toolbridge.agent.client import ChatSession, QueryProcessor
from toolbridge.llm_client.anthropic_client import AnthropicClient
from toolbridge.settings import ClientSettings
from toolbridge.tool.config_loader import load_servers_config
from toolbridge.tool.manager import ServerConnectionError, ToolManager

logger = logging.getLogger(__name__)


async def run(settings: ClientSettings) -> None:
    server_configs = load_servers_config(settings.config_path)
    llm = AnthropicClient(settings)
    tool_manager = ToolManager(server_configs)
    try:
        await tool_manager.connect_all()
        session = ChatSession(QueryProcessor(llm, tool_manager))
        await session.chat_loop()
    finally:
        await tool_manager.close()


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    try:
        settings = ClientSettings.from_env()
        asyncio.run(run(settings))
    except (FileNotFoundError, ValueError, ServerConnectionError, RuntimeError) as e:
        logger.error("Startup failed: %s", e)
        return 1
    except KeyboardInterrupt:
        print("\nShutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
