import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Protocol, TextIO

from mcp.types import CallToolResult, TextContent

from toolbridge.llm_client.model import ModelResponse, TextBlock, ToolUseBlock
from toolbridge.tool.manager import ToolManager

logger = logging.getLogger(__name__)

QUIT_KEYWORD = "quit"


class ModelClient(Protocol):
    async def create_message(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        name: str = ...,
    ) -> ModelResponse: ...


def tool_result_text(result: CallToolResult) -> str:
    parts = []
    for item in result.content or []:
        if isinstance(item, TextContent):
            parts.append(item.text)
        else:
            parts.append(item.model_dump_json())
    return "\n".join(parts)


class QueryProcessor:
    """Drives one user query through the model and the connected tool servers.

    Each tool call is followed by exactly one follow-up request without tools,
    so the model narrates that result before the next block of the original
    reply is handled. Errors from the model or a tool abort the whole query.
    """

    def __init__(self, llm: ModelClient, tool_manager: ToolManager):
        self.llm = llm
        self.tool_manager = tool_manager

    async def process_query(self, query: str) -> str:
        messages: List[Dict[str, Any]] = [{"role": "user", "content": query}]
        tools = [tool.to_anthropic() for tool in self.tool_manager.catalog()]

        response = await self.llm.create_message(
            messages, tools=tools or None, name="process_query"
        )

        final_text: List[str] = []
        for block in response.content:
            if isinstance(block, TextBlock):
                final_text.append(block.text)
            elif isinstance(block, ToolUseBlock):
                resolved = self.tool_manager.resolve(block.name)
                if resolved is None:
                    logger.warning("Model requested unknown tool %s", block.name)
                    final_text.append(f"[Error: unknown tool {block.name}]")
                    continue

                connection, tool_name = resolved
                logger.info("Calling %s.%s", connection.name, tool_name)
                result = await self.tool_manager.call_tool(
                    connection.name, tool_name, block.input
                )
                final_text.append(
                    f"[Calling tool {block.name} with args {json.dumps(block.input)}]"
                )

                messages.append({"role": "user", "content": tool_result_text(result)})

                follow_up = await self.llm.create_message(
                    messages, tools=None, name="tool_follow_up"
                )
                final_text.append(follow_up.first_text)

        return "\n".join(final_text)


class ChatSession:
    def __init__(
        self,
        processor: QueryProcessor,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ):
        self.processor = processor
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def _write(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    async def chat_loop(self) -> None:
        self._write("\nMCP Client Started!\n")
        self._write("Type your queries or 'quit' to exit.\n")

        while True:
            self._write("\nQuery: ")
            line = await asyncio.to_thread(self.stdin.readline)
            if not line:
                break
            query = line.strip()
            if query.lower() == QUIT_KEYWORD:
                break
            if not query:
                continue

            try:
                response = await self.processor.process_query(query)
                self._write("\n" + response + "\n")
            except Exception as e:
                logger.exception("Query failed")
                self._write(f"\nError: {e}\n")
