import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from anthropic import Anthropic
from langfuse import Langfuse

from toolbridge.llm_client.model import ModelResponse, TextBlock, ToolUseBlock
from toolbridge.settings import ClientSettings

logger = logging.getLogger(__name__)


def _create_langfuse(settings: ClientSettings) -> Optional[Langfuse]:
    if not settings.langfuse_secret_key or not settings.langfuse_public_key:
        return None
    try:
        return Langfuse(
            secret_key=settings.langfuse_secret_key,
            public_key=settings.langfuse_public_key,
            host=settings.langfuse_host,
        )
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Langfuse client: {e}") from e


def _convert_block(block: Any) -> Optional[TextBlock | ToolUseBlock]:
    # response.content is a list of blocks: {type: "text"|"tool_use", ...}
    block_type = getattr(block, "type", None) or (
        block.get("type") if isinstance(block, dict) else None
    )
    if block_type == "text":
        value = getattr(block, "text", None)
        if value is None and isinstance(block, dict):
            value = block.get("text", "")
        return TextBlock(text=value or "")
    if block_type == "tool_use":
        if isinstance(block, dict):
            return ToolUseBlock(
                id=block.get("id", ""),
                name=block.get("name", ""),
                input=block.get("input") or {},
            )
        return ToolUseBlock(
            id=getattr(block, "id", ""),
            name=getattr(block, "name", ""),
            input=getattr(block, "input", None) or {},
        )
    return None


class AnthropicClient:
    """Thin async wrapper over the Anthropic Messages API."""

    def __init__(
        self,
        settings: ClientSettings,
        client: Optional[Anthropic] = None,
        langfuse: Optional[Langfuse] = None,
    ):
        if client is None:
            if not settings.anthropic_api_key:
                raise RuntimeError(
                    "ANTHROPIC_API_KEY is not set; unable to initialize Anthropic client"
                )
            client = Anthropic(api_key=settings.anthropic_api_key)
        self.client = client
        self.settings = settings
        self.langfuse = langfuse if langfuse is not None else _create_langfuse(settings)

    async def create_message(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        name: str = "anthropic_api",
    ) -> ModelResponse:
        model = self.settings.model
        max_tokens = self.settings.max_tokens

        generation = None
        if self.langfuse:
            generation = self.langfuse.start_generation(
                name=name,
                model=model,
                input=messages,
                metadata={
                    "model": model,
                    "max_tokens": max_tokens,
                    "operation": "anthropic.messages.create",
                    "provider": "anthropic",
                    "tool_count": len(tools or []),
                },
            )

        kwargs: Dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if tools:
            kwargs["tools"] = tools

        start_time = time.time()
        try:
            # messages.create is synchronous; keep the event loop free
            response = await asyncio.to_thread(self.client.messages.create, **kwargs)
        except Exception as e:
            if generation:
                generation.update(level="ERROR", status_message=str(e))
                generation.end()
            raise RuntimeError(f"Anthropic API error: {e}") from e
        end_time = time.time()

        blocks = []
        for block in getattr(response, "content", []) or []:
            converted = _convert_block(block)
            if converted is not None:
                blocks.append(converted)
        result = ModelResponse(
            content=blocks, stop_reason=getattr(response, "stop_reason", None)
        )
        logger.debug(
            "Model replied with %d blocks (stop_reason=%s)",
            len(result.content),
            result.stop_reason,
        )

        if generation:
            usage_obj = getattr(response, "usage", None)
            input_tokens = getattr(usage_obj, "input_tokens", 0) if usage_obj else 0
            output_tokens = getattr(usage_obj, "output_tokens", 0) if usage_obj else 0
            generation.update(
                output=[block.model_dump() for block in result.content],
                usage_details={
                    "input": input_tokens,
                    "output": output_tokens,
                    "total": input_tokens + output_tokens,
                },
                metadata={
                    "latency_ms": (end_time - start_time) * 1000,
                    "finish_reason": result.stop_reason,
                    "success": True,
                },
            )
            generation.end()

        return result
