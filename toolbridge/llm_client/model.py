from typing import Any, Dict, List, Literal, Optional, Union

import pydantic
from pydantic import Field


class TextBlock(pydantic.BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(pydantic.BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)


ContentBlock = Union[TextBlock, ToolUseBlock]


class ModelResponse(pydantic.BaseModel):
    content: List[ContentBlock] = Field(default_factory=list)
    stop_reason: Optional[str] = None

    @property
    def first_text(self) -> str:
        if self.content and isinstance(self.content[0], TextBlock):
            return self.content[0].text
        return ""
