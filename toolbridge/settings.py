"""
Process-wide settings, read once at startup and passed down explicitly.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from toolbridge.constants import DEFAULT_MAX_TOKENS, DEFAULT_MODEL


class ClientSettings(BaseModel):
    anthropic_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    config_path: Optional[str] = None
    langfuse_secret_key: Optional[str] = None
    langfuse_public_key: Optional[str] = None
    langfuse_host: str = "https://cloud.langfuse.com"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "ClientSettings":
        if load_env_file:
            load_dotenv()
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise RuntimeError("ANTHROPIC_API_KEY is not set")
        return cls(
            anthropic_api_key=api_key,
            model=os.environ.get("TOOLBRIDGE_MODEL", DEFAULT_MODEL),
            max_tokens=int(os.environ.get("TOOLBRIDGE_MAX_TOKENS", DEFAULT_MAX_TOKENS)),
            config_path=os.environ.get("TOOLBRIDGE_CONFIG_PATH"),
            langfuse_secret_key=os.environ.get("LANGFUSE_SECRET_KEY"),
            langfuse_public_key=os.environ.get("LANGFUSE_PUBLIC_KEY"),
            langfuse_host=os.environ.get("LANGFUSE_HOST", "https://cloud.langfuse.com"),
        )
