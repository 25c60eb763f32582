from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_PLACEHOLDER_KEYS = {"", "your_groq_api_key_here"}


@dataclass(frozen=True)
class LLMConfig:
    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    timeout: float = 20.0
    max_tokens: int = 1500
    temperature: float = 0.7
    enabled: bool = True

    @property
    def available(self) -> bool:
        return self.enabled and self.api_key.strip() not in _PLACEHOLDER_KEYS


DEFAULT_LLM_CONFIG = LLMConfig()
