from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class LLMConfig:
    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    timeout: float = float(os.getenv("ORACLE_TIMEOUT", "10.0"))
    max_tokens: int = 2048
    temperature: float = 0.3
    # The oracle tier is opt-in; similarity ranking works without it.
    enabled: bool = _env_flag("ORACLE_ENABLED")


DEFAULT_LLM_CONFIG = LLMConfig()
