"""Configuration helpers for the Founder Blueprint backend."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping

from dotenv import load_dotenv

ENV_PREFIX = "FOUNDER_BLUEPRINT_"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1200
DEFAULT_USER_HEADER = "X-User-Id"

load_dotenv(override=False)


@dataclass(frozen=True)
class LLMSettings:
    """Settings container for the recommendation LLM.

    The AI path is only taken when an OpenAI key is present; everything
    else has a sensible default.
    """

    openai_api_key: str | None = None
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS

    @property
    def is_configured(self) -> bool:
        """True when an API key is available for the LLM provider."""

        return bool(self.openai_api_key and self.openai_api_key.strip())


def _env_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """Read environment variables and return cached LLM settings."""

    environ = os.environ
    return LLMSettings(
        openai_api_key=environ.get("OPENAI_API_KEY") or None,
        model=environ.get(f"{ENV_PREFIX}LLM_MODEL") or DEFAULT_MODEL,
        temperature=_env_float(environ, f"{ENV_PREFIX}LLM_TEMPERATURE", DEFAULT_TEMPERATURE),
        max_tokens=_env_int(environ, f"{ENV_PREFIX}LLM_MAX_TOKENS", DEFAULT_MAX_TOKENS),
    )


def get_user_header() -> str:
    """Return the request header that carries the caller identity."""

    return os.getenv(f"{ENV_PREFIX}USER_HEADER") or DEFAULT_USER_HEADER


def configure_logging() -> None:
    """Apply the log level from ``FOUNDER_BLUEPRINT_LOG_LEVEL``."""

    level_name = (os.getenv(f"{ENV_PREFIX}LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("founder_blueprint").setLevel(level)
