"""Founder Blueprint backend package."""

from .app import create_app
from .blueprint import generate_blueprint
from .config import get_llm_settings
from .llm import get_recommendations
from .recommendations import fallback_recommendations

__all__ = [
    "create_app",
    "fallback_recommendations",
    "generate_blueprint",
    "get_llm_settings",
    "get_recommendations",
]
