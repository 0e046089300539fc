"""Configuration package for the interview session services."""
from .registry import GRADER_KEY, RENDERER_KEY, bind_model, get_model, unbind_model
from .routes import AppConfig, LlmRoute, load_config, resolve_route
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_config",
    "resolve_route",
    "GRADER_KEY",
    "RENDERER_KEY",
    "bind_model",
    "get_model",
    "unbind_model",
    "Settings",
    "settings",
]
