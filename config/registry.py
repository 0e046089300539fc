"""In-memory binding registry for external collaborators."""
from typing import Any, Dict

_REGISTRY: Dict[str, Any] = {}


def bind_model(key: str, impl: Any) -> None:
    """Bind an implementation (client, renderer, factory) to a registry key."""
    _REGISTRY[key] = impl


def get_model(key: str) -> Any:
    """Retrieve a bound implementation.

    Raises:
        KeyError: If nothing has been bound for ``key``.
    """

    if key not in _REGISTRY:
        raise KeyError(f"Model not bound in registry: {key}")
    return _REGISTRY[key]


def unbind_model(key: str) -> None:
    _REGISTRY.pop(key, None)


GRADER_KEY = "models.grader"
RENDERER_KEY = "models.pdf_renderer"
