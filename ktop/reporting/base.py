from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Type


class Renderer(ABC):
    """Abstract base for output renderers.

    Implementations turn one aggregated cycle into the text written to stdout.
    """

    # Output format name as accepted by --output (e.g. 'table', 'csv')
    format_name: str

    @abstractmethod
    def render(self, result, cfg) -> str:  # pragma: no cover - interface
        pass


_registry: Dict[str, Type[Renderer]] = {}


def register(renderer_cls: Type[Renderer]):
    name = getattr(renderer_cls, 'format_name', None)
    if not name:
        raise ValueError('Renderer subclass must define format_name')
    _registry[name] = renderer_cls
    return renderer_cls


def get_formats():
    return sorted(_registry.keys())


def get_renderer(format_name: str) -> Renderer:
    cls = _registry.get(format_name)
    if not cls:
        raise ValueError(f'Unknown output format: {format_name}. Available: {", ".join(get_formats())}')
    return cls()
