"""Named component factories resolved by the progressive loader."""
from __future__ import annotations

from typing import Any, Callable, Dict, List

from perfwatch.core.exceptions import ComponentNotFoundError

ComponentFactory = Callable[[], Any]


class ComponentRegistry:
    """Map component names to factories; replaces loading modules by string."""

    def __init__(self) -> None:
        self._factories: Dict[str, ComponentFactory] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def register(self, name: str, factory: ComponentFactory) -> None:
        if not callable(factory):
            raise TypeError(f"Factory for component '{name}' must be callable")
        self._factories[name] = factory

    def resolve(self, name: str) -> ComponentFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise ComponentNotFoundError(name) from None

    def names(self) -> List[str]:
        return sorted(self._factories)
