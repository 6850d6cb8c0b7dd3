"""
Slotkit Kernel — Component Registry

Maps a component name to one render capability. Registration happens at
module import (see components.py for the built-ins); the renderer consults
the registry by name at dispatch time.

`get` never raises: an unknown name returns None and the renderer emits its
placeholder.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from slotkit.kernel.tree import SlotTreeIndex
from slotkit.kernel.types import RenderMode, RenderNode, RenderOptions, SlotDescriptor

logger = logging.getLogger(__name__)


@dataclass
class ComponentInvocation:
    """Everything a component needs to render one slot."""

    slot: SlotDescriptor
    class_name: str
    styles: dict[str, Any]
    content: str
    data: Mapping[str, Any]
    slots: SlotTreeIndex
    options: RenderOptions
    render_children: Callable[[str], list[RenderNode]] = field(repr=False, default=lambda _parent_id: [])

    @property
    def mode(self) -> RenderMode:
        return self.options.mode

    @property
    def is_editor(self) -> bool:
        return self.options.is_editor


class SlotComponent(Protocol):
    """A registered render capability."""

    def render(self, invocation: ComponentInvocation) -> RenderNode | None: ...


class FunctionComponent:
    """Adapts a plain render function to the SlotComponent protocol."""

    def __init__(self, name: str, render: Callable[[ComponentInvocation], RenderNode | None]) -> None:
        self.name = name
        self._render = render

    def render(self, invocation: ComponentInvocation) -> RenderNode | None:
        return self._render(invocation)

    def __repr__(self) -> str:
        return f"FunctionComponent({self.name!r})"


class ComponentRegistry:
    """Name → render capability."""

    def __init__(self) -> None:
        self._components: dict[str, SlotComponent] = {}

    def register(self, name: str, component: SlotComponent | Callable[[ComponentInvocation], Any]) -> None:
        """Register (or replace) a component. Plain functions are wrapped."""
        if not isinstance(name, str) or not name:
            raise ValueError("component name must be a non-empty string")
        if not hasattr(component, "render"):
            if not callable(component):
                raise TypeError(f"component {name!r} has no render capability")
            component = FunctionComponent(name, component)
        if name in self._components:
            logger.info("ComponentRegistry: replacing component %s", name)
        self._components[name] = component

    def unregister(self, name: str) -> None:
        self._components.pop(name, None)

    def has(self, name: str | None) -> bool:
        return isinstance(name, str) and name in self._components

    def get(self, name: str | None) -> SlotComponent | None:
        if not isinstance(name, str):
            return None
        return self._components.get(name)

    def names(self) -> list[str]:
        return sorted(self._components)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._components

    def __len__(self) -> int:
        return len(self._components)

    def component(self, name: str) -> Callable[[Callable[[ComponentInvocation], Any]], Callable[[ComponentInvocation], Any]]:
        """Decorator form of `register` for render functions."""

        def decorator(fn: Callable[[ComponentInvocation], Any]) -> Callable[[ComponentInvocation], Any]:
            self.register(name, fn)
            return fn

        return decorator


# Process-wide registry the renderer uses unless given another
default_registry = ComponentRegistry()


def register_component(name: str, component: SlotComponent | Callable[[ComponentInvocation], Any]) -> None:
    default_registry.register(name, component)
