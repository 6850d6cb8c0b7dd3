"""
Slotkit Kernel — Behavior Hooks

A slot's `script` names a handler in a closed registry. Handlers run only in
production mode, after the slot is mounted, and receive an explicit surface
handle for the slot's element instead of reaching for any global document.
A handler may return a cleanup callable, invoked when the slot unmounts or
the data governing it changes.

Inline code is never executed: a script that is not a plain handler name is
rejected and logged.

Failures inside a handler or its cleanup are caught and logged per slot;
they never reach the render pass or sibling slots.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from slotkit.kernel.types import HookSpec, RenderNode

logger = logging.getLogger(__name__)

HANDLER_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_.:-]{0,127}$")


class Surface(Protocol):
    """The mounted output region. Hooks reach elements only through it."""

    def mount(self, nodes: list[RenderNode]) -> None: ...

    def element(self, slot_id: str) -> Any | None: ...


@dataclass
class HookInvocation:
    """Arguments handed to a behavior hook."""

    element: Any
    slot: dict[str, Any]
    product: dict[str, Any] | None
    data: Mapping[str, Any]
    surface: Surface


HookHandler = Callable[[HookInvocation], Callable[[], None] | None]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class HookRegistry:
    """Name → behavior handler."""

    def __init__(self) -> None:
        self._handlers: dict[str, HookHandler] = {}

    def register(self, name: str, handler: HookHandler) -> None:
        if not HANDLER_NAME_PATTERN.match(name or ""):
            raise ValueError(f"invalid hook name: {name!r}")
        if not callable(handler):
            raise TypeError(f"hook {name!r} is not callable")
        self._handlers[name] = handler

    def has(self, name: str) -> bool:
        return name in self._handlers

    def get(self, name: str) -> HookHandler | None:
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def hook(self, name: str) -> Callable[[HookHandler], HookHandler]:
        """Decorator form of `register`."""

        def decorator(fn: HookHandler) -> HookHandler:
            self.register(name, fn)
            return fn

        return decorator


default_hooks = HookRegistry()


def handler_name(script: str | None) -> str | None:
    """The handler a script refers to, or None for inline code / empty."""
    if not script:
        return None
    name = script.strip()
    return name if HANDLER_NAME_PATTERN.match(name) else None


# ---------------------------------------------------------------------------
# Mount lifecycle
# ---------------------------------------------------------------------------


@dataclass
class _Attachment:
    fingerprint: str
    cleanup: Callable[[], None] | None


class HookManager:
    """
    Tracks which hooks are attached to the mounted output.

    `sync` is called after every production mount: hooks of slots that are
    gone or whose slot/product data changed are cleaned up, new ones are
    attached. Unchanged hooks stay attached.
    """

    def __init__(self, registry: HookRegistry | None = None) -> None:
        self.registry = registry or default_hooks
        self._attached: dict[str, _Attachment] = {}
        self._rejected: set[str] = set()

    @property
    def attached_ids(self) -> list[str]:
        return sorted(self._attached)

    def sync(self, nodes: Iterable[RenderNode], surface: Surface) -> None:
        specs: dict[str, HookSpec] = {}
        for root in nodes:
            for node in root.walk():
                if node.hook is not None:
                    specs[node.hook.slot_id] = node.hook

        for slot_id in list(self._attached):
            spec = specs.get(slot_id)
            if spec is None or _fingerprint(spec) != self._attached[slot_id].fingerprint:
                self.detach(slot_id)

        for slot_id, spec in specs.items():
            if slot_id not in self._attached:
                self._attach(spec, surface)

    def detach(self, slot_id: str) -> None:
        attachment = self._attached.pop(slot_id, None)
        if attachment is None or attachment.cleanup is None:
            return
        try:
            attachment.cleanup()
        except Exception:
            logger.exception("hook cleanup failed for slot %s", slot_id)

    def detach_all(self) -> None:
        for slot_id in list(self._attached):
            self.detach(slot_id)

    def _attach(self, spec: HookSpec, surface: Surface) -> None:
        name = handler_name(spec.script)
        if name is None:
            if spec.slot_id not in self._rejected:
                logger.warning("slot %s: inline script rejected, only named hooks run", spec.slot_id)
                self._rejected.add(spec.slot_id)
            return

        handler = self.registry.get(name)
        if handler is None:
            logger.warning("slot %s: unknown hook %s", spec.slot_id, name)
            return

        element = surface.element(spec.slot_id)
        if element is None:
            logger.debug("slot %s: no mounted element for hook %s", spec.slot_id, name)
            return

        invocation = HookInvocation(
            element=element,
            slot=spec.slot,
            product=spec.product,
            data=spec.context,
            surface=surface,
        )
        try:
            cleanup = handler(invocation)
        except Exception:
            logger.exception("hook %s failed for slot %s", name, spec.slot_id)
            return

        self._attached[spec.slot_id] = _Attachment(
            fingerprint=_fingerprint(spec),
            cleanup=cleanup if callable(cleanup) else None,
        )


def _fingerprint(spec: HookSpec) -> str:
    return json.dumps(
        {"script": spec.script, "slot": spec.slot, "product": spec.product},
        sort_keys=True,
        default=str,
    )
