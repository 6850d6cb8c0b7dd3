"""
Slotkit Kernel — Render Session

Coordinates one page view: holds the current slot snapshot, data context and
options, runs render passes, and owns the stateful pieces around the pure
renderer:
- CMS resolution (a resolved block triggers a new pass; unmounted owners
  make a pending result stale)
- behavior hooks (production only, synced against the surface after every
  mount)
- editor edits (pure reducer → new snapshot → new pass → debounced persist)

The snapshot handed in is copied; edits replace it, never mutate it.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from collections.abc import Mapping
from typing import Any

from slotkit.kernel import reducer
from slotkit.kernel.cms import CmsLookup, CmsResolver
from slotkit.kernel.hooks import HookManager, HookRegistry, Surface
from slotkit.kernel.registry import ComponentRegistry, default_registry
from slotkit.kernel.renderer import render_tree
from slotkit.kernel.types import (
    DeferredMount,
    EditorCallbacks,
    EditResult,
    RenderNode,
    RenderOptions,
    SlotEdit,
    Viewport,
)
from slotkit.kernel.writeback import PersistFn, WriteBackQueue

logger = logging.getLogger(__name__)


class MemorySurface:
    """In-memory mount target. Elements are the mounted RenderNodes."""

    def __init__(self) -> None:
        self.nodes: list[RenderNode] = []
        self.mount_count = 0

    def mount(self, nodes: list[RenderNode]) -> None:
        self.nodes = list(nodes)
        self.mount_count += 1

    def element(self, slot_id: str) -> RenderNode | None:
        for root in self.nodes:
            found = root.find(slot_id)
            if found is not None:
                return found
        return None

    def to_html(self) -> str:
        return "".join(node.to_html() for node in self.nodes)


class SlotSession:
    """One editor or production view over a slot tree."""

    def __init__(
        self,
        slots: Mapping[str, Any] | None,
        context: Mapping[str, Any] | None = None,
        options: RenderOptions | None = None,
        *,
        registry: ComponentRegistry | None = None,
        hooks: HookRegistry | None = None,
        cms_lookup: CmsLookup | None = None,
        persist: PersistFn | None = None,
        surface: Surface | None = None,
        writeback_delay: float | None = None,
    ) -> None:
        self.slots: dict[str, Any] = copy.deepcopy(dict(slots or {}))
        self.context: dict[str, Any] = dict(context or {})
        self.registry = registry or default_registry
        self.surface: Surface = surface or MemorySurface()
        self.hooks = HookManager(hooks)
        self.cms = CmsResolver(cms_lookup, on_resolved=self._on_cms_resolved)
        self.writeback = WriteBackQueue(persist, writeback_delay) if persist is not None else None
        self.nodes: list[RenderNode] = []
        self.render_count = 0
        self.options = self._bind_callbacks(options or RenderOptions())

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def render(self) -> list[RenderNode]:
        """Run one pass over the current snapshot and mount it."""
        output = render_tree(self.slots, self.context, self.options, registry=self.registry, cms=self.cms)
        self.cms.retain(output.mounted)
        self.nodes = output.nodes
        self.surface.mount(self.nodes)
        if self.options.is_editor:
            self.hooks.detach_all()
        else:
            self.hooks.sync(self.nodes, self.surface)
        self.render_count += 1
        return self.nodes

    def to_html(self) -> str:
        return "".join(node.to_html() for node in self.nodes)

    @property
    def deferred_mounts(self) -> list[tuple[str, DeferredMount]]:
        """Plugin widgets in the mounted output waiting for their loader."""
        found = []
        for root in self.nodes:
            for node in root.walk():
                if node.deferred is not None:
                    found.append((node.slot_id or "", node.deferred))
        return found

    def update_context(self, context: Mapping[str, Any]) -> list[RenderNode]:
        """Replace the data context. Hooks whose product data changed re-attach."""
        self.context = dict(context)
        return self.render()

    def set_viewport(self, viewport: Viewport | str) -> list[RenderNode]:
        self.options = dataclasses.replace(self.options, viewport=Viewport.parse(viewport))
        return self.render()

    def set_view_mode(self, view_mode: str) -> list[RenderNode]:
        self.options = dataclasses.replace(self.options, view_mode=view_mode)
        return self.render()

    def set_flags(self, **flags: bool) -> list[RenderNode]:
        self.options = dataclasses.replace(self.options, flags={**self.options.flags, **flags})
        return self.render()

    def select(self, slot_id: str | None) -> list[RenderNode]:
        self.options = dataclasses.replace(self.options, selected_slot_id=slot_id)
        return self.render()

    # -----------------------------------------------------------------------
    # Editor edits
    # -----------------------------------------------------------------------

    def set_tree(self, slots: Mapping[str, Any]) -> list[RenderNode]:
        """Install a replacement snapshot and render it."""
        self.slots = dict(slots)
        return self.render()

    def apply(self, edit: SlotEdit) -> EditResult:
        """
        Apply one editor mutation. An applied edit replaces the snapshot,
        re-renders, and queues a debounced write-back.
        """
        result = reducer.apply_edit(self.slots, edit)
        if not result.applied:
            logger.info("edit %s rejected: %s", edit.type, result.error)
            return result
        self.set_tree(result.slots)
        self._enqueue_write(result.slot_id or "", result.slots)
        return result

    def resize_grid(self, slot_id: str, col_span: int) -> EditResult:
        return self.apply(
            SlotEdit("slot.grid_resize", {"slot_id": slot_id, "col_span": col_span,
                                          "viewport": self.options.viewport.value})
        )

    def resize_height(self, slot_id: str, height: float) -> EditResult:
        return self.apply(SlotEdit("slot.height_resize", {"slot_id": slot_id, "height": height}))

    def drop(self, dragged_id: str, target_id: str, position: str) -> EditResult:
        return self.apply(
            SlotEdit("slot.drop", {"dragged_id": dragged_id, "target_id": target_id, "position": position})
        )

    def delete(self, slot_id: str) -> EditResult:
        return self.apply(SlotEdit("slot.delete", {"slot_id": slot_id}))

    def update(self, slot_id: str, changes: Mapping[str, Any]) -> EditResult:
        return self.apply(SlotEdit("slot.update", {"slot_id": slot_id, "changes": dict(changes)}))

    async def flush(self) -> bool:
        """Persist pending edits now instead of waiting for the debounce."""
        if self.writeback is None:
            return False
        return await self.writeback.flush()

    async def close(self) -> None:
        """Unmount: run hook cleanups, drop pending CMS owners, flush edits."""
        self.hooks.detach_all()
        self.cms.retain(())
        self.nodes = []
        self.surface.mount([])
        await self.flush()

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _bind_callbacks(self, options: RenderOptions) -> RenderOptions:
        """Fill editor callbacks the caller left unset with session-backed ones."""
        given = options.callbacks
        callbacks = EditorCallbacks(
            on_element_click=given.on_element_click or (lambda slot_id, _element: self.select(slot_id)),
            on_grid_resize=given.on_grid_resize or self.resize_grid,
            on_slot_height_resize=given.on_slot_height_resize or self.resize_height,
            on_slot_drop=given.on_slot_drop or self.drop,
            on_slot_delete=given.on_slot_delete or self.delete,
            on_resize_start=given.on_resize_start,
            on_resize_end=given.on_resize_end,
            set_tree=given.set_tree or self.set_tree,
            persist=given.persist or self._enqueue_write,
        )
        return dataclasses.replace(options, callbacks=callbacks)

    def _enqueue_write(self, slot_id: str, slots: Mapping[str, Any]) -> None:
        if self.writeback is None:
            return
        self.writeback.enqueue(slot_id, slots)

    def _on_cms_resolved(self) -> None:
        logger.debug("CMS content arrived, re-rendering")
        self.render()
