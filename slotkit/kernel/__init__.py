"""
Slotkit Kernel — the pure rendering engine.

Five components, leaves first:
  variables  — template mini-language: (template, context) → string
  tree       — parent → children index over a flat slot collection
  layout     — view-mode / render-condition filter, grid order, column spans
  registry   — name → component render capability
  renderer   — (slots, context, options) → RenderNode tree

Around them:
  reducer    — pure editor mutations producing replacement collections
  cms, hooks, writeback, session — the stateful edges of a page view
"""

from slotkit.kernel import components as _components  # noqa: F401  (registers built-ins)
from slotkit.kernel.context import build_data_context
from slotkit.kernel.demo import generate_demo_data
from slotkit.kernel.reducer import apply_edit
from slotkit.kernel.registry import ComponentRegistry, default_registry, register_component
from slotkit.kernel.renderer import render_html, render_slot, render_slots, render_tree
from slotkit.kernel.session import MemorySurface, SlotSession
from slotkit.kernel.tree import SlotTreeIndex
from slotkit.kernel.types import RenderMode, RenderNode, RenderOptions, SlotType, Viewport
from slotkit.kernel.validation import validate_slot_configuration
from slotkit.kernel.variables import process

__all__ = [
    "process",
    "SlotTreeIndex",
    "ComponentRegistry",
    "default_registry",
    "register_component",
    "render_slots",
    "render_slot",
    "render_tree",
    "render_html",
    "apply_edit",
    "validate_slot_configuration",
    "build_data_context",
    "generate_demo_data",
    "SlotSession",
    "MemorySurface",
    "RenderMode",
    "RenderNode",
    "RenderOptions",
    "SlotType",
    "Viewport",
]
