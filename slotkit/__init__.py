"""Slotkit: a slot-based UI rendering engine with dual editor / production modes."""

__version__ = "0.1.0"
