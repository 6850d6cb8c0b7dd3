"""
Slotkit configuration — all environment variables in one place.

Read from environment at import time. The kernel runs with no environment at
all, so every key has a default.
"""

from __future__ import annotations

import os


class Settings:
    """Engine settings from environment variables."""

    # Editor write-back
    WRITEBACK_DELAY_MS: int = int(os.environ.get("SLOTKIT_WRITEBACK_DELAY_MS", "500"))

    # Image placeholders
    PLACEHOLDER_IMAGE_URL: str = os.environ.get(
        "SLOTKIT_PLACEHOLDER_IMAGE_URL", "https://placehold.co/400x400?text=Product+Image"
    )
    NO_IMAGE_URL: str = os.environ.get("SLOTKIT_NO_IMAGE_URL", "https://placehold.co/600x600?text=No+Image")

    # Recursion guards
    MAX_TEMPLATE_DEPTH: int = int(os.environ.get("SLOTKIT_MAX_TEMPLATE_DEPTH", "10"))
    MAX_TREE_DEPTH: int = int(os.environ.get("SLOTKIT_MAX_TREE_DEPTH", "64"))

    # Display
    CURRENCY_SYMBOL: str = os.environ.get("SLOTKIT_CURRENCY_SYMBOL", "$")
    DEFAULT_LANGUAGE: str = os.environ.get("SLOTKIT_DEFAULT_LANGUAGE", "en")

    # Collaborator HTTP APIs
    API_URL: str = os.environ.get("SLOTKIT_API_URL", "")
    HTTP_TIMEOUT: float = float(os.environ.get("SLOTKIT_HTTP_TIMEOUT", "10.0"))

    @property
    def WRITEBACK_DELAY_SECONDS(self) -> float:
        return self.WRITEBACK_DELAY_MS / 1000.0


# Singleton instance
settings = Settings()
