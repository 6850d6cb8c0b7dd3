"""HTTP client for the slot-configuration API (editor drafts and published trees)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from slotkit.config import settings
from slotkit.errors import ConfigurationError
from slotkit.kernel.validation import validate_slot_configuration

logger = logging.getLogger(__name__)

API_BASE = "api/slot-configurations"


class ConfigClient:
    """HTTP client for slot configurations.

    `persister` returns a write-back collaborator bound to one draft, so an
    editor session can hand its debounced flushes straight to the API.
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None) -> None:
        self._base_url = (settings.API_URL if base_url is None else base_url).rstrip("/")
        self._timeout = settings.HTTP_TIMEOUT if timeout is None else timeout

    async def get_published(self, store_id: str, page_type: str = "product") -> dict[str, Any]:
        """
        Load the published configuration of a page.

        Returns:
            The configuration dict (with its "slots" mapping)

        Raises:
            ConfigurationError: If the API is unreachable or returns an error
        """
        url = f"{self._base_url}/{API_BASE}/published/{store_id}/{page_type}"
        body = await self._request("GET", url, params={"status": "published", "latest": "true"})
        data = body.get("data") if isinstance(body, dict) and "data" in body else body
        if not isinstance(data, dict):
            raise ConfigurationError(f"published configuration for {page_type!r} has unexpected shape")
        return data

    async def update_draft(
        self,
        config_id: str,
        slots: Mapping[str, Any],
        store_id: str | None = None,
        is_reset: bool = False,
    ) -> dict[str, Any]:
        """
        Store a draft configuration.

        The slot collection is validated first; an invalid collection is
        refused without a request.

        Raises:
            ConfigurationError: If the slots are invalid or the API call fails
        """
        errors = validate_slot_configuration(slots)
        if errors:
            raise ConfigurationError("; ".join(errors))

        payload = {
            "configuration": {"slots": dict(slots)},
            "storeId": store_id,
            "isReset": is_reset,
        }
        return await self._request("PUT", f"{self._base_url}/{API_BASE}/draft/{config_id}", json=payload)

    def persister(self, config_id: str, store_id: str | None = None):
        """Write-back collaborator storing flushed collections into one draft."""

        async def persist(slots: dict[str, Any]) -> None:
            await self.update_draft(config_id, slots, store_id)
            logger.info("ConfigClient: stored draft %s (%d slots)", config_id, len(slots))

        return persist

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ConfigurationError(f"{method} {url} failed: {e}") from e


config_client = ConfigClient()
