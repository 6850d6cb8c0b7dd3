"""HTTP client for the CMS block API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from slotkit.config import settings
from slotkit.errors import CmsLookupError

logger = logging.getLogger(__name__)


class CmsClient:
    """HTTP client for CMS blocks.

    `lookup` matches the CmsResolver collaborator signature
    `(placement, store_id) -> content | None`, so a bound method can be
    handed to a session directly.
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None) -> None:
        self._base_url = (settings.API_URL if base_url is None else base_url).rstrip("/")
        self._timeout = settings.HTTP_TIMEOUT if timeout is None else timeout

    async def fetch_blocks(self, placement: str, store_id: str | None) -> list[dict[str, Any]]:
        """
        Fetch the active CMS blocks for a placement.

        Args:
            placement: Placement key (e.g. "homepage_top")
            store_id: Store the blocks belong to

        Returns:
            List of block dicts, possibly empty

        Raises:
            CmsLookupError: If the request fails or the body is not JSON
        """
        params: dict[str, Any] = {"placement": placement, "is_active": "true"}
        if store_id is not None:
            params["store_id"] = store_id

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(f"{self._base_url}/api/public/cms-blocks", params=params)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CmsLookupError(f"CMS lookup for {placement!r} failed: {e}") from e

        # The API answers either a bare list or {"success": ..., "data": [...]}
        blocks = body.get("data") if isinstance(body, dict) else body
        if not isinstance(blocks, list):
            logger.warning("CmsClient: unexpected response shape for placement %s", placement)
            return []
        return [b for b in blocks if isinstance(b, dict)]

    async def lookup(self, placement: str, store_id: str | None) -> str | None:
        """Content of the first active block for a placement, or None."""
        blocks = await self.fetch_blocks(placement, store_id)
        for block in blocks:
            content = block.get("content")
            if isinstance(content, str) and content:
                return content
        return None


cms_client = CmsClient()
