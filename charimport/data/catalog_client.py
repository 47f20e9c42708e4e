"""Async HTTP client for a remote compendium service."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .catalog import CatalogEntry, CatalogUnavailable, document_id
from .config import CatalogConfig

logger = logging.getLogger(__name__)


class CatalogClientError(RuntimeError):
    """Raised when the compendium service returns an error response."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class HttpCatalogClient:
    """Catalog provider reading packs over HTTP.

    Endpoints:
        GET /packs/{pack_id}/index              -> [{"_id", "name"}, ...]
        GET /packs/{pack_id}/documents          -> [document, ...]
        GET /packs/{pack_id}/documents/{doc_id} -> document
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = CatalogConfig()
        self._base_url = (base_url or config.base_url or "").rstrip("/")
        self._timeout_s = timeout_s or config.timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HttpCatalogClient":
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout_s,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def base_url(self) -> str:
        """Return the configured base URL (for logging/debugging)."""
        return self._base_url

    async def get_index(self, pack_id: str) -> list[CatalogEntry]:
        data = await self._get(pack_id, f"/packs/{quote(pack_id, safe='')}/index")
        entries: list[CatalogEntry] = []
        for row in data if isinstance(data, list) else []:
            if not isinstance(row, dict):
                continue
            entry_id = document_id(row)
            name = row.get("name")
            if entry_id and name:
                entries.append(CatalogEntry(id=entry_id, name=str(name)))
        return entries

    async def get_document(self, pack_id: str, entry_id: str) -> dict[str, Any] | None:
        endpoint = f"/packs/{quote(pack_id, safe='')}/documents/{quote(entry_id, safe='')}"
        try:
            data = await self._get(pack_id, endpoint, pack_level=False)
        except CatalogClientError as exc:
            if exc.status_code == 404:
                return None
            raise
        return data if isinstance(data, dict) else None

    async def get_documents(self, pack_id: str) -> list[dict[str, Any]]:
        data = await self._get(pack_id, f"/packs/{quote(pack_id, safe='')}/documents")
        if not isinstance(data, list):
            return []
        return [doc for doc in data if isinstance(doc, dict)]

    async def _get(self, pack_id: str, endpoint: str, *, pack_level: bool = True) -> Any:
        """GET ``endpoint``; a 404 on a pack-level endpoint means the pack is missing."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        logger.debug("[Catalog] GET %s%s", self._base_url, endpoint)
        response = await self._client.get(endpoint)
        if response.status_code == 404 and pack_level:
            raise CatalogUnavailable(pack_id)
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> Any:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            payload: Any | None = None
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            raise CatalogClientError(
                f"Compendium service error ({response.status_code}).",
                status_code=response.status_code,
                payload=payload,
            ) from exc
        return response.json()
