"""Reference catalog access.

The catalog is an external, read-only store of records grouped into packs
(one pack per category: feats, features, powers, equipment, ...). Import code
only ever sees two views of it:

- a lightweight index of ``CatalogEntry`` (id + display name) per pack
- full documents, returned as independent deep copies so callers can annotate
  them freely without touching the backing store
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from .config import CatalogConfig

logger = logging.getLogger(__name__)


class CatalogUnavailable(LookupError):
    """Raised when a pack id has no backing catalog."""

    def __init__(self, pack_id: str) -> None:
        super().__init__(f"Compendium not found: {pack_id}")
        self.pack_id = pack_id


@dataclass(frozen=True)
class CatalogEntry:
    id: str
    name: str


class CatalogProvider(Protocol):
    async def get_index(self, pack_id: str) -> list[CatalogEntry]: ...

    async def get_document(self, pack_id: str, entry_id: str) -> dict[str, Any] | None: ...

    async def get_documents(self, pack_id: str) -> list[dict[str, Any]]: ...


def document_id(document: dict[str, Any]) -> str:
    return str(document.get("_id") or document.get("id") or "")


def _extract_documents(raw: Any) -> list[dict[str, Any]]:
    if isinstance(raw, list):
        return [doc for doc in raw if isinstance(doc, dict)]
    if isinstance(raw, dict):
        for key in ("documents", "items", "entries"):
            value = raw.get(key)
            if isinstance(value, list):
                return [doc for doc in value if isinstance(doc, dict)]
    return []


class InMemoryCatalog:
    """Catalog backed by a mapping of pack id to documents."""

    def __init__(self, packs: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self._packs: dict[str, dict[str, dict[str, Any]]] = {}
        for pack_id, documents in (packs or {}).items():
            self.add_pack(pack_id, documents)

    def add_pack(self, pack_id: str, documents: list[dict[str, Any]]) -> None:
        by_id: dict[str, dict[str, Any]] = {}
        for doc in documents:
            doc_id = document_id(doc)
            if not doc_id or not doc.get("name"):
                logger.warning("[Catalog] Skipping document without id/name in %s", pack_id)
                continue
            by_id[doc_id] = doc
        self._packs[pack_id] = by_id

    def has_pack(self, pack_id: str) -> bool:
        return pack_id in self._packs

    def _pack(self, pack_id: str) -> dict[str, dict[str, Any]]:
        pack = self._packs.get(pack_id)
        if pack is None:
            raise CatalogUnavailable(pack_id)
        return pack

    async def get_index(self, pack_id: str) -> list[CatalogEntry]:
        return [CatalogEntry(id=doc_id, name=str(doc["name"])) for doc_id, doc in self._pack(pack_id).items()]

    async def get_document(self, pack_id: str, entry_id: str) -> dict[str, Any] | None:
        doc = self._pack(pack_id).get(entry_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def get_documents(self, pack_id: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._pack(pack_id).values()]


class CachedCatalog:
    """Wraps a provider for one import run, reading each pack index once.

    Owned by a single run and discarded with it; missing packs are remembered
    so repeated lookups fail fast with the same ``CatalogUnavailable``.
    """

    def __init__(self, provider: CatalogProvider) -> None:
        self._provider = provider
        self._indexes: dict[str, list[CatalogEntry]] = {}
        self._missing: set[str] = set()

    async def get_index(self, pack_id: str) -> list[CatalogEntry]:
        if pack_id in self._missing:
            raise CatalogUnavailable(pack_id)
        if pack_id not in self._indexes:
            try:
                self._indexes[pack_id] = await self._provider.get_index(pack_id)
            except CatalogUnavailable:
                self._missing.add(pack_id)
                raise
        return self._indexes[pack_id]

    async def get_document(self, pack_id: str, entry_id: str) -> dict[str, Any] | None:
        if pack_id in self._missing:
            raise CatalogUnavailable(pack_id)
        return await self._provider.get_document(pack_id, entry_id)

    async def get_documents(self, pack_id: str) -> list[dict[str, Any]]:
        if pack_id in self._missing:
            raise CatalogUnavailable(pack_id)
        return await self._provider.get_documents(pack_id)


class JsonCatalog(InMemoryCatalog):
    """Catalog read from a directory of ``<pack_id>.json`` files.

    Packs are loaded lazily on first access; a pack whose file is missing or
    unreadable is unavailable.
    """

    def __init__(self, data_dir: Path | None = None) -> None:
        super().__init__()
        self._data_dir = data_dir or CatalogConfig().dir
        self._attempted: set[str] = set()

    @classmethod
    def from_env(cls) -> "JsonCatalog":
        return cls(CatalogConfig().dir)

    def _pack_path(self, pack_id: str) -> Path:
        return self._data_dir / f"{pack_id}.json"

    def _pack(self, pack_id: str) -> dict[str, dict[str, Any]]:
        if pack_id not in self._attempted:
            self._attempted.add(pack_id)
            self._load_pack(pack_id)
        return super()._pack(pack_id)

    def _load_pack(self, pack_id: str) -> None:
        path = self._pack_path(pack_id)
        if not path.exists():
            logger.warning("[Catalog] Pack file not found: %s", path)
            return

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("[Catalog] Failed to load pack %s: %s", pack_id, exc)
            return

        documents = _extract_documents(raw)
        self.add_pack(pack_id, documents)
        logger.info("[Catalog] Loaded %s documents from %s", len(documents), pack_id)
