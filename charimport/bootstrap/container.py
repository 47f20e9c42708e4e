"""Dependency composition root."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from charimport.application.import_service import CharacterImportService, ImportResult, LookupTables, ParsedCharacter
from charimport.data.catalog import CatalogProvider, JsonCatalog
from charimport.data.catalog_client import HttpCatalogClient
from charimport.data.config import CatalogConfig, PackConfig, ResolverConfig
from charimport.data.name_resolver import NameResolver


@dataclass(frozen=True)
class AppContainer:
    """Wired importer dependencies."""

    catalog_config: CatalogConfig
    resolver_config: ResolverConfig
    packs: PackConfig
    resolver: NameResolver

    def catalog(self) -> AbstractAsyncContextManager[CatalogProvider]:
        return open_catalog(self.catalog_config)

    def import_service(self, catalog: CatalogProvider) -> CharacterImportService:
        return CharacterImportService(
            catalog=catalog,
            resolver=self.resolver,
            packs=self.packs,
            config=self.resolver_config,
        )

    async def run_import(self, parsed: ParsedCharacter, lookups: LookupTables | None = None) -> ImportResult:
        async with self.catalog() as catalog:
            return await self.import_service(catalog).run(parsed, lookups)


@asynccontextmanager
async def open_catalog(config: CatalogConfig) -> AsyncIterator[CatalogProvider]:
    """HTTP compendium when ``CATALOG_BASE_URL`` is set, else the JSON directory."""
    if config.base_url:
        async with HttpCatalogClient(config.base_url, config.timeout_s) as client:
            yield client
    else:
        yield JsonCatalog(config.dir)


_CONTAINER: AppContainer | None = None


def get_container() -> AppContainer:
    global _CONTAINER
    if _CONTAINER is not None:
        return _CONTAINER

    resolver_config = ResolverConfig()
    _CONTAINER = AppContainer(
        catalog_config=CatalogConfig(),
        resolver_config=resolver_config,
        packs=PackConfig(),
        resolver=NameResolver.from_config(resolver_config),
    )
    return _CONTAINER
