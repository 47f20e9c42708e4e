"""Character import orchestration.

Takes the source parser's output (character details plus raw references by
category and inventory slots) and produces a flat, deduplicated list of
records ready for the host's bulk creation call.

Each ``run`` builds a fresh ``ImportSession``: the per-pack index cache, the
seen-name/id trackers and the issue log live on that session only, so two
imports never share state. Catalog reads are awaited one at a time in input
order, which keeps disambiguation and deduplication deterministic.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from charimport.core.schema.character import CharacterDetails
from charimport.data.catalog import CachedCatalog, CatalogProvider, CatalogUnavailable
from charimport.data.composite import CompositeItemSynthesizer
from charimport.data.config import PackConfig, ResolverConfig
from charimport.data.enhancement import ConditionSet, detect_conditions, enhance_power
from charimport.data.issues import ImportIssue, IssueKind, IssueLog
from charimport.data.name_resolver import NameResolver
from charimport.data.records import (
    Category,
    CompositeGroup,
    RawReference,
    ResolvedRecord,
    SeenTracker,
    dedupe,
    make_placeholder,
)

logger = logging.getLogger(__name__)

LookupTables = dict[str, dict[str, str]]

BASIC_ATTACKS = frozenset({
    "Melee Basic Attack",
    "Ranged Basic Attack",
    "Bull Rush Attack",
    "Grab Attack",
    "Opportunity Attack",
    "Second Wind",
})

RITUAL_NAMES = (
    "Comprehend Language",
    "Comrades' Succor",
    "Simbul's Conversion",
    "Magic Circle",
    "Brew Potion",
    "Make Whole",
    "Enchant Magic Item",
    "Linked Portal",
    "Sending",
    "Tenser's Floating Disk",
    "Water Walk",
)


class ImportFailed(RuntimeError):
    """The import was aborted; nothing should be applied to the host."""


def is_ritual_name(name: str) -> bool:
    return any(ritual in name for ritual in RITUAL_NAMES)


def is_ritual_reference(reference: RawReference) -> bool:
    return reference.element_type == "Ritual" or is_ritual_name(reference.raw_name)


def is_basic_attack(name: str) -> bool:
    return name in BASIC_ATTACKS


def retained_powers(references: Sequence[RawReference]) -> list[RawReference]:
    """Drop powers replaced by a later choice and the universal basic attacks."""
    replaced = {ref.replaces_id for ref in references if ref.replaces_id}
    return [
        ref for ref in references
        if not (ref.element_id and ref.element_id in replaced) and not is_basic_attack(ref.raw_name)
    ]


@dataclass
class ParsedCharacter:
    """Source parser output consumed by the import."""

    details: CharacterDetails
    references: dict[Category, list[RawReference]] = field(default_factory=dict)
    composite_groups: list[CompositeGroup] = field(default_factory=list)

    def refs(self, category: Category) -> list[RawReference]:
        return list(self.references.get(category, []))


@dataclass
class ImportResult:
    details: CharacterDetails
    records: list[ResolvedRecord]
    issues: list[ImportIssue] = field(default_factory=list)
    conditions: ConditionSet | None = None

    @property
    def unresolved(self) -> list[ImportIssue]:
        return [issue for issue in self.issues if issue.kind is IssueKind.UNRESOLVED_REFERENCE]

    @property
    def placeholders(self) -> list[ResolvedRecord]:
        return [record for record in self.records if record.is_placeholder]

    def counts_by_type(self) -> dict[str, int]:
        return dict(Counter(record.type for record in self.records))

    def to_payload(self) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self.records]


class ImportSession:
    """State and fetchers for a single import run."""

    def __init__(
        self,
        catalog: CatalogProvider,
        resolver: NameResolver,
        *,
        packs: PackConfig,
        config: ResolverConfig,
        lookups: LookupTables | None = None,
        classes: Sequence[str] = (),
        level: int = 1,
    ) -> None:
        self.catalog = CachedCatalog(catalog)
        self.resolver = resolver
        self.packs = packs
        self.config = config
        self.lookups = lookups or {}
        self.classes = tuple(cls for cls in classes if cls)
        self.level = level
        self.issues = IssueLog()

    def lookup(self, category: Category) -> dict[str, str]:
        return self.lookups.get(str(category), {})

    def _record(self, document: dict[str, Any]) -> ResolvedRecord:
        return ResolvedRecord.from_document(document, self.config.flag_scope)

    async def fetch_items(
        self,
        pack_id: str,
        names: Sequence[str],
        category: Category,
        lookup_table: dict[str, str] | None = None,
        *,
        create_placeholders: bool = False,
        report_missing: bool = True,
    ) -> list[ResolvedRecord]:
        """Resolve names against one pack; raises ``CatalogUnavailable``."""
        index = await self.catalog.get_index(pack_id)
        tracker = SeenTracker()
        results: list[ResolvedRecord] = []

        for raw_name in names:
            entry = self.resolver.resolve(raw_name, category, index, lookup_table, self.classes)
            if entry is None:
                if create_placeholders:
                    placeholder = make_placeholder(raw_name, pack_id, self.config.flag_scope)
                    if tracker.accept(placeholder):
                        results.append(placeholder)
                elif report_missing:
                    self.issues.unresolved(category, raw_name)
                continue

            document = await self.catalog.get_document(pack_id, entry.id)
            if document is None:
                continue
            record = self._record(document)
            if tracker.accept(record):
                results.append(record)

        return results

    async def fetch_feats(self, references: Sequence[RawReference]) -> list[ResolvedRecord]:
        return await self.fetch_items(
            self.packs.feats,
            [ref.raw_name for ref in references],
            Category.FEAT,
            self.lookup(Category.FEAT),
            create_placeholders=self.config.wants_placeholders(Category.FEAT),
        )

    async def fetch_features(self, references: Sequence[RawReference]) -> list[ResolvedRecord]:
        return await self.fetch_items(
            self.packs.features,
            [ref.raw_name for ref in references],
            Category.FEATURE,
            self.lookup(Category.FEATURE),
            create_placeholders=self.config.wants_placeholders(Category.FEATURE),
        )

    async def fetch_equipment(self, groups: Sequence[CompositeGroup]) -> list[ResolvedRecord]:
        synthesizer = CompositeItemSynthesizer(
            self.catalog,
            self.resolver,
            self.issues,
            pack_id=self.packs.equipment,
            lookup_table=self.lookup(Category.EQUIPMENT),
            class_context=self.classes,
            flag_scope=self.config.flag_scope,
            create_placeholders=self.config.wants_placeholders(Category.EQUIPMENT),
        )
        results: list[ResolvedRecord] = []
        seen: set[str] = set()
        try:
            for group in groups:
                if not group or any(is_ritual_reference(ref) for ref in group):
                    continue
                record = await synthesizer.synthesize(group)
                if record and record.name not in seen:
                    results.append(record)
                    seen.add(record.name)
        except CatalogUnavailable as exc:
            self.issues.report(IssueKind.CATALOG_UNAVAILABLE, Category.EQUIPMENT, exc.pack_id, str(exc))
            return []
        return results

    async def fetch_rituals(self, groups: Sequence[CompositeGroup]) -> list[ResolvedRecord]:
        """Ritual slots resolve by exact (aliased) name only."""
        pack_id = self.packs.rituals
        lookup_table = self.lookup(Category.RITUAL)
        results: list[ResolvedRecord] = []
        seen: set[str] = set()
        try:
            for group in groups:
                component = next((ref for ref in group if is_ritual_reference(ref)), None)
                if component is None:
                    continue
                index = await self.catalog.get_index(pack_id)
                resolved_name = lookup_table.get(component.raw_name) or component.raw_name
                entry = next((e for e in index if e.name == resolved_name), None)
                if entry is None:
                    self.issues.unresolved(Category.RITUAL, resolved_name)
                    continue
                document = await self.catalog.get_document(pack_id, entry.id)
                if document is None:
                    continue
                record = self._record(document)
                record.stamp_inventory(component)
                if record.name not in seen:
                    results.append(record)
                    seen.add(record.name)
        except CatalogUnavailable as exc:
            self.issues.report(IssueKind.CATALOG_UNAVAILABLE, Category.RITUAL, exc.pack_id, str(exc))
            return []
        return results

    async def fetch_powers(
        self,
        references: Sequence[RawReference],
        conditions: ConditionSet,
        equipment: Sequence[ResolvedRecord],
    ) -> list[ResolvedRecord]:
        pack_id = self.packs.powers
        try:
            index = await self.catalog.get_index(pack_id)
        except CatalogUnavailable as exc:
            self.issues.report(IssueKind.CATALOG_UNAVAILABLE, Category.POWER, exc.pack_id, str(exc))
            return []

        lookup_table = self.lookup(Category.POWER)
        tracker = SeenTracker()
        results: list[ResolvedRecord] = []
        for ref in retained_powers(references):
            entry = self.resolver.resolve(ref.raw_name, Category.POWER, index, lookup_table, self.classes)
            if entry is None:
                self.issues.unresolved(Category.POWER, ref.raw_name)
                continue
            document = await self.catalog.get_document(pack_id, entry.id)
            if document is None:
                continue
            record = self._record(document)
            if tracker.accept(record):
                results.append(enhance_power(record, conditions, equipment))
        return results

    async def fetch_core_powers(
        self,
        conditions: ConditionSet,
        equipment: Sequence[ResolvedRecord],
    ) -> list[ResolvedRecord]:
        """Every catalog-wide core power, enhanced like per-character powers."""
        try:
            documents = await self.catalog.get_documents(self.packs.core_powers)
        except CatalogUnavailable as exc:
            self.issues.report(IssueKind.CATALOG_UNAVAILABLE, Category.CORE_POWER, exc.pack_id, str(exc))
            return []
        return [enhance_power(self._record(doc), conditions, equipment) for doc in documents]

    async def fetch_special_items(self, references: Sequence[RawReference]) -> list[ResolvedRecord]:
        """Companions, spellbooks and the like: features, then equipment, then feats."""
        search_order = (
            (self.packs.features, Category.FEATURE),
            (self.packs.equipment, Category.EQUIPMENT),
            (self.packs.feats, Category.FEAT),
        )
        results: list[ResolvedRecord] = []
        seen: set[str] = set()
        for ref in references:
            if not ref.is_owned:
                continue
            found: list[ResolvedRecord] = []
            for pack_id, category in search_order:
                try:
                    found = await self.fetch_items(pack_id, [ref.raw_name], category, report_missing=False)
                except CatalogUnavailable as exc:
                    logger.debug("[Import] Skipping unavailable pack %s", exc.pack_id)
                    continue
                if found:
                    break
            if not found:
                self.issues.unresolved(Category.SPECIAL, ref.raw_name)
                continue
            for record in found:
                if record.name not in seen:
                    results.append(record)
                    seen.add(record.name)
        return results

    async def fetch_heritage_features(self, references: Sequence[RawReference]) -> list[ResolvedRecord]:
        """Racial traits: features pack first, then races; flagged as heritage."""
        results: list[ResolvedRecord] = []
        seen: set[str] = set()
        for ref in references:
            matched = False
            for pack_id in (self.packs.features, self.packs.races):
                try:
                    index = await self.catalog.get_index(pack_id)
                except CatalogUnavailable:
                    continue
                entry = self.resolver.resolve(ref.raw_name, Category.HERITAGE, index)
                if entry is None:
                    continue
                matched = True
                document = await self.catalog.get_document(pack_id, entry.id)
                if document is None:
                    continue
                record = self._record(document)
                if record.name in seen:
                    continue
                record.set_flag("heritageFeature", True)
                results.append(record)
                seen.add(record.name)
                break
            if not matched:
                self.issues.unresolved(Category.HERITAGE, ref.raw_name)
        return results


class CharacterImportService:
    """Runs imports against one catalog provider."""

    def __init__(
        self,
        *,
        catalog: CatalogProvider,
        resolver: NameResolver | None = None,
        packs: PackConfig | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        self._catalog = catalog
        self._config = config or ResolverConfig()
        self._resolver = resolver or NameResolver.from_config(self._config)
        self._packs = packs or PackConfig()

    @property
    def packs(self) -> PackConfig:
        return self._packs

    def new_session(self, details: CharacterDetails, lookups: LookupTables | None = None) -> ImportSession:
        return ImportSession(
            self._catalog,
            self._resolver,
            packs=self._packs,
            config=self._config,
            lookups=lookups,
            classes=details.classes,
            level=details.level,
        )

    async def run(self, parsed: ParsedCharacter, lookups: LookupTables | None = None) -> ImportResult:
        """Resolve every reference of ``parsed``.

        Raises:
            ImportFailed: a required catalog is missing or anything unexpected
                happened; no partial result is returned.
        """
        details = parsed.details
        logger.info("[Import] Importing %s (level %s, classes=%s)", details.name, details.level, details.classes)
        session = self.new_session(details, lookups)

        try:
            feats = await session.fetch_feats(parsed.refs(Category.FEAT))
            features = await session.fetch_features(parsed.refs(Category.FEATURE))
            equipment = await session.fetch_equipment(parsed.composite_groups)
            rituals = await session.fetch_rituals(parsed.composite_groups)

            conditions = detect_conditions(equipment, feats, features, session.classes, details.level)
            powers = await session.fetch_powers(parsed.refs(Category.POWER), conditions, equipment)
            core_powers = await session.fetch_core_powers(conditions, equipment)

            special_items = await session.fetch_special_items(parsed.refs(Category.SPECIAL))
            heritage = await session.fetch_heritage_features(parsed.refs(Category.HERITAGE))
        except CatalogUnavailable as exc:
            logger.error("[Import] Aborting import of %s: %s", details.name, exc)
            raise ImportFailed(f"Failed to import character: {exc}") from exc
        except Exception as exc:
            logger.exception("[Import] Unexpected error importing %s", details.name)
            raise ImportFailed("Failed to import character.") from exc

        records = dedupe(
            feats + features + powers + core_powers + equipment + rituals + special_items + heritage
        )
        result = ImportResult(details=details, records=records, issues=session.issues.issues, conditions=conditions)
        logger.info(
            "[Import] Imported %s: %s records (%s), %s issues",
            details.name,
            len(records),
            result.counts_by_type(),
            len(result.issues),
        )
        return result
