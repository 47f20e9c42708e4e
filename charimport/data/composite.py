"""Inventory slot → equipment record synthesis.

A sheet inventory slot holds either a lone item or a base item plus one
enchantment ("Leather Armor" + "+2 Enchantment"). Two-component slots are
fused into one synthetic record named ``"{base} {enchantment}"`` whose
structured content is the base overlaid with the enchantment.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from typing import Any

from .catalog import CatalogProvider
from .issues import IssueKind, IssueLog
from .name_resolver import GENERIC_STRATEGIES, NameResolver
from .records import Category, CompositeGroup, RawReference, ResolvedRecord, make_placeholder

logger = logging.getLogger(__name__)

MAX_COMPONENTS = 2


def deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay ``overlay`` onto a copy of ``base``; overlay wins."""
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def merge_properties(base: Any, overlay: Any) -> Any:
    """Union two property-tag collections (flag mappings or tag lists)."""
    if overlay is None:
        return copy.deepcopy(base) if base is not None else {}
    if base is None:
        return copy.deepcopy(overlay)
    if isinstance(base, dict) and isinstance(overlay, dict):
        return {**base, **overlay}
    if isinstance(base, (list, tuple, set)) and isinstance(overlay, (list, tuple, set)):
        union = list(base)
        union.extend(tag for tag in overlay if tag not in union)
        return union
    raise TypeError(f"Cannot merge properties of {type(base).__name__} and {type(overlay).__name__}")


def merge_records(base: ResolvedRecord, enchantment: ResolvedRecord) -> ResolvedRecord:
    merged = copy.deepcopy(base)
    merged.system = deep_merge(base.system, enchantment.system)
    merged.system["properties"] = merge_properties(
        base.system.get("properties"),
        enchantment.system.get("properties"),
    )
    merged.name = f"{base.name} {enchantment.name}"
    # Synthetic record: it is tracked by name, not by either source id
    merged.source_id = None
    merged.set_flag("compositeOf", [base.source_id, enchantment.source_id])
    return merged


class CompositeItemSynthesizer:
    """Resolves one inventory slot against the equipment pack."""

    def __init__(
        self,
        catalog: CatalogProvider,
        resolver: NameResolver,
        issues: IssueLog,
        *,
        pack_id: str,
        lookup_table: dict[str, str] | None = None,
        class_context: Sequence[str] = (),
        flag_scope: str = "charimport",
        create_placeholders: bool = False,
    ) -> None:
        self._catalog = catalog
        self._resolver = resolver
        self._issues = issues
        self._pack_id = pack_id
        self._lookup = lookup_table or {}
        self._classes = tuple(class_context)
        self._flag_scope = flag_scope
        self._create_placeholders = create_placeholders

    async def synthesize(self, group: CompositeGroup) -> ResolvedRecord | None:
        if not group:
            return None
        if len(group) == 1:
            return await self._single(group[0])
        if len(group) == MAX_COMPONENTS:
            return await self._with_enchantment(group[0], group[1])

        names = ", ".join(ref.raw_name for ref in group)
        self._issues.report(
            IssueKind.UNSUPPORTED_COMPOSITE,
            Category.EQUIPMENT,
            names,
            f"Unsupported composite item structure ({len(group)} components): {names}",
        )
        return None

    async def _fetch(self, reference: RawReference, *, generic: bool) -> ResolvedRecord | None:
        index = await self._catalog.get_index(self._pack_id)
        result = self._resolver.match(
            reference.raw_name,
            Category.EQUIPMENT,
            index,
            self._lookup,
            self._classes,
            strategies=GENERIC_STRATEGIES if generic else None,
        )
        if result is None:
            return None
        document = await self._catalog.get_document(self._pack_id, result.entry.id)
        if document is None:
            return None
        logger.debug("[Composite] %r -> %r via %s", reference.raw_name, result.entry.name, result.stage)
        return ResolvedRecord.from_document(document, self._flag_scope)

    async def _single(self, reference: RawReference) -> ResolvedRecord | None:
        record = await self._fetch(reference, generic=False)
        if record is None:
            if not self._create_placeholders:
                self._issues.unresolved(Category.EQUIPMENT, reference.raw_name)
                return None
            logger.info("[Composite] Creating placeholder for %s", reference.raw_name)
            record = make_placeholder(reference.raw_name, self._pack_id, self._flag_scope)
        record.stamp_inventory(reference)
        return record

    async def _with_enchantment(self, base_ref: RawReference, enchantment_ref: RawReference) -> ResolvedRecord | None:
        base = await self._fetch(base_ref, generic=True)
        enchantment = await self._fetch(enchantment_ref, generic=True)
        if base is None or enchantment is None:
            self._issues.unresolved(
                Category.EQUIPMENT,
                f"{base_ref.raw_name} / {enchantment_ref.raw_name}",
            )
            return None

        try:
            merged = merge_records(base, enchantment)
        except (TypeError, ValueError, AttributeError) as exc:
            self._issues.report(
                IssueKind.MERGE_FAILURE,
                Category.EQUIPMENT,
                f"{base.name} {enchantment.name}",
                f"Failed to merge {base.name} with {enchantment.name}: {exc}",
            )
            return None

        merged.stamp_inventory(base_ref)
        return merged
