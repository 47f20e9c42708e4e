"""Raw references, resolved records, deduplication and placeholders."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .catalog import document_id

logger = logging.getLogger(__name__)

PLACEHOLDER_IMG = "icons/svg/mystery-man.svg"
DEFAULT_FLAG_SCOPE = "charimport"


class Category(StrEnum):
    FEAT = "feat"
    FEATURE = "feature"
    POWER = "power"
    CORE_POWER = "core_power"
    EQUIPMENT = "equipment"
    RITUAL = "ritual"
    SPECIAL = "special"
    HERITAGE = "heritage"
    CLASS = "class"
    PATH = "path"
    DESTINY = "destiny"
    THEME = "theme"
    BACKGROUND = "background"


def _to_int(value: Any, default: int) -> int:
    """Coerce sheet counts (often strings) like ``Number(x) || default``."""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number or default


@dataclass(frozen=True)
class RawReference:
    """An unresolved textual mention extracted from the sheet."""

    raw_name: str
    category: Category
    count: int | str | None = None
    equip_count: int | str | None = None
    replaces_id: str | None = None
    element_id: str | None = None  # sheet-local id, target of ``replaces_id``
    element_type: str | None = None  # sheet element type, e.g. "Ritual", "Magic Item"

    @property
    def quantity(self) -> int:
        return _to_int(self.count, 1)

    @property
    def is_equipped(self) -> bool:
        return _to_int(self.equip_count, 0) > 0

    @property
    def is_owned(self) -> bool:
        """False only for an explicit zero count (sold or lost loot)."""
        return self.count is None or str(self.count).strip() != "0"


CompositeGroup = list[RawReference]


@dataclass
class ResolvedRecord:
    """Catalog content copied out and annotated for import."""

    name: str
    type: str
    system: dict[str, Any] = field(default_factory=dict)
    flags: dict[str, Any] = field(default_factory=dict)
    img: str | None = None
    source_id: str | None = None
    flag_scope: str = DEFAULT_FLAG_SCOPE

    @classmethod
    def from_document(cls, document: dict[str, Any], flag_scope: str = DEFAULT_FLAG_SCOPE) -> "ResolvedRecord":
        doc = copy.deepcopy(document)
        return cls(
            name=str(doc.get("name", "")),
            type=str(doc.get("type", "")),
            system=doc.get("system") or {},
            flags=doc.get("flags") or {},
            img=doc.get("img"),
            source_id=document_id(doc) or None,
            flag_scope=flag_scope,
        )

    @property
    def import_flags(self) -> dict[str, Any]:
        return self.flags.setdefault(self.flag_scope, {})

    def set_flag(self, key: str, value: Any) -> None:
        self.import_flags[key] = value

    def get_flag(self, key: str, default: Any = None) -> Any:
        return self.flags.get(self.flag_scope, {}).get(key, default)

    @property
    def is_placeholder(self) -> bool:
        return bool(self.get_flag("placeholder", False))

    @property
    def quantity(self) -> int:
        return _to_int(self.system.get("quantity"), 1)

    @property
    def equipped(self) -> bool:
        return self.system.get("equipped") is True

    def stamp_inventory(self, reference: RawReference) -> None:
        """Set quantity and equipped status from a sheet reference."""
        should_be_equipped = reference.is_equipped
        self.system["quantity"] = reference.quantity
        self.system["equipped"] = should_be_equipped
        self.set_flag("equippedStatusSet", True)
        self.set_flag("originalEquippedStatus", should_be_equipped)

    def to_dict(self) -> dict[str, Any]:
        """Payload for the host's bulk record creation."""
        payload: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "system": copy.deepcopy(self.system),
            "flags": copy.deepcopy(self.flags),
        }
        if self.img:
            payload["img"] = self.img
        if self.source_id:
            payload["_id"] = self.source_id
        return payload


class SeenTracker:
    """Names and catalog ids already accepted in one fetch."""

    def __init__(self) -> None:
        self._names: set[str] = set()
        self._ids: set[str] = set()

    def is_duplicate(self, record: ResolvedRecord) -> bool:
        if record.name in self._names:
            return True
        return bool(record.source_id) and record.source_id in self._ids

    def add(self, record: ResolvedRecord) -> None:
        self._names.add(record.name)
        if record.source_id:
            self._ids.add(record.source_id)

    def accept(self, record: ResolvedRecord) -> bool:
        """Track ``record`` and return True if it was not seen before."""
        if self.is_duplicate(record):
            logger.debug("[Dedupe] Dropping duplicate %s (%s)", record.name, record.source_id)
            return False
        self.add(record)
        return True


def dedupe(records: list[ResolvedRecord]) -> list[ResolvedRecord]:
    """Drop repeated names or catalog ids, keeping first occurrences in order."""
    tracker = SeenTracker()
    return [record for record in records if tracker.accept(record)]


def placeholder_type(pack_id: str) -> str:
    if "features" in pack_id:
        return "feature"
    if "powers" in pack_id:
        return "power"
    if "equipment" in pack_id:
        return "equipment"
    if "rituals" in pack_id:
        return "ritual"
    return "feat"


def make_placeholder(raw_name: str, pack_id: str, flag_scope: str = DEFAULT_FLAG_SCOPE) -> ResolvedRecord:
    """Stand-in record for a reference the catalog cannot resolve yet."""
    record = ResolvedRecord(
        name=raw_name,
        type=placeholder_type(pack_id),
        img=PLACEHOLDER_IMG,
        system={
            "description": {
                "value": (
                    f"<p><em>Placeholder for: {raw_name}</em></p>"
                    "<p>This item was not found in the compendium. It will be updated when the "
                    "compendium is updated and the character is re-imported.</p>"
                ),
                "chat": "",
                "unidentified": "",
            },
            "source": "Placeholder",
            "level": 0,
        },
        flag_scope=flag_scope,
    )
    record.set_flag("placeholder", True)
    record.set_flag("originalName", raw_name)
    return record
