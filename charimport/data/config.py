"""Configuration for catalog access and reference resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path

_PACK_PREFIX = "dnd-4e-compendium.module-"
_DEFAULT_CATALOG_DIR = Path("data/catalog")
_DEFAULT_PLACEHOLDERS = "feat,feature,equipment"


def _pack_id(category: str, default_suffix: str) -> str:
    """Pack id for a category, overridable via ``IMPORT_PACK_<CATEGORY>``."""
    explicit = os.getenv(f"IMPORT_PACK_{category.upper()}")
    if explicit:
        return explicit
    return f"{_PACK_PREFIX}{default_suffix}"


def _csv_env(name: str, default: str) -> frozenset[str]:
    raw = os.getenv(name, default)
    return frozenset(part.strip().lower() for part in raw.split(",") if part.strip())


def _get_catalog_dir() -> Path:
    explicit = os.getenv("CATALOG_DIR")
    if explicit:
        return Path(explicit)
    return _DEFAULT_CATALOG_DIR


def _get_policy_path() -> Path | None:
    explicit = os.getenv("IMPORT_DISAMBIGUATION_POLICY")
    return Path(explicit) if explicit else None


@dataclass(frozen=True)
class PackConfig:
    feats: str = field(default_factory=lambda: _pack_id("feat", "feats"))
    features: str = field(default_factory=lambda: _pack_id("feature", "features"))
    powers: str = field(default_factory=lambda: _pack_id("power", "powers"))
    core_powers: str = field(default_factory=lambda: _pack_id("core_power", "core-powers"))
    equipment: str = field(default_factory=lambda: _pack_id("equipment", "equipment"))
    rituals: str = field(default_factory=lambda: _pack_id("ritual", "rituals"))
    races: str = field(default_factory=lambda: _pack_id("race", "races"))


@dataclass(frozen=True)
class ResolverConfig:
    fuzzy_threshold: float = float(os.getenv("IMPORT_FUZZY_THRESHOLD", "0.70"))
    placeholder_categories: frozenset[str] = field(
        default_factory=lambda: _csv_env("IMPORT_PLACEHOLDERS", _DEFAULT_PLACEHOLDERS)
    )
    flag_scope: str = field(default_factory=lambda: os.getenv("IMPORT_FLAG_SCOPE", "charimport"))
    policy_path: Path | None = field(default_factory=_get_policy_path)

    def wants_placeholders(self, category: str) -> bool:
        return category.lower() in self.placeholder_categories


@dataclass(frozen=True)
class CatalogConfig:
    base_url: str | None = field(default_factory=lambda: os.getenv("CATALOG_BASE_URL") or None)
    timeout_s: float = float(os.getenv("CATALOG_TIMEOUT_S", "15"))
    dir: Path = field(default_factory=_get_catalog_dir)
