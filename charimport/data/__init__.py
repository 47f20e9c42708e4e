"""Catalog access and reference resolution for the importer."""

from .catalog import CachedCatalog, CatalogEntry, CatalogProvider, CatalogUnavailable, InMemoryCatalog, JsonCatalog
from .catalog_client import CatalogClientError, HttpCatalogClient
from .composite import CompositeItemSynthesizer, merge_records
from .config import CatalogConfig, PackConfig, ResolverConfig
from .enhancement import ConditionSet, detect_conditions, enhance, enhance_power, expertise_bonus
from .issues import ImportIssue, IssueKind, IssueLog
from .name_resolver import MatchDisambiguator, NameMatch, NameResolver
from .records import (
    Category,
    CompositeGroup,
    RawReference,
    ResolvedRecord,
    SeenTracker,
    dedupe,
    make_placeholder,
)
from .similarity import levenshtein, normalize_name, similarity

__all__ = [
    "CachedCatalog",
    "CatalogEntry",
    "CatalogProvider",
    "CatalogUnavailable",
    "InMemoryCatalog",
    "JsonCatalog",
    "CatalogClientError",
    "HttpCatalogClient",
    "CompositeItemSynthesizer",
    "merge_records",
    "CatalogConfig",
    "PackConfig",
    "ResolverConfig",
    "ConditionSet",
    "detect_conditions",
    "enhance",
    "enhance_power",
    "expertise_bonus",
    "ImportIssue",
    "IssueKind",
    "IssueLog",
    "MatchDisambiguator",
    "NameMatch",
    "NameResolver",
    "Category",
    "CompositeGroup",
    "RawReference",
    "ResolvedRecord",
    "SeenTracker",
    "dedupe",
    "make_placeholder",
    "levenshtein",
    "normalize_name",
    "similarity",
]
