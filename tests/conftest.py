"""Shared catalog fixtures."""

from __future__ import annotations

import pytest

from catalog_data import make_catalog
from charimport.data.catalog import InMemoryCatalog
from charimport.data.config import ResolverConfig


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return make_catalog()


@pytest.fixture
def resolver_config() -> ResolverConfig:
    return ResolverConfig(
        fuzzy_threshold=0.70,
        placeholder_categories=frozenset({"feat", "feature", "equipment"}),
        flag_scope="charimport",
        policy_path=None,
    )
