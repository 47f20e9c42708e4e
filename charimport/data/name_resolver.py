"""Staged name resolution against one catalog pack.

A raw sheet reference ("Irontooth's Bite", "Flame Strike", "Leather Armor")
is turned into a catalog entry by trying an ordered chain of strategies,
first success wins:

1. alias + exact      - lookup-table alias, then exact name (or the catalog
                        name without its trailing parenthetical)
2. pattern            - case-insensitive literal substring match
3. normalized pattern - same, with the reference's own parenthetical removed
4. fuzzy              - edit-distance similarity above a threshold

Equipment adds tier substitutions and a significant-word fallback around the
generic chain; heritage traits use an NFKC-normalized chain that prefers the
shortest matching name. When a pattern stage yields several candidates the
``MatchDisambiguator`` picks one using the character's classes.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ..core.schema.policy import DisambiguationPolicy, DisambiguationRule
from .catalog import CatalogEntry
from .config import ResolverConfig
from .records import Category
from .similarity import best_fuzzy_match, similarity

logger = logging.getLogger(__name__)

_WORD_SPLIT_RE = re.compile(r"\s+")

# Sheet tier labels → catalog level variants
TIER_SUBSTITUTIONS = (
    ("(paragon tier)", "(Level 12)"),
    ("(epic tier)", "(Level 22)"),
    ("(heroic tier)", "(Level 2)"),
)

SIGNIFICANT_WORD_MIN_LENGTH = 4


def strip_parenthetical(name: str) -> str:
    """Remove a trailing parenthetical suffix: ``"Foo (Bar)"`` → ``"Foo"``.

    The suffix is the balanced group closing the name, so nested groups
    (``"Foo (Bar (Baz))"``) are removed whole. Unbalanced names are kept.
    """
    text = (name or "").rstrip()
    if not text.endswith(")"):
        return text.strip()

    depth = 0
    for pos in range(len(text) - 1, -1, -1):
        char = text[pos]
        if char == ")":
            depth += 1
        elif char == "(":
            depth -= 1
            if depth == 0:
                return text[:pos].strip()
    return text.strip()


def literal_pattern(name: str) -> re.Pattern[str]:
    return re.compile(re.escape(name), re.IGNORECASE)


def nfkc(name: str) -> str:
    return unicodedata.normalize("NFKC", (name or "").strip())


def class_tokens(classes: Sequence[str], stop_words: Sequence[str]) -> list[str]:
    """Class names with the stop words ("Class", "Hybrid") removed."""
    tokens: list[str] = []
    for class_name in classes:
        words = [w for w in _WORD_SPLIT_RE.split(class_name or "") if w and w not in stop_words]
        token = " ".join(words).strip()
        if token:
            tokens.append(token)
    return tokens


class MatchDisambiguator:
    """Chooses among several same-stage candidates."""

    def __init__(self, policy: DisambiguationPolicy | None = None) -> None:
        self._policy = policy or DisambiguationPolicy()

    def select(self, candidates: Sequence[CatalogEntry], class_context: Sequence[str]) -> CatalogEntry:
        if not candidates:
            raise ValueError("select() requires at least one candidate")
        if len(candidates) == 1:
            return candidates[0]

        # Longer names are assumed more specific; sort is stable for equal lengths
        ordered = sorted(candidates, key=lambda entry: len(entry.name), reverse=True)
        marker = self._policy.hybrid_marker

        for rule in self._policy.rules_for(len(class_context)):
            if rule is DisambiguationRule.LONGEST:
                return ordered[0]
            if rule is DisambiguationRule.CLASS_TOKEN:
                tokens = [t.lower() for t in class_tokens(class_context, self._policy.class_stop_words)]
                chosen = next(
                    (e for e in ordered if any(token in e.name.lower() for token in tokens)),
                    None,
                )
            else:
                chosen = next((e for e in ordered if marker not in e.name), None)
            if chosen is not None:
                return chosen

        return ordered[0]


@dataclass(frozen=True)
class MatchContext:
    """Per-call inputs shared by every strategy."""

    raw_name: str
    class_context: tuple[str, ...] = ()
    disambiguator: MatchDisambiguator = field(default_factory=MatchDisambiguator)
    fuzzy_threshold: float = 0.70


Strategy = Callable[[str, Sequence[CatalogEntry], MatchContext], CatalogEntry | None]


def exact_match(name: str, index: Sequence[CatalogEntry], ctx: MatchContext) -> CatalogEntry | None:
    for entry in index:
        if entry.name == name:
            return entry
    for entry in index:
        if strip_parenthetical(entry.name) == name:
            return entry
    return None


def _pattern_candidates(name: str, index: Sequence[CatalogEntry]) -> list[CatalogEntry]:
    if not name:
        return []
    pattern = literal_pattern(name)
    return [entry for entry in index if pattern.search(entry.name)]


def pattern_match(name: str, index: Sequence[CatalogEntry], ctx: MatchContext) -> CatalogEntry | None:
    candidates = _pattern_candidates(name, index)
    if not candidates:
        return None
    return ctx.disambiguator.select(candidates, ctx.class_context)


def normalized_pattern_match(name: str, index: Sequence[CatalogEntry], ctx: MatchContext) -> CatalogEntry | None:
    normalized = strip_parenthetical(name)
    if not normalized or normalized == name:
        return None
    return pattern_match(normalized, index, ctx)


def fuzzy_match(name: str, index: Sequence[CatalogEntry], ctx: MatchContext) -> CatalogEntry | None:
    entry, score = best_fuzzy_match(name, index, ctx.fuzzy_threshold)
    if entry is not None:
        logger.debug("[Resolver] Fuzzy matched %r -> %r (%.3f)", name, entry.name, score)
    return entry


def tier_substitution_match(name: str, index: Sequence[CatalogEntry], ctx: MatchContext) -> CatalogEntry | None:
    """Retry an exact match with sheet tier labels mapped to catalog levels."""
    for tier_label, level_label in TIER_SUBSTITUTIONS:
        if tier_label not in ctx.raw_name:
            continue
        substituted = ctx.raw_name.replace(tier_label, level_label)
        for entry in index:
            if entry.name == substituted:
                return entry
    return None


def significant_word_match(name: str, index: Sequence[CatalogEntry], ctx: MatchContext) -> CatalogEntry | None:
    """Match adjacent pairs of long words, then the first long word as a prefix."""
    words = [w for w in _WORD_SPLIT_RE.split(name) if len(w) >= SIGNIFICANT_WORD_MIN_LENGTH]
    if len(words) < 2:
        return None

    for first, second in zip(words, words[1:]):
        pattern = re.compile(rf"{re.escape(first)}\s+{re.escape(second)}", re.IGNORECASE)
        entry = next((e for e in index if pattern.search(e.name)), None)
        if entry is not None:
            return entry

    prefix = re.compile(rf"^{re.escape(words[0])}", re.IGNORECASE)
    return next((e for e in index if prefix.search(e.name)), None)


def _shortest(candidates: list[CatalogEntry]) -> CatalogEntry | None:
    if not candidates:
        return None
    return sorted(candidates, key=lambda entry: len(entry.name))[0]


def heritage_exact_match(name: str, index: Sequence[CatalogEntry], ctx: MatchContext) -> CatalogEntry | None:
    target = nfkc(name)
    return next((e for e in index if nfkc(e.name) == target), None)


def heritage_pattern_match(name: str, index: Sequence[CatalogEntry], ctx: MatchContext) -> CatalogEntry | None:
    target = nfkc(name)
    if not target:
        return None
    pattern = literal_pattern(target)
    return _shortest([e for e in index if pattern.search(nfkc(e.name))])


def heritage_normalized_match(name: str, index: Sequence[CatalogEntry], ctx: MatchContext) -> CatalogEntry | None:
    target = strip_parenthetical(nfkc(name))
    if not target or target == nfkc(name):
        return None
    return heritage_pattern_match(target, index, ctx)


GENERIC_STRATEGIES: tuple[Strategy, ...] = (
    exact_match,
    pattern_match,
    normalized_pattern_match,
    fuzzy_match,
)

EQUIPMENT_STRATEGIES: tuple[Strategy, ...] = (
    exact_match,
    tier_substitution_match,
    pattern_match,
    normalized_pattern_match,
    fuzzy_match,
    significant_word_match,
)

HERITAGE_STRATEGIES: tuple[Strategy, ...] = (
    heritage_exact_match,
    heritage_pattern_match,
    heritage_normalized_match,
)


@dataclass(frozen=True)
class NameMatch:
    """A resolved entry plus the stage that produced it."""

    entry: CatalogEntry
    stage: str
    resolved_name: str
    score: float = 1.0


class NameResolver:
    """Resolves raw sheet names to catalog entries."""

    def __init__(
        self,
        *,
        policy: DisambiguationPolicy | None = None,
        fuzzy_threshold: float | None = None,
    ) -> None:
        self._disambiguator = MatchDisambiguator(policy)
        self._fuzzy_threshold = fuzzy_threshold if fuzzy_threshold is not None else ResolverConfig().fuzzy_threshold

    @classmethod
    def from_config(cls, config: ResolverConfig) -> "NameResolver":
        return cls(
            policy=DisambiguationPolicy.load(config.policy_path),
            fuzzy_threshold=config.fuzzy_threshold,
        )

    @staticmethod
    def strategies_for(category: Category | str) -> tuple[Strategy, ...]:
        if category == Category.EQUIPMENT:
            return EQUIPMENT_STRATEGIES
        if category == Category.HERITAGE:
            return HERITAGE_STRATEGIES
        return GENERIC_STRATEGIES

    def match(
        self,
        raw_name: str,
        category: Category | str,
        index: Sequence[CatalogEntry],
        lookup_table: dict[str, str] | None = None,
        class_context: Sequence[str] = (),
        *,
        strategies: Sequence[Strategy] | None = None,
    ) -> NameMatch | None:
        """Run the strategy chain and report which stage succeeded."""
        raw_name = raw_name or ""
        resolved_name = (lookup_table or {}).get(raw_name) or raw_name
        if not resolved_name.strip():
            return None

        ctx = MatchContext(
            raw_name=raw_name,
            class_context=tuple(class_context),
            disambiguator=self._disambiguator,
            fuzzy_threshold=self._fuzzy_threshold,
        )
        for strategy in strategies or self.strategies_for(category):
            entry = strategy(resolved_name, index, ctx)
            if entry is not None:
                score = similarity(resolved_name, entry.name) if strategy is fuzzy_match else 1.0
                return NameMatch(entry=entry, stage=strategy.__name__, resolved_name=resolved_name, score=score)
        return None

    def resolve(
        self,
        raw_name: str,
        category: Category | str,
        index: Sequence[CatalogEntry],
        lookup_table: dict[str, str] | None = None,
        class_context: Sequence[str] = (),
    ) -> CatalogEntry | None:
        """Resolve ``raw_name`` within one pack index; ``None`` when nothing matches."""
        result = self.match(raw_name, category, index, lookup_table, class_context)
        return result.entry if result else None
