"""Disambiguation policy for choosing among same-stage name matches.

The precedence of the class-aware heuristics is tuned to one catalog's naming
conventions, so it is configuration rather than code:

    hybrid:
      - class_token
      - non_hybrid
    single_class:
      - class_token
      - non_hybrid
    classless:
      - longest

Every rule list implicitly ends with ``longest``.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class DisambiguationRule(StrEnum):
    CLASS_TOKEN = "class_token"    # Name contains one of the character's class tokens
    NON_HYBRID = "non_hybrid"      # Name lacks the hybrid marker
    LONGEST = "longest"            # First candidate after the length sort


class DisambiguationPolicy(BaseModel):
    """Ordered rule lists per class context."""

    hybrid: list[DisambiguationRule] = Field(
        default_factory=lambda: [DisambiguationRule.CLASS_TOKEN, DisambiguationRule.NON_HYBRID],
        description="Rules for characters with more than one class",
    )
    single_class: list[DisambiguationRule] = Field(
        default_factory=lambda: [DisambiguationRule.CLASS_TOKEN, DisambiguationRule.NON_HYBRID],
        description="Rules for single-class characters",
    )
    classless: list[DisambiguationRule] = Field(
        default_factory=lambda: [DisambiguationRule.LONGEST],
        description="Rules when no class context is known",
    )
    hybrid_marker: str = Field(default="Hybrid", description="Substring marking hybrid variants")
    class_stop_words: list[str] = Field(
        default_factory=lambda: ["Class", "Hybrid"],
        description="Words removed from class names to form class tokens",
    )

    def rules_for(self, class_count: int) -> list[DisambiguationRule]:
        if class_count > 1:
            return self.hybrid
        if class_count == 1:
            return self.single_class
        return self.classless

    @classmethod
    def from_yaml(cls, path: Path) -> "DisambiguationPolicy":
        """Load a policy from a YAML mapping.

        Raises:
            FileNotFoundError: If the file doesn't exist
            pydantic.ValidationError: If a rule name is unknown
        """
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")

        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            logger.warning("Policy file %s is not a mapping; using defaults", path)
            raw = {}
        return cls(**raw)

    @classmethod
    def load(cls, path: Path | None) -> "DisambiguationPolicy":
        if path is None:
            return cls()
        return cls.from_yaml(path)
