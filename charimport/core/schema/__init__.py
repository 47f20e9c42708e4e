"""Schemas shared with the host platform and configuration files."""

from .character import Abilities, CharacterDetails, Defenses, Pool
from .policy import DisambiguationPolicy, DisambiguationRule

__all__ = [
    "Abilities",
    "CharacterDetails",
    "Defenses",
    "Pool",
    "DisambiguationPolicy",
    "DisambiguationRule",
]
