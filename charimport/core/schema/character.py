"""Character details handed to the host platform.

Produced by the source parser and passed through the import untouched; the
engine only reads ``classes`` and ``level`` from it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Abilities(BaseModel):
    str_: int = Field(default=10, alias="str")
    con: int = 10
    dex: int = 10
    int_: int = Field(default=10, alias="int")
    wis: int = 10
    cha: int = 10

    model_config = ConfigDict(populate_by_name=True)


class Defenses(BaseModel):
    ac: int = 10
    fortitude: int = 10
    reflex: int = 10
    will: int = 10


class Pool(BaseModel):
    current: int = 0
    maximum: int = 0


class CharacterDetails(BaseModel):
    """Flat character summary parsed from the sheet export."""

    name: str = Field(default="Unnamed Character", description="Character name")
    level: int = Field(default=1, ge=1, description="Character level")
    display_class: str = Field(default="", description="Class label, hybrids joined with '|'")
    classes: list[str] = Field(default_factory=list, description="Individual class names")
    race: str = ""
    subrace: str = ""
    paragon_path: str = ""
    epic_destiny: str = ""
    background: str = ""
    theme: str = ""
    deity: str = ""
    vision: str = ""
    gender: str = ""
    alignment: str = ""
    age: str = ""
    height: str = ""
    weight: str = ""
    size: str = ""
    weapon_proficiencies: list[str] = Field(default_factory=list)
    armor_proficiencies: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    currency: dict[str, int] = Field(default_factory=dict)
    abilities: Abilities = Field(default_factory=Abilities)
    defenses: Defenses = Field(default_factory=Defenses)
    hit_points: Pool = Field(default_factory=Pool)
    healing_surges: Pool = Field(default_factory=Pool)
    initiative: int = 0
    speed: int = 6
    action_points: int = 1
    experience: int = 0
    skills: dict[str, dict[str, Any]] = Field(default_factory=dict)
