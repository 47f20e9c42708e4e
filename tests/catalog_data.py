"""Catalog documents and pack ids shared by the test modules."""

from __future__ import annotations

from charimport.data.catalog import CatalogEntry, InMemoryCatalog
from charimport.data.config import PackConfig


PACKS = PackConfig(
    feats="test.module-feats",
    features="test.module-features",
    powers="test.module-powers",
    core_powers="test.module-core-powers",
    equipment="test.module-equipment",
    rituals="test.module-rituals",
    races="test.module-races",
)

TIERED_EXPERTISE_DESC = (
    "<p>Benefit: You gain a +1 feat bonus to implement attack rolls. "
    "This bonus increases to +2 at 11th level and +3 at 21st level.</p>"
)

FEATS = [
    {
        "_id": "feat-ki",
        "name": "Implement Expertise (Ki Focus)",
        "type": "feat",
        "system": {"description": {"value": TIERED_EXPERTISE_DESC}},
    },
    {"_id": "feat-tough", "name": "Toughness", "type": "feat", "system": {}},
    {"_id": "feat-focus", "name": "Weapon Focus (Heavy Blade)", "type": "feat", "system": {}},
]

FEATURES = [
    {"_id": "fea-unarmed", "name": "Unarmed Combatant", "type": "classFeats", "system": {}},
    {"_id": "fea-tradition", "name": "Monastic Tradition (Centered Breath)", "type": "classFeats", "system": {}},
    {"_id": "fea-companion", "name": "Animal Companion", "type": "classFeats", "system": {}},
    {"_id": "fea-resilience", "name": "Dwarven Resilience", "type": "raceFeats", "system": {}},
]

POWERS = [
    {
        "_id": "pow-flame",
        "name": "Flame Strike",
        "type": "power",
        "system": {"attack": {"ability": "int", "formula": "@int + @lvhalf"}, "weaponType": "implement"},
    },
    {
        "_id": "pow-flame-hybrid",
        "name": "Flame Strike (Hybrid)",
        "type": "power",
        "system": {"attack": {"ability": "int", "formula": "@int + @lvhalf"}, "weaponType": "implement"},
    },
    {
        "_id": "pow-storms",
        "name": "Five Storms",
        "type": "power",
        "system": {
            "attack": {"ability": "dex", "formula": "@dex + @lvhalf"},
            "weaponType": "melee",
            "weaponUse": "none",
        },
    },
    {
        "_id": "pow-bite",
        "name": "Irontooths Bite",
        "type": "power",
        "system": {"attack": {"ability": "str", "formula": "@str"}, "weaponType": "melee", "weaponUse": "default"},
    },
]

CORE_POWERS = [
    {
        "_id": "core-mba",
        "name": "Melee Basic Attack",
        "type": "power",
        "system": {"attack": {"ability": "str", "formula": "@str + @wepAttack"}, "weaponType": "melee"},
    },
    {
        "_id": "core-wind",
        "name": "Second Wind",
        "type": "power",
        "system": {"weaponType": "none"},
    },
]

EQUIPMENT = [
    {
        "_id": "eq-leather",
        "name": "Leather Armor",
        "type": "equipment",
        "system": {"armour": {"ac": 2, "enhance": 0}, "properties": {"lightArmor": True}},
    },
    {
        "_id": "eq-plus2",
        "name": "+2 Enchantment",
        "type": "equipment",
        "system": {"armour": {"enhance": 2}, "properties": {"magic": True}},
    },
    {
        "_id": "eq-unarmed",
        "name": "Unarmed Strike",
        "type": "weapon",
        "system": {"weaponType": "simpleM", "profBonus": 3},
    },
    {
        "_id": "eq-flaming-12",
        "name": "Flaming Weapon (Level 12)",
        "type": "weapon",
        "system": {"level": 12},
    },
    {
        "_id": "eq-flaming-2",
        "name": "Flaming Weapon (Level 2)",
        "type": "weapon",
        "system": {"level": 2},
    },
    {"_id": "eq-kit", "name": "Adventurer's Kit", "type": "backpack", "system": {}},
]

RITUALS = [
    {"_id": "rit-circle", "name": "Magic Circle", "type": "ritual", "system": {"level": 3}},
]

RACES = [
    {"_id": "race-prof", "name": "Dwarven Weapon Proficiency (Dwarf)", "type": "raceFeats", "system": {}},
]


def make_catalog(**overrides) -> InMemoryCatalog:
    packs = {
        PACKS.feats: FEATS,
        PACKS.features: FEATURES,
        PACKS.powers: POWERS,
        PACKS.core_powers: CORE_POWERS,
        PACKS.equipment: EQUIPMENT,
        PACKS.rituals: RITUALS,
        PACKS.races: RACES,
    }
    for key, value in overrides.items():
        pack_id = getattr(PACKS, key)
        if value is None:
            packs.pop(pack_id)
        else:
            packs[pack_id] = value
    return InMemoryCatalog(packs)


def entries(*names: str) -> list[CatalogEntry]:
    return [CatalogEntry(id=f"id-{i}", name=name) for i, name in enumerate(names)]
