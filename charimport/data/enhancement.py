"""Implement-expertise attack bonus for resolved powers.

Characters with an implement expertise feat add the feat's bonus to implement
attacks. Monks may use their monk weapons (including unarmed strike) as
implements when a monk class feature grants it, in which case the weapon's
proficiency bonus applies as well. The host's power records do not model
this, so eligible attack formulas are patched at import time.

Eligibility is computed once per import as an immutable ``ConditionSet`` and
then applied read-only to every power.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from .records import ResolvedRecord

logger = logging.getLogger(__name__)

IMPLEMENT_KEYWORDS = ("implement", "ki focus", "orb", "rod", "staff", "tome", "totem", "wand")
MONK_FEAT_MARKERS = ("multiclass monk", "master of the fist")
MONK_WEAPONS = (
    "club",
    "dagger",
    "javelin",
    "quarterstaff",
    "short sword",
    "shuriken",
    "sling",
    "spear",
    "unarmed strike",
)
MONK_FEATURE_NAMES = ("Monk Class", "Hybrid Monk Class")
MONK_FEATURE_SUBSTRINGS = ("Monastic Tradition", "Unarmed Combatant")
ELIGIBLE_POWER_MARKERS = ("monk", "basic attack")
ELIGIBLE_ATTACK_ABILITIES = ("wis", "dex", "str")

_BONUS_RE = re.compile(r"\+(\d+)")


@dataclass(frozen=True)
class ConditionSet:
    """Build-wide eligibility for the implement expertise bonus."""

    has_implement_expertise: bool = False
    is_monk: bool = False
    has_implement_equipped: bool = False
    has_monk_weapon_equipped: bool = False
    has_monk_weapon_implement_feature: bool = False
    expertise_feats: tuple[str, ...] = ()
    feat_bonus: int = 0

    @property
    def monk_exception(self) -> bool:
        return self.is_monk and self.has_monk_weapon_equipped and self.has_monk_weapon_implement_feature

    @property
    def should_apply_bonus(self) -> bool:
        return self.has_implement_expertise and (self.has_implement_equipped or self.monk_exception)


def is_expertise_feat(feat: ResolvedRecord) -> bool:
    name = feat.name.lower()
    return "expertise" in name and any(keyword in name for keyword in IMPLEMENT_KEYWORDS)


def _description(record: ResolvedRecord) -> str:
    description = record.system.get("description")
    if isinstance(description, dict):
        return str(description.get("value") or "")
    return str(description or "")


def is_equipped_weapon(item: ResolvedRecord) -> bool:
    return item.type == "weapon" and item.equipped


def is_monk_weapon(item: ResolvedRecord) -> bool:
    name = item.name.lower()
    return is_equipped_weapon(item) and any(weapon in name for weapon in MONK_WEAPONS)


def feat_bonus(feat: ResolvedRecord, level: int) -> int:
    """Bonus granted by one expertise feat at ``level``.

    An explicit ``+N`` in the name wins. A description listing +1, +2 and +3
    is a tiered feat scaling with level (11th and 21st). Otherwise the first
    ``+N`` in the description, else 1.
    """
    named = _BONUS_RE.search(feat.name)
    if named:
        return int(named.group(1))

    desc = _description(feat)
    if "+1" in desc and "+2" in desc and "+3" in desc:
        if level >= 21:
            return 3
        if level >= 11:
            return 2
        return 1

    described = _BONUS_RE.search(desc)
    if described:
        return int(described.group(1))
    return 1


def expertise_bonus(feats: Sequence[ResolvedRecord], level: int) -> int:
    """Highest bonus among the expertise feats; 0 without any."""
    return max((feat_bonus(feat, level) for feat in feats), default=0)


def detect_conditions(
    equipment: Sequence[ResolvedRecord],
    feats: Sequence[ResolvedRecord],
    features: Sequence[ResolvedRecord],
    classes: Sequence[str],
    level: int = 1,
) -> ConditionSet:
    expertise_feats = [feat for feat in feats if is_expertise_feat(feat)]

    is_monk = any("monk" in cls.lower() for cls in classes) or any(
        marker in feat.name.lower() for feat in feats for marker in MONK_FEAT_MARKERS
    )
    has_implement_equipped = any(
        is_equipped_weapon(item) and item.system.get("weaponType") == "implement"
        for item in equipment
    )
    has_monk_weapon_equipped = any(is_monk_weapon(item) for item in equipment)
    has_monk_feature = any(
        feature.name in MONK_FEATURE_NAMES
        or any(part in feature.name for part in MONK_FEATURE_SUBSTRINGS)
        for feature in features
    )

    conditions = ConditionSet(
        has_implement_expertise=bool(expertise_feats),
        is_monk=is_monk,
        has_implement_equipped=has_implement_equipped,
        has_monk_weapon_equipped=has_monk_weapon_equipped,
        has_monk_weapon_implement_feature=has_monk_feature,
        expertise_feats=tuple(feat.name for feat in expertise_feats),
        feat_bonus=expertise_bonus(expertise_feats, level),
    )
    logger.debug("[Enhance] Conditions: %s", conditions)
    return conditions


def is_eligible_power(power: ResolvedRecord) -> bool:
    name = power.name.lower()
    if any(marker in name for marker in ELIGIBLE_POWER_MARKERS):
        return True
    attack = power.system.get("attack")
    return isinstance(attack, dict) and attack.get("ability") in ELIGIBLE_ATTACK_ABILITIES


def monk_weapon_prof_bonus(equipment: Sequence[ResolvedRecord]) -> int:
    best = 0
    for item in equipment:
        if not is_monk_weapon(item):
            continue
        try:
            prof = int(item.system.get("profBonus") or 0)
        except (TypeError, ValueError):
            prof = 0
        logger.debug("[Enhance] Equipped monk weapon %s (profBonus=%s)", item.name, prof)
        best = max(best, prof)
    return best


def enhance_power(
    power: ResolvedRecord,
    conditions: ConditionSet,
    equipment: Sequence[ResolvedRecord],
) -> ResolvedRecord:
    """Patch one power in place when it qualifies; returns the same record."""
    if not is_eligible_power(power) or not conditions.should_apply_bonus:
        return power

    total_bonus = 0
    attack = power.system.get("attack")
    if isinstance(attack, dict) and attack.get("formula"):
        total_bonus = monk_weapon_prof_bonus(equipment) + conditions.feat_bonus
        if total_bonus > 0:
            attack["formula"] = f"{attack['formula']} + {total_bonus}"
            logger.debug("[Enhance] %s formula -> %s", power.name, attack["formula"])

    weapon_type = power.system.get("weaponType")
    if weapon_type and weapon_type != "implement":
        power.system["weaponType"] = "any"
    if not power.system.get("weaponUse") or power.system.get("weaponUse") == "none":
        power.system["weaponUse"] = "default"

    power.set_flag("implementExpertiseCompat", True)
    power.set_flag("implementExpertiseBonus", conditions.feat_bonus)
    power.set_flag("attackBonusApplied", total_bonus)
    return power


def enhance(
    powers: Sequence[ResolvedRecord],
    equipment: Sequence[ResolvedRecord],
    feats: Sequence[ResolvedRecord],
    features: Sequence[ResolvedRecord],
    classes: Sequence[str],
    level: int = 1,
    *,
    conditions: ConditionSet | None = None,
) -> list[ResolvedRecord]:
    """Apply the implement expertise patch across ``powers``."""
    if conditions is None:
        conditions = detect_conditions(equipment, feats, features, classes, level)
    return [enhance_power(power, conditions, equipment) for power in powers]
