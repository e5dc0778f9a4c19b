"""Effect models: the declarative rule contributions of game content.

Every effect is a pydantic model tagged by ``kind``. Effects are grouped
into a ``SourcedEffect`` whose ``source_id`` prefix (``species:``,
``class:``, ``item:`` ...) decides the phase it runs in. A sourced effect
may instead carry an ``EffectChoice`` whose options hold the effects to
apply once the player has answered.

Unrecognized kinds validate into ``UnknownEffect`` and are recorded as
not applied during evaluation.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

from dnd_rules.core.constants import MAX_SPELL_LEVEL
from dnd_rules.models.enums import (
    Ability,
    BonusType,
    ChoiceType,
    DurationType,
    EditionFilter,
    EffectPriority,
    MovementType,
    ProficiencyType,
    ResourceType,
    RestrictionType,
    SenseType,
    Skill,
    SpellcastingType,
    SpellListType,
    StackingRule,
)
from dnd_rules.models.formulas import ValueOrFormula
from dnd_rules.models.predicates import Predicate


class EffectBase(BaseModel):
    """Fields shared by every effect kind.

    Attributes:
        predicate: Guards that must all hold for the effect to apply.
        priority: Resolution tier for deferred contributions (AC, HP, speed).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    predicate: list[Predicate] = Field(default_factory=list)
    priority: EffectPriority | None = None


# =============================================================================
# Proficiencies & Abilities
# =============================================================================


class GrantProficiencyEffect(EffectBase):
    kind: Literal["grantProficiency"] = "grantProficiency"
    prof_type: ProficiencyType
    values: list[str] = Field(default_factory=list)


class AbilityScoreIncreaseEffect(EffectBase):
    kind: Literal["abilityScoreIncrease"] = "abilityScoreIncrease"
    ability: Ability
    value: ValueOrFormula


class SaveAdvantageEffect(EffectBase):
    kind: Literal["saveAdvantage"] = "saveAdvantage"
    abilities: list[Ability] = Field(default_factory=list)


class SaveBonusEffect(EffectBase):
    kind: Literal["saveBonus"] = "saveBonus"
    abilities: list[Ability] = Field(default_factory=list)
    value: ValueOrFormula
    stacking: StackingRule = StackingRule.STACK
    bonus_type: BonusType | None = None


class SavingThrowBonusEffect(EffectBase):
    """Saving throw bonus for one ability, or every ability with ``'all'``."""

    kind: Literal["savingThrowBonus"] = "savingThrowBonus"
    ability: Literal["all"] | Ability
    value: ValueOrFormula
    stacking: StackingRule | None = None
    bonus_type: BonusType | None = None


class SkillProficiencyEffect(EffectBase):
    kind: Literal["skillProficiency"] = "skillProficiency"
    skill: Skill


class SkillExpertiseEffect(EffectBase):
    kind: Literal["skillExpertise"] = "skillExpertise"
    skill: Skill


class SkillBonusEffect(EffectBase):
    kind: Literal["skillBonus"] = "skillBonus"
    skill: Skill
    value: ValueOrFormula
    stacking: StackingRule = StackingRule.STACK
    bonus_type: BonusType | None = None


# =============================================================================
# Combat Statistics
# =============================================================================


class ArmorClassEffect(EffectBase):
    """Candidate AC value, resolved by priority tier during finalization."""

    kind: Literal["armorClass"] = "armorClass"
    value: ValueOrFormula
    stacking: StackingRule | None = None
    bonus_type: BonusType | None = None


class InitiativeBonusEffect(EffectBase):
    kind: Literal["initiativeBonus"] = "initiativeBonus"
    value: ValueOrFormula
    stacking: StackingRule = StackingRule.STACK
    bonus_type: BonusType | None = None


class SpeedEffect(EffectBase):
    kind: Literal["speed"] = "speed"
    movement_type: MovementType
    value: ValueOrFormula
    stacking: StackingRule | None = None


class SenseEffect(EffectBase):
    kind: Literal["sense"] = "sense"
    sense_type: SenseType
    range: int = Field(ge=0)
    stacking: StackingRule | None = None


class HitPointMaxEffect(EffectBase):
    kind: Literal["hitPointMax"] = "hitPointMax"
    value: ValueOrFormula
    stacking: StackingRule = StackingRule.STACK


class HitPointsEffect(EffectBase):
    kind: Literal["hitPoints"] = "hitPoints"
    value: ValueOrFormula
    stacking: StackingRule | None = None


# =============================================================================
# Resources & Spellcasting
# =============================================================================


class ResourceEffect(EffectBase):
    """Limited-use resource such as rage or ki points."""

    kind: Literal["resource"] = "resource"
    resource_id: str
    resource_type: ResourceType
    value: ValueOrFormula
    level: int | None = None
    stacking: StackingRule = StackingRule.STACK


class SpellcastingAbilityEffect(EffectBase):
    kind: Literal["spellcastingAbility"] = "spellcastingAbility"
    ability: Ability


class GrantSpellEffect(EffectBase):
    kind: Literal["grantSpell"] = "grantSpell"
    spell_slug: str
    spellcasting_type: SpellcastingType | None = None
    spell_type: SpellListType | None = None
    uses_spell_slot: bool | None = None


class SpellSlotsEffect(EffectBase):
    kind: Literal["spellSlots"] = "spellSlots"
    level: int = Field(ge=1, le=MAX_SPELL_LEVEL)
    value: ValueOrFormula
    stacking: StackingRule = StackingRule.STACK


# =============================================================================
# Features, Tags & Restrictions
# =============================================================================


class GrantFeatureEffect(EffectBase):
    kind: Literal["grantFeature"] = "grantFeature"
    feature_id: str
    name: str
    description: str = ""


class TagEffect(EffectBase):
    kind: Literal["tag"] = "tag"
    tags: list[str] = Field(default_factory=list)


class EquipmentRestrictionEffect(EffectBase):
    kind: Literal["equipmentRestriction"] = "equipmentRestriction"
    restriction_type: RestrictionType
    item_tags: list[str] = Field(default_factory=list)


class ConditionEffect(EffectBase):
    kind: Literal["condition"] = "condition"
    condition: str


class DamageResistanceEffect(EffectBase):
    kind: Literal["damageResistance"] = "damageResistance"
    damage_type: str


class ConditionImmunityEffect(EffectBase):
    kind: Literal["conditionImmunity"] = "conditionImmunity"
    condition: str


class UnknownEffect(EffectBase):
    """Placeholder for an effect kind this engine does not know.

    Extra fields are preserved for diagnostics.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    kind: str


EFFECT_KINDS: dict[str, type[EffectBase]] = {
    "grantProficiency": GrantProficiencyEffect,
    "abilityScoreIncrease": AbilityScoreIncreaseEffect,
    "saveAdvantage": SaveAdvantageEffect,
    "saveBonus": SaveBonusEffect,
    "savingThrowBonus": SavingThrowBonusEffect,
    "skillProficiency": SkillProficiencyEffect,
    "skillExpertise": SkillExpertiseEffect,
    "skillBonus": SkillBonusEffect,
    "armorClass": ArmorClassEffect,
    "initiativeBonus": InitiativeBonusEffect,
    "speed": SpeedEffect,
    "sense": SenseEffect,
    "resource": ResourceEffect,
    "spellcastingAbility": SpellcastingAbilityEffect,
    "grantSpell": GrantSpellEffect,
    "spellSlots": SpellSlotsEffect,
    "grantFeature": GrantFeatureEffect,
    "tag": TagEffect,
    "equipmentRestriction": EquipmentRestrictionEffect,
    "condition": ConditionEffect,
    "hitPointMax": HitPointMaxEffect,
    "hitPoints": HitPointsEffect,
    "damageResistance": DamageResistanceEffect,
    "conditionImmunity": ConditionImmunityEffect,
}
"""Known effect ``kind`` tags mapped to their models."""


def _effect_tag(value: Any) -> str:
    tag = value.get("kind") if isinstance(value, dict) else getattr(value, "kind", None)
    return tag if tag in EFFECT_KINDS else "unknown"


Effect = Annotated[
    Annotated[GrantProficiencyEffect, Tag("grantProficiency")]
    | Annotated[AbilityScoreIncreaseEffect, Tag("abilityScoreIncrease")]
    | Annotated[SaveAdvantageEffect, Tag("saveAdvantage")]
    | Annotated[SaveBonusEffect, Tag("saveBonus")]
    | Annotated[SavingThrowBonusEffect, Tag("savingThrowBonus")]
    | Annotated[SkillProficiencyEffect, Tag("skillProficiency")]
    | Annotated[SkillExpertiseEffect, Tag("skillExpertise")]
    | Annotated[SkillBonusEffect, Tag("skillBonus")]
    | Annotated[ArmorClassEffect, Tag("armorClass")]
    | Annotated[InitiativeBonusEffect, Tag("initiativeBonus")]
    | Annotated[SpeedEffect, Tag("speed")]
    | Annotated[SenseEffect, Tag("sense")]
    | Annotated[ResourceEffect, Tag("resource")]
    | Annotated[SpellcastingAbilityEffect, Tag("spellcastingAbility")]
    | Annotated[GrantSpellEffect, Tag("grantSpell")]
    | Annotated[SpellSlotsEffect, Tag("spellSlots")]
    | Annotated[GrantFeatureEffect, Tag("grantFeature")]
    | Annotated[TagEffect, Tag("tag")]
    | Annotated[EquipmentRestrictionEffect, Tag("equipmentRestriction")]
    | Annotated[ConditionEffect, Tag("condition")]
    | Annotated[HitPointMaxEffect, Tag("hitPointMax")]
    | Annotated[HitPointsEffect, Tag("hitPoints")]
    | Annotated[DamageResistanceEffect, Tag("damageResistance")]
    | Annotated[ConditionImmunityEffect, Tag("conditionImmunity")]
    | Annotated[UnknownEffect, Tag("unknown")],
    Discriminator(_effect_tag),
]
"""Any effect, discriminated on ``kind``."""


# =============================================================================
# Choices & Sourced Effects
# =============================================================================


class ChoiceOption(BaseModel):
    """One selectable answer of a choice, carrying the effects it grants."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    value: str
    label: str
    description: str | None = None
    effects: list[Effect] = Field(default_factory=list)


class EffectChoice(BaseModel):
    """A player decision deferred to ``BaseFacts.choices``.

    Attributes:
        id: Key looked up in ``BaseFacts.choices``.
        prompt: Question shown to the player.
        type: Kind of answer expected.
        options: Selectable answers for select/multiselect choices.
        min: Minimum selections or value.
        max: Maximum selections or value.
        predicate: Guards deciding whether the choice is offered at all.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    prompt: str
    type: ChoiceType = ChoiceType.SELECT
    options: list[ChoiceOption] = Field(default_factory=list)
    min: int | None = None
    max: int | None = None
    predicate: list[Predicate] = Field(default_factory=list)

    def get_option(self, value: str) -> ChoiceOption | None:
        """Find an option by its value.

        Args:
            value: Option value to look up.

        Returns:
            The matching option, or None.
        """
        for option in self.options:
            if option.value == value:
                return option
        return None


class SourcedEffect(BaseModel):
    """A named bundle of effects from one game element.

    Attributes:
        source_id: Provenance id whose prefix selects the phase (e.g. 'class:wizard').
        effect_id: Identifier of this bundle within the source.
        name: Display name.
        description: Optional longer text.
        effects: Effects applied when the bundle applies.
        choice: Optional player decision whose option effects apply instead.
        edition: Edition gate; None or 'both' applies everywhere.
        icon: Optional presentation hint.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    source_id: str = Field(min_length=1)
    effect_id: str = Field(min_length=1)
    name: str
    description: str | None = None
    effects: list[Effect] = Field(default_factory=list)
    choice: EffectChoice | None = None
    edition: EditionFilter | None = None
    icon: str | None = None


class Duration(BaseModel):
    """How long a temporary effect lasts."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: DurationType = DurationType.PERMANENT
    count: int | None = Field(default=None, ge=0)
    max_duration: Duration | None = None


class TemporaryEffect(SourcedEffect):
    """A sourced effect from an active spell or transient condition."""

    duration: Duration = Field(default_factory=Duration)
    applied_at: float = 0.0


__all__ = [
    "EffectBase",
    "GrantProficiencyEffect",
    "AbilityScoreIncreaseEffect",
    "SaveAdvantageEffect",
    "SaveBonusEffect",
    "SavingThrowBonusEffect",
    "SkillProficiencyEffect",
    "SkillExpertiseEffect",
    "SkillBonusEffect",
    "ArmorClassEffect",
    "InitiativeBonusEffect",
    "SpeedEffect",
    "SenseEffect",
    "HitPointMaxEffect",
    "HitPointsEffect",
    "ResourceEffect",
    "SpellcastingAbilityEffect",
    "GrantSpellEffect",
    "SpellSlotsEffect",
    "GrantFeatureEffect",
    "TagEffect",
    "EquipmentRestrictionEffect",
    "ConditionEffect",
    "DamageResistanceEffect",
    "ConditionImmunityEffect",
    "UnknownEffect",
    "Effect",
    "EFFECT_KINDS",
    "ChoiceOption",
    "EffectChoice",
    "SourcedEffect",
    "Duration",
    "TemporaryEffect",
]
