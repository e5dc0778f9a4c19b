"""Predicate models guarding conditional effects.

Predicates form a tagged union on the ``type`` field. Simple predicates
compare a single fact; ``and``/``or``/``not`` compose nested predicates.
An unrecognized ``type`` validates into ``UnknownPredicate`` so malformed
content is still loadable and evaluates to false at run time.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

from dnd_rules.models.enums import Ability, Edition, ProficiencyType


class PredicateBase(BaseModel):
    """Base class for all predicate models."""

    model_config = ConfigDict(frozen=True, extra="ignore")


# =============================================================================
# Simple Predicates
# =============================================================================


class LevelAtLeast(PredicateBase):
    """Total character level is at least ``value``."""

    type: Literal["levelAtLeast"] = "levelAtLeast"
    value: int


class LevelAtMost(PredicateBase):
    """Total character level is at most ``value``."""

    type: Literal["levelAtMost"] = "levelAtMost"
    value: int


class HasTag(PredicateBase):
    """Derived state carries ``tag``."""

    type: Literal["hasTag"] = "hasTag"
    tag: str


class EditionIs(PredicateBase):
    """Character uses the given rules edition."""

    type: Literal["edition"] = "edition"
    value: Edition


class ClassIs(PredicateBase):
    """Primary class slug equals ``slug``."""

    type: Literal["classIs"] = "classIs"
    slug: str


class ClassLevelAtLeast(PredicateBase):
    """Levels in ``class_slug`` are at least ``level``."""

    type: Literal["classLevelAtLeast"] = "classLevelAtLeast"
    class_slug: str
    level: int


class SpeciesIs(PredicateBase):
    """Species slug equals ``slug``."""

    type: Literal["speciesIs"] = "speciesIs"
    slug: str


class AbilityAtLeast(PredicateBase):
    """Ability score is at least ``value``."""

    type: Literal["abilityAtLeast"] = "abilityAtLeast"
    ability: Ability
    value: int


class HasFeat(PredicateBase):
    """Character took the feat ``feat_slug``."""

    type: Literal["hasFeat"] = "hasFeat"
    feat_slug: str


class HasFeature(PredicateBase):
    """A feature with id ``feature_slug`` has been granted."""

    type: Literal["hasFeature"] = "hasFeature"
    feature_slug: str


class HasProficiency(PredicateBase):
    """Derived proficiencies of ``prof_type`` include ``value``."""

    type: Literal["hasProficiency"] = "hasProficiency"
    prof_type: ProficiencyType
    value: str


class Equipped(PredicateBase):
    """An item carrying ``item_tag`` is equipped."""

    type: Literal["equipped"] = "equipped"
    item_tag: str


class HasCondition(PredicateBase):
    """Character currently suffers ``condition``."""

    type: Literal["hasCondition"] = "hasCondition"
    condition: str


# =============================================================================
# Composite Predicates
# =============================================================================


class And(PredicateBase):
    """All nested predicates hold (true when empty)."""

    type: Literal["and"] = "and"
    predicates: list[Predicate] = Field(default_factory=list)


class Or(PredicateBase):
    """At least one nested predicate holds (false when empty)."""

    type: Literal["or"] = "or"
    predicates: list[Predicate] = Field(default_factory=list)


class Not(PredicateBase):
    """Negation of one predicate, or of a list treated as AND."""

    type: Literal["not"] = "not"
    predicate: Predicate | list[Predicate]


class UnknownPredicate(PredicateBase):
    """Placeholder for a predicate type this engine does not know.

    Extra fields are preserved for diagnostics.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str


PREDICATE_TYPES: dict[str, type[PredicateBase]] = {
    "levelAtLeast": LevelAtLeast,
    "levelAtMost": LevelAtMost,
    "hasTag": HasTag,
    "edition": EditionIs,
    "classIs": ClassIs,
    "classLevelAtLeast": ClassLevelAtLeast,
    "speciesIs": SpeciesIs,
    "abilityAtLeast": AbilityAtLeast,
    "hasFeat": HasFeat,
    "hasFeature": HasFeature,
    "hasProficiency": HasProficiency,
    "equipped": Equipped,
    "hasCondition": HasCondition,
    "and": And,
    "or": Or,
    "not": Not,
}
"""Known predicate ``type`` tags mapped to their models."""


def _predicate_tag(value: Any) -> str:
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return tag if tag in PREDICATE_TYPES else "unknown"


Predicate = Annotated[
    Annotated[LevelAtLeast, Tag("levelAtLeast")]
    | Annotated[LevelAtMost, Tag("levelAtMost")]
    | Annotated[HasTag, Tag("hasTag")]
    | Annotated[EditionIs, Tag("edition")]
    | Annotated[ClassIs, Tag("classIs")]
    | Annotated[ClassLevelAtLeast, Tag("classLevelAtLeast")]
    | Annotated[SpeciesIs, Tag("speciesIs")]
    | Annotated[AbilityAtLeast, Tag("abilityAtLeast")]
    | Annotated[HasFeat, Tag("hasFeat")]
    | Annotated[HasFeature, Tag("hasFeature")]
    | Annotated[HasProficiency, Tag("hasProficiency")]
    | Annotated[Equipped, Tag("equipped")]
    | Annotated[HasCondition, Tag("hasCondition")]
    | Annotated[And, Tag("and")]
    | Annotated[Or, Tag("or")]
    | Annotated[Not, Tag("not")]
    | Annotated[UnknownPredicate, Tag("unknown")],
    Discriminator(_predicate_tag),
]
"""Any predicate, discriminated on ``type``."""


And.model_rebuild()
Or.model_rebuild()
Not.model_rebuild()


__all__ = [
    "PredicateBase",
    "LevelAtLeast",
    "LevelAtMost",
    "HasTag",
    "EditionIs",
    "ClassIs",
    "ClassLevelAtLeast",
    "SpeciesIs",
    "AbilityAtLeast",
    "HasFeat",
    "HasFeature",
    "HasProficiency",
    "Equipped",
    "HasCondition",
    "And",
    "Or",
    "Not",
    "UnknownPredicate",
    "Predicate",
    "PREDICATE_TYPES",
]
