"""Value types of Wikibase entities and the keyed collections holding them.

All value types are immutable. Each converts from its wire contract with
``from_contract`` and back to the JSON accepted by ``wbeditentity`` with
``to_json``.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum, unique
from typing import Any, ClassVar, final

from ..keyed import (
    FrozenKeyedCollection,
    FrozenKeyedMultiCollection,
    UnorderedKeyedCollection,
    UnorderedKeyedMultiCollection,
)
from .models import (
    ClaimContract,
    MonolingualTextContract,
    ReferenceContract,
    SiteLinkContract,
    SnakContract,
)

__all__ = (
    "SnakType",
    "ClaimRank",
    "MonolingualText",
    "EntitySiteLink",
    "DataValue",
    "Snak",
    "ClaimReference",
    "Claim",
    "MonolingualTextCollection",
    "MonolingualTextsCollection",
    "EntitySiteLinkCollection",
    "ClaimCollection",
    "FrozenMonolingualTextCollection",
    "FrozenMonolingualTextsCollection",
    "FrozenEntitySiteLinkCollection",
    "FrozenClaimCollection",
)


@final
@unique
class SnakType(StrEnum):
    __slots__: ClassVar = ()

    VALUE = "value"
    SOME_VALUE = "somevalue"
    NO_VALUE = "novalue"


@final
@unique
class ClaimRank(StrEnum):
    __slots__: ClassVar = ()

    PREFERRED = "preferred"
    NORMAL = "normal"
    DEPRECATED = "deprecated"


@final
@dataclass(frozen=True, slots=True)
class MonolingualText:
    """A text in one language, used for labels, descriptions and aliases."""

    language: str
    text: str

    @classmethod
    def from_contract(cls, contract: MonolingualTextContract):
        return cls(contract.language, contract.value)

    def to_json(self) -> dict[str, Any]:
        return {"language": self.language, "value": self.text}


@final
@dataclass(
    init=True,
    repr=True,
    eq=True,
    order=False,
    unsafe_hash=False,
    frozen=True,
    match_args=True,
    kw_only=False,
    slots=True,
)
class EntitySiteLink:
    """A link from an entity to a page on another wiki site.

    Attributes:
        site: site name, e.g. ``enwiki``
        title: page title on that site
        badges: badge item ids, in server order; always a tuple
        url: page URL, only present when requested
    """

    site: str
    title: str
    badges: Sequence[str] = ()
    url: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "badges", tuple(self.badges or ()))

    @classmethod
    def from_contract(cls, contract: SiteLinkContract):
        return cls(contract.site, contract.title, contract.badges, contract.url)

    def to_json(self) -> dict[str, Any]:
        return {"site": self.site, "title": self.title, "badges": list(self.badges)}


@final
@dataclass(frozen=True, slots=True)
class DataValue:
    """The ``datavalue`` of a snak: a value-type name and its raw JSON value."""

    type: str
    value: Any

    def to_json(self) -> dict[str, Any]:
        return {"value": self.value, "type": self.type}


@final
@dataclass(frozen=True, slots=True)
class Snak:
    """A property and its value (or the absence of one).

    The server-assigned `hash` does not take part in comparisons.
    """

    property_id: str
    snak_type: SnakType = SnakType.VALUE
    data_value: DataValue | None = None
    data_type: str | None = None
    hash: str | None = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "snak_type", SnakType(self.snak_type))
        if self.snak_type is SnakType.VALUE and self.data_value is None:
            raise ValueError(f"Value snak on {self.property_id} has no data value")

    @classmethod
    def with_value(
        cls, property_id: str, value_type: str, value: Any, data_type: str | None = None
    ):
        return cls(property_id, SnakType.VALUE, DataValue(value_type, value), data_type)

    @classmethod
    def from_contract(cls, contract: SnakContract):
        dv = contract.datavalue
        return cls(
            contract.property_id,
            SnakType(contract.snaktype),
            None if dv is None else DataValue(dv.type, dv.value),
            contract.datatype,
            contract.hash,
        )

    def to_json(self) -> dict[str, Any]:
        ret: dict[str, Any] = {
            "snaktype": str(self.snak_type),
            "property": self.property_id,
        }
        if self.data_value is not None:
            ret["datavalue"] = self.data_value.to_json()
        if self.data_type is not None:
            ret["datatype"] = self.data_type
        if self.hash is not None:
            ret["hash"] = self.hash
        return ret


def _snaks_from_contract(
    snaks: dict[str, list[SnakContract]], order: Iterable[str]
) -> tuple[Snak, ...]:
    keys = list(dict.fromkeys((*order, *snaks)))
    return tuple(
        Snak.from_contract(snak) for key in keys for snak in snaks.get(key, ())
    )


def _snaks_to_json(snaks: Iterable[Snak]) -> tuple[dict[str, list[Any]], list[str]]:
    grouped: dict[str, list[Any]] = {}
    for snak in snaks:
        grouped.setdefault(snak.property_id, []).append(snak.to_json())
    return grouped, list(grouped)


@final
@dataclass(frozen=True, slots=True)
class ClaimReference:
    snaks: Sequence[Snak] = ()
    hash: str | None = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "snaks", tuple(self.snaks))

    @classmethod
    def from_contract(cls, contract: ReferenceContract):
        return cls(
            _snaks_from_contract(contract.snaks, contract.snaks_order), contract.hash
        )

    def to_json(self) -> dict[str, Any]:
        snaks, order = _snaks_to_json(self.snaks)
        ret: dict[str, Any] = {"snaks": snaks, "snaks-order": order}
        if self.hash is not None:
            ret["hash"] = self.hash
        return ret


@final
@dataclass(frozen=True, slots=True)
class Claim:
    """A statement about an entity.

    A claim without `id` has not been saved yet. Claims are keyed by the
    property of their main snak.
    """

    main_snak: Snak
    id: str | None = None
    type: str = "statement"
    rank: ClaimRank = ClaimRank.NORMAL
    qualifiers: Sequence[Snak] = ()
    references: Sequence[ClaimReference] = ()

    def __post_init__(self):
        object.__setattr__(self, "rank", ClaimRank(self.rank))
        object.__setattr__(self, "qualifiers", tuple(self.qualifiers))
        object.__setattr__(self, "references", tuple(self.references))

    @property
    def property_id(self) -> str:
        return self.main_snak.property_id

    @classmethod
    def from_contract(cls, contract: ClaimContract):
        return cls(
            Snak.from_contract(contract.mainsnak),
            contract.id,
            contract.type,
            ClaimRank(contract.rank),
            _snaks_from_contract(contract.qualifiers, contract.qualifiers_order),
            tuple(map(ClaimReference.from_contract, contract.references)),
        )

    def to_json(self) -> dict[str, Any]:
        ret: dict[str, Any] = {
            "mainsnak": self.main_snak.to_json(),
            "type": self.type,
            "rank": str(self.rank),
        }
        if self.id is not None:
            ret["id"] = self.id
        if self.qualifiers:
            ret["qualifiers"], ret["qualifiers-order"] = _snaks_to_json(self.qualifiers)
        if self.references:
            ret["references"] = [ref.to_json() for ref in self.references]
        return ret


class MonolingualTextCollection(UnorderedKeyedCollection[str, MonolingualText]):
    """Labels or descriptions, one per language."""

    __slots__: ClassVar = ()

    def key_for_item(self, item: MonolingualText) -> str:
        return item.language


class MonolingualTextsCollection(UnorderedKeyedMultiCollection[str, MonolingualText]):
    """Aliases, any number per language."""

    __slots__: ClassVar = ()

    def key_for_item(self, item: MonolingualText) -> str:
        return item.language


class EntitySiteLinkCollection(UnorderedKeyedCollection[str, EntitySiteLink]):
    __slots__: ClassVar = ()

    def key_for_item(self, item: EntitySiteLink) -> str:
        return item.site


class ClaimCollection(UnorderedKeyedMultiCollection[str, Claim]):
    __slots__: ClassVar = ()

    def key_for_item(self, item: Claim) -> str:
        return item.main_snak.property_id


FrozenMonolingualTextCollection = FrozenKeyedCollection[str, MonolingualText]
FrozenMonolingualTextsCollection = FrozenKeyedMultiCollection[str, MonolingualText]
FrozenEntitySiteLinkCollection = FrozenKeyedCollection[str, EntitySiteLink]
FrozenClaimCollection = FrozenKeyedMultiCollection[str, Claim]
