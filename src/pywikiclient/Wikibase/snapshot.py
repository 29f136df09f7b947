"""Immutable snapshots of Wikibase entities.

A snapshot records, per field group, whether the group was fetched:
every group is either ``Fetched(value)`` or ``NOT_FETCHED``. The mapping
from a validated :class:`~.models.EntityContract` to a snapshot is the pure
function :func:`load_entity`; nothing here performs I/O.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum, IntFlag, StrEnum, unique
from types import MappingProxyType
from typing import Any, ClassVar, Final, Generic, TypeAlias, TypeVar, final

from ..errors import SchemaMismatchError
from .models import EntityContract, MonolingualTextContract
from .values import (
    Claim,
    ClaimCollection,
    EntitySiteLink,
    EntitySiteLinkCollection,
    FrozenClaimCollection,
    FrozenEntitySiteLinkCollection,
    FrozenMonolingualTextCollection,
    FrozenMonolingualTextsCollection,
    MonolingualText,
    MonolingualTextCollection,
    MonolingualTextsCollection,
)

__all__ = (
    "EntityType",
    "EntityQueryOptions",
    "NotFetched",
    "NOT_FETCHED",
    "Fetched",
    "Fetchable",
    "fetched_or",
    "EntitySnapshot",
    "load_entity",
    "entity_query_props",
)

_T = TypeVar("_T")


@final
@unique
class EntityType(StrEnum):
    __slots__: ClassVar = ()

    UNKNOWN = "unknown"
    ITEM = "item"
    PROPERTY = "property"


@final
@unique
class EntityQueryOptions(IntFlag):
    """Selects the entity fields a refresh populates.

    `SUPPRESS_REDIRECTS` treats a redirected entity like a missing one
    instead of following it to its target.
    """

    __slots__: ClassVar = ()

    NONE = 0
    FETCH_INFO = 0x1
    FETCH_LABELS = 0x2
    FETCH_ALIASES = 0x4
    FETCH_DESCRIPTIONS = 0x8
    FETCH_SITE_LINKS = 0x10
    FETCH_SITE_LINKS_URL = 0x20 | FETCH_SITE_LINKS
    FETCH_CLAIMS = 0x40
    FETCH_ALL_PROPERTIES = (
        FETCH_INFO
        | FETCH_LABELS
        | FETCH_ALIASES
        | FETCH_DESCRIPTIONS
        | FETCH_SITE_LINKS_URL
        | FETCH_CLAIMS
    )
    SUPPRESS_REDIRECTS = 0x100


@final
@unique
class NotFetched(Enum):
    """Marker for a field group that was not requested."""

    NOT_FETCHED = "not-fetched"

    def __bool__(self):
        return False

    def __repr__(self):
        return "NOT_FETCHED"


NOT_FETCHED: Final = NotFetched.NOT_FETCHED


@final
@dataclass(frozen=True, slots=True)
class Fetched(Generic[_T]):
    value: _T


Fetchable: TypeAlias = Fetched[_T] | NotFetched


def fetched_or(value: "Fetchable[_T]", default: Any) -> _T | Any:
    return value.value if isinstance(value, Fetched) else default


@final
@dataclass(frozen=True, slots=True, kw_only=True)
class EntitySnapshot:
    """Everything known about an entity after one load.

    `id`, `exists`, `type`, `data_type` and `extension_data` describe the
    response itself; every other field is a :data:`Fetchable` group.
    """

    FETCHABLE: ClassVar = (
        "page_id",
        "namespace_id",
        "title",
        "last_modified",
        "last_revision_id",
        "labels",
        "descriptions",
        "aliases",
        "site_links",
        "claims",
    )

    id: str | None = None
    exists: bool = False
    type: EntityType = EntityType.UNKNOWN
    data_type: str | None = None
    page_id: Fetchable[int] = NOT_FETCHED
    namespace_id: Fetchable[int] = NOT_FETCHED
    title: Fetchable[str] = NOT_FETCHED
    last_modified: Fetchable[datetime] = NOT_FETCHED
    last_revision_id: Fetchable[int] = NOT_FETCHED
    labels: Fetchable[FrozenMonolingualTextCollection] = NOT_FETCHED
    descriptions: Fetchable[FrozenMonolingualTextCollection] = NOT_FETCHED
    aliases: Fetchable[FrozenMonolingualTextsCollection] = NOT_FETCHED
    site_links: Fetchable[FrozenEntitySiteLinkCollection] = NOT_FETCHED
    claims: Fetchable[FrozenClaimCollection] = NOT_FETCHED
    extension_data: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def merged_into(self, previous: "EntitySnapshot") -> "EntitySnapshot":
        """Return this snapshot with unfetched groups taken from `previous`."""
        kept = {
            name: getattr(previous, name)
            for name in self.FETCHABLE
            if getattr(self, name) is NOT_FETCHED
        }
        if self.type is EntityType.UNKNOWN:
            kept["type"] = previous.type
        if self.data_type is None:
            kept["data_type"] = previous.data_type
        return replace(self, **kept)

    def with_changes(self, **groups: Any) -> "EntitySnapshot":
        """Return a copy with the given groups replaced.

        Plain collections are frozen and wrapped in :class:`Fetched`, which
        makes this the usual way to describe a desired state for
        :func:`~.edit.diff_entities`.
        """

        names = {f.name for f in fields(self)}
        changes: dict[str, Any] = {}
        for name, value in groups.items():
            if name not in names:
                raise TypeError(f"EntitySnapshot has no field '{name}'")
            if name in self.FETCHABLE and not isinstance(
                value, (Fetched, NotFetched)
            ):
                freeze = getattr(value, "freeze", None)
                value = Fetched(freeze() if freeze is not None else value)
            changes[name] = value
        return replace(self, **changes)


_EMPTY_TEXTS: Final = MonolingualTextCollection().freeze()
_EMPTY_TEXTS_MULTI: Final = MonolingualTextsCollection().freeze()
_EMPTY_SITE_LINKS: Final = EntitySiteLinkCollection().freeze()
_EMPTY_CLAIMS: Final = ClaimCollection().freeze()


def _required(contract: EntityContract, name: str) -> Any:
    value = getattr(contract, name)
    if value is None:
        raise SchemaMismatchError(f"Entity {contract.id} has no '{name}'")
    return value


def _entity_type(text: str | None) -> EntityType:
    # lexemes, media info and other extension types
    try:
        return EntityType(text)
    except ValueError:
        return EntityType.UNKNOWN


def _texts(
    texts: Mapping[str, MonolingualTextContract] | None,
) -> FrozenMonolingualTextCollection:
    if not texts:
        return _EMPTY_TEXTS
    return MonolingualTextCollection(
        map(MonolingualText.from_contract, texts.values())
    ).freeze()


def load_entity(
    contract: EntityContract,
    options: EntityQueryOptions,
    is_post_editing: bool = False,
) -> EntitySnapshot:
    """Map a validated entity contract to a snapshot.

    Only the groups selected by `options` are marked as fetched. A
    ``missing`` entity yields a snapshot with nothing fetched and
    ``exists=False``. With `is_post_editing`, the page fields a
    ``wbeditentity`` response omits are skipped instead of required.
    """

    extension_data = MappingProxyType(dict(contract.model_extra or {}))
    if contract.is_missing:
        return EntitySnapshot(
            id=contract.id, exists=False, extension_data=extension_data
        )
    groups: dict[str, Any] = {}
    try:
        if EntityQueryOptions.FETCH_INFO in options:
            if not is_post_editing:
                groups["page_id"] = Fetched(_required(contract, "pageid"))
                groups["namespace_id"] = Fetched(_required(contract, "ns"))
                groups["title"] = Fetched(_required(contract, "title"))
                groups["last_modified"] = Fetched(_required(contract, "modified"))
            groups["last_revision_id"] = Fetched(_required(contract, "lastrevid"))
        if EntityQueryOptions.FETCH_LABELS in options:
            groups["labels"] = Fetched(_texts(contract.labels))
        if EntityQueryOptions.FETCH_DESCRIPTIONS in options:
            groups["descriptions"] = Fetched(_texts(contract.descriptions))
        if EntityQueryOptions.FETCH_ALIASES in options:
            groups["aliases"] = Fetched(
                MonolingualTextsCollection(
                    MonolingualText.from_contract(alias)
                    for aliases in contract.aliases.values()
                    for alias in aliases
                ).freeze()
                if contract.aliases
                else _EMPTY_TEXTS_MULTI
            )
        if EntityQueryOptions.FETCH_SITE_LINKS in options:
            groups["site_links"] = Fetched(
                EntitySiteLinkCollection(
                    map(EntitySiteLink.from_contract, contract.sitelinks.values())
                ).freeze()
                if contract.sitelinks
                else _EMPTY_SITE_LINKS
            )
        if EntityQueryOptions.FETCH_CLAIMS in options:
            groups["claims"] = Fetched(
                ClaimCollection(
                    Claim.from_contract(claim)
                    for claims in contract.claims.values()
                    for claim in claims
                ).freeze()
                if contract.claims
                else _EMPTY_CLAIMS
            )
        entity_type = _entity_type(contract.type)
    except SchemaMismatchError:
        raise
    except ValueError as exc:
        raise SchemaMismatchError(f"Entity {contract.id}: {exc}") from exc
    return EntitySnapshot(
        id=contract.id,
        exists=True,
        type=entity_type,
        data_type=contract.datatype,
        extension_data=extension_data,
        **groups,
    )


def entity_query_props(options: EntityQueryOptions) -> list[str]:
    """Return the ``props`` values of ``wbgetentities`` selected by `options`."""

    props: list[str] = []
    if EntityQueryOptions.FETCH_INFO in options:
        props += ("info", "datatype")
    if EntityQueryOptions.FETCH_LABELS in options:
        props.append("labels")
    if EntityQueryOptions.FETCH_ALIASES in options:
        props.append("aliases")
    if EntityQueryOptions.FETCH_DESCRIPTIONS in options:
        props.append("descriptions")
    if EntityQueryOptions.FETCH_SITE_LINKS_URL in options:
        props.append("sitelinks/urls")
    elif EntityQueryOptions.FETCH_SITE_LINKS in options:
        props.append("sitelinks")
    if EntityQueryOptions.FETCH_CLAIMS in options:
        props.append("claims")
    return props
