"""Wikibase entities: items, properties and their claims.

Load entities with :class:`Entity` and :func:`refresh_entities`, and edit
them with :class:`EntityEditEntry` lists or :func:`diff_entities`.
"""

from .edit import (
    EditEntryState,
    EntityChange,
    EntityChangeKind,
    EntityEditEntry,
    EntityEditProperty,
    build_changes,
    diff_entities,
)
from .entity import Entity, ids_from_site_links, refresh_entities
from .snapshot import (
    NOT_FETCHED,
    EntityQueryOptions,
    EntitySnapshot,
    EntityType,
    Fetched,
)
from .values import (
    Claim,
    ClaimCollection,
    ClaimRank,
    ClaimReference,
    DataValue,
    EntitySiteLink,
    EntitySiteLinkCollection,
    MonolingualText,
    MonolingualTextCollection,
    MonolingualTextsCollection,
    Snak,
    SnakType,
)

__all__ = (
    "Claim",
    "ClaimCollection",
    "ClaimRank",
    "ClaimReference",
    "DataValue",
    "EditEntryState",
    "Entity",
    "EntityChange",
    "EntityChangeKind",
    "EntityEditEntry",
    "EntityEditProperty",
    "EntityQueryOptions",
    "EntitySiteLink",
    "EntitySiteLinkCollection",
    "EntitySnapshot",
    "EntityType",
    "Fetched",
    "MonolingualText",
    "MonolingualTextCollection",
    "MonolingualTextsCollection",
    "NOT_FETCHED",
    "Snak",
    "SnakType",
    "build_changes",
    "diff_entities",
    "ids_from_site_links",
    "refresh_entities",
)
