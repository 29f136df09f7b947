"""Wikibase items and properties bound to a site.

An :class:`Entity` holds the latest :class:`~.snapshot.EntitySnapshot` of
one entity. Refreshing parses the whole response before anything is
assigned, so a refresh that is cancelled or fails leaves the entity as it
was.
"""

from collections.abc import AsyncIterator, Collection, Iterable, Sequence
from datetime import datetime
from itertools import islice
from json import dumps
from typing import Final

from ..meta import LOGGER
from ..site import WikiSite, validate_contract
from .edit import EntityEditEntry, build_changes, changes_to_data
from .models import (
    EditEntityResponse,
    EntitiesResponse,
    EntityContract,
    parse_entity_json,
)
from .snapshot import (
    EntityQueryOptions,
    EntitySnapshot,
    EntityType,
    entity_query_props,
    fetched_or,
    load_entity,
)
from .values import (
    ClaimCollection,
    EntitySiteLinkCollection,
    FrozenClaimCollection,
    FrozenEntitySiteLinkCollection,
    FrozenMonolingualTextCollection,
    FrozenMonolingualTextsCollection,
    MonolingualTextCollection,
    MonolingualTextsCollection,
)

__all__ = (
    "Entity",
    "refresh_entities",
    "ids_from_site_links",
)

_EMPTY_TEXTS: Final = MonolingualTextCollection().freeze()
_EMPTY_TEXTS_MULTI: Final = MonolingualTextsCollection().freeze()
_EMPTY_SITE_LINKS: Final = EntitySiteLinkCollection().freeze()
_EMPTY_CLAIMS: Final = ClaimCollection().freeze()


def _batched(items: Sequence[str], size: int) -> Iterable[tuple[str, ...]]:
    it = iter(items)
    while batch := tuple(islice(it, size)):
        yield batch


class Entity:
    """A Wikibase item or property.

    Construct it with an existing id, or with only a `type` for an entity
    that is created by its first :meth:`edit`. Field values reflect the
    last load; groups never fetched read as empty defaults, and
    :attr:`snapshot` tells fetched and unfetched groups apart.
    """

    def __init__(
        self,
        site: WikiSite,
        id: str | None = None,
        *,
        type: EntityType = EntityType.UNKNOWN,
    ):
        if id is None and type not in (EntityType.ITEM, EntityType.PROPERTY):
            raise ValueError(
                f"A new entity must be an item or a property, not {type!r}"
            )
        if id is not None:
            id = id.strip().upper()
            if not id:
                raise ValueError("Entity id must not be empty")
        self.site = site
        self.query_options = EntityQueryOptions.NONE
        self._snapshot = EntitySnapshot(id=id, type=type)

    @property
    def snapshot(self) -> EntitySnapshot:
        return self._snapshot

    @property
    def id(self) -> str | None:
        return self._snapshot.id

    @property
    def exists(self) -> bool:
        return self._snapshot.exists

    @property
    def type(self) -> EntityType:
        return self._snapshot.type

    @property
    def data_type(self) -> str | None:
        """Data type of a property entity, e.g. ``wikibase-item``."""
        return self._snapshot.data_type

    @property
    def page_id(self) -> int:
        return fetched_or(self._snapshot.page_id, -1)

    @property
    def namespace_id(self) -> int:
        return fetched_or(self._snapshot.namespace_id, -1)

    @property
    def title(self) -> str | None:
        """Full page title, e.g. ``Q42`` or ``Property:P31``."""
        return fetched_or(self._snapshot.title, None)

    @property
    def last_modified(self) -> datetime | None:
        return fetched_or(self._snapshot.last_modified, None)

    @property
    def last_revision_id(self) -> int:
        return fetched_or(self._snapshot.last_revision_id, 0)

    @property
    def labels(self) -> FrozenMonolingualTextCollection:
        return fetched_or(self._snapshot.labels, _EMPTY_TEXTS)

    @property
    def descriptions(self) -> FrozenMonolingualTextCollection:
        return fetched_or(self._snapshot.descriptions, _EMPTY_TEXTS)

    @property
    def aliases(self) -> FrozenMonolingualTextsCollection:
        return fetched_or(self._snapshot.aliases, _EMPTY_TEXTS_MULTI)

    @property
    def site_links(self) -> FrozenEntitySiteLinkCollection:
        return fetched_or(self._snapshot.site_links, _EMPTY_SITE_LINKS)

    @property
    def claims(self) -> FrozenClaimCollection:
        return fetched_or(self._snapshot.claims, _EMPTY_CLAIMS)

    def __str__(self):
        label = self.labels.get("en")
        id = self.id or f"<New {self.type}>"
        return f"{label.text}({id})" if label is not None else id

    def __repr__(self):
        return f"{type(self).__name__}({self.site!r}, {self.id!r})"

    def load_from_contract(
        self,
        contract: EntityContract,
        options: EntityQueryOptions,
        is_post_editing: bool = False,
    ) -> None:
        """Replace the state of this entity with a loaded response.

        Groups outside `options` keep their previous values unless the
        entity turned out missing, which clears everything. A different id
        in the response is a redirect: it is followed, or treated as
        missing when `options` has ``SUPPRESS_REDIRECTS``.
        """

        self._commit(load_entity(contract, options, is_post_editing), options)

    def _commit(self, staged: EntitySnapshot, options: EntityQueryOptions) -> None:
        previous = self._snapshot
        renamed = (staged.id or "").upper() != (previous.id or "").upper()
        if previous.id is not None and renamed:
            if EntityQueryOptions.SUPPRESS_REDIRECTS in options:
                LOGGER.warning(
                    f"Entity {previous.id} redirects to {staged.id}; "
                    "treating it as missing"
                )
                staged = EntitySnapshot(id=previous.id)
            else:
                LOGGER.warning(f"Entity {previous.id} redirects to {staged.id}")
        elif staged.exists:
            staged = staged.merged_into(previous)
        self._snapshot = staged
        self.query_options = options

    async def refresh(
        self,
        options: EntityQueryOptions = EntityQueryOptions.FETCH_INFO,
        languages: Collection[str] | None = None,
    ) -> None:
        """Fetch the fields selected by `options` from the site.

        `languages` limits labels, descriptions and aliases to those
        language codes; ``None`` fetches every language.
        """

        await refresh_entities((self,), options, languages)

    async def edit(
        self,
        entries: Iterable[EntityEditEntry],
        summary: str | None = None,
        *,
        bot: bool = False,
    ) -> bool:
        """Apply `entries` with a single ``wbeditentity`` call.

        An unsaved entity is created. Returns ``False`` without contacting
        the site when there is nothing to change.
        """

        changes = build_changes(entries, base=self._snapshot)
        if not changes:
            return False
        params: dict[str, object] = (
            {"new": self.type} if self.id is None else {"id": self.id}
        )
        params.update(
            data=dumps(
                changes_to_data(changes), ensure_ascii=False, separators=(",", ":")
            ),
            summary=summary,
            bot=bot,
            baserevid=self.last_revision_id or None,
        )
        LOGGER.info(f"Editing {self} with {len(changes)} changes")
        data = await self.site.invoke_with_token("wbeditentity", params)
        contract = parse_entity_json(validate_contract(EditEntityResponse, data).entity)
        self.load_from_contract(
            contract, EntityQueryOptions.FETCH_ALL_PROPERTIES, is_post_editing=True
        )
        return True


async def refresh_entities(
    entities: Iterable[Entity],
    options: EntityQueryOptions = EntityQueryOptions.FETCH_INFO,
    languages: Collection[str] | None = None,
) -> None:
    """Refresh several entities, batching their ids per site.

    Responses are matched back to entities by id; when the site answers
    under a different key (as it may for redirects), the response entries
    are matched in request order instead. Every response is parsed before
    any entity is updated.
    """

    by_site: dict[WikiSite, dict[str, list[Entity]]] = {}
    for entity in entities:
        if entity.id is None:
            raise ValueError(f"Cannot refresh {entity}: it has not been saved")
        by_site.setdefault(entity.site, {}).setdefault(entity.id, []).append(entity)

    suppress_redirects = EntityQueryOptions.SUPPRESS_REDIRECTS in options
    staged: list[tuple[Entity, EntityContract]] = []
    for site, by_id in by_site.items():
        for batch in _batched(tuple(by_id), site.options.query_limit):
            LOGGER.info(f"Fetching {len(batch)} entities from {site.api_endpoint}")
            data = await site.invoke(
                "wbgetentities",
                {
                    "ids": batch,
                    "props": entity_query_props(options),
                    "languages": languages,
                    "redirects": "no" if suppress_redirects else None,
                },
            )
            nodes = validate_contract(EntitiesResponse, data).entities
            keys = tuple(nodes)
            for index, id in enumerate(batch):
                key = id if id in nodes else keys[index] if index < len(keys) else None
                if key is None:
                    LOGGER.warning(f"No entity {id} in the response")
                    continue
                contract = parse_entity_json(nodes[key])
                staged.extend((entity, contract) for entity in by_id[id])
    for entity, contract in staged:
        entity.load_from_contract(contract, options)


def _normalize_title(title: str) -> str:
    title = title.replace("_", " ").strip()
    return title[:1].upper() + title[1:]


async def ids_from_site_links(
    site: WikiSite, site_name: str, titles: Iterable[str]
) -> AsyncIterator[str | None]:
    """Yield the entity id linked to each of `titles` on `site_name`.

    Ids come out in the order of `titles`, with ``None`` for a title no
    entity links to.
    """

    for batch in _batched(tuple(titles), site.options.query_limit):
        data = await site.invoke(
            "wbgetentities",
            {"sites": site_name, "titles": batch, "props": "sitelinks"},
        )
        found: dict[str, str] = {}
        for node in validate_contract(EntitiesResponse, data).entities.values():
            if "missing" in node:
                continue
            contract = parse_entity_json(node)
            link = (contract.sitelinks or {}).get(site_name)
            if link is not None:
                found[_normalize_title(link.title)] = contract.id
        for title in batch:
            yield found.get(_normalize_title(title))
