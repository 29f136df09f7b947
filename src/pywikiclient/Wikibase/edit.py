"""Turning local edits into ``wbeditentity`` change sets.

Edits are described either explicitly, as a sequence of
:class:`EntityEditEntry`, or implicitly, as a desired
:class:`~.snapshot.EntitySnapshot` compared against the current one by
:func:`diff_entities`. :func:`build_changes` classifies each entry into one
:class:`EntityChange` (keeping the caller's order) and
:func:`changes_to_data` serializes the result.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum, unique
from typing import Any, ClassVar, Final, final

from ..errors import InvalidEditTargetError
from .snapshot import EntitySnapshot, Fetched, fetched_or
from .values import (
    Claim,
    ClaimCollection,
    EntitySiteLink,
    EntitySiteLinkCollection,
    MonolingualText,
    MonolingualTextCollection,
    MonolingualTextsCollection,
)

__all__ = (
    "EntityEditProperty",
    "EditEntryState",
    "EntityChangeKind",
    "EntityEditEntry",
    "EntityChange",
    "build_changes",
    "diff_entities",
    "changes_to_data",
)


@final
@unique
class EntityEditProperty(StrEnum):
    __slots__: ClassVar = ()

    LABELS = "labels"
    DESCRIPTIONS = "descriptions"
    ALIASES = "aliases"
    SITE_LINKS = "sitelinks"
    CLAIMS = "claims"


@final
@unique
class EditEntryState(StrEnum):
    __slots__: ClassVar = ()

    UPDATED = "updated"
    REMOVED = "removed"


@final
@unique
class EntityChangeKind(StrEnum):
    __slots__: ClassVar = ()

    SET_LABEL = "set-label"
    REMOVE_LABEL = "remove-label"
    SET_DESCRIPTION = "set-description"
    REMOVE_DESCRIPTION = "remove-description"
    ADD_ALIAS = "add-alias"
    REMOVE_ALIAS = "remove-alias"
    SET_SITE_LINK = "set-sitelink"
    REMOVE_SITE_LINK = "remove-sitelink"
    ADD_CLAIM = "add-claim"
    UPDATE_CLAIM = "update-claim"
    REMOVE_CLAIM = "remove-claim"


_VALUE_TYPES: Final = {
    EntityEditProperty.LABELS: MonolingualText,
    EntityEditProperty.DESCRIPTIONS: MonolingualText,
    EntityEditProperty.ALIASES: MonolingualText,
    EntityEditProperty.SITE_LINKS: EntitySiteLink,
    EntityEditProperty.CLAIMS: Claim,
}

_KINDS: Final = {
    (EntityEditProperty.LABELS, EditEntryState.UPDATED): EntityChangeKind.SET_LABEL,
    (EntityEditProperty.LABELS, EditEntryState.REMOVED): EntityChangeKind.REMOVE_LABEL,
    (
        EntityEditProperty.DESCRIPTIONS,
        EditEntryState.UPDATED,
    ): EntityChangeKind.SET_DESCRIPTION,
    (
        EntityEditProperty.DESCRIPTIONS,
        EditEntryState.REMOVED,
    ): EntityChangeKind.REMOVE_DESCRIPTION,
    (EntityEditProperty.ALIASES, EditEntryState.UPDATED): EntityChangeKind.ADD_ALIAS,
    (
        EntityEditProperty.ALIASES,
        EditEntryState.REMOVED,
    ): EntityChangeKind.REMOVE_ALIAS,
    (
        EntityEditProperty.SITE_LINKS,
        EditEntryState.UPDATED,
    ): EntityChangeKind.SET_SITE_LINK,
    (
        EntityEditProperty.SITE_LINKS,
        EditEntryState.REMOVED,
    ): EntityChangeKind.REMOVE_SITE_LINK,
}


@final
@dataclass(frozen=True, slots=True)
class EntityEditEntry:
    """One requested change to an entity.

    For claims, `state` and the claim id decide the operation: no id means
    add, an id with ``UPDATED`` means update and an id with ``REMOVED``
    means delete.
    """

    property: EntityEditProperty
    value: MonolingualText | EntitySiteLink | Claim
    state: EditEntryState = EditEntryState.UPDATED

    def __post_init__(self):
        object.__setattr__(self, "property", EntityEditProperty(self.property))
        object.__setattr__(self, "state", EditEntryState(self.state))
        expected = _VALUE_TYPES[self.property]
        if not isinstance(self.value, expected):
            raise TypeError(
                f"{self.property} edits take {expected.__name__}, "
                f"got {type(self.value).__name__}"
            )


@final
@dataclass(frozen=True, slots=True)
class EntityChange:
    """A single API-level change operation."""

    kind: EntityChangeKind
    value: MonolingualText | EntitySiteLink | Claim

    def to_json(self) -> tuple[str, dict[str, Any]]:
        """Return the ``data`` group this change belongs to and its payload."""
        value = self.value
        match self.kind:
            case EntityChangeKind.SET_LABEL | EntityChangeKind.SET_DESCRIPTION:
                assert isinstance(value, MonolingualText)
                return _group_of(self.kind), value.to_json()
            case EntityChangeKind.REMOVE_LABEL | EntityChangeKind.REMOVE_DESCRIPTION:
                assert isinstance(value, MonolingualText)
                return _group_of(self.kind), {"language": value.language, "remove": ""}
            case EntityChangeKind.ADD_ALIAS:
                assert isinstance(value, MonolingualText)
                return "aliases", {**value.to_json(), "add": ""}
            case EntityChangeKind.REMOVE_ALIAS:
                assert isinstance(value, MonolingualText)
                return "aliases", {**value.to_json(), "remove": ""}
            case EntityChangeKind.SET_SITE_LINK:
                assert isinstance(value, EntitySiteLink)
                return "sitelinks", value.to_json()
            case EntityChangeKind.REMOVE_SITE_LINK:
                assert isinstance(value, EntitySiteLink)
                return "sitelinks", {"site": value.site, "title": "", "remove": ""}
            case EntityChangeKind.ADD_CLAIM | EntityChangeKind.UPDATE_CLAIM:
                assert isinstance(value, Claim)
                return "claims", value.to_json()
            case EntityChangeKind.REMOVE_CLAIM:
                assert isinstance(value, Claim)
                return "claims", {"id": value.id, "remove": ""}
        raise ValueError(self.kind)


def _group_of(kind: EntityChangeKind) -> str:
    return "labels" if kind.endswith("-label") else "descriptions"


def _classify(entry: EntityEditEntry) -> EntityChangeKind:
    if entry.property is not EntityEditProperty.CLAIMS:
        return _KINDS[entry.property, entry.state]
    claim = entry.value
    assert isinstance(claim, Claim)
    if entry.state is EditEntryState.REMOVED:
        if claim.id is None:
            raise InvalidEditTargetError(
                f"Cannot remove a claim on {claim.property_id} that has no id"
            )
        return EntityChangeKind.REMOVE_CLAIM
    if claim.id is None:
        return EntityChangeKind.ADD_CLAIM
    return EntityChangeKind.UPDATE_CLAIM


def _known(base: EntitySnapshot, group: str) -> Any:
    # an unsaved entity has nothing to update or remove
    if base.id is None:
        return _EMPTY[group]
    value = getattr(base, group)
    return value.value if isinstance(value, Fetched) else None


def _check_target(kind: EntityChangeKind, value: Any, base: EntitySnapshot) -> None:
    match kind:
        case EntityChangeKind.REMOVE_LABEL | EntityChangeKind.REMOVE_DESCRIPTION:
            group = _group_of(kind)
            known = _known(base, group)
            if known is not None and not known.contains_key(value.language):
                raise InvalidEditTargetError(
                    f"{base.id or 'New entity'} has no {group[:-1]} "
                    f"in '{value.language}'"
                )
        case EntityChangeKind.REMOVE_ALIAS:
            known = _known(base, "aliases")
            if known is not None and value not in known:
                raise InvalidEditTargetError(
                    f"{base.id or 'New entity'} has no alias {value.text!r} "
                    f"in '{value.language}'"
                )
        case EntityChangeKind.REMOVE_SITE_LINK:
            known = _known(base, "site_links")
            if known is not None and not known.contains_key(value.site):
                raise InvalidEditTargetError(
                    f"{base.id or 'New entity'} has no site link to '{value.site}'"
                )
        case EntityChangeKind.UPDATE_CLAIM | EntityChangeKind.REMOVE_CLAIM:
            known = _known(base, "claims")
            if known is None:
                return
            existing = next((claim for claim in known if claim.id == value.id), None)
            if existing is None:
                raise InvalidEditTargetError(
                    f"{base.id or 'New entity'} has no claim '{value.id}'"
                )
            if (
                kind is EntityChangeKind.UPDATE_CLAIM
                and existing.property_id != value.property_id
            ):
                raise InvalidEditTargetError(
                    f"Claim '{value.id}' is on {existing.property_id}, "
                    f"not {value.property_id}"
                )


def build_changes(
    entries: Iterable[EntityEditEntry], base: EntitySnapshot | None = None
) -> list[EntityChange]:
    """Classify `entries` into change operations, one per entry, in order.

    When `base` is given, every update or removal is checked against the
    groups `base` has fetched and :class:`InvalidEditTargetError` is raised
    for a target that does not exist. Groups `base` has not fetched are not
    checked.
    """

    changes: list[EntityChange] = []
    for entry in entries:
        kind = _classify(entry)
        if base is not None:
            _check_target(kind, entry.value, base)
        changes.append(EntityChange(kind, entry.value))
    return changes


_EMPTY: Final = {
    "labels": MonolingualTextCollection().freeze(),
    "descriptions": MonolingualTextCollection().freeze(),
    "aliases": MonolingualTextsCollection().freeze(),
    "site_links": EntitySiteLinkCollection().freeze(),
    "claims": ClaimCollection().freeze(),
}


def _same_site_link(a: EntitySiteLink | None, b: EntitySiteLink) -> bool:
    # the url is server-generated and only present when requested
    return a is not None and (a.site, a.title, a.badges) == (b.site, b.title, b.badges)


def diff_entities(
    current: EntitySnapshot, desired: EntitySnapshot
) -> list[EntityEditEntry]:
    """Return the entries that turn `current` into `desired`.

    Only groups fetched in `desired` are compared; a group `current` has not
    fetched counts as empty. A desired claim carrying an id `current` does
    not know raises :class:`InvalidEditTargetError`.
    """

    entries: list[EntityEditEntry] = []
    for group, prop in (
        ("labels", EntityEditProperty.LABELS),
        ("descriptions", EntityEditProperty.DESCRIPTIONS),
    ):
        want = getattr(desired, group)
        if not isinstance(want, Fetched):
            continue
        have = fetched_or(getattr(current, group), _EMPTY[group])
        entries.extend(
            EntityEditEntry(prop, text)
            for text in want.value
            if have.get(text.language) != text
        )
        entries.extend(
            EntityEditEntry(prop, text, EditEntryState.REMOVED)
            for text in have
            if not want.value.contains_key(text.language)
        )
    if isinstance(desired.aliases, Fetched):
        want_aliases = desired.aliases.value
        have_aliases = fetched_or(current.aliases, _EMPTY["aliases"])
        entries.extend(
            EntityEditEntry(EntityEditProperty.ALIASES, alias)
            for alias in want_aliases
            if alias not in have_aliases
        )
        entries.extend(
            EntityEditEntry(EntityEditProperty.ALIASES, alias, EditEntryState.REMOVED)
            for alias in have_aliases
            if alias not in want_aliases
        )
    if isinstance(desired.site_links, Fetched):
        want_links = desired.site_links.value
        have_links = fetched_or(current.site_links, _EMPTY["site_links"])
        entries.extend(
            EntityEditEntry(EntityEditProperty.SITE_LINKS, link)
            for link in want_links
            if not _same_site_link(have_links.get(link.site), link)
        )
        entries.extend(
            EntityEditEntry(
                EntityEditProperty.SITE_LINKS, link, EditEntryState.REMOVED
            )
            for link in have_links
            if not want_links.contains_key(link.site)
        )
    if isinstance(desired.claims, Fetched):
        entries.extend(
            _diff_claims(
                fetched_or(current.claims, _EMPTY["claims"]), desired.claims.value
            )
        )
    return entries


def _diff_claims(
    have: Iterable[Claim], want: Iterable[Claim]
) -> Sequence[EntityEditEntry]:
    known = {claim.id: claim for claim in have if claim.id is not None}
    entries: list[EntityEditEntry] = []
    wanted_ids: set[str] = set()
    for claim in want:
        if claim.id is None:
            entries.append(EntityEditEntry(EntityEditProperty.CLAIMS, claim))
            continue
        wanted_ids.add(claim.id)
        existing = known.get(claim.id)
        if existing is None:
            raise InvalidEditTargetError(f"Unknown claim '{claim.id}'")
        if existing != claim:
            entries.append(EntityEditEntry(EntityEditProperty.CLAIMS, claim))
    entries.extend(
        EntityEditEntry(EntityEditProperty.CLAIMS, claim, EditEntryState.REMOVED)
        for claim_id, claim in known.items()
        if claim_id not in wanted_ids
    )
    return entries


def changes_to_data(changes: Iterable[EntityChange]) -> dict[str, list[dict[str, Any]]]:
    """Serialize `changes` into the ``data`` parameter of ``wbeditentity``.

    The list form of each group is used so that several changes to the same
    language, site or property are sent in the given order.
    """

    data: dict[str, list[dict[str, Any]]] = {}
    for change in changes:
        group, payload = change.to_json()
        data.setdefault(group, []).append(payload)
    return data
