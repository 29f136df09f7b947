"""Pydantic models for Wikibase API responses.

These models mirror the JSON returned by ``wbgetentities`` and
``wbeditentity``. Fields the models do not declare are kept in
``model_extra`` rather than dropped, so markers such as ``missing`` and
forward-compatible additions remain visible to the mapping layer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from ..site import validate_contract

__all__ = (
    "MonolingualTextContract",
    "SiteLinkContract",
    "DataValueContract",
    "SnakContract",
    "ReferenceContract",
    "ClaimContract",
    "EntityContract",
    "EntitiesResponse",
    "EditEntityResponse",
    "parse_entity_json",
)


class _Contract(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


def _empty_list_as_dict(value: Any) -> Any:
    # PHP serializes an empty associative array as `[]`
    if isinstance(value, list) and not value:
        return {}
    return value


_AsDict = BeforeValidator(_empty_list_as_dict)


class MonolingualTextContract(_Contract):
    """A ``{"language": ..., "value": ...}`` pair."""

    language: str
    value: str


class SiteLinkContract(_Contract):
    site: str
    title: str
    badges: list[str] = Field(default_factory=list)
    url: str | None = None


class DataValueContract(_Contract):
    value: Any
    type: str


class SnakContract(_Contract):
    snaktype: str
    property_id: str = Field(alias="property")
    hash: str | None = None
    datavalue: DataValueContract | None = None
    datatype: str | None = None


class ReferenceContract(_Contract):
    hash: str | None = None
    snaks: Annotated[dict[str, list[SnakContract]], _AsDict] = Field(
        default_factory=dict
    )
    snaks_order: list[str] = Field(default_factory=list, alias="snaks-order")


class ClaimContract(_Contract):
    id: str | None = None
    type: str = "statement"
    rank: str = "normal"
    mainsnak: SnakContract
    qualifiers: Annotated[dict[str, list[SnakContract]], _AsDict] = Field(
        default_factory=dict
    )
    qualifiers_order: list[str] = Field(default_factory=list, alias="qualifiers-order")
    references: list[ReferenceContract] = Field(default_factory=list)


class EntityContract(_Contract):
    """A single entity object.

    Only ``id`` is required: a ``missing`` entity carries little else, and
    the ``wbeditentity`` response omits ``pageid``, ``ns``, ``title`` and
    ``modified``.
    """

    id: str
    type: str | None = None
    datatype: str | None = None
    pageid: int | None = None
    ns: int | None = None
    title: str | None = None
    modified: datetime | None = None
    lastrevid: int | None = None
    labels: Annotated[dict[str, MonolingualTextContract] | None, _AsDict] = None
    descriptions: Annotated[dict[str, MonolingualTextContract] | None, _AsDict] = None
    aliases: Annotated[dict[str, list[MonolingualTextContract]] | None, _AsDict] = None
    sitelinks: Annotated[dict[str, SiteLinkContract] | None, _AsDict] = None
    claims: Annotated[dict[str, list[ClaimContract]] | None, _AsDict] = None

    @property
    def is_missing(self) -> bool:
        return "missing" in (self.model_extra or {})


class EntitiesResponse(_Contract):
    """Top-level ``wbgetentities`` response."""

    entities: dict[str, dict[str, Any]] = Field(default_factory=dict)
    success: int | None = None


class EditEntityResponse(_Contract):
    """Top-level ``wbeditentity`` response."""

    entity: dict[str, Any]
    success: int | None = None


def parse_entity_json(raw: Any) -> EntityContract:
    """Validate a raw entity node, raising `SchemaMismatchError` on a bad shape."""
    return validate_contract(EntityContract, raw)
