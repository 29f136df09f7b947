"""Tests for the pydantic wire contracts of Wikibase responses."""

from datetime import datetime, timezone

import pytest

from pywikiclient.errors import SchemaMismatchError
from pywikiclient.Wikibase.models import (
    ClaimContract,
    EntitiesResponse,
    parse_entity_json,
)

__all__ = ()


def test_full_entity_node(make_entity) -> None:
    contract = parse_entity_json(make_entity("Q42"))
    assert contract.id == "Q42"
    assert contract.pageid == 138
    assert contract.modified == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert contract.labels is not None
    assert contract.labels["en"].value == "Douglas Adams"
    assert contract.sitelinks is not None
    assert contract.sitelinks["enwiki"].badges == ["Q17437796"]
    assert contract.claims is not None
    assert contract.claims["P31"][0].mainsnak.property_id == "P31"
    assert not contract.is_missing


def test_empty_php_arrays_become_empty_maps(make_entity) -> None:
    contract = parse_entity_json(
        make_entity(
            "Q1", labels=[], descriptions=[], aliases=[], sitelinks=[], claims=[]
        )
    )
    assert contract.labels == {}
    assert contract.descriptions == {}
    assert contract.aliases == {}
    assert contract.sitelinks == {}
    assert contract.claims == {}


def test_missing_marker_and_unknown_fields_are_kept() -> None:
    contract = parse_entity_json({"id": "Q404", "missing": "", "lexicalCategory": "Q1"})
    assert contract.is_missing
    assert contract.model_extra == {"missing": "", "lexicalCategory": "Q1"}


def test_entity_without_id_is_a_schema_mismatch() -> None:
    with pytest.raises(SchemaMismatchError):
        parse_entity_json({"type": "item", "labels": {}})


def test_malformed_claim_is_a_schema_mismatch(make_entity) -> None:
    with pytest.raises(SchemaMismatchError):
        parse_entity_json(make_entity("Q1", claims={"P31": [{"id": "Q1$1"}]}))


def test_claim_aliases_and_orders(make_claim) -> None:
    raw = make_claim("Q1$1", "P31", "Q5")
    raw["qualifiers"] = {
        "P580": [{"snaktype": "somevalue", "property": "P580"}],
        "P582": [{"snaktype": "novalue", "property": "P582"}],
    }
    raw["qualifiers-order"] = ["P582", "P580"]
    raw["references"] = [{"hash": "r1", "snaks": [], "snaks-order": []}]
    claim = ClaimContract.model_validate(raw)
    assert claim.qualifiers_order == ["P582", "P580"]
    assert claim.qualifiers["P580"][0].snaktype == "somevalue"
    assert claim.references[0].snaks == {}


def test_entities_response_keeps_raw_nodes() -> None:
    response = EntitiesResponse.model_validate(
        {"entities": {"Q1": {"id": "Q1", "missing": ""}}, "success": 1}
    )
    assert response.entities["Q1"] == {"id": "Q1", "missing": ""}
