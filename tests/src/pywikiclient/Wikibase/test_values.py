"""Tests for Wikibase value types and their collections."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pywikiclient.errors import CollectionReadOnlyError, DuplicateKeyError
from pywikiclient.Wikibase.models import ClaimContract, SiteLinkContract
from pywikiclient.Wikibase.values import (
    Claim,
    ClaimCollection,
    ClaimRank,
    ClaimReference,
    EntitySiteLink,
    EntitySiteLinkCollection,
    MonolingualText,
    MonolingualTextsCollection,
    Snak,
    SnakType,
)

__all__ = ()


def _item_claim(property_id: str, target: str, id: str | None = None) -> Claim:
    return Claim(
        Snak.with_value(
            property_id,
            "wikibase-entityid",
            {"entity-type": "item", "id": target},
            "wikibase-item",
        ),
        id,
    )


def test_site_link_badges_round_trip_in_order() -> None:
    link = EntitySiteLink("enwiki", "Douglas Adams", ["b1", "b2"])
    restored = EntitySiteLink.from_contract(
        SiteLinkContract.model_validate(link.to_json())
    )
    assert restored == link
    assert list(restored.badges) == ["b1", "b2"]


def test_site_link_badges_are_read_only() -> None:
    source = ["b1", "b2"]
    link = EntitySiteLink("enwiki", "Douglas Adams", source)
    source.append("b3")
    assert link.badges == ("b1", "b2")
    with pytest.raises(AttributeError):
        link.badges.append("b3")  # type: ignore[attr-defined]
    with pytest.raises(TypeError):
        link.badges[0] = "b0"  # type: ignore[index]


def test_site_link_badges_default_to_empty() -> None:
    assert EntitySiteLink("enwiki", "A").badges == ()
    assert EntitySiteLink("enwiki", "A", None).badges == ()  # type: ignore[arg-type]


@given(st.lists(st.text(min_size=1, max_size=8), max_size=5))
def test_site_link_json_preserves_badges(badges: list[str]) -> None:
    assert EntitySiteLink("enwiki", "A", badges).to_json()["badges"] == badges


def test_claim_collection_keeps_order_under_one_property() -> None:
    c1 = _item_claim("P31", "Q5", "Q42$1")
    c2 = _item_claim("P31", "Q215627", "Q42$2")
    claims = ClaimCollection([c1, _item_claim("P106", "Q36180"), c2])
    assert claims["P31"] == (c1, c2)
    assert claims.freeze()["P31"] == (c1, c2)


def test_frozen_site_links_reject_mutation() -> None:
    links = EntitySiteLinkCollection([EntitySiteLink("enwiki", "A")])
    with pytest.raises(DuplicateKeyError):
        links.add(EntitySiteLink("enwiki", "B"))
    frozen = links.freeze()
    with pytest.raises(CollectionReadOnlyError):
        frozen.add(EntitySiteLink("dewiki", "A"))


def test_aliases_are_multi_valued_per_language() -> None:
    aliases = MonolingualTextsCollection(
        [MonolingualText("en", "DNA"), MonolingualText("en", "Douglas Noel Adams")]
    )
    assert [alias.text for alias in aliases["en"]] == ["DNA", "Douglas Noel Adams"]


def test_value_snak_requires_a_data_value() -> None:
    with pytest.raises(ValueError):
        Snak("P31")
    assert Snak("P31", "novalue").snak_type is SnakType.NO_VALUE


def test_snak_hash_does_not_affect_equality() -> None:
    assert Snak("P31", SnakType.SOME_VALUE, hash="a") == Snak(
        "P31", SnakType.SOME_VALUE, hash="b"
    )


def test_claim_from_contract_follows_qualifier_order(make_claim) -> None:
    raw = make_claim("Q1$1", "P31", "Q5")
    raw["rank"] = "preferred"
    raw["qualifiers"] = {
        "P580": [{"snaktype": "somevalue", "property": "P580"}],
        "P582": [{"snaktype": "novalue", "property": "P582"}],
    }
    raw["qualifiers-order"] = ["P582", "P580"]
    claim = Claim.from_contract(ClaimContract.model_validate(raw))
    assert claim.id == "Q1$1"
    assert claim.rank is ClaimRank.PREFERRED
    assert [q.property_id for q in claim.qualifiers] == ["P582", "P580"]
    assert claim.main_snak.data_value is not None
    assert claim.main_snak.data_value.value["id"] == "Q5"


def test_claim_to_json() -> None:
    claim = Claim(
        Snak.with_value("P1082", "quantity", {"amount": "+5"}, "quantity"),
        qualifiers=[Snak("P585", SnakType.SOME_VALUE)],
        references=[ClaimReference([Snak("P248", SnakType.NO_VALUE)])],
    )
    data = claim.to_json()
    assert "id" not in data
    assert data["mainsnak"]["datavalue"] == {
        "value": {"amount": "+5"},
        "type": "quantity",
    }
    assert data["qualifiers-order"] == ["P585"]
    assert data["references"][0]["snaks-order"] == ["P248"]
    assert data["rank"] == "normal"
