"""Tests for `WikiPage` and the parse helpers against a fake session."""

from datetime import datetime, timezone
from typing import Any

import pytest

from pywikiclient.errors import ApiError
from pywikiclient.Pages.page import (
    ParsingOptions,
    WikiPage,
    parse_content,
    parse_page,
    parse_revision,
)
from pywikiclient.site import WikiSite

__all__ = ()

_TOKEN = {"query": {"tokens": {"csrftoken": "abc+\\"}}}


def _parsed(title: str = "Sandbox") -> dict[str, Any]:
    return {"parse": {"title": title, "pageid": 7, "text": {"*": "<p>Hi</p>"}}}


def _query(*pages: dict[str, Any], **query: Any) -> dict[str, Any]:
    return {"batchcomplete": True, "query": {"pages": list(pages), **query}}


def _existing(**overrides: Any) -> dict[str, Any]:
    ret: dict[str, Any] = {
        "pageid": 7,
        "ns": 0,
        "title": "Sandbox",
        "contentmodel": "wikitext",
        "touched": "2024-01-02T03:04:05Z",
        "lastrevid": 99,
        "length": 12,
    }
    ret.update(overrides)
    return ret


def test_empty_title_is_rejected(site: WikiSite) -> None:
    with pytest.raises(ValueError):
        WikiPage(site, " ")


@pytest.mark.asyncio
async def test_parse_page_params(fake_session, site: WikiSite) -> None:
    fake_session.queue(_parsed())
    info = await parse_page(
        site,
        "Sandbox",
        ParsingOptions.LIMIT_REPORT
        | ParsingOptions.TRANSCLUDED_PAGES
        | ParsingOptions.FOLLOW_REDIRECTS,
        "de",
    )
    assert info.content == "<p>Hi</p>"
    request = fake_session.requests[0]
    assert request.method == "GET"
    assert request.params["action"] == "parse"
    assert request.params["page"] == "Sandbox"
    assert request.params["prop"] == (
        "text|langlinks|categories|sections|revid|displaytitle|properties"
        "|templates|limitreportdata"
    )
    assert request.params["redirects"] == ""
    assert request.params["uselang"] == "de"
    assert "disabletoc" not in request.params
    assert "effectivelanglinks" not in request.params


@pytest.mark.asyncio
async def test_parse_revision_uses_oldid(fake_session, site: WikiSite) -> None:
    fake_session.queue(_parsed())
    await parse_revision(site, 99, ParsingOptions.DISABLE_TOC)
    params = fake_session.requests[0].params
    assert params["oldid"] == "99"
    assert params["disabletoc"] == ""
    assert "templates" not in params["prop"].split("|")


@pytest.mark.asyncio
async def test_parse_content_is_posted(fake_session, site: WikiSite) -> None:
    fake_session.queue(
        {
            "parse": {
                "title": "API",
                "text": {"*": "<p>x</p>"},
                "parsedsummary": {"*": "<a>link</a>"},
            }
        }
    )
    info = await parse_content(
        site, "'''x'''", content_model="wikitext", summary="[[link]]"
    )
    request = fake_session.requests[0]
    assert request.method == "POST"
    assert request.params["text"] == "'''x'''"
    assert request.params["contentmodel"] == "wikitext"
    assert "title" not in request.params
    assert info.summary == "<a>link</a>"
    assert info.page_id == 0


@pytest.mark.asyncio
async def test_refresh_existing_page(fake_session, site: WikiSite) -> None:
    page = WikiPage(site, "Sandbox")
    fake_session.queue(
        _query(
            _existing(
                revisions=[
                    {
                        "revid": 99,
                        "timestamp": "2024-01-02T03:04:05Z",
                        "slots": {
                            "main": {
                                "contentmodel": "wikitext",
                                "content": "Hello '''world'''",
                            }
                        },
                    }
                ]
            )
        )
    )
    await page.refresh(fetch_content=True)
    params = fake_session.requests[0].params
    assert params["prop"] == "info|revisions"
    assert params["rvprop"] == "ids|timestamp|content"
    assert params["rvslots"] == "main"
    assert params["formatversion"] == "2"
    assert page.exists
    assert not page.is_redirect
    assert page.page_id == 7
    assert page.last_revision_id == 99
    assert page.last_touched == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert page.content_model == "wikitext"
    assert page.content_length == 12
    assert page.content == "Hello '''world'''"


@pytest.mark.asyncio
async def test_refresh_missing_page(fake_session, site: WikiSite) -> None:
    page = WikiPage(site, "sandbox")
    page.content = "draft"
    fake_session.queue(_query({"ns": 0, "title": "Sandbox", "missing": True}))
    await page.refresh()
    assert fake_session.requests[0].params["prop"] == "info"
    assert page.title == "Sandbox"
    assert not page.exists
    assert page.page_id == 0
    assert page.content == "draft"


@pytest.mark.asyncio
async def test_refresh_after_deletion_clears_page_fields(
    fake_session, site: WikiSite
) -> None:
    page = WikiPage(site, "Sandbox")
    fake_session.queue(
        _query(_existing()),
        _query({"ns": 0, "title": "Sandbox", "missing": True}),
    )
    await page.refresh()
    assert page.exists
    assert page.content_model == "wikitext"
    await page.refresh()
    assert not page.exists
    assert page.page_id == 0
    assert page.last_revision_id == 0
    assert page.last_touched is None
    assert page.content_model is None
    assert page.content_length == 0


@pytest.mark.asyncio
async def test_refresh_resolves_redirect_target(fake_session, site: WikiSite) -> None:
    page = WikiPage(site, "Sand box")
    fake_session.queue(
        _query(_existing(title="Sand box", redirect=True)),
        _query(
            _existing(),
            redirects=[{"from": "Sand box", "to": "Sandbox", "tofragment": "Top"}],
        ),
    )
    await page.refresh()
    assert page.is_redirect
    assert page.redirect_target == "Sandbox"
    assert page.title == "Sand box"
    second = fake_session.requests[1].params
    assert second["titles"] == "Sand box"
    assert second["redirects"] == ""


@pytest.mark.asyncio
async def test_failed_refresh_leaves_page_untouched(
    fake_session, site: WikiSite
) -> None:
    page = WikiPage(site, "Sand box")
    fake_session.queue(
        _query(_existing(title="Sand box", redirect=True)),
        {"error": {"code": "ratelimited", "info": "Slow down"}},
    )
    with pytest.raises(ApiError):
        await page.refresh()
    assert not page.exists
    assert not page.is_redirect
    assert page.page_id == 0


@pytest.mark.asyncio
async def test_refresh_without_pages_fails(fake_session, site: WikiSite) -> None:
    fake_session.queue(_query())
    with pytest.raises(ApiError) as info:
        await WikiPage(site, "Sandbox").refresh()
    assert info.value.code == "nopage"


@pytest.mark.asyncio
async def test_update_content(fake_session, site: WikiSite) -> None:
    page = WikiPage(site, "Sandbox")
    page.last_revision_id = 99
    page.content = "New text"
    fake_session.queue(
        _TOKEN,
        {
            "edit": {
                "result": "Success",
                "pageid": 7,
                "title": "Sandbox",
                "oldrevid": 99,
                "newrevid": 100,
            }
        },
    )
    assert await page.update_content("tidy", minor=True)
    request = fake_session.requests[-1]
    assert request.method == "POST"
    assert request.params["action"] == "edit"
    assert request.params["text"] == "New text"
    assert request.params["summary"] == "tidy"
    assert request.params["minor"] == ""
    assert "notminor" not in request.params
    assert request.params["bot"] == ""
    assert request.params["baserevid"] == "99"
    assert list(request.params)[-1] == "token"
    assert page.exists
    assert page.page_id == 7
    assert page.last_revision_id == 100


@pytest.mark.asyncio
async def test_update_content_without_change(fake_session, site: WikiSite) -> None:
    page = WikiPage(site, "Sandbox")
    page.content = "Same"
    fake_session.queue(
        _TOKEN,
        {
            "edit": {
                "result": "Success",
                "pageid": 7,
                "title": "Sandbox",
                "nochange": True,
            }
        },
    )
    assert not await page.update_content("noop", bot=False)
    params = fake_session.requests[-1].params
    assert params["notminor"] == ""
    assert "bot" not in params
    assert "baserevid" not in params
    assert page.last_revision_id == 0


@pytest.mark.asyncio
async def test_update_content_failure(fake_session, site: WikiSite) -> None:
    page = WikiPage(site, "Sandbox")
    page.content = "Spam"
    fake_session.queue(
        _TOKEN,
        {"edit": {"result": "Failure", "spamblacklist": "example.com"}},
    )
    with pytest.raises(ApiError) as info:
        await page.update_content("spam")
    assert info.value.code == "editfailure"
    assert info.value.details["spamblacklist"] == "example.com"


@pytest.mark.asyncio
async def test_update_content_requires_content(fake_session, site: WikiSite) -> None:
    with pytest.raises(ValueError):
        await WikiPage(site, "Sandbox").update_content("empty")
    assert fake_session.requests == []


@pytest.mark.asyncio
async def test_move(fake_session, site: WikiSite) -> None:
    page = WikiPage(site, "Sandbox")
    fake_session.queue(
        _TOKEN,
        {
            "move": {
                "from": "Sandbox",
                "to": "Sandbox/Old",
                "reason": "archive",
                "redirectcreated": False,
            }
        },
    )
    await page.move("Sandbox/Old", "archive", leave_redirect=False)
    params = fake_session.requests[-1].params
    assert params["from"] == "Sandbox"
    assert params["to"] == "Sandbox/Old"
    assert params["noredirect"] == ""
    assert params["movetalk"] == ""
    assert "movesubpages" not in params
    assert page.title == "Sandbox/Old"


@pytest.mark.asyncio
async def test_page_parse_uses_current_title(fake_session, site: WikiSite) -> None:
    page = WikiPage(site, "Sandbox")
    fake_session.queue(_parsed())
    info = await page.parse(ParsingOptions.EFFECTIVE_LANGUAGE_LINKS, "fr")
    params = fake_session.requests[0].params
    assert params["page"] == "Sandbox"
    assert params["effectivelanglinks"] == ""
    assert params["uselang"] == "fr"
    assert info.title == "Sandbox"
