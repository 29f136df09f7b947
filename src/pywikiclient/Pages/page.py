"""Wiki pages and the parser API.

:class:`WikiPage` covers the page operations the rest of the client needs:
reading page info and content, saving new content, and moving. The parse
helpers wrap ``action=parse`` and return a
:class:`~.models.ParsedContentInfo`.
"""

from datetime import datetime
from enum import IntFlag, unique
from typing import Any, ClassVar, final

from ..errors import ApiError
from ..meta import LOGGER
from ..site import WikiSite, validate_contract
from .models import (
    EditResponse,
    MoveResponse,
    ParsedContentInfo,
    ParseResponse,
    QueryResponse,
)

__all__ = (
    "ParsingOptions",
    "WikiPage",
    "parse_page",
    "parse_revision",
    "parse_content",
)


@final
@unique
class ParsingOptions(IntFlag):
    """Extra output requested from ``action=parse``."""

    __slots__: ClassVar = ()

    NONE = 0
    LIMIT_REPORT = 0x1
    TRANSCLUDED_PAGES = 0x2
    EFFECTIVE_LANGUAGE_LINKS = 0x4
    FOLLOW_REDIRECTS = 0x8
    DISABLE_TOC = 0x10


_BASE_PARSE_PROPS = (
    "text",
    "langlinks",
    "categories",
    "sections",
    "revid",
    "displaytitle",
    "properties",
)


def _parse_params(options: ParsingOptions, language: str | None) -> dict[str, Any]:
    props = list(_BASE_PARSE_PROPS)
    if ParsingOptions.TRANSCLUDED_PAGES in options:
        props.append("templates")
    if ParsingOptions.LIMIT_REPORT in options:
        props.append("limitreportdata")
    return {
        "prop": props,
        "redirects": ParsingOptions.FOLLOW_REDIRECTS in options,
        "effectivelanglinks": ParsingOptions.EFFECTIVE_LANGUAGE_LINKS in options,
        "disabletoc": ParsingOptions.DISABLE_TOC in options,
        "uselang": language,
    }


async def _parse(
    site: WikiSite,
    target: dict[str, Any],
    options: ParsingOptions,
    language: str | None,
    *,
    post: bool = False,
) -> ParsedContentInfo:
    data = await site.invoke(
        "parse", {**target, **_parse_params(options, language)}, post=post
    )
    return validate_contract(ParseResponse, data).parse


async def parse_page(
    site: WikiSite,
    title: str,
    options: ParsingOptions = ParsingOptions.NONE,
    language: str | None = None,
) -> ParsedContentInfo:
    """Parse the latest revision of the page `title`."""
    return await _parse(site, {"page": title}, options, language)


async def parse_revision(
    site: WikiSite,
    revision_id: int,
    options: ParsingOptions = ParsingOptions.NONE,
    language: str | None = None,
) -> ParsedContentInfo:
    return await _parse(site, {"oldid": revision_id}, options, language)


async def parse_content(
    site: WikiSite,
    text: str,
    title: str | None = None,
    options: ParsingOptions = ParsingOptions.NONE,
    language: str | None = None,
    *,
    content_model: str | None = None,
    summary: str | None = None,
) -> ParsedContentInfo:
    """Parse arbitrary wikitext as if it were the content of `title`.

    The text is POSTed, so it may be longer than a URL allows. `summary`
    is parsed as an edit summary and returned in
    :attr:`~.models.ParsedContentInfo.summary`.
    """

    return await _parse(
        site,
        {
            "text": text,
            "title": title,
            "contentmodel": content_model,
            "summary": summary,
        },
        options,
        language,
        post=True,
    )


class WikiPage:
    """A page on a MediaWiki site, identified by its title.

    Set :attr:`content` and call :meth:`update_content` to save. Page info
    is only as fresh as the last :meth:`refresh`, edit or move.
    """

    def __init__(self, site: WikiSite, title: str):
        if not title.strip():
            raise ValueError("Page title must not be empty")
        self.site = site
        self.title = title
        self.page_id = 0
        self.namespace_id = 0
        self.exists = False
        self.is_redirect = False
        self.redirect_target: str | None = None
        self.last_revision_id = 0
        self.last_touched: datetime | None = None
        self.content_model: str | None = None
        self.content: str | None = None
        self.content_length = 0

    def __str__(self):
        return self.title

    def __repr__(self):
        return f"{type(self).__name__}({self.site!r}, {self.title!r})"

    async def refresh(self, fetch_content: bool = False) -> None:
        """Reload page info, and the latest content when `fetch_content`.

        For a redirect page, a second request resolves
        :attr:`redirect_target`. Nothing is assigned until both requests
        have completed.
        """

        params: dict[str, Any] = {
            "prop": ("info", "revisions") if fetch_content else "info",
            "titles": self.title,
            "formatversion": 2,
        }
        if fetch_content:
            params.update(rvprop=("ids", "timestamp", "content"), rvslots="main")
        data = await self.site.invoke("query", params)
        pages = validate_contract(QueryResponse, data).query.pages
        if not pages:
            raise ApiError("nopage", f"No page information for '{self.title}'")
        page = pages[0]
        redirect_target = None
        if page.redirect and not page.missing:
            data = await self.site.invoke(
                "query", {"titles": page.title, "redirects": True, "formatversion": 2}
            )
            redirects = validate_contract(QueryResponse, data).query.redirects
            redirect_target = redirects[0].to if redirects else None

        self.title = page.title
        self.namespace_id = page.ns
        self.redirect_target = redirect_target
        if page.missing or page.invalid:
            LOGGER.info(f"Page '{page.title}' does not exist")
            self.page_id = 0
            self.exists = False
            self.is_redirect = False
            self.last_revision_id = 0
            self.last_touched = None
            self.content_model = None
            self.content_length = 0
            if fetch_content:
                self.content = None
            return
        self.page_id = page.pageid or 0
        self.exists = True
        self.is_redirect = page.redirect
        self.last_revision_id = page.lastrevid or 0
        self.last_touched = page.touched
        self.content_model = page.contentmodel
        self.content_length = page.length or 0
        if fetch_content:
            slot = page.revisions[0].slots.get("main") if page.revisions else None
            self.content = None if slot is None else slot.content

    async def update_content(
        self, summary: str, *, minor: bool = False, bot: bool = True
    ) -> bool:
        """Save :attr:`content` to the site.

        The edit is based on :attr:`last_revision_id`, so a conflicting
        edit by someone else fails with an ``editconflict`` API error.
        Returns ``False`` when the content was already current.
        """

        if self.content is None:
            raise ValueError(f"No content to save for '{self.title}'")
        data = await self.site.invoke_with_token(
            "edit",
            {
                "title": self.title,
                "text": self.content,
                "summary": summary,
                "minor": minor,
                "notminor": not minor,
                "bot": bot,
                "baserevid": self.last_revision_id or None,
                "formatversion": 2,
            },
        )
        result = validate_contract(EditResponse, data).edit
        if result.result != "Success":
            raise ApiError(
                "editfailure",
                f"Editing '{self.title}' returned '{result.result}'",
                data["edit"],
            )
        if result.nochange:
            LOGGER.info(f"No change to '{self.title}'")
            return False
        LOGGER.info(f"Saved '{self.title}' as revision {result.newrevid}")
        self.exists = True
        self.page_id = result.pageid or self.page_id
        self.last_revision_id = result.newrevid or self.last_revision_id
        return True

    async def move(
        self,
        new_title: str,
        reason: str | None = None,
        *,
        leave_redirect: bool = True,
        move_talk: bool = True,
        move_subpages: bool = False,
    ) -> None:
        """Move this page to `new_title` and follow it there."""

        data = await self.site.invoke_with_token(
            "move",
            {
                "from": self.title,
                "to": new_title,
                "reason": reason,
                "noredirect": not leave_redirect,
                "movetalk": move_talk,
                "movesubpages": move_subpages,
                "formatversion": 2,
            },
        )
        result = validate_contract(MoveResponse, data).move
        LOGGER.info(f"Moved '{result.from_title}' to '{result.to}'")
        self.title = result.to

    async def parse(
        self,
        options: ParsingOptions = ParsingOptions.NONE,
        language: str | None = None,
    ) -> ParsedContentInfo:
        return await parse_page(self.site, self.title, options, language)
