"""Pydantic models for page-related MediaWiki API responses.

``action=parse`` is requested in the default JSON format, where text nodes
come as ``{"*": ...}`` objects and booleans as presence markers (``""``).
The query, edit and move models are used with ``formatversion=2``. The
validators below accept both forms.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from ..site import validate_contract

__all__ = (
    "ContentRedirectInfo",
    "ContentPropertyInfo",
    "ContentSectionInfo",
    "ContentCategoryInfo",
    "ContentTransclusionInfo",
    "LanguageLinkInfo",
    "ParserLimitReport",
    "ParsedContentInfo",
    "ParseResponse",
    "RevisionSlot",
    "RevisionInfo",
    "QueryPage",
    "QueryResult",
    "QueryResponse",
    "EditResult",
    "EditResponse",
    "MoveResult",
    "MoveResponse",
    "parse_parsed_content",
)


def _star(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("*")
    return value


def _presence(value: Any) -> Any:
    # formatversion=1 marks true booleans with an empty string
    return True if value == "" else value


def _false_as_none(value: Any) -> Any:
    return None if value is False else value


_Star = BeforeValidator(_star)
_Flag = Annotated[bool, BeforeValidator(_presence)]


def _try_parse_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


class _Info(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


class ContentRedirectInfo(_Info):
    from_title: str = Field(alias="from")
    to: str
    to_fragment: str | None = Field(default=None, alias="tofragment")


class ContentPropertyInfo(_Info):
    """A page property set by the parser, e.g. ``wikibase_item``."""

    name: str
    value: str = Field(alias="*")

    def __str__(self):
        return f"{self.name}={self.value}"


class ContentSectionInfo(_Info):
    """A heading of the parsed page.

    `index` is usually a number; headings coming from transcluded templates
    have indices like ``T-1``. `byte_offset` is absent for such headings.
    """

    index: str
    heading: str = Field(alias="line")
    anchor: str
    number: str
    level: int
    toc_level: int = Field(alias="toclevel")
    page_title: Annotated[str | None, BeforeValidator(_false_as_none)] = Field(
        default=None, alias="fromtitle"
    )
    byte_offset: int | None = Field(default=None, alias="byteoffset")

    def __str__(self):
        return f"{self.page_title}#{self.heading}"


class ContentCategoryInfo(_Info):
    category_name: str = Field(alias="*")
    sort_key: str = Field(default="", alias="sortkey")
    is_hidden: _Flag = Field(default=False, alias="hidden")

    def __str__(self):
        if not self.sort_key:
            return self.category_name
        return f"{self.category_name}|{self.sort_key}"


class ContentTransclusionInfo(_Info):
    """A page, template or module transcluded into the parsed page."""

    title: str = Field(alias="*")
    namespace_id: int = Field(alias="ns")
    exists: _Flag = False

    def __str__(self):
        return self.title


class LanguageLinkInfo(_Info):
    language: str = Field(alias="lang")
    title: str = Field(alias="*")
    url: str | None = None
    language_name: str | None = Field(default=None, alias="langname")
    autonym: str | None = None


class ParserLimitReport(_Info):
    """One entry of the parser limit report.

    The API sends the report as a name followed by numerically indexed
    values. Every key other than ``name`` is kept in `content`; ``"0"`` is
    then read as `value` and ``"1"`` as `limit`. Values that do not parse
    as numbers become ``None``.
    """

    name: str
    value: float | None = None
    limit: float | None = None
    content: Mapping[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_content(cls, data: Any) -> Any:
        if not isinstance(data, Mapping) or "content" in data:
            return data
        content = {key: value for key, value in data.items() if key != "name"}
        return {
            "name": data.get("name"),
            "value": _try_parse_float(content.get("0")),
            "limit": _try_parse_float(content.get("1")),
            "content": content,
        }

    def __str__(self):
        ret = f"{self.name}: {'' if self.value is None else self.value}"
        if self.limit is not None:
            ret += f"/{self.limit}"
        return ret


class ParsedContentInfo(_Info):
    """Result of one ``action=parse`` call."""

    title: str
    display_title: str | None = Field(default=None, alias="displaytitle")
    page_id: int = Field(default=0, alias="pageid")
    revision_id: int = Field(default=0, alias="revid")
    content: Annotated[str | None, _Star] = Field(default=None, alias="text")
    summary: Annotated[str | None, _Star] = Field(default=None, alias="parsedsummary")
    language_links: tuple[LanguageLinkInfo, ...] = Field(default=(), alias="langlinks")
    categories: tuple[ContentCategoryInfo, ...] = ()
    sections: tuple[ContentSectionInfo, ...] = ()
    properties: tuple[ContentPropertyInfo, ...] = ()
    transcluded_pages: tuple[ContentTransclusionInfo, ...] = Field(
        default=(), alias="templates"
    )
    parser_limit_reports: tuple[ParserLimitReport, ...] = Field(
        default=(), alias="limitreportdata"
    )
    redirects: tuple[ContentRedirectInfo, ...] = ()


class ParseResponse(_Info):
    parse: ParsedContentInfo


class RevisionSlot(_Info):
    content: str | None = None
    contentmodel: str | None = None


class RevisionInfo(_Info):
    revid: int
    parentid: int | None = None
    timestamp: datetime | None = None
    user: str | None = None
    comment: str | None = None
    sha1: str | None = None
    slots: dict[str, RevisionSlot] = Field(default_factory=dict)


class QueryPage(_Info):
    pageid: int | None = None
    ns: int = 0
    title: str
    missing: _Flag = False
    invalid: _Flag = False
    contentmodel: str | None = None
    touched: datetime | None = None
    lastrevid: int | None = None
    length: int | None = None
    redirect: _Flag = False
    revisions: list[RevisionInfo] = Field(default_factory=list)


class QueryResult(_Info):
    pages: list[QueryPage] = Field(default_factory=list)
    redirects: list[ContentRedirectInfo] = Field(default_factory=list)


class QueryResponse(_Info):
    query: QueryResult


class EditResult(_Info):
    result: str
    pageid: int | None = None
    title: str | None = None
    newrevid: int | None = None
    oldrevid: int | None = None
    nochange: _Flag = False


class EditResponse(_Info):
    edit: EditResult


class MoveResult(_Info):
    from_title: str = Field(alias="from")
    to: str
    reason: str | None = None
    redirectcreated: _Flag = False


class MoveResponse(_Info):
    move: MoveResult


def parse_parsed_content(raw: Any) -> ParsedContentInfo:
    """Validate the ``parse`` node of a response, raising `SchemaMismatchError`."""
    return validate_contract(ParsedContentInfo, raw)
