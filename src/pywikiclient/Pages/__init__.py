"""Wiki pages and parsed page content."""

from .models import (
    ContentCategoryInfo,
    ContentPropertyInfo,
    ContentSectionInfo,
    ContentTransclusionInfo,
    LanguageLinkInfo,
    ParsedContentInfo,
    ParserLimitReport,
    parse_parsed_content,
)
from .page import (
    ParsingOptions,
    WikiPage,
    parse_content,
    parse_page,
    parse_revision,
)

__all__ = (
    "ContentCategoryInfo",
    "ContentPropertyInfo",
    "ContentSectionInfo",
    "ContentTransclusionInfo",
    "LanguageLinkInfo",
    "ParsedContentInfo",
    "ParserLimitReport",
    "ParsingOptions",
    "WikiPage",
    "parse_content",
    "parse_page",
    "parse_parsed_content",
    "parse_revision",
)
