"""Page parsing implementation.

This module implements the ``Pages`` CLI subcommand: it parses the requested
pages and prints their section outlines, or their rendered text converted to
plain text. It provides a top-level `main` coroutine and a `parser` factory.
"""

from argparse import ONE_OR_MORE, ArgumentParser, Namespace
from asyncio import gather
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import wraps
from sys import exit
from typing import final

from anyio import Path
from html2text import HTML2Text
from yarl import URL

from ..cli import ExitCode, handle_partial_errors
from ..meta import LOGGER, OPEN_TEXT_OPTIONS, VERSION
from ..site import SiteOptions, WikiSite
from .models import ParsedContentInfo
from .page import ParsingOptions, parse_page

__all__ = (
    "ExitCode",
    "Args",
    "main",
    "parser",
)


@final
@dataclass(
    init=True,
    repr=True,
    eq=True,
    order=False,
    unsafe_hash=False,
    frozen=True,
    match_args=True,
    kw_only=True,
    slots=True,
)
class Args:
    """Immutable container for parsed CLI arguments.

    Attributes:
        endpoint: URL of the ``api.php`` endpoint
        titles: page titles to parse
        text: if True, output plain text instead of section outlines
        output: optional output path; results are printed otherwise
        ignore_individual_errors: if True, continue on individual page errors
        site_options: transport configuration
    """

    endpoint: URL
    titles: Sequence[str]
    text: bool
    output: Path | None
    ignore_individual_errors: bool
    site_options: SiteOptions = field(default_factory=SiteOptions)

    def __post_init__(self):
        object.__setattr__(self, "titles", tuple(self.titles))


def _outline(info: ParsedContentInfo) -> str:
    """Format the title and the indented section headings of a parsed page."""
    lines = [info.title]
    for section in info.sections:
        indent = "  " * section.toc_level
        lines.append(f"{indent}{section.number} {section.heading}")
    return "\n".join(lines)


def _plain_text(info: ParsedContentInfo) -> str:
    """Convert the rendered HTML of a parsed page to Markdown-like plain text."""

    htm2txt = HTML2Text()
    htm2txt.body_width = 0
    htm2txt.emphasis_mark = "_"
    htm2txt.ignore_images = True
    htm2txt.ignore_links = True
    htm2txt.strong_mark = "__"
    htm2txt.ul_item_mark = "-"

    body = htm2txt.handle(info.content or "").strip()
    return f"# {info.title}\n\n{body}"


async def main(args: Args):
    """Primary coroutine implementing the parse-output flow.

    Executes the following steps:
    1. Parse every requested page, following redirects.
    2. Print the outline or plain text of each page, or write them all to
       `args.output`.

    On error, the function will log and set appropriate `ExitCode` flags before
    calling `sys.exit` with the resulting exit code.
    """

    ec = ExitCode(0)

    try:
        titles = tuple(dict.fromkeys(args.titles))
        async with WikiSite(args.endpoint, options=args.site_options) as site:
            try:
                LOGGER.info(f"Parsing {len(titles)} pages")
                results = await gather(
                    *(
                        parse_page(site, title, ParsingOptions.FOLLOW_REDIRECTS)
                        for title in titles
                    ),
                    return_exceptions=True,
                )
                error, infos = handle_partial_errors(
                    results,
                    ignore_individual_errors=args.ignore_individual_errors,
                    error_message="Error parsing",
                )
                if error:
                    ec |= ExitCode.QUERY_ERROR_PARTIAL
            except Exception:
                LOGGER.exception("Error parsing")
                ec |= ExitCode.QUERY_ERROR
                raise
        try:
            render = _plain_text if args.text else _outline
            text = "\n\n".join(map(render, infos))
            if args.output is None:
                print(text)
            else:
                LOGGER.info(f"Writing {len(infos)} pages to '{args.output}'")
                await args.output.parent.mkdir(parents=True, exist_ok=True)
                async with await args.output.open(
                    mode="wt", **OPEN_TEXT_OPTIONS
                ) as file:
                    await file.write(text + "\n")
        except Exception:
            LOGGER.exception("Error writing output")
            ec |= ExitCode.OUTPUT_ERROR
            raise
    except Exception:
        LOGGER.exception("Error")
        ec |= ExitCode.GENERIC_ERROR

    exit(ec)


def parser(parent: Callable[..., ArgumentParser] | None = None):
    """Return an argparse parser configured for the Pages subcommand.

    When embedded, `parent` can be a callable that produces an `ArgumentParser`.
    """

    prog = __package__ or __name__

    parser = (ArgumentParser if parent is None else parent)(
        prog=f"python -m {prog}",
        description="parse wiki pages",
        add_help=True,
        allow_abbrev=False,
        exit_on_error=False,
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"{prog} v{VERSION}",
        help="print version and exit",
    )
    parser.add_argument(
        "-e",
        "--endpoint",
        action="store",
        type=URL,
        required=True,
        help="URL of the api.php endpoint",
    )
    parser.add_argument(
        "--text",
        action="store_true",
        default=False,
        help="output plain text instead of section outlines",
    )
    parser.add_argument(
        "-o",
        "--output",
        action="store",
        type=Path,
        help="output file",
    )
    parser.add_argument(
        "--timeout",
        action="store",
        type=float,
        default=SiteOptions().timeout,
        help="request timeout in seconds",
    )
    parser.add_argument(
        "--ignore-individual-errors",
        action="store_true",
        default=False,
        help="ignore errors from individual pages",
        dest="ignore_individual_errors",
    )
    parser.add_argument(
        "titles",
        action="store",
        nargs=ONE_OR_MORE,
        type=str,
        help="sequence of page title(s) to parse",
    )

    @wraps(main)
    async def invoke(args: Namespace):
        await main(
            Args(
                endpoint=args.endpoint,
                titles=args.titles,
                text=args.text,
                output=args.output,
                ignore_individual_errors=args.ignore_individual_errors,
                site_options=SiteOptions(timeout=args.timeout),
            )
        )

    parser.set_defaults(invoke=invoke)
    return parser
