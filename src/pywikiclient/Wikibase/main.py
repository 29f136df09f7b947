"""Wikibase entity lookup implementation.

This module implements the ``Wikibase`` CLI subcommand: it refreshes the
requested entities in batches and prints a summary line per entity, or
writes them to a JSON document. It provides a top-level `main` coroutine and
a `parser` factory.
"""

from argparse import ONE_OR_MORE, ArgumentParser, ArgumentTypeError, Namespace
from asyncio import gather
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from functools import reduce, wraps
from itertools import chain
from json import dumps
from operator import or_
from sys import exit
from typing import Any, final

from anyio import Path
from yarl import URL

from ..cli import ExitCode, handle_partial_errors
from ..meta import LOGGER, OPEN_TEXT_OPTIONS, VERSION
from ..site import SiteOptions, WikiSite
from .entity import Entity, refresh_entities
from .snapshot import EntityQueryOptions, Fetched

__all__ = (
    "ExitCode",
    "Args",
    "main",
    "parser",
)

_PROPS = {
    "info": EntityQueryOptions.FETCH_INFO,
    "labels": EntityQueryOptions.FETCH_LABELS,
    "aliases": EntityQueryOptions.FETCH_ALIASES,
    "descriptions": EntityQueryOptions.FETCH_DESCRIPTIONS,
    "sitelinks": EntityQueryOptions.FETCH_SITE_LINKS,
    "sitelinks/urls": EntityQueryOptions.FETCH_SITE_LINKS_URL,
    "claims": EntityQueryOptions.FETCH_CLAIMS,
    "all": EntityQueryOptions.FETCH_ALL_PROPERTIES,
}


def _query_options(text: str) -> EntityQueryOptions:
    """Convert a ``|``- or ``,``-separated list of prop names to options."""
    names = tuple(filter(None, text.replace(",", "|").split("|")))
    try:
        return reduce(or_, (_PROPS[name.strip()] for name in names))
    except KeyError as exc:
        raise ArgumentTypeError(
            f"unknown prop {exc.args[0]!r}, expected any of {', '.join(_PROPS)}"
        ) from None
    except TypeError:
        raise ArgumentTypeError("no props given") from None


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
        ids: entity ids to look up
        options: fields to fetch
        languages: language codes to limit texts to, or empty for all
        output: optional JSON output path; summaries are printed otherwise
        ignore_individual_errors: if True, continue on failed batches
        site_options: transport configuration
    """

    endpoint: URL
    ids: Sequence[str]
    options: EntityQueryOptions
    languages: Sequence[str]
    output: Path | None
    ignore_individual_errors: bool
    site_options: SiteOptions = field(default_factory=SiteOptions)

    def __post_init__(self):
        object.__setattr__(self, "ids", tuple(self.ids))
        object.__setattr__(self, "languages", tuple(self.languages))


def _summary(entity: Entity) -> str:
    if not entity.exists:
        return f"{entity.id}: missing"
    parts = [str(entity.type)]
    snapshot = entity.snapshot
    if isinstance(snapshot.descriptions, Fetched):
        description = entity.descriptions.get("en")
        if description is not None:
            parts.append(description.text)
    if isinstance(snapshot.site_links, Fetched):
        parts.append(f"{len(entity.site_links)} site links")
    if isinstance(snapshot.claims, Fetched):
        parts.append(f"{len(entity.claims)} claims")
    return f"{entity}: {', '.join(parts)}"


def _entity_json(entity: Entity) -> dict[str, Any]:
    snapshot = entity.snapshot
    ret: dict[str, Any] = {
        "id": entity.id,
        "exists": entity.exists,
        "type": str(entity.type),
    }
    if entity.data_type is not None:
        ret["datatype"] = entity.data_type
    if isinstance(snapshot.last_revision_id, Fetched):
        ret["lastrevid"] = entity.last_revision_id
    if isinstance(snapshot.title, Fetched):
        ret["title"] = entity.title
    if isinstance(snapshot.last_modified, Fetched):
        assert entity.last_modified is not None
        ret["modified"] = entity.last_modified.isoformat()
    if isinstance(snapshot.labels, Fetched):
        ret["labels"] = {text.language: text.text for text in entity.labels}
    if isinstance(snapshot.descriptions, Fetched):
        ret["descriptions"] = {text.language: text.text for text in entity.descriptions}
    if isinstance(snapshot.aliases, Fetched):
        ret["aliases"] = {
            language: [alias.text for alias in entity.aliases[language]]
            for language in entity.aliases.keys()
        }
    if isinstance(snapshot.site_links, Fetched):
        ret["sitelinks"] = {link.site: link.to_json() for link in entity.site_links}
    if isinstance(snapshot.claims, Fetched):
        ret["claims"] = {
            property_id: [claim.to_json() for claim in entity.claims[property_id]]
            for property_id in entity.claims.keys()
        }
    return ret


async def main(args: Args):
    """Primary coroutine implementing the query-output flow.

    Executes the following steps:
    1. Refresh the requested entities in batches of the site's query limit.
    2. Print a summary line per entity, or write all of them to `args.output`.

    On error, the function will log and set appropriate `ExitCode` flags before
    calling `sys.exit` with the resulting exit code.
    """

    ec = ExitCode(0)

    try:
        ids = tuple(dict.fromkeys(args.ids))
        async with WikiSite(args.endpoint, options=args.site_options) as site:
            try:
                LOGGER.info(f"Querying {len(ids)} entities")

                async def query(batch: Iterable[str]):
                    entities = tuple(Entity(site, id) for id in batch)
                    await refresh_entities(
                        entities, args.options, args.languages or None
                    )
                    return entities

                limit = args.site_options.query_limit
                queries = await gather(
                    *(
                        query(ids[idx : idx + limit])
                        for idx in range(0, len(ids), limit)
                    ),
                    return_exceptions=True,
                )
                error, queries = handle_partial_errors(
                    queries,
                    ignore_individual_errors=args.ignore_individual_errors,
                    error_message="Error querying",
                )
                if error:
                    ec |= ExitCode.QUERY_ERROR_PARTIAL
                entities = tuple(chain.from_iterable(queries))
            except Exception:
                LOGGER.exception("Error querying")
                ec |= ExitCode.QUERY_ERROR
                raise
        try:
            if args.output is None:
                for entity in entities:
                    print(_summary(entity))
            else:
                LOGGER.info(f"Writing {len(entities)} entities to '{args.output}'")
                await args.output.parent.mkdir(parents=True, exist_ok=True)
                text = dumps(
                    [_entity_json(entity) for entity in entities],
                    ensure_ascii=False,
                    indent=2,
                )
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
    """Return an argparse parser configured for the Wikibase subcommand.

    When embedded, `parent` can be a callable that produces an `ArgumentParser`.
    """

    prog = __package__ or __name__

    parser = (ArgumentParser if parent is None else parent)(
        prog=f"python -m {prog}",
        description="look up Wikibase entities",
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
        "-p",
        "--props",
        action="store",
        type=_query_options,
        default=EntityQueryOptions.FETCH_ALL_PROPERTIES,
        help=f"fields to fetch, separated by '|' or ',' ({', '.join(_PROPS)})",
        dest="options",
    )
    parser.add_argument(
        "-l",
        "--language",
        action="append",
        default=[],
        help="language to fetch texts in; may be repeated, default all",
        dest="languages",
    )
    parser.add_argument(
        "-o",
        "--output",
        action="store",
        type=Path,
        help="JSON output file",
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
        help="ignore errors from individual batches",
        dest="ignore_individual_errors",
    )
    parser.add_argument(
        "ids",
        action="store",
        nargs=ONE_OR_MORE,
        type=str,
        help="sequence of entity id(s) to look up",
    )

    @wraps(main)
    async def invoke(args: Namespace):
        await main(
            Args(
                endpoint=args.endpoint,
                ids=args.ids,
                options=args.options,
                languages=args.languages,
                output=args.output,
                ignore_individual_errors=args.ignore_individual_errors,
                site_options=SiteOptions(timeout=args.timeout),
            )
        )

    parser.set_defaults(invoke=invoke)
    return parser
