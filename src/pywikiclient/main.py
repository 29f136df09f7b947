"""CLI utilities for pywikiclient.

This module provides the top-level CLI `ArgumentParser` factory and wires
in subcommands from subpackages.
"""

from argparse import ArgumentParser
from collections.abc import Callable
from functools import partial

from pywikiclient.meta import VERSION

from .Pages import __name__ as Pages_name
from .Pages import __package__ as Pages_package
from .Pages.main import parser as Pages_parser
from .Wikibase import __name__ as Wikibase_name
from .Wikibase import __package__ as Wikibase_package
from .Wikibase.main import parser as Wikibase_parser

__all__ = ("parser",)


def parser(parent: Callable[..., ArgumentParser] | None = None):
    """Return an ArgumentParser configured for the package CLI.

    If a `parent` callable is provided it will be used to construct the
    parser (useful when the command is embedded within another parser).
    """

    prog = __package__ or __name__

    parser = (ArgumentParser if parent is None else parent)(
        prog=f"python -m {prog}",
        description="query MediaWiki and Wikibase sites",
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
    subparsers = parser.add_subparsers(
        required=True,
    )
    for name, subparser in (
        (Wikibase_package or Wikibase_name, Wikibase_parser),
        (Pages_package or Pages_name, Pages_parser),
    ):
        subparser(partial(subparsers.add_parser, name.replace(f"{prog}.", "")))
    return parser
