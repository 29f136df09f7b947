"""pywikiclient package metadata and configuration.

An asynchronous client for the MediaWiki action API and the Wikibase
entity API, built on aiohttp and pydantic.

Exports:
- AUTHORS: author metadata
- NAME: package name
- VERSION: package version string
- LOGGER: configured logger for the package
- OPEN_TEXT_OPTIONS: defaults for opening text files
- USER_AGENT: default HTTP User-Agent used by HTTP clients
"""

from .meta import AUTHORS, LOGGER, NAME, OPEN_TEXT_OPTIONS, USER_AGENT, VERSION

__all__ = (
    "AUTHORS",
    "NAME",
    "VERSION",
    "LOGGER",
    "OPEN_TEXT_OPTIONS",
    "USER_AGENT",
)
