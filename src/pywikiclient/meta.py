"""Package metadata and configuration.

This module contains package-level metadata and configuration constants. Modules
should import package metadata directly from this module instead of relying on
re-exports from `pywikiclient.__init__` (for example:
``from pywikiclient.meta import VERSION``).
"""

from logging import getLogger
from sys import version
from typing import Literal, final

from pydantic import BaseModel, ConfigDict
from typing_extensions import TypedDict

__all__ = (
    "AUTHORS",
    "NAME",
    "VERSION",
    "LOGGER",
    "OPEN_TEXT_OPTIONS",
    "USER_AGENT",
    "PackageConfig",
    "PACKAGE_CONFIG",
)


@final
class _OpenOptions(TypedDict):
    """Options accepted by :func:`open` when opening text files.

    The CLI writes its JSON and text reports with these options.
    """

    encoding: str
    errors: Literal[
        "strict",
        "ignore",
        "replace",
        "surrogateescape",
        "xmlcharrefreplace",
        "backslashreplace",
        "namereplace",
    ]
    newline: None | Literal["", "\n", "\r", "\r\n"]


# update `pyproject.toml`
AUTHORS = (
    {
        "name": "pywikiclient contributors",
        "email": "pywikiclient@users.noreply.github.com",
    },
)
NAME = "pywikiclient"
VERSION = "0.3.0"

LOGGER = getLogger(NAME)
OPEN_TEXT_OPTIONS: _OpenOptions = {
    "encoding": "UTF-8",
    "errors": "strict",
    "newline": None,
}
USER_AGENT = f"{NAME}/{VERSION} ({AUTHORS[0]['email']}) Python/{version}"


class PackageConfig(BaseModel):
    """Validated package configuration view.

    Provides a pydantic view over the package-level constants so callers
    that prefer runtime validation can use a single validated object.
    """

    name: str
    version: str
    authors: tuple[dict[str, str], ...]
    open_text_options: _OpenOptions
    user_agent: str

    model_config = ConfigDict(frozen=True)


PACKAGE_CONFIG = PackageConfig(
    name=NAME,
    version=VERSION,
    authors=AUTHORS,
    open_text_options=OPEN_TEXT_OPTIONS,
    user_agent=USER_AGENT,
)
