"""Pieces shared by the CLI subcommands.

Each subcommand runs in phases (querying, then output) and reports the
phases that failed through the bits of :class:`ExitCode`.
"""

from collections.abc import Collection
from enum import IntFlag, auto, unique
from typing import ClassVar, TypeVar, final

from .meta import LOGGER

__all__ = (
    "ExitCode",
    "handle_partial_errors",
)

_T = TypeVar("_T")


@final
@unique
class ExitCode(IntFlag):
    """Exit codes representing various error and partial-error conditions.

    The bits can be combined to represent multiple simultaneous failure
    modes, for example partial query errors plus an output error.
    """

    __slots__: ClassVar = ()

    GENERIC_ERROR = auto()
    QUERY_ERROR = auto()
    QUERY_ERROR_PARTIAL = auto()
    OUTPUT_ERROR = auto()


def handle_partial_errors(
    results: Collection[_T | BaseException],
    *,
    ignore_individual_errors: bool,
    error_message: str = "Error",
) -> tuple[bool, Collection[_T]]:
    """Inspect a collection of results and propagate or aggregate errors.

    The `results` may contain successful values or exception instances (when
    `gather(..., return_exceptions=True)` was used). Exceptions are raised
    together as an `ExceptionGroup`, unless `ignore_individual_errors` is
    set, in which case they are logged. Returns `(error_flag, successes)`
    where `error_flag` tells whether any exception was logged and skipped.
    Non-`Exception` base exceptions, such as cancellation, always propagate.
    """

    error = False
    base_exceptions = tuple(
        result for result in results if isinstance(result, BaseException)
    )
    exceptions = tuple(exc for exc in base_exceptions if isinstance(exc, Exception))
    if len(exceptions) < len(base_exceptions):
        raise BaseExceptionGroup(error_message, base_exceptions)
    if exceptions:
        exception_group = ExceptionGroup(error_message, exceptions)
        if not ignore_individual_errors:
            raise exception_group
        try:
            raise exception_group
        except ExceptionGroup:
            LOGGER.exception(error_message)
            error = True
    return error, tuple(
        result for result in results if not isinstance(result, BaseException)
    )
