"""Transport for a MediaWiki ``api.php`` endpoint.

:class:`WikiSite` wraps an `aiohttp.ClientSession` and turns an action name
plus ordered parameters into parsed JSON. API-reported errors become
:class:`~pywikiclient.errors.ApiError`; everything raised by aiohttp itself
(network errors, HTTP status errors, timeouts) is passed through unchanged.
Retrying is left to the caller.
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from types import TracebackType
from typing import Any, TypeVar

from aiohttp import ClientSession, ClientTimeout, TCPConnector
from pydantic import BaseModel, ConfigDict, PositiveFloat, PositiveInt, ValidationError
from yarl import URL

from .errors import ApiError, SchemaMismatchError
from .meta import LOGGER, USER_AGENT

__all__ = (
    "SiteOptions",
    "WikiSite",
    "encode_params",
    "validate_contract",
)

_M = TypeVar("_M", bound=BaseModel)


class SiteOptions(BaseModel):
    """Per-site transport configuration."""

    user_agent: str = USER_AGENT
    max_concurrent_requests_per_host: PositiveInt = 1
    query_limit: PositiveInt = 50
    timeout: PositiveFloat = 30.0
    assert_user: bool = False

    model_config = ConfigDict(frozen=True)


class _Tokens(BaseModel):
    tokens: dict[str, str]


class _TokensResponse(BaseModel):
    query: _Tokens


def validate_contract(model: type[_M], raw: Any) -> _M:
    """Validate `raw` JSON against `model`, raising `SchemaMismatchError` on failure."""
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise SchemaMismatchError(
            f"Unexpected {model.__name__} shape: {exc}"
        ) from exc


def _encode_value(value: Any) -> str | None:
    if value is None or value is False:
        return None
    if value is True:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, Iterable):
        return "|".join(map(str, value))
    return str(value)


def encode_params(params: Mapping[str, Any]) -> dict[str, str]:
    """Encode API parameters following MediaWiki conventions.

    ``None`` and ``False`` drop the parameter, ``True`` sends it empty (the
    API treats presence as true) and sequences are joined with ``|``.
    Parameter order is preserved.
    """

    encoded: dict[str, str] = {}
    for key, value in params.items():
        text = _encode_value(value)
        if text is not None:
            encoded[key] = text
    return encoded


class WikiSite:
    """A MediaWiki site reachable through its ``api.php`` endpoint.

    Use it as an async context manager. When no session is supplied, one is
    created on entry and closed on exit; a supplied session is left open.
    """

    def __init__(
        self,
        api_endpoint: str | URL,
        *,
        options: SiteOptions | None = None,
        session: ClientSession | None = None,
    ):
        self.api_endpoint = URL(api_endpoint)
        self.options = options or SiteOptions()
        self._session = session
        self._owns_session = False
        self._tokens: dict[str, str] = {}

    async def __aenter__(self):
        if self._session is None:
            self._session = ClientSession(
                connector=TCPConnector(
                    limit_per_host=self.options.max_concurrent_requests_per_host
                ),
                headers={
                    "Accept-Encoding": "gzip",
                    "User-Agent": self.options.user_agent,
                },
                timeout=ClientTimeout(total=self.options.timeout),
            )
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            self._owns_session = False

    def __repr__(self):
        return f"{type(self).__name__}({str(self.api_endpoint)!r})"

    @property
    def session(self) -> ClientSession:
        if self._session is None:
            raise RuntimeError(f"{self!r} is not open; use `async with`")
        return self._session

    async def invoke(
        self,
        action: str,
        params: Mapping[str, Any] | None = None,
        *,
        post: bool = False,
    ) -> dict[str, Any]:
        """Invoke an API `action` and return the decoded JSON object."""

        query = encode_params({"format": "json", "action": action, **(params or {})})
        LOGGER.debug(f"{'POST' if post else 'GET'} {self.api_endpoint} {query}")
        if post:
            request = self.session.post(self.api_endpoint, data=query)
        else:
            request = self.session.get(self.api_endpoint.with_query(query))
        async with request as resp:
            resp.raise_for_status()
            data = await resp.json()
        if not isinstance(data, dict):
            raise SchemaMismatchError(
                f"Expected a JSON object from action={action}, "
                f"got {type(data).__name__}"
            )
        error = data.get("error")
        if error is not None:
            raise ApiError(
                str(error.get("code", "unknown")), str(error.get("info", "")), error
            )
        for module, warning in data.get("warnings", {}).items():
            text = warning.get("*", warning.get("warnings", warning))
            LOGGER.warning(f"API warning from '{module}': {text}")
        return data

    async def get_token(self, kind: str = "csrf") -> str:
        """Return a cached token of `kind`, fetching it on first use."""
        try:
            return self._tokens[kind]
        except KeyError:
            pass
        data = await self.invoke("query", {"meta": "tokens", "type": kind})
        tokens = validate_contract(_TokensResponse, data).query.tokens
        try:
            token = tokens[f"{kind}token"]
        except KeyError:
            raise SchemaMismatchError(f"No '{kind}' token in response") from None
        self._tokens[kind] = token
        return token

    def invalidate_tokens(self) -> None:
        self._tokens.clear()

    async def invoke_with_token(
        self, action: str, params: Mapping[str, Any], *, kind: str = "csrf"
    ) -> dict[str, Any]:
        """POST a state-changing `action` with a token of `kind` attached.

        A ``badtoken`` error drops the cached tokens before propagating, so
        the next call fetches a fresh one.
        """

        token = await self.get_token(kind)
        try:
            return await self.invoke(
                action,
                {
                    **params,
                    "assert": "user" if self.options.assert_user else None,
                    "token": token,
                },
                post=True,
            )
        except ApiError as exc:
            if exc.code == "badtoken":
                self.invalidate_tokens()
            raise
