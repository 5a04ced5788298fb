"""Authenticated, retrying request pipeline for the Apple Music API.

Hey future me - EVERY Apple Music call goes through RequestPipeline.execute().
Per attempt it:
- snapshots the credentials and builds Authorization / Music-User-Token headers
  (re-signing the developer JWT if it is about to expire)
- sends the request under the per-attempt timeout
- classifies the outcome (success / client / auth / 429 / 5xx / transport)
- retries 429, 5xx and transport failures with backoff, up to max_retries
The last error is raised as-is once retries run out; no wrapper hides the cause.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar, overload
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from apple_music_api.config.settings import ClientConfig
from apple_music_api.domain.credentials import (
    CredentialSnapshot,
    Credentials,
    JwtAuth,
    SimpleAuth,
)
from apple_music_api.domain.dtos import ApiErrorDetail, ApiErrorPayload
from apple_music_api.domain.exceptions import (
    ApiError,
    AppleMusicError,
    AuthError,
    DecodeError,
    RateLimitError,
    ServerError,
    TransportError,
)
from apple_music_api.infrastructure.auth.developer_token import DeveloperTokenProvider
from apple_music_api.infrastructure.backoff import BackoffPolicy, parse_retry_after
from apple_music_api.infrastructure.observability.logging import request_scope

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

USER_TOKEN_HEADER = "Music-User-Token"


@dataclass(frozen=True)
class RequestSpec:
    """One API call: method, path relative to the base URL, ordered query, body.

    Example:
        RequestSpec("GET", "v1/catalog/us/search", query=[("term", "abba")])
    """

    method: str
    path: str
    query: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    body: bytes | None = None
    content_type: str = "application/json"

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(
            self, "query", tuple((str(k), str(v)) for k, v in self.query)
        )

    @classmethod
    def get(cls, path: str, query: Iterable[tuple[str, str]] = ()) -> "RequestSpec":
        return cls("GET", path, query=tuple(query))

    @classmethod
    def post(
        cls,
        path: str,
        query: Iterable[tuple[str, str]] = (),
        body: bytes | None = None,
    ) -> "RequestSpec":
        return cls("POST", path, query=tuple(query), body=body)


class Outcome(Enum):
    """Classification of one completed (or failed) HTTP exchange."""

    SUCCESS = "success"
    CLIENT_ERROR = "client_error"
    AUTH_FAILURE = "auth_failure"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    TRANSPORT_FAILURE = "transport_failure"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE


_RETRYABLE = frozenset(
    {Outcome.RATE_LIMITED, Outcome.SERVER_ERROR, Outcome.TRANSPORT_FAILURE}
)


def classify_status(status_code: int) -> Outcome:
    """Map an HTTP status code to an Outcome."""
    if 200 <= status_code <= 299:
        return Outcome.SUCCESS
    if status_code in (401, 403):
        return Outcome.AUTH_FAILURE
    if status_code == 429:
        return Outcome.RATE_LIMITED
    if 500 <= status_code <= 599:
        return Outcome.SERVER_ERROR
    return Outcome.CLIENT_ERROR


class RequestPipeline:
    """Executes RequestSpecs against the Apple Music API."""

    # Listen up, the pipeline creates its httpx client lazily (inside the running loop) unless
    # one is injected. An injected client belongs to the caller - close() leaves it open.
    def __init__(
        self,
        config: ClientConfig,
        credentials: Credentials | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        token_provider: DeveloperTokenProvider | None = None,
        backoff: BackoffPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            config: Validated client configuration
            credentials: Runtime credentials (default: fresh from config)
            http_client: Optional shared httpx client
            token_provider: Optional JWT provider (default: built for JwtAuth)
            backoff: Retry delay policy (default: from config)
            sleep: Awaitable sleep used between retries (injectable for tests)
        """
        self.config = config
        self.credentials = credentials or config.credentials()
        self._client = http_client
        self._owns_client = http_client is None
        self._sleep = sleep
        self._backoff = backoff or BackoffPolicy(
            base=config.backoff_base,
            cap=config.backoff_cap,
            jitter=config.backoff_jitter,
        )
        if token_provider is None and isinstance(self.credentials.auth, JwtAuth):
            token_provider = DeveloperTokenProvider(self.credentials.auth)
        self._token_provider = token_provider

    @property
    def token_provider(self) -> DeveloperTokenProvider | None:
        return self._token_provider

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this pipeline created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RequestPipeline":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # -- request building -----------------------------------------------------

    def build_url(self, spec: RequestSpec) -> str:
        """Absolute URL for a spec: base URL + path + encoded query (order kept)."""
        url = f"{self.config.base_url}/{spec.path.lstrip('/')}"
        if spec.query:
            url = f"{url}?{urlencode(spec.query, safe=',')}"
        return url

    async def _authorization(self, snapshot: CredentialSnapshot) -> str:
        match snapshot.auth:
            case JwtAuth():
                if self._token_provider is None:
                    self._token_provider = DeveloperTokenProvider(snapshot.auth)
                token = (await self._token_provider.get_token()).value
            case SimpleAuth(developer_token=developer_token):
                token = developer_token
        return f"Bearer {token}"

    async def build_headers(self, spec: RequestSpec) -> dict[str, str]:
        """Headers for one attempt.

        Raises:
            AuthError: If the developer token cannot be signed
        """
        snapshot = self.credentials.snapshot()
        headers = {
            "Authorization": await self._authorization(snapshot),
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        }
        if snapshot.user_token:
            headers[USER_TOKEN_HEADER] = snapshot.user_token
        if spec.body is not None:
            headers["Content-Type"] = spec.content_type
        return headers

    # -- execution ------------------------------------------------------------

    @overload
    async def execute(self, spec: RequestSpec, response_model: type[ModelT]) -> ModelT: ...

    @overload
    async def execute(self, spec: RequestSpec, response_model: None = None) -> Any: ...

    async def execute(
        self, spec: RequestSpec, response_model: type[ModelT] | None = None
    ) -> ModelT | Any:
        """Run a request with retries and decode the response.

        Args:
            spec: What to call
            response_model: Pydantic model for the body; None returns the raw
                JSON (or None for an empty body)

        Returns:
            The decoded body

        Raises:
            AuthError: Signing failed, or the API answered 401/403
            ApiError: Any other 4xx
            RateLimitError: 429 and retries exhausted
            ServerError: 5xx and retries exhausted
            TransportError: Network failure or timeout and retries exhausted
            DecodeError: 2xx body did not match ``response_model`` or could not
                be decompressed
        """
        with request_scope():
            max_retries = self.config.max_retries

            for attempt in range(max_retries + 1):
                error: AppleMusicError
                retry_after: float | None = None
                try:
                    response = await self._send(spec, attempt)
                except TransportError as e:
                    error = e
                else:
                    outcome = classify_status(response.status_code)
                    if outcome is Outcome.SUCCESS:
                        return self._decode(response, response_model)

                    error = self._error_for(outcome, response)
                    if not outcome.retryable:
                        logger.error(
                            "%s %s failed: %s", spec.method, spec.path, error
                        )
                        raise error
                    if isinstance(error, RateLimitError):
                        retry_after = error.retry_after

                if attempt >= max_retries:
                    logger.error(
                        "%s %s failed after %d attempt(s): %s",
                        spec.method,
                        spec.path,
                        attempt + 1,
                        error,
                    )
                    raise error

                delay = self._backoff.delay(attempt, retry_after)
                logger.warning(
                    "Retrying %s %s in %.2fs after %s (retry %d/%d)",
                    spec.method,
                    spec.path,
                    delay,
                    error,
                    attempt + 1,
                    max_retries,
                )
                await self._sleep(delay)

    async def _send(self, spec: RequestSpec, attempt: int) -> httpx.Response:
        client = await self._get_client()
        headers = await self.build_headers(spec)
        url = self.build_url(spec)

        logger.debug("→ %s %s (attempt %d)", spec.method, url, attempt + 1)
        try:
            response = await client.request(
                spec.method,
                url,
                headers=headers,
                content=spec.body,
                timeout=self.config.timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"{spec.method} {spec.path} timed out after {self.config.timeout:g}s"
            ) from e
        except httpx.TransportError as e:
            raise TransportError(
                f"{spec.method} {spec.path} failed: {type(e).__name__}: {e}"
            ) from e
        except httpx.DecodingError as e:
            raise DecodeError(
                f"{spec.method} {spec.path} response body could not be decoded: {e}"
            ) from e
        except httpx.RequestError as e:
            # Redirect loops and anything else httpx raises mid-request.
            raise TransportError(
                f"{spec.method} {spec.path} failed: {type(e).__name__}: {e}"
            ) from e

        logger.debug("← %s %s %d", spec.method, url, response.status_code)
        return response

    # -- response handling ----------------------------------------------------

    def _error_for(self, outcome: Outcome, response: httpx.Response) -> AppleMusicError:
        status = response.status_code
        message, details = _error_message(response)

        if outcome is Outcome.AUTH_FAILURE:
            return AuthError(message, status_code=status, errors=details)
        if outcome is Outcome.RATE_LIMITED:
            return RateLimitError(
                message,
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
                errors=details,
            )
        if outcome is Outcome.SERVER_ERROR:
            return ServerError(status, message, errors=details)
        return ApiError(status, message, errors=details)

    @staticmethod
    def _decode(
        response: httpx.Response, response_model: type[ModelT] | None
    ) -> ModelT | Any:
        if not response.content:
            if response_model is None:
                return None
            raise DecodeError(
                f"Expected {response_model.__name__} but the response body was empty",
                body="",
            )

        if response_model is None:
            try:
                return response.json()
            except ValueError as e:
                raise DecodeError(
                    f"Response body is not valid JSON: {e}", body=response.text
                ) from e

        try:
            return response_model.model_validate_json(response.content)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise DecodeError(
                f"Response did not match {response_model.__name__}: "
                f"{location or 'body'}: {first.get('msg')}",
                body=response.text,
            ) from e


def _error_message(response: httpx.Response) -> tuple[str, list[ApiErrorDetail]]:
    """Pull a human readable message out of an error response.

    Apple answers with ``{"errors": [{"title", "detail", "code", ...}]}`` when
    the content type is JSON; anything else is passed through as raw text.
    """
    content_type = response.headers.get("content-type", "")
    if "json" in content_type and response.content:
        try:
            payload = ApiErrorPayload.model_validate_json(response.content)
        except ValidationError:
            payload = None
        if payload is not None and payload.errors:
            return "; ".join(d.describe() for d in payload.errors), payload.errors

    text = response.text.strip()
    return text or response.reason_phrase or f"HTTP {response.status_code}", []
