"""Apple Music client exceptions.

Every failure the client surfaces is an ``AppleMusicError`` subclass, so callers
can branch with ``except`` clauses instead of inspecting message text.

Retry behaviour (see ``RequestPipeline``):

    ConfigError          never retried, raised at construction time
    AuthError            never retried, caller must refresh credentials
    ApiError             never retried (structured 4xx)
    ServerError          retried up to ``max_retries`` (5xx)
    RateLimitError       retried up to ``max_retries`` (429)
    TransportError       retried up to ``max_retries`` (network / timeout)
    DecodeError          never retried
    InvalidRequestError  never retried, raised before any I/O
"""

from collections.abc import Sequence
from typing import Any


class AppleMusicError(Exception):
    """Base exception for all Apple Music client errors."""

    # Hey future me, message is stored as an attribute so handlers never have to parse str(exc).
    # Don't raise this directly - always a subclass, callers catch precisely.
    retryable: bool = False

    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message

    @property
    def status_code(self) -> int | None:
        """HTTP status code behind this error, if any."""
        return None

    def __str__(self) -> str:
        return self.message


class ConfigError(AppleMusicError):
    """Invalid configuration value.

    Raised by the ``ClientConfig`` builder the moment a bad value is supplied,
    never deferred to the first request.

    Example:
        raise ConfigError("Developer token cannot be empty")
    """

    pass


class InvalidRequestError(AppleMusicError):
    """Caller supplied an argument the endpoint catalog cannot use.

    Example:
        raise InvalidRequestError("Resource ID cannot be empty")
    """

    pass


class _HttpStatusError(AppleMusicError):
    """Shared shape for errors that carry a remote status and error list."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        errors: Sequence[Any] = (),
    ) -> None:
        super().__init__(message)
        self._status_code = status_code
        self.errors = tuple(errors)

    @property
    def status_code(self) -> int | None:
        return self._status_code

    def __str__(self) -> str:
        if self._status_code is None:
            return self.message
        return f"{self._status_code}: {self.message}"


class AuthError(_HttpStatusError):
    """Token signing failed or the remote API rejected the credentials (401/403).

    Retrying with the same credential cannot succeed, so the pipeline raises
    this immediately. ``status_code`` is ``None`` for local signing failures.
    """

    pass


class ApiError(_HttpStatusError):
    """Structured 4xx error returned by Apple Music (excluding 401/403/429)."""

    def __init__(
        self,
        status_code: int,
        message: str,
        errors: Sequence[Any] = (),
    ) -> None:
        super().__init__(message, status_code=status_code, errors=errors)


class ServerError(_HttpStatusError):
    """5xx response. Retried by the pipeline, raised once retries run out."""

    retryable = True

    def __init__(
        self,
        status_code: int,
        message: str,
        errors: Sequence[Any] = (),
    ) -> None:
        super().__init__(message, status_code=status_code, errors=errors)


class RateLimitError(_HttpStatusError):
    """429 Too Many Requests.

    ``retry_after`` is the server's Retry-After hint in seconds (``None`` when
    the header was absent or unparsable).
    """

    retryable = True

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        errors: Sequence[Any] = (),
    ) -> None:
        super().__init__(message, status_code=429, errors=errors)
        self.retry_after = retry_after

    def __str__(self) -> str:
        base = super().__str__()
        if self.retry_after is None:
            return base
        return f"{base} (retry after {self.retry_after:g}s)"


class TransportError(AppleMusicError):
    """Network, connection or timeout failure before a response arrived."""

    retryable = True


class DecodeError(AppleMusicError):
    """A successful response body did not match the expected shape.

    ``body`` keeps the raw payload for debugging.
    """

    def __init__(self, message: str, body: str | None = None) -> None:
        super().__init__(message)
        self.body = body


__all__ = [
    "AppleMusicError",
    "ConfigError",
    "InvalidRequestError",
    "AuthError",
    "ApiError",
    "ServerError",
    "RateLimitError",
    "TransportError",
    "DecodeError",
]
