"""Client configuration.

Hey future me - ClientConfig is IMMUTABLE. Every ``with_*`` call validates its
argument right away and hands back a NEW config (or raises ConfigError). There
is no "half-validated" state that could blow up on the first request.

Usage:
    config = (
        ClientConfig.from_jwt(team_id, key_id, pem)
        .with_storefront("gb")
        .with_timeout(10)
        .with_max_retries(5)
    )
"""

from datetime import timedelta
from typing import Any

import httpx
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    field_validator,
    model_validator,
)

from apple_music_api.domain.credentials import (
    DEFAULT_TOKEN_TTL,
    AuthMode,
    Credentials,
    JwtAuth,
    SimpleAuth,
)
from apple_music_api.domain.exceptions import ConfigError, InvalidRequestError
from apple_music_api.domain.value_objects import parse_storefront
from apple_music_api.version import __version__

DEFAULT_BASE_URL = "https://api.music.apple.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_STOREFRONT = "us"
DEFAULT_USER_AGENT = f"apple-music-api/{__version__}"
DEFAULT_BACKOFF_BASE_SECONDS = 0.2
DEFAULT_BACKOFF_CAP_SECONDS = 10.0
DEFAULT_BACKOFF_JITTER = 0.2


class ClientConfig(BaseModel):
    """Validated settings for one Apple Music client.

    Attributes:
        base_url: Absolute HTTPS API root (no trailing slash)
        timeout: Per-attempt timeout in seconds
        max_retries: Retries after the first attempt (0 = no retry)
        storefront: Lower-case two-letter storefront code
        auth: ``SimpleAuth`` or ``JwtAuth``
        user_token: Initial Music-User-Token, if any
        user_agent: Sent as User-Agent on every request
        backoff_base: First retry delay in seconds, doubled per attempt
        backoff_cap: Upper bound for the computed delay in seconds
        backoff_jitter: Random spread applied to the delay (0.2 = +-20%)
    """

    model_config = ConfigDict(frozen=True)

    auth: AuthMode
    base_url: str = DEFAULT_BASE_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    max_retries: StrictInt = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    storefront: str = DEFAULT_STOREFRONT
    user_token: str | None = Field(default=None, repr=False)
    user_agent: str = DEFAULT_USER_AGENT
    backoff_base: float = Field(default=DEFAULT_BACKOFF_BASE_SECONDS, gt=0)
    backoff_cap: float = Field(default=DEFAULT_BACKOFF_CAP_SECONDS, gt=0)
    backoff_jitter: float = Field(default=DEFAULT_BACKOFF_JITTER, ge=0, lt=1)

    @field_validator("base_url")
    @classmethod
    def _https_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value.strip())
        except (httpx.InvalidURL, TypeError) as e:
            raise ValueError(f"Base URL could not be parsed: {value!r}") from e
        if url.scheme != "https":
            raise ValueError(f"Base URL must use https, got {value!r}")
        if not url.host:
            raise ValueError(f"Base URL must be absolute, got {value!r}")
        if url.query or url.fragment or url.userinfo:
            raise ValueError(
                f"Base URL cannot carry a query, fragment or credentials, got {value!r}"
            )
        return str(url).rstrip("/")

    @field_validator("timeout", mode="before")
    @classmethod
    def _timeout_seconds(cls, value: Any) -> Any:
        if isinstance(value, timedelta):
            return value.total_seconds()
        return value

    @field_validator("storefront")
    @classmethod
    def _storefront_code(cls, value: str) -> str:
        try:
            return parse_storefront(value)
        except InvalidRequestError as e:
            raise ValueError(e.message) from e

    @field_validator("user_token")
    @classmethod
    def _user_token(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("user_agent")
    @classmethod
    def _user_agent(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("User agent cannot be empty")
        return value.strip()

    @model_validator(mode="after")
    def _backoff_bounds(self) -> "ClientConfig":
        if self.backoff_cap < self.backoff_base:
            raise ValueError("Backoff cap cannot be smaller than the base delay")
        return self

    # -- construction -----------------------------------------------------

    @classmethod
    def new(cls, developer_token: str) -> "ClientConfig":
        """Config for a pre-generated developer token.

        Raises:
            ConfigError: If the token is blank
        """
        if not isinstance(developer_token, str) or not developer_token.strip():
            raise ConfigError("Developer token cannot be empty")
        return cls._build(auth=_validated(SimpleAuth, developer_token=developer_token))

    @classmethod
    def from_jwt(
        cls,
        team_id: str,
        key_id: str,
        private_key_pem: str,
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
    ) -> "ClientConfig":
        """Config that signs its own ES256 developer tokens.

        The key is parsed here so a broken ``.p8`` file fails at startup.

        Raises:
            ConfigError: If a field is blank or the TTL is out of range
            AuthError: If the private key cannot be parsed
        """
        return cls._build(
            auth=_jwt_auth(team_id, key_id, private_key_pem, token_ttl)
        )

    @classmethod
    def _build(cls, **values: Any) -> "ClientConfig":
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(_describe(e)) from e

    def _evolve(self, **changes: Any) -> "ClientConfig":
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(changes)
        return type(self)._build(**values)

    # -- builder ------------------------------------------------------------

    def with_base_url(self, base_url: str) -> "ClientConfig":
        return self._evolve(base_url=base_url)

    def with_timeout(self, timeout: float | timedelta) -> "ClientConfig":
        """Per-attempt timeout, seconds or ``timedelta``; must be positive."""
        return self._evolve(timeout=timeout)

    def with_max_retries(self, max_retries: int) -> "ClientConfig":
        """Retries after the first attempt. ``0`` disables retrying."""
        return self._evolve(max_retries=max_retries)

    def with_storefront(self, storefront: str) -> "ClientConfig":
        return self._evolve(storefront=storefront)

    def with_user_token(self, user_token: str | None) -> "ClientConfig":
        return self._evolve(user_token=user_token)

    def with_user_agent(self, user_agent: str) -> "ClientConfig":
        return self._evolve(user_agent=user_agent)

    def with_backoff(
        self,
        base: float | None = None,
        cap: float | None = None,
        jitter: float | None = None,
    ) -> "ClientConfig":
        changes: dict[str, float] = {}
        if base is not None:
            changes["backoff_base"] = base
        if cap is not None:
            changes["backoff_cap"] = cap
        if jitter is not None:
            changes["backoff_jitter"] = jitter
        return self._evolve(**changes)

    def with_developer_token(self, developer_token: str) -> "ClientConfig":
        """Switch to a pre-generated developer token (drops JWT signing)."""
        if not isinstance(developer_token, str) or not developer_token.strip():
            raise ConfigError("Developer token cannot be empty")
        return self._evolve(
            auth=_validated(SimpleAuth, developer_token=developer_token)
        )

    def with_jwt_signing(
        self,
        team_id: str,
        key_id: str,
        private_key_pem: str,
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
    ) -> "ClientConfig":
        """Switch to JWT signing. Replaces any raw developer token."""
        return self._evolve(
            auth=_jwt_auth(team_id, key_id, private_key_pem, token_ttl)
        )

    # -- accessors ------------------------------------------------------------

    @property
    def uses_jwt(self) -> bool:
        return isinstance(self.auth, JwtAuth)

    def credentials(self) -> Credentials:
        """Fresh runtime credential holder seeded from this config."""
        return Credentials(self.auth, self.user_token)


def _validated(model: type[SimpleAuth] | type[JwtAuth], **values: Any) -> Any:
    try:
        return model(**values)
    except ValidationError as e:
        raise ConfigError(_describe(e)) from e


def _jwt_auth(
    team_id: str, key_id: str, private_key_pem: str, token_ttl: timedelta
) -> JwtAuth:
    from apple_music_api.infrastructure.auth.developer_token import load_signing_key

    auth = _validated(
        JwtAuth,
        team_id=team_id,
        key_id=key_id,
        private_key_pem=private_key_pem,
        token_ttl=token_ttl,
    )
    load_signing_key(auth.private_key_pem)
    return auth


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    message = str(first.get("msg", "invalid value")).removeprefix("Value error, ")
    location = ".".join(str(part) for part in first.get("loc", ()))
    if location:
        return f"Invalid {location}: {message}"
    return message
