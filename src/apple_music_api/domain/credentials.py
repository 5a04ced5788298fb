"""Credential material: authentication mode plus the optional user token."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Apple rejects developer tokens that live longer than six months.
MAX_TOKEN_TTL = timedelta(seconds=15_777_000)
DEFAULT_TOKEN_TTL = timedelta(days=180)


class SimpleAuth(BaseModel):
    """Pre-generated developer token, sent verbatim."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["simple"] = "simple"
    developer_token: str

    @field_validator("developer_token")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Developer token cannot be empty")
        return value


class JwtAuth(BaseModel):
    """Signing material for ES256 developer tokens.

    The private key is the PEM text of the ``.p8`` file downloaded from the
    Apple Developer portal.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["jwt"] = "jwt"
    team_id: str
    key_id: str
    private_key_pem: str = Field(repr=False)
    token_ttl: timedelta = DEFAULT_TOKEN_TTL

    @field_validator("team_id", "key_id", "private_key_pem")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("JWT signing fields cannot be empty")
        return value.strip()

    @field_validator("token_ttl")
    @classmethod
    def _ttl_in_range(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("Token TTL must be positive")
        if value > MAX_TOKEN_TTL:
            raise ValueError("Token TTL cannot exceed six months (15777000 seconds)")
        return value


AuthMode = Annotated[SimpleAuth | JwtAuth, Field(discriminator="kind")]


@dataclass(frozen=True)
class CredentialSnapshot:
    """Credentials as seen by one request attempt."""

    auth: SimpleAuth | JwtAuth
    user_token: str | None


class Credentials:
    """Runtime credential holder shared by every request of one client.

    The auth mode is fixed at construction. The user token may be set or
    cleared between requests; an in-flight attempt works on the
    ``snapshot()`` it took when building headers.
    """

    def __init__(
        self, auth: SimpleAuth | JwtAuth, user_token: str | None = None
    ) -> None:
        self._auth = auth
        self._user_token = _normalize_user_token(user_token)

    @property
    def auth(self) -> SimpleAuth | JwtAuth:
        return self._auth

    @property
    def user_token(self) -> str | None:
        return self._user_token

    @property
    def uses_jwt(self) -> bool:
        return isinstance(self._auth, JwtAuth)

    def set_user_token(self, user_token: str | None) -> None:
        """Set (or with ``None`` clear) the Music-User-Token."""
        self._user_token = _normalize_user_token(user_token)

    def clear_user_token(self) -> None:
        self._user_token = None

    def has_user_token(self) -> bool:
        return self._user_token is not None

    def snapshot(self) -> CredentialSnapshot:
        return CredentialSnapshot(auth=self._auth, user_token=self._user_token)


def _normalize_user_token(user_token: str | None) -> str | None:
    if user_token is None:
        return None
    user_token = user_token.strip()
    return user_token or None
