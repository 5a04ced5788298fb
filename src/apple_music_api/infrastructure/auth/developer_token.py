"""ES256 developer token signing with an expiry-aware cache.

Apple Music developer tokens are JWTs signed with the ``.p8`` key from the
Apple Developer portal:

    header  {"alg": "ES256", "kid": <key id>, "typ": "JWT"}
    claims  {"iss": <team id>, "iat": <issued at>, "exp": <expires at>}

``sign_developer_token`` is pure (no I/O); only key parsing can fail.
``DeveloperTokenProvider`` keeps the current token and re-signs it shortly
before it expires.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from apple_music_api.domain.credentials import JwtAuth
from apple_music_api.domain.exceptions import AuthError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "ES256"
DEFAULT_SKEW_MARGIN = timedelta(seconds=60)


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class SignedToken:
    """A signed developer token and its validity window."""

    value: str
    issued_at: datetime
    expires_at: datetime

    def needs_refresh(self, now: datetime, skew_margin: timedelta) -> bool:
        """True once ``now`` is within ``skew_margin`` of expiry."""
        return now >= self.expires_at - skew_margin

    def __repr__(self) -> str:
        return (
            f"SignedToken(issued_at={self.issued_at.isoformat()}, "
            f"expires_at={self.expires_at.isoformat()})"
        )


def load_signing_key(private_key_pem: str) -> ec.EllipticCurvePrivateKey:
    """Parse a PEM encoded P-256 private key.

    Raises:
        AuthError: If the PEM is malformed or not an EC P-256 key
    """
    try:
        key = serialization.load_pem_private_key(
            private_key_pem.encode("utf-8"), password=None
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise AuthError(f"Failed to load private key: {e}") from e

    if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(
        key.curve, ec.SECP256R1
    ):
        raise AuthError("Private key must be an EC P-256 key for ES256 signing")
    return key


def sign_developer_token(
    team_id: str,
    key_id: str,
    private_key_pem: str,
    issued_at: datetime,
    ttl: timedelta,
) -> SignedToken:
    """Build and sign a developer token.

    Args:
        team_id: Apple Developer Team ID (``iss`` claim)
        key_id: MusicKit key identifier (``kid`` header)
        private_key_pem: PEM text of the MusicKit private key
        issued_at: Timezone-aware issue time (``iat`` claim)
        ttl: Token lifetime; ``exp = iat + ttl``

    Returns:
        SignedToken with second-precision timestamps matching the claims

    Raises:
        AuthError: If the key cannot be parsed or signing fails
    """
    key = load_signing_key(private_key_pem)

    iat = int(issued_at.timestamp())
    exp = iat + int(ttl.total_seconds())
    claims = {"iss": team_id, "iat": iat, "exp": exp}

    try:
        value = jwt.encode(
            claims,
            key,
            algorithm=JWT_ALGORITHM,
            headers={"kid": key_id, "typ": "JWT"},
        )
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        raise AuthError(f"Failed to encode JWT: {e}") from e

    return SignedToken(
        value=value,
        issued_at=datetime.fromtimestamp(iat, UTC),
        expires_at=datetime.fromtimestamp(exp, UTC),
    )


class DeveloperTokenProvider:
    """Hands out the current developer token, re-signing when it is about to expire.

    Hey future me - many requests read the token at once, but only ONE of them
    may re-sign. The lock is held for the refresh only; after acquiring it we
    check the cache again, so a pile of callers that all saw an expiring token
    end up sharing one fresh signature. ``_token`` is rebound to a complete,
    frozen SignedToken, readers never see a half-built one.
    """

    def __init__(
        self,
        auth: JwtAuth,
        skew_margin: timedelta = DEFAULT_SKEW_MARGIN,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the provider.

        Args:
            auth: JWT signing material
            skew_margin: Re-sign this long before expiry
            clock: Returns the current aware datetime (injectable for tests)
        """
        if skew_margin < timedelta(0):
            raise ValueError("skew_margin cannot be negative")
        self._auth = auth
        self._skew_margin = skew_margin
        self._clock = clock
        self._token: SignedToken | None = None
        self._lock = asyncio.Lock()

    @property
    def current(self) -> SignedToken | None:
        """The cached token, or None before the first request."""
        return self._token

    def invalidate(self) -> None:
        """Drop the cached token; the next caller signs a new one."""
        self._token = None

    async def get_token(self) -> SignedToken:
        """Return a token that is valid for at least ``skew_margin``.

        Raises:
            AuthError: If signing fails
        """
        token = self._token
        if token is not None and not token.needs_refresh(
            self._clock(), self._skew_margin
        ):
            return token

        async with self._lock:
            token = self._token
            now = self._clock()
            if token is None or token.needs_refresh(now, self._skew_margin):
                # ECDSA signing is CPU work, keep it off the event loop.
                token = await asyncio.to_thread(
                    sign_developer_token,
                    self._auth.team_id,
                    self._auth.key_id,
                    self._auth.private_key_pem,
                    now,
                    self._auth.token_ttl,
                )
                self._token = token
                logger.info(
                    "Signed new developer token (kid=%s, expires %s)",
                    self._auth.key_id,
                    token.expires_at.isoformat(),
                )
            return token
