"""Developer token signing."""

from apple_music_api.infrastructure.auth.developer_token import (
    DEFAULT_SKEW_MARGIN,
    DeveloperTokenProvider,
    SignedToken,
    load_signing_key,
    sign_developer_token,
)

__all__ = [
    "DEFAULT_SKEW_MARGIN",
    "DeveloperTokenProvider",
    "SignedToken",
    "load_signing_key",
    "sign_developer_token",
]
