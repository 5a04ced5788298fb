"""Tests for the error taxonomy."""

import pytest

from apple_music_api.domain.exceptions import (
    ApiError,
    AppleMusicError,
    AuthError,
    ConfigError,
    DecodeError,
    InvalidRequestError,
    RateLimitError,
    ServerError,
    TransportError,
)


class TestErrorHierarchy:
    """Test shared behaviour of all client errors."""

    @pytest.mark.parametrize(
        "error",
        [
            ConfigError("bad"),
            InvalidRequestError("bad"),
            AuthError("bad"),
            ApiError(400, "bad"),
            ServerError(500, "bad"),
            RateLimitError("bad"),
            TransportError("bad"),
            DecodeError("bad"),
        ],
    )
    def test_all_are_apple_music_errors(self, error: AppleMusicError) -> None:
        assert isinstance(error, AppleMusicError)
        assert error.message == "bad"

    @pytest.mark.parametrize(
        ("error", "retryable"),
        [
            (ConfigError("x"), False),
            (AuthError("x", status_code=401), False),
            (ApiError(404, "x"), False),
            (DecodeError("x"), False),
            (ServerError(502, "x"), True),
            (RateLimitError("x"), True),
            (TransportError("x"), True),
        ],
    )
    def test_retryable_flag(self, error: AppleMusicError, retryable: bool) -> None:
        assert error.retryable is retryable

    def test_server_error_is_not_api_error(self) -> None:
        """Test that `except ApiError` never swallows the retryable 5xx kind."""
        error = ServerError(500, "boom")
        assert not isinstance(error, ApiError)
        assert error.status_code == 500
        assert str(error) == "500: boom"


class TestErrorMessages:
    """Test that str() carries status and remote text."""

    def test_api_error_str(self) -> None:
        assert str(ApiError(404, "Resource Not Found")) == "404: Resource Not Found"

    def test_local_auth_error_has_no_status(self) -> None:
        error = AuthError("Failed to load private key")
        assert error.status_code is None
        assert str(error) == "Failed to load private key"

    def test_rate_limit_str_includes_hint(self) -> None:
        error = RateLimitError("Too Many Requests", retry_after=5.0)
        assert error.status_code == 429
        assert str(error) == "429: Too Many Requests (retry after 5s)"

    def test_config_error_status_is_none(self) -> None:
        assert ConfigError("x").status_code is None
