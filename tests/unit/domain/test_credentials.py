"""Tests for credential holders."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from apple_music_api.domain.credentials import (
    MAX_TOKEN_TTL,
    Credentials,
    JwtAuth,
    SimpleAuth,
)


class TestAuthModes:
    """Test the tagged auth variants."""

    def test_simple_auth_strips_token(self) -> None:
        assert SimpleAuth(developer_token="  abc  ").developer_token == "abc"

    def test_simple_auth_rejects_blank(self) -> None:
        with pytest.raises(ValidationError):
            SimpleAuth(developer_token=" ")

    def test_kind_tags(self) -> None:
        """Test that each variant carries its discriminator."""
        simple = SimpleAuth(developer_token="abc")
        jwt_auth = JwtAuth(team_id="T", key_id="K", private_key_pem="pem")

        assert simple.kind == "simple"
        assert jwt_auth.kind == "jwt"

    def test_jwt_ttl_bounds(self) -> None:
        JwtAuth(team_id="T", key_id="K", private_key_pem="pem", token_ttl=MAX_TOKEN_TTL)
        with pytest.raises(ValidationError):
            JwtAuth(team_id="T", key_id="K", private_key_pem="pem", token_ttl=timedelta(0))

    def test_jwt_private_key_not_in_repr(self) -> None:
        auth = JwtAuth(team_id="T", key_id="K", private_key_pem="very-secret-pem")
        assert "very-secret-pem" not in repr(auth)


class TestCredentials:
    """Test runtime user token handling."""

    def test_user_token_set_and_clear(self) -> None:
        credentials = Credentials(SimpleAuth(developer_token="abc"))
        assert credentials.has_user_token() is False

        credentials.set_user_token("user-token")
        assert credentials.user_token == "user-token"
        assert credentials.has_user_token() is True

        credentials.clear_user_token()
        assert credentials.user_token is None

    @pytest.mark.parametrize("token", ["", "   ", None])
    def test_blank_user_token_is_none(self, token: str | None) -> None:
        credentials = Credentials(SimpleAuth(developer_token="abc"), user_token=token)
        assert credentials.has_user_token() is False

    def test_snapshot_is_stable(self) -> None:
        """Test that a snapshot does not follow later token changes."""
        credentials = Credentials(SimpleAuth(developer_token="abc"), user_token="first")
        snapshot = credentials.snapshot()

        credentials.set_user_token("second")

        assert snapshot.user_token == "first"
        assert credentials.snapshot().user_token == "second"

    def test_uses_jwt(self) -> None:
        jwt_auth = JwtAuth(team_id="T", key_id="K", private_key_pem="pem")
        assert Credentials(jwt_auth).uses_jwt is True
        assert Credentials(SimpleAuth(developer_token="abc")).uses_jwt is False
