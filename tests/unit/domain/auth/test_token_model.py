"""Unit tests for OAuth2Token."""

from datetime import UTC, datetime, timedelta

import pytest

from fedauth.domain.auth.model.token import OAuth2Token

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class TestFromResponse:
    def test_converts_expires_in_to_absolute_expiry(self):
        token = OAuth2Token.from_response(
            {"access_token": "a", "refresh_token": "r", "expires_in": 3600, "token_type": "bearer"},
            now=NOW,
        )

        assert token.access_token == "a"
        assert token.refresh_token == "r"
        assert token.token_type == "bearer"
        assert token.expiry == NOW + timedelta(hours=1)

    def test_accepts_numeric_string_expires_in(self):
        token = OAuth2Token.from_response({"access_token": "a", "expires_in": "60"}, now=NOW)

        assert token.expiry == NOW + timedelta(seconds=60)

    @pytest.mark.parametrize("expires_in", [None, 0, "soon", True])
    def test_unknown_lifetime_has_no_expiry(self, expires_in):
        payload = {"access_token": "a"}
        if expires_in is not None:
            payload["expires_in"] = expires_in

        token = OAuth2Token.from_response(payload, now=NOW)

        assert token.expiry is None
        assert token.refresh_token == ""
        assert token.token_type == "Bearer"

    @pytest.mark.parametrize("expires_in", [float("inf"), float("-inf"), 1e15, 10**14])
    def test_out_of_range_lifetime_raises(self, expires_in):
        with pytest.raises(ValueError, match="expires_in out of range"):
            OAuth2Token.from_response({"access_token": "a", "expires_in": expires_in}, now=NOW)

    def test_missing_access_token_raises(self):
        with pytest.raises(ValueError):
            OAuth2Token.from_response({"error": "invalid_grant"})

    def test_keeps_raw_response_and_id_token(self):
        payload = {"access_token": "a", "id_token": "h.p.s", "scope": "openid"}

        token = OAuth2Token.from_response(payload, now=NOW)

        assert token.raw == payload
        assert token.id_token == "h.p.s"


class TestExpiry:
    def test_no_expiry_is_never_expired(self):
        token = OAuth2Token(access_token="a")

        assert token.is_expired(now=NOW + timedelta(days=3650)) is False

    def test_past_expiry_is_expired(self):
        token = OAuth2Token(access_token="a", expiry=NOW)

        assert token.is_expired(now=NOW + timedelta(seconds=1)) is True
        assert token.is_expired(now=NOW - timedelta(seconds=1)) is False
