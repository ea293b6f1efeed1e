"""Unit tests for admin API key authentication."""

from unittest.mock import patch

import pytest

from app.core.auth import parse_api_keys, validate_api_key, verify_api_key
from app.core.errors import AuthenticationAppError

ADMIN_KEYS = "ops-key-1, ops-key-2"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("ops-key", {"ops-key"}),
        ("a,b,c", {"a", "b", "c"}),
        (" a , b  ,  c ", {"a", "b", "c"}),
        ("a,b,a,c,b", {"a", "b", "c"}),
        (None, set()),
        ("", set()),
        ("   ,  ,  ", set()),
    ],
)
def test_parse_api_keys(raw, expected) -> None:
    assert parse_api_keys(raw) == expected


@pytest.fixture
def auth_settings():
    """Patch auth settings: required, with two configured admin keys."""
    with patch("app.core.auth.settings") as mock_settings:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = ADMIN_KEYS
        yield mock_settings


class TestValidateAPIKey:
    def test_accepts_each_configured_key(self, auth_settings) -> None:
        validate_api_key("ops-key-1")
        validate_api_key("ops-key-2")

    @pytest.mark.parametrize("provided", [None, ""])
    def test_rejects_absent_key(self, auth_settings, provided) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key(provided)

        assert exc_info.value.code == "missing_api_key"
        assert "X-API-Key" in exc_info.value.message

    @pytest.mark.parametrize("provided", ["ops-key-3", " ops-key-1 ", "OPS-KEY-1"])
    def test_rejects_unknown_key(self, auth_settings, provided) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key(provided)

        assert exc_info.value.code == "invalid_api_key"
        assert exc_info.value.message == "Invalid or missing API key"

    @pytest.mark.parametrize("configured", [None, "", " , "])
    def test_fails_closed_without_configured_keys(self, auth_settings, configured) -> None:
        auth_settings.app.api_keys = configured

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("ops-key-1")

        assert exc_info.value.code == "api_keys_not_configured"
        assert "APP_API_KEYS" in exc_info.value.details["hint"]

    def test_bypassed_when_not_required(self, auth_settings) -> None:
        auth_settings.app.api_key_required = False
        auth_settings.app.api_keys = None

        validate_api_key(None)
        validate_api_key("anything")


class TestVerifyAPIKeyDependency:
    @pytest.mark.asyncio
    async def test_accepts_valid_header(self, auth_settings) -> None:
        await verify_api_key(x_api_key="ops-key-2")

    @pytest.mark.asyncio
    async def test_missing_header_raises_domain_error(self, auth_settings) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            await verify_api_key(x_api_key=None)

        assert exc_info.value.code == "missing_api_key"

    @pytest.mark.asyncio
    async def test_invalid_header_raises_domain_error(self, auth_settings) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            await verify_api_key(x_api_key="wrong-key")

        assert exc_info.value.code == "invalid_api_key"

    @pytest.mark.asyncio
    async def test_open_when_not_required(self, auth_settings) -> None:
        auth_settings.app.api_key_required = False

        await verify_api_key(x_api_key=None)
