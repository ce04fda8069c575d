"""
Unit Tests for Report Portal Configuration Parsing

Tests the portal configuration module:
- Default values for every setting
- Custom values from environment variables
- Malformed numeric values fall back to defaults
- Invalid configuration fails with RPT-040
"""

import pytest
import os
from decimal import Decimal

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from portal.config import (
    PortalConfig,
    DEFAULT_REPORT_API_BASE_URL,
    DEFAULT_TICKET_QUOTA,
    DEFAULT_TICKET_DISPLAY_LIMIT,
    DEFAULT_HIGHLIGHT_SECONDS,
    DEFAULT_LOGOUT_SECONDS,
    get_portal_config,
    reset_portal_config,
)
from portal.errors import PortalConfigurationError


ENV_VARS = [
    "REPORT_API_BASE_URL",
    "REPORT_API_TIMEOUT_SECONDS",
    "PORTAL_ALLOWED_USERS",
    "PORTAL_PASSWORD",
    "PORTAL_TICKET_QUOTA",
    "PORTAL_TICKET_DISPLAY_LIMIT",
    "PORTAL_HIGHLIGHT_SECONDS",
    "PORTAL_LOGOUT_SECONDS",
    "PORTAL_CLIENT_IP",
    "PORTAL_SEED_HISTORY",
]


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove portal variables so each test starts from defaults."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reset_portal_config()
    yield
    reset_portal_config()


# =============================================================================
# Test Default Values
# =============================================================================

class TestDefaults:

    def test_environment_defaults(self) -> None:
        config = PortalConfig.from_environment()
        assert config.report_api_base_url == DEFAULT_REPORT_API_BASE_URL
        assert config.allowed_users == frozenset({"aomchavez", "guest"})
        assert config.password == "admin"
        assert config.ticket_quota == DEFAULT_TICKET_QUOTA == 3
        assert config.ticket_display_limit == DEFAULT_TICKET_DISPLAY_LIMIT == 4
        assert config.highlight_seconds == DEFAULT_HIGHLIGHT_SECONDS == Decimal("5")
        assert config.logout_seconds == DEFAULT_LOGOUT_SECONDS == Decimal("2")
        assert config.client_ip == "127.0.0.1"
        assert config.seed_history is True

    def test_decimal_fields_coerced(self) -> None:
        config = PortalConfig(logout_seconds=1, highlight_seconds="0.5")
        assert config.logout_seconds == Decimal("1")
        assert config.highlight_seconds == Decimal("0.5")


# =============================================================================
# Test Environment Overrides
# =============================================================================

class TestEnvironmentOverrides:

    def test_custom_values(self, monkeypatch) -> None:
        monkeypatch.setenv("REPORT_API_BASE_URL", "http://reports.internal:8080/")
        monkeypatch.setenv("PORTAL_ALLOWED_USERS", "Alice, BOB ,")
        monkeypatch.setenv("PORTAL_TICKET_QUOTA", "5")
        monkeypatch.setenv("PORTAL_LOGOUT_SECONDS", "0.25")
        monkeypatch.setenv("PORTAL_SEED_HISTORY", "false")

        config = PortalConfig.from_environment()

        assert config.report_api_base_url == "http://reports.internal:8080"
        assert config.allowed_users == frozenset({"alice", "bob"})
        assert config.ticket_quota == 5
        assert config.logout_seconds == Decimal("0.25")
        assert config.seed_history is False

    def test_malformed_numbers_fall_back(self, monkeypatch) -> None:
        monkeypatch.setenv("PORTAL_TICKET_QUOTA", "three")
        monkeypatch.setenv("PORTAL_HIGHLIGHT_SECONDS", "soon")
        monkeypatch.setenv("REPORT_API_TIMEOUT_SECONDS", "NaN")

        config = PortalConfig.from_environment()

        assert config.ticket_quota == DEFAULT_TICKET_QUOTA
        assert config.highlight_seconds == DEFAULT_HIGHLIGHT_SECONDS
        assert config.report_api_timeout_seconds == Decimal("10")

    def test_allow_list_is_case_insensitive(self) -> None:
        config = PortalConfig()
        assert config.is_user_allowed("Guest")
        assert config.is_user_allowed("  AOMCHAVEZ ")
        assert not config.is_user_allowed("root")
        assert not config.is_user_allowed("")


# =============================================================================
# Test Validation
# =============================================================================

class TestValidation:

    def test_zero_quota_rejected(self, monkeypatch) -> None:
        monkeypatch.setenv("PORTAL_TICKET_QUOTA", "0")
        with pytest.raises(PortalConfigurationError) as exc_info:
            PortalConfig.from_environment()
        assert exc_info.value.error_code == "RPT-040"
        assert "PORTAL_TICKET_QUOTA" in str(exc_info.value)

    def test_validation_can_be_skipped(self, monkeypatch) -> None:
        monkeypatch.setenv("PORTAL_TICKET_QUOTA", "0")
        config = PortalConfig.from_environment(validate=False)
        assert config.ticket_quota == 0

    def test_empty_allow_list_rejected(self) -> None:
        with pytest.raises(PortalConfigurationError):
            PortalConfig(allowed_users=frozenset()).validate()

    def test_negative_logout_rejected(self) -> None:
        with pytest.raises(PortalConfigurationError):
            PortalConfig(logout_seconds=Decimal("-1")).validate()

    def test_all_errors_reported_together(self) -> None:
        with pytest.raises(PortalConfigurationError) as exc_info:
            PortalConfig(ticket_quota=0, ticket_display_limit=0, password="").validate()
        message = str(exc_info.value)
        assert "PORTAL_TICKET_QUOTA" in message
        assert "PORTAL_TICKET_DISPLAY_LIMIT" in message
        assert "PORTAL_PASSWORD" in message


# =============================================================================
# Test Serialization and Singleton
# =============================================================================

class TestSerialization:

    def test_to_dict_never_contains_password(self) -> None:
        data = PortalConfig(password="s3cret").to_dict()
        assert "password" not in data
        assert "s3cret" not in str(data)
        assert data["allowed_users"] == ["aomchavez", "guest"]

    def test_singleton_is_cached_until_reset(self, monkeypatch) -> None:
        first = get_portal_config()
        assert get_portal_config() is first

        monkeypatch.setenv("PORTAL_TICKET_QUOTA", "7")
        assert get_portal_config().ticket_quota == DEFAULT_TICKET_QUOTA

        reset_portal_config()
        assert get_portal_config().ticket_quota == 7
