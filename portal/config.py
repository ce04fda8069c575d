"""
============================================================================
Report Portal - Configuration
============================================================================

Reliability Level: L6 Critical
Input Constraints: Environment variables (optionally from .env)
Side Effects: Logs configuration on load

This module provides configuration management for the report portal:
- Environment variable parsing with type safety
- Default values for every setting
- Validation with fail-closed behavior on invalid config (RPT-040)

ENVIRONMENT VARIABLES:
    - REPORT_API_BASE_URL: Report service base URL (default: http://localhost:5000)
    - REPORT_API_TIMEOUT_SECONDS: Fetch timeout (default: 10)
    - PORTAL_ALLOWED_USERS: Comma-separated login allow-list (default: aomchavez,guest)
    - PORTAL_PASSWORD: Shared portal password (default: admin)
    - PORTAL_TICKET_QUOTA: Tickets per session (default: 3)
    - PORTAL_TICKET_DISPLAY_LIMIT: Tickets surfaced in the queue view (default: 4)
    - PORTAL_HIGHLIGHT_SECONDS: New ticket highlight window (default: 5)
    - PORTAL_LOGOUT_SECONDS: Logout transition length (default: 2)
    - PORTAL_CLIENT_IP: Address written to audit entries (default: 127.0.0.1)
    - PORTAL_SEED_HISTORY: Seed historical audit entries and tickets (default: true)

============================================================================
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, List, FrozenSet
from dataclasses import dataclass, field
import logging
import os

from dotenv import load_dotenv

from portal.errors import PortalConfigurationError
from portal.models import DEFAULT_CLIENT_IP

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_REPORT_API_BASE_URL = "http://localhost:5000"
DEFAULT_REPORT_API_TIMEOUT_SECONDS = Decimal("10")
DEFAULT_ALLOWED_USERS = frozenset({"aomchavez", "guest"})
DEFAULT_PASSWORD = "admin"
DEFAULT_TICKET_QUOTA = 3
DEFAULT_TICKET_DISPLAY_LIMIT = 4
DEFAULT_HIGHLIGHT_SECONDS = Decimal("5")
DEFAULT_LOGOUT_SECONDS = Decimal("2")
DEFAULT_SEED_HISTORY = True

_TRUE_VALUES = ("true", "1", "yes", "on")


# =============================================================================
# PortalConfig Class
# =============================================================================

@dataclass
class PortalConfig:
    """
    Report portal configuration.

    ============================================================================
    CONFIGURATION PARAMETERS:
    ============================================================================
    - report_api_base_url: Base URL of the report REST service
    - report_api_timeout_seconds: HTTP timeout for the fetch
    - allowed_users: Lower-cased usernames accepted at login
    - password: Shared password checked at login
    - ticket_quota: Ticket submissions allowed per session
    - ticket_display_limit: Tickets surfaced by the queue view
    - highlight_seconds: How long a new ticket stays highlighted
    - logout_seconds: Length of the LOGGING_OUT transition
    - client_ip: Address recorded on audit entries
    - seed_history: Whether to seed historical audit entries and tickets
    ============================================================================

    Reliability Level: L6 Critical
    Input Constraints: Quota and limits must be positive
    Side Effects: Logs configuration on validate
    """

    report_api_base_url: str = DEFAULT_REPORT_API_BASE_URL
    report_api_timeout_seconds: Decimal = DEFAULT_REPORT_API_TIMEOUT_SECONDS
    allowed_users: FrozenSet[str] = field(default_factory=lambda: DEFAULT_ALLOWED_USERS)
    password: str = DEFAULT_PASSWORD
    ticket_quota: int = DEFAULT_TICKET_QUOTA
    ticket_display_limit: int = DEFAULT_TICKET_DISPLAY_LIMIT
    highlight_seconds: Decimal = DEFAULT_HIGHLIGHT_SECONDS
    logout_seconds: Decimal = DEFAULT_LOGOUT_SECONDS
    client_ip: str = DEFAULT_CLIENT_IP
    seed_history: bool = DEFAULT_SEED_HISTORY

    def __post_init__(self) -> None:
        # Allow-list comparison is case-insensitive
        self.allowed_users = frozenset(
            user.strip().lower() for user in self.allowed_users if user and user.strip()
        )
        for name in ("report_api_timeout_seconds", "highlight_seconds", "logout_seconds"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                setattr(self, name, Decimal(str(value)))

    def is_user_allowed(self, username: str) -> bool:
        """Check a username against the allow-list, ignoring case."""
        if not username or not username.strip():
            return False
        return username.strip().lower() in self.allowed_users

    def validate(self) -> None:
        """
        Validate configuration completeness.

        Raises:
            PortalConfigurationError: If any setting is out of range (RPT-040)
        """
        errors: List[str] = []

        if not self.report_api_base_url.strip():
            errors.append("REPORT_API_BASE_URL must not be empty")

        if self.report_api_timeout_seconds <= 0:
            errors.append(
                f"REPORT_API_TIMEOUT_SECONDS must be positive, got: {self.report_api_timeout_seconds}"
            )

        if not self.allowed_users:
            errors.append("PORTAL_ALLOWED_USERS must name at least one user")

        if not self.password:
            errors.append("PORTAL_PASSWORD must not be empty")

        if self.ticket_quota <= 0:
            errors.append(f"PORTAL_TICKET_QUOTA must be positive, got: {self.ticket_quota}")

        if self.ticket_display_limit <= 0:
            errors.append(
                f"PORTAL_TICKET_DISPLAY_LIMIT must be positive, got: {self.ticket_display_limit}"
            )

        if self.highlight_seconds < 0:
            errors.append(f"PORTAL_HIGHLIGHT_SECONDS must be non-negative, got: {self.highlight_seconds}")

        if self.logout_seconds < 0:
            errors.append(f"PORTAL_LOGOUT_SECONDS must be non-negative, got: {self.logout_seconds}")

        if errors:
            error_msg = "Portal configuration validation failed: " + "; ".join(errors)
            logger.error(f"[{PortalConfigurationError.error_code}] {error_msg}")
            raise PortalConfigurationError(error_msg)

        logger.info(
            f"[PORTAL-CONFIG] Configuration validated | "
            f"report_api_base_url={self.report_api_base_url} | "
            f"ticket_quota={self.ticket_quota} | "
            f"ticket_display_limit={self.ticket_display_limit} | "
            f"allowed_users_count={len(self.allowed_users)}"
        )

    @classmethod
    def from_environment(cls, validate: bool = True) -> "PortalConfig":
        """
        Load configuration from environment variables (and .env if present).

        Malformed numeric values fall back to their defaults with a warning.

        Args:
            validate: Whether to validate configuration after loading

        Raises:
            PortalConfigurationError: If validation fails
        """
        load_dotenv()

        allowed_str = os.environ.get("PORTAL_ALLOWED_USERS", "")
        allowed_users = frozenset(u.strip() for u in allowed_str.split(",") if u.strip())
        if not allowed_users:
            allowed_users = DEFAULT_ALLOWED_USERS

        seed_str = os.environ.get("PORTAL_SEED_HISTORY", "true").lower().strip()

        config = cls(
            report_api_base_url=os.environ.get(
                "REPORT_API_BASE_URL", DEFAULT_REPORT_API_BASE_URL
            ).strip().rstrip("/"),
            report_api_timeout_seconds=_env_decimal(
                "REPORT_API_TIMEOUT_SECONDS", DEFAULT_REPORT_API_TIMEOUT_SECONDS
            ),
            allowed_users=allowed_users,
            password=os.environ.get("PORTAL_PASSWORD", DEFAULT_PASSWORD),
            ticket_quota=_env_int("PORTAL_TICKET_QUOTA", DEFAULT_TICKET_QUOTA),
            ticket_display_limit=_env_int("PORTAL_TICKET_DISPLAY_LIMIT", DEFAULT_TICKET_DISPLAY_LIMIT),
            highlight_seconds=_env_decimal("PORTAL_HIGHLIGHT_SECONDS", DEFAULT_HIGHLIGHT_SECONDS),
            logout_seconds=_env_decimal("PORTAL_LOGOUT_SECONDS", DEFAULT_LOGOUT_SECONDS),
            client_ip=os.environ.get("PORTAL_CLIENT_IP", DEFAULT_CLIENT_IP).strip(),
            seed_history=seed_str in _TRUE_VALUES,
        )

        logger.info(
            f"[PORTAL-CONFIG] Loading configuration from environment | "
            f"REPORT_API_BASE_URL={config.report_api_base_url} | "
            f"PORTAL_TICKET_QUOTA={config.ticket_quota} | "
            f"PORTAL_SEED_HISTORY={config.seed_history}"
        )

        if validate:
            config.validate()

        return config

    def to_dict(self) -> dict:
        """Serialize for logging. The password is never included."""
        return {
            "report_api_base_url": self.report_api_base_url,
            "report_api_timeout_seconds": str(self.report_api_timeout_seconds),
            "allowed_users": sorted(self.allowed_users),
            "ticket_quota": self.ticket_quota,
            "ticket_display_limit": self.ticket_display_limit,
            "highlight_seconds": str(self.highlight_seconds),
            "logout_seconds": str(self.logout_seconds),
            "client_ip": self.client_ip,
            "seed_history": self.seed_history,
        }


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, str(default))
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning(f"[PORTAL-CONFIG] Invalid {name} value: {raw}, using default: {default}")
        return default


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.environ.get(name, str(default))
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        logger.warning(f"[PORTAL-CONFIG] Invalid {name} value: {raw}, using default: {default}")
        return default
    if not value.is_finite():
        logger.warning(f"[PORTAL-CONFIG] Invalid {name} value: {raw}, using default: {default}")
        return default
    return value


# =============================================================================
# Module-Level Configuration Instance
# =============================================================================

_config_instance: Optional[PortalConfig] = None


def get_portal_config(validate: bool = True) -> PortalConfig:
    """Get the process-wide configuration, loading it on first access."""
    global _config_instance

    if _config_instance is None:
        _config_instance = PortalConfig.from_environment(validate=validate)

    return _config_instance


def reset_portal_config() -> None:
    """Drop the cached configuration (used by tests)."""
    global _config_instance
    _config_instance = None
    logger.debug("[PORTAL-CONFIG] Configuration instance reset")


__all__ = [
    "PortalConfig",
    "DEFAULT_REPORT_API_BASE_URL",
    "DEFAULT_ALLOWED_USERS",
    "DEFAULT_PASSWORD",
    "DEFAULT_TICKET_QUOTA",
    "DEFAULT_TICKET_DISPLAY_LIMIT",
    "DEFAULT_HIGHLIGHT_SECONDS",
    "DEFAULT_LOGOUT_SECONDS",
    "get_portal_config",
    "reset_portal_config",
]
