"""
Environment-specific configuration settings.

Defaults match the backend contract the web client was built against:
messages every 4 seconds, the notification badge every 30.
"""

from dataclasses import dataclass
import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw not in (None, "") else default


@dataclass
class Settings:
    """Client settings with conservative defaults."""

    # Environment
    environment: str = "dev"
    api_url: str = "http://localhost:8080/api"

    # Polling cadence
    message_poll_seconds: float = 4.0
    notification_poll_seconds: float = 30.0

    # HTTP
    request_timeout_seconds: float = 10.0

    # Lifecycle policy: may administrators reopen CLOSED/VOID tickets?
    allow_admin_reopen: bool = False

    # Scroll attention thresholds (pixels)
    pin_threshold_px: int = 150
    affordance_threshold_px: int = 100

    # Technician roster cache
    roster_cache_ttl_seconds: float = 300.0

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("HELPDESK_ENVIRONMENT", "dev")
        allow_admin_reopen = (
            os.environ.get("HELPDESK_ALLOW_ADMIN_REOPEN", "false").lower() == "true"
        )
        common = dict(
            environment=env,
            api_url=os.environ.get("HELPDESK_API_URL", cls.api_url),
            message_poll_seconds=_env_float(
                "HELPDESK_MESSAGE_POLL_SECONDS", cls.message_poll_seconds
            ),
            notification_poll_seconds=_env_float(
                "HELPDESK_NOTIFICATION_POLL_SECONDS", cls.notification_poll_seconds
            ),
            request_timeout_seconds=_env_float(
                "HELPDESK_REQUEST_TIMEOUT_SECONDS", cls.request_timeout_seconds
            ),
            allow_admin_reopen=allow_admin_reopen,
            roster_cache_ttl_seconds=_env_float(
                "HELPDESK_ROSTER_CACHE_TTL_SECONDS", cls.roster_cache_ttl_seconds
            ),
        )

        # Production overrides
        if env == "prod":
            common["request_timeout_seconds"] = _env_float(
                "HELPDESK_REQUEST_TIMEOUT_SECONDS", 5.0
            )
            common["roster_cache_ttl_seconds"] = _env_float(
                "HELPDESK_ROSTER_CACHE_TTL_SECONDS", 600.0
            )

        return cls(**common)
