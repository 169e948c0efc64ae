"""
Brokerage Client - Configuration.

============================================================
PURPOSE
============================================================
All configuration for the brokerage client.

CRITICAL CONSTRAINTS:
- No retries, no rate limiting
- Timeouts are the transport's unless set explicitly here
- Credentials come from the environment, never from code

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

import aiohttp
from dotenv import load_dotenv


CERT_BASE_URL = "https://api.cert.tastyworks.com"
PRODUCTION_BASE_URL = "https://api.tastyworks.com"


# ============================================================
# TIMEOUT CONFIGURATION
# ============================================================

@dataclass
class TimeoutConfig:
    """
    Transport timeout settings.

    Unset values leave aiohttp's defaults in place.
    """

    connection_timeout_seconds: Optional[float] = None
    """Connection timeout."""

    total_timeout_seconds: Optional[float] = None
    """Total request timeout."""

    def to_client_timeout(self) -> Optional[aiohttp.ClientTimeout]:
        """Build an aiohttp timeout, or None to keep the defaults."""
        if self.connection_timeout_seconds is None and self.total_timeout_seconds is None:
            return None
        return aiohttp.ClientTimeout(
            connect=self.connection_timeout_seconds,
            total=self.total_timeout_seconds,
        )


# ============================================================
# CLIENT CONFIGURATION
# ============================================================

@dataclass
class ClientConfig:
    """
    Master configuration for the brokerage client.
    """

    base_url: str = CERT_BASE_URL
    """REST API base URL."""

    user_agent: str = "brokerage-client"
    """User-Agent header sent with every request."""

    # Credentials (loaded from env)
    login_env: str = "BROKERAGE_LOGIN"
    """Environment variable for the login name."""

    password_env: str = "BROKERAGE_PASSWORD"
    """Environment variable for the password."""

    remember_me: bool = False
    """Whether to ask the broker for a remember token at login."""

    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    """Transport timeouts."""

    log_response_bodies: bool = True
    """Whether the default response sink logs raw bodies at DEBUG."""

    def url(self, path: str) -> str:
        """Join the base URL and an endpoint path."""
        return f"{self.base_url.rstrip('/')}{path}"

    def credentials(self) -> Tuple[str, str]:
        """
        Read login and password from the environment.

        Raises:
            ValueError: If either variable is unset
        """
        login = os.environ.get(self.login_env, "")
        password = os.environ.get(self.password_env, "")
        if not login or not password:
            raise ValueError(
                f"Broker credentials are required. "
                f"Set {self.login_env} and {self.password_env} environment variables."
            )
        return login, password

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "ClientConfig":
        """
        Build a configuration from environment variables.

        Reads BROKERAGE_BASE_URL, BROKERAGE_USER_AGENT and
        BROKERAGE_REMEMBER_ME; a .env file is loaded first when present.
        """
        if dotenv:
            load_dotenv()
        config = cls()
        config.base_url = os.getenv("BROKERAGE_BASE_URL", config.base_url)
        config.user_agent = os.getenv("BROKERAGE_USER_AGENT", config.user_agent)
        remember = os.getenv("BROKERAGE_REMEMBER_ME")
        if remember is not None:
            config.remember_me = remember.strip().lower() in ("1", "true", "yes")
        return config

    @classmethod
    def for_testing(cls) -> "ClientConfig":
        """Configuration against the certification sandbox."""
        return cls(base_url=CERT_BASE_URL)

    @classmethod
    def for_production(cls) -> "ClientConfig":
        """Configuration against the production API."""
        return cls(base_url=PRODUCTION_BASE_URL, log_response_bodies=False)
