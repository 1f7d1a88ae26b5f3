from collections.abc import Mapping
import os
from typing import NamedTuple

from .logger import getLogger

LOGGER = getLogger("config")

DEFAULT_API_VERSION = "v63.0"
DEFAULT_LOGIN_URL = "https://login.salesforce.com"
DEFAULT_TIMEOUT = 30.0


class RelayConfig(NamedTuple):
    """
    Settings shared by the token refresher, the REST client and the domain
    operations. Build it once at start-up and pass it around.

    Attributes:
        client_id: Connected App consumer key
        client_secret: Connected App consumer secret, if the app requires one
        api_version: REST API version, e.g. ``v63.0``
        login_url: authorization server base URL
        timeout: seconds allowed for any single remote call
    """

    client_id: str
    client_secret: str | None = None
    api_version: str = DEFAULT_API_VERSION
    login_url: str = DEFAULT_LOGIN_URL
    timeout: float = DEFAULT_TIMEOUT

    @property
    def api_version_number(self) -> str:
        """The version without its ``v`` prefix, as Apex metadata expects it."""
        return self.api_version.lstrip("vV")

    @property
    def token_url(self) -> str:
        return f"{self.login_url.rstrip('/')}/services/oauth2/token"

    @property
    def authorize_url(self) -> str:
        return f"{self.login_url.rstrip('/')}/services/oauth2/authorize"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None):
        """
        Build the configuration from environment variables.

        Required:
            SALESFORCE_CLIENT_ID

        Optional:
            SALESFORCE_CLIENT_SECRET
            SALESFORCE_API_VERSION (default: v63.0)
            SALESFORCE_LOGIN_URL (default: https://login.salesforce.com)
            SALESFORCE_TIMEOUT (default: 30 seconds)
        """
        env = os.environ if environ is None else environ
        client_id = env.get("SALESFORCE_CLIENT_ID")
        if not client_id:
            raise ValueError("SALESFORCE_CLIENT_ID is not set")

        api_version = env.get("SALESFORCE_API_VERSION", DEFAULT_API_VERSION)
        if not api_version.lower().startswith("v"):
            api_version = "v" + api_version

        timeout_str = env.get("SALESFORCE_TIMEOUT")
        try:
            timeout = float(timeout_str) if timeout_str else DEFAULT_TIMEOUT
        except ValueError:
            raise ValueError(
                f"SALESFORCE_TIMEOUT must be a number of seconds, got {timeout_str!r}"
            ) from None
        if timeout <= 0:
            raise ValueError("SALESFORCE_TIMEOUT must be positive")

        config = cls(
            client_id=client_id,
            client_secret=env.get("SALESFORCE_CLIENT_SECRET") or None,
            api_version=api_version,
            login_url=env.get("SALESFORCE_LOGIN_URL", DEFAULT_LOGIN_URL),
            timeout=timeout,
        )
        LOGGER.debug(
            "Loaded configuration: api_version=%s, login_url=%s, timeout=%s",
            config.api_version,
            config.login_url,
            config.timeout,
        )
        return config
