"""OAuth 2.0 flows against the Salesforce authorization server.

Each flow is a generator: it yields the ``httpx.Request`` it needs sent,
receives the ``httpx.Response`` back, and returns its result. The
``TokenRefresher`` drives the generators over a real ``httpx.Client``; tests
can drive them by hand.
"""

from json import JSONDecodeError
from types import TracebackType
from typing import Any
from urllib.parse import urlencode

import httpx

from ..config import RelayConfig
from ..exceptions import (
    AuthMissingResponse,
    AuthRefreshError,
    SalesforceAuthenticationFailed,
)
from ..logger import getLogger
from .types import Credentials, SalesforceTokenGenerator

LOGGER = getLogger("auth.oauth")

DEFAULT_SCOPES = ("api", "refresh_token")


def authorization_url(
    config: RelayConfig,
    redirect_uri: str,
    state: str | None = None,
    scopes: tuple[str, ...] | None = DEFAULT_SCOPES,
) -> str:
    """The URL a user is sent to in order to grant this app access."""
    params = {
        "response_type": "code",
        "client_id": config.client_id,
        "redirect_uri": redirect_uri,
    }
    if scopes:
        params["scope"] = " ".join(scopes)
    if state:
        params["state"] = state
    return f"{config.authorize_url}?{urlencode(params)}"


def token_login(
    token_url: str,
    token_data: dict[str, str],
    error_type: type[SalesforceAuthenticationFailed] = SalesforceAuthenticationFailed,
) -> SalesforceTokenGenerator:
    """POST ``token_data`` to the token endpoint and return the decoded body."""
    response = yield httpx.Request(
        "POST",
        token_url,
        data=token_data,
        headers={"Accept": "application/json"},
    )
    if response is None:
        raise AuthMissingResponse()

    try:
        json_response = response.json()
    except JSONDecodeError as exc:
        raise error_type(str(response.status_code), response.text) from exc

    if response.status_code != 200:
        if not isinstance(json_response, dict):
            raise error_type(str(response.status_code), response.text)
        raise error_type(
            json_response.get("error"), json_response.get("error_description")
        )

    if not isinstance(json_response, dict) or not json_response.get("access_token"):
        raise error_type("invalid_response", "Token response has no access_token")
    return json_response


def refresh_token_flow(
    config: RelayConfig, refresh_token: str, client_id: str | None = None
) -> SalesforceTokenGenerator:
    """Exchange a refresh token for a new access token."""
    token_data = {
        "grant_type": "refresh_token",
        "client_id": client_id or config.client_id,
        "refresh_token": refresh_token,
    }
    if config.client_secret:
        token_data["client_secret"] = config.client_secret

    token_response = yield from token_login(config.token_url, token_data, AuthRefreshError)
    return token_response["access_token"]


def _user_id_from_identity_url(identity_url: str) -> str:
    # https://login.salesforce.com/id/<org id>/<user id>
    return identity_url.rstrip("/").rsplit("/", 1)[-1]


def authorization_code_flow(
    config: RelayConfig, code: str, redirect_uri: str
) -> SalesforceTokenGenerator:
    """Complete the web server flow, returning the new principal's credentials."""
    token_data = {
        "grant_type": "authorization_code",
        "code": code,
        "client_id": config.client_id,
        "redirect_uri": redirect_uri,
    }
    if config.client_secret:
        token_data["client_secret"] = config.client_secret

    token_response: dict[str, Any] = yield from token_login(config.token_url, token_data)
    try:
        return Credentials(
            access_token=token_response["access_token"],
            refresh_token=token_response["refresh_token"],
            instance_url=token_response["instance_url"],
            user_id=_user_id_from_identity_url(token_response["id"]),
        )
    except KeyError as missing:
        raise SalesforceAuthenticationFailed(
            "invalid_response", f"Token response has no {missing.args[0]}"
        ) from None


class TokenRefresher:
    """Runs token flows over HTTP with a bounded timeout."""

    def __init__(self, config: RelayConfig, http_client: httpx.Client | None = None):
        self.config = config
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=config.timeout)

    def _drive(self, flow: SalesforceTokenGenerator):
        try:
            request = next(flow)
            while True:
                response = self.http_client.send(request) if request is not None else None
                request = flow.send(response)
        except StopIteration as result:
            return result.value

    def refresh(self, client_id: str, refresh_token: str) -> str:
        """
        Get a new access token.

        Raises:
            AuthRefreshError: the refresh token was rejected
        """
        LOGGER.info("Refreshing access token against %s", self.config.login_url)
        access_token = self._drive(
            refresh_token_flow(self.config, refresh_token, client_id)
        )
        LOGGER.debug("Access token refreshed")
        return access_token

    def exchange_code(self, code: str, redirect_uri: str) -> Credentials:
        credentials: Credentials = self._drive(
            authorization_code_flow(self.config, code, redirect_uri)
        )
        LOGGER.info(
            "Logged in user %s at %s", credentials.user_id, credentials.instance_url
        )
        return credentials

    def close(self):
        if self._owns_client:
            self.http_client.close()

    def __enter__(self):
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()
