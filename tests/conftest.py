import json
from collections.abc import Callable

import httpx
import pytest

from action_relay.auth.store import BoundCredentials, MemoryCredentialStore
from action_relay.auth.types import Credentials
from action_relay.client import SalesforceClient
from action_relay.config import RelayConfig
from action_relay.exceptions import SalesforceExpiredSession
from action_relay.executor import RemoteCallExecutor

INSTANCE_URL = "https://test.my.salesforce.com"


@pytest.fixture
def config():
    return RelayConfig(
        client_id="test_client_id",
        client_secret="test_client_secret",
        api_version="v63.0",
        login_url="https://login.salesforce.com",
        timeout=5.0,
    )


@pytest.fixture
def credentials():
    return Credentials(
        access_token="expired_token",
        refresh_token="test_refresh_token",
        instance_url=INSTANCE_URL,
        user_id="005000000000001AAA",
    )


@pytest.fixture
def store(credentials):
    return MemoryCredentialStore(credentials)


@pytest.fixture
def refresher(mocker):
    refresher = mocker.Mock()
    refresher.refresh.return_value = "fresh_token"
    return refresher


@pytest.fixture
def executor(store, credentials, refresher, config):
    return RemoteCallExecutor(
        BoundCredentials(store, credentials.user_id), refresher, config.client_id
    )


@pytest.fixture
def mock_sf_client(mocker):
    return mocker.MagicMock(spec=SalesforceClient)


def _expired_session(resource_name: str = "Query") -> SalesforceExpiredSession:
    return SalesforceExpiredSession(
        401,
        resource_name,
        "/services/data/v63.0/query",
        "GET",
        json.dumps(
            [{"message": "Session expired or invalid", "errorCode": "INVALID_SESSION_ID"}]
        ),
    )


@pytest.fixture
def expired_session():
    """Factory for the error Salesforce returns for an expired access token"""
    return _expired_session


def userinfo_json(instance_url: str = INSTANCE_URL):
    return {
        "user_id": "005000000000001AAA",
        "organization_id": "00D000000000001AAA",
        "preferred_username": "test@example.com",
        "urls": {
            "rest": f"{instance_url}/services/data/v{{version}}/",
            "sobjects": f"{instance_url}/services/data/v{{version}}/sobjects/",
        },
    }


@pytest.fixture
def userinfo():
    return userinfo_json()


Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def transport_client(config):
    """
    Build a SalesforceClient over an ``httpx.MockTransport``.

    The userinfo endpoint of any instance is answered automatically; every
    other request is passed to ``handler``. Sent requests are collected on
    ``client.sent``.
    """
    clients = []

    def _build(handler: Handler) -> SalesforceClient:
        sent: list[httpx.Request] = []

        def _dispatch(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            if request.url.path == "/services/oauth2/userinfo":
                instance_url = f"{request.url.scheme}://{request.url.host}"
                return httpx.Response(200, json=userinfo_json(instance_url))
            return handler(request)

        client = SalesforceClient(config, transport=httpx.MockTransport(_dispatch))
        client.sent = sent
        clients.append(client)
        return client

    yield _build
    for client in clients:
        client.close()
