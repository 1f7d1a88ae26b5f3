"""
Exercise a real org. Needs SALESFORCE_CLIENT_ID, SALESFORCE_INSTANCE_URL,
SALESFORCE_REFRESH_TOKEN and SALESFORCE_USER_ID; the access token is obtained
by refreshing, so the executor path is covered end to end.
"""

import os
import uuid

import pytest

from action_relay import (
    Credentials,
    GeneratedObject,
    MemoryCredentialStore,
    RelayConfig,
    RelayOperations,
)

REQUIRED_ENV = (
    "SALESFORCE_CLIENT_ID",
    "SALESFORCE_INSTANCE_URL",
    "SALESFORCE_REFRESH_TOKEN",
    "SALESFORCE_USER_ID",
)

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not all(os.getenv(var) for var in REQUIRED_ENV),
        reason="live org credentials not configured",
    ),
]


@pytest.fixture
def live_operations():
    config = RelayConfig.from_env()
    store = MemoryCredentialStore(
        Credentials(
            access_token="not a valid token",
            refresh_token=os.environ["SALESFORCE_REFRESH_TOKEN"],
            instance_url=os.environ["SALESFORCE_INSTANCE_URL"],
            user_id=os.environ["SALESFORCE_USER_ID"],
        )
    )
    with RelayOperations.for_user(config, store, os.environ["SALESFORCE_USER_ID"]) as ops:
        yield ops


def test_contacts_after_forced_refresh(live_operations):
    contacts = live_operations.get_contacts()

    assert isinstance(contacts, list)
    assert live_operations.executor.credentials.get().access_token != "not a valid token"


def test_webhook_lifecycle(live_operations):
    name = "Test" + uuid.uuid4().hex[:8]
    created = live_operations.create_generated_objects(
        GeneratedObject(name=name, target_entity="Contact", url="https://example.com/hook")
    )
    try:
        listed = {w.name: w for w in live_operations.list_generated_objects()}
        assert listed[name].target_entity == "Contact"
        assert listed[name].remote_id == created.remote_id
    finally:
        live_operations.delete_generated_object(created)
