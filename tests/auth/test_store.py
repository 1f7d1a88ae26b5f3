import pytest
from key_value.aio.stores.memory import MemoryStore

from action_relay.auth.store import (
    DEFAULT_COLLECTION,
    BoundCredentials,
    KeyValueCredentialStore,
    MemoryCredentialStore,
    create_storage,
)
from action_relay.exceptions import CredentialsNotFound


def test_memory_store_get_and_replace(credentials):
    store = MemoryCredentialStore(credentials)

    updated = store.replace_access_token(credentials.user_id, "fresh_token")

    assert updated.access_token == "fresh_token"
    assert updated.refresh_token == credentials.refresh_token
    assert updated.instance_url == credentials.instance_url
    assert store.get(credentials.user_id) == updated


def test_memory_store_missing_user():
    store = MemoryCredentialStore()

    with pytest.raises(CredentialsNotFound) as excinfo:
        store.get("005missing")

    assert isinstance(excinfo.value, KeyError)
    assert "005missing" in str(excinfo.value)
    with pytest.raises(CredentialsNotFound):
        store.replace_access_token("005missing", "token")


def test_memory_store_discard(credentials):
    store = MemoryCredentialStore(credentials)

    store.discard(credentials.user_id)
    store.discard(credentials.user_id)

    assert credentials.user_id not in store


@pytest.fixture
def kv_store():
    with KeyValueCredentialStore(MemoryStore()) as store:
        yield store


def test_key_value_store_persists_refreshed_token(credentials):
    storage = MemoryStore()
    with KeyValueCredentialStore(storage) as store:
        store.save(credentials)

    with KeyValueCredentialStore(storage) as store:
        store.replace_access_token(credentials.user_id, "fresh_token")

    with KeyValueCredentialStore(storage) as store:
        assert store.get(credentials.user_id) == credentials.with_access_token("fresh_token")


def test_key_value_store_missing_and_discard(kv_store, credentials):
    with pytest.raises(CredentialsNotFound):
        kv_store.get(credentials.user_id)
    with pytest.raises(CredentialsNotFound):
        kv_store.replace_access_token(credentials.user_id, "token")

    kv_store.save(credentials)
    kv_store.discard(credentials.user_id)

    with pytest.raises(CredentialsNotFound):
        kv_store.get(credentials.user_id)


def test_key_value_store_collections_are_separate(credentials):
    storage = MemoryStore()
    with KeyValueCredentialStore(storage) as store:
        store.save(credentials)

    with KeyValueCredentialStore(storage, collection="other") as other:
        with pytest.raises(CredentialsNotFound):
            other.get(credentials.user_id)


@pytest.mark.asyncio
async def test_key_value_store_async_interface(credentials):
    storage = MemoryStore()
    store = KeyValueCredentialStore(storage)

    await store.asave(credentials)
    updated = await store.areplace_access_token(credentials.user_id, "fresh_token")

    assert updated.refresh_token == credentials.refresh_token
    assert await store.aget(credentials.user_id) == updated
    stored = await storage.get(credentials.user_id, collection=DEFAULT_COLLECTION)
    assert stored == updated._asdict()

    await store.adiscard(credentials.user_id)
    with pytest.raises(CredentialsNotFound):
        await store.aget(credentials.user_id)


@pytest.mark.asyncio
async def test_bound_credentials_async(credentials):
    store = MemoryCredentialStore(credentials)
    bound = BoundCredentials(store, credentials.user_id)

    assert await bound.aget() == credentials
    await bound.areplace_access_token("fresh_token")
    assert store.get(credentials.user_id).access_token == "fresh_token"


def test_create_storage_defaults_to_memory():
    assert isinstance(create_storage({}), MemoryStore)


def test_create_storage_unknown_type():
    with pytest.raises(ValueError, match="Unknown storage type: sqlite"):
        create_storage({"CREDENTIAL_STORAGE_TYPE": "sqlite"})


def test_bound_credentials(credentials):
    store = MemoryCredentialStore(credentials)
    bound = BoundCredentials(store, credentials.user_id)

    assert bound.get() == credentials
    bound.replace_access_token("fresh_token")
    assert store.get(credentials.user_id).access_token == "fresh_token"


def test_credentials_repr_hides_tokens(credentials):
    text = repr(credentials)

    assert credentials.access_token not in text
    assert credentials.refresh_token not in text
    assert credentials.user_id in text
