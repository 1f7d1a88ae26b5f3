"""Credential stores.

Refreshing an access token replaces only that field; the refresh token,
instance URL and user id of a principal never change while it stays logged
in. Concurrent replacements are last-writer-wins.
"""

import asyncio
from collections.abc import Coroutine, Mapping
import os
from threading import Lock
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar

from ..exceptions import CredentialsNotFound
from ..logger import getLogger
from .types import Credentials, CredentialStore

if TYPE_CHECKING:
    from key_value.aio.protocols.key_value import AsyncKeyValue

LOGGER = getLogger("auth.store")

_T = TypeVar("_T")

DEFAULT_COLLECTION = "salesforce_credentials"


class MemoryCredentialStore:
    """Process-local store, for tests and single-process deployments."""

    def __init__(self, *credentials: Credentials):
        self._lock = Lock()
        self._credentials: dict[str, Credentials] = {}
        for creds in credentials:
            self.save(creds)

    def get(self, user_id: str) -> Credentials:
        try:
            return self._credentials[user_id]
        except KeyError:
            raise CredentialsNotFound(user_id) from None

    def save(self, credentials: Credentials) -> None:
        with self._lock:
            self._credentials[credentials.user_id] = credentials

    def replace_access_token(self, user_id: str, access_token: str) -> Credentials:
        with self._lock:
            current = self.get(user_id)
            updated = current.with_access_token(access_token)
            self._credentials[user_id] = updated
        LOGGER.debug("Replaced access token for user %s", user_id)
        return updated

    def discard(self, user_id: str) -> None:
        with self._lock:
            self._credentials.pop(user_id, None)

    async def aget(self, user_id: str) -> Credentials:
        return self.get(user_id)

    async def asave(self, credentials: Credentials) -> None:
        self.save(credentials)

    async def areplace_access_token(self, user_id: str, access_token: str) -> Credentials:
        return self.replace_access_token(user_id, access_token)

    async def adiscard(self, user_id: str) -> None:
        self.discard(user_id)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._credentials


class KeyValueCredentialStore:
    """
    Durable store over a ``py-key-value`` backend, one entry per principal
    in ``collection``.

    The ``a``-prefixed methods are the native interface. The plain methods
    drive the same coroutines on a private event loop for synchronous
    callers, and must not be called from inside a running event loop. Use
    one interface per store instance: backends such as Redis bind their
    connections to the loop they were first used on.
    """

    def __init__(self, storage: "AsyncKeyValue", collection: str = DEFAULT_COLLECTION):
        self.storage = storage
        self.collection = collection
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_lock = Lock()

    async def aget(self, user_id: str) -> Credentials:
        data = await self.storage.get(user_id, collection=self.collection)
        if data is None:
            raise CredentialsNotFound(user_id)
        return Credentials(*(data[field] for field in Credentials._fields))

    async def asave(self, credentials: Credentials) -> None:
        await self.storage.put(
            credentials.user_id, credentials._asdict(), collection=self.collection
        )

    async def areplace_access_token(self, user_id: str, access_token: str) -> Credentials:
        updated = (await self.aget(user_id)).with_access_token(access_token)
        await self.asave(updated)
        LOGGER.debug("Persisted refreshed access token for user %s", user_id)
        return updated

    async def adiscard(self, user_id: str) -> None:
        await self.storage.delete(user_id, collection=self.collection)

    def _run(self, coroutine: Coroutine[Any, Any, _T]) -> _T:
        with self._loop_lock:
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
            return self._loop.run_until_complete(coroutine)

    def get(self, user_id: str) -> Credentials:
        return self._run(self.aget(user_id))

    def save(self, credentials: Credentials) -> None:
        self._run(self.asave(credentials))

    def replace_access_token(self, user_id: str, access_token: str) -> Credentials:
        return self._run(self.areplace_access_token(user_id, access_token))

    def discard(self, user_id: str) -> None:
        self._run(self.adiscard(user_id))

    def close(self):
        with self._loop_lock:
            if self._loop is not None:
                self._loop.close()
                self._loop = None

    def __enter__(self):
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()


def create_storage(environ: Mapping[str, str] | None = None) -> "AsyncKeyValue":
    """Create the key-value backend named by the environment.

    Environment variables:
        CREDENTIAL_STORAGE_TYPE: 'memory' (default) or 'redis'
        REDIS_URL: Redis connection URL (default: redis://localhost:6379)

    Raises:
        ValueError: If an unknown storage type is named
    """
    if environ is None:
        environ = os.environ
    storage_type = environ.get("CREDENTIAL_STORAGE_TYPE", "memory").lower()

    if storage_type == "memory":
        from key_value.aio.stores.memory import MemoryStore

        LOGGER.info("Using in-memory credential storage")
        return MemoryStore()

    if storage_type == "redis":
        from key_value.aio.stores.redis import RedisStore

        redis_url = environ.get("REDIS_URL", "redis://localhost:6379")
        LOGGER.info("Using Redis credential storage at %s", redis_url)
        return RedisStore(url=redis_url)

    raise ValueError(f"Unknown storage type: {storage_type}")


class BoundCredentials:
    """A store narrowed to a single principal."""

    def __init__(self, store: CredentialStore, user_id: str):
        self.store = store
        self.user_id = user_id

    def get(self) -> Credentials:
        return self.store.get(self.user_id)

    def replace_access_token(self, access_token: str) -> Credentials:
        return self.store.replace_access_token(self.user_id, access_token)

    async def aget(self) -> Credentials:
        return await self.store.aget(self.user_id)

    async def areplace_access_token(self, access_token: str) -> Credentials:
        return await self.store.areplace_access_token(self.user_id, access_token)
