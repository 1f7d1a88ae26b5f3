"""
Runs units of work against Salesforce, refreshing an expired access token
once and retrying.

No expiry clock is kept. The executor waits for Salesforce to reject the
token with ``INVALID_SESSION_ID``, refreshes it, stores the new token and
runs the unit of work a second time. A second rejection is final.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Protocol, TypeVar

from .auth.types import Credentials, TokenRefreshCallback
from .exceptions import SalesforceExpiredSession
from .logger import getLogger

LOGGER = getLogger("executor")

_T = TypeVar("_T")

UnitOfWork = Callable[[Credentials], _T]
AsyncUnitOfWork = Callable[[Credentials], Awaitable[_T]]


class PrincipalCredentials(Protocol):
    def get(self) -> Credentials: ...

    def replace_access_token(self, access_token: str) -> Credentials: ...

    async def aget(self) -> Credentials: ...

    async def areplace_access_token(self, access_token: str) -> Credentials: ...


class Refresher(Protocol):
    def refresh(self, client_id: str, refresh_token: str) -> str: ...


class ExecutionState(Enum):
    ATTEMPTING = "Attempting"
    RETRIED = "Retried"


class RemoteCallExecutor:
    def __init__(
        self,
        credentials: PrincipalCredentials,
        refresher: Refresher,
        client_id: str,
        callback: TokenRefreshCallback | None = None,
    ):
        self.credentials = credentials
        self.refresher = refresher
        self.client_id = client_id
        self.callback = callback

    def _refresh(self, expired: Credentials) -> Credentials:
        LOGGER.info("Session expired for user %s; refreshing access token", expired.user_id)
        access_token = self.refresher.refresh(self.client_id, expired.refresh_token)
        refreshed = self.credentials.replace_access_token(access_token)
        if self.callback is not None:
            self.callback(refreshed)
        return refreshed

    async def _arefresh(self, expired: Credentials) -> Credentials:
        LOGGER.info("Session expired for user %s; refreshing access token", expired.user_id)
        access_token = self.refresher.refresh(self.client_id, expired.refresh_token)
        refreshed = await self.credentials.areplace_access_token(access_token)
        if self.callback is not None:
            self.callback(refreshed)
        return refreshed

    def execute(self, unit_of_work: UnitOfWork[_T]) -> _T:
        """
        Run ``unit_of_work`` with the current credentials.

        Raises:
            AuthRefreshError: the refresh token was rejected
            SalesforceExpiredSession: the refreshed token was rejected too
        """
        state = ExecutionState.ATTEMPTING
        credentials = self.credentials.get()
        while True:
            LOGGER.debug("Running %s (%s)", _describe(unit_of_work), state.value)
            try:
                return unit_of_work(credentials)
            except SalesforceExpiredSession:
                if state is ExecutionState.RETRIED:
                    LOGGER.warning(
                        "Refreshed session for user %s was rejected", credentials.user_id
                    )
                    raise
            credentials = self._refresh(credentials)
            state = ExecutionState.RETRIED

    async def aexecute(self, unit_of_work: AsyncUnitOfWork[_T]) -> _T:
        """
        ``execute`` for coroutine units of work. Credentials are read and
        committed through the store's async methods; the token refresh itself
        blocks.
        """
        state = ExecutionState.ATTEMPTING
        credentials = await self.credentials.aget()
        while True:
            LOGGER.debug("Running %s (%s)", _describe(unit_of_work), state.value)
            try:
                return await unit_of_work(credentials)
            except SalesforceExpiredSession:
                if state is ExecutionState.RETRIED:
                    LOGGER.warning(
                        "Refreshed session for user %s was rejected", credentials.user_id
                    )
                    raise
            credentials = await self._arefresh(credentials)
            state = ExecutionState.RETRIED


def _describe(unit_of_work: Callable) -> str:
    return getattr(unit_of_work, "__qualname__", None) or repr(unit_of_work)
