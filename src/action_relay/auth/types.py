import typing

import httpx


class Credentials(typing.NamedTuple):
    """OAuth credentials for one authenticated principal."""

    access_token: str
    refresh_token: str
    instance_url: str
    user_id: str

    def with_access_token(self, access_token: str) -> "Credentials":
        return self._replace(access_token=access_token)

    def __repr__(self):
        # keep tokens out of logs and tracebacks
        return (
            f"Credentials(user_id={self.user_id!r}, "
            f"instance_url={self.instance_url!r})"
        )


SalesforceTokenGenerator = typing.Generator[httpx.Request | None, httpx.Response, typing.Any]

TokenRefreshCallback = typing.Callable[[Credentials], typing.Any]


class CredentialStore(typing.Protocol):
    """Where credentials live between requests, keyed by user id."""

    def get(self, user_id: str) -> Credentials: ...

    def save(self, credentials: Credentials) -> None: ...

    def replace_access_token(self, user_id: str, access_token: str) -> Credentials: ...

    def discard(self, user_id: str) -> None: ...

    async def aget(self, user_id: str) -> Credentials: ...

    async def asave(self, credentials: Credentials) -> None: ...

    async def areplace_access_token(self, user_id: str, access_token: str) -> Credentials: ...

    async def adiscard(self, user_id: str) -> None: ...


__all__ = [
    "Credentials",
    "CredentialStore",
    "SalesforceTokenGenerator",
    "TokenRefreshCallback",
]
