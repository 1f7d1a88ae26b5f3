from .oauth import (
    TokenRefresher,
    authorization_code_flow,
    authorization_url,
    refresh_token_flow,
    token_login,
)
from .store import (
    BoundCredentials,
    KeyValueCredentialStore,
    MemoryCredentialStore,
    create_storage,
)
from .types import Credentials, CredentialStore, TokenRefreshCallback


__all__ = [
    "BoundCredentials",
    "Credentials",
    "CredentialStore",
    "KeyValueCredentialStore",
    "MemoryCredentialStore",
    "TokenRefreshCallback",
    "TokenRefresher",
    "authorization_code_flow",
    "authorization_url",
    "create_storage",
    "refresh_token_flow",
    "token_login",
]
