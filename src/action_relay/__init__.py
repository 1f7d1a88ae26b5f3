from .auth import (
    BoundCredentials,
    Credentials,
    KeyValueCredentialStore,
    MemoryCredentialStore,
    TokenRefresher,
    authorization_url,
    create_storage,
)
from .client import SalesforceClient
from .config import RelayConfig
from .executor import RemoteCallExecutor
from .models import Contact, GeneratedObject
from .operations import RelayOperations

__all__ = [
    "BoundCredentials",
    "Contact",
    "Credentials",
    "GeneratedObject",
    "KeyValueCredentialStore",
    "MemoryCredentialStore",
    "RelayConfig",
    "RelayOperations",
    "RemoteCallExecutor",
    "SalesforceClient",
    "TokenRefresher",
    "authorization_url",
    "create_storage",
]
