"""Identity store adapters used to resolve presented tokens."""

from app.adapters.identity.base import AbstractIdentityStore, PrincipalRecord
from app.adapters.identity.factory import create_identity_store
from app.adapters.identity.in_memory import InMemoryIdentityStore
from app.adapters.identity.redis_store import RedisIdentityStore

__all__ = [
    "AbstractIdentityStore",
    "InMemoryIdentityStore",
    "PrincipalRecord",
    "RedisIdentityStore",
    "create_identity_store",
]
