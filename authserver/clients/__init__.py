"""Expose storage client implementations."""

from .code_store import CodeStoreGateway, InMemoryCodeStore, SupportsExpiryPurge
from .dynamodb import DynamoDBCodeStore
from .profile_store import InMemoryProfileStore
from .sqlite_store import SQLiteCodeStore

__all__ = [
    "CodeStoreGateway",
    "DynamoDBCodeStore",
    "InMemoryCodeStore",
    "InMemoryProfileStore",
    "SQLiteCodeStore",
    "SupportsExpiryPurge",
]
