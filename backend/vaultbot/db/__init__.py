"""Database module for vaultbot credentials and contexts."""

from .connection import get_db_pool, init_db, close_db
from .credentials import CredentialRepository, InMemoryCredentialRepository
from .contexts import ContextRepository, InMemoryContextRepository
from .models import Scope, CredentialRecord, ContextEntry

__all__ = [
    "get_db_pool",
    "init_db",
    "close_db",
    "CredentialRepository",
    "InMemoryCredentialRepository",
    "ContextRepository",
    "InMemoryContextRepository",
    "Scope",
    "CredentialRecord",
    "ContextEntry",
]
