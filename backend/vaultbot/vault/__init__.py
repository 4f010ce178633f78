"""Vault module for passphrase-protected credentials."""

from .crypto import derive_key, encrypt_secret, decrypt_secret, SecretCipher
from .pending import (
    AwaitingDecryptionKey,
    AwaitingEncryptionKey,
    PendingChallenge,
    PendingOperationRegistry,
    pending_registry,
)

__all__ = [
    'derive_key',
    'encrypt_secret',
    'decrypt_secret',
    'SecretCipher',
    'AwaitingDecryptionKey',
    'AwaitingEncryptionKey',
    'PendingChallenge',
    'PendingOperationRegistry',
    'pending_registry',
]
