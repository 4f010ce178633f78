"""
Passphrase-based secret encryption using PBKDF2 + AES-GCM.

Blob formats (base64 encoded):
- fixed salt (default): [nonce 12B][ciphertext + GCM tag 16B]
- per-record salt:      ["v2"][salt 16B][nonce 12B][ciphertext + GCM tag 16B]

The fixed-salt format matches credentials already stored by the bots, so it
stays the default for new records. Per-record salts stop two records sharing
a derived key when the same passphrase is reused. Decryption accepts both
formats, so the setting can change without stranding stored credentials.

Never log plaintext, passphrases or ciphertext.
"""

import base64
import binascii
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import DecryptionFailed

# PBKDF2 configuration (must match previously stored blobs)
PBKDF2_ITERATIONS = 100000
PBKDF2_HASH = 'sha256'
KEY_LENGTH_BYTES = 32  # 256 bits
FIXED_SALT = b'salt'

# AES-GCM configuration
NONCE_LENGTH_BYTES = 12  # 96 bits, recommended for AES-GCM
TAG_LENGTH_BYTES = 16

SALT_LENGTH_BYTES = 16
SALTED_FORMAT_MARKER = b'v2'


def derive_key(passphrase: str, salt: bytes = FIXED_SALT) -> bytes:
    """
    Derive a 256-bit AES key from a passphrase using PBKDF2.

    Args:
        passphrase: User-supplied passphrase
        salt: Raw salt bytes

    Returns:
        32-byte key suitable for AES-256-GCM
    """
    return hashlib.pbkdf2_hmac(
        PBKDF2_HASH,
        passphrase.encode('utf-8'),
        salt,
        PBKDF2_ITERATIONS,
        dklen=KEY_LENGTH_BYTES
    )


def encrypt_secret(plaintext: str, passphrase: str, *, per_record_salt: bool = False) -> str:
    """
    Encrypt plaintext with a key derived from passphrase.

    A fresh random nonce is drawn on every call, so encrypting the same
    plaintext twice never yields the same blob.

    Args:
        plaintext: String to encrypt
        passphrase: Passphrase the key is derived from
        per_record_salt: Use a random salt stored inside the blob

    Returns:
        Base64 blob embedding the nonce (and salt, if any)
    """
    if per_record_salt:
        salt = os.urandom(SALT_LENGTH_BYTES)
        header = SALTED_FORMAT_MARKER + salt
    else:
        salt = FIXED_SALT
        header = b''

    key = derive_key(passphrase, salt)
    nonce = os.urandom(NONCE_LENGTH_BYTES)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext.encode('utf-8'), None)

    return base64.b64encode(header + nonce + ciphertext).decode('ascii')


def _layouts(raw: bytes):
    """Yield (salt, nonce, ciphertext) for every layout raw could be in.

    A blob with the "v2" marker is tried as salted first. The fixed-salt
    layout is always tried too, since a legacy nonce can begin with the
    same two bytes.
    """
    header_len = len(SALTED_FORMAT_MARKER) + SALT_LENGTH_BYTES
    min_body = NONCE_LENGTH_BYTES + TAG_LENGTH_BYTES

    if raw.startswith(SALTED_FORMAT_MARKER) and len(raw) >= header_len + min_body:
        body = raw[header_len:]
        yield raw[len(SALTED_FORMAT_MARKER):header_len], body[:NONCE_LENGTH_BYTES], body[NONCE_LENGTH_BYTES:]

    if len(raw) >= min_body:
        yield FIXED_SALT, raw[:NONCE_LENGTH_BYTES], raw[NONCE_LENGTH_BYTES:]


def decrypt_secret(blob: str, passphrase: str) -> str:
    """
    Decrypt a blob produced by encrypt_secret, in either format.

    The format is read from the blob, so records written before and after
    switching per-record salts on (or off) all stay readable.

    Args:
        blob: Base64 blob
        passphrase: Passphrase the key is derived from

    Returns:
        Decrypted plaintext string

    Raises:
        DecryptionFailed: wrong passphrase, tampered or malformed blob
    """
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError, TypeError):
        raise DecryptionFailed("blob is not valid base64") from None

    layouts = list(_layouts(raw))
    if not layouts:
        raise DecryptionFailed("blob too short")

    for salt, nonce, ciphertext in layouts:
        key = derive_key(passphrase, salt)
        try:
            plaintext = AESGCM(key).decrypt(nonce, ciphertext, None)
        except InvalidTag:
            continue
        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError:
            raise DecryptionFailed() from None

    raise DecryptionFailed()


class SecretCipher:
    """Encrypt in the configured format; decrypt whatever format a blob is in."""

    def __init__(self, per_record_salt: bool = False):
        self.per_record_salt = per_record_salt

    def encrypt(self, plaintext: str, passphrase: str) -> str:
        return encrypt_secret(plaintext, passphrase, per_record_salt=self.per_record_salt)

    def decrypt(self, blob: str, passphrase: str) -> str:
        return decrypt_secret(blob, passphrase)
