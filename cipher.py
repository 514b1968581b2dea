"""
Encryption at rest for stored gesture samples.

Each template gets its own random salt. The AES-256 key is derived from
the server-held secret and that salt with PBKDF2-HMAC-SHA512, and every
encryption uses a fresh random IV.

Token format (base64): [16-byte IV][AES-256-CBC ciphertext of the JSON sample]
"""

import base64
import binascii
import functools
import json
import logging
import os

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from config import KDF_ITERATIONS, SALT_BYTES, TEMPLATE_SECRET
from errors import ConfigError, GestureAuthError, TemplateCorruptError
from gestures import GestureSample, validate_sample

logger = logging.getLogger(__name__)

IV_BYTES = 16

# Derived keys kept in memory; every template update brings a new salt
KEY_CACHE_SIZE = 256


@functools.lru_cache(maxsize=KEY_CACHE_SIZE)
def _derive_key(secret, salt, iterations):
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=32,
        salt=bytes.fromhex(salt),
        iterations=iterations,
    )
    return kdf.derive(secret)


class TemplateCipher:
    """Encrypts and decrypts gesture samples for one server secret."""

    def __init__(self, secret=TEMPLATE_SECRET, iterations=KDF_ITERATIONS):
        if not secret:
            raise ConfigError("Template secret must not be empty")
        self._secret = secret.encode("utf-8")
        self._iterations = iterations

    def new_salt(self):
        return os.urandom(SALT_BYTES).hex()

    def derive_key(self, salt):
        return _derive_key(self._secret, salt, self._iterations)

    def encrypt(self, sample, salt):
        """
        Encrypt a sample under the key for the given salt.

        Args:
            sample: GestureSample to protect
            salt: Hex salt stored alongside the template

        Returns:
            Base64 text token.
        """
        data = json.dumps(sample.to_dict(), separators=(",", ":")).encode("utf-8")
        iv = os.urandom(IV_BYTES)

        padder = padding.PKCS7(128).padder()
        padded = padder.update(data) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self.derive_key(salt)), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        logger.debug("Encrypted gesture sample (%d bytes)", len(data))
        return base64.b64encode(iv + ciphertext).decode("ascii")

    def decrypt(self, token, salt):
        """
        Recover a sample encrypted with encrypt().

        Raises:
            TemplateCorruptError: If the token cannot be decoded, decrypted
                or parsed back into a well-formed sample.
        """
        try:
            raw = base64.b64decode(token.encode("ascii"), validate=True)
            if len(raw) <= IV_BYTES:
                raise ValueError("Encrypted data too short")
            iv, ciphertext = raw[:IV_BYTES], raw[IV_BYTES:]

            decryptor = Cipher(
                algorithms.AES(self.derive_key(salt)), modes.CBC(iv)
            ).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()

            unpadder = padding.PKCS7(128).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()

            sample = GestureSample.from_dict(json.loads(data.decode("utf-8")))
            return validate_sample(sample, require_duration=False)
        except (ValueError, TypeError, AttributeError, binascii.Error, GestureAuthError) as e:
            raise TemplateCorruptError(f"Failed to decrypt gesture data: {e}") from e
