"""Encryption engines that protect secret values and their seal state."""

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from seacrate.config import EncryptionConfiguration

NONCE_SIZE = 12


class EncryptionError(Exception):
    """Data could not be encrypted or decrypted."""


class EncryptionEngine(ABC):
    """An engine encrypting data with a key, sealed until a key is set."""

    def __init__(self) -> None:
        self.sealed = False

    @abstractmethod
    def encrypt_data(self, data: bytes) -> bytes:
        """Encrypt ``data`` with the current key."""

    @abstractmethod
    def decrypt_data(self, data: bytes) -> bytes:
        """Decrypt ``data`` with the current key."""

    @abstractmethod
    def generate_key(self, size: int) -> bytes:
        """Return a new random key of ``size`` bytes."""

    @abstractmethod
    def set_key(self, key: bytes) -> None:
        """Use ``key`` from now on; this unseals the engine."""


class AesEncryptionEngine(EncryptionEngine):
    """AES-GCM engine; ciphertexts carry their random nonce as a prefix."""

    def __init__(self) -> None:
        super().__init__()
        self._cipher: AESGCM | None = None

    def _require_cipher(self) -> AESGCM:
        if self._cipher is None:
            raise EncryptionError("no encryption key has been set")
        return self._cipher

    def encrypt_data(self, data: bytes) -> bytes:
        cipher = self._require_cipher()
        nonce = secrets.token_bytes(NONCE_SIZE)
        return nonce + cipher.encrypt(nonce, bytes(data), None)

    def decrypt_data(self, data: bytes) -> bytes:
        cipher = self._require_cipher()
        if len(data) < NONCE_SIZE:
            raise EncryptionError("error during data decryption : data is too short")
        nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
        try:
            return cipher.decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            raise EncryptionError(
                "error during data decryption : message authentication failed"
            ) from exc

    def generate_key(self, size: int) -> bytes:
        return secrets.token_bytes(size)

    def set_key(self, key: bytes) -> None:
        try:
            self._cipher = AESGCM(bytes(key))
        except ValueError as exc:
            raise EncryptionError(f"invalid AES key: {exc}") from exc
        self.sealed = False


def new_encryption_engine(config: EncryptionConfiguration) -> EncryptionEngine:
    """Create the engine named by ``config``, starting sealed."""
    if config.algorithm == "aes":
        engine = AesEncryptionEngine()
        engine.sealed = True
        return engine
    raise ValueError(f"unsupported encryption algorithm: {config.algorithm!r}")