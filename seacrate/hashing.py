"""Argon2id hashing of key material."""

from __future__ import annotations

import hmac
import secrets

from cryptography.hazmat.primitives.kdf.argon2 import Argon2id

SALT_LENGTH = 32
TIME_COST = 3
MEMORY_COST = 12288
THREADS = 1
KEY_LENGTH = 32


def generate_salt(length: int) -> bytes:
    """Return ``length`` cryptographically random bytes."""
    return secrets.token_bytes(length)


def generate_hash(password: bytes, salt: bytes | None = None) -> tuple[bytes, bytes]:
    """Hash ``password`` and return ``(digest, salt)``.

    A fresh salt is generated when none (or an empty one) is given.
    """
    if not salt:
        salt = generate_salt(SALT_LENGTH)
    kdf = Argon2id(
        salt=salt,
        length=KEY_LENGTH,
        iterations=TIME_COST,
        lanes=THREADS,
        memory_cost=MEMORY_COST,
    )
    return kdf.derive(password), salt


def compare(password: bytes, digest: bytes, salt: bytes) -> bool:
    """Tell whether ``password`` hashed with ``salt`` gives ``digest``."""
    computed, _ = generate_hash(password, salt)
    return hmac.compare_digest(computed, digest)