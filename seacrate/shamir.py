"""Shamir's secret sharing over GF(2^8).

Each share is one byte longer than the secret: its last byte is the
x coordinate at which the per-byte polynomials were evaluated.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Iterable, Sequence

SHARE_OVERHEAD = 1
MAX_PARTS = 255

_random = secrets.SystemRandom()


class ShamirError(ValueError):
    """A secret could not be split or reconstructed."""


def gf_add(a: int, b: int) -> int:
    """Add (or subtract) two elements of GF(2^8)."""
    return (a ^ b) & 0xFF


def gf_mult(a: int, b: int) -> int:
    """Multiply two elements of GF(2^8) with the AES reduction polynomial."""
    result = 0
    for bit in range(7, -1, -1):
        selected = a if (b >> bit) & 1 else 0
        reduction = 0x1B if result & 0x80 else 0
        result = selected ^ reduction ^ ((result << 1) & 0xFF)
    return result


def gf_inverse(a: int) -> int:
    """Return the multiplicative inverse of ``a`` in GF(2^8), i.e. a**254."""
    b = gf_mult(a, a)
    c = gf_mult(a, b)
    b = gf_mult(c, c)
    b = gf_mult(b, b)
    c = gf_mult(b, c)
    b = gf_mult(b, b)
    b = gf_mult(b, b)
    b = gf_mult(b, c)
    b = gf_mult(b, b)
    b = gf_mult(a, b)
    return gf_mult(b, b)


def gf_div(a: int, b: int) -> int:
    """Divide ``a`` by ``b`` in GF(2^8)."""
    if b == 0:
        raise ZeroDivisionError("divide by zero")
    if a == 0:
        return 0
    return gf_mult(a, gf_inverse(b))


@dataclass
class Polynomial:
    """A polynomial over GF(2^8); ``coefficients[0]`` is the intercept."""

    coefficients: list[int]

    def evaluate(self, x: int) -> int:
        """Return the value of the polynomial at ``x`` (Horner's method)."""
        if x == 0:
            return self.coefficients[0]
        result = self.coefficients[-1]
        for coefficient in reversed(self.coefficients[:-1]):
            result = gf_add(gf_mult(result, x), coefficient)
        return result


def make_polynomial(intercept: int, degree: int) -> Polynomial:
    """Build a random polynomial of ``degree`` with the given intercept."""
    return Polynomial([intercept, *secrets.token_bytes(degree)])


def interpolate_polynomial(
    x_samples: Sequence[int], y_samples: Sequence[int], x: int
) -> int:
    """Lagrange-interpolate the sample points and return the value at ``x``."""
    result = 0
    for i, (x_i, y_i) in enumerate(zip(x_samples, y_samples)):
        basis = 1
        for j, x_j in enumerate(x_samples):
            if i == j:
                continue
            term = gf_div(gf_add(x, x_j), gf_add(x_i, x_j))
            basis = gf_mult(basis, term)
        result = gf_add(result, gf_mult(y_i, basis))
    return result


def _split_error(message: str) -> ShamirError:
    return ShamirError(
        "could not split secret using the Shamir algorithm due to the "
        f"following error : {message}"
    )


def _combine_error(message: str) -> ShamirError:
    return ShamirError(
        "could not combine using the Shamir algorithm due to the "
        f"following error : {message}"
    )


def split(secret: bytes, parts: int, threshold: int) -> list[bytes]:
    """Split ``secret`` into ``parts`` shares, ``threshold`` of which rebuild it."""
    if parts < threshold:
        raise _split_error("parts cannot be less than threshold")
    if parts > MAX_PARTS:
        raise _split_error("parts cannot exceed 255")
    if threshold < 2:
        raise _split_error("threshold must be at least 2")
    if threshold > MAX_PARTS:
        raise _split_error("threshold cannot exceed 255")
    if not secret:
        raise _split_error("cannot split an empty secret")

    x_coordinates = [x + 1 for x in _random.sample(range(MAX_PARTS), parts)]
    shares = [bytearray() for _ in range(parts)]

    for value in secret:
        polynomial = make_polynomial(value, threshold - 1)
        for share, x in zip(shares, x_coordinates):
            share.append(polynomial.evaluate(x))

    for share, x in zip(shares, x_coordinates):
        share.append(x)
    return [bytes(share) for share in shares]


def combine(parts: Iterable[bytes]) -> bytes:
    """Rebuild a secret from at least ``threshold`` shares made by :func:`split`."""
    shares = [bytes(part) for part in (parts or ())]
    if len(shares) < 2:
        raise _combine_error(
            "less than two parts cannot be used to reconstruct the secret"
        )

    share_length = len(shares[0])
    if share_length < 2:
        raise _combine_error("parts must be at least two bytes")
    if any(len(share) != share_length for share in shares[1:]):
        raise _combine_error("all parts must be the same length")

    x_samples = [share[-1] for share in shares]
    if len(set(x_samples)) != len(x_samples):
        raise _combine_error("duplicate part detected")

    return bytes(
        interpolate_polynomial(x_samples, y_samples, 0)
        for y_samples in zip(*(share[:-1] for share in shares))
    )