"""Modular arithmetic underlying the key exchange."""

from typing import Optional


def modpow(base: int, exponent: int, modulus: int) -> int:
    """
    Compute ``base ** exponent % modulus`` by repeated squaring.

    Cost is logarithmic in ``exponent``; Python integers are arbitrary
    precision so any width is handled exactly.

    Args:
        base: Integer base (any sign, reduced first)
        exponent: Non-negative exponent
        modulus: Modulus, greater than 1

    Returns:
        The reduced power
    """
    if modulus <= 1:
        raise ValueError(f"Modulus must be greater than 1, got {modulus}")
    if exponent < 0:
        raise ValueError(f"Exponent must be non-negative, got {exponent}")

    result = 1 % modulus
    base %= modulus
    while exponent:
        if exponent & 1:
            result = result * base % modulus
        base = base * base % modulus
        exponent >>= 1
    return result


def mod_mul(a: int, b: int, modulus: int) -> int:
    """Multiply two integers modulo ``modulus``."""
    if modulus <= 1:
        raise ValueError(f"Modulus must be greater than 1, got {modulus}")
    return (a % modulus) * (b % modulus) % modulus


def mod_inverse(a: int, modulus: int) -> int:
    """
    Multiplicative inverse of ``a`` modulo ``modulus`` (extended Euclid).

    Raises:
        ValueError: If ``a`` and ``modulus`` are not coprime
    """
    if modulus <= 1:
        raise ValueError(f"Modulus must be greater than 1, got {modulus}")

    old_r, r = a % modulus, modulus
    old_s, s = 1, 0
    while r:
        q = old_r // r
        old_r, r = r, old_r - q * r
        old_s, s = s, old_s - q * s

    if old_r != 1:
        raise ValueError(f"{a} has no inverse modulo {modulus}")
    return old_s % modulus


def byte_length(value: int) -> int:
    """Number of bytes needed to hold a non-negative integer (at least 1)."""
    if value < 0:
        raise ValueError("Value must be non-negative")
    return max(1, (value.bit_length() + 7) // 8)


def int_to_bytes(value: int, length: Optional[int] = None) -> bytes:
    """Encode a non-negative integer big-endian, minimal width by default."""
    if length is None:
        length = byte_length(value)
    return value.to_bytes(length, byteorder="big")


def int_from_bytes(data: bytes) -> int:
    """Decode a big-endian unsigned integer."""
    return int.from_bytes(data, byteorder="big")
