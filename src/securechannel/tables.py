"""Fixed lookup tables and GF(2^8) arithmetic for the block cipher.

Both substitution tables are built once at import and never recomputed.
SBOX is the multiplicative inverse in GF(2^8) followed by the affine map
``b ^ rotl(b,1) ^ rotl(b,2) ^ rotl(b,3) ^ rotl(b,4) ^ 0x63``.
"""

from typing import List

# x^8 + x^4 + x^3 + x + 1
AES_POLYNOMIAL = 0x11B

# Round constants for key expansion (index 0 unused)
RCON = (0x00, 0x01, 0x02, 0x04, 0x08, 0x10, 0x20, 0x40, 0x80, 0x1B, 0x36,
        0x6C, 0xD8, 0xAB, 0x4D)


def xtime(a: int) -> int:
    """Multiply by x (0x02) in GF(2^8)."""
    a <<= 1
    if a & 0x100:
        a ^= AES_POLYNOMIAL
    return a


def gf_mul(a: int, b: int) -> int:
    """Multiply two bytes in GF(2^8)."""
    result = 0
    while b:
        if b & 1:
            result ^= a
        a = xtime(a)
        b >>= 1
    return result


def gf_inverse(a: int) -> int:
    """Multiplicative inverse in GF(2^8), with 0 mapped to 0."""
    if a == 0:
        return 0
    # a^254 == a^-1 since the multiplicative group has order 255
    result, power, exponent = 1, a, 254
    while exponent:
        if exponent & 1:
            result = gf_mul(result, power)
        power = gf_mul(power, power)
        exponent >>= 1
    return result


def _rotl8(b: int, n: int) -> int:
    return ((b << n) | (b >> (8 - n))) & 0xFF


def _build_sbox() -> List[int]:
    table = []
    for value in range(256):
        b = gf_inverse(value)
        table.append(b ^ _rotl8(b, 1) ^ _rotl8(b, 2) ^ _rotl8(b, 3) ^ _rotl8(b, 4) ^ 0x63)
    return table


def _invert(table: List[int]) -> List[int]:
    inverse = [0] * 256
    for i, v in enumerate(table):
        inverse[v] = i
    return inverse


SBOX = tuple(_build_sbox())
INV_SBOX = tuple(_invert(list(SBOX)))
