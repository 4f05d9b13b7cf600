"""Block chaining modes: CBC for records, ECB only to show its weakness."""

from typing import List

from cryptography.hazmat.primitives import padding

from .cipher import encrypt_block, decrypt_block, xor_bytes
from .keys import expand_round_keys
from .types import BLOCK_SIZE, IV_SIZE, PaddingError


def pad(data: bytes) -> bytes:
    """Apply PKCS#7 padding to a multiple of the block size."""
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    return padder.update(data) + padder.finalize()


def unpad(data: bytes) -> bytes:
    """
    Remove PKCS#7 padding.

    Raises:
        PaddingError: If the trailing pad bytes are malformed
    """
    if not data or len(data) % BLOCK_SIZE:
        raise PaddingError(f"Padded data must be a non-empty multiple of {BLOCK_SIZE} bytes")

    unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
    try:
        return unpadder.update(data) + unpadder.finalize()
    except ValueError as e:
        raise PaddingError(f"Invalid padding: {e}") from e


def _split_blocks(data: bytes) -> List[bytes]:
    return [data[i : i + BLOCK_SIZE] for i in range(0, len(data), BLOCK_SIZE)]


def _check_ciphertext(ciphertext: bytes) -> None:
    if not ciphertext or len(ciphertext) % BLOCK_SIZE:
        raise PaddingError(
            f"Ciphertext must be a non-empty multiple of {BLOCK_SIZE} bytes, got {len(ciphertext)}"
        )


def _check_iv(iv: bytes) -> None:
    if len(iv) != IV_SIZE:
        raise ValueError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")


def encrypt(plaintext: bytes, cipher_key: bytes, iv: bytes) -> bytes:
    """
    Encrypt with cipher block chaining.

    Each padded plaintext block is XORed with the previous ciphertext block
    (the IV for the first) before encryption.

    Args:
        plaintext: Arbitrary-length data
        cipher_key: 16, 24 or 32-byte key
        iv: 16-byte initialization vector

    Returns:
        Ciphertext, a multiple of 16 bytes
    """
    _check_iv(iv)
    schedule = expand_round_keys(cipher_key)

    previous = iv
    out = []
    for block in _split_blocks(pad(plaintext)):
        previous = encrypt_block(xor_bytes(block, previous), schedule)
        out.append(previous)
    return b"".join(out)


def decrypt(ciphertext: bytes, cipher_key: bytes, iv: bytes) -> bytes:
    """
    Decrypt cipher block chaining output and strip the padding.

    Raises:
        PaddingError: If the length or trailing pad is malformed
    """
    _check_iv(iv)
    _check_ciphertext(ciphertext)
    schedule = expand_round_keys(cipher_key)

    previous = iv
    out = []
    for block in _split_blocks(ciphertext):
        out.append(xor_bytes(decrypt_block(block, schedule), previous))
        previous = block
    return unpad(b"".join(out))


def ecb_encrypt(plaintext: bytes, cipher_key: bytes) -> bytes:
    """Encrypt each padded block independently.

    Identical plaintext blocks produce identical ciphertext blocks, which
    leaks message structure. Never used for records.
    """
    schedule = expand_round_keys(cipher_key)
    return b"".join(encrypt_block(block, schedule) for block in _split_blocks(pad(plaintext)))


def ecb_decrypt(ciphertext: bytes, cipher_key: bytes) -> bytes:
    """Inverse of ``ecb_encrypt``."""
    _check_ciphertext(ciphertext)
    schedule = expand_round_keys(cipher_key)
    return unpad(b"".join(decrypt_block(block, schedule) for block in _split_blocks(ciphertext)))
