"""Session key derivation and round key expansion."""

from typing import List, Optional

from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.hashes import SHA256

from .arith import byte_length, int_to_bytes
from .cipher import rounds_for_key
from .tables import SBOX, RCON
from .types import (
    SessionKeys,
    KEY_DERIVATION_INFO_PREFIX,
    CIPHER_KEY_LABEL,
    IV_LABEL,
    MAC_KEY_LABEL,
    IV_SIZE,
    MAC_KEY_SIZE,
    DEFAULT_CIPHER_KEY_SIZE,
)


def _derive(ikm: bytes, salt: bytes, label: bytes, length: int) -> bytes:
    hkdf = HKDF(
        algorithm=SHA256(),
        length=length,
        salt=salt,
        info=KEY_DERIVATION_INFO_PREFIX + label,
    )
    return hkdf.derive(ikm)


def derive_session_keys(
    shared_secret: int,
    client_nonce: bytes,
    server_nonce: bytes,
    modulus: int,
    cipher_key_size: int = DEFAULT_CIPHER_KEY_SIZE,
) -> SessionKeys:
    """
    Derive cipher key, IV and MAC key from a Diffie-Hellman shared secret.

    Each purpose gets its own HKDF-SHA256 expansion with a distinct label,
    so knowing one derived value reveals nothing about the others.

    Args:
        shared_secret: The agreed integer secret
        client_nonce: Nonce from the client hello
        server_nonce: Nonce from the server hello
        modulus: Group modulus (fixes the secret's encoded width)
        cipher_key_size: 16, 24 or 32 bytes

    Returns:
        SessionKeys
    """
    rounds_for_key(cipher_key_size)  # validates the width

    # Fixed-width encoding so leading zero bytes are not dropped
    ikm = int_to_bytes(shared_secret, byte_length(modulus))
    salt = client_nonce + server_nonce

    return SessionKeys(
        cipher_key=_derive(ikm, salt, CIPHER_KEY_LABEL, cipher_key_size),
        iv=_derive(ikm, salt, IV_LABEL, IV_SIZE),
        mac_key=_derive(ikm, salt, MAC_KEY_LABEL, MAC_KEY_SIZE),
    )


def _sub_word(word: List[int]) -> List[int]:
    return [SBOX[b] for b in word]


def _rot_word(word: List[int]) -> List[int]:
    return word[1:] + word[:1]


def expand_round_keys(cipher_key: bytes, rounds: Optional[int] = None) -> List[bytes]:
    """
    Expand a cipher key into ``rounds + 1`` 16-byte round keys.

    Round keys 0 and 1 of a 32-byte key are the two halves of the key itself,
    so a key whose halves are equal (all zeros, for one) yields two identical
    round keys. Every later round key comes out of the expansion.

    Args:
        cipher_key: 16, 24 or 32-byte key
        rounds: Expected round count; must match the key width if given

    Returns:
        List of round keys, index 0 used for the initial whitening
    """
    expected = rounds_for_key(len(cipher_key))
    if rounds is not None and rounds != expected:
        raise ValueError(
            f"{len(cipher_key)}-byte keys use {expected} rounds, got {rounds}"
        )
    rounds = expected

    nk = len(cipher_key) // 4
    words = [list(cipher_key[i : i + 4]) for i in range(0, len(cipher_key), 4)]

    for i in range(nk, 4 * (rounds + 1)):
        temp = list(words[i - 1])
        if i % nk == 0:
            temp = _sub_word(_rot_word(temp))
            temp[0] ^= RCON[i // nk]
        elif nk > 6 and i % nk == 4:
            temp = _sub_word(temp)
        words.append([a ^ b for a, b in zip(words[i - nk], temp)])

    return [
        bytes(sum(words[4 * r : 4 * r + 4], []))
        for r in range(rounds + 1)
    ]
