"""Keyed integrity tags over record ciphertext (HMAC-SHA256)."""

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hmac
from cryptography.hazmat.primitives.hashes import SHA256

from .types import TAG_SIZE


def compute_tag(mac_key: bytes, ciphertext: bytes) -> bytes:
    """
    Compute the authentication tag for a ciphertext.

    Args:
        mac_key: Session MAC key
        ciphertext: Bytes to authenticate

    Returns:
        32-byte tag
    """
    h = hmac.HMAC(mac_key, SHA256())
    h.update(ciphertext)
    return h.finalize()


def verify_tag(mac_key: bytes, ciphertext: bytes, tag: bytes) -> bool:
    """
    Check a tag against a freshly computed one.

    The comparison is constant time. Any mismatch, including a tag of the
    wrong length, returns False.
    """
    if len(tag) != TAG_SIZE:
        return False

    h = hmac.HMAC(mac_key, SHA256())
    h.update(ciphertext)
    try:
        h.verify(tag)
    except InvalidSignature:
        return False
    return True
