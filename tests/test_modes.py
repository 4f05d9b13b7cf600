"""Tests for chaining modes, padding and message authentication."""

import os

import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms
from cryptography.hazmat.primitives.ciphers import modes as crypto_modes

from securechannel.mac import compute_tag, verify_tag
from securechannel.modes import encrypt, decrypt, ecb_encrypt, ecb_decrypt, pad, unpad
from securechannel.types import PaddingError, TAG_SIZE
from .test_vectors import TEST_MESSAGES


@pytest.fixture
def cipher_key() -> bytes:
    return bytes(range(32))


@pytest.fixture
def iv() -> bytes:
    return bytes(range(100, 116))


class TestPadding:
    """Test PKCS#7 padding."""

    def test_pad_lengths(self) -> None:
        """Padding always adds between 1 and 16 bytes."""
        assert len(pad(b"")) == 16
        assert pad(b"") == bytes([16] * 16)
        assert pad(b"A" * 15) == b"A" * 15 + b"\x01"
        assert len(pad(b"A" * 16)) == 32

    @pytest.mark.parametrize("message_key,message", TEST_MESSAGES.items())
    def test_unpad_round_trip(self, message_key: str, message: bytes) -> None:
        """Unpadding restores every test message."""
        assert unpad(pad(message)) == message, f"Padding mismatch for {message_key}"

    @pytest.mark.parametrize(
        "data",
        [
            b"A" * 15 + b"\x00",
            b"A" * 15 + b"\x11",
            b"A" * 14 + b"\x01\x02",
            b"A" * 12 + b"\x04\x04\x03\x04",
        ],
    )
    def test_malformed_padding(self, data: bytes) -> None:
        """Reject zero, oversized and inconsistent pad bytes."""
        with pytest.raises(PaddingError):
            unpad(data)

    def test_unpad_wrong_length(self) -> None:
        """Reject input that is empty or not a whole number of blocks."""
        with pytest.raises(PaddingError, match="multiple"):
            unpad(b"")
        with pytest.raises(PaddingError, match="multiple"):
            unpad(b"A" * 17)


class TestChainedMode:
    """Test cipher block chaining."""

    @pytest.mark.parametrize("message_key,message", TEST_MESSAGES.items())
    def test_round_trip(self, cipher_key: bytes, iv: bytes, message_key: str, message: bytes) -> None:
        """Encrypt and decrypt every test message with CBC."""
        ciphertext = encrypt(message, cipher_key, iv)
        assert len(ciphertext) % 16 == 0
        assert len(ciphertext) > len(message)
        assert decrypt(ciphertext, cipher_key, iv) == message, f"Round trip mismatch for {message_key}"

    @pytest.mark.parametrize("key_size", [16, 24, 32])
    def test_matches_reference_cbc(self, key_size: int) -> None:
        """Agrees with the cryptography package's AES-CBC."""
        key = os.urandom(key_size)
        iv = os.urandom(16)
        message = os.urandom(77)

        encryptor = Cipher(algorithms.AES(key), crypto_modes.CBC(iv)).encryptor()
        expected = encryptor.update(pad(message)) + encryptor.finalize()

        assert encrypt(message, key, iv) == expected

    def test_identical_blocks_differ(self, cipher_key: bytes, iv: bytes) -> None:
        """Chaining hides repeated plaintext blocks."""
        ciphertext = encrypt(b"A" * 32, cipher_key, iv)
        assert ciphertext[:16] != ciphertext[16:32]

    def test_iv_changes_ciphertext(self, cipher_key: bytes, iv: bytes) -> None:
        """A different IV gives a different ciphertext."""
        other_iv = bytes(16)
        assert encrypt(b"same message", cipher_key, iv) != encrypt(b"same message", cipher_key, other_iv)

    def test_wrong_key_fails_padding_or_garbles(self, cipher_key: bytes, iv: bytes) -> None:
        """Decrypting under the wrong key never yields the plaintext."""
        ciphertext = encrypt(b"secret", cipher_key, iv)
        try:
            assert decrypt(ciphertext, bytes(32), iv) != b"secret"
        except PaddingError:
            pass

    def test_rejects_bad_ciphertext_length(self, cipher_key: bytes, iv: bytes) -> None:
        """Reject ciphertext that is empty or not block aligned."""
        with pytest.raises(PaddingError):
            decrypt(b"", cipher_key, iv)
        with pytest.raises(PaddingError):
            decrypt(bytes(20), cipher_key, iv)

    def test_rejects_bad_iv(self, cipher_key: bytes) -> None:
        """Reject an IV that is not one block wide."""
        with pytest.raises(ValueError, match="IV"):
            encrypt(b"data", cipher_key, bytes(8))

    def test_malformed_pad_after_decrypt(self, cipher_key: bytes, iv: bytes) -> None:
        """A final block whose decryption ends in a bad pad raises PaddingError."""
        ciphertext = ecb_encrypt(b"A" * 15 + b"\x00", cipher_key)[:16]
        # With a zero IV, CBC decryption of one block equals ECB decryption
        with pytest.raises(PaddingError):
            decrypt(ciphertext, cipher_key, bytes(16))


class TestUnchainedMode:
    """Test the ECB mode kept to demonstrate its weakness."""

    def test_identical_blocks_leak(self, cipher_key: bytes) -> None:
        """Identical plaintext blocks produce identical ciphertext blocks."""
        ciphertext = ecb_encrypt(b"A" * 32, cipher_key)
        assert ciphertext[:16] == ciphertext[16:32]

    def test_round_trip(self, cipher_key: bytes) -> None:
        """Encrypt and decrypt a multi-block message with ECB."""
        message = b"Hello, World!..." * 3
        assert ecb_decrypt(ecb_encrypt(message, cipher_key), cipher_key) == message


class TestMessageAuthenticator:
    """Test HMAC tags."""

    @pytest.fixture
    def mac_key(self) -> bytes:
        return bytes([0x42] * 32)

    def test_tag_size(self, mac_key: bytes) -> None:
        """Tags are HMAC-SHA256 sized."""
        assert len(compute_tag(mac_key, b"ciphertext")) == TAG_SIZE

    def test_verify_valid(self, mac_key: bytes) -> None:
        """A freshly computed tag verifies."""
        tag = compute_tag(mac_key, b"ciphertext")
        assert verify_tag(mac_key, b"ciphertext", tag) is True

    def test_every_single_bit_flip_detected(self, mac_key: bytes, cipher_key: bytes, iv: bytes) -> None:
        """Flipping any ciphertext bit invalidates the tag."""
        ciphertext = encrypt(b"GET /index.html HTTP/1.1", cipher_key, iv)
        tag = compute_tag(mac_key, ciphertext)

        for i in range(len(ciphertext)):
            for bit in range(8):
                tampered = bytearray(ciphertext)
                tampered[i] ^= 1 << bit
                assert verify_tag(mac_key, bytes(tampered), tag) is False

    def test_wrong_key(self, mac_key: bytes) -> None:
        """A tag does not verify under another key."""
        tag = compute_tag(mac_key, b"ciphertext")
        assert verify_tag(bytes(32), b"ciphertext", tag) is False

    def test_truncated_or_altered_tag(self, mac_key: bytes) -> None:
        """Reject truncated, empty and altered tags."""
        tag = compute_tag(mac_key, b"ciphertext")
        assert verify_tag(mac_key, b"ciphertext", tag[:16]) is False
        assert verify_tag(mac_key, b"ciphertext", b"") is False
        assert verify_tag(mac_key, b"ciphertext", bytes([tag[0] ^ 1]) + tag[1:]) is False
