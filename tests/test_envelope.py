"""Tests for hello and record wire encoding."""

import pytest
from securechannel.envelope import encode_hello, decode_hello, encode_record, decode_record, is_record
from securechannel.groups import MODP_2048, TOY_GROUP
from securechannel.types import (
    HelloMessage,
    Record,
    Role,
    InvalidEnvelopeError,
    PROTOCOL_VERSION,
    HELLO_TYPE,
    RECORD_TYPE,
    RECORD_HEADER_SIZE,
)


class TestHelloEncoding:
    """Test hello encode/decode."""

    def test_round_trip(self) -> None:
        """Encode a hello and decode it back unchanged."""
        original = HelloMessage(
            params=MODP_2048,
            public_value=MODP_2048.modulus - 12345,
            nonce=bytes(range(32)),
            role=Role.SERVER,
        )

        decoded = decode_hello(encode_hello(original))

        assert decoded == original

    def test_header_format(self) -> None:
        """Version, type and role lead the hello, then length-prefixed fields."""
        hello = HelloMessage(params=TOY_GROUP, public_value=8, nonce=bytes(32), role=Role.CLIENT)
        encoded = encode_hello(hello)

        assert encoded[0] == PROTOCOL_VERSION
        assert encoded[1] == HELLO_TYPE
        assert encoded[2] == Role.CLIENT.value
        # modulus field: length 1, value 23
        assert encoded[3:6] == b"\x00\x01\x17"

    def test_rejects_short_data(self) -> None:
        """Reject data shorter than the hello header."""
        with pytest.raises(InvalidEnvelopeError, match="too short"):
            decode_hello(b"\x01")

    def test_rejects_unknown_version(self) -> None:
        """Reject an unsupported protocol version."""
        encoded = bytearray(encode_hello(HelloMessage(TOY_GROUP, 8, bytes(32), Role.CLIENT)))
        encoded[0] = 0x02
        with pytest.raises(InvalidEnvelopeError, match="version"):
            decode_hello(bytes(encoded))

    def test_rejects_record_as_hello(self) -> None:
        """A record is not a hello message."""
        with pytest.raises(InvalidEnvelopeError, match="Not a hello"):
            decode_hello(encode_record(Record(iv=bytes(16), ciphertext=bytes(16), tag=bytes(32))))

    def test_rejects_unknown_role(self) -> None:
        """Reject a role byte outside client and server."""
        encoded = bytearray(encode_hello(HelloMessage(TOY_GROUP, 8, bytes(32), Role.CLIENT)))
        encoded[2] = 7
        with pytest.raises(InvalidEnvelopeError, match="role"):
            decode_hello(bytes(encoded))

    def test_rejects_truncated(self) -> None:
        """Reject a hello whose last field is cut short."""
        encoded = encode_hello(HelloMessage(TOY_GROUP, 8, bytes(32), Role.CLIENT))
        with pytest.raises(InvalidEnvelopeError, match="Truncated"):
            decode_hello(encoded[:-1])

    def test_rejects_trailing_data(self) -> None:
        """Reject bytes after the nonce field."""
        encoded = encode_hello(HelloMessage(TOY_GROUP, 8, bytes(32), Role.CLIENT))
        with pytest.raises(InvalidEnvelopeError, match="Trailing"):
            decode_hello(encoded + b"\x00")


class TestRecordEncoding:
    """Test record encode/decode."""

    def test_round_trip(self) -> None:
        """Encode a record and decode it back unchanged."""
        original = Record(iv=bytes(range(200, 216)), ciphertext=bytes(range(48)), tag=bytes(range(100, 132)))
        encoded = encode_record(original)

        assert len(encoded) == RECORD_HEADER_SIZE + 48
        assert encoded[1] == RECORD_TYPE
        assert is_record(encoded)
        assert decode_record(encoded) == original

    def test_header_format(self) -> None:
        """IV follows the type byte, then the tag, then the ciphertext."""
        record = Record(iv=b"\xaa" * 16, ciphertext=b"\xcc" * 16, tag=b"\xbb" * 32)
        encoded = encode_record(record)

        assert encoded[0] == PROTOCOL_VERSION
        assert encoded[2:18] == b"\xaa" * 16
        assert encoded[18:50] == b"\xbb" * 32
        assert encoded[50:] == b"\xcc" * 16

    def test_is_record(self) -> None:
        """Reject data that is too short or has the wrong header."""
        assert not is_record(b"invalid")
        assert not is_record(bytes(100))

    def test_rejects_bad_tag_length(self) -> None:
        """Refuse to encode a truncated tag."""
        with pytest.raises(InvalidEnvelopeError, match="Tag"):
            encode_record(Record(iv=bytes(16), ciphertext=b"", tag=bytes(16)))

    def test_rejects_bad_iv_length(self) -> None:
        """Refuse to encode a record IV of the wrong width."""
        with pytest.raises(InvalidEnvelopeError, match="IV"):
            encode_record(Record(iv=bytes(8), ciphertext=b"", tag=bytes(32)))

    def test_rejects_short_data(self) -> None:
        """Reject data shorter than the record header."""
        with pytest.raises(InvalidEnvelopeError, match="too short"):
            decode_record(bytes(10))

    def test_rejects_hello_as_record(self) -> None:
        """A hello message is not a record."""
        encoded = encode_hello(HelloMessage(MODP_2048, 2, bytes(32), Role.CLIENT))
        with pytest.raises(InvalidEnvelopeError, match="Not a record"):
            decode_record(encoded)
