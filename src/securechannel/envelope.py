"""Wire encoding and decoding for hello messages and application records."""

from typing import Tuple

from .arith import int_to_bytes, int_from_bytes
from .types import (
    DomainParameters,
    HelloMessage,
    Record,
    Role,
    InvalidEnvelopeError,
    PROTOCOL_VERSION,
    HELLO_TYPE,
    RECORD_TYPE,
    IV_SIZE,
    TAG_SIZE,
    RECORD_HEADER_SIZE,
)

_HELLO_HEADER_SIZE = 3
_LENGTH_PREFIX_SIZE = 2
_MAX_FIELD_SIZE = 0xFFFF


def _encode_field(data: bytes) -> bytes:
    if len(data) > _MAX_FIELD_SIZE:
        raise InvalidEnvelopeError(f"Field too large: {len(data)} bytes (max {_MAX_FIELD_SIZE})")
    return len(data).to_bytes(_LENGTH_PREFIX_SIZE, byteorder="big") + data


def _decode_field(data: bytes, offset: int) -> Tuple[bytes, int]:
    if offset + _LENGTH_PREFIX_SIZE > len(data):
        raise InvalidEnvelopeError("Truncated field length")
    length = int.from_bytes(data[offset : offset + _LENGTH_PREFIX_SIZE], byteorder="big")
    offset += _LENGTH_PREFIX_SIZE
    if offset + length > len(data):
        raise InvalidEnvelopeError(f"Truncated field: need {length} bytes, have {len(data) - offset}")
    return data[offset : offset + length], offset + length


def encode_hello(hello: HelloMessage) -> bytes:
    """
    Encode a hello message to bytes.

    Format:
        [0]     version (0x01)
        [1]     type (0x01)
        [2]     role (0 = client, 1 = server)
        [3..]   modulus, generator, public value, nonce; each as a 2-byte
                big-endian length followed by big-endian bytes

    Args:
        hello: HelloMessage to encode

    Returns:
        Encoded bytes
    """
    return (
        bytes([PROTOCOL_VERSION, HELLO_TYPE, hello.role.value])
        + _encode_field(int_to_bytes(hello.params.modulus))
        + _encode_field(int_to_bytes(hello.params.generator))
        + _encode_field(int_to_bytes(hello.public_value))
        + _encode_field(hello.nonce)
    )


def decode_hello(data: bytes) -> HelloMessage:
    """
    Decode bytes into a hello message.

    Raises:
        InvalidEnvelopeError: If data is invalid
    """
    if len(data) < _HELLO_HEADER_SIZE:
        raise InvalidEnvelopeError(f"Data too short: {len(data)} bytes (minimum {_HELLO_HEADER_SIZE})")

    if data[0] != PROTOCOL_VERSION:
        raise InvalidEnvelopeError(f"Unknown version: {data[0]}")

    if data[1] != HELLO_TYPE:
        raise InvalidEnvelopeError(f"Not a hello message: type {data[1]}")

    try:
        role = Role(data[2])
    except ValueError:
        raise InvalidEnvelopeError(f"Unknown role: {data[2]}") from None

    offset = _HELLO_HEADER_SIZE
    modulus, offset = _decode_field(data, offset)
    generator, offset = _decode_field(data, offset)
    public_value, offset = _decode_field(data, offset)
    nonce, offset = _decode_field(data, offset)

    if offset != len(data):
        raise InvalidEnvelopeError(f"Trailing data: {len(data) - offset} bytes")

    return HelloMessage(
        params=DomainParameters(
            modulus=int_from_bytes(modulus),
            generator=int_from_bytes(generator),
        ),
        public_value=int_from_bytes(public_value),
        nonce=nonce,
        role=role,
    )


def encode_record(record: Record) -> bytes:
    """
    Encode an application record to bytes.

    Format (50-byte header + ciphertext):
        [0]      version (0x01)
        [1]      type (0x17)
        [2-17]   record IV (16 bytes)
        [18-49]  tag (32 bytes)
        [50+]    ciphertext (variable)
    """
    if len(record.iv) != IV_SIZE:
        raise InvalidEnvelopeError(f"IV must be {IV_SIZE} bytes, got {len(record.iv)}")
    if len(record.tag) != TAG_SIZE:
        raise InvalidEnvelopeError(f"Tag must be {TAG_SIZE} bytes, got {len(record.tag)}")

    return bytes([PROTOCOL_VERSION, RECORD_TYPE]) + record.iv + record.tag + record.ciphertext


def decode_record(data: bytes) -> Record:
    """
    Decode bytes into an application record.

    Raises:
        InvalidEnvelopeError: If data is invalid
    """
    if len(data) < RECORD_HEADER_SIZE:
        raise InvalidEnvelopeError(f"Data too short: {len(data)} bytes (minimum {RECORD_HEADER_SIZE})")

    if data[0] != PROTOCOL_VERSION:
        raise InvalidEnvelopeError(f"Unknown version: {data[0]}")

    if data[1] != RECORD_TYPE:
        raise InvalidEnvelopeError(f"Not a record: type {data[1]}")

    iv_end = 2 + IV_SIZE
    return Record(
        iv=data[2:iv_end],
        ciphertext=data[RECORD_HEADER_SIZE:],
        tag=data[iv_end:RECORD_HEADER_SIZE],
    )


def is_record(data: bytes) -> bool:
    """Check if data looks like an encoded application record."""
    if len(data) < RECORD_HEADER_SIZE:
        return False

    return data[0] == PROTOCOL_VERSION and data[1] == RECORD_TYPE
