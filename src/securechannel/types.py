"""Type definitions for securechannel."""

from dataclasses import dataclass, field
from enum import Enum


# Protocol constants
PROTOCOL_VERSION = 0x01
HELLO_TYPE = 0x01
RECORD_TYPE = 0x17
BLOCK_SIZE = 16
NONCE_SIZE = 32
IV_SIZE = 16
MAC_KEY_SIZE = 32
TAG_SIZE = 32  # HMAC-SHA256
DEFAULT_CIPHER_KEY_SIZE = 32
RECORD_HEADER_SIZE = 2 + IV_SIZE + TAG_SIZE

# Key derivation constants
KEY_DERIVATION_INFO_PREFIX = b"securechannel-v1 "
CIPHER_KEY_LABEL = b"cipher"
IV_LABEL = b"iv"
MAC_KEY_LABEL = b"mac"


class Role(Enum):
    """Which side of the handshake a session plays."""
    CLIENT = 0
    SERVER = 1

    @property
    def peer(self) -> "Role":
        return Role.SERVER if self is Role.CLIENT else Role.CLIENT


@dataclass(frozen=True)
class DomainParameters:
    """Public Diffie-Hellman group parameters shared by both endpoints.

    The generator is trusted to be a primitive root of the modulus; see
    ``exchange.check_domain_parameters`` for the optional validation.
    """
    modulus: int
    generator: int


@dataclass(frozen=True)
class KeyPair:
    """One party's exchange key pair. The secret never leaves the session."""
    secret: int = field(repr=False)
    public: int


@dataclass(frozen=True)
class SessionKeys:
    """Purpose-separated keys derived from the shared secret."""
    cipher_key: bytes = field(repr=False)
    iv: bytes = field(repr=False)
    mac_key: bytes = field(repr=False)


@dataclass(frozen=True)
class HelloMessage:
    """Handshake hello carrying the sender's public value and nonce."""
    params: DomainParameters
    public_value: int
    nonce: bytes
    role: Role


@dataclass(frozen=True)
class Record:
    """Application record exchanged after the handshake.

    ``iv`` is fresh per record and covered by the tag together with the
    ciphertext, so each record opens independently of the ones before it.
    """
    iv: bytes  # IV_SIZE bytes
    ciphertext: bytes
    tag: bytes  # TAG_SIZE bytes


# Exception types
class SecureChannelError(Exception):
    """Base exception for securechannel errors."""
    pass


class InvalidPublicValue(SecureChannelError):
    """Peer exchange value outside [2, modulus-2]."""

    def __init__(self, value: int, modulus: int) -> None:
        self.value = value
        self.modulus = modulus
        super().__init__(f"Public value out of range [2, modulus-2]: {value}")


class InvalidParametersError(SecureChannelError):
    """Domain parameters rejected."""
    pass


class ParameterMismatchError(SecureChannelError):
    """Peer hello uses different domain parameters."""
    pass


class ProtocolError(SecureChannelError):
    """Peer message violates the handshake protocol."""
    pass


class InvalidStateError(SecureChannelError):
    """Operation attempted out of sequence."""
    pass


class PaddingError(SecureChannelError):
    """Malformed block padding."""
    pass


class IntegrityError(SecureChannelError):
    """Record tag does not match its ciphertext."""
    pass


class InvalidEnvelopeError(SecureChannelError):
    """Invalid wire format."""
    pass


class ChannelClosedError(SecureChannelError):
    """Channel has been closed."""
    pass
