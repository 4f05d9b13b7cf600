"""
securechannel - A simulated secure channel built from first principles

Diffie-Hellman key exchange, HKDF key derivation, an AES-style block cipher
in CBC mode and HMAC record authentication, composed into a two-party
handshake state machine.
"""

from .arith import modpow, mod_mul, mod_inverse, int_to_bytes, int_from_bytes
from .groups import TOY_GROUP, DEMO_GROUP, MODP_2048
from .exchange import (
    generate_keypair,
    generate_nonce,
    compute_shared_secret,
    validate_public_value,
    check_domain_parameters,
    brute_force_discrete_log,
)
from .keys import derive_session_keys, expand_round_keys
from .cipher import encrypt_block, decrypt_block, rounds_for_key
from .modes import encrypt, decrypt, ecb_encrypt, ecb_decrypt, pad, unpad
from .mac import compute_tag, verify_tag
from .envelope import encode_hello, decode_hello, encode_record, decode_record, is_record
from .session import HandshakeSession, HandshakeState, SessionConfig
from .channel import MemoryChannel, Endpoint, create_channel_pair, run_handshake
from .types import (
    DomainParameters,
    KeyPair,
    SessionKeys,
    HelloMessage,
    Record,
    Role,
    SecureChannelError,
    InvalidPublicValue,
    InvalidParametersError,
    ParameterMismatchError,
    ProtocolError,
    InvalidStateError,
    PaddingError,
    IntegrityError,
    InvalidEnvelopeError,
    ChannelClosedError,
    BLOCK_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
)

__version__ = "0.1.0"

__all__ = [
    # Arithmetic
    "modpow",
    "mod_mul",
    "mod_inverse",
    "int_to_bytes",
    "int_from_bytes",
    # Groups
    "TOY_GROUP",
    "DEMO_GROUP",
    "MODP_2048",
    # Key exchange
    "generate_keypair",
    "generate_nonce",
    "compute_shared_secret",
    "validate_public_value",
    "check_domain_parameters",
    "brute_force_discrete_log",
    # Key schedule
    "derive_session_keys",
    "expand_round_keys",
    # Cipher
    "encrypt_block",
    "decrypt_block",
    "rounds_for_key",
    # Modes
    "encrypt",
    "decrypt",
    "ecb_encrypt",
    "ecb_decrypt",
    "pad",
    "unpad",
    # MAC
    "compute_tag",
    "verify_tag",
    # Envelope
    "encode_hello",
    "decode_hello",
    "encode_record",
    "decode_record",
    "is_record",
    # Session
    "HandshakeSession",
    "HandshakeState",
    "SessionConfig",
    # Channel
    "MemoryChannel",
    "Endpoint",
    "create_channel_pair",
    "run_handshake",
    # Types
    "DomainParameters",
    "KeyPair",
    "SessionKeys",
    "HelloMessage",
    "Record",
    "Role",
    # Errors
    "SecureChannelError",
    "InvalidPublicValue",
    "InvalidParametersError",
    "ParameterMismatchError",
    "ProtocolError",
    "InvalidStateError",
    "PaddingError",
    "IntegrityError",
    "InvalidEnvelopeError",
    "ChannelClosedError",
    # Constants
    "BLOCK_SIZE",
    "NONCE_SIZE",
    "TAG_SIZE",
]
