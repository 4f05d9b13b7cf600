"""
Two-party handshake state machine.

A HandshakeSession is owned by exactly one endpoint and is not safe for
concurrent use; wrap it in ``channel.Endpoint`` to share it between tasks.

States move strictly forward:

    INIT -> SENT_HELLO -> RECEIVED_PEER_HELLO -> KEY_DERIVED -> ESTABLISHED -> CLOSED

and any non-terminal state may fall to ABORTED. A step either completes and
advances, or fails and aborts the session. Record-level failures
(PaddingError, IntegrityError) are the exception: they reject that record
and leave the session usable unless configured otherwise.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .cipher import rounds_for_key, xor_bytes
from .exchange import (
    generate_keypair,
    generate_nonce,
    compute_shared_secret,
    validate_public_value,
    check_domain_parameters,
)
from .keys import derive_session_keys
from .mac import compute_tag, verify_tag
from .modes import encrypt, decrypt
from .types import (
    DomainParameters,
    HelloMessage,
    KeyPair,
    Record,
    Role,
    SessionKeys,
    SecureChannelError,
    InvalidStateError,
    IntegrityError,
    ParameterMismatchError,
    ProtocolError,
    IV_SIZE,
    DEFAULT_CIPHER_KEY_SIZE,
    NONCE_SIZE,
)

logger = logging.getLogger(__name__)


class HandshakeState(Enum):
    """Lifecycle state of a handshake session."""
    INIT = "init"
    SENT_HELLO = "sent_hello"
    RECEIVED_PEER_HELLO = "received_peer_hello"
    KEY_DERIVED = "key_derived"
    ESTABLISHED = "established"
    CLOSED = "closed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (HandshakeState.CLOSED, HandshakeState.ABORTED)


@dataclass
class SessionConfig:
    """Configuration for a handshake session."""

    cipher_key_size: int = DEFAULT_CIPHER_KEY_SIZE
    """Cipher key width in bytes (16, 24 or 32)."""

    nonce_size: int = NONCE_SIZE
    """Hello nonce width in bytes."""

    close_on_integrity_failure: bool = False
    """Abort the whole session when a record fails verification."""

    verify_domain_parameters: bool = False
    """Run a primality check on the modulus before starting."""

    def __post_init__(self) -> None:
        rounds_for_key(self.cipher_key_size)
        if self.nonce_size < 1:
            raise ValueError(f"Nonce size must be positive, got {self.nonce_size}")


class HandshakeSession:
    """
    One endpoint's view of the secure channel handshake.

    Example usage:
        ```python
        client = HandshakeSession(MODP_2048, Role.CLIENT)
        server = HandshakeSession(MODP_2048, Role.SERVER)

        client_hello = client.start()
        server_hello = server.start()
        client.receive_hello(server_hello)
        server.receive_hello(client_hello)
        client.derive_keys()
        server.derive_keys()

        record = client.seal(b"GET / HTTP/1.1")
        assert server.open(record) == b"GET / HTTP/1.1"
        ```
    """

    def __init__(
        self,
        params: DomainParameters,
        role: Role,
        config: Optional[SessionConfig] = None,
        rng=None,
    ) -> None:
        """
        Create a session in the INIT state.

        Args:
            params: Domain parameters shared with the peer.
            role: Whether this endpoint is the client or the server.
            config: Optional session configuration.
            rng: Random source for secrets and nonces (default: OS CSPRNG).
        """
        self._params = params
        self._role = role
        self._config = config or SessionConfig()
        self._rng = rng
        self._state = HandshakeState.INIT
        self._abort_reason: Optional[str] = None

        self._keypair: Optional[KeyPair] = None
        self._nonce: Optional[bytes] = None
        self._peer_public: Optional[int] = None
        self._peer_nonce: Optional[bytes] = None
        self._shared_secret: Optional[int] = None
        self._keys: Optional[SessionKeys] = None

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def role(self) -> Role:
        return self._role

    @property
    def params(self) -> DomainParameters:
        return self._params

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def public_value(self) -> Optional[int]:
        """Our public exchange value, once generated."""
        return self._keypair.public if self._keypair else None

    @property
    def peer_public_value(self) -> Optional[int]:
        return self._peer_public

    @property
    def shared_secret(self) -> Optional[int]:
        return self._shared_secret

    @property
    def session_keys(self) -> Optional[SessionKeys]:
        return self._keys

    @property
    def is_established(self) -> bool:
        return self._state == HandshakeState.ESTABLISHED

    @property
    def abort_reason(self) -> Optional[str]:
        return self._abort_reason

    def start(self) -> HelloMessage:
        """
        Generate our key pair and nonce and produce the hello message.

        Returns:
            HelloMessage to send to the peer
        """
        self._require(HandshakeState.INIT)

        try:
            check_domain_parameters(self._params, verify_prime=self._config.verify_domain_parameters)
            keypair = generate_keypair(self._params, self._rng)
            nonce = generate_nonce(self._config.nonce_size, self._rng)
        except SecureChannelError as e:
            self.abort(str(e))
            raise

        self._keypair = keypair
        self._nonce = nonce
        self._transition(HandshakeState.SENT_HELLO)

        return HelloMessage(
            params=self._params,
            public_value=keypair.public,
            nonce=nonce,
            role=self._role,
        )

    def receive_hello(self, hello: HelloMessage) -> None:
        """
        Validate and record the peer's hello.

        Raises:
            ParameterMismatchError: If the peer uses different domain parameters
            ProtocolError: If the peer claims our role or sends a bad nonce
            InvalidPublicValue: If the peer's public value is out of range
        """
        self._require(HandshakeState.SENT_HELLO)

        try:
            if hello.params != self._params:
                raise ParameterMismatchError("Peer domain parameters do not match")
            if hello.role is not self._role.peer:
                raise ProtocolError(f"Peer hello has role {hello.role.name}, expected {self._role.peer.name}")
            if len(hello.nonce) != self._config.nonce_size:
                raise ProtocolError(
                    f"Peer nonce must be {self._config.nonce_size} bytes, got {len(hello.nonce)}"
                )
            validate_public_value(hello.public_value, self._params.modulus)
        except SecureChannelError as e:
            self.abort(str(e))
            raise

        self._peer_public = hello.public_value
        self._peer_nonce = hello.nonce
        self._transition(HandshakeState.RECEIVED_PEER_HELLO)

    def derive_keys(self) -> SessionKeys:
        """
        Compute the shared secret and derive the session keys.

        Returns:
            The derived SessionKeys
        """
        self._require(HandshakeState.RECEIVED_PEER_HELLO)

        if self._role is Role.CLIENT:
            client_nonce, server_nonce = self._nonce, self._peer_nonce
        else:
            client_nonce, server_nonce = self._peer_nonce, self._nonce

        try:
            shared_secret = compute_shared_secret(
                self._keypair.secret, self._peer_public, self._params.modulus
            )
            keys = derive_session_keys(
                shared_secret,
                client_nonce,
                server_nonce,
                self._params.modulus,
                self._config.cipher_key_size,
            )
        except SecureChannelError as e:
            self.abort(str(e))
            raise

        self._shared_secret = shared_secret
        self._keys = keys
        self._transition(HandshakeState.KEY_DERIVED)
        return keys

    def seal(self, plaintext: bytes) -> Record:
        """
        Encrypt then tag an outbound application message.

        Returns:
            Record ready to send
        """
        self._require(HandshakeState.KEY_DERIVED, HandshakeState.ESTABLISHED)

        record_iv = generate_nonce(IV_SIZE, self._rng)
        ciphertext = encrypt(plaintext, self._keys.cipher_key, self._cbc_iv(record_iv))
        tag = compute_tag(self._keys.mac_key, record_iv + ciphertext)
        self._mark_established()

        logger.debug("%s sealed record: %d bytes", self._name, len(ciphertext))
        return Record(iv=record_iv, ciphertext=ciphertext, tag=tag)

    def open(self, record: Record) -> bytes:
        """
        Verify then decrypt an inbound record.

        The tag is checked before anything is decrypted; a record that fails
        verification is discarded without touching its ciphertext.

        Raises:
            IntegrityError: If the tag does not match
            PaddingError: If the decrypted padding is malformed
        """
        self._require(HandshakeState.KEY_DERIVED, HandshakeState.ESTABLISHED)

        if len(record.iv) != IV_SIZE or not verify_tag(
            self._keys.mac_key, record.iv + record.ciphertext, record.tag
        ):
            logger.warning("%s rejected record: tag mismatch", self._name)
            if self._config.close_on_integrity_failure:
                self.abort("Record failed integrity check")
            raise IntegrityError("Record tag verification failed")

        plaintext = decrypt(record.ciphertext, self._keys.cipher_key, self._cbc_iv(record.iv))
        self._mark_established()

        logger.debug("%s opened record: %d bytes", self._name, len(record.ciphertext))
        return plaintext

    def close(self) -> None:
        """Close the session and drop all key material."""
        if self._state.is_terminal:
            return
        self._transition(HandshakeState.CLOSED)
        self._clear_secrets()

    def abort(self, reason: str) -> None:
        """Move a non-terminal session to ABORTED and drop all key material."""
        if self._state.is_terminal:
            return
        logger.warning("%s aborted in %s: %s", self._name, self._state.value, reason)
        self._abort_reason = reason
        self._transition(HandshakeState.ABORTED)
        self._clear_secrets()

    @property
    def _name(self) -> str:
        return self._role.name.lower()

    def _require(self, *allowed: HandshakeState) -> None:
        if self._state in allowed:
            return
        expected = " or ".join(s.value for s in allowed)
        error = InvalidStateError(f"Operation requires state {expected}, session is {self._state.value}")
        self.abort(str(error))
        raise error

    def _cbc_iv(self, record_iv: bytes) -> bytes:
        # CBC IV for one record: the derived session IV masked by the record's own IV
        return xor_bytes(self._keys.iv, record_iv)

    def _mark_established(self) -> None:
        if self._state == HandshakeState.KEY_DERIVED:
            self._transition(HandshakeState.ESTABLISHED)

    def _transition(self, new_state: HandshakeState) -> None:
        logger.debug("%s: %s -> %s", self._name, self._state.value, new_state.value)
        self._state = new_state

    def _clear_secrets(self) -> None:
        self._keypair = None
        self._shared_secret = None
        self._keys = None
