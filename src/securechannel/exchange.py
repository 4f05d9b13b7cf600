"""Discrete-logarithm (Diffie-Hellman) key exchange."""

import secrets
from typing import Optional

from .arith import modpow
from .types import (
    DomainParameters,
    KeyPair,
    InvalidPublicValue,
    InvalidParametersError,
    NONCE_SIZE,
)

# Fixed Miller-Rabin bases; deterministic for every modulus below 3.3e24
_PRIME_BASES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41)


def _default_rng():
    return secrets.SystemRandom()


def generate_keypair(params: DomainParameters, rng=None) -> KeyPair:
    """
    Generate a key pair for the given group.

    Args:
        params: Domain parameters
        rng: Random source with ``randint`` (defaults to the OS CSPRNG).
            Only tests should pass a seeded generator.

    Returns:
        KeyPair with secret in [1, modulus-2]
    """
    if params.modulus < 5:
        raise InvalidParametersError(f"Modulus too small: {params.modulus}")

    rng = rng or _default_rng()
    secret = rng.randint(1, params.modulus - 2)
    public = modpow(params.generator, secret, params.modulus)
    return KeyPair(secret=secret, public=public)


def generate_nonce(size: int = NONCE_SIZE, rng=None) -> bytes:
    """Random handshake nonce of ``size`` bytes."""
    rng = rng or _default_rng()
    return rng.randbytes(size)


def validate_public_value(value: int, modulus: int) -> None:
    """
    Reject exchange values that degenerate the shared secret.

    Raises:
        InvalidPublicValue: If value is not in [2, modulus-2]
    """
    if not 2 <= value <= modulus - 2:
        raise InvalidPublicValue(value, modulus)


def compute_shared_secret(own_secret: int, peer_public: int, modulus: int) -> int:
    """
    Compute ``peer_public ** own_secret mod modulus``.

    Raises:
        InvalidPublicValue: If the peer's value is out of range
    """
    validate_public_value(peer_public, modulus)
    return modpow(peer_public, own_secret, modulus)


def is_probable_prime(n: int, rounds: int = 20, rng=None) -> bool:
    """Miller-Rabin primality test."""
    if n < 2:
        return False
    for p in _PRIME_BASES:
        if n % p == 0:
            return n == p

    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1

    if n < 3_317_044_064_679_887_385_961_981:
        bases = _PRIME_BASES
    else:
        rng = rng or _default_rng()
        bases = [rng.randint(2, n - 2) for _ in range(rounds)]

    for a in bases:
        x = modpow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = x * x % n
            if x == n - 1:
                break
        else:
            return False
    return True


def check_domain_parameters(params: DomainParameters, verify_prime: bool = False) -> None:
    """
    Validate domain parameters.

    The range checks always run. Primality of the modulus is only checked
    when ``verify_prime`` is set; primitivity of the generator is never
    checked and is trusted as given.

    Raises:
        InvalidParametersError: If the parameters are unusable
    """
    if params.modulus < 5:
        raise InvalidParametersError(f"Modulus too small: {params.modulus}")

    if not 2 <= params.generator <= params.modulus - 2:
        raise InvalidParametersError(
            f"Generator must be in [2, modulus-2], got {params.generator}"
        )

    if verify_prime and not is_probable_prime(params.modulus):
        raise InvalidParametersError("Modulus is not prime")


def brute_force_discrete_log(
    public: int,
    params: DomainParameters,
    limit: Optional[int] = None,
) -> Optional[int]:
    """
    Recover a secret exponent by exhaustive search.

    Only feasible for toy groups; shows why small moduli offer no security.

    Args:
        public: Observed public value
        params: Domain parameters
        limit: Largest exponent to try (defaults to modulus-2)

    Returns:
        Smallest x >= 1 with generator**x == public, or None if not found
    """
    upper = params.modulus - 2 if limit is None else min(limit, params.modulus - 2)

    value = 1
    for x in range(1, upper + 1):
        value = value * params.generator % params.modulus
        if value == public:
            return x
    return None
