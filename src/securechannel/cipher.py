"""
Substitution-permutation block cipher on 16-byte blocks.

The construction is AES: the 16-byte block is loaded column-major into a
4x4 state (``state[row][col] = block[row + 4 * col]``), whitened with round
key 0, then run through ``rounds`` rounds of

    SubBytes -> ShiftRows -> MixColumns -> AddRoundKey

with MixColumns omitted in the last round. Decryption applies the inverse
steps in reverse order.
"""

from typing import List, Sequence

from .tables import SBOX, INV_SBOX, gf_mul
from .types import BLOCK_SIZE

State = List[List[int]]

# Key width in bytes -> number of rounds
ROUNDS_BY_KEY_SIZE = {16: 10, 24: 12, 32: 14}

_MIX_MATRIX = ((2, 3, 1, 1), (1, 2, 3, 1), (1, 1, 2, 3), (3, 1, 1, 2))
_INV_MIX_MATRIX = ((14, 11, 13, 9), (9, 14, 11, 13), (13, 9, 14, 11), (11, 13, 9, 14))


def rounds_for_key(key_size: int) -> int:
    """Number of rounds for a key of ``key_size`` bytes."""
    try:
        return ROUNDS_BY_KEY_SIZE[key_size]
    except KeyError:
        raise ValueError(f"Key must be 16, 24 or 32 bytes, got {key_size}") from None


def xor_bytes(a: bytes, b: bytes) -> bytes:
    """Byte-wise XOR of two equal-length sequences."""
    if len(a) != len(b):
        raise ValueError(f"Length mismatch: {len(a)} != {len(b)}")
    return bytes(x ^ y for x, y in zip(a, b))


def bytes_to_state(block: bytes) -> State:
    return [[block[row + 4 * col] for col in range(4)] for row in range(4)]


def state_to_bytes(state: State) -> bytes:
    return bytes(state[row][col] for col in range(4) for row in range(4))


def sub_bytes(state: State) -> None:
    for row in state:
        for col in range(4):
            row[col] = SBOX[row[col]]


def inv_sub_bytes(state: State) -> None:
    for row in state:
        for col in range(4):
            row[col] = INV_SBOX[row[col]]


def shift_rows(state: State) -> None:
    """Rotate row r left by r positions."""
    for r in range(1, 4):
        state[r] = state[r][r:] + state[r][:r]


def inv_shift_rows(state: State) -> None:
    for r in range(1, 4):
        state[r] = state[r][-r:] + state[r][:-r]


def _mix(state: State, matrix: Sequence[Sequence[int]]) -> None:
    for col in range(4):
        column = [state[row][col] for row in range(4)]
        for row in range(4):
            value = 0
            for k in range(4):
                value ^= gf_mul(matrix[row][k], column[k])
            state[row][col] = value


def mix_columns(state: State) -> None:
    """Multiply each column by the fixed MDS matrix over GF(2^8)."""
    _mix(state, _MIX_MATRIX)


def inv_mix_columns(state: State) -> None:
    _mix(state, _INV_MIX_MATRIX)


def add_round_key(state: State, round_key: bytes) -> None:
    """XOR the state with a 16-byte round key (self-inverse)."""
    key_state = bytes_to_state(round_key)
    for row in range(4):
        for col in range(4):
            state[row][col] ^= key_state[row][col]


def _check_block(block: bytes, schedule: Sequence[bytes]) -> int:
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"Block must be {BLOCK_SIZE} bytes, got {len(block)}")
    rounds = len(schedule) - 1
    if rounds not in ROUNDS_BY_KEY_SIZE.values():
        raise ValueError(f"Invalid round key schedule length: {len(schedule)}")
    return rounds


def encrypt_block(block: bytes, schedule: Sequence[bytes]) -> bytes:
    """
    Encrypt one 16-byte block.

    Args:
        block: 16-byte plaintext block
        schedule: Round keys from ``keys.expand_round_keys``

    Returns:
        16-byte ciphertext block
    """
    rounds = _check_block(block, schedule)
    state = bytes_to_state(block)

    add_round_key(state, schedule[0])
    for r in range(1, rounds):
        sub_bytes(state)
        shift_rows(state)
        mix_columns(state)
        add_round_key(state, schedule[r])

    sub_bytes(state)
    shift_rows(state)
    add_round_key(state, schedule[rounds])

    return state_to_bytes(state)


def decrypt_block(block: bytes, schedule: Sequence[bytes]) -> bytes:
    """Decrypt one 16-byte block; exact inverse of ``encrypt_block``."""
    rounds = _check_block(block, schedule)
    state = bytes_to_state(block)

    add_round_key(state, schedule[rounds])
    inv_shift_rows(state)
    inv_sub_bytes(state)
    for r in range(rounds - 1, 0, -1):
        add_round_key(state, schedule[r])
        inv_mix_columns(state)
        inv_shift_rows(state)
        inv_sub_bytes(state)

    add_round_key(state, schedule[0])

    return state_to_bytes(state)
