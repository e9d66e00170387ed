"""Block primitives for the hashing pipeline: reduced-round AES-256 and ChaCha."""

from __future__ import annotations

import struct
from typing import Sequence

AES_ROUNDS = 10
CHACHA_ROUNDS = 8

_M32 = 0xFFFFFFFF

_SBOX = bytes((
    0x63, 0x7c, 0x77, 0x7b, 0xf2, 0x6b, 0x6f, 0xc5, 0x30, 0x01, 0x67, 0x2b, 0xfe, 0xd7, 0xab, 0x76,
    0xca, 0x82, 0xc9, 0x7d, 0xfa, 0x59, 0x47, 0xf0, 0xad, 0xd4, 0xa2, 0xaf, 0x9c, 0xa4, 0x72, 0xc0,
    0xb7, 0xfd, 0x93, 0x26, 0x36, 0x3f, 0xf7, 0xcc, 0x34, 0xa5, 0xe5, 0xf1, 0x71, 0xd8, 0x31, 0x15,
    0x04, 0xc7, 0x23, 0xc3, 0x18, 0x96, 0x05, 0x9a, 0x07, 0x12, 0x80, 0xe2, 0xeb, 0x27, 0xb2, 0x75,
    0x09, 0x83, 0x2c, 0x1a, 0x1b, 0x6e, 0x5a, 0xa0, 0x52, 0x3b, 0xd6, 0xb3, 0x29, 0xe3, 0x2f, 0x84,
    0x53, 0xd1, 0x00, 0xed, 0x20, 0xfc, 0xb1, 0x5b, 0x6a, 0xcb, 0xbe, 0x39, 0x4a, 0x4c, 0x58, 0xcf,
    0xd0, 0xef, 0xaa, 0xfb, 0x43, 0x4d, 0x33, 0x85, 0x45, 0xf9, 0x02, 0x7f, 0x50, 0x3c, 0x9f, 0xa8,
    0x51, 0xa3, 0x40, 0x8f, 0x92, 0x9d, 0x38, 0xf5, 0xbc, 0xb6, 0xda, 0x21, 0x10, 0xff, 0xf3, 0xd2,
    0xcd, 0x0c, 0x13, 0xec, 0x5f, 0x97, 0x44, 0x17, 0xc4, 0xa7, 0x7e, 0x3d, 0x64, 0x5d, 0x19, 0x73,
    0x60, 0x81, 0x4f, 0xdc, 0x22, 0x2a, 0x90, 0x88, 0x46, 0xee, 0xb8, 0x14, 0xde, 0x5e, 0x0b, 0xdb,
    0xe0, 0x32, 0x3a, 0x0a, 0x49, 0x06, 0x24, 0x5c, 0xc2, 0xd3, 0xac, 0x62, 0x91, 0x95, 0xe4, 0x79,
    0xe7, 0xc8, 0x37, 0x6d, 0x8d, 0xd5, 0x4e, 0xa9, 0x6c, 0x56, 0xf4, 0xea, 0x65, 0x7a, 0xae, 0x08,
    0xba, 0x78, 0x25, 0x2e, 0x1c, 0xa6, 0xb4, 0xc6, 0xe8, 0xdd, 0x74, 0x1f, 0x4b, 0xbd, 0x8b, 0x8a,
    0x70, 0x3e, 0xb5, 0x66, 0x48, 0x03, 0xf6, 0x0e, 0x61, 0x35, 0x57, 0xb9, 0x86, 0xc1, 0x1d, 0x9e,
    0xe1, 0xf8, 0x98, 0x11, 0x69, 0xd9, 0x8e, 0x94, 0x9b, 0x1e, 0x87, 0xe9, 0xce, 0x55, 0x28, 0xdf,
    0x8c, 0xa1, 0x89, 0x0d, 0xbf, 0xe6, 0x42, 0x68, 0x41, 0x99, 0x2d, 0x0f, 0xb0, 0x54, 0xbb, 0x16,
))

_RCON = (0x8d, 0x01, 0x02, 0x04, 0x08, 0x10, 0x20, 0x40, 0x80, 0x1b, 0x36)

_CHACHA_CONSTANTS = (0x61707865, 0x3320646e, 0x79622d32, 0x6b206574)

_CHACHA_QUARTERS = (
    (0, 4, 8, 12), (1, 5, 9, 13), (2, 6, 10, 14), (3, 7, 11, 15),
    (0, 5, 10, 15), (1, 6, 11, 12), (2, 7, 8, 13), (3, 4, 9, 14),
)

_STATE_WORDS = struct.Struct("<16I")


def _exact(value, size: int, what: str) -> bytes:
    data = bytes(value)
    if len(data) != size:
        raise ValueError(f"{what} must be {size} bytes, got {len(data)}")
    return data


# --- AES -------------------------------------------------------------------

def _expand_key(key: bytes, rounds: int = AES_ROUNDS) -> bytes:
    """AES-256 key schedule truncated to ``rounds + 1`` round keys."""
    key = _exact(key, 32, "AES key")
    total_words = (rounds + 1) * 4
    if rounds < 1 or (total_words - 1) // 8 >= len(_RCON):
        raise ValueError(f"unsupported number of AES rounds: {rounds}")

    words = [list(key[i:i + 4]) for i in range(0, 32, 4)]
    for i in range(8, total_words):
        temp = list(words[i - 1])
        if i % 8 == 0:
            temp = [_SBOX[b] for b in temp[1:] + temp[:1]]
            temp[0] ^= _RCON[i // 8]
        elif i % 8 == 4:
            temp = [_SBOX[b] for b in temp]
        words.append([a ^ b for a, b in zip(words[i - 8], temp)])
    return bytes(b for word in words for b in word)


def _xtime(a: int) -> int:
    a <<= 1
    return (a ^ 0x1b) & 0xFF if a & 0x100 else a


def _sub_bytes(state: list[int]) -> list[int]:
    return [_SBOX[b] for b in state]


def _shift_rows(state: list[int]) -> list[int]:
    # State is column-major: byte (row r, column c) sits at index c * 4 + r.
    return [state[((c + r) % 4) * 4 + r] for c in range(4) for r in range(4)]


def _mix_columns(state: list[int]) -> list[int]:
    out: list[int] = []
    for c in range(0, 16, 4):
        a0, a1, a2, a3 = state[c:c + 4]
        d0, d1, d2, d3 = _xtime(a0), _xtime(a1), _xtime(a2), _xtime(a3)
        out += (
            d0 ^ d1 ^ a1 ^ a2 ^ a3,
            a0 ^ d1 ^ d2 ^ a2 ^ a3,
            a0 ^ a1 ^ d2 ^ d3 ^ a3,
            d0 ^ a0 ^ a1 ^ a2 ^ d3,
        )
    return out


def _add_round_key(state: list[int], round_keys: bytes, rnd: int) -> list[int]:
    return [b ^ k for b, k in zip(state, round_keys[rnd * 16:rnd * 16 + 16])]


def _encrypt(block: bytes, round_keys: bytes, rounds: int) -> bytes:
    state = _add_round_key(list(block), round_keys, 0)
    for rnd in range(1, rounds):
        state = _mix_columns(_shift_rows(_sub_bytes(state)))
        state = _add_round_key(state, round_keys, rnd)
    state = _shift_rows(_sub_bytes(state))
    return bytes(_add_round_key(state, round_keys, rounds))


def aes256_encrypt_block(block, key) -> bytes:
    """Encrypt one 16-byte block with a 32-byte key using 10 AES rounds."""
    block = _exact(block, 16, "AES block")
    return _encrypt(block, _expand_key(key, AES_ROUNDS), AES_ROUNDS)


# --- ChaCha ----------------------------------------------------------------

def _rotl(x: int, n: int) -> int:
    return ((x << n) | (x >> (32 - n))) & _M32


def chacha_block(state: Sequence[int], double_rounds: int) -> list[int]:
    """Run ``double_rounds`` ChaCha double rounds and add the input state back."""
    if len(state) != 16:
        raise ValueError("ChaCha state must hold 16 words")
    if double_rounds < 0:
        raise ValueError("number of double rounds must not be negative")
    original = [w & _M32 for w in state]
    x = list(original)
    for _ in range(double_rounds):
        for a, b, c, d in _CHACHA_QUARTERS:
            x[a] = (x[a] + x[b]) & _M32
            x[d] = _rotl(x[d] ^ x[a], 16)
            x[c] = (x[c] + x[d]) & _M32
            x[b] = _rotl(x[b] ^ x[c], 12)
            x[a] = (x[a] + x[b]) & _M32
            x[d] = _rotl(x[d] ^ x[a], 8)
            x[c] = (x[c] + x[d]) & _M32
            x[b] = _rotl(x[b] ^ x[c], 7)
    return [(o + w) & _M32 for o, w in zip(original, x)]


def _chacha_init_state(key: bytes, nonce: bytes, counter: int) -> list[int]:
    return [
        *_CHACHA_CONSTANTS,
        *struct.unpack("<8I", key),
        counter & _M32,
        *struct.unpack("<3I", nonce),
    ]


def chacha20_mix(data, key, nonce) -> bytes:
    """XOR ``data`` with a reduced-round ChaCha keystream starting at counter 1."""
    key = _exact(key, 32, "ChaCha key")
    nonce = _exact(nonce, 12, "ChaCha nonce")
    buf = bytes(data)
    out = bytearray()
    for block_index, offset in enumerate(range(0, len(buf), 64)):
        state = _chacha_init_state(key, nonce, 1 + block_index)
        keystream = _STATE_WORDS.pack(*chacha_block(state, CHACHA_ROUNDS))
        out += bytes(b ^ k for b, k in zip(buf[offset:offset + 64], keystream))
    return bytes(out)