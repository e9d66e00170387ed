"""Customised BLAKE3-style compression, streaming hasher and XOF."""

from __future__ import annotations

import struct
from typing import Sequence

from .debug import DebugFlag, is_flag_enabled

IV_LEN = 8
BLOCK_LEN = 64
CHUNK_LEN = 1024
OUT_LEN = 32

CHUNK_START = 1
CHUNK_END = 2
PARENT = 4
ROOT = 8
KEYED_HASH = 16
DERIVE_KEY_CONTEXT = 32
DERIVE_KEY_MATERIAL = 64

IV = (
    0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A,
    0x510E527F, 0x9B05688C, 0x1F83D9EB, 0x5BE0CD19,
)

MSG_SCHEDULE = (
    (0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15),
    (12, 8, 13, 9, 14, 10, 15, 11, 6, 2, 7, 3, 0, 4, 1, 5),
    (11, 15, 10, 14, 3, 7, 2, 6, 1, 5, 0, 4, 13, 9, 12, 8),
    (1, 12, 7, 10, 14, 0, 5, 15, 13, 3, 9, 2, 6, 11, 4, 8),
    (9, 14, 15, 5, 2, 8, 12, 1, 7, 10, 3, 4, 11, 0, 6, 13),
    (10, 2, 8, 12, 15, 11, 14, 6, 4, 0, 13, 7, 5, 1, 9, 3),
    (13, 7, 9, 1, 11, 14, 12, 3, 5, 0, 15, 4, 8, 6, 2, 10),
)

_M32 = 0xFFFFFFFF

# (a, b, c, d, schedule slot for mx, schedule slot for my): columns then diagonals.
_G_PLAN = (
    (0, 4, 8, 12, 0, 1),
    (1, 5, 9, 13, 2, 3),
    (2, 6, 10, 14, 4, 5),
    (3, 7, 11, 15, 6, 7),
    (0, 5, 10, 15, 8, 9),
    (1, 6, 11, 12, 10, 11),
    (2, 7, 8, 13, 12, 13),
    (3, 4, 9, 14, 14, 15),
)

_WORDS16 = struct.Struct("<16I")
_WORDS8 = struct.Struct("<8I")


def _compress_state(cv: Sequence[int], block: bytes, block_len: int,
                    counter: int, flags: int) -> list[int]:
    if len(cv) != 8:
        raise ValueError("chaining value must hold 8 words")
    if len(block) != BLOCK_LEN:
        raise ValueError(f"block must be {BLOCK_LEN} bytes")

    msg = _WORDS16.unpack(bytes(block))
    s = [w & _M32 for w in cv] + list(IV)
    s[12] ^= counter & _M32
    s[13] ^= (counter >> 32) & _M32
    s[14] ^= block_len & 0xFF
    s[15] ^= flags & 0xFF

    if is_flag_enabled(DebugFlag.BLAKE3_COMPRESS):
        print("[DEBUG C R0 In] State: " + "".join(f"{w:08x} " for w in s))
        print("[DEBUG C R0 In] Msg:   " + "".join(f"{w:08x} " for w in msg))

    for schedule in MSG_SCHEDULE:
        for a, b, c, d, ix, iy in _G_PLAN:
            va = (s[a] + s[b] + msg[schedule[ix]]) & _M32
            vd = s[d] ^ va
            vd = ((vd << 16) | (vd >> 16)) & _M32
            vc = (s[c] + vd) & _M32
            vb = s[b] ^ vc
            vb = ((vb << 12) | (vb >> 20)) & _M32
            va = (va + vb + msg[schedule[iy]]) & _M32
            vd ^= va
            vd = ((vd << 8) | (vd >> 24)) & _M32
            vc = (vc + vd) & _M32
            vb ^= vc
            vb = ((vb << 7) | (vb >> 25)) & _M32
            s[a], s[b], s[c], s[d] = va, vb, vc, vd
    return s


def compress(cv: Sequence[int], block: bytes, block_len: int,
             counter: int, flags: int) -> list[int]:
    """Compress one 64-byte block into a new 8-word chaining value."""
    s = _compress_state(cv, block, block_len, counter, flags)
    return [s[i] ^ s[i + 8] for i in range(8)]


class Blake3Hasher:
    """Streaming hasher processing input in 64-byte blocks."""

    def __init__(self) -> None:
        self.cv = list(IV)
        self.chunk_len = 0
        self.bytes_hashed = 0
        self.block = bytearray(BLOCK_LEN)
        self.block_len = 0
        self.flags = 0

    def _compress_full(self, block: bytes) -> None:
        self.cv = compress(self.cv, block, BLOCK_LEN, self.bytes_hashed, self.flags)
        self.bytes_hashed += BLOCK_LEN
        self.flags &= ~CHUNK_START

    def update(self, data) -> None:
        """Absorb ``data`` (any bytes-like object)."""
        view = memoryview(data).cast("B")
        pos = 0
        remaining = len(view)

        if self.block_len > 0:
            take = min(BLOCK_LEN - self.block_len, remaining)
            self.block[self.block_len:self.block_len + take] = view[:take]
            self.block_len += take
            pos += take
            remaining -= take
            if self.block_len == BLOCK_LEN:
                self._compress_full(bytes(self.block))
                self.block_len = 0

        while remaining >= BLOCK_LEN:
            self._compress_full(bytes(view[pos:pos + BLOCK_LEN]))
            pos += BLOCK_LEN
            remaining -= BLOCK_LEN

        if remaining > 0:
            self.block[:remaining] = view[pos:pos + remaining]
            self.block_len = remaining

    def finalize(self, length: int = OUT_LEN) -> bytes:
        """Compress the final block and return up to 32 bytes of output."""
        if length < 0:
            raise ValueError("output length must not be negative")
        self.flags |= CHUNK_END
        if self.bytes_hashed == 0:
            self.flags |= ROOT
        self.cv = compress(self.cv, bytes(self.block), self.block_len,
                           self.bytes_hashed, self.flags)
        return _WORDS8.pack(*self.cv)[:min(length, OUT_LEN)]

    def _root_block(self) -> bytes:
        """The 64 bytes laid out after the chaining value in hasher state."""
        return (_WORDS8.pack(*self.cv)
                + struct.pack("<QQ", self.chunk_len & (2**64 - 1),
                              self.bytes_hashed & (2**64 - 1))
                + bytes(self.block[:16]))


def hash_direct(data) -> bytes:
    """Return the 32-byte digest of ``data``."""
    hasher = Blake3Hasher()
    hasher.update(data)
    return hasher.finalize(OUT_LEN)


def hash_xof(data, length: int) -> bytes:
    """Return ``length`` bytes of extendable output for ``data``."""
    if length < 0:
        raise ValueError("output length must not be negative")
    if length == 0:
        return b""

    hasher = Blake3Hasher()
    hasher.flags |= ROOT
    hasher.update(data)
    hasher.finalize(0)

    root_cv = list(hasher.cv)
    root_block = hasher._root_block()
    parts = []
    produced = 0
    counter = 0
    while produced < length:
        s = _compress_state(root_cv, root_block, 0, counter, ROOT)
        low = [s[i] ^ s[i + 8] for i in range(8)]
        # Upper half follows the usual extended-output convention.
        high = [s[i + 8] ^ root_cv[i] for i in range(8)]
        out = _WORDS8.pack(*low) + _WORDS8.pack(*high)
        take = min(BLOCK_LEN, length - produced)
        parts.append(out[:take])
        produced += take
        counter += 1
    return b"".join(parts)