import struct

import pytest

from noirledger.blake3 import (
    BLOCK_LEN,
    CHUNK_END,
    IV,
    OUT_LEN,
    ROOT,
    Blake3Hasher,
    compress,
    hash_direct,
    hash_xof,
)
from noirledger.debug import DebugFlag, set_flag


@pytest.fixture(autouse=True)
def _clear_flags():
    set_flag(DebugFlag.ALL, False)
    yield
    set_flag(DebugFlag.ALL, False)


def _sample(n):
    return bytes((i * 7 + 3) % 256 for i in range(n))


def test_digest_length_and_determinism():
    digest = hash_direct(b"abc")
    assert len(digest) == OUT_LEN
    assert digest == hash_direct(b"abc")


def test_different_inputs_differ():
    assert hash_direct(b"abc") != hash_direct(b"abd")


def test_empty_input_matches_single_compression():
    expected = struct.pack("<8I", *compress(IV, bytes(BLOCK_LEN), 0, 0, CHUNK_END | ROOT))
    assert hash_direct(b"") == expected


def test_short_input_matches_single_compression():
    block = b"abc" + bytes(BLOCK_LEN - 3)
    expected = struct.pack("<8I", *compress(IV, block, 3, 0, CHUNK_END | ROOT))
    assert hash_direct(b"abc") == expected


def test_full_block_input_matches_two_compressions():
    data = _sample(64)
    cv = compress(IV, data, BLOCK_LEN, 0, 0)
    expected = struct.pack("<8I", *compress(cv, bytes(BLOCK_LEN), 0, 64, CHUNK_END))
    assert hash_direct(data) == expected


def test_finalize_truncates_output():
    hasher = Blake3Hasher()
    hasher.update(b"hello")
    assert hasher.finalize(10) == hash_direct(b"hello")[:10]


def test_finalize_caps_at_out_len():
    hasher = Blake3Hasher()
    hasher.update(b"hello")
    assert hasher.finalize(100) == hash_direct(b"hello")


def test_finalize_negative_length_rejected():
    with pytest.raises(ValueError):
        Blake3Hasher().finalize(-1)


def test_update_rejects_none():
    with pytest.raises(TypeError):
        Blake3Hasher().update(None)


def test_xof_length():
    assert len(hash_xof(b"abc", 1000)) == 1000


def test_xof_zero_length():
    assert hash_xof(b"abc", 0) == b""


def test_xof_prefix_consistent():
    long_out = hash_xof(b"seed", 300)
    assert hash_xof(b"seed", 50) == long_out[:50]
    assert hash_xof(b"seed", 128) == long_out[:128]


def test_xof_depends_on_input():
    assert hash_xof(b"seed-a", 64) != hash_xof(b"seed-b", 64)


def test_xof_negative_length_rejected():
    with pytest.raises(ValueError):
        hash_xof(b"abc", -5)


def test_compress_rejects_short_block():
    with pytest.raises(ValueError):
        compress(IV, bytes(10), 10, 0, 0)


def test_compress_rejects_bad_cv():
    with pytest.raises(ValueError):
        compress(IV[:4], bytes(BLOCK_LEN), 0, 0, 0)


def test_compress_words_are_32_bit():
    out = compress(IV, _sample(64), 64, 2**40 + 5, ROOT)
    assert len(out) == 8
    assert all(0 <= w <= 0xFFFFFFFF for w in out)


def test_compress_sensitive_to_counter_and_flags():
    block = _sample(64)
    base = compress(IV, block, 64, 0, 0)
    assert compress(IV, block, 64, 1, 0) != base
    assert compress(IV, block, 64, 0, ROOT) != base
    assert compress(IV, block, 63, 0, 0) != base


def test_debug_flag_prints_state(capsys):
    set_flag(DebugFlag.BLAKE3_COMPRESS, True)
    compress(IV, bytes(BLOCK_LEN), 0, 0, 0)
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("[DEBUG C R0 In] State: 6a09e667")
    assert lines[1].startswith("[DEBUG C R0 In] Msg:   00000000")


def test_no_output_without_debug_flag(capsys):
    hash_direct(b"abc")
    assert capsys.readouterr().out == ""