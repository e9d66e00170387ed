import pytest

import noirledger.hasher as hasher_module
from noirledger.blake3 import hash_direct
from noirledger.debug import DebugFlag, set_flag
from noirledger.hasher import (
    LOOKUP_TABLE_SEED,
    GpuBackend,
    NoirLedgerHasher,
    lookup_table,
    noirledger_hash,
)

SMALL_TABLE = 4096


@pytest.fixture
def small_table(monkeypatch):
    monkeypatch.setattr(hasher_module, "LOOKUP_TABLE_SIZE_BYTES", SMALL_TABLE)
    return SMALL_TABLE


@pytest.fixture
def hasher(small_table):
    return NoirLedgerHasher()


def test_lookup_table_length(small_table):
    assert len(lookup_table()) == SMALL_TABLE


def test_lookup_table_is_hash_chain_from_seed(small_table):
    table = lookup_table()
    first = hash_direct(LOOKUP_TABLE_SEED)
    assert table[:32] == first
    assert table[32:64] == hash_direct(first)


def test_lookup_table_partial_last_entry(monkeypatch):
    monkeypatch.setattr(hasher_module, "LOOKUP_TABLE_SIZE_BYTES", 4100)
    table = lookup_table()
    assert len(table) == 4100
    monkeypatch.setattr(hasher_module, "LOOKUP_TABLE_SIZE_BYTES", 4096)
    assert lookup_table() == table[:4096]


def test_lookup_table_too_small_rejected(monkeypatch):
    monkeypatch.setattr(hasher_module, "LOOKUP_TABLE_SIZE_BYTES", 64)
    with pytest.raises(ValueError):
        lookup_table()


def test_hasher_exposes_table(hasher):
    assert hasher.lookup_table() == lookup_table()


def test_abc_digest_is_deterministic(hasher):
    digest = hasher(b"abc")
    assert len(digest) == 32
    assert NoirLedgerHasher()(b"abc") == digest
    assert hasher.hash_cpu(bytearray(b"abc")) == digest


def test_string_and_bytes_agree(hasher):
    assert hasher("abc") == hasher(b"abc")


def test_different_inputs_differ(hasher):
    assert hasher(b"abc") != hasher(b"abd")


def test_empty_input_is_plain_blake3(hasher):
    assert hasher(b"") == hash_direct(b"")


def test_none_input_rejected(hasher):
    with pytest.raises(ValueError):
        hasher.hash_cpu(None)


def test_table_contents_change_digest(monkeypatch):
    monkeypatch.setattr(hasher_module, "LOOKUP_TABLE_SIZE_BYTES", 4096)
    small = NoirLedgerHasher()(b"abc")
    monkeypatch.setattr(hasher_module, "LOOKUP_TABLE_SIZE_BYTES", 8192)
    larger = NoirLedgerHasher()(b"abc")
    assert small != larger


def test_long_input(hasher):
    data = bytes(range(256)) * 3
    digest = hasher(data)
    assert len(digest) == 32
    assert hasher(data) == digest


def test_module_function_matches_class(hasher):
    assert noirledger_hash(b"abc") == hasher(b"abc")


def test_module_function_error_returns_ff(small_table, capsys):
    assert noirledger_hash(None) == b"\xff" * 32
    assert "Erro fatal" in capsys.readouterr().err


def test_gpu_unavailable(hasher):
    assert hasher.init_gpu(0, 0) is False
    assert hasher.is_gpu_initialized() is False
    assert hasher.gpu_backend_name() == GpuBackend.NONE.value == "Nenhum"
    assert hasher.gpu_device_name() == "N/A"


def test_hash_gpu_without_backend_raises(hasher):
    with pytest.raises(RuntimeError):
        hasher.hash_gpu(b"abc" * 2, 3, 2)


def test_stage_debug_output(hasher, capsys):
    set_flag(DebugFlag.AES_STAGE, True)
    set_flag(DebugFlag.MEMORY_STAGE, True)
    try:
        hasher(b"abc")
    finally:
        set_flag(DebugFlag.ALL, False)
    out = capsys.readouterr().out
    assert "[STAGE 2]" in out
    assert "[STAGE 5]" in out
    assert "[STAGE 3]" not in out


def test_no_debug_output_by_default(hasher, capsys):
    set_flag(DebugFlag.ALL, False)
    hasher(b"abc")
    assert capsys.readouterr().out == ""