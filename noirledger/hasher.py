"""The multi-stage proof-of-work hash and its shared lookup table."""

from __future__ import annotations

import enum
import functools
import math
import struct
import sys

from .blake3 import OUT_LEN, hash_direct, hash_xof
from .debug import DebugFlag, is_flag_enabled
from .primitives import aes256_encrypt_block, chacha20_mix

HASH_OUTPUT_SIZE_BYTES = OUT_LEN
LOOKUP_TABLE_SIZE_MB = 256
LOOKUP_TABLE_SIZE_BYTES = LOOKUP_TABLE_SIZE_MB * 1024 * 1024
WORKING_MEMORY_PER_HASH_BYTES = 2 * 1024 * 1024

AES_KERNELS = 8
FP_VALUES = 16
FP_ROUNDS = 16
MEMORY_LOOKUPS = 16

LOOKUP_TABLE_SEED = (
    b"NoirLedgerLookupTableSeed_v1.0_For_Enhanced_Security_And_Mining_"
    b"Optimization_And_Decentralization_Goals"
)

_K1 = 3.14159265358979323846
_K2 = 1.61803398874989484820
_K_MOD = 1000000007.0
_GOLDEN_RATIO_32 = 0x9E3779B9
_MIX_CONSTANT_64 = 0x9E3779B97F4A7C15
_M32 = 0xFFFFFFFF
_M64 = 0xFFFFFFFFFFFFFFFF

# Only the AES blocks and keys of the expanded seed are ever read. Output
# blocks of the XOF are independent, so this prefix equals the prefix of
# the full working memory.
_SEED_BYTES_USED = AES_KERNELS * 16 + AES_KERNELS * 32


class GpuBackend(enum.Enum):
    """GPU backends the hasher can dispatch to."""

    NONE = "Nenhum"
    CUDA = "CUDA"
    OPENCL = "OpenCL"


@functools.lru_cache(maxsize=None)
def _build_table(size: int) -> bytes:
    if size <= 64:
        raise ValueError("lookup table must be larger than 64 bytes")
    table = bytearray()
    current = LOOKUP_TABLE_SEED
    while len(table) < size:
        current = hash_direct(current)
        table += current[:size - len(table)]
    return bytes(table)


def lookup_table() -> bytes:
    """Return the process-wide lookup table, building it on first use."""
    return _build_table(LOOKUP_TABLE_SIZE_BYTES)


def _debug(flag: DebugFlag, message: str) -> None:
    if is_flag_enabled(flag):
        print(message)


def _seed_expansion(data: bytes) -> bytes:
    _debug(DebugFlag.SEED_EXPANSION, "[STAGE 1] Iniciando Expansão de Semente...")
    return hash_xof(data, _SEED_BYTES_USED)


def _aes_kernels(seed: bytes) -> bytes:
    _debug(DebugFlag.AES_STAGE, "[STAGE 2] Iniciando Computação Paralela (AES-256)...")
    keys_start = AES_KERNELS * 16
    return b"".join(
        aes256_encrypt_block(seed[k * 16:(k + 1) * 16],
                             seed[keys_start + k * 32:keys_start + (k + 1) * 32])
        for k in range(AES_KERNELS)
    )


def _fmod(x: float, y: float) -> float:
    return math.fmod(x, y) if math.isfinite(x) else math.nan


def _fp_cell(values: list[float], r: int, i: int) -> float:
    n = len(values)
    mix1 = values[(i * 5 + r) % n]
    mix2 = values[(i * 11 + r * 3) % n]
    term1 = values[i] * _K1 + values[(i - 1) % n]
    term2 = math.sqrt(abs(term1) + 1e-9)
    term3 = _fmod(term2 * _K2 + mix1, _K_MOD)
    if r % 2 == 0:
        result = _fmod(term3 + mix2 + r * _K1, _K_MOD)
    else:
        result = _fmod(term3 - mix2 - i * _K2, _K_MOD)
    return result if math.isfinite(result) else math.fmod(float(r * 13 + i * 7), _K_MOD)


def _floating_point(block: bytes) -> bytes:
    _debug(DebugFlag.FP_STAGE, "[STAGE 3] Iniciando Operações de Ponto Flutuante...")
    values = list(struct.unpack(f"<{FP_VALUES}d", block[:FP_VALUES * 8]))
    for r in range(FP_ROUNDS):
        values = [_fp_cell(values, r, i) for i in range(FP_VALUES)]
    raw = struct.pack(f"<{FP_VALUES}d", *values)
    return bytes(a ^ b ^ c ^ d for a, b, c, d in
                 zip(raw[0:32], raw[32:64], raw[64:96], raw[96:128]))


def _rotate_right(x: int, n: int) -> int:
    return ((x >> n) | (x << (32 - n))) & _M32


def _mixed_logic(block: bytes) -> bytes:
    _debug(DebugFlag.LOGIC_STAGE, "[STAGE 4] Iniciando Lógica Mista...")
    s = list(struct.unpack("<8I", block[:32]))
    for _ in range(64):
        idx1 = s[0] % 8
        idx2 = s[1] % 8
        r_val = s[2]
        temp = s[idx1]
        s[idx1] = (s[idx2] * _GOLDEN_RATIO_32 + r_val) & _M32
        if temp > s[idx1]:
            s[idx2] = _rotate_right(temp, r_val % 32)
        else:
            s[idx2] = temp ^ r_val
        s[2] = (s[idx1] + s[idx2]) & _M32
    return struct.pack("<8I", *s)


def _memory_hard(block: bytes, table: bytes) -> bytes:
    _debug(DebugFlag.MEMORY_STAGE, "[STAGE 5] Iniciando Operações de Memória Difícil...")
    state = bytes(block[:32])
    span = len(table) - 64
    for _ in range(MEMORY_LOOKUPS):
        (addr,) = struct.unpack_from("<Q", state)
        addr = (addr * _MIX_CONSTANT_64) & _M64
        addr ^= addr >> 32
        index = addr % span
        memory = table[index:index + 64]
        nonce = hash_direct(state + memory)[:12]
        key = memory[:32]
        state = bytes(a ^ b for a, b in zip(state, memory[32:64]))
        state = chacha20_mix(state, key, nonce)
    return state


def _final_hash(block: bytes) -> bytes:
    _debug(DebugFlag.BLAKE3_FINAL, "[STAGE 6] Iniciando Compressão Final (Blake3)...")
    return hash_direct(block)


class NoirLedgerHasher:
    """Computes the six-stage hash on the CPU and manages GPU backends."""

    def __init__(self) -> None:
        try:
            self._table = lookup_table()
        except (MemoryError, ValueError) as exc:
            raise RuntimeError(f"Falha na construção do NoirLedgerHasher: {exc}") from exc
        self._backend = GpuBackend.NONE
        self._device_name = "N/A"

    def hash_cpu(self, data) -> bytes:
        """Return the 32-byte digest of a bytes-like ``data``."""
        if data is None:
            raise ValueError("Ponteiro nulo recebido em hash_cpu.")
        data = bytes(data)
        if not data:
            return hash_direct(b"")
        block = _seed_expansion(data)
        block = _aes_kernels(block)
        block = _floating_point(block)
        block = _mixed_logic(block)
        block = _memory_hard(block, self._table)
        return _final_hash(block)

    def __call__(self, data) -> bytes:
        """Hash bytes, or a string encoded as UTF-8."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return self.hash_cpu(data)

    def hash_gpu(self, data, input_len: int, num_hashes: int) -> bytes:
        """Hash ``num_hashes`` inputs of ``input_len`` bytes on the active GPU."""
        if self._backend is GpuBackend.NONE:
            raise RuntimeError("Nenhum backend de GPU ativo ou inicializado para hash_gpu.")
        raise RuntimeError(f"Backend de GPU indisponível: {self._backend.value}")

    def init_gpu(self, device_id: int = 0, platform_id: int = 0) -> bool:
        """Try to activate a GPU backend; no backend is available in this build."""
        self._backend = GpuBackend.NONE
        self._device_name = "N/A"
        return False

    def is_gpu_initialized(self) -> bool:
        return self._backend is not GpuBackend.NONE

    def gpu_backend_name(self) -> str:
        return self._backend.value

    def gpu_device_name(self) -> str:
        return self._device_name if self.is_gpu_initialized() else "N/A"

    def lookup_table(self) -> bytes:
        """The lookup table this hasher reads in the memory-hard stage."""
        return self._table


@functools.lru_cache(maxsize=None)
def _shared_hasher(table_size: int) -> NoirLedgerHasher:
    return NoirLedgerHasher()


def noirledger_hash(data) -> bytes:
    """Hash with a shared hasher; on failure report it and return all 0xFF bytes."""
    try:
        hasher = _shared_hasher(LOOKUP_TABLE_SIZE_BYTES)
        return hasher(data)
    except (ValueError, TypeError, RuntimeError) as exc:
        print(f"Erro fatal em NoirLedger_hash: {exc}", file=sys.stderr)
        return b"\xff" * HASH_OUTPUT_SIZE_BYTES