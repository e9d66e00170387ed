# noirledger

A proof-of-work hash function that pushes its input through six stages:

1. seed expansion with a custom BLAKE3 extendable output,
2. eight AES-256 kernels (10 rounds),
3. floating-point mixing over sixteen doubles,
4. a mixed integer/logic stage,
5. memory-hard lookups into a 256 MiB global table combined with ChaCha (8 double rounds),
6. a final BLAKE3 compression to a 32-byte digest.

The global lookup table is built once, on first use, and shared by every hasher
in the process. Building it takes a long time in pure Python and holds 256 MiB
in memory, so expect the first hash to be slow.

## Installation

```
pip install .
```

No third-party libraries are needed.

## Library use

```python
from noirledger.hasher import NoirLedgerHasher, noirledger_hash

hasher = NoirLedgerHasher()
digest = hasher(b"abc")          # 32 bytes
print(digest.hex())

# Module-level convenience function using a shared hasher
print(noirledger_hash("abc").hex())
```

`NoirLedgerHasher.hash_cpu` takes any bytes-like object; calling the hasher
accepts bytes or a string (encoded as UTF-8). An empty input yields the plain
custom-BLAKE3 digest of nothing. `noirledger_hash` reports an error on stderr
and returns 32 bytes of `0xFF` instead of raising.

`noirledger.hasher.lookup_table()` returns the shared lookup table, and
`NoirLedgerHasher.lookup_table()` the table a hasher reads.

The custom BLAKE3 core is available on its own:

```python
from noirledger.blake3 import Blake3Hasher, hash_direct, hash_xof

hash_direct(b"data")            # 32-byte digest
hash_xof(b"data", 128)          # 128 bytes of extended output

h = Blake3Hasher()
h.update(b"da")
h.update(b"ta")
h.finalize(32)
```

This BLAKE3 variant processes a single chain of blocks and does not produce
reference BLAKE3 digests.

The block primitives used by the pipeline live in `noirledger.primitives`:
`aes256_encrypt_block(block, key)` (10-round AES-256 on one 16-byte block),
`chacha_block(state, double_rounds)` and `chacha20_mix(data, key, nonce)`
(XOR with an 8-double-round ChaCha keystream starting at counter 1).

### Debug output

Stage tracing is switched on per stage:

```python
from noirledger.debug import DebugFlag, set_flag

set_flag(DebugFlag.AES_STAGE, True)
```

Available flags: `SEED_EXPANSION`, `AES_STAGE`, `FP_STAGE`, `LOGIC_STAGE`,
`MEMORY_STAGE`, `BLAKE3_FINAL`, `BLAKE3_COMPRESS`, `ALL`.
`is_flag_enabled(flag)` tells whether a flag is on.

## Command line

```
noirledger-profiler [options]
```

Options:

- `--mode <cpu|gpu>` – benchmark mode (default: cpu; any other value falls back to cpu)
- `-t, --threads <n>` – number of worker threads for CPU mode (default: the CPU count)
- `-i, --iterations <n>` – total number of hashes to compute (default: 100000)
- `--gpu-platform <id>` – GPU platform id
- `--gpu-device <id>` – GPU device id
- `--diagnose-cl` – report OpenCL support
- `--debug <flag>` – enable a debug flag, e.g. `--debug AES_STAGE`
- `-h, --help` – show help (exits with status 1)

Example:

```
noirledger-profiler -t 4 -i 200
```

The CPU benchmark prints the elapsed time and the hash rate. Afterwards a
sample hash of a fixed message is printed for verification. An unknown option
or an option missing its value ends the program with status 1.

## What this package does not do

There is no GPU backend. `NoirLedgerHasher.init_gpu` always returns `False`,
`hash_gpu` raises `RuntimeError`, `--mode gpu` reports that the GPU could not
be initialised and exits with status 1, and `--diagnose-cl` only states that
OpenCL support is not enabled.

## Tests

```
pip install .[test]
pytest
```