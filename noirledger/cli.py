"""Command-line benchmark for the NoirLedger hash."""

from __future__ import annotations

import enum
import os
import re
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .debug import DebugFlag, set_flag
from .hasher import HASH_OUTPUT_SIZE_BYTES, NoirLedgerHasher

SAMPLE_INPUT = b"NoirLedger: Secure and Optimized Proof-of-Work by Kilo Code!"

DEBUG_FLAG_NAMES = {
    "SEED_EXPANSION": DebugFlag.SEED_EXPANSION,
    "AES_STAGE": DebugFlag.AES_STAGE,
    "FP_STAGE": DebugFlag.FP_STAGE,
    "LOGIC_STAGE": DebugFlag.LOGIC_STAGE,
    "MEMORY_STAGE": DebugFlag.MEMORY_STAGE,
    "BLAKE3_FINAL": DebugFlag.BLAKE3_FINAL,
    "BLAKE3_COMPRESS": DebugFlag.BLAKE3_COMPRESS,
    "ALL": DebugFlag.ALL,
}

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_.-]")

_DIAGNOSE_HEADER = "--- Diagnóstico OpenCL ---"
_OPENCL_DISABLED = "O suporte a OpenCL não foi habilitado durante a compilação."


class BenchmarkMode(enum.Enum):
    """What the command runs."""

    CPU = "cpu"
    GPU = "gpu"
    DIAGNOSE_CL = "diagnose-cl"


@dataclass
class AppConfig:
    """Settings taken from the command line."""

    mode: BenchmarkMode = BenchmarkMode.CPU
    num_threads: int = field(default_factory=lambda: os.cpu_count() or 0)
    total_iterations: int = 100000
    gpu_platform_id: int = 0
    gpu_device_id: int = 0


def format_hash(digest) -> str:
    """Return ``digest`` as lower-case hexadecimal."""
    return bytes(digest).hex()


def print_help(app_name: str) -> None:
    """Print usage for the program called ``app_name``."""
    name = _UNSAFE_NAME_CHARS.sub("", app_name)
    print(f"Uso: {name} [opções]")
    print("Opções:")
    print("  --mode <cpu|gpu>      Modo de benchmark (padrão: cpu).")
    print("  -t, --threads <n>     Número de threads para o modo CPU.")
    print("  -i, --iterations <n>  Total de hashes a serem calculados.")
    print("  --gpu-platform <id>   ID da plataforma OpenCL.")
    print("  --gpu-device <id>     ID do dispositivo GPU.")
    print("  --diagnose-cl         Exibe informações sobre OpenCL.")
    print("  --debug <flag>        Ativa um flag de depuração (ex: --debug AES_STAGE).")
    print("  -h, --help            Exibe esta mensagem de ajuda.")


def diagnose_opencl() -> str:
    """Print and return a report on OpenCL support in this build."""
    report = "\n".join((_DIAGNOSE_HEADER, _OPENCL_DISABLED))
    print(report)
    return report


def _to_int(text: str) -> int:
    """Parse a leading integer, ignoring whatever follows it."""
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"Valor numérico inválido: '{text}'")
    return int(match.group(1))


def parse_arguments(argv) -> AppConfig | None:
    """Parse a full command line (``argv[0]`` is the program name).

    Returns None when help was shown; raises ValueError on a bad argument.
    """
    argv = list(argv)
    app_name = argv[0] if argv else "noirledger"
    config = AppConfig()
    args = iter(argv[1:])
    for arg in args:
        if arg in ("-h", "--help"):
            print_help(app_name)
            return None
        if arg == "--diagnose-cl":
            config.mode = BenchmarkMode.DIAGNOSE_CL
            continue

        value = next(args, None)
        if value is None:
            raise ValueError(f"Argumento '{arg}' requer um valor.")

        if arg == "--mode":
            if value == "gpu":
                config.mode = BenchmarkMode.GPU
            elif value == "cpu":
                config.mode = BenchmarkMode.CPU
            else:
                print(f"Modo inválido: {value}. Usando 'cpu'.", file=sys.stderr)
        elif arg in ("-t", "--threads"):
            config.num_threads = _to_int(value)
        elif arg in ("-i", "--iterations"):
            config.total_iterations = _to_int(value)
        elif arg == "--gpu-platform":
            config.gpu_platform_id = _to_int(value)
        elif arg == "--gpu-device":
            config.gpu_device_id = _to_int(value)
        elif arg == "--debug":
            flag = DEBUG_FLAG_NAMES.get(value)
            if flag is None:
                print(f"Flag de depuração inválida: {value}", file=sys.stderr)
            else:
                set_flag(flag, True)
        else:
            raise ValueError(f"Argumento desconhecido: {arg}")
    return config


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _report_timing(elapsed: float, hashes: int) -> None:
    print(f"Tempo total: {elapsed:.6f} segundos.")
    if elapsed > 0:
        print(f"Hashrate: {hashes / elapsed:.2f} H/s")


def run_cpu_benchmark(hasher, config: AppConfig, data: bytes) -> int:
    """Hash ``data`` repeatedly on worker threads; return the hashes computed."""
    per_thread = _trunc_div(config.total_iterations, config.num_threads) or 1

    print("--- Iniciando Benchmark de CPU ---")
    print(f"Usando {config.num_threads} threads, "
          f"{config.total_iterations} hashes no total.")

    lock = threading.Lock()
    done = 0

    def worker() -> None:
        nonlocal done
        for _ in range(per_thread):
            hasher.hash_cpu(data)
            with lock:
                done += 1

    start = time.perf_counter()
    with ThreadPoolExecutor(max_workers=max(config.num_threads, 1)) as pool:
        futures = [pool.submit(worker) for _ in range(config.num_threads)]
        errors = [f.exception() for f in futures]
    elapsed = time.perf_counter() - start

    failure = next((e for e in errors if e is not None), None)
    if failure is not None:
        print(f"Erro durante a execução do benchmark de CPU: {failure}", file=sys.stderr)
        return done

    print("--- Resultados do Benchmark de CPU ---")
    _report_timing(elapsed, done)
    return done


def run_gpu_benchmark(hasher, config: AppConfig, data: bytes) -> bytes | None:
    """Hash a batch of copies of ``data`` on the GPU; return all digests."""
    print("--- Iniciando Benchmark de GPU ---")
    if not hasher.is_gpu_initialized():
        print("Erro: GPU nao inicializada.", file=sys.stderr)
        return None
    backend = hasher.gpu_backend_name()
    print(f"Backend: {backend} | Dispositivo: {hasher.gpu_device_name()}")
    print(f"Calculando {config.total_iterations} hashes...")

    batch = bytes(data) * config.total_iterations
    start = time.perf_counter()
    output = hasher.hash_gpu(batch, len(data), config.total_iterations)
    elapsed = time.perf_counter() - start

    print(f"--- Resultados do Benchmark de GPU ({backend}) ---")
    _report_timing(elapsed, config.total_iterations)
    print("Hash de amostra da GPU (primeiro hash): "
          + format_hash(output[:HASH_OUTPUT_SIZE_BYTES]))
    return output


def main(argv=None) -> int:
    """Run the benchmark; ``argv`` holds the arguments after the program name."""
    args = sys.argv[1:] if argv is None else list(argv)
    prog = sys.argv[0] if sys.argv and sys.argv[0] else "noirledger"
    try:
        config = parse_arguments([prog, *args])
    except ValueError as exc:
        print(f"Erro: {exc}", file=sys.stderr)
        return 1
    if config is None:
        return 1

    if config.num_threads == 0:
        config.num_threads = 1

    try:
        if config.mode is BenchmarkMode.DIAGNOSE_CL:
            diagnose_opencl()
            return 0

        hasher = NoirLedgerHasher()
        print("NoirLedgerHasher inicializado com sucesso.")

        if config.mode is BenchmarkMode.GPU:
            if not hasher.init_gpu(config.gpu_device_id, config.gpu_platform_id):
                print("Falha ao inicializar a GPU. Verifique os drivers e a configuração.",
                      file=sys.stderr)
                print("Execute com '--diagnose-cl' para obter informações sobre OpenCL.",
                      file=sys.stderr)
                return 1
            run_gpu_benchmark(hasher, config, SAMPLE_INPUT)
        else:
            run_cpu_benchmark(hasher, config, SAMPLE_INPUT)

        print("\nCalculando um hash de amostra da CPU para verificação...")
        print("Hash de amostra da CPU: " + format_hash(hasher(SAMPLE_INPUT)))
    except Exception as exc:  # top-level boundary: report and fail
        print(f"Ocorreu um erro fatal: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())