"""NoirLedger memory-hard proof-of-work hash, its BLAKE3 core and a CPU benchmark tool."""

__version__ = "0.1.0"
__all__ = ["blake3", "cli", "debug", "hasher", "primitives"]