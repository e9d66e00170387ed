"""Process-wide debug switches for the hashing pipeline."""

from __future__ import annotations

import enum

_MASK_32 = 0xFFFFFFFF


class DebugFlag(enum.IntFlag):
    """Bit flags selecting which stages print diagnostic output."""

    NONE = 0
    SEED_EXPANSION = 1 << 0
    AES_STAGE = 1 << 1
    FP_STAGE = 1 << 2
    LOGIC_STAGE = 1 << 3
    MEMORY_STAGE = 1 << 4
    BLAKE3_FINAL = 1 << 5
    BLAKE3_COMPRESS = 1 << 6
    ALL = 0xFFFFFFFF


class _FlagRegistry:
    """Holds the bitmask of currently active flags."""

    def __init__(self) -> None:
        self.mask = 0


_registry = _FlagRegistry()


def set_flag(flag: DebugFlag | int, enable: bool = True) -> None:
    """Turn the bits of ``flag`` on or off."""
    bits = int(flag) & _MASK_32
    if enable:
        _registry.mask |= bits
    else:
        _registry.mask &= ~bits & _MASK_32


def is_flag_enabled(flag: DebugFlag | int) -> bool:
    """Return True if any bit of ``flag`` is currently active."""
    return (_registry.mask & int(flag)) != 0