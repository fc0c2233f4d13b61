"""
config.py  –  Analysis options and the static Wildcat machine configuration.

The machine configuration is plain data: two memories (external flash
behind the instruction cache, and the 16 KiB data scratchpad mapped at
``0x80000000``), one instruction cache and the two memory areas that tie
address ranges to them.  Transfer times and burst sizes of the flash are
estimates.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from .objdump import OBJDUMP_COMMAND

_LOGGER_NAME = "wildcat_wcet"


# ---------------------------------------------------------------------------
# Analysis options
# ---------------------------------------------------------------------------

@dataclass
class AnalysisOptions:
    """Options supplied by the enclosing tool for one analysis run."""

    binary_file: Optional[Union[str, os.PathLike]] = None
    trace_file: Optional[Union[str, os.PathLike]] = None
    objdump: str = OBJDUMP_COMMAND


# ---------------------------------------------------------------------------
# Machine configuration records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MemoryConfig:
    name: str
    size: int
    transfer_size: int
    read_latency: int
    read_transfer_time: int
    write_latency: int
    write_transfer_time: int


@dataclass(frozen=True)
class CacheConfig:
    name: str
    type: str
    policy: str
    associativity: int
    block_size: int
    size: int


@dataclass(frozen=True)
class ValueRange:
    min: int
    max: int

    def __contains__(self, address: object) -> bool:
        return isinstance(address, int) and self.min <= address <= self.max


@dataclass(frozen=True)
class MemoryArea:
    name: str
    type: str
    cache: Optional[CacheConfig]
    memory: MemoryConfig
    address_range: ValueRange


def _by_name(items, name):
    for item in items:
        if item.name == name:
            return item
    return None


@dataclass(frozen=True)
class MachineConfig:
    memories: Tuple[MemoryConfig, ...] = field(default_factory=tuple)
    caches: Tuple[CacheConfig, ...] = field(default_factory=tuple)
    memory_areas: Tuple[MemoryArea, ...] = field(default_factory=tuple)

    def memory_by_name(self, name: str) -> Optional[MemoryConfig]:
        return _by_name(self.memories, name)

    def cache_by_name(self, name: str) -> Optional[CacheConfig]:
        return _by_name(self.caches, name)

    def area_by_name(self, name: str) -> Optional[MemoryArea]:
        return _by_name(self.memory_areas, name)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

FULL_RANGE = ValueRange(0, 0xFFFFFFFF)
DTIM_RANGE = ValueRange(0x80000000, 0x80003FFF)


def default_instr_cache(kind: str) -> CacheConfig:
    # TODO: dummy geometry until the Wildcat cache parameters are published
    if kind == "method-cache":
        return CacheConfig("method-cache", "method-cache", "fifo", 16, 8, 4096)
    return CacheConfig("instruction-cache", "instruction-cache", "lru", 2, 32, 16384)


def default_machine_config() -> MachineConfig:
    main = MemoryConfig("main", 126 * 1024 * 1024, 16, 0, 21, 0, 21)
    data_sram = MemoryConfig("data-sram", 16384, 16, 16, 3, 21, 3)
    icache = default_instr_cache("instruction-cache")
    areas = (
        MemoryArea("instructions", "code", icache, main, FULL_RANGE),
        MemoryArea("data", "data", None, data_sram, DTIM_RANGE),
    )
    return MachineConfig(
        memories=(main, data_sram),
        caches=(icache,),
        memory_areas=areas,
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def configure_logging(verbosity: int = 0) -> logging.Logger:
    """Set up the ``wildcat_wcet`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger(_LOGGER_NAME)
    root.setLevel(level)
    if not any(getattr(h, "_wildcat_wcet", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        handler._wildcat_wcet = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
