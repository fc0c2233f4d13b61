"""
architecture.py  –  The Wildcat target as seen by the timing-analysis tool.

:class:`WildcatArchitecture` bundles everything the enclosing toolchain
asks of a target: the machine configuration, the disassembler used for
address extraction, the simulator trace reader and the cost model.  Cache
and scratchpad timing are not modelled; the corresponding accessors are
no-op stubs.

Architectures are looked up by target name through a small registry::

    arch = architecture_for("riscv32")()
    cycles = arch.path_wcet(instructions)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Type

from . import cost_model
from .aligner import AlignmentStats, extract_symbols
from .config import (
    AnalysisOptions,
    CacheConfig,
    MachineConfig,
    MemoryConfig,
    default_instr_cache,
    default_machine_config,
)
from .errors import ConfigurationError
from .objdump import OBJDUMP_COMMAND
from .program import FunctionLookup, InstructionLike, SymbolSink
from .trace import WildcatSimulatorTrace

_log = logging.getLogger(__name__)


class WildcatArchitecture:
    """RISC-V ``riscv32`` target for the Wildcat core."""

    def __init__(self, triple: str = "riscv32", config: Optional[MachineConfig] = None) -> None:
        self.triple = triple
        self.config = config or self.default_config()

    # ── configuration ────────────────────────────────────────────────

    @classmethod
    def default_config(cls) -> MachineConfig:
        return default_machine_config()

    @staticmethod
    def default_instr_cache(kind: str) -> CacheConfig:
        return default_instr_cache(kind)

    def update_cache_config(self, options: Any) -> None:
        pass

    @classmethod
    def simulator_options(cls, opts: Any) -> None:
        pass

    def config_for_clang(self, options: Any) -> None:
        pass

    def config_for_simulator(self) -> None:
        pass

    # ── external tools ───────────────────────────────────────────────

    def objdump_command(self) -> str:
        return OBJDUMP_COMMAND

    def extract_symbols(
        self,
        extractor: SymbolSink,
        functions: FunctionLookup,
        options: AnalysisOptions,
    ) -> AlignmentStats:
        if not options.binary_file:
            raise ConfigurationError("No binary file specified for symbol extraction")
        objdump = options.objdump or self.objdump_command()
        return extract_symbols(options.binary_file, functions, extractor, objdump)

    def simulator_trace(self, options: Any, _watchpoints: Any = None) -> WildcatSimulatorTrace:
        return WildcatSimulatorTrace(getattr(options, "binary_file", None), options)

    # ── timing ───────────────────────────────────────────────────────

    def cycle_cost(self, instr: InstructionLike) -> int:
        return cost_model.cycle_cost(instr)

    def is_library_function(self, func: Any) -> bool:
        return cost_model.is_library_function(func)

    def lib_cycle_cost(self, func: Any) -> int:
        return cost_model.lib_cycle_cost(func)

    def path_wcet(self, ilist: Iterable[InstructionLike]) -> int:
        return cost_model.path_wcet(ilist)

    def edge_wcet(self, ilist: Any, branch_index: Any, edge: Any) -> int:
        return cost_model.edge_wcet(ilist, branch_index, edge)

    # ── memory hierarchy (not modelled) ──────────────────────────────

    def method_cache(self) -> None:
        return None

    def instruction_cache(self) -> None:
        return None

    def stack_cache(self) -> None:
        return None

    def data_cache(self) -> None:
        return None

    def data_memory(self) -> Optional[MemoryConfig]:
        area = self.config.area_by_name("data")
        return area.memory if area is not None else None

    def local_memory(self) -> Optional[MemoryConfig]:
        # used for local scratchpad and stack cache accesses
        return self.config.memory_by_name("local")

    def max_data_transfer_bytes(self) -> int:
        """Maximum size of a load or store in bytes."""
        return 4

    def data_cache_access(self, _instr: Any) -> bool:
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.triple!r})"


# ─────────────────────────────────────────────────────────────────────
#  Registry
# ─────────────────────────────────────────────────────────────────────

_ARCHITECTURES: Dict[str, Type[WildcatArchitecture]] = {}


def register_architecture(name: str, cls: Type[WildcatArchitecture]) -> None:
    if name in _ARCHITECTURES and _ARCHITECTURES[name] is not cls:
        _log.warning("Replacing architecture %s: %s -> %s",
                     name, _ARCHITECTURES[name].__name__, cls.__name__)
    _ARCHITECTURES[name] = cls


def architecture_for(name: str) -> Type[WildcatArchitecture]:
    try:
        return _ARCHITECTURES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown architecture: {name}",
            hint=f"registered: {', '.join(sorted(_ARCHITECTURES)) or 'none'}",
        ) from None


def registered_architectures() -> list[str]:
    return sorted(_ARCHITECTURES)


register_architecture("riscv32", WildcatArchitecture)
