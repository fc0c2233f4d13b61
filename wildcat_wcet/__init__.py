"""
wildcat_wcet - WCET Support for the Wildcat RISC-V Core
=======================================================

Target support used by a worst-case-execution-time analysis toolchain for
binaries built for the Wildcat core (``riscv32``).

Core modules
------------
aligner
    Recovers the address of every machine instruction by aligning the
    objdump listing with the toolchain's decoded instruction lists.
cost_model
    Worst-case cycle cost per instruction and per instruction path,
    with flat surcharges for calls into runtime library routines.
trace
    Lazy reader for the Wildcat simulator trace.
architecture
    ``WildcatArchitecture`` facade and the architecture registry.

Supporting modules
------------------
objdump
    Parsimonious grammar for objdump lines, disassembler command line.
program
    Structural interface of the program representation.
config
    Analysis options, machine configuration data, logging setup.
errors
    Error codes and the exception hierarchy.

Quick start
-----------
>>> from wildcat_wcet import MachineInstruction, Opcode, path_wcet
>>> path_wcet([MachineInstruction(Opcode.ADDI), MachineInstruction(Opcode.PseudoRET)])
5
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__author__ = "wildcat-wcet contributors"
__license__ = "MIT"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Re-export registry: module_name -> public names
# ---------------------------------------------------------------------------

_MODULES = {
    "errors": [
        "ErrorSeverity",
        "ErrorCode",
        "WcetErrorCodes",
        "WcetError",
        "DisassemblerError",
        "AlignmentError",
        "ConfigurationError",
        "UnknownOpcodeError",
        "UnknownLibraryFunctionError",
        "TraceError",
        "MissingTraceFileError",
        "TraceFormatError",
    ],
    "program": [
        "MachineInstruction",
        "MachineFunction",
        "MachineFunctionList",
        "SymbolExtractor",
    ],
    "cost_model": [
        "Opcode",
        "LibraryRoutine",
        "OPCODE_COST",
        "LIBRARY_ROUTINE_COST",
        "PIPELINE_REFILL",
        "cycle_cost",
        "is_library_function",
        "lib_cycle_cost",
        "instruction_wcet",
        "path_wcet",
        "edge_wcet",
    ],
    "objdump": [
        "FunctionLabelLine",
        "InstructionLine",
        "parse_line",
    ],
    "aligner": [
        "AlignmentRules",
        "AlignmentStats",
        "align_disassembly",
        "extract_symbols",
    ],
    "trace": [
        "TraceEvent",
        "WildcatSimulatorTrace",
    ],
    "config": [
        "AnalysisOptions",
        "MachineConfig",
        "default_machine_config",
        "configure_logging",
    ],
    "architecture": [
        "WildcatArchitecture",
        "architecture_for",
        "register_architecture",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"wildcat_wcet: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(
                f"wildcat_wcet.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)


for _mod, _names in _MODULES.items():
    _import_names(_mod, _names)

del _mod, _names


def list_submodules() -> List[str]:
    """Return the names of the re-exporting submodules."""
    return sorted(_MODULES)


__all__ += ["list_submodules", "__version__"]

# ---------------------------------------------------------------------------
# TYPE_CHECKING block - static visibility of the dynamically bound names
# ---------------------------------------------------------------------------

if TYPE_CHECKING:
    from .aligner import (
        AlignmentRules as AlignmentRules,
        AlignmentStats as AlignmentStats,
        align_disassembly as align_disassembly,
        extract_symbols as extract_symbols,
    )
    from .architecture import (
        WildcatArchitecture as WildcatArchitecture,
        architecture_for as architecture_for,
        register_architecture as register_architecture,
    )
    from .config import (
        AnalysisOptions as AnalysisOptions,
        MachineConfig as MachineConfig,
        configure_logging as configure_logging,
        default_machine_config as default_machine_config,
    )
    from .cost_model import (
        LIBRARY_ROUTINE_COST as LIBRARY_ROUTINE_COST,
        OPCODE_COST as OPCODE_COST,
        PIPELINE_REFILL as PIPELINE_REFILL,
        LibraryRoutine as LibraryRoutine,
        Opcode as Opcode,
        cycle_cost as cycle_cost,
        edge_wcet as edge_wcet,
        instruction_wcet as instruction_wcet,
        is_library_function as is_library_function,
        lib_cycle_cost as lib_cycle_cost,
        path_wcet as path_wcet,
    )
    from .errors import (
        AlignmentError as AlignmentError,
        ConfigurationError as ConfigurationError,
        DisassemblerError as DisassemblerError,
        ErrorCode as ErrorCode,
        ErrorSeverity as ErrorSeverity,
        MissingTraceFileError as MissingTraceFileError,
        TraceError as TraceError,
        TraceFormatError as TraceFormatError,
        UnknownLibraryFunctionError as UnknownLibraryFunctionError,
        UnknownOpcodeError as UnknownOpcodeError,
        WcetError as WcetError,
        WcetErrorCodes as WcetErrorCodes,
    )
    from .objdump import (
        FunctionLabelLine as FunctionLabelLine,
        InstructionLine as InstructionLine,
        parse_line as parse_line,
    )
    from .program import (
        MachineFunction as MachineFunction,
        MachineFunctionList as MachineFunctionList,
        MachineInstruction as MachineInstruction,
        SymbolExtractor as SymbolExtractor,
    )
    from .trace import (
        TraceEvent as TraceEvent,
        WildcatSimulatorTrace as WildcatSimulatorTrace,
    )
