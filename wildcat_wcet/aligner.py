"""
aligner.py  –  Assign real addresses to the toolchain's instruction records.

The program representation knows, for every machine function, the ordered
list of decoded instructions but not where they ended up in the binary.
The disassembly knows the addresses but not which record they belong to.
This module walks the disassembly once and pairs them up positionally: the
N-th real instruction of a function matches the N-th instruction line after
that function's label line.

Known disassembler quirks the pass compensates for
---------------------------------------------------
* ``IMPLICIT_DEF`` placeholders never appear in the disassembly.  Each one
  consumes an instruction index without consuming a line.
* objdump cannot tell data from code: data emitted into the text section
  shows up as ``.word`` / ``.short`` directives.  A directive is skipped
  (index kept) unless the expected record is a constant-pool entry.
* ``nop`` padding and directives past the end of a function are expected
  and stay silent; any other surplus line is reported as a warning.

There is no backtracking.  A mismatch cannot be recovered from, which is
why the opcode sanity check turns a suspicious pairing into a fatal
:class:`~wildcat_wcet.errors.AlignmentError` instead of a wrong WCET.

State
-----
The pass threads an explicit state value through :func:`step`:
:data:`NO_FUNCTION` (lines are ignored) or :class:`ActiveFunction`
(label, function and the index of the next expected instruction).
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import (
    Any,
    FrozenSet,
    Iterable,
    Mapping,
    Optional,
    Pattern,
    Union,
)

from .errors import AlignmentError, DisassemblerError
from .objdump import (
    OBJDUMP_COMMAND,
    DisassemblyLine,
    FunctionLabelLine,
    describe_command,
    iter_disassembly,
    objdump_argv,
)
from .program import FunctionLike, FunctionLookup, InstructionLike, SymbolSink

_log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
#  Rules
# ─────────────────────────────────────────────────────────────────────

# Symbolic names plus the numeric opcodes used by older PML exports.
OP_IMPLICIT_DEF: FrozenSet[Any] = frozenset({"IMPLICIT_DEF", 8})
OP_CONSTPOOL: FrozenSet[Any] = frozenset({"CONSTPOOL_ENTRY", 121})

DEFAULT_SANITY_CHECKS: Mapping[Any, Pattern[str]] = MappingProxyType({
    "LUI": re.compile(r"lui"),
    "AUIPC": re.compile(r"auipc"),
})


def _opcode_key(opcode: Any) -> Any:
    # Opcode members compare by their tag
    return getattr(opcode, "value", opcode)


@dataclass(frozen=True)
class AlignmentRules:
    """Opcode classes the pass treats specially."""

    implicit_def_opcodes: FrozenSet[Any] = OP_IMPLICIT_DEF
    constpool_opcodes: FrozenSet[Any] = OP_CONSTPOOL
    sanity_checks: Mapping[Any, Pattern[str]] = field(
        default_factory=lambda: DEFAULT_SANITY_CHECKS
    )

    def is_placeholder(self, instr: InstructionLike) -> bool:
        return _opcode_key(instr.opcode) in self.implicit_def_opcodes

    def is_constpool(self, instr: InstructionLike) -> bool:
        return _opcode_key(instr.opcode) in self.constpool_opcodes

    def sanity_pattern(self, instr: InstructionLike) -> Optional[Pattern[str]]:
        return self.sanity_checks.get(_opcode_key(instr.opcode))


DEFAULT_RULES = AlignmentRules()


# ─────────────────────────────────────────────────────────────────────
#  State
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NoFunction:
    """Outside any function of interest; instruction lines are ignored."""

    def __repr__(self) -> str:
        return "NO_FUNCTION"


NO_FUNCTION = NoFunction()


@dataclass(frozen=True)
class ActiveFunction:
    label: str
    function: FunctionLike = field(compare=False)
    index: int = 0


AlignerState = Union[NoFunction, ActiveFunction]


@dataclass
class AlignmentStats:
    symbols: int = 0
    instructions: int = 0
    warnings: int = 0


# ─────────────────────────────────────────────────────────────────────
#  Transition
# ─────────────────────────────────────────────────────────────────────

def _instruction_at(function: FunctionLike, index: int) -> Optional[InstructionLike]:
    instructions = function.instructions
    if index < len(instructions):
        return instructions[index]
    return None


def step(
    state: AlignerState,
    line: DisassemblyLine,
    functions: FunctionLookup,
    sink: SymbolSink,
    rules: AlignmentRules = DEFAULT_RULES,
    stats: Optional[AlignmentStats] = None,
) -> AlignerState:
    """Consume one disassembly line and return the next state."""
    if isinstance(line, FunctionLabelLine):
        # Symbols are recorded even for functions off the analysed call graph
        sink.add_symbol(line.label, line.address)
        if stats is not None:
            stats.symbols += 1
        function = functions.by_label(line.label, False)
        if function is None:
            _log.debug("Skipping code of unknown function %s", line.label)
            return NO_FUNCTION
        return ActiveFunction(line.label, function, 0)

    if not isinstance(state, ActiveFunction):
        return state

    index = state.index
    instr = _instruction_at(state.function, index)
    while instr is not None and rules.is_placeholder(instr):
        index += 1
        instr = _instruction_at(state.function, index)

    if instr is None:
        if not line.is_data_directive and line.mnemonic != "nop":
            _log.warning(
                "No instruction found at %s+%d instructions (%s)",
                state.label, index, line.mnemonic,
            )
            if stats is not None:
                stats.warnings += 1
        return replace(state, index=index)

    if line.is_data_directive and not rules.is_constpool(instr):
        _log.debug(
            "Skipping data directive %s at 0x%08x in %s",
            line.mnemonic, line.address, state.label,
        )
        return replace(state, index=index)

    sink.add_instruction_address(state.label, index, line.address)
    if stats is not None:
        stats.instructions += 1

    pattern = rules.sanity_pattern(instr)
    if pattern is not None and not pattern.search(line.mnemonic):
        raise AlignmentError(
            f"Address extraction heuristic probably failed at {line.address:x}: "
            f"{line.mnemonic} not {pattern.pattern}",
            address=line.address,
            mnemonic=line.mnemonic,
        )

    return replace(state, index=index + 1)


# ─────────────────────────────────────────────────────────────────────
#  Drivers
# ─────────────────────────────────────────────────────────────────────

def align_disassembly(
    lines: Iterable[str],
    functions: FunctionLookup,
    sink: SymbolSink,
    rules: AlignmentRules = DEFAULT_RULES,
) -> AlignmentStats:
    """Run the alignment pass over the text lines of an objdump listing."""
    stats = AlignmentStats()
    state: AlignerState = NO_FUNCTION
    for line in iter_disassembly(lines):
        state = step(state, line, functions, sink, rules, stats)
    _log.info(
        "Aligned %d instructions in %d symbols (%d warnings)",
        stats.instructions, stats.symbols, stats.warnings,
    )
    return stats


def extract_symbols(
    binary_file: Union[str, os.PathLike],
    functions: FunctionLookup,
    sink: SymbolSink,
    objdump: str = OBJDUMP_COMMAND,
    rules: AlignmentRules = DEFAULT_RULES,
) -> AlignmentStats:
    """
    Disassemble *binary_file* and feed the listing through the alignment pass.

    Raises
    ------
    DisassemblerError
        objdump could not be started or exited with a non-zero status.
    AlignmentError
        The opcode sanity check failed; the child process is killed.
    """
    argv = objdump_argv(binary_file, objdump)
    command = describe_command(argv)
    _log.debug("Running %s", command)
    try:
        proc = subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except OSError as exc:
        raise DisassemblerError(
            f"The objdump command '{command}' could not be started: {exc}",
            command=command,
        ) from exc

    with proc:
        try:
            stats = align_disassembly(proc.stdout, functions, sink, rules)
        except BaseException:
            proc.kill()
            raise
        returncode = proc.wait()

    if returncode != 0:
        raise DisassemblerError(
            f"The objdump command '{command}' exited with status {returncode}",
            command=command,
            returncode=returncode,
        )
    return stats
