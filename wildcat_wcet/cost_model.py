"""
cost_model.py  –  Worst-case cycle costs for the Wildcat RISC-V core.

Every instruction is priced by a deterministic lookup on its opcode:

  * integer arithmetic / logic / immediates, loads, stores, fences,
    environment calls and CSR accesses take a single cycle (the Wildcat
    hardware simulation executes loads and stores in one cycle; cache
    timing is not modelled);
  * every control transfer pays ``1 + PIPELINE_REFILL`` cycles, since the
    fetched-ahead instructions are thrown away;
  * ``PseudoCALL`` / ``PseudoTAIL`` expand to ``auipc`` + ``jalr`` and pay
    ``2 + PIPELINE_REFILL``.

Calls into the soft multiply/divide/modulo helpers and ``memset`` are not
followed into the callee: the call site receives a flat surcharge taken
from :data:`LIBRARY_ROUTINE_COST`.

Control-flow edges are free; all cost is attributed to instructions.

Reference for the base timings: SiFive FE310-G000 manual, adjusted to the
Wildcat hardware simulation.  The M extension is not implemented on Wildcat.
"""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from .errors import ConfigurationError, UnknownLibraryFunctionError, UnknownOpcodeError
from .program import InstructionLike

PIPELINE_REFILL = 3


# ═══════════════════════════════════════════════════════════════════════
#  Opcodes
# ═══════════════════════════════════════════════════════════════════════

@enum.unique
class Opcode(enum.Enum):
    """The closed set of opcodes the Wildcat decoder produces."""

    # upper immediates
    LUI = "LUI"
    AUIPC = "AUIPC"

    # jumps
    JAL = "JAL"
    J = "J"
    JALR = "JALR"

    # conditional branches
    BEQ = "BEQ"
    BNE = "BNE"
    BLT = "BLT"
    BGE = "BGE"
    BLTU = "BLTU"
    BGEU = "BGEU"

    # loads / stores
    LW = "LW"
    LH = "LH"
    LHU = "LHU"
    LB = "LB"
    LBU = "LBU"
    SB = "SB"
    SH = "SH"
    SW = "SW"

    # register-immediate
    ADDI = "ADDI"
    NOP = "NOP"
    SLTI = "SLTI"
    SLTIU = "SLTIU"
    XORI = "XORI"
    ORI = "ORI"
    ANDI = "ANDI"
    SLLI = "SLLI"
    SRLI = "SRLI"
    SRAI = "SRAI"

    # register-register
    ADD = "ADD"
    SUB = "SUB"
    SLL = "SLL"
    SLT = "SLT"
    SLTU = "SLTU"
    XOR = "XOR"
    SRL = "SRL"
    SRA = "SRA"
    OR = "OR"
    AND = "AND"

    # fences and environment
    FENCE = "FENCE"
    FENCE_TSO = "FENCE_TSO"
    FENCE_I = "FENCE_I"
    ECALL = "ECALL"
    EBREAK = "EBREAK"

    # CSR access
    CSRRW = "CSRRW"
    CSRRS = "CSRRS"
    CSRRC = "CSRRC"
    CSRRWI = "CSRRWI"
    CSRRSI = "CSRRSI"
    CSRRCI = "CSRRCI"

    # pseudo instructions (RISCVInstrInfo.td)
    PseudoBR = "PseudoBR"
    PseudoRET = "PseudoRET"
    PseudoBRIND = "PseudoBRIND"
    PseudoCALLIndirect = "PseudoCALLIndirect"
    PseudoTAILIndirect = "PseudoTAILIndirect"
    PseudoCALL = "PseudoCALL"
    PseudoTAIL = "PseudoTAIL"

    @classmethod
    def lookup(cls, opcode: Any) -> Optional["Opcode"]:
        """Resolve an ``Opcode`` member or its textual tag; ``None`` if unknown."""
        if isinstance(opcode, cls):
            return opcode
        try:
            return cls(opcode)
        except ValueError:
            return None


# Wildcat executes these in a single cycle; FENCE is only used to
# synchronize writes to the instruction memory, CSR accesses are not
# atomic in the hardware simulation.
_SINGLE_CYCLE = (
    Opcode.LUI, Opcode.AUIPC,
    Opcode.LW, Opcode.LH, Opcode.LHU, Opcode.LB, Opcode.LBU,
    Opcode.SB, Opcode.SH, Opcode.SW,
    Opcode.ADDI, Opcode.NOP,
    Opcode.SLTI, Opcode.SLTIU, Opcode.XORI, Opcode.ORI, Opcode.ANDI,
    Opcode.SLLI, Opcode.SRLI, Opcode.SRAI,
    Opcode.ADD, Opcode.SUB, Opcode.SLL, Opcode.SLT, Opcode.SLTU,
    Opcode.XOR, Opcode.SRL, Opcode.SRA, Opcode.OR, Opcode.AND,
    Opcode.FENCE, Opcode.FENCE_TSO, Opcode.FENCE_I, Opcode.ECALL, Opcode.EBREAK,
    Opcode.CSRRW, Opcode.CSRRS, Opcode.CSRRC,
    Opcode.CSRRWI, Opcode.CSRRSI, Opcode.CSRRCI,
)

# Single instruction control transfers, each refilling the pipeline.
# PseudoBR      -> jal x0
# PseudoRET     -> jalr x0, x1, 0
# PseudoBRIND   -> jalr x0, rs1, imm12
# Pseudo*Indirect -> jalr x0, rs1, 0
_CONTROL_TRANSFER = (
    Opcode.JAL, Opcode.J, Opcode.JALR,
    Opcode.BEQ, Opcode.BNE, Opcode.BLT, Opcode.BGE, Opcode.BLTU, Opcode.BGEU,
    Opcode.PseudoBR, Opcode.PseudoRET, Opcode.PseudoBRIND,
    Opcode.PseudoCALLIndirect, Opcode.PseudoTAILIndirect,
)

# auipc + jalr
_TWO_INSTRUCTION_TRANSFER = (Opcode.PseudoCALL, Opcode.PseudoTAIL)


def _build_opcode_cost() -> Mapping[Opcode, int]:
    table = {}
    for group, cost in (
        (_SINGLE_CYCLE, 1),
        (_CONTROL_TRANSFER, 1 + PIPELINE_REFILL),
        (_TWO_INSTRUCTION_TRANSFER, 1 + 1 + PIPELINE_REFILL),
    ):
        for op in group:
            if op in table:
                raise ConfigurationError(f"Opcode {op.value} priced twice")
            table[op] = cost
    missing = [op.value for op in Opcode if op not in table]
    if missing:
        raise ConfigurationError(
            f"No cycle cost for opcode(s): {', '.join(missing)}"
        )
    return MappingProxyType(table)


#: Total map ``Opcode -> cycles``; checked for totality at import time.
OPCODE_COST: Mapping[Opcode, int] = _build_opcode_cost()


# ═══════════════════════════════════════════════════════════════════════
#  Runtime library routines
# ═══════════════════════════════════════════════════════════════════════

@enum.unique
class LibraryRoutine(enum.Enum):
    """Runtime support routines priced as a flat surcharge at the call site."""

    MULSI3 = "__mulsi3"
    DIVSI3 = "__divsi3"
    UDIVSI3 = "__udivsi3"
    UMODSI3 = "__umodsi3"
    MODSI3 = "__modsi3"
    MEMSET = "memset"

    @classmethod
    def lookup(cls, name: Any) -> Optional["LibraryRoutine"]:
        if isinstance(name, cls):
            return name
        if not isinstance(name, str) or not name:
            return None
        try:
            return cls(name)
        except ValueError:
            return None


# Two cycles per instruction of the routine body.
# TODO: replace with measured worst cases once the routines are analysed
# on the Wildcat simulator.
LIBRARY_ROUTINE_COST: Mapping[LibraryRoutine, int] = MappingProxyType({
    LibraryRoutine.MULSI3: 34,     # 17 instructions
    LibraryRoutine.DIVSI3: 50,     # 25 instructions
    LibraryRoutine.UDIVSI3: 238,   # 119 instructions
    LibraryRoutine.UMODSI3: 246,   # 123 instructions
    LibraryRoutine.MODSI3: 48,     # 24 instructions
    LibraryRoutine.MEMSET: 26,     # 13 instructions
})


# ═══════════════════════════════════════════════════════════════════════
#  Pricing
# ═══════════════════════════════════════════════════════════════════════

def opcode_cost(opcode: Any) -> int:
    """Cycles for a bare opcode (member or tag)."""
    op = Opcode.lookup(opcode)
    if op is None:
        raise UnknownOpcodeError(opcode)
    return OPCODE_COST[op]


def cycle_cost(instr: InstructionLike) -> int:
    """Worst-case cycles of *instr* itself, excluding any callee."""
    return opcode_cost(instr.opcode)


def is_library_function(func: Any) -> bool:
    return LibraryRoutine.lookup(func) is not None


def lib_cycle_cost(func: Any) -> int:
    routine = LibraryRoutine.lookup(func)
    cost = LIBRARY_ROUTINE_COST.get(routine) if routine is not None else None
    if cost is None:
        raise UnknownLibraryFunctionError(func)
    return cost


def library_callee(instr: InstructionLike) -> Optional[Any]:
    """The first callee of *instr* if it is a library routine, else ``None``.

    Only the first callee is considered.
    """
    callees = instr.callees
    if not callees:
        return None
    first = callees[0]
    return first if is_library_function(first) else None


def instruction_wcet(instr: InstructionLike) -> int:
    """``cycle_cost`` plus the library surcharge of a direct library call."""
    cycles = cycle_cost(instr)
    callee = library_callee(instr)
    if callee is not None:
        cycles += lib_cycle_cost(callee)
    return cycles


def path_wcet(ilist: Iterable[InstructionLike]) -> int:
    """Worst-case cycles of executing the instructions of *ilist* in order."""
    total = 0
    for instr in ilist:
        total += instruction_wcet(instr)
    return total


def edge_wcet(_ilist: Any = None, _branch_index: Any = None, _edge: Any = None) -> int:
    # control flow is for free
    return 0
