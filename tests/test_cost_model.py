# tests/test_cost_model.py
"""
Tests for the Wildcat cycle cost model: per-opcode costs, library routine
surcharges, path accumulation and free control-flow edges.
"""

import pytest

from wildcat_wcet import cost_model
from wildcat_wcet.cost_model import (
    LIBRARY_ROUTINE_COST,
    OPCODE_COST,
    PIPELINE_REFILL,
    LibraryRoutine,
    Opcode,
    cycle_cost,
    edge_wcet,
    instruction_wcet,
    is_library_function,
    lib_cycle_cost,
    path_wcet,
)
from wildcat_wcet.errors import (
    ConfigurationError,
    ErrorSeverity,
    UnknownLibraryFunctionError,
    UnknownOpcodeError,
    WcetError,
)
from wildcat_wcet.program import MachineInstruction


def ins(opcode, *callees):
    return MachineInstruction(opcode, list(callees))


SINGLE_CYCLE = [
    "LUI", "AUIPC",
    "LW", "LH", "LHU", "LB", "LBU", "SB", "SH", "SW",
    "ADDI", "NOP", "SLTI", "SLTIU", "XORI", "ORI", "ANDI",
    "SLLI", "SRLI", "SRAI",
    "ADD", "SUB", "SLL", "SLT", "SLTU", "XOR", "SRL", "SRA", "OR", "AND",
    "FENCE", "FENCE_TSO", "FENCE_I", "ECALL", "EBREAK",
    "CSRRW", "CSRRS", "CSRRC", "CSRRWI", "CSRRSI", "CSRRCI",
]

CONTROL_TRANSFER = [
    "JAL", "J", "JALR",
    "BEQ", "BNE", "BLT", "BGE", "BLTU", "BGEU",
    "PseudoBR", "PseudoRET", "PseudoBRIND",
    "PseudoCALLIndirect", "PseudoTAILIndirect",
]

TWO_INSTRUCTION_TRANSFER = ["PseudoCALL", "PseudoTAIL"]

LIBRARY_COSTS = {
    "__mulsi3": 34,
    "__divsi3": 50,
    "__udivsi3": 238,
    "__umodsi3": 246,
    "__modsi3": 48,
    "memset": 26,
}


class TestOpcodeCost:
    """cycle_cost returns the documented constant for every opcode."""

    @pytest.mark.parametrize("opcode", SINGLE_CYCLE)
    def test_single_cycle(self, opcode):
        assert cycle_cost(ins(opcode)) == 1

    @pytest.mark.parametrize("opcode", CONTROL_TRANSFER)
    def test_control_transfer_refills_pipeline(self, opcode):
        assert cycle_cost(ins(opcode)) == 1 + PIPELINE_REFILL == 4

    @pytest.mark.parametrize("opcode", TWO_INSTRUCTION_TRANSFER)
    def test_call_expansion(self, opcode):
        assert cycle_cost(ins(opcode)) == 2 + PIPELINE_REFILL == 5

    def test_enum_members_accepted(self):
        assert cycle_cost(ins(Opcode.JALR)) == 4
        assert cycle_cost(ins(Opcode.SW)) == 1

    def test_table_is_total(self):
        assert set(OPCODE_COST) == set(Opcode)
        documented = SINGLE_CYCLE + CONTROL_TRANSFER + TWO_INSTRUCTION_TRANSFER
        assert sorted(op.value for op in Opcode) == sorted(documented)

    def test_costs_are_positive(self):
        assert all(cost > 0 for cost in OPCODE_COST.values())

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            OPCODE_COST[Opcode.ADD] = 7


class TestUnknownOpcode:
    """Opcodes outside the closed set are fatal, never defaulted."""

    @pytest.mark.parametrize("opcode", ["MUL", "DIVU", "IMPLICIT_DEF", "addi", "", 8, None])
    def test_unknown_opcode_raises(self, opcode):
        with pytest.raises(UnknownOpcodeError) as excinfo:
            cycle_cost(ins(opcode))
        assert excinfo.value.opcode == opcode

    def test_unknown_opcode_is_fatal_configuration_error(self):
        with pytest.raises(ConfigurationError) as excinfo:
            cycle_cost(ins("REM"))
        err = excinfo.value
        assert isinstance(err, WcetError)
        assert err.severity is ErrorSeverity.FATAL
        assert "Unknown opcode: REM" in str(err)
        assert err.code == "WCET-2001"

    def test_path_with_unknown_opcode_fails(self):
        with pytest.raises(UnknownOpcodeError):
            path_wcet([ins("ADDI"), ins("MULHU"), ins("ADDI")])


class TestLibraryFunctions:

    @pytest.mark.parametrize("name", sorted(LIBRARY_COSTS))
    def test_recognized(self, name):
        assert is_library_function(name)

    @pytest.mark.parametrize("name", [
        None, "", "printf", "memcpy", "__mulsi3 ", "MULSI3", "__muldi3", 34,
    ])
    def test_not_recognized(self, name):
        assert not is_library_function(name)

    def test_enum_member_recognized(self):
        assert is_library_function(LibraryRoutine.MEMSET)

    @pytest.mark.parametrize("name,cost", sorted(LIBRARY_COSTS.items()))
    def test_lib_cycle_cost(self, name, cost):
        assert lib_cycle_cost(name) == cost

    def test_table_covers_every_routine(self):
        assert set(LIBRARY_ROUTINE_COST) == set(LibraryRoutine)

    def test_lib_cycle_cost_unknown_routine(self):
        with pytest.raises(UnknownLibraryFunctionError) as excinfo:
            lib_cycle_cost("memcpy")
        assert "Unknown library function: memcpy" in str(excinfo.value)

    def test_lib_cycle_cost_missing_table_entry(self, monkeypatch):
        partial = {r: c for r, c in LIBRARY_ROUTINE_COST.items() if r is not LibraryRoutine.MEMSET}
        monkeypatch.setattr(cost_model, "LIBRARY_ROUTINE_COST", partial)
        assert is_library_function("memset")
        with pytest.raises(UnknownLibraryFunctionError):
            lib_cycle_cost("memset")


class TestPathWcet:

    def test_empty_path(self):
        assert path_wcet([]) == 0

    def test_plain_instructions(self):
        path = [ins("ADDI"), ins("LW"), ins("BEQ"), ins("PseudoCALL"), ins("PseudoRET")]
        assert path_wcet(path) == 1 + 1 + 4 + 5 + 4

    def test_library_call_surcharge(self):
        assert path_wcet([ins("PseudoCALL", "__udivsi3")]) == 5 + 238

    def test_non_library_callee_adds_nothing(self):
        assert path_wcet([ins("PseudoCALL", "helper")]) == 5

    def test_only_first_callee_considered(self):
        assert path_wcet([ins("PseudoCALL", "helper", "__mulsi3")]) == 5
        assert path_wcet([ins("PseudoCALL", "__mulsi3", "__divsi3")]) == 5 + 34

    def test_none_callees(self):
        instr = MachineInstruction("JALR", None)
        assert path_wcet([instr]) == 4

    def test_sum_property(self):
        path = [
            ins("LUI"), ins("ADDI"),
            ins("PseudoCALL", "__mulsi3"),
            ins("SW"),
            ins("PseudoCALLIndirect", "fnptr"),
            ins("PseudoTAIL", "memset"),
            ins("BNE"),
        ]
        expected = sum(cycle_cost(i) for i in path) + sum(
            lib_cycle_cost(i.callees[0])
            for i in path
            if i.callees and is_library_function(i.callees[0])
        )
        assert path_wcet(path) == expected == 1 + 1 + (5 + 34) + 1 + 4 + (5 + 26) + 4

    def test_instruction_wcet_matches_single_element_path(self):
        instr = ins("PseudoCALL", "__modsi3")
        assert instruction_wcet(instr) == path_wcet([instr]) == 53

    def test_accepts_generators(self):
        assert path_wcet(ins("NOP") for _ in range(1000)) == 1000

    def test_large_paths_do_not_overflow(self):
        path = [ins("PseudoCALL", "__umodsi3")] * 100_000
        assert path_wcet(path) == 100_000 * (5 + 246)


class TestEdgeWcet:

    @pytest.mark.parametrize("args", [
        (),
        ([], 0, None),
        ([ins("BEQ")], 0, "taken"),
        ([ins("PseudoCALL", "__mulsi3")], 5, object()),
    ])
    def test_edges_are_free(self, args):
        assert edge_wcet(*args) == 0
