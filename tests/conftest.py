# tests/conftest.py
"""Shared fixtures: tiny program representations and objdump listings."""

import textwrap
from unittest.mock import MagicMock

import pytest

from wildcat_wcet.program import (
    MachineFunction,
    MachineFunctionList,
    MachineInstruction,
    SymbolSink,
)


def make_function(label, *opcodes):
    """A MachineFunction with one instruction per opcode."""
    return MachineFunction(label, [MachineInstruction(op) for op in opcodes])


def listing(text):
    """Split a dedented objdump listing into lines (with newlines kept)."""
    return textwrap.dedent(text).lstrip("\n").splitlines(keepends=True)


@pytest.fixture
def sink():
    """Records add_symbol / add_instruction_address calls in order."""
    return MagicMock(spec=SymbolSink)


@pytest.fixture
def functions():
    return MachineFunctionList([
        make_function("main", "ADDI", "SW", "LW", "PseudoRET"),
        make_function("foo", "ADDI"),
    ])


@pytest.fixture
def objdump_listing():
    return listing("""
        prog.elf:     file format elf32-littleriscv


        Disassembly of section .text:

        00010074 <main>:
           10074:	addi	sp,sp,-16
           10078:	sw	ra,12(sp)
           1007c:	lw	ra,12(sp)
           10080:	ret

        00010084 <memcpy>:
           10084:	mv	a5,a0
           10088:	ret

        0001008c <foo>:
           1008c:	li	a0,0
           10090:	nop
    """)
