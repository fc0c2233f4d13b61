"""
objdump.py  –  Reading GNU objdump output for the Wildcat core.

Only two kinds of lines of ``objdump -d --no-show-raw-insn`` matter for
address extraction::

    00010074 <main>:                       function label
       10074:	addi	sp,sp,-16            instruction

Everything else (file header, section banners, blank lines, ``...``
elisions) is ignored.  The line shapes are described by a small
Parsimonious PEG grammar; :func:`parse_line` turns one text line into a
:class:`FunctionLabelLine`, an :class:`InstructionLine` or ``None``.

A function label needs exactly eight hex digits, a single whitespace
character and ``<label>:``.  Wider addresses are *not* function boundaries.
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Union

from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

#: Default disassembler for the Wildcat toolchain.
OBJDUMP_COMMAND = "riscv64-unknown-elf-objdump"

#: Flags passed to objdump: disassemble, mnemonics only.
OBJDUMP_FLAGS = ("-d", "--no-show-raw-insn")


# ═══════════════════════════════════════════════════════════════════
#  Line types
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FunctionLabelLine:
    address: int
    label: str


@dataclass(frozen=True)
class InstructionLine:
    address: int
    mnemonic: str

    @property
    def is_data_directive(self) -> bool:
        """``.word``, ``.short``, ... (data the disassembler could not decode)."""
        return self.mnemonic.startswith(".")


DisassemblyLine = Union[FunctionLabelLine, InstructionLine]


# ═══════════════════════════════════════════════════════════════════
#  Grammar (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

OBJDUMP_LINE_GRAMMAR = Grammar(r'''
    line                = function_label / instruction / other

    function_label      = label_address label_gap "<" label ">:" rest
    instruction         = indent address ":" indent mnemonic rest
    other               = ~r".*"s

    label_address       = ~r"[0-9A-Fa-f]{8}"
    label_gap           = ~r"\s"
    label               = ~r"[^>]+"
    address             = ~r"[0-9A-Fa-f]+"
    mnemonic            = ~r"\S+"
    indent              = ~r"\s*"
    rest                = ~r".*"s
''')


class ObjdumpLineVisitor(NodeVisitor):
    """Transforms the parse tree of one line into a :data:`DisassemblyLine`."""

    grammar = OBJDUMP_LINE_GRAMMAR

    def generic_visit(self, node: Node, visited_children: list) -> object:
        return visited_children or node

    def visit_line(self, node: Node, visited_children: list) -> Optional[DisassemblyLine]:
        return visited_children[0]

    def visit_function_label(self, node: Node, visited_children: list) -> FunctionLabelLine:
        address, _, _, label, _, _ = visited_children
        return FunctionLabelLine(address=address, label=label)

    def visit_instruction(self, node: Node, visited_children: list) -> InstructionLine:
        _, address, _, _, mnemonic, _ = visited_children
        return InstructionLine(address=address, mnemonic=mnemonic)

    def visit_other(self, node: Node, visited_children: list) -> None:
        return None

    def visit_label_address(self, node: Node, visited_children: list) -> int:
        return int(node.text, 16)

    def visit_address(self, node: Node, visited_children: list) -> int:
        return int(node.text, 16)

    def visit_label(self, node: Node, visited_children: list) -> str:
        return node.text

    def visit_mnemonic(self, node: Node, visited_children: list) -> str:
        return node.text


_VISITOR = ObjdumpLineVisitor()


def parse_line(text: str) -> Optional[DisassemblyLine]:
    """Classify one line of objdump output; ``None`` for irrelevant lines."""
    return _VISITOR.parse(text.rstrip("\r\n"))


def iter_disassembly(lines: Iterable[str]) -> Iterator[DisassemblyLine]:
    """Yield the function-label and instruction lines of *lines*, in order."""
    for text in lines:
        parsed = parse_line(text)
        if parsed is not None:
            yield parsed


# ═══════════════════════════════════════════════════════════════════
#  Command construction
# ═══════════════════════════════════════════════════════════════════

def objdump_argv(binary_file: Union[str, os.PathLike], objdump: str = OBJDUMP_COMMAND) -> List[str]:
    """
    Argument vector disassembling *binary_file*.

    *objdump* may carry extra options (``"llvm-objdump --mattr=+c"``) and is
    split shell-style; the binary path is passed as a single argument and is
    never seen by a shell.
    """
    return [*shlex.split(objdump), *OBJDUMP_FLAGS, os.fspath(binary_file)]


def describe_command(argv: List[str]) -> str:
    """Shell-quoted rendering of *argv* for diagnostics."""
    return shlex.join(argv)
