"""
program.py  –  The slice of the program representation this package touches.

The machine-function / instruction graph is owned by the enclosing toolchain.
This module only fixes the narrow structural interface the aligner and the
cost model consume (``typing.Protocol``, so callers need not subclass), and
ships small in-memory implementations used when no full program
representation is around, e.g. in tests or quick scripts.

Protocols
---------
InstructionLike   ``opcode``, ``callees``, mutable ``address``
FunctionLike      ``label`` and an index-addressable ``instructions``
FunctionLookup    ``by_label(label, create_if_missing)``
SymbolSink        ``add_symbol`` / ``add_instruction_address`` callbacks
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

_log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
#  Protocols
# ─────────────────────────────────────────────────────────────────────

@runtime_checkable
class InstructionLike(Protocol):
    """A decoded machine instruction."""

    opcode: Any
    callees: Optional[Sequence[Any]]
    address: Optional[int]


@runtime_checkable
class FunctionLike(Protocol):
    """A machine function: a label plus its ordered instructions."""

    label: str

    @property
    def instructions(self) -> Sequence[InstructionLike]: ...


@runtime_checkable
class FunctionLookup(Protocol):
    def by_label(
        self, label: str, create_if_missing: bool = False
    ) -> Optional[FunctionLike]: ...


@runtime_checkable
class SymbolSink(Protocol):
    """Receives the addresses recovered from the disassembly."""

    def add_symbol(self, label: str, address: int) -> None: ...

    def add_instruction_address(self, label: str, index: int, address: int) -> None: ...


# ─────────────────────────────────────────────────────────────────────
#  In-memory implementations
# ─────────────────────────────────────────────────────────────────────

@dataclass
class MachineInstruction:
    opcode: Any
    callees: List[Any] = field(default_factory=list)
    address: Optional[int] = None

    def __repr__(self) -> str:
        addr = f"@0x{self.address:08x}" if self.address is not None else ""
        calls = f" -> {', '.join(map(str, self.callees))}" if self.callees else ""
        opcode = getattr(self.opcode, "value", self.opcode)
        return f"<{opcode}{addr}{calls}>"


@dataclass
class MachineFunction:
    label: str
    instructions: List[MachineInstruction] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[MachineInstruction]:
        return iter(self.instructions)

    def __str__(self) -> str:
        return self.label


class MachineFunctionList:
    """
    Label-indexed collection of :class:`MachineFunction` objects.

    ``by_label(label, create_if_missing=True)`` creates an empty function
    for labels not seen before, mirroring the lookup of the toolchain's
    own function table.
    """

    def __init__(self, functions: Iterable[MachineFunction] = ()) -> None:
        self._by_label: Dict[str, MachineFunction] = {}
        for fn in functions:
            self.add(fn)

    def add(self, function: MachineFunction) -> MachineFunction:
        if function.label in self._by_label:
            raise ValueError(f"Duplicate function label: {function.label}")
        self._by_label[function.label] = function
        return function

    def by_label(
        self, label: str, create_if_missing: bool = False
    ) -> Optional[MachineFunction]:
        fn = self._by_label.get(label)
        if fn is None and create_if_missing:
            fn = self.add(MachineFunction(label))
        return fn

    def __contains__(self, label: object) -> bool:
        return label in self._by_label

    def __iter__(self) -> Iterator[MachineFunction]:
        return iter(self._by_label.values())

    def __len__(self) -> int:
        return len(self._by_label)


class SymbolExtractor:
    """
    Collects the symbol and instruction addresses reported by the aligner.

    The collected instruction addresses can be written back into the
    program representation with :meth:`apply`.
    """

    def __init__(self) -> None:
        self.symbols: Dict[str, int] = {}
        self.instruction_addresses: Dict[Tuple[str, int], int] = {}

    def add_symbol(self, label: str, address: int) -> None:
        self.symbols[label] = address

    def add_instruction_address(self, label: str, index: int, address: int) -> None:
        self.instruction_addresses[(label, index)] = address

    def address_of(self, label: str, index: Optional[int] = None) -> Optional[int]:
        if index is None:
            return self.symbols.get(label)
        return self.instruction_addresses.get((label, index))

    def apply(self, functions: FunctionLookup) -> int:
        """Store the collected addresses on the instructions; return the count."""
        updated = 0
        for (label, index), address in self.instruction_addresses.items():
            fn = functions.by_label(label, False)
            if fn is None or index >= len(fn.instructions):
                _log.debug("Dropping address 0x%08x for %s+%d", address, label, index)
                continue
            fn.instructions[index].address = address
            updated += 1
        return updated
