# wildcat_wcet/errors.py
"""
Error Types for the Wildcat WCET Support Package

Every failure in this package is either *fatal* (the whole extraction or
pricing run is aborted by raising one of the exceptions below) or a
*warning* (logged through :mod:`logging`, processing continues).  There is no
partial-result policy: a single missed alignment desynchronizes every later
instruction index of the function, and a mispriced opcode silently corrupts
the WCET bound.

Error Hierarchy:
────────────────
┌─────────────────────────────────────────────────────────────────────────┐
│  WcetError (base)                                                       │
│  ├── DisassemblerError          - objdump failed or could not start     │
│  ├── AlignmentError             - opcode sanity check mismatch          │
│  ├── ConfigurationError         - static tables / registry problems     │
│  │   ├── UnknownOpcodeError                                             │
│  │   └── UnknownLibraryFunctionError                                    │
│  └── TraceError                                                         │
│      ├── MissingTraceFileError                                          │
│      └── TraceFormatError                                               │
└─────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Codes follow the pattern WCET-NNNN:
  - 1000-1999: Disassembly / alignment errors
  - 2000-2999: Configuration errors (cost tables, architecture registry)
  - 3000-3999: Simulator trace errors
"""

from __future__ import annotations

from enum import Enum, auto, unique
from typing import Any, Optional


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels; only two exist for this package."""

    # Aborts the whole run
    FATAL = "fatal"

    # Logged, processing continues
    WARNING = "warning"

    def is_fatal(self) -> bool:
        return self is ErrorSeverity.FATAL


@unique
class ErrorCategory(Enum):
    """Fine-grained error categories for filtering and statistics."""

    DISASSEMBLER_FAILURE = auto()
    ALIGNMENT_FAILURE = auto()
    MISSING_INSTRUCTION = auto()

    UNKNOWN_OPCODE = auto()
    UNKNOWN_LIBRARY_FUNCTION = auto()
    INVALID_CONFIGURATION = auto()

    MISSING_TRACE_FILE = auto()
    MALFORMED_TRACE = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form ``WCET-NNNN``.
    """

    __slots__ = ("prefix", "number", "category", "default_severity")

    def __init__(
        self,
        prefix: str,
        number: int,
        category: ErrorCategory,
        default_severity: ErrorSeverity = ErrorSeverity.FATAL,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.category = category
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.category.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class WcetErrorCodes:
    """Predefined error codes."""

    # ─── Disassembly / alignment (1000-1999) ────────────────────────────────
    DISASSEMBLER_FAILED = ErrorCode(
        "WCET", 1001, ErrorCategory.DISASSEMBLER_FAILURE
    )
    ALIGNMENT_FAILED = ErrorCode(
        "WCET", 1002, ErrorCategory.ALIGNMENT_FAILURE
    )
    INSTRUCTION_NOT_FOUND = ErrorCode(
        "WCET", 1003, ErrorCategory.MISSING_INSTRUCTION, ErrorSeverity.WARNING
    )

    # ─── Configuration (2000-2999) ───────────────────────────────────────────
    UNKNOWN_OPCODE = ErrorCode(
        "WCET", 2001, ErrorCategory.UNKNOWN_OPCODE
    )
    UNKNOWN_LIBRARY_FUNCTION = ErrorCode(
        "WCET", 2002, ErrorCategory.UNKNOWN_LIBRARY_FUNCTION
    )
    INVALID_CONFIGURATION = ErrorCode(
        "WCET", 2003, ErrorCategory.INVALID_CONFIGURATION
    )

    # ─── Simulator trace (3000-3999) ─────────────────────────────────────────
    MISSING_TRACE_FILE = ErrorCode(
        "WCET", 3001, ErrorCategory.MISSING_TRACE_FILE
    )
    MALFORMED_TRACE_LINE = ErrorCode(
        "WCET", 3002, ErrorCategory.MALFORMED_TRACE
    )


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION HIERARCHY
# ═══════════════════════════════════════════════════════════════════════════════

class WcetError(Exception):
    """
    Base exception for all fatal errors raised by this package.

    Attributes:
        code: The :class:`ErrorCode` identifying the failure
        message: Human readable description
        hint: Optional suggestion for fixing the problem
    """

    default_code: ErrorCode = WcetErrorCodes.INVALID_CONFIGURATION

    def __init__(
        self,
        message: str,
        *,
        code: Optional[ErrorCode] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self._code = code or self.default_code
        self.hint = hint

    @property
    def code(self) -> ErrorCode:
        return self._code

    @property
    def severity(self) -> ErrorSeverity:
        return self._code.default_severity

    def to_dict(self) -> dict[str, Any]:
        """Serializable form, e.g. for a JSON report of the enclosing tool."""
        result: dict[str, Any] = {
            "code": self._code.code,
            "category": self._code.category.name,
            "severity": self.severity.value,
            "message": self.message,
        }
        if self.hint:
            result["hint"] = self.hint
        return result

    def __str__(self) -> str:
        text = f"[{self._code.code}] {self.message}"
        if self.hint:
            text += f" (hint: {self.hint})"
        return text


class DisassemblerError(WcetError):
    """The external disassembler could not be run or exited unsuccessfully."""

    default_code = WcetErrorCodes.DISASSEMBLER_FAILED

    def __init__(
        self,
        message: str,
        *,
        command: str = "",
        returncode: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.command = command
        self.returncode = returncode


class AlignmentError(WcetError):
    """
    The address extraction heuristic went out of sync.

    Raised when a matched disassembly line fails the opcode sanity check.
    """

    default_code = WcetErrorCodes.ALIGNMENT_FAILED

    def __init__(
        self,
        message: str,
        *,
        address: Optional[int] = None,
        mnemonic: str = "",
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.address = address
        self.mnemonic = mnemonic


class ConfigurationError(WcetError):
    """A static table or registry is inconsistent with its input."""

    default_code = WcetErrorCodes.INVALID_CONFIGURATION


class UnknownOpcodeError(ConfigurationError):
    default_code = WcetErrorCodes.UNKNOWN_OPCODE

    def __init__(self, opcode: Any) -> None:
        super().__init__(f"Unknown opcode: {opcode}")
        self.opcode = opcode


class UnknownLibraryFunctionError(ConfigurationError):
    default_code = WcetErrorCodes.UNKNOWN_LIBRARY_FUNCTION

    def __init__(self, function: Any) -> None:
        super().__init__(f"Unknown library function: {function}")
        self.function = function


class TraceError(WcetError):
    """Base class for simulator trace failures."""

    default_code = WcetErrorCodes.MALFORMED_TRACE_LINE


class MissingTraceFileError(TraceError):
    default_code = WcetErrorCodes.MISSING_TRACE_FILE


class TraceFormatError(TraceError):
    default_code = WcetErrorCodes.MALFORMED_TRACE_LINE

    def __init__(self, message: str, *, path: str = "", line_number: int = 0) -> None:
        super().__init__(f"{path}:{line_number}: {message}" if path else message)
        self.path = path
        self.line_number = line_number
