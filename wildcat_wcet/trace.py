"""
trace.py  –  Lazy reader for the Wildcat simulator trace.

The simulator writes one event per line::

    <time> : <event> : <pc> [: <rest>]

Only events originating from the core (``system.cpu`` in the event field)
are of interest.  Times are converted into ticks of ``TIME_PER_TICK``
simulator time units.  Each yielded :class:`TraceEvent` carries the number
of events yielded before it, so the stream can be matched against priced
paths position by position.  Every pass over the file numbers its events
from zero, and ``stats_num_items`` counts the events handed out so far.

Numeric fields are parsed strictly.  The time must be a plain decimal
integer.  The pc is read with Python's integer literal rules: ``0x``,
``0o`` and ``0b`` prefixes are honoured and plain decimals are accepted,
but a zero-padded decimal such as ``0100`` is not read as octal.  A core
event whose time or pc does not follow these rules raises
:class:`~wildcat_wcet.errors.TraceFormatError`; nothing is truncated or
guessed.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Iterator, NamedTuple, Optional, Union

from .errors import MissingTraceFileError, TraceFormatError

_log = logging.getLogger(__name__)

_FIELD_SEPARATOR = re.compile(r"\s*:\s*")


class TraceEvent(NamedTuple):
    pc: int
    tick: int
    index: int


class WildcatSimulatorTrace:
    """
    Iterable over the core events of a simulator trace file.

    The trace file is taken from ``options.trace_file``; it is opened only
    when iteration starts and closed when the iteration ends or the
    generator is discarded.
    """

    TIME_PER_TICK = 500
    CORE_EVENT = "system.cpu"

    def __init__(self, binary_file: Optional[Union[str, os.PathLike]], options: Any) -> None:
        self.binary_file = binary_file
        self.options = options
        self.stats_num_items = 0

    @property
    def trace_file(self) -> Optional[Union[str, os.PathLike]]:
        return getattr(self.options, "trace_file", None)

    def for_each(self) -> Iterator[TraceEvent]:
        path = self.trace_file
        if not path:
            raise MissingTraceFileError("No RISCV trace file specified")
        self.stats_num_items = 0
        with open(path, encoding="utf-8", errors="replace") as fh:
            for line_number, line in enumerate(fh, start=1):
                event = self._parse(line, path, line_number)
                if event is None:
                    continue
                self.stats_num_items += 1
                yield event
        _log.info("Read %d core events from %s", self.stats_num_items, path)

    def __iter__(self) -> Iterator[TraceEvent]:
        return self.for_each()

    def _parse(self, line: str, path: Any, line_number: int) -> Optional[TraceEvent]:
        fields = _FIELD_SEPARATOR.split(line.strip(), maxsplit=3)
        if len(fields) < 3:
            return None
        time, event, pc = fields[0], fields[1], fields[2]
        if self.CORE_EVENT not in event:
            return None
        try:
            return TraceEvent(
                pc=int(pc, 0),
                tick=int(time) // self.TIME_PER_TICK,
                index=self.stats_num_items,
            )
        except ValueError as exc:
            raise TraceFormatError(
                f"malformed trace line {line.strip()!r}: {exc}",
                path=os.fspath(path),
                line_number=line_number,
            ) from exc
