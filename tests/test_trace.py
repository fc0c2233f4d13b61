# tests/test_trace.py
"""
Tests for the lazy Wildcat simulator trace reader.
"""

import pytest

from wildcat_wcet.config import AnalysisOptions
from wildcat_wcet.errors import MissingTraceFileError, TraceFormatError
from wildcat_wcet.trace import TraceEvent, WildcatSimulatorTrace

TRACE = """\
1000: system.cpu: 0x80000000: T0 : addi sp, sp, -16
1500 : system.membus : 0x10 : ReadReq
2500: system.cpu.fetch: 4: rest : with : colons
bogus line without fields
3000: system.cpu
3999:system.cpu:0x8000000c
"""


@pytest.fixture
def trace_file(tmp_path):
    path = tmp_path / "sim.trace"
    path.write_text(TRACE, encoding="utf-8")
    return path


def make_trace(trace_file):
    return WildcatSimulatorTrace("prog.elf", AnalysisOptions(binary_file="prog.elf",
                                                             trace_file=trace_file))


class TestTraceReader:

    def test_core_events_only(self, trace_file):
        events = list(make_trace(trace_file))
        assert events == [
            TraceEvent(pc=0x80000000, tick=2, index=0),
            TraceEvent(pc=4, tick=5, index=1),
            TraceEvent(pc=0x8000000C, tick=7, index=2),
        ]

    def test_stats_count_yielded_items(self, trace_file):
        trace = make_trace(trace_file)
        assert trace.stats_num_items == 0
        list(trace.for_each())
        assert trace.stats_num_items == 3

    def test_lazy_iteration(self, trace_file):
        it = iter(make_trace(trace_file))
        first = next(it)
        second = next(it)
        assert (first.index, second.index) == (0, 1)
        it.close()

    def test_tick_uses_integer_division(self, tmp_path):
        path = tmp_path / "t.trace"
        path.write_text("499: system.cpu: 0\n500: system.cpu: 0\n1499: system.cpu: 0\n")
        assert [e.tick for e in make_trace(path)] == [0, 1, 2]

    def test_stats_count_includes_event_in_hand(self, trace_file):
        trace = make_trace(trace_file)
        it = trace.for_each()
        first = next(it)
        assert first.index == 0
        assert trace.stats_num_items == 1
        it.close()
        assert trace.stats_num_items == 1

    def test_each_pass_restarts_numbering(self, trace_file):
        trace = make_trace(trace_file)
        first = [e.index for e in trace]
        second = [e.index for e in trace]
        assert first == second == [0, 1, 2]
        assert trace.stats_num_items == 3

    def test_empty_trace(self, tmp_path):
        path = tmp_path / "empty.trace"
        path.write_text("")
        trace = make_trace(path)
        assert list(trace) == []
        assert trace.stats_num_items == 0


class TestTraceErrors:

    def test_missing_trace_file_option(self):
        trace = WildcatSimulatorTrace("prog.elf", AnalysisOptions(binary_file="prog.elf"))
        with pytest.raises(MissingTraceFileError, match="No RISCV trace file specified"):
            list(trace)

    def test_options_without_trace_attribute(self):
        trace = WildcatSimulatorTrace("prog.elf", object())
        with pytest.raises(MissingTraceFileError):
            next(iter(trace))

    def test_malformed_program_counter(self, tmp_path):
        path = tmp_path / "bad.trace"
        path.write_text("1000: system.cpu: 0x80000000\n2000: system.cpu: pc?\n")
        trace = make_trace(path)
        with pytest.raises(TraceFormatError) as excinfo:
            list(trace)
        assert excinfo.value.line_number == 2
        assert excinfo.value.path == str(path)
        assert trace.stats_num_items == 1

    def test_malformed_timestamp(self, tmp_path):
        path = tmp_path / "bad.trace"
        path.write_text("soon: system.cpu: 0x0\n")
        with pytest.raises(TraceFormatError):
            list(make_trace(path))

    @pytest.mark.parametrize("time,pc", [
        ("1000", "0100"),       # zero-padded decimal pc
        ("1000.5", "0x10"),     # fractional time
        ("1000ps", "0x10"),     # time with a unit suffix
    ])
    def test_numeric_fields_are_strict(self, tmp_path, time, pc):
        path = tmp_path / "strict.trace"
        path.write_text(f"{time}: system.cpu: {pc}\n")
        with pytest.raises(TraceFormatError):
            list(make_trace(path))

    @pytest.mark.parametrize("pc,value", [
        ("0x10", 16), ("0o20", 16), ("0b10000", 16), ("16", 16), ("0", 0),
    ])
    def test_program_counter_literals(self, tmp_path, pc, value):
        path = tmp_path / "pc.trace"
        path.write_text(f"1000: system.cpu: {pc}\n")
        assert [e.pc for e in make_trace(path)] == [value]
