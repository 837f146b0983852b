"""Tests for PMU file, acquisition time and volume count parsing."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from pnmclean.errors import MissingResourceError, ParseError
from pnmclean.physio.config import TraceFormat
from pnmclean.physio.parsing import (
    decode_samples,
    parse_acquisition_time,
    parse_trace,
    read_acquisition_time,
    read_trace,
    read_volume_count,
)

HEADER = "1 2 40 280 1 0 0"
FOOTER = [
    "ECG  Freq Per: 0 0",
    "PULS Freq Per: 72 823",
    "RESP Freq Per: 16 3608",
    "LogStartMDHTime:  36632877",
    "LogStopMDHTime:   36645877",
    "LogStartMPCUTime: 36632810",
    "LogStopMPCUTime:  36645870",
]


def _pmu_text(samples: str) -> str:
    return "\n".join([f"{HEADER} {samples}"] + FOOTER) + "\n"


def test_sentinels_and_comment_span_removed():
    text = _pmu_text("100 5002 Logging PULSE signal 6002 110 5000 120 6000 130 5003")
    trace = parse_trace(text, sampling_rate=400, channel="puls")
    assert np.array_equal(trace.samples, [100, 110, 120, 130])
    assert trace.start_ms == 36632877
    assert trace.stop_ms == 36645877
    assert trace.channel == "puls"
    assert len(trace) == 4


def test_multiple_pause_spans_removed():
    values = decode_samples(f"{HEADER} 1 5002 x 6002 2 5002 y z 6002 3")
    assert np.array_equal(values, [1, 2, 3])


def test_end_code_before_begin_code_is_kept():
    values = decode_samples(f"{HEADER} 1 6002 2 5002 3")
    assert np.array_equal(values, [1, 6002, 2, 5002, 3])


def test_stray_end_code_then_span():
    values = decode_samples(f"{HEADER} 1 6002 2 5002 3 6002 4")
    assert np.array_equal(values, [1, 6002, 2, 4])


def test_short_line_keeps_all_tokens():
    values = decode_samples("10 20 30")
    assert np.array_equal(values, [10, 20, 30])


def test_non_numeric_token_outside_span():
    with pytest.raises(ParseError, match="non-numeric"):
        parse_trace(_pmu_text("100 oops 110"), sampling_rate=400, channel="resp")


def test_missing_timestamp_line():
    text = f"{HEADER} 100 110\nLogStartMDHTime: 10\n"
    with pytest.raises(ParseError, match="LogStopMDHTime"):
        parse_trace(text, sampling_rate=400)


def test_timestamp_without_digits():
    text = f"{HEADER} 100\nLogStartMDHTime: n/a\nLogStopMDHTime: 20\n"
    with pytest.raises(ParseError, match="digits"):
        parse_trace(text, sampling_rate=400)


def test_fixed_timestamp_lines():
    lines = [f"{HEADER} 5 6 7"] + ["filler"] * 11 + ["start 1000", "stop 2000"]
    fmt = TraceFormat(start_line=12, stop_line=13)
    trace = parse_trace("\n".join(lines), sampling_rate=50, fmt=fmt)
    assert trace.start_ms == 1000
    assert trace.stop_ms == 2000
    assert np.array_equal(trace.samples, [5, 6, 7])

    with pytest.raises(ParseError):
        parse_trace("\n".join(lines[:13]), sampling_rate=50, fmt=fmt)


def test_empty_file():
    with pytest.raises(ParseError):
        parse_trace("", sampling_rate=400)


def test_read_trace_from_disk(tmp_path: Path):
    path = tmp_path / "run.resp"
    path.write_text(_pmu_text("1 2 3 5003"))
    trace = read_trace(path, sampling_rate=50)
    assert trace.channel == "resp"
    assert np.array_equal(trace.samples, [1, 2, 3])


def test_read_trace_missing_file(tmp_path: Path):
    with pytest.raises(MissingResourceError):
        read_trace(tmp_path / "absent.puls", sampling_rate=400)


@pytest.mark.parametrize("value", ["134512.125", "13:45:12.125000", "134512.125000"])
def test_parse_acquisition_time(value):
    expected = (13 * 3600 + 45 * 60 + 12.125) * 1000
    assert np.isclose(parse_acquisition_time(value), expected)


def test_parse_acquisition_time_without_fraction():
    assert parse_acquisition_time("000001") == 1000.0


@pytest.mark.parametrize("value", ["1345", "ab4512.1", "25:00:00", "", "13-45-12"])
def test_parse_acquisition_time_malformed(value):
    with pytest.raises(ParseError):
        parse_acquisition_time(value)


def test_read_acquisition_time_from_sidecar(tmp_path: Path):
    sidecar = tmp_path / "sub-01_task-rest_bold.json"
    with open(sidecar, "w") as f:
        json.dump({"RepetitionTime": 2.0, "AcquisitionTime": "10:00:00.500000"}, f)
    assert read_acquisition_time(sidecar) == 36000500.0

    with open(sidecar, "w") as f:
        json.dump({"RepetitionTime": 2.0}, f)
    with pytest.raises(ParseError):
        read_acquisition_time(sidecar)

    with pytest.raises(MissingResourceError):
        read_acquisition_time(tmp_path / "missing.json")


def test_read_volume_count(tmp_path: Path):
    path = tmp_path / "nt.txt"
    path.write_text("240\n")
    assert read_volume_count(path) == 240

    path.write_text("abc")
    with pytest.raises(ParseError):
        read_volume_count(path)

    path.write_text("12.5")
    with pytest.raises(ParseError):
        read_volume_count(path)

    with pytest.raises(MissingResourceError):
        read_volume_count(tmp_path / "none.txt")
