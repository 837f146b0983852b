"""
pnmclean.physio.parsing
=======================

Readers for the inputs of trigger generation:

* Siemens PMU log files (``.puls``, ``.resp``, ``.ecg``).  The first
  line carries a handful of device header values followed by the
  samples, interleaved with control codes.  Footer lines carry the
  recording start/stop times in milliseconds since midnight, e.g.
  ``LogStartMDHTime:  36632877``.
* The scanner acquisition start time, given either in DICOM
  (``HHMMSS.fff``) or BIDS sidecar (``HH:MM:SS.ffffff``) form.
* The single-value volume count file.

Parsing failures are reported as :class:`~pnmclean.errors.ParseError`
and absent files as :class:`~pnmclean.errors.MissingResourceError`.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from ..errors import MissingResourceError, ParseError
from .config import TraceFormat
from .model import PhysiologicalTrace

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r'\d+')
_ACQ_TIME = re.compile(r'^(\d{2}):?(\d{2}):?(\d{2}(?:\.\d*)?)$')


def _remove_pause_spans(values: np.ndarray, tokens: np.ndarray, begin: int, end: int) -> Tuple[np.ndarray, np.ndarray]:
    """Drop every ``begin ... end`` span (inclusive) from ``values``."""
    start = 0
    while True:
        begins = np.flatnonzero(values[start:] == begin)
        if begins.size == 0:
            break
        b = start + int(begins[0])
        ends = np.flatnonzero(values[b + 1:] == end)
        if ends.size == 0:
            break
        e = b + 1 + int(ends[0])
        values = np.concatenate([values[:b], values[e + 1:]])
        tokens = np.concatenate([tokens[:b], tokens[e + 1:]])
        start = b
    return values, tokens


def decode_samples(line: str, fmt: Optional[TraceFormat] = None, context: str = '') -> np.ndarray:
    """Convert the data line of a PMU file into physiological samples.

    Parameters
    ----------
    line : str
        First line of the PMU file.
    fmt : TraceFormat, optional
        Header length and control codes.  Defaults to Siemens values.
    context : str, optional
        Identifier (usually the file path) used in error messages.

    Returns
    -------
    np.ndarray
        Float samples with header values, sentinel codes and pause
        spans removed.

    Raises
    ------
    ParseError
        If a token that survives stripping is not numeric.
    """
    fmt = fmt or TraceFormat()
    tokens = np.array(line.split(), dtype=object)
    if tokens.size >= fmt.header_values:
        tokens = tokens[fmt.header_values:]
    values = pd.to_numeric(pd.Series(tokens, dtype=object), errors='coerce').to_numpy(dtype=float)

    keep = ~np.isin(values, np.asarray(fmt.sentinels, dtype=float))
    values = values[keep]
    tokens = tokens[keep]
    values, tokens = _remove_pause_spans(values, tokens, fmt.pause_begin, fmt.pause_end)

    bad = np.flatnonzero(np.isnan(values))
    if bad.size:
        raise ParseError(
            f"{context or 'trace'}: non-numeric sample token {tokens[bad[0]]!r} "
            f"at position {int(bad[0])}"
        )
    return values


def _find_timestamp(lines: List[str], key: str, line_index: Optional[int], context: str) -> float:
    if line_index is not None:
        if line_index >= len(lines):
            raise ParseError(f"{context}: timestamp line {line_index} beyond end of file")
        text = lines[line_index]
    else:
        matches = [ln for ln in lines[1:] if key in ln]
        if not matches:
            raise ParseError(f"{context}: no '{key}' entry found")
        text = matches[0].split(key, 1)[1]
    found = _DIGITS.search(text)
    if found is None:
        raise ParseError(f"{context}: no timestamp digits in {text.strip()!r}")
    return float(found.group(0))


def parse_trace(
    text: str,
    sampling_rate: float,
    channel: str = '',
    fmt: Optional[TraceFormat] = None,
) -> PhysiologicalTrace:
    """Parse the content of a PMU log file.

    Parameters
    ----------
    text : str
        Full file content.
    sampling_rate : float
        Sampling frequency of the channel in Hz.
    channel : str, optional
        Identifier stored on the returned trace and used in messages.
    fmt : TraceFormat, optional
        File layout.  Defaults to Siemens PMU values.

    Returns
    -------
    PhysiologicalTrace
        Decoded samples with start and stop timestamps.
    """
    fmt = fmt or TraceFormat()
    fmt.validate()
    context = channel or 'trace'
    lines = text.splitlines()
    if not lines or not lines[0].strip():
        raise ParseError(f"{context}: file has no data line")
    samples = decode_samples(lines[0], fmt, context)
    start = _find_timestamp(lines, fmt.start_key, fmt.start_line, context)
    stop = _find_timestamp(lines, fmt.stop_key, fmt.stop_line, context)
    return PhysiologicalTrace(
        samples=samples,
        sampling_rate=sampling_rate,
        start_ms=start,
        stop_ms=stop,
        channel=channel,
    )


def read_trace(
    path: str | Path,
    sampling_rate: float,
    channel: Optional[str] = None,
    fmt: Optional[TraceFormat] = None,
) -> PhysiologicalTrace:
    """Read a PMU log file from disk.

    The channel name defaults to the file extension (``puls``,
    ``resp``...).
    """
    path = Path(path)
    if not path.is_file():
        logger.error('PMU file not found: %s', path)
        raise MissingResourceError(f"PMU file not found: {path}")
    text = path.read_text(encoding='utf-8', errors='replace')
    trace = parse_trace(text, sampling_rate, channel or path.suffix.lstrip('.'), fmt)
    logger.info(
        'Read %d samples from %s (start %d ms, stop %d ms)',
        len(trace), path.name, trace.start_ms, trace.stop_ms,
    )
    return trace


def parse_acquisition_time(value: str) -> float:
    """Convert an acquisition time string to milliseconds since midnight.

    Both the DICOM form ``'134512.125'`` and the BIDS form
    ``'13:45:12.125000'`` are accepted.
    """
    match = _ACQ_TIME.match(str(value).strip())
    if match is None:
        raise ParseError(f"malformed acquisition time {value!r}")
    hour, minute, second = int(match.group(1)), int(match.group(2)), float(match.group(3))
    if hour > 23 or minute > 59 or second >= 61:
        raise ParseError(f"acquisition time out of range: {value!r}")
    return (hour * 3600 + minute * 60 + second) * 1000.0


def read_acquisition_time(sidecar_path: str | Path) -> float:
    """Read ``AcquisitionTime`` from a BIDS JSON sidecar, in milliseconds."""
    path = Path(sidecar_path)
    if not path.is_file():
        logger.error('Sidecar not found: %s', path)
        raise MissingResourceError(f"sidecar not found: {path}")
    with open(path, 'r') as jf:
        try:
            metadata = json.load(jf)
        except json.JSONDecodeError as e:
            raise ParseError(f"{path}: invalid JSON") from e
    if 'AcquisitionTime' not in metadata:
        raise ParseError(f"{path}: no AcquisitionTime field")
    return parse_acquisition_time(metadata['AcquisitionTime'])


def read_volume_count(path: str | Path) -> int:
    """Read the total number of volumes from a single-value text file."""
    path = Path(path)
    if not path.is_file():
        raise MissingResourceError(f"volume count file not found: {path}")
    tokens = path.read_text().split()
    if not tokens:
        raise ParseError(f"{path}: empty volume count file")
    try:
        count = float(tokens[0])
    except ValueError as e:
        raise ParseError(f"{path}: volume count {tokens[0]!r} is not a number") from e
    if count < 0 or count != int(count):
        raise ParseError(f"{path}: volume count must be a non-negative integer")
    return int(count)


__all__ = [
    'decode_samples',
    'parse_trace',
    'read_trace',
    'parse_acquisition_time',
    'read_acquisition_time',
    'read_volume_count',
]
