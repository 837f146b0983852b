"""
pnmclean.physio.config
======================

Configuration dataclasses for reading physiological monitoring unit
(PMU) recordings, synchronising them with the scanner and classifying
channels.  All defaults correspond to Siemens PMU log files
(``.puls``/``.resp``) and can be overridden per study.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass
class TraceFormat:
    """Layout of a PMU text file.

    Attributes
    ----------
    header_values : int
        Number of leading tokens on the first line that hold device
        header values rather than samples.  Defaults to 7.
    sentinels : tuple of int
        Control codes removed wherever they occur in the sample stream.
        5000 marks a scanner trigger, 5003 the end of logging and 6000
        a channel marker.
    pause_begin, pause_end : int
        Codes delimiting an embedded span (device comments, paused
        logging).  Every ``pause_begin`` and the next
        ``pause_end`` after it, both inclusive, are dropped together
        with the tokens between them.  An end code with no earlier
        begin code is kept.
    start_key, stop_key : str
        Footer keys whose line carries the recording start/stop time in
        milliseconds since midnight.
    start_line, stop_line : int | None
        Fixed 0-based line indices of the start/stop timestamps.  When
        set they take precedence over the key lookup.
    """

    header_values: int = 7
    sentinels: Tuple[int, ...] = (5000, 5003, 6000)
    pause_begin: int = 5002
    pause_end: int = 6002
    start_key: str = 'LogStartMDHTime'
    stop_key: str = 'LogStopMDHTime'
    start_line: Optional[int] = None
    stop_line: Optional[int] = None

    def validate(self) -> None:
        if self.header_values < 0:
            raise ValueError("header_values must be non-negative")
        if self.pause_begin == self.pause_end:
            raise ValueError("pause_begin and pause_end must differ")
        for line in (self.start_line, self.stop_line):
            if line is not None and line < 0:
                raise ValueError("timestamp line indices must be non-negative")


@dataclass
class SyncConfig:
    """Parameters for aligning PMU streams and placing volume triggers.

    Attributes
    ----------
    sampling_rate : float
        PMU sampling frequency in Hz (e.g. 400 for Siemens pulse).
    tr_ms : float
        Repetition time in milliseconds.
    trigger_value : float, optional
        Marker written at each trigger position.  Defaults to 5000.
    trace_format : TraceFormat, optional
        File layout used by :func:`pnmclean.physio.parsing.read_trace`.
    """

    sampling_rate: float
    tr_ms: float
    trigger_value: float = 5000.0
    trace_format: TraceFormat = field(default_factory=TraceFormat)

    @property
    def sample_period_ms(self) -> float:
        """Duration of one PMU sample in milliseconds."""
        return 1000.0 / self.sampling_rate

    def validate(self) -> None:
        """Check that the sampling rate and TR are usable.

        Raises
        ------
        ValueError
            If ``sampling_rate`` or ``tr_ms`` is not positive.
        """
        if self.sampling_rate <= 0:
            raise ValueError("sampling_rate must be positive")
        if self.tr_ms <= 0:
            raise ValueError("tr_ms must be positive")
        self.trace_format.validate()


@dataclass
class ClassifierConfig:
    """Threshold separating respiratory from cardiac dominant frequency.

    Typical respiration lies between 0.1 and 0.5 Hz and typical heart
    rate between 0.8 and 2 Hz.  Frequencies equal to the threshold are
    labelled as heartbeat.
    """

    threshold_hz: float = 0.6

    def validate(self) -> None:
        if self.threshold_hz <= 0:
            raise ValueError("threshold_hz must be positive")
