"""
pnmclean.physio.model
=====================

Dataclasses describing physiological recordings, the scanner timeline
and the outcome of synchronisation.

``PhysiologicalTrace``
    Decoded samples of one PMU channel together with its sampling rate
    and the recording start/stop times reported by the device.

``AcquisitionTimeline``
    When the functional scan started, its repetition time and (if
    known) the number of volumes acquired.

``SyncResult``
    The aligned pair of traces, the trigger array and bookkeeping about
    how much was trimmed.

``ChannelIdentity``
    Dominant frequency and label of the two columns of a trigger file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np


@dataclass
class PhysiologicalTrace:
    """A single decoded physiological channel.

    Attributes
    ----------
    samples : np.ndarray
        One-dimensional array of amplitude values with all device
        control codes removed.
    sampling_rate : float
        Sampling frequency in Hz.
    start_ms, stop_ms : float
        Recording start and stop time in milliseconds since midnight.
    channel : str
        Identifier of the channel, e.g. ``'puls'`` or ``'resp'``.
    """

    samples: np.ndarray
    sampling_rate: float
    start_ms: float
    stop_ms: float
    channel: str = ''

    def __post_init__(self) -> None:
        self.samples = np.asarray(self.samples, dtype=float).ravel()

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def sample_period_ms(self) -> float:
        return 1000.0 / self.sampling_rate


@dataclass
class AcquisitionTimeline:
    """Scanner timing of one functional run.

    Attributes
    ----------
    start_ms : float
        Acquisition start in milliseconds since midnight.
    tr_ms : float
        Repetition time in milliseconds.
    n_volumes : int | None
        Total number of volumes, or ``None`` when the volume count
        source was not available.
    """

    start_ms: float
    tr_ms: float
    n_volumes: Optional[int] = None

    def validate(self) -> None:
        if self.tr_ms <= 0:
            raise ValueError("tr_ms must be positive")
        if self.n_volumes is not None and self.n_volumes < 0:
            raise ValueError("n_volumes must be non-negative")


@dataclass
class SyncResult:
    """Output of :meth:`TriggerSynchronizer.synchronize`.

    Attributes
    ----------
    trace_a, trace_b : np.ndarray
        Trimmed traces, both starting at the same physical instant and
        of equal length.
    triggers : np.ndarray
        Array of the same length, zero except at trigger positions.
    leading_trim : int
        Samples removed from the start of the earlier-starting trace.
    trailing_trim : int
        Samples removed from the tail of either trace.
    inter : int
        Offset in samples between the later stream start and the scan
        start.  Trigger placement begins at ``inter + 1``.
    trigger_positions : list of int
        1-based positions that received a trigger marker.
    warnings : list of str
        Non-fatal conditions encountered (length mismatch, missing
        volume count).
    """

    trace_a: np.ndarray
    trace_b: np.ndarray
    triggers: np.ndarray
    leading_trim: int = 0
    trailing_trim: int = 0
    inter: int = 0
    trigger_positions: List[int] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return int(self.triggers.shape[0])

    @property
    def n_triggers(self) -> int:
        return len(self.trigger_positions)

    def as_matrix(self) -> np.ndarray:
        """Return the ``(N, 3)`` matrix ``[trace_a, trace_b, triggers]``."""
        return np.column_stack([self.trace_a, self.trace_b, self.triggers])


@dataclass
class ChannelIdentity:
    """Dominant frequency and label of the first two trigger file columns."""

    frequencies: List[float]
    labels: List[str]

    def _column_of(self, label: str) -> Optional[int]:
        if self.labels.count(label) != 1:
            return None
        return self.labels.index(label) + 1

    @property
    def cardiac_column(self) -> Optional[int]:
        """1-based column holding the cardiac trace, if unambiguous."""
        return self._column_of('Heartbeat')

    @property
    def respiratory_column(self) -> Optional[int]:
        """1-based column holding the respiratory trace, if unambiguous."""
        return self._column_of('Respiration')


__all__ = [
    'PhysiologicalTrace',
    'AcquisitionTimeline',
    'SyncResult',
    'ChannelIdentity',
]
