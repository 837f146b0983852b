"""
pnmclean.physio.trigger
=======================

Synchronise two PMU recordings (typically pulse and respiration) with
each other and with the functional scan, and mark the sample at which
each volume was acquired.

The two channels are logged by independent clocks, so they start and
stop at slightly different instants.  Synchronisation proceeds in
three steps:

1. **Leading alignment** – the earlier-starting trace loses as many
   leading samples as correspond to the start time difference, so both
   traces begin at the start of the later stream.  The offset of the
   scan start relative to that instant, ``inter``, is recorded in
   samples.
2. **Trailing alignment** – the trace that kept recording longer is cut
   to the length of the other.  Equal stop timestamps cut the longer
   trace.  If the stop times and the sample counts disagree, the
   shorter length is used and a warning is emitted.
3. **Trigger placement** – for volume ``x`` the marker is written at
   1-based position ``inter + 1 + round(points_per_tr * x)``.  Positions
   outside the aligned traces are skipped.

:func:`generate_trigger_file` wires the parsers, the synchroniser and
the trigger file writer together for one run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from ..errors import AlignmentError, MissingResourceError
from .config import SyncConfig
from .io import write_trigger_file
from .model import AcquisitionTimeline, PhysiologicalTrace, SyncResult
from .parsing import parse_acquisition_time, read_acquisition_time, read_trace, read_volume_count

logger = logging.getLogger(__name__)


def round_half_away(value: float) -> int:
    """Round to the nearest integer with halves rounded away from zero."""
    return int(np.sign(value) * np.floor(abs(value) + 0.5))


def place_triggers(
    length: int,
    inter: int,
    points_per_tr: float,
    n_triggers: int,
    value: float = 5000.0,
) -> Tuple[np.ndarray, List[int]]:
    """Build a trigger array of ``length`` samples.

    Parameters
    ----------
    length : int
        Length of the aligned traces.
    inter : int
        Sample offset of the scan start relative to the trace start.
    points_per_tr : float
        PMU samples per repetition time.
    n_triggers : int
        Number of volumes to mark.
    value : float, optional
        Marker written at each trigger position.

    Returns
    -------
    triggers : np.ndarray
        Zero array with ``value`` at every in-bounds trigger position.
    positions : list of int
        1-based positions actually marked, in increasing order.
    """
    if n_triggers < 0:
        raise ValueError("n_triggers must be non-negative")
    triggers = np.zeros(length, dtype=float)
    positions: List[int] = []
    for x in range(n_triggers):
        pos = inter + 1 + round_half_away(points_per_tr * x)
        if 0 < pos <= length:
            triggers[pos - 1] = value
            positions.append(pos)
    return triggers, positions


class TriggerSynchronizer:
    """Align two PMU traces and generate a per-volume trigger array.

    Parameters
    ----------
    config : SyncConfig
        Sampling rate, repetition time and trigger marker value.

    Examples
    --------
    >>> cfg = SyncConfig(sampling_rate=400, tr_ms=2000)
    >>> sync = TriggerSynchronizer(cfg)
    >>> result = sync.synchronize(puls, resp, timeline, n_triggers=240)
    >>> result.as_matrix().shape
    """

    def __init__(self, config: SyncConfig) -> None:
        self.config = config
        self.config.validate()

    # ------------------------------------------------------------------
    def _check_inputs(self, trace_a: PhysiologicalTrace, trace_b: PhysiologicalTrace) -> None:
        for trace in (trace_a, trace_b):
            if len(trace) == 0:
                raise AlignmentError(f"trace '{trace.channel}' contains no samples")
            if trace.sampling_rate != self.config.sampling_rate:
                raise AlignmentError(
                    f"trace '{trace.channel}' sampled at {trace.sampling_rate} Hz, "
                    f"expected {self.config.sampling_rate} Hz"
                )

    def align_start(
        self,
        trace_a: PhysiologicalTrace,
        trace_b: PhysiologicalTrace,
        acquisition_start_ms: float,
    ) -> Tuple[np.ndarray, np.ndarray, int, int]:
        """Trim the earlier-starting trace so both start together.

        Returns
        -------
        a, b : np.ndarray
            The traces after leading trimming.
        trim : int
            Number of samples removed from the earlier-starting trace.
        inter : int
            Offset in samples of the scan start relative to the later
            stream start.
        """
        period = self.config.sample_period_ms
        a, b = trace_a.samples, trace_b.samples
        offset = trace_a.start_ms - trace_b.start_ms
        trim = round_half_away(abs(offset) / period)
        if offset > 0:
            # b started first
            if trim >= b.shape[0]:
                raise AlignmentError(
                    f"leading trim of {trim} samples exceeds '{trace_b.channel}' "
                    f"length {b.shape[0]}"
                )
            b = b[trim:]
            inter_ms = acquisition_start_ms - trace_a.start_ms
        else:
            if trim >= a.shape[0]:
                raise AlignmentError(
                    f"leading trim of {trim} samples exceeds '{trace_a.channel}' "
                    f"length {a.shape[0]}"
                )
            a = a[trim:]
            inter_ms = acquisition_start_ms - trace_b.start_ms
        return a, b, trim, round_half_away(inter_ms / period)

    @staticmethod
    def align_stop(
        a: np.ndarray,
        b: np.ndarray,
        stop_a: float,
        stop_b: float,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Cut the tail of the trace that kept recording longer."""
        if stop_a > stop_b:
            if b.shape[0] < a.shape[0]:
                a = a[:b.shape[0]]
        elif stop_b > stop_a:
            if a.shape[0] < b.shape[0]:
                b = b[:a.shape[0]]
        else:
            n = min(a.shape[0], b.shape[0])
            a, b = a[:n], b[:n]
        return a, b

    # ------------------------------------------------------------------
    def synchronize(
        self,
        trace_a: PhysiologicalTrace,
        trace_b: PhysiologicalTrace,
        timeline: AcquisitionTimeline,
        n_triggers: Optional[int] = None,
    ) -> SyncResult:
        """Align two traces and place one trigger per volume.

        Parameters
        ----------
        trace_a, trace_b : PhysiologicalTrace
            Decoded recordings, e.g. pulse and respiration.
        timeline : AcquisitionTimeline
            Scan start time and repetition time.
        n_triggers : int, optional
            Number of volumes to mark.  ``None`` means the volume count
            is unavailable: the trigger array stays all zero and a
            warning is recorded.

        Returns
        -------
        SyncResult
            Aligned traces of equal length, trigger array and trimming
            bookkeeping.

        Raises
        ------
        AlignmentError
            If a trace is empty, was sampled at a different rate, is
            shorter than the required leading trim, or the timeline TR
            differs from ``config.tr_ms``.
        """
        self._check_inputs(trace_a, trace_b)
        timeline.validate()
        if not np.isclose(timeline.tr_ms, self.config.tr_ms):
            raise AlignmentError(
                f"timeline TR of {timeline.tr_ms} ms does not match the configured "
                f"TR of {self.config.tr_ms} ms"
            )
        warnings: List[str] = []

        a, b, leading, inter = self.align_start(trace_a, trace_b, timeline.start_ms)
        n_before = max(a.shape[0], b.shape[0])
        a, b = self.align_stop(a, b, trace_a.stop_ms, trace_b.stop_ms)

        if a.shape[0] != b.shape[0]:
            msg = (
                f"'{trace_a.channel}' and '{trace_b.channel}' lengths differ "
                f"({a.shape[0]} vs {b.shape[0]}); using the shorter length"
            )
            logger.warning('%s', msg)
            warnings.append(msg)
        length = min(a.shape[0], b.shape[0])
        a, b = np.array(a[:length]), np.array(b[:length])

        if n_triggers is None:
            err = MissingResourceError("volume count unavailable; no triggers inserted")
            logger.warning('%s', err)
            warnings.append(str(err))
            triggers, positions = np.zeros(length, dtype=float), []
        else:
            triggers, positions = place_triggers(
                length,
                inter,
                self.config.tr_ms / self.config.sample_period_ms,
                n_triggers,
                self.config.trigger_value,
            )
            if len(positions) < n_triggers:
                logger.warning(
                    '%d of %d triggers fall outside the recorded data',
                    n_triggers - len(positions), n_triggers,
                )

        logger.info(
            'Aligned %s/%s: leading trim %d, trailing trim %d, inter %d, %d triggers over %d samples',
            trace_a.channel, trace_b.channel, leading, n_before - length, inter, len(positions), length,
        )
        return SyncResult(
            trace_a=a,
            trace_b=b,
            triggers=triggers,
            leading_trim=leading,
            trailing_trim=n_before - length,
            inter=inter,
            trigger_positions=positions,
            warnings=warnings,
        )


def resolve_acquisition_time(value: Union[float, int, str, Path]) -> float:
    """Acquisition start in ms from a number, a time string or a JSON sidecar."""
    if isinstance(value, (int, float)):
        return float(value)
    if Path(str(value)).suffix == '.json':
        return read_acquisition_time(value)
    return parse_acquisition_time(str(value))


def generate_trigger_file(
    puls_path: str | Path,
    resp_path: str | Path,
    acquisition_time: Union[float, str, Path],
    volume_file: Optional[str | Path],
    output_path: str | Path,
    config: SyncConfig,
) -> SyncResult:
    """Create the trigger file for one functional run.

    Parameters
    ----------
    puls_path, resp_path : str or Path
        Pulse and respiration PMU log files.
    acquisition_time : float, str or Path
        Scan start in ms, an ``HHMMSS.fff`` / ``HH:MM:SS.ffffff``
        string, or the path of a BIDS JSON sidecar holding
        ``AcquisitionTime``.
    volume_file : str or Path or None
        File holding the total number of volumes.  If it is missing
        the trigger column is left empty and a warning is logged.
    output_path : str or Path
        Destination of the three-column trigger file.
    config : SyncConfig
        Sampling rate, TR and PMU file layout.

    Returns
    -------
    SyncResult
        The synchronisation result that was written.
    """
    fmt = config.trace_format
    puls = read_trace(puls_path, config.sampling_rate, 'puls', fmt)
    resp = read_trace(resp_path, config.sampling_rate, 'resp', fmt)
    acq_ms = resolve_acquisition_time(acquisition_time)

    n_volumes: Optional[int] = None
    if volume_file is not None:
        try:
            n_volumes = read_volume_count(volume_file)
        except MissingResourceError:
            logger.warning('%s not found. No triggers will be inserted.', volume_file)

    timeline = AcquisitionTimeline(start_ms=acq_ms, tr_ms=config.tr_ms, n_volumes=n_volumes)
    result = TriggerSynchronizer(config).synchronize(puls, resp, timeline, n_volumes)
    write_trigger_file(result, output_path)
    return result


__all__ = [
    'round_half_away',
    'place_triggers',
    'TriggerSynchronizer',
    'resolve_acquisition_time',
    'generate_trigger_file',
]
