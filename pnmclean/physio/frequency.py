"""
pnmclean.physio.frequency
=========================

Identify whether a physiological trace is cardiac or respiratory from
its dominant oscillation frequency.

The power spectrum of the demeaned trace is computed with an FFT and
the frequency bin with the largest power is taken as the dominant
frequency.  Its precision is limited by the bin width ``Fs / N``.
Traces whose dominant frequency lies below a fixed threshold (0.6 Hz
by default) are labelled ``'Respiration'``; the rest are labelled
``'Heartbeat'``.  No stationarity check is performed, so the segment
should span several periods of the slower rhythm.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from scipy.fft import fft

from .config import ClassifierConfig
from .io import load_trigger_file
from .model import ChannelIdentity

logger = logging.getLogger(__name__)

RESPIRATION = 'Respiration'
HEARTBEAT = 'Heartbeat'


def power_spectrum(trace: np.ndarray, sampling_rate: float) -> Tuple[np.ndarray, np.ndarray]:
    """Return the non-negative half of the power spectrum of ``trace``.

    Returns
    -------
    freqs : np.ndarray
        Bin frequencies ``k * Fs / N`` for ``k = 0 .. N//2 - 1``.
    power : np.ndarray
        ``|FFT|^2 / N`` of the demeaned trace at those bins.
    """
    x = np.asarray(trace, dtype=float).ravel()
    n = x.shape[0]
    if n < 2:
        raise ValueError("at least two samples are required for a spectrum")
    if sampling_rate <= 0:
        raise ValueError("sampling_rate must be positive")
    x = x - x.mean()
    power = np.abs(fft(x)) ** 2 / n
    half = n // 2
    freqs = np.arange(half) * (sampling_rate / n)
    return freqs, power[:half]


def dominant_frequency(trace: np.ndarray, sampling_rate: float) -> float:
    """Frequency (Hz) of the strongest spectral peak of ``trace``."""
    freqs, power = power_spectrum(trace, sampling_rate)
    return float(freqs[int(np.argmax(power))])


def classify_frequency(frequency: float, threshold: float = 0.6) -> str:
    """Label a dominant frequency; ``threshold`` itself maps to heartbeat."""
    return RESPIRATION if frequency < threshold else HEARTBEAT


class FrequencyClassifier:
    """Classify physiological traces by dominant frequency.

    Parameters
    ----------
    config : ClassifierConfig, optional
        Holds the respiration/heartbeat threshold.

    Examples
    --------
    >>> clf = FrequencyClassifier()
    >>> freq, label = clf.classify(trace, sampling_rate=50)
    """

    def __init__(self, config: Optional[ClassifierConfig] = None) -> None:
        self.config = config or ClassifierConfig()
        self.config.validate()

    def classify(self, trace: np.ndarray, sampling_rate: float) -> Tuple[float, str]:
        """Return ``(dominant_frequency, label)`` for ``trace``."""
        freq = dominant_frequency(trace, sampling_rate)
        return freq, classify_frequency(freq, self.config.threshold_hz)


def identify_signals(
    trigger_path: str | Path,
    sampling_rate: float,
    config: Optional[ClassifierConfig] = None,
) -> ChannelIdentity:
    """Work out which column of a trigger file is cardiac or respiratory.

    The first two columns of the trigger file are classified
    independently.  The result tells which column to pass as the
    cardiac and respiratory channel to the regressor toolbox.
    """
    data = load_trigger_file(trigger_path)
    logger.info('Loaded trigger data: %d rows, %d columns', data.shape[0], data.shape[1])
    clf = FrequencyClassifier(config)
    freqs, labels = [], []
    for col in range(2):
        freq, label = clf.classify(data[:, col], sampling_rate)
        logger.info('Column %d: main frequency %.3f Hz, appears to be %s', col + 1, freq, label)
        freqs.append(freq)
        labels.append(label)
    identity = ChannelIdentity(frequencies=freqs, labels=labels)
    if identity.cardiac_column is None:
        logger.warning('Both columns of %s classified as %s', trigger_path, labels[0])
    return identity


__all__ = [
    'RESPIRATION',
    'HEARTBEAT',
    'power_spectrum',
    'dominant_frequency',
    'classify_frequency',
    'FrequencyClassifier',
    'identify_signals',
]
