"""Tests for dominant-frequency estimation and channel labelling."""

import numpy as np
import pytest

from pnmclean.physio.config import ClassifierConfig
from pnmclean.physio.frequency import (
    FrequencyClassifier,
    classify_frequency,
    dominant_frequency,
    identify_signals,
    power_spectrum,
)
from pnmclean.physio.io import write_trigger_file


def _sine(freq: float, fs: float = 50.0, n: int = 1000, offset: float = 0.0) -> np.ndarray:
    t = np.arange(n) / fs
    return np.sin(2 * np.pi * freq * t) + offset


@pytest.mark.parametrize("f0", [0.25, 0.43, 1.0, 1.23, 1.87])
def test_dominant_frequency_within_one_bin(f0):
    fs, n = 50.0, 1000
    freq = dominant_frequency(_sine(f0, fs, n), fs)
    assert abs(freq - f0) <= fs / n


def test_dc_offset_is_ignored():
    freq = dominant_frequency(_sine(0.3, offset=500.0), 50.0)
    assert np.isclose(freq, 0.3)


@pytest.mark.parametrize(
    "f0, expected",
    [(0.3, "Respiration"), (1.2, "Heartbeat"), (0.6, "Heartbeat")],
)
def test_classify_sinusoids(f0, expected):
    freq, label = FrequencyClassifier().classify(_sine(f0), 50.0)
    assert label == expected
    assert abs(freq - f0) <= 50.0 / 1000


def test_threshold_is_inclusive_for_heartbeat():
    assert classify_frequency(0.6) == "Heartbeat"
    assert classify_frequency(0.5999) == "Respiration"
    assert classify_frequency(0.4, threshold=0.3) == "Heartbeat"


def test_custom_threshold_from_config():
    clf = FrequencyClassifier(ClassifierConfig(threshold_hz=1.5))
    _, label = clf.classify(_sine(1.2), 50.0)
    assert label == "Respiration"


def test_power_spectrum_keeps_lower_half():
    freqs, power = power_spectrum(_sine(1.0, n=101), 50.0)
    assert freqs.shape == power.shape == (50,)
    assert freqs[0] == 0.0
    assert np.isclose(freqs[1], 50.0 / 101)


def test_power_spectrum_rejects_short_input():
    with pytest.raises(ValueError):
        power_spectrum(np.array([1.0]), 50.0)
    with pytest.raises(ValueError):
        power_spectrum(np.ones(10), 0.0)


def test_identify_signals_from_trigger_file(tmp_path):
    fs = 50.0
    resp = 1000 + 200 * _sine(0.3, fs)
    card = 1500 + 300 * _sine(1.2, fs)
    matrix = np.column_stack([card, resp, np.zeros_like(card)])
    path = write_trigger_file(matrix, tmp_path / "trigger.txt")

    identity = identify_signals(path, fs)
    assert identity.labels == ["Heartbeat", "Respiration"]
    assert identity.cardiac_column == 1
    assert identity.respiratory_column == 2
    assert abs(identity.frequencies[0] - 1.2) <= fs / len(card)


def test_identify_signals_ambiguous_columns(tmp_path, caplog):
    fs = 50.0
    matrix = np.column_stack([_sine(1.0, fs), _sine(1.4, fs), np.zeros(1000)])
    path = write_trigger_file(matrix, tmp_path / "trigger.txt")
    with caplog.at_level("WARNING"):
        identity = identify_signals(path, fs)
    assert identity.cardiac_column is None
    assert identity.respiratory_column is None
    assert "classified as Heartbeat" in caplog.text
