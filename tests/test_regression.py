"""Tests for the slice-wise GLM cleanup."""

import numpy as np
import pytest

from pnmclean.errors import DimensionMismatchError
from pnmclean.glm.config import CleanupConfig
from pnmclean.glm.model import VolumeSeries
from pnmclean.glm.regression import RegressionEngine, clean_slice, demean, glm_cleanup


def _random_volume(shape=(4, 3, 5, 40), seed=0) -> np.ndarray:
    rng = np.random.RandomState(seed)
    return 1000.0 + rng.randn(*shape) * 20.0


def test_zero_regressors_return_input():
    data = _random_volume()
    evs = np.zeros((3, data.shape[2], data.shape[3]))
    out = glm_cleanup(data, evs)
    assert np.array_equal(out, data)


def test_constant_regressor_two_slices():
    data = np.arange(2 * 2 * 2 * 5, dtype=float).reshape(2, 2, 2, 5) ** 1.5
    evs = np.full((1, 2, 5), 3.7)
    out = RegressionEngine().clean(VolumeSeries(data), evs)
    assert out.shape == data.shape
    assert np.array_equal(out.data, data)


def test_voxel_means_preserved():
    data = _random_volume(seed=1)
    evs = np.random.RandomState(2).randn(6, data.shape[2], data.shape[3])
    out = glm_cleanup(data, evs)
    assert np.allclose(out.mean(axis=-1), data.mean(axis=-1))
    assert not np.allclose(out, data)


def test_fully_explained_signal_is_removed():
    t = np.arange(50, dtype=float)
    ev = np.sin(t / 3.0)
    data = np.empty((2, 2, 3, 50))
    for z in range(3):
        data[:, :, z, :] = 10.0 + (z + 1) * 3.0 * ev
    evs = np.tile(ev, (1, 3, 1))
    out = glm_cleanup(data, evs)
    expected = data.mean(axis=-1, keepdims=True) * np.ones_like(data)
    assert np.allclose(out, expected)


def test_collinear_regressors_do_not_fail():
    data = _random_volume(seed=3)
    base = np.random.RandomState(4).randn(data.shape[2], data.shape[3])
    evs = np.stack([base, 2.0 * base, -base])
    out = glm_cleanup(data, evs)
    single = glm_cleanup(data, base[np.newaxis])
    assert np.all(np.isfinite(out))
    assert np.allclose(out, single)


def test_slice_count_mismatch_raises():
    data = _random_volume()
    evs = np.zeros((2, data.shape[2] + 1, data.shape[3]))
    with pytest.raises(DimensionMismatchError):
        glm_cleanup(data, evs)
    out = None
    with pytest.raises(DimensionMismatchError):
        out = RegressionEngine().clean(VolumeSeries(data), evs)
    assert out is None


def test_time_and_rank_mismatch_raise():
    data = _random_volume()
    with pytest.raises(DimensionMismatchError):
        glm_cleanup(data, np.zeros((2, data.shape[2], data.shape[3] - 1)))
    with pytest.raises(DimensionMismatchError):
        glm_cleanup(data, np.zeros((data.shape[2], data.shape[3])))
    with pytest.raises(DimensionMismatchError):
        glm_cleanup(data[..., 0], np.zeros((1, data.shape[2], 1)))


def test_parallel_matches_serial():
    data = _random_volume(shape=(5, 4, 8, 30), seed=5)
    evs = np.random.RandomState(6).randn(4, 8, 30)
    serial = RegressionEngine(CleanupConfig(n_jobs=1)).clean(VolumeSeries(data), evs)
    parallel = RegressionEngine(CleanupConfig(n_jobs=4)).clean(VolumeSeries(data), evs)
    assert np.array_equal(serial.data, parallel.data)


def test_slices_are_independent():
    data = _random_volume(seed=7)
    evs = np.random.RandomState(8).randn(3, data.shape[2], data.shape[3])
    full = glm_cleanup(data, evs)
    z = 2
    alone = clean_slice(data[:, :, z, :], evs[:, z, :])
    assert np.allclose(full[:, :, z, :], alone)


def test_clean_does_not_mutate_input():
    data = _random_volume(seed=9)
    before = data.copy()
    volume = VolumeSeries(data, scales=(2.0, 2.0, 3.0, 2.5))
    evs = np.random.RandomState(10).randn(2, data.shape[2], data.shape[3])
    out = RegressionEngine().clean(volume, evs)
    assert np.array_equal(volume.data, before)
    assert out is not volume
    assert out.scales == (2.0, 2.0, 3.0, 2.5)


def test_demean_zeroes_constant_columns():
    m = np.column_stack([np.full(7, 0.1), np.arange(7, dtype=float)])
    out = demean(m)
    assert np.array_equal(out[:, 0], np.zeros(7))
    assert np.isclose(out[:, 1].mean(), 0.0)


def test_config_validation():
    with pytest.raises(ValueError):
        RegressionEngine(CleanupConfig(n_jobs=0))
    assert CleanupConfig().ev_name(7) == "pnmev007"
