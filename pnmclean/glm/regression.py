"""
pnmclean.glm.regression
=======================

Slice-wise general linear model cleanup of 4D functional data.

Physiological noise regressors (EVs) differ from slice to slice
because each slice is acquired at a different point of the cardiac and
respiratory cycles.  The regression is therefore solved independently
for every slice ``z``:

1. The slice is flattened to a (time × voxels) matrix ``Y`` and the
   slice's EVs to a (time × EVs) matrix ``X``.
2. Both are demeaned column-wise.  The voxel means are kept.
3. Coefficients are estimated in closed form with the Moore–Penrose
   pseudoinverse, ``B = pinv(Xdm) @ Ydm``, which yields the
   minimum-norm solution when EVs are collinear or degenerate.
4. The fitted contribution ``Xdm @ B`` is subtracted and the voxel
   means are restored.

Because both sides are demeaned, the temporal mean of every voxel is
unchanged.  Slices share no state, so they can be processed by
several worker threads.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from ..errors import DimensionMismatchError
from .config import CleanupConfig
from .model import VolumeSeries

logger = logging.getLogger(__name__)


def demean(matrix: np.ndarray) -> np.ndarray:
    """Subtract the column means of a (time × columns) matrix.

    Columns that are exactly constant become exactly zero.
    """
    out = matrix - matrix.mean(axis=0, keepdims=True)
    constant = np.ptp(matrix, axis=0) == 0
    out[:, constant] = 0.0
    return out


def clean_slice(slice_data: np.ndarray, slice_regressors: np.ndarray) -> np.ndarray:
    """Regress EVs out of one slice.

    Parameters
    ----------
    slice_data : np.ndarray
        Array of shape (X, Y, T).
    slice_regressors : np.ndarray
        Array of shape (n_evs, T).

    Returns
    -------
    np.ndarray
        Residuals with voxel means restored, shape (X, Y, T).
    """
    nx, ny, nt = slice_data.shape
    y = slice_data.reshape(nx * ny, nt).T.astype(float)
    x = np.asarray(slice_regressors, dtype=float).T
    ydm = demean(y)
    xdm = demean(x)
    beta = np.linalg.pinv(xdm) @ ydm
    # y - fit == (ydm - fit) + mean(y)
    resid = y - xdm @ beta
    return resid.T.reshape(nx, ny, nt)


def check_dimensions(data: np.ndarray, regressors: np.ndarray) -> None:
    """Raise :class:`DimensionMismatchError` if the EVs do not fit ``data``."""
    if data.ndim != 4:
        raise DimensionMismatchError(f"volume must be 4D (x, y, z, t), got shape {data.shape}")
    if regressors.ndim != 3:
        raise DimensionMismatchError(
            f"regressors must be 3D (ev, slice, t), got shape {regressors.shape}"
        )
    if regressors.shape[1] != data.shape[2]:
        raise DimensionMismatchError(
            f"regressors have {regressors.shape[1]} slices, volume has {data.shape[2]}"
        )
    if regressors.shape[2] != data.shape[3]:
        raise DimensionMismatchError(
            f"regressors have {regressors.shape[2]} time points, volume has {data.shape[3]}"
        )


def glm_cleanup(data: np.ndarray, regressors: np.ndarray, n_jobs: int = 1) -> np.ndarray:
    """Remove slice-specific EVs from a 4D array.

    Parameters
    ----------
    data : np.ndarray
        4D array of shape (X, Y, Z, T).
    regressors : np.ndarray
        EV matrix of shape (n_evs, Z, T).
    n_jobs : int, optional
        Number of worker threads.  Slices are independent, so the
        result does not depend on this value.

    Returns
    -------
    np.ndarray
        Cleaned float array of the same shape as ``data``.

    Raises
    ------
    DimensionMismatchError
        If the slice or time axis of ``regressors`` does not match
        ``data``.  Nothing is computed in that case.
    """
    data = np.asarray(data)
    regressors = np.asarray(regressors)
    check_dimensions(data, regressors)
    resid = np.empty(data.shape, dtype=float)

    def _run(z: int) -> None:
        resid[:, :, z, :] = clean_slice(data[:, :, z, :], regressors[:, z, :])

    n_slices = data.shape[2]
    if n_jobs > 1 and n_slices > 1:
        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            list(executor.map(_run, range(n_slices)))
    else:
        for z in range(n_slices):
            _run(z)
    return resid


class RegressionEngine:
    """Slice-wise physiological noise removal.

    Parameters
    ----------
    config : CleanupConfig, optional
        Controls the number of worker threads.

    Examples
    --------
    >>> engine = RegressionEngine(CleanupConfig(n_jobs=4))
    >>> cleaned = engine.clean(volume, evs)
    """

    def __init__(self, config: Optional[CleanupConfig] = None) -> None:
        self.config = config or CleanupConfig()
        self.config.validate()

    def clean(self, volume: VolumeSeries, regressors: np.ndarray) -> VolumeSeries:
        """Return a new :class:`VolumeSeries` with the EVs regressed out.

        The input volume is not modified.
        """
        regressors = np.asarray(regressors)
        logger.info(
            'Regressing %d EVs out of %d slices (%d time points)',
            regressors.shape[0] if regressors.ndim else 0, volume.n_slices, volume.n_timepoints,
        )
        resid = glm_cleanup(volume.data, regressors, n_jobs=self.config.n_jobs)
        return volume.with_data(resid)


__all__ = [
    'demean',
    'clean_slice',
    'check_dimensions',
    'glm_cleanup',
    'RegressionEngine',
]
