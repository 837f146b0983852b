"""
pnmclean.glm.io
===============

NIfTI input/output for the cleanup stage, built on ``nibabel``.

* :func:`read_volume` / :func:`write_volume` load and save a 4D
  functional image as a :class:`~pnmclean.glm.model.VolumeSeries`.
* :func:`read_regressor` loads one EV image written by FSL
  ``pnm_evs`` and squeezes it to a (slice × time) array;
  :func:`load_regressor_matrix` stacks ``n_evs`` of them into the
  (EV × slice × time) matrix expected by the regression engine.
* :func:`cleanup_pnm4d` ties the pieces together: read the EPI and the
  EVs, regress and write ``res4d_new.nii.gz``.

All paths are explicit arguments; nothing depends on the current
working directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import nibabel as nib
import numpy as np

from ..errors import DimensionMismatchError, MissingResourceError
from .config import CleanupConfig
from .model import VolumeSeries
from .regression import RegressionEngine

logger = logging.getLogger(__name__)

_EXTENSIONS = ('.nii.gz', '.nii', '')


def _require_file(path: Path, what: str) -> None:
    if not path.is_file():
        logger.error('%s not found: %s', what, path)
        raise MissingResourceError(f"{what} not found: {path}")


def read_volume(path: str | Path) -> VolumeSeries:
    """Load a 4D NIfTI image.

    Returns
    -------
    VolumeSeries
        Image data, the header zooms as scale factors and the affine.
    """
    path = Path(path)
    _require_file(path, 'EPI image')
    img = nib.load(str(path))
    data = np.asanyarray(img.get_fdata())
    if data.ndim != 4:
        raise DimensionMismatchError(f"{path}: expected a 4D image, got shape {data.shape}")
    zooms = tuple(float(z) for z in img.header.get_zooms()[:4])
    logger.info('Read %s with shape %s', path.name, data.shape)
    return VolumeSeries(data=data, scales=zooms, affine=img.affine.copy())


def write_volume(volume: VolumeSeries, path: str | Path, dtype: str = 'float32') -> Path:
    """Save ``volume`` as NIfTI, keeping its scale factors."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    affine = volume.affine
    if affine is None:
        affine = np.diag(list(volume.scales[:3]) + [1.0])
    img = nib.Nifti1Image(volume.data.astype(dtype), affine)
    img.header.set_data_dtype(dtype)
    img.header.set_zooms(volume.scales[:4])
    nib.save(img, str(path))
    logger.info('Wrote %s', path)
    return path


def find_regressor(folder: str | Path, name: str) -> Path:
    """Locate EV ``name`` in ``folder`` with or without a NIfTI extension."""
    folder = Path(folder)
    for ext in _EXTENSIONS:
        candidate = folder / f"{name}{ext}"
        if candidate.is_file():
            return candidate
    logger.error('EV file %s not found in %s', name, folder)
    raise MissingResourceError(f"EV file {name} not found in {folder}")


def read_regressor(path: str | Path) -> np.ndarray:
    """Load one EV image as a (slice × time) array."""
    path = Path(path)
    _require_file(path, 'EV image')
    raw = np.asanyarray(nib.load(str(path)).get_fdata())
    if raw.ndim >= 2 and all(n == 1 for n in raw.shape[:-2]):
        # slices and time are the last two axes
        data = raw.reshape(raw.shape[-2], raw.shape[-1])
    elif raw.ndim == 1:
        data = raw[np.newaxis, :]
    else:
        data = np.squeeze(raw)
    if data.ndim != 2:
        raise DimensionMismatchError(
            f"{path}: EV must reduce to (slice, time), got shape {data.shape}"
        )
    return data


def load_regressor_matrix(
    folder: str | Path,
    n_evs: int,
    config: Optional[CleanupConfig] = None,
    n_slices: Optional[int] = None,
    n_timepoints: Optional[int] = None,
) -> np.ndarray:
    """Stack ``n_evs`` EV images into an (EV × slice × time) matrix.

    Parameters
    ----------
    folder : str or Path
        Directory holding ``pnmev001``, ``pnmev002``...
    n_evs : int
        Number of EVs to load.
    config : CleanupConfig, optional
        Supplies the EV file name prefix and padding.
    n_slices, n_timepoints : int, optional
        Expected dimensions.  Mismatches raise
        :class:`DimensionMismatchError`.
    """
    config = config or CleanupConfig()
    if n_evs < 1:
        raise ValueError("n_evs must be at least 1")
    evs = []
    for ev in range(1, n_evs + 1):
        path = find_regressor(folder, config.ev_name(ev))
        logger.info('Loading EV file: %s', path)
        arr = read_regressor(path)
        if evs and arr.shape != evs[0].shape:
            raise DimensionMismatchError(
                f"{path.name} has shape {arr.shape}, expected {evs[0].shape}"
            )
        evs.append(arr)
    matrix = np.stack(evs, axis=0)
    if n_slices is not None and matrix.shape[1] != n_slices:
        raise DimensionMismatchError(
            f"EVs have {matrix.shape[1]} slices, expected {n_slices}"
        )
    if n_timepoints is not None and matrix.shape[2] != n_timepoints:
        raise DimensionMismatchError(
            f"EVs have {matrix.shape[2]} time points, expected {n_timepoints}"
        )
    return matrix


def cleanup_pnm4d(
    epi_path: str | Path,
    cov_folder: str | Path,
    n_evs: int,
    config: Optional[CleanupConfig] = None,
    output_path: Optional[str | Path] = None,
) -> Path:
    """Regress PNM EVs out of an EPI image and save the residuals.

    Parameters
    ----------
    epi_path : str or Path
        4D functional image.
    cov_folder : str or Path
        Folder holding the EV images.
    n_evs : int
        Number of EV files to use.
    config : CleanupConfig, optional
        Worker count, EV naming and output naming.
    output_path : str or Path, optional
        Destination image.  Defaults to ``cov_folder / config.output_name``.

    Returns
    -------
    Path
        Path of the cleaned image.
    """
    config = config or CleanupConfig()
    config.validate()
    volume = read_volume(epi_path)
    logger.info('Using covariate folder: %s', cov_folder)
    evs = load_regressor_matrix(
        cov_folder, n_evs, config,
        n_slices=volume.n_slices, n_timepoints=volume.n_timepoints,
    )
    cleaned = RegressionEngine(config).clean(volume, evs)
    out = Path(output_path) if output_path is not None else Path(cov_folder) / config.output_name
    return write_volume(cleaned, out, config.output_dtype)


__all__ = [
    'read_volume',
    'write_volume',
    'find_regressor',
    'read_regressor',
    'load_regressor_matrix',
    'cleanup_pnm4d',
]
