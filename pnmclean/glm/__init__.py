"""
pnmclean.glm
============

This subpackage removes physiological noise from 4D functional data by
slice-wise general linear model regression against PNM explanatory
variables (EVs).

Modules
-------

config
    Defines :class:`CleanupConfig` (worker threads, EV naming, output
    naming).

model
    Defines :class:`VolumeSeries`, a 4D array with scale factors and
    affine.

regression
    Contains :class:`RegressionEngine` and the array-level
    :func:`glm_cleanup`.

io
    NIfTI reading/writing of volumes and EVs and the
    :func:`cleanup_pnm4d` driver.
"""

from .config import CleanupConfig
from .model import VolumeSeries
from .regression import RegressionEngine, clean_slice, glm_cleanup
from .io import cleanup_pnm4d, load_regressor_matrix, read_regressor, read_volume, write_volume

__all__ = [
    'CleanupConfig',
    'VolumeSeries',
    'RegressionEngine',
    'clean_slice',
    'glm_cleanup',
    'cleanup_pnm4d',
    'load_regressor_matrix',
    'read_regressor',
    'read_volume',
    'write_volume',
]
