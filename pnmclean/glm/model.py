"""
pnmclean.glm.model
==================

Container for 4D imaging data passed into and out of the regression
engine.  The cleaned result is a new :class:`VolumeSeries` carrying the
input's scale factors and affine, so it can be written back in the
same space.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

import numpy as np


@dataclass
class VolumeSeries:
    """A 4D (x, y, z, time) image.

    Attributes
    ----------
    data : np.ndarray
        Array of shape (X, Y, Z, T).
    scales : tuple of float
        Per-axis scale factors: voxel sizes for the spatial axes and the
        repetition time for the last axis (NIfTI zooms).
    affine : np.ndarray | None
        4×4 voxel-to-world transform, if known.
    """

    data: np.ndarray
    scales: Tuple[float, ...] = (1.0, 1.0, 1.0, 1.0)
    affine: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.data = np.asarray(self.data)
        if self.data.ndim != 4:
            raise ValueError(f"volume data must be 4D, got shape {self.data.shape}")
        self.scales = tuple(float(s) for s in self.scales)

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self.data.shape)

    @property
    def n_slices(self) -> int:
        return int(self.data.shape[2])

    @property
    def n_timepoints(self) -> int:
        return int(self.data.shape[3])

    def with_data(self, data: np.ndarray) -> 'VolumeSeries':
        """Return a new series sharing scales and affine but holding ``data``."""
        return replace(self, data=data)
