"""Readers and writers for trigger files.

A trigger file is the plain-text hand-off between trigger generation
and the external regressor toolbox: three tab separated columns
(cardiac sample, respiratory sample, trigger marker), one row per
aligned PMU sample, no header row.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from ..errors import MissingResourceError, ParseError
from .model import SyncResult

logger = logging.getLogger(__name__)


def write_trigger_file(data: SyncResult | np.ndarray, path: str | Path) -> Path:
    """Write a trigger matrix to ``path``.

    Parameters
    ----------
    data : SyncResult or np.ndarray
        Synchronisation result, or an ``(N, 3)`` array of cardiac,
        respiratory and trigger columns.
    path : str or Path
        Destination file.  Parent directories are created as needed.

    Returns
    -------
    Path
        The path written.
    """
    matrix = data.as_matrix() if isinstance(data, SyncResult) else np.asarray(data, dtype=float)
    if matrix.ndim != 2 or matrix.shape[1] != 3:
        raise ValueError("trigger matrix must have shape (N, 3)")
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(matrix.astype(float)).to_csv(
        out, sep='\t', header=False, index=False, float_format='%g', lineterminator='\n'
    )
    logger.info('Wrote %d trigger rows to %s', matrix.shape[0], out)
    return out


def load_trigger_file(path: str | Path) -> np.ndarray:
    """Load a whitespace delimited trigger file as a float array."""
    path = Path(path)
    if not path.is_file():
        raise MissingResourceError(f"trigger file not found: {path}")
    try:
        df = pd.read_csv(path, sep=r'\s+', header=None)
    except pd.errors.EmptyDataError as e:
        raise ParseError(f"{path}: empty trigger file") from e
    data = df.to_numpy(dtype=float)
    if data.shape[1] < 2:
        raise ParseError(f"{path}: expected at least two columns, found {data.shape[1]}")
    return data


__all__ = [
    'write_trigger_file',
    'load_trigger_file',
]
