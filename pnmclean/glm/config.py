"""Configuration for slice-wise physiological noise regression."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CleanupConfig:
    """Options for :class:`~pnmclean.glm.regression.RegressionEngine`.

    Attributes
    ----------
    n_jobs : int, optional
        Number of worker threads used to process slices.  ``1`` (the
        default) processes slices serially.
    ev_prefix : str, optional
        File name prefix of the EV images, ``'pnmev'`` as written by
        FSL ``pnm_evs``.
    ev_digits : int, optional
        Zero padding of the EV index in the file name
        (``pnmev001``).  Defaults to 3.
    output_name : str, optional
        File name of the cleaned 4D image written by
        :func:`~pnmclean.glm.io.cleanup_pnm4d`.
    output_dtype : str, optional
        On-disk data type of the cleaned image.  Defaults to
        ``'float32'``.
    """

    n_jobs: int = 1
    ev_prefix: str = 'pnmev'
    ev_digits: int = 3
    output_name: str = 'res4d_new.nii.gz'
    output_dtype: str = 'float32'

    def validate(self) -> None:
        if self.n_jobs < 1:
            raise ValueError("n_jobs must be at least 1")
        if self.ev_digits < 1:
            raise ValueError("ev_digits must be at least 1")
        if not self.output_name:
            raise ValueError("output_name must not be empty")

    def ev_name(self, index: int) -> str:
        """Base file name of the 1-based EV ``index``, e.g. ``pnmev001``."""
        return f"{self.ev_prefix}{index:0{self.ev_digits}d}"
