"""
pnmclean
========

This package removes cardiac and respiratory noise from functional MRI
data using a physiological noise model (PNM).  It covers the steps
around the external regressor toolbox:

* ``physio`` – reading PMU recordings, identifying the cardiac and
  respiratory channels, aligning them with the scan and writing the
  trigger file the toolbox expects.
* ``glm`` – slice-wise regression of the toolbox's EV images out of the
  4D functional data while preserving each voxel's mean.
* ``errors`` – the exception hierarchy shared by both stages.

A typical run looks like::

    from pnmclean.physio import SyncConfig, generate_trigger_file
    from pnmclean.glm import cleanup_pnm4d

    cfg = SyncConfig(sampling_rate=400, tr_ms=2000)
    generate_trigger_file('run.puls', 'run.resp', '134512.125',
                          'nt.txt', 'trigger.txt', cfg)
    # ... run pnm_stage1 / pnm_evs on trigger.txt ...
    cleanup_pnm4d('bold.nii.gz', 'pnm_regressors', n_evs=32)
"""

from .errors import (
    AlignmentError,
    DimensionMismatchError,
    MissingResourceError,
    ParseError,
    PNMError,
)
from .physio import (
    AcquisitionTimeline,
    ClassifierConfig,
    FrequencyClassifier,
    PhysiologicalTrace,
    SyncConfig,
    SyncResult,
    TraceFormat,
    TriggerSynchronizer,
    generate_trigger_file,
    identify_signals,
)
from .glm import CleanupConfig, RegressionEngine, VolumeSeries, cleanup_pnm4d

__version__ = '0.1.0'

__all__ = [
    'PNMError',
    'ParseError',
    'AlignmentError',
    'DimensionMismatchError',
    'MissingResourceError',
    'AcquisitionTimeline',
    'ClassifierConfig',
    'FrequencyClassifier',
    'PhysiologicalTrace',
    'SyncConfig',
    'SyncResult',
    'TraceFormat',
    'TriggerSynchronizer',
    'generate_trigger_file',
    'identify_signals',
    'CleanupConfig',
    'RegressionEngine',
    'VolumeSeries',
    'cleanup_pnm4d',
]
