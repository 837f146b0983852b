"""
pnmclean.physio
===============

This subpackage turns raw physiological monitoring unit (PMU)
recordings into the trigger file consumed by the physiological noise
model toolbox, and identifies which recorded channel is cardiac and
which is respiratory.

Modules
-------

config
    Dataclasses describing the PMU file layout, synchronisation
    parameters and the classification threshold.

model
    Dataclasses for decoded traces, the scan timeline and the
    synchronisation result.

parsing
    Readers for PMU log files, acquisition times and volume counts.

frequency
    Dominant-frequency estimation and cardiac/respiratory labelling.

trigger
    :class:`TriggerSynchronizer`, which aligns two traces and places
    one trigger per volume, and :func:`generate_trigger_file`.

io
    Reading and writing of three-column trigger files.
"""

from .config import ClassifierConfig, SyncConfig, TraceFormat
from .model import AcquisitionTimeline, ChannelIdentity, PhysiologicalTrace, SyncResult
from .parsing import parse_acquisition_time, parse_trace, read_trace, read_volume_count
from .frequency import FrequencyClassifier, classify_frequency, dominant_frequency, identify_signals
from .trigger import TriggerSynchronizer, generate_trigger_file, place_triggers
from .io import load_trigger_file, write_trigger_file

__all__ = [
    'ClassifierConfig',
    'SyncConfig',
    'TraceFormat',
    'AcquisitionTimeline',
    'ChannelIdentity',
    'PhysiologicalTrace',
    'SyncResult',
    'parse_acquisition_time',
    'parse_trace',
    'read_trace',
    'read_volume_count',
    'FrequencyClassifier',
    'classify_frequency',
    'dominant_frequency',
    'identify_signals',
    'TriggerSynchronizer',
    'generate_trigger_file',
    'place_triggers',
    'load_trigger_file',
    'write_trigger_file',
]
