'''
marscal
=======
Radiometric calibration of Mars 2020 Navcam and Hazcam raw images:
    decompand -> debayer -> mask -> flat field -> colour weights -> normalize -> trim
'''

from .instrument import Instrument, CalFileType, instrument_from_filename
from .profiles import CalibrationProfile, DebayerMethod, WeightOverrides, load_profile
from .frame import RawFrame, FrameMetadata, CalibratedFrame
from .decompanding import DecompandingTable, default_tables, load_table
from .cache import Artifact, CalibrationArtifactCache
from .calibfile import CalibrationFileResolver
from .stages import FlatFieldRule
from .pipeline import CalibrationPipeline, CalibrationOutcome, OutcomeStatus, PipelineState, run_batch, summarize
from .errors import (
    CalibrationError, MissingCalibrationArtifact, MissingOrInvalidLUT,
    AlignmentError, InputNotFound, OutputPathNotWritable,
)

__version__ = '0.1.0'

__all__ = [
    'Instrument', 'CalFileType', 'instrument_from_filename',
    'CalibrationProfile', 'DebayerMethod', 'WeightOverrides', 'load_profile',
    'RawFrame', 'FrameMetadata', 'CalibratedFrame',
    'DecompandingTable', 'default_tables', 'load_table',
    'Artifact', 'CalibrationArtifactCache', 'CalibrationFileResolver',
    'FlatFieldRule',
    'CalibrationPipeline', 'CalibrationOutcome', 'OutcomeStatus', 'PipelineState', 'run_batch', 'summarize',
    'CalibrationError', 'MissingCalibrationArtifact', 'MissingOrInvalidLUT',
    'AlignmentError', 'InputNotFound', 'OutputPathNotWritable',
]
