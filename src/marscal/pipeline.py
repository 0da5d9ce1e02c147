# marscal pipeline

'''
Per-image calibration pipeline for the Mars 2020 engineering cameras and the
batch driver that runs it over a list of raw files.

Stage order is fixed:
    decompand -> debayer -> mask -> flat field -> colour weights -> normalize -> trim -> save
Missing calibration data turns the affected stage into a no-op; only I/O
errors fail a file.
'''

import collections
import enum
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional

from .align import align_artifact
from .cache import CalibrationArtifactCache
from .debayer import debayer_frame
from .decompanding import decompand_frame, default_tables
from .errors import AlignmentError, InputNotFound, MissingOrInvalidLUT, OutputPathNotWritable
from .frame import CalibratedFrame
from .frameio import open_frame, save_frame, save_metadata
from .instrument import CalFileType, instrument_from_filename
from .stages import FlatFieldRule, apply_flat, apply_mask, apply_weights, normalize, trim_border

logger = logging.getLogger( __name__ )


class PipelineState( enum.Enum ):

    NOT_STARTED = 'not_started'
    DECOMPANDED = 'decompanded'
    DEBAYERED   = 'debayered'
    MASKED      = 'masked'
    FLATFIELDED = 'flatfielded'
    WEIGHTED    = 'weighted'
    NORMALIZED  = 'normalized'
    TRIMMED     = 'trimmed'
    SAVED       = 'saved'
    DONE        = 'done'
    SKIPPED     = 'skipped'
    FAILED      = 'failed'


class OutcomeStatus( enum.Enum ):

    DONE    = 'done'
    SKIPPED = 'skipped'
    FAILED  = 'failed'


@dataclass
class CalibrationOutcome:
    input_file: str
    status: OutcomeStatus
    output_file: Optional[str] = None
    profile: Optional[str] = None
    reason: Optional[str] = None
    states: List[PipelineState] = field( default_factory=list )
    degraded: List[str] = field( default_factory=list )


def output_path( input_file, suffix, output_dir=None ):
    '''<output_dir>/<stem>-<suffix>.png, output_dir defaults to the input's directory'''

    directory = output_dir if output_dir else os.path.dirname( input_file )
    stem      = os.path.splitext( os.path.basename( input_file ) )[0]
    return os.path.join( directory, '{}-{}.png'.format( stem, suffix ) )


def write_product( calibrated, path ):

    '''
    write_product writes the metadata sidecar and then the product PNG

    The PNG is what marks a file as done, so it only appears once its sidecar is on disk.
    '''

    json_path = save_metadata( calibrated.metadata, path )
    try:
        save_frame( calibrated, path )
    except OSError:
        if os.path.exists( json_path ):
            os.remove( json_path )
        raise


class CalibrationPipeline:

    '''
    Calibrates raw frames with one CalibrationProfile.

    The artifact cache is shared with every other pipeline handed the same
    object; tables maps Instrument -> DecompandingTable and defaults to the
    built-in square root ILTs.
    '''

    def __init__( self, profile, cache=None, tables=None, output_dir=None, only_new=False,
                  histogram=False, flat_rule=FlatFieldRule.DIVIDE, reader=open_frame, writer=write_product ):

        self.profile    = profile
        self.cache      = cache if cache is not None else CalibrationArtifactCache()
        self.tables     = tables if tables is not None else default_tables()
        self.output_dir = output_dir
        self.only_new   = only_new
        self.histogram  = histogram
        self.flat_rule  = flat_rule
        self.reader     = reader
        self.writer     = writer
        self._cancelled = threading.Event()

    def cancel( self ):
        self._cancelled.set()

    @property
    def cancelled( self ):
        return self._cancelled.is_set()

    def output_path( self, input_file ):
        return output_path( input_file, self.profile.filename_suffix, self.output_dir )

    def aligned_artifact( self, instrument, cal_type, frame, metadata, degraded ):

        artifact = self.cache.get( instrument, cal_type, metadata.scale_factor )
        if artifact.is_absent:
            logger.warning( 'no %s for %s: %s', cal_type.value, instrument.name, artifact.reason )
            degraded.append( '{}: {}'.format( cal_type.value, artifact.reason ) )
            return None

        try:
            return align_artifact( artifact.image, frame.image.shape, metadata.subframe_rect, metadata.scale_factor )
        except AlignmentError as e:
            logger.warning( 'skipping %s for %s: %s', cal_type.value, instrument.name, e )
            degraded.append( '{}: {}'.format( cal_type.value, e ) )
            return None

    def calibrate( self, frame, metadata, instrument, states=None ):

        '''
        calibrate runs every stage on a copy of the frame and returns a CalibratedFrame, no I/O
        '''

        states   = states if states is not None else []
        degraded = []
        profile  = self.profile
        frame    = frame.copy()

        try:
            data_max = decompand_frame( frame, instrument, self.tables, profile.apply_ilt, metadata.bit_depth_source )
        except MissingOrInvalidLUT as e:
            logger.warning( '%s, skipping decompanding', e )
            degraded.append( 'ilt: {}'.format( e ) )
            data_max = 255.0
        states.append( PipelineState.DECOMPANDED )

        debayer_frame( frame, profile.debayer_method )
        states.append( PipelineState.DEBAYERED )

        mask = self.aligned_artifact( instrument, CalFileType.MASK, frame, metadata, degraded )
        if mask is not None:
            apply_mask( frame, mask )
        states.append( PipelineState.MASKED )

        flat = self.aligned_artifact( instrument, CalFileType.FLAT_FIELD, frame, metadata, degraded )
        if flat is not None:
            apply_flat( frame, flat, self.flat_rule )
        states.append( PipelineState.FLATFIELDED )

        apply_weights( frame, *profile.weights )
        states.append( PipelineState.WEIGHTED )

        normalize( frame, data_max, profile.decorrelate_color )
        states.append( PipelineState.NORMALIZED )

        frame, metadata = trim_border( frame, metadata )
        states.append( PipelineState.TRIMMED )

        return CalibratedFrame( frame, metadata, data_max, degraded )

    def process_file( self, input_file ):

        states   = [ PipelineState.NOT_STARTED ]
        out_file = self.output_path( input_file )
        outcome  = CalibrationOutcome( input_file, OutcomeStatus.FAILED, out_file, self.profile.name, states=states )

        if self.only_new and os.path.exists( out_file ):
            logger.info( 'Output file exists, skipping. (%s)', out_file )
            states.append( PipelineState.SKIPPED )
            outcome.status = OutcomeStatus.SKIPPED
            outcome.reason = 'output exists'
            return outcome

        instrument = instrument_from_filename( input_file )
        logger.debug( 'Processing File: %s as %s', input_file, instrument.name )

        try:
            frame, metadata = self.reader( input_file )
        except InputNotFound as e:
            return self._failed( outcome, str( e ) )
        except ( OSError, ValueError, TypeError, KeyError ) as e:
            return self._failed( outcome, 'cannot read {}: {}'.format( input_file, e ) )

        calibrated       = self.calibrate( frame, metadata, instrument, states )
        outcome.degraded = calibrated.degraded

        logger.debug( 'Writing to disk...' )
        try:
            self.writer( calibrated, out_file )
        except OSError as e:
            return self._failed( outcome, 'cannot write {}: {}'.format( out_file, e ) )
        states.append( PipelineState.SAVED )

        if self.histogram:
            from .plots import plot_band_histograms
            hist_file = os.path.splitext( out_file )[0] + '-hist.png'
            try:
                plot_band_histograms( calibrated.frame, hist_file )
            except OSError as e:
                logger.warning( 'cannot write histogram %s: %s', hist_file, e )
                outcome.degraded.append( 'histogram: {}'.format( e ) )

        states.append( PipelineState.DONE )
        outcome.status = OutcomeStatus.DONE
        return outcome

    def _failed( self, outcome, reason ):
        logger.error( reason )
        outcome.states.append( PipelineState.FAILED )
        outcome.status = OutcomeStatus.FAILED
        outcome.reason = reason
        return outcome


def check_output_dir( path ):

    '''
    check_output_dir creates the output directory when needed and makes sure it can be written
    '''

    try:
        os.makedirs( path, exist_ok=True )
    except OSError as e:
        raise OutputPathNotWritable( 'cannot create output directory {}: {}'.format( path, e ) ) from e

    if not os.path.isdir( path ) or not os.access( path, os.W_OK ):
        raise OutputPathNotWritable( 'output directory is not writable: {}'.format( path ) )


def run_batch( pipeline, input_files, threads=1 ):

    '''
    run_batch calibrates every input file and returns the outcomes in input order

    The output directory is checked once up front and a failure aborts the run
    with OutputPathNotWritable. A failing file does not stop the others. After
    pipeline.cancel() files that have not started are reported as skipped.
    '''

    if pipeline.output_dir:
        check_output_dir( pipeline.output_dir )
    else:
        for directory in sorted( { os.path.dirname( pipeline.output_path( f ) ) or '.' for f in input_files if os.path.isfile( f ) } ):
            check_output_dir( directory )

    logger.info( '%d images', len( input_files ) )

    def run_one( input_file ):
        if pipeline.cancelled:
            return CalibrationOutcome( input_file, OutcomeStatus.SKIPPED, pipeline.output_path( input_file ),
                                       pipeline.profile.name, 'cancelled', [ PipelineState.NOT_STARTED, PipelineState.SKIPPED ] )
        return pipeline.process_file( input_file )

    with ThreadPoolExecutor( max_workers=max( int( threads ), 1 ) ) as pool:
        return list( pool.map( run_one, input_files ) )


def summarize( outcomes ):
    '''count of outcomes per status, every status present'''
    counts = collections.Counter( outcome.status for outcome in outcomes )
    return { status : counts.get( status, 0 ) for status in OutcomeStatus }
