# marscal command line

'''
marscal -i NLF_*.png -o calibrated/ -n

Calibrates Mars 2020 Navcam and Hazcam raw images.
'''

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from .cache import CalibrationArtifactCache
from .calibfile import CalibrationFileResolver
from .errors import OutputPathNotWritable
from .pipeline import CalibrationPipeline, OutcomeStatus, run_batch, summarize
from .profiles import DEFAULT_PROFILE, WeightOverrides, load_profile

logger = logging.getLogger( __name__ )


class CalibrationOptions( BaseModel ):
    '''settings gathered from the command line, validated before any file is touched'''

    profile: str = DEFAULT_PROFILE
    weights: WeightOverrides = WeightOverrides()
    raw_color: bool = False
    only_new: bool = False
    output_dir: Optional[str] = None
    threads: int = Field( default=1, ge=1 )
    histogram: bool = False
    calibration_dirs: List[str] = []


def create_parser():

    parser = argparse.ArgumentParser( prog='marscal', description='Calibrate Mars 2020 engineering camera raw images' )
    parser.add_argument( '-i', '--inputs', nargs='+', required=True, metavar='INPUT', help='Input raw images' )
    parser.add_argument( '-R', '--red',   help='Red weight' )
    parser.add_argument( '-G', '--green', help='Green weight' )
    parser.add_argument( '-B', '--blue',  help='Blue weight' )
    parser.add_argument( '-P', '--profile', default=DEFAULT_PROFILE, help='Calibration profile name or JSON file' )
    parser.add_argument( '-o', '--output-dir', help='Output directory, defaults to each input\'s directory' )
    parser.add_argument( '-t', '--threads', default=1, help='Number of worker threads' )
    parser.add_argument( '-c', '--caldir', nargs='+', default=[], help='Extra calibration data directories' )
    parser.add_argument( '-n', '--only-new', action='store_true', help='Only new images. Skip processed images.' )
    parser.add_argument( '-r', '--raw', action='store_true', help='Raw color, skip ILT' )
    parser.add_argument( '--histogram', action='store_true', help='Save a band histogram beside each output' )
    parser.add_argument( '-v', '--verbose', action='store_true', help='Show verbose output' )
    return parser


def options_from_args( args ):
    return CalibrationOptions(
        profile          = args.profile,
        weights          = WeightOverrides( red=args.red, green=args.green, blue=args.blue ),
        raw_color        = args.raw,
        only_new         = args.only_new,
        output_dir       = args.output_dir,
        threads          = args.threads,
        histogram        = args.histogram,
        calibration_dirs = args.caldir,
    )


def main( argv=None ):

    args = create_parser().parse_args( argv )

    logging.basicConfig(
        level  = logging.DEBUG if args.verbose else logging.INFO,
        format = '%(levelname)s %(name)s: %(message)s',
    )

    try:
        options = options_from_args( args )
        profile = load_profile( options.profile ).with_overrides( options.weights, options.raw_color )
    except ( ValidationError, ValueError ) as e:
        print( 'Error: {}'.format( e ), file=sys.stderr )
        return 1

    cache    = CalibrationArtifactCache( CalibrationFileResolver( options.calibration_dirs ) )
    pipeline = CalibrationPipeline(
        profile,
        cache      = cache,
        output_dir = options.output_dir,
        only_new   = options.only_new,
        histogram  = options.histogram,
    )

    try:
        outcomes = run_batch( pipeline, args.inputs, threads=options.threads )
    except OutputPathNotWritable as e:
        logger.error( str( e ) )
        return 2

    counts = summarize( outcomes )
    print( '{} done, {} skipped, {} failed'.format(
        counts[ OutcomeStatus.DONE ], counts[ OutcomeStatus.SKIPPED ], counts[ OutcomeStatus.FAILED ] ) )
    return 0
