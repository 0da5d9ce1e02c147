# marscal calibration file lookup

'''
Locates flat field and mask files on disk.

File names are templates holding the literal marker -scalefactor- which the
artifact cache replaces with sf1, sf2, ... for the frame's scale factor.
'''

import glob
import logging
import os

from .errors import MissingCalibrationArtifact
from .instrument import CalFileType, Instrument

logger = logging.getLogger( __name__ )

SCALE_FACTOR_MARKER = '-scalefactor-'

CALIBRATION_FILES = {
    ( Instrument.M20_NAVCAM_LEFT,     CalFileType.FLAT_FIELD ) : 'M20_NL_FLAT_-scalefactor-_V1.png',
    ( Instrument.M20_NAVCAM_RIGHT,    CalFileType.FLAT_FIELD ) : 'M20_NR_FLAT_-scalefactor-_V1.png',
    ( Instrument.M20_FRONT_HAZ_LEFT,  CalFileType.FLAT_FIELD ) : 'M20_FL_FLAT_-scalefactor-_V1.png',
    ( Instrument.M20_FRONT_HAZ_RIGHT, CalFileType.FLAT_FIELD ) : 'M20_FR_FLAT_-scalefactor-_V1.png',
    ( Instrument.M20_REAR_HAZ_LEFT,   CalFileType.FLAT_FIELD ) : 'M20_RL_FLAT_-scalefactor-_V1.png',
    ( Instrument.M20_REAR_HAZ_RIGHT,  CalFileType.FLAT_FIELD ) : 'M20_RR_FLAT_-scalefactor-_V1.png',
    ( Instrument.M20_NAVCAM_LEFT,     CalFileType.MASK       ) : 'M20_NL_MASK_-scalefactor-_V1.png',
    ( Instrument.M20_NAVCAM_RIGHT,    CalFileType.MASK       ) : 'M20_NR_MASK_-scalefactor-_V1.png',
    ( Instrument.M20_FRONT_HAZ_LEFT,  CalFileType.MASK       ) : 'M20_FL_MASK_-scalefactor-_V1.png',
    ( Instrument.M20_FRONT_HAZ_RIGHT, CalFileType.MASK       ) : 'M20_FR_MASK_-scalefactor-_V1.png',
    ( Instrument.M20_REAR_HAZ_LEFT,   CalFileType.MASK       ) : 'M20_RL_MASK_-scalefactor-_V1.png',
    ( Instrument.M20_REAR_HAZ_RIGHT,  CalFileType.MASK       ) : 'M20_RR_MASK_-scalefactor-_V1.png',
}

SYSTEM_DATA_DIR = '/usr/share/mars_raw_utils/data'


def search_dirs( extra_dirs=() ):
    '''explicit directories, then $MARS_RAW_DATA, ~/.marsdata and the system data directory'''

    dirs = list( extra_dirs )
    if os.environ.get( 'MARS_RAW_DATA' ):
        dirs.append( os.environ['MARS_RAW_DATA'] )
    dirs.append( os.path.join( os.path.expanduser( '~' ), '.marsdata' ) )
    dirs.append( SYSTEM_DATA_DIR )
    return dirs


def scale_factor_path( template, scale_factor ):
    return template.replace( SCALE_FACTOR_MARKER, 'sf{}'.format( scale_factor ) )


class CalibrationFileResolver:

    '''
    resolve( instrument, cal_type ) -> path template in the first data directory holding that calibration file
    '''

    def __init__( self, extra_dirs=(), files=None ):
        self.extra_dirs = list( extra_dirs )
        self.files      = CALIBRATION_FILES if files is None else files

    def resolve( self, instrument, cal_type ):

        try:
            template = self.files[ ( instrument, cal_type ) ]
        except KeyError:
            raise MissingCalibrationArtifact(
                'no {} file defined for {}'.format( cal_type.value, instrument.name ) ) from None

        pattern = template.replace( SCALE_FACTOR_MARKER, 'sf*' )
        for directory in search_dirs( self.extra_dirs ):
            if glob.glob( os.path.join( glob.escape( directory ), pattern ) ):
                return os.path.join( directory, template )

        raise MissingCalibrationArtifact(
            '{} file {} not found for {}'.format( cal_type.value, template, instrument.name ) )
