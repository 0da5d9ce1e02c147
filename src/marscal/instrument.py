# marscal instruments

'''
Closed set of supported cameras and the filename convention that selects them.

Mars 2020 raw image names start with a two character camera code, e.g.
NLF_0100_0675123456_123ECM_N0040048NCAM00500_01_095J01.png is a left Navcam
frame. The first character picks the camera family, the second the side.
'''

import enum
import logging
import os

logger = logging.getLogger( __name__ )


class Instrument( enum.Enum ):

    M20_NAVCAM_LEFT     = 'M20_NAVCAM_LEFT'
    M20_NAVCAM_RIGHT    = 'M20_NAVCAM_RIGHT'
    M20_FRONT_HAZ_LEFT  = 'M20_FRONT_HAZ_LEFT'
    M20_FRONT_HAZ_RIGHT = 'M20_FRONT_HAZ_RIGHT'
    M20_REAR_HAZ_LEFT   = 'M20_REAR_HAZ_LEFT'
    M20_REAR_HAZ_RIGHT  = 'M20_REAR_HAZ_RIGHT'

    @property
    def stem( self ):
        '''two character camera code used for calibration file names and LUT keys'''
        return INSTRUMENT_STEMS[ self ]

    @property
    def is_left( self ):
        return self.stem[1] == 'L'


class CalFileType( enum.Enum ):

    FLAT_FIELD = 'flat'
    MASK       = 'mask'


# camera code for every instrument variant, the only place a variant maps to text
INSTRUMENT_STEMS = {
    Instrument.M20_NAVCAM_LEFT     : 'NL',
    Instrument.M20_NAVCAM_RIGHT    : 'NR',
    Instrument.M20_FRONT_HAZ_LEFT  : 'FL',
    Instrument.M20_FRONT_HAZ_RIGHT : 'FR',
    Instrument.M20_REAR_HAZ_LEFT   : 'RL',
    Instrument.M20_REAR_HAZ_RIGHT  : 'RR',
}

# camera family ( first filename character ) -> ( left, right )
FAMILIES = {
    'N' : ( Instrument.M20_NAVCAM_LEFT,    Instrument.M20_NAVCAM_RIGHT    ),
    'F' : ( Instrument.M20_FRONT_HAZ_LEFT, Instrument.M20_FRONT_HAZ_RIGHT ),
    'R' : ( Instrument.M20_REAR_HAZ_LEFT,  Instrument.M20_REAR_HAZ_RIGHT  ),
}

DEFAULT_INSTRUMENT = Instrument.M20_NAVCAM_RIGHT


def instrument_from_filename( path ):

    '''
    instrument_from_filename maps the camera code at the start of the file name to an Instrument

    Unknown families fall back to the right Navcam and any side other than 'L'
    is taken as the right camera of that family.
    '''

    filename = os.path.basename( str( path ) )

    if not filename or filename[0] not in FAMILIES:
        logger.debug( 'unrecognized camera code in %s, assuming %s', filename, DEFAULT_INSTRUMENT.name )
        return DEFAULT_INSTRUMENT

    left, right = FAMILIES[ filename[0] ]
    if len( filename ) > 1 and filename[1] == 'L':
        return left
    return right
