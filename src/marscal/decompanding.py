# marscal decompanding

'''
Inverse lookup tables ( ILT ) for the onboard 12 to 8 bit companding.

The engineering cameras downlink 8-bit samples produced by a square-root
companding curve. Decompanding maps every 8-bit value back to its linear value
through a 256 entry table.
'''

import logging

import numpy as np

from .errors import MissingOrInvalidLUT
from .instrument import Instrument

logger = logging.getLogger( __name__ )

TABLE_SIZE = 256


class DecompandingTable:

    '''
    256 entry map from companded value to linear value, validated non-decreasing
    '''

    def __init__( self, values ):

        values = np.array( values, dtype=np.float64 ).ravel()

        if values.shape != ( TABLE_SIZE, ):
            raise MissingOrInvalidLUT( 'decompanding table needs {} entries, got {}'.format( TABLE_SIZE, values.size ) )
        if not np.all( np.isfinite( values ) ):
            raise MissingOrInvalidLUT( 'decompanding table has non-finite entries' )
        if np.any( np.diff( values ) < 0 ):
            bad = int( np.argmax( np.diff( values ) < 0 ) )
            raise MissingOrInvalidLUT( 'decompanding table decreases between entries {} and {}'.format( bad, bad + 1 ) )

        self.values = values
        self.values.setflags( write=False )

    def max( self ):
        return float( self.values[-1] )

    def __getitem__( self, v ):
        return float( self.values[ v ] )

    def __len__( self ):
        return TABLE_SIZE

    def lookup( self, image ):
        '''replace every sample with its linear value, samples are rounded and clipped to 0..255'''
        index = np.clip( np.rint( image ), 0, TABLE_SIZE - 1 ).astype( np.intp )
        return self.values[ index ].astype( np.float32 )

    @classmethod
    def identity( cls ):
        return cls( np.arange( TABLE_SIZE ) )

    @classmethod
    def square_root( cls, max_value=4095 ):
        '''inverse of the square root companding curve, v -> v^2 * max / 255^2'''
        v = np.arange( TABLE_SIZE, dtype=np.float64 )
        return cls( np.rint( v**2 * max_value / ( TABLE_SIZE - 1 )**2 ) )


def load_table( path ):

    '''
    load_table reads 256 numbers from a text file, separated by commas or whitespace
    '''

    try:
        with open( path ) as file:
            text = file.read()
    except OSError as e:
        raise MissingOrInvalidLUT( 'cannot read decompanding table {}: {}'.format( path, e ) ) from e

    try:
        values = [ float( token ) for token in text.replace( ',', ' ' ).split() ]
    except ValueError as e:
        raise MissingOrInvalidLUT( 'decompanding table {} is not numeric: {}'.format( path, e ) ) from e

    return DecompandingTable( values )


def default_tables():
    '''square root ILT for all Mars 2020 engineering cameras ( 12-bit sensors )'''
    ilt = DecompandingTable.square_root( 4095 )
    return { instrument : ilt for instrument in Instrument }


def decompand( image, table ):
    '''returns the linearized image and the table's maximum linear value'''
    return table.lookup( image ), table.max()


def decompand_frame( frame, instrument, tables, apply_ilt=True, bit_depth=8 ):

    '''
    decompand_frame runs the decompanding stage on a RawFrame in place

    Returns the data maximum later used for correlated normalization. A missing
    table is not an error: the frame is left as is and 255 is assumed. Frames
    decoded from deeper sources are already linear and report their own range.
    '''

    if bit_depth != 8:
        logger.debug( 'source is %d-bit, nothing to decompand', bit_depth )
        return float( 2**bit_depth - 1 )

    if not apply_ilt:
        return 255.0

    table = tables.get( instrument ) if tables else None
    if table is None:
        raise MissingOrInvalidLUT( 'no decompanding table registered for {}'.format( instrument.name ) )

    logger.debug( 'Decompanding...' )
    frame.image, data_max = decompand( frame.image, table )
    return data_max
