# marscal debayer

'''
Colour filter array reconstruction for single band ( mosaiced ) frames.
'''

import logging

import numpy as np
import colour_demosaicing

from .profiles import DebayerMethod

logger = logging.getLogger( __name__ )

# the Mars 2020 engineering cameras use an RGGB Bayer layout
CFA_PATTERN = 'RGGB'

DEMOSAICERS = {
    DebayerMethod.BILINEAR   : colour_demosaicing.demosaicing_CFA_Bayer_bilinear,
    DebayerMethod.MALVAR2004 : colour_demosaicing.demosaicing_CFA_Bayer_Malvar2004,
    DebayerMethod.MENON2007  : colour_demosaicing.demosaicing_CFA_Bayer_Menon2007,
}


def debayer( image, method=DebayerMethod.MALVAR2004 ):

    '''
    debayer returns a ( H, W, 3 ) float32 image from a 2D mosaiced image
    '''

    if method == DebayerMethod.STACK:
        return np.stack( [ image, image, image ], axis=-1 ).astype( np.float32 )

    demosaic = DEMOSAICERS[ DebayerMethod( method ) ]
    return np.float32( demosaic( image, CFA_PATTERN ) )


def debayer_frame( frame, method=DebayerMethod.MALVAR2004 ):
    '''no-op for frames that already carry three bands'''

    if not frame.is_grayscale:
        return frame

    logger.debug( 'Debayering with %s...', DebayerMethod( method ).value )
    frame.image = debayer( frame.image, method )
    return frame
