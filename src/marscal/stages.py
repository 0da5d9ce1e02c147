# marscal calibration stages

'''
Pixel stages applied after decompanding and debayering: mask, flat field,
colour weights, 16-bit normalization and border trim. Every stage works on a
RawFrame in place and returns it.
'''

import enum
import logging

import numpy as np

logger = logging.getLogger( __name__ )

# a mask pixel is valid only above this value ( 0..255 scale ), so resampled
# edges fall on the invalid side
MASK_THRESHOLD = 200.0

OUTPUT_MAX = 65535.0

BORDER = 2


# Mask

def binarize_mask( mask, scale=255.0 ):
    '''
    1.0 where the mask value exceeds the threshold, 0.0 elsewhere; uses band 0 of a colour mask

    scale is the full-valid value of the input mask. The result is a mask on
    scale 1.0, so binarizing it again needs scale=1.0 to give the same mask;
    with the default scale every 0/1 value falls under the threshold.
    '''
    if mask.ndim == 3:
        mask = mask[:,:,0]
    return np.float32( mask > MASK_THRESHOLD * scale / 255.0 )


def apply_mask( frame, mask ):

    '''
    apply_mask zeroes every band where the binarized mask is invalid

    The binarized mask is also folded into the frame's validity channel so the
    masked pixels end up transparent in the product.
    '''

    valid = binarize_mask( mask )

    if frame.is_grayscale:
        frame.image = frame.image * valid
    else:
        frame.image = frame.image * valid[:,:,np.newaxis]

    frame.alpha = valid if frame.alpha is None else frame.alpha * valid
    return frame


# Flat field

class FlatFieldRule( enum.Enum ):

    DIVIDE   = 'divide'       # flat holds the sensor response
    MULTIPLY = 'multiply'     # flat holds the gain correction


def combine_flat( band, flat_band, rule=FlatFieldRule.DIVIDE ):

    '''
    combine_flat corrects one band with one flat field band

    DIVIDE divides by the flat and rescales by the flat's mean so the overall
    level is kept; pixels where the flat is not positive come out as 0.
    MULTIPLY applies the flat as a per-pixel gain.
    '''

    if rule == FlatFieldRule.MULTIPLY:
        return np.float32( band * flat_band )

    positive = flat_band > 0
    if not np.any( positive ):
        return np.zeros_like( band )

    mean = flat_band[ positive ].mean()
    out  = np.zeros_like( band )
    np.divide( band, flat_band, out=out, where=positive )
    return np.float32( out * mean )


def apply_flat( frame, flat, rule=FlatFieldRule.DIVIDE ):

    '''
    apply_flat corrects each band of the frame with the co-registered flat

    A single band flat is applied to every band, a colour flat band by band.
    '''

    logger.debug( 'Flatfielding...' )

    if frame.is_grayscale:
        flat_band   = flat if flat.ndim == 2 else flat[:,:,1]
        frame.image = combine_flat( frame.image, flat_band, rule )
        return frame

    bands = []
    for i in range( frame.num_bands ):
        flat_band = flat if flat.ndim == 2 else flat[:,:,i]
        bands.append( combine_flat( frame.image[:,:,i], flat_band, rule ) )
    frame.image = np.stack( bands, axis=-1 )
    return frame


# Colour weights

def apply_weights( frame, red=1.0, green=1.0, blue=1.0 ):
    '''multiply bands 0/1/2 by the red/green/blue scalars, grayscale frames are left alone'''

    if frame.is_grayscale:
        return frame

    logger.debug( 'Applying color weights %.3f %.3f %.3f...', red, green, blue )
    frame.image = frame.image * np.array( [ red, green, blue ], dtype=np.float32 )
    return frame


# Normalization

def normalize_correlated( frame, data_max ):
    '''one scale for every band: data_max maps to the top of the 16-bit range'''

    logger.debug( 'Normalizing with correlated colors...' )
    data_max    = float( data_max ) if data_max > 0 else 255.0
    frame.image = np.clip( np.float64( frame.image ) * OUTPUT_MAX / data_max, 0, OUTPUT_MAX ).astype( np.float32 )
    return frame


def stretch_band( band ):
    lo, hi = float( band.min() ), float( band.max() )
    if hi <= lo:
        return np.zeros_like( band )
    return np.float32( ( band - lo ) / ( hi - lo ) * OUTPUT_MAX )


def normalize_decorrelated( frame ):
    '''every band of a colour frame stretched on its own min..max to the 16-bit range'''

    logger.debug( 'Normalizing with decorrelated colors...' )
    frame.image = np.stack( [ stretch_band( frame.image[:,:,i] ) for i in range( frame.num_bands ) ], axis=-1 )
    return frame


def normalize( frame, data_max=255.0, decorrelate=False ):
    '''decorrelate only applies to colour frames, a single band always takes the correlated scale'''
    if decorrelate and not frame.is_grayscale:
        return normalize_decorrelated( frame )
    return normalize_correlated( frame, data_max )


# Border trim

def trim_eligible( metadata ):
    return metadata.scale_factor == 1 and metadata.subframe_rect is not None


def trim_border( frame, metadata, border=BORDER ):

    '''
    trim_border removes the edge pixels of a full resolution subframe

    Returns the frame and the metadata with the subframe rect moved in by the
    border on every side. Frames that are downsampled, have no rect or are too
    small to trim are returned unchanged.
    '''

    if not trim_eligible( metadata ):
        return frame, metadata

    if frame.height <= 2*border or frame.width <= 2*border:
        logger.warning( 'frame of %dx%d is too small to trim', frame.width, frame.height )
        return frame, metadata

    frame.image = frame.image[ border:-border, border:-border ]
    if frame.alpha is not None:
        frame.alpha = frame.alpha[ border:-border, border:-border ]

    x, y, w, h = metadata.subframe_rect
    return frame, metadata.with_rect( ( x + border, y + border, w - 2*border, h - 2*border ) )
