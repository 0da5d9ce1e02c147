# marscal geometric alignment

'''
Cropping full-sensor calibration artifacts onto a raw frame's subframe window.
'''

import logging

from .errors import AlignmentError

logger = logging.getLogger( __name__ )


def crop_window( subframe_rect, scale_factor=1 ):

    '''
    crop_window converts a 1-based full-sensor rect into a 0-based ( x, y, width, height ) window at the scale factor
    '''

    x, y, w, h = subframe_rect
    sf = int( scale_factor )
    return ( ( x - 1 ) // sf, ( y - 1 ) // sf, w // sf, h // sf )


def crop( image, x, y, width, height ):

    rows, cols = image.shape[:2]
    if x < 0 or y < 0 or width <= 0 or height <= 0 or x + width > cols or y + height > rows:
        raise AlignmentError( 'crop window [{}, {}, {}, {}] does not fit a {}x{} image'.format(
            x, y, width, height, cols, rows ) )
    return image[ y:y+height, x:x+width ]


def align_artifact( artifact_image, frame_shape, subframe_rect=None, scale_factor=1 ):

    '''
    align_artifact returns the part of the artifact that sits under the raw frame

    Without a subframe rect the artifact is taken as is. Either way the result
    must match the frame's height and width, otherwise AlignmentError is raised;
    artifacts are never padded or truncated to fit.
    '''

    if subframe_rect is not None:
        window  = crop_window( subframe_rect, scale_factor )
        aligned = crop( artifact_image, *window )
        logger.debug( 'artifact cropped to %dx%d', aligned.shape[1], aligned.shape[0] )
    else:
        aligned = artifact_image

    if aligned.shape[:2] != tuple( frame_shape[:2] ):
        raise AlignmentError( 'artifact of {}x{} does not match the {}x{} frame'.format(
            aligned.shape[1], aligned.shape[0], frame_shape[1], frame_shape[0] ) )
    return aligned
