# marscal frames

'''
In-memory image buffers passed between the calibration stages.

Pixel data follow the numpy ( rows, columns [, bands] ) layout: a mosaiced or
grayscale frame is a 2D array, a colour frame is ( height, width, 3 ).
'''

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

import numpy as np


SubframeRect = Tuple[ int, int, int, int ]


@dataclass( frozen=True )
class FrameMetadata:
    '''
    scale_factor : on-instrument downsampling relative to the full sensor, >= 1
    subframe_rect : ( x, y, width, height ) in 1-based full-sensor pixels, None for a full frame
    bit_depth_source : bit depth of the decoded input samples
    '''
    scale_factor: int = 1
    subframe_rect: Optional[SubframeRect] = None
    bit_depth_source: int = 8

    def __post_init__( self ):
        if int( self.scale_factor ) < 1:
            raise ValueError( 'scale_factor must be >= 1, got {}'.format( self.scale_factor ) )
        object.__setattr__( self, 'scale_factor', int( self.scale_factor ) )

        if self.subframe_rect is not None:
            if len( self.subframe_rect ) != 4:
                raise ValueError( 'subframe_rect needs 4 values, got {}'.format( self.subframe_rect ) )
            object.__setattr__( self, 'subframe_rect', tuple( int( round( v ) ) for v in self.subframe_rect ) )

    def with_rect( self, rect ):
        return replace( self, subframe_rect=rect )

    def to_dict( self ):
        return {
            'scale_factor'     : self.scale_factor,
            'subframe_rect'    : list( self.subframe_rect ) if self.subframe_rect is not None else None,
            'bit_depth_source' : self.bit_depth_source,
        }


@dataclass
class RawFrame:
    '''
    image : float32 working buffer, 2D for one band or ( H, W, 3 )
    alpha : optional validity channel, 1.0 valid / 0.0 invalid, ( H, W )
    '''
    image: np.ndarray
    alpha: Optional[np.ndarray] = None

    def __post_init__( self ):
        self.image = np.asarray( self.image, dtype=np.float32 )
        if self.image.ndim == 3 and self.image.shape[2] == 1:
            self.image = self.image[:,:,0]
        if self.image.ndim not in ( 2, 3 ) or ( self.image.ndim == 3 and self.image.shape[2] != 3 ):
            raise ValueError( 'expected a 1 or 3 band image, got shape {}'.format( self.image.shape ) )
        if self.alpha is not None:
            self.alpha = np.asarray( self.alpha, dtype=np.float32 )
            if self.alpha.shape != self.image.shape[:2]:
                raise ValueError( 'alpha shape {} does not match image {}'.format( self.alpha.shape, self.image.shape[:2] ) )

    @property
    def height( self ):
        return self.image.shape[0]

    @property
    def width( self ):
        return self.image.shape[1]

    @property
    def num_bands( self ):
        return 1 if self.image.ndim == 2 else self.image.shape[2]

    @property
    def is_grayscale( self ):
        return self.num_bands == 1

    def copy( self ):
        return RawFrame( self.image.copy(), None if self.alpha is None else self.alpha.copy() )


@dataclass
class CalibratedFrame:
    '''pipeline output: 16-bit range float data plus the updated metadata'''
    frame: RawFrame
    metadata: FrameMetadata
    data_max: float = 255.0
    degraded: list = field( default_factory=list )

    @property
    def image( self ):
        return self.frame.image

    def to_uint16( self ):
        return np.clip( np.rint( self.frame.image ), 0, 65535 ).astype( np.uint16 )
