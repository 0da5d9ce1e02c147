# marscal calibration artifact cache

'''
Read-once store of flat fields and masks, shared by every frame of a batch.
'''

import logging
import threading
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .calibfile import CalibrationFileResolver, scale_factor_path
from .errors import MissingCalibrationArtifact
from .frameio import load_artifact_image

logger = logging.getLogger( __name__ )


@dataclass( frozen=True )
class Artifact:
    '''
    image is None for an absent artifact, reason then says why
    '''
    image: Optional[np.ndarray]
    path: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_absent( self ):
        return self.image is None

    @classmethod
    def absent( cls, reason, path=None ):
        return cls( None, path, reason )


class CalibrationArtifactCache:

    '''
    get( instrument, cal_type, scale_factor ) -> Artifact

    The first request for a key resolves the file through the resolver, replaces
    the scale factor marker and loads the image; later requests return the same
    Artifact. Lookup failures are cached as absent artifacts too. Loaded images
    are made read-only so concurrent frames can share them.
    '''

    def __init__( self, resolver=None, loader=load_artifact_image ):
        self.resolver   = resolver if resolver is not None else CalibrationFileResolver()
        self.loader     = loader
        self.load_count = 0
        self._artifacts = {}
        self._lock      = threading.Lock()

    def get( self, instrument, cal_type, scale_factor=1 ):

        key = ( instrument, cal_type, int( scale_factor ) )

        artifact = self._artifacts.get( key )
        if artifact is not None:
            return artifact

        with self._lock:
            # another thread may have populated the key while we waited
            artifact = self._artifacts.get( key )
            if artifact is None:
                artifact = self._load( *key )
                self._artifacts[ key ] = artifact
        return artifact

    def _load( self, instrument, cal_type, scale_factor ):

        try:
            template = self.resolver.resolve( instrument, cal_type )
        except MissingCalibrationArtifact as e:
            return Artifact.absent( str( e ) )

        path = scale_factor_path( template, scale_factor )
        logger.debug( '%s file path for scale factor %d: %s', cal_type.value, scale_factor, path )

        self.load_count += 1
        try:
            image = self.loader( path, cal_type )
        except OSError as e:
            return Artifact.absent( str( e ), path )

        image = np.asarray( image, dtype=np.float32 )
        image.setflags( write=False )
        return Artifact( image, path )

    def __len__( self ):
        return len( self._artifacts )
