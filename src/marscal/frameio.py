# marscal frame input / output

'''
Reading raw frames with their metadata, reading calibration artifacts and
writing calibrated products.

PNG / JPEG / TIFF raws are read with Pillow and take their geometry from the
metadata JSON saved beside them, PDS3 IMG files are read with planetaryimage
and take it from the label. Artifacts and products go through OpenCV, which
keeps 16-bit PNG data intact.
'''

import json
import logging
import os

import cv2
import numpy as np
from PIL import Image
from planetaryimage import PDS3Image

from .errors import InputNotFound
from .frame import FrameMetadata, RawFrame
from .instrument import CalFileType

logger = logging.getLogger( __name__ )

PDS_EXTENSIONS = ( '.img', )


def open_frame( path ):

    '''
    open_frame returns ( RawFrame, FrameMetadata ) for a raw image file
    '''

    if not os.path.isfile( path ):
        raise InputNotFound( 'File not found: {}'.format( path ) )

    if os.path.splitext( path )[1].lower() in PDS_EXTENSIONS:
        return open_pds_frame( path )

    frame, bit_depth = open_raster_frame( path )
    metadata = read_sidecar_metadata( path, bit_depth )
    return frame, metadata


def open_raster_frame( path ):

    with Image.open( path ) as im:
        if im.mode in ( 'P', 'PA', 'CMYK', 'YCbCr' ):
            im = im.convert( 'RGBA' if 'A' in im.mode else 'RGB' )
        data = np.asarray( im )

    bit_depth = 8 if data.dtype == np.uint8 else 16

    alpha = None
    if data.ndim == 3 and data.shape[2] in ( 2, 4 ):
        alpha = np.float32( data[:,:,-1] > 0 )
        data  = data[:,:,:-1]

    logger.debug( 'opened %s: %s, %d-bit', os.path.basename( path ), data.shape, bit_depth )
    return RawFrame( np.float32( data ), alpha ), bit_depth


def open_pds_frame( path ):

    pds   = PDS3Image.open( path )
    label = pds.label
    image = np.float32( pds.image )

    try:
        scale_factor = int( label['INSTRUMENT_STATE_PARMS']['PIXEL_AVERAGING_WIDTH'] )
    except ( KeyError, TypeError, ValueError ):
        scale_factor = 1

    try:
        parms = label['SUBFRAME_REQUEST_PARMS']
        rect  = ( parms['FIRST_LINE_SAMPLE'], parms['FIRST_LINE'], parms['LINE_SAMPLES'], parms['LINES'] )
    except ( KeyError, TypeError ):
        rect = None

    try:
        bit_depth = int( label['IMAGE']['SAMPLE_BITS'] )
    except ( KeyError, TypeError, ValueError ):
        bit_depth = 8

    metadata = FrameMetadata( scale_factor=max( scale_factor, 1 ), subframe_rect=rect, bit_depth_source=bit_depth )
    return RawFrame( image ), metadata


def sidecar_paths( path ):
    stem = os.path.splitext( path )[0]
    return [ stem + '-metadata.json', stem + '.json' ]


def read_sidecar_metadata( path, bit_depth=8 ):

    '''
    read_sidecar_metadata reads scale_factor and subframe_rect from the JSON saved with a raw image

    Without a sidecar the frame is taken as full-sensor at scale factor 1.
    A sidecar whose content does not describe a frame raises ValueError.
    '''

    for json_path in sidecar_paths( path ):
        if os.path.isfile( json_path ):
            with open( json_path ) as file:
                md = json.load( file )
            try:
                scale_factor = md.get( 'scale_factor' )
                return FrameMetadata(
                    scale_factor     = 1 if scale_factor is None else scale_factor,
                    subframe_rect    = md.get( 'subframe_rect' ),
                    bit_depth_source = bit_depth,
                )
            except ( AttributeError, KeyError, TypeError ) as e:
                raise ValueError( 'malformed metadata in {}: {}'.format( json_path, e ) ) from e

    logger.debug( 'no metadata found for %s, assuming a full frame', os.path.basename( path ) )
    return FrameMetadata( bit_depth_source=bit_depth )


def load_artifact_image( path, cal_type=CalFileType.FLAT_FIELD ):

    '''
    load_artifact_image reads a flat field or mask as float32, RGB band order, alpha dropped

    16-bit masks are brought to the 0..255 scale the mask threshold is defined on.
    '''

    im = cv2.imread( path, cv2.IMREAD_UNCHANGED )
    if im is None:
        raise FileNotFoundError( 'cannot read calibration file {}'.format( path ) )

    if im.ndim == 3:
        if im.shape[2] < 3:
            im = im[:,:,0]
        else:
            im = im[:,:,2::-1]    # BGR(A) -> RGB

    if cal_type == CalFileType.MASK and im.dtype == np.uint16:
        return np.float32( im ) * 255 / 65535

    return np.ascontiguousarray( im, dtype=np.float32 )


def save_frame( calibrated, path ):

    '''
    save_frame writes a CalibratedFrame as 16-bit PNG, RGBA when it carries a validity channel
    '''

    im16 = calibrated.to_uint16()
    if im16.ndim == 3:
        out = im16[:,:,::-1]
    else:
        out = im16

    alpha = calibrated.frame.alpha
    if alpha is not None:
        if out.ndim == 2:
            out = np.stack( [ out, out, out ], axis=-1 )
        out = np.dstack( [ out, np.where( alpha > 0, 65535, 0 ).astype( np.uint16 ) ] )

    try:
        ok = cv2.imwrite( path, np.ascontiguousarray( out ) )
    except cv2.error as e:
        raise OSError( 'cannot write {}: {}'.format( path, e ) ) from e
    if not ok:
        raise OSError( 'cannot write {}'.format( path ) )

    logger.debug( 'saved %s', path )


def save_metadata( metadata, path ):
    '''writes the updated metadata as <stem>-metadata.json beside the product'''

    json_path = sidecar_paths( path )[0]
    with open( json_path, 'w' ) as file:
        json.dump( metadata.to_dict(), file, indent=2 )
    return json_path
