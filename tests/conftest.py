import json
import os

import cv2
import numpy as np
import pytest
from PIL import Image

from marscal.calibfile import CalibrationFileResolver
from marscal.cache import CalibrationArtifactCache

NAVCAM_LEFT_NAME = 'NLF_0100_0675123456_123ECM_N0040048NCAM00500_01_095J01.png'


def write_raw( directory, name, image, scale_factor=1, subframe_rect=None ):
    '''8-bit raw PNG plus the metadata JSON saved beside it'''
    path = os.path.join( str( directory ), name )
    Image.fromarray( np.uint8( image ) ).save( path )
    if scale_factor is not None:
        with open( os.path.splitext( path )[0] + '-metadata.json', 'w' ) as file:
            json.dump( { 'scale_factor' : scale_factor, 'subframe_rect' : subframe_rect }, file )
    return path


def write_calibration( directory, stem, flat, mask, scale_factor=1 ):
    if flat is not None:
        cv2.imwrite( os.path.join( str( directory ), 'M20_{}_FLAT_sf{}_V1.png'.format( stem, scale_factor ) ), np.uint16( flat ) )
    if mask is not None:
        cv2.imwrite( os.path.join( str( directory ), 'M20_{}_MASK_sf{}_V1.png'.format( stem, scale_factor ) ), np.uint8( mask ) )


@pytest.fixture( autouse=True )
def no_system_calibration_data( monkeypatch, tmp_path ):
    '''keep the developer's calibration data out of the search path'''
    monkeypatch.delenv( 'MARS_RAW_DATA', raising=False )
    monkeypatch.setenv( 'HOME', str( tmp_path / 'home' ) )
    monkeypatch.setattr( 'marscal.calibfile.SYSTEM_DATA_DIR', str( tmp_path / 'nosuchdir' ) )


@pytest.fixture
def caldir( tmp_path ):
    path = tmp_path / 'caldata'
    path.mkdir()
    return path


@pytest.fixture
def empty_cache():
    '''cache whose resolver knows no calibration files at all'''
    return CalibrationArtifactCache( CalibrationFileResolver( files={} ) )


@pytest.fixture
def cache_for( caldir ):
    def make():
        return CalibrationArtifactCache( CalibrationFileResolver( [ str( caldir ) ] ) )
    return make
