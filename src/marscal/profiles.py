# marscal calibration profiles

'''
Calibration profiles: the per-invocation settings that steer the pipeline.

future work: ship per-camera colour balance for the Hazcams as their own profiles
'''

import enum
import json
import logging
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger( __name__ )


class DebayerMethod( str, enum.Enum ):

    BILINEAR   = 'bilinear'
    MALVAR2004 = 'malvar2004'
    MENON2007  = 'menon2007'
    STACK      = 'stack'        # monochrome sensor, replicate the band


class CalibrationProfile( BaseModel ):
    """
    Immutable calibration settings.

    Parameters
    ----------
    name : str
        Profile identifier, reported in the outcome record.
    filename_suffix : str
        Inserted into the output file name, ``<stem>-<suffix>.png``.
    apply_ilt : bool
        Run the decompanding ( inverse LUT ) stage.
    debayer_method : DebayerMethod
        Colour filter array reconstruction used for mosaiced frames.
    red_scalar, green_scalar, blue_scalar : float
        Per-band weights applied to three band frames.
    decorrelate_color : bool
        Stretch each band independently instead of sharing one scale.
    """
    model_config = ConfigDict( frozen=True )

    name: str = 'custom'
    filename_suffix: str = Field( ..., min_length=1 )
    apply_ilt: bool = True
    debayer_method: DebayerMethod = DebayerMethod.MALVAR2004

    red_scalar: float   = Field( default=1.0, allow_inf_nan=False )
    green_scalar: float = Field( default=1.0, allow_inf_nan=False )
    blue_scalar: float  = Field( default=1.0, allow_inf_nan=False )

    decorrelate_color: bool = False

    @property
    def weights( self ):
        return ( self.red_scalar, self.green_scalar, self.blue_scalar )

    def with_overrides( self, weights=None, raw_color=False ):
        '''return the effective profile after command line weight overrides and the raw color switch'''

        update = {}
        if weights is not None:
            if weights.red   is not None: update['red_scalar']   = weights.red
            if weights.green is not None: update['green_scalar'] = weights.green
            if weights.blue  is not None: update['blue_scalar']  = weights.blue
        if raw_color:
            update['apply_ilt'] = False

        if not update:
            return self
        return self.model_copy( update=update )


class WeightOverrides( BaseModel ):
    '''red / green / blue weights given as numeric strings on the command line'''

    red: Optional[float]   = Field( default=None, allow_inf_nan=False )
    green: Optional[float] = Field( default=None, allow_inf_nan=False )
    blue: Optional[float]  = Field( default=None, allow_inf_nan=False )


# colour balance for the Mars 2020 Navcam, relative to green
scale_red_n, scale_blue_n = [ 0.75, 1.2 ]

BUILTIN_PROFILES = {
    'm20_ecam' : CalibrationProfile(
        name              = 'm20_ecam',
        filename_suffix   = 'ecam',
    ),
    'm20_ecam_natural' : CalibrationProfile(
        name              = 'm20_ecam_natural',
        filename_suffix   = 'ecamnat',
        red_scalar        = scale_red_n,
        blue_scalar       = scale_blue_n,
    ),
    'm20_ecam_decorrelated' : CalibrationProfile(
        name              = 'm20_ecam_decorrelated',
        filename_suffix   = 'ecamdc',
        decorrelate_color = True,
    ),
    'm20_ecam_raw' : CalibrationProfile(
        name              = 'm20_ecam_raw',
        filename_suffix   = 'ecamraw',
        apply_ilt         = False,
    ),
}

DEFAULT_PROFILE = 'm20_ecam'


def load_profile( name_or_path=DEFAULT_PROFILE ):

    '''
    load_profile returns a built-in profile by name, or reads a JSON profile file

    The JSON file holds the CalibrationProfile fields; a missing "name" defaults
    to the file's base name.
    '''

    if name_or_path in BUILTIN_PROFILES:
        return BUILTIN_PROFILES[ name_or_path ]

    if not os.path.isfile( name_or_path ):
        raise ValueError( 'unknown calibration profile: {}'.format( name_or_path ) )

    with open( name_or_path ) as file:
        fields = json.load( file )

    fields.setdefault( 'name', os.path.splitext( os.path.basename( name_or_path ) )[0] )
    profile = CalibrationProfile.model_validate( fields )
    logger.debug( 'loaded calibration profile %s from %s', profile.name, name_or_path )
    return profile
