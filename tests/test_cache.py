import threading
import time

import numpy as np
import pytest

from marscal.cache import Artifact, CalibrationArtifactCache
from marscal.calibfile import CalibrationFileResolver
from marscal.errors import MissingCalibrationArtifact
from marscal.instrument import CalFileType, Instrument

from conftest import write_calibration


class TemplateResolver:

    def __init__( self, template ):
        self.template = template
        self.calls    = 0

    def resolve( self, instrument, cal_type ):
        self.calls += 1
        if self.template is None:
            raise MissingCalibrationArtifact( 'nothing for {}'.format( instrument.name ) )
        return self.template


class RecordingLoader:

    def __init__( self, delay=0.0 ):
        self.paths = []
        self.delay = delay

    def __call__( self, path, cal_type ):
        time.sleep( self.delay )
        self.paths.append( path )
        return np.ones( ( 4, 4 ) )


def test_first_get_loads_and_later_gets_reuse():
    loader = RecordingLoader()
    cache  = CalibrationArtifactCache( TemplateResolver( '/cal/NL_FLAT_-scalefactor-.png' ), loader )

    first  = cache.get( Instrument.M20_NAVCAM_LEFT, CalFileType.FLAT_FIELD, 1 )
    second = cache.get( Instrument.M20_NAVCAM_LEFT, CalFileType.FLAT_FIELD, 1 )

    assert first is second
    assert loader.paths == [ '/cal/NL_FLAT_sf1.png' ]
    assert cache.load_count == 1


def test_scale_factor_is_part_of_the_key():
    loader = RecordingLoader()
    cache  = CalibrationArtifactCache( TemplateResolver( '/cal/NL_MASK_-scalefactor-.png' ), loader )
    cache.get( Instrument.M20_NAVCAM_LEFT, CalFileType.MASK, 1 )
    cache.get( Instrument.M20_NAVCAM_LEFT, CalFileType.MASK, 2 )
    cache.get( Instrument.M20_NAVCAM_LEFT, CalFileType.MASK, 2 )
    assert loader.paths == [ '/cal/NL_MASK_sf1.png', '/cal/NL_MASK_sf2.png' ]
    assert len( cache ) == 2


def test_unresolved_artifact_is_absent_not_an_error():
    resolver = TemplateResolver( None )
    cache    = CalibrationArtifactCache( resolver, RecordingLoader() )
    artifact = cache.get( Instrument.M20_REAR_HAZ_LEFT, CalFileType.FLAT_FIELD )
    assert artifact.is_absent
    assert 'M20_REAR_HAZ_LEFT' in artifact.reason
    cache.get( Instrument.M20_REAR_HAZ_LEFT, CalFileType.FLAT_FIELD )
    assert resolver.calls == 1


def test_unreadable_file_is_absent( tmp_path ):
    cache    = CalibrationArtifactCache( TemplateResolver( str( tmp_path / 'gone-scalefactor-.png' ) ) )
    artifact = cache.get( Instrument.M20_NAVCAM_LEFT, CalFileType.MASK, 1 )
    assert artifact.is_absent
    assert artifact.path == str( tmp_path / 'gonesf1.png' )


def test_loaded_artifacts_are_read_only():
    cache    = CalibrationArtifactCache( TemplateResolver( '/x-scalefactor-' ), RecordingLoader() )
    artifact = cache.get( Instrument.M20_NAVCAM_LEFT, CalFileType.FLAT_FIELD )
    with pytest.raises( ValueError ):
        artifact.image[0, 0] = 5


def test_concurrent_population_loads_once():
    loader  = RecordingLoader( delay=0.05 )
    cache   = CalibrationArtifactCache( TemplateResolver( '/cal/flat-scalefactor-.png' ), loader )
    results = []

    def worker():
        results.append( cache.get( Instrument.M20_NAVCAM_RIGHT, CalFileType.FLAT_FIELD, 1 ) )

    threads = [ threading.Thread( target=worker ) for _ in range( 8 ) ]
    for t in threads: t.start()
    for t in threads: t.join()

    assert len( loader.paths ) == 1
    assert all( r is results[0] for r in results )


def test_cache_reads_files_from_data_directory( caldir ):
    write_calibration( caldir, 'FR', np.full( ( 6, 8 ), 3 ), np.full( ( 6, 8 ), 255 ), scale_factor=2 )
    cache = CalibrationArtifactCache( CalibrationFileResolver( [ str( caldir ) ] ) )

    flat = cache.get( Instrument.M20_FRONT_HAZ_RIGHT, CalFileType.FLAT_FIELD, 2 )
    mask = cache.get( Instrument.M20_FRONT_HAZ_RIGHT, CalFileType.MASK, 2 )
    assert flat.image.shape == ( 6, 8 ) and np.all( flat.image == 3 )
    assert np.all( mask.image == 255 )
    assert cache.get( Instrument.M20_FRONT_HAZ_RIGHT, CalFileType.FLAT_FIELD, 1 ).is_absent


def test_absent_constructor():
    artifact = Artifact.absent( 'why' )
    assert artifact.is_absent and artifact.reason == 'why'
