import numpy as np
import pytest

from marscal.decompanding import DecompandingTable, decompand_frame, default_tables, load_table
from marscal.errors import MissingOrInvalidLUT
from marscal.frame import RawFrame
from marscal.instrument import Instrument


def test_square_root_table_is_monotonic():
    table = DecompandingTable.square_root( 4095 )
    linear = [ table[v] for v in range( 256 ) ]
    for a in range( 256 ):
        for b in range( a, 256 ):
            assert linear[a] <= linear[b]
    assert table[0] == 0
    assert table.max() == 4095


def test_identity_table():
    table = DecompandingTable.identity()
    assert table.max() == 255
    assert len( table ) == 256
    np.testing.assert_array_equal( table.lookup( np.array( [ 0, 17, 255 ] ) ), [ 0, 17, 255 ] )


def test_lookup_rounds_and_clips():
    table = DecompandingTable( np.arange( 256 ) * 2 )
    out = table.lookup( np.array( [ -3.0, 1.4, 1.6, 300.0 ] ) )
    np.testing.assert_array_equal( out, [ 0, 2, 4, 510 ] )
    assert out.dtype == np.float32


def test_decreasing_table_is_rejected():
    values = np.arange( 256 )
    values[100] = 5
    with pytest.raises( MissingOrInvalidLUT ):
        DecompandingTable( values )


def test_wrong_size_table_is_rejected():
    with pytest.raises( MissingOrInvalidLUT ):
        DecompandingTable( np.arange( 255 ) )


def test_table_is_read_only():
    table = DecompandingTable.identity()
    with pytest.raises( ValueError ):
        table.values[0] = 10


def test_table_keeps_its_own_copy():
    source = np.arange( 256, dtype=np.float64 )
    table  = DecompandingTable( source )
    source[10] = -1
    assert table[10] == 10
    assert source.flags.writeable


def test_load_table_from_text( tmp_path ):
    path = tmp_path / 'ilt.csv'
    path.write_text( ',\n'.join( str( v * 3 ) for v in range( 256 ) ) )
    table = load_table( str( path ) )
    assert table.max() == 765


def test_load_table_errors( tmp_path ):
    with pytest.raises( MissingOrInvalidLUT ):
        load_table( str( tmp_path / 'missing.txt' ) )
    bad = tmp_path / 'bad.txt'
    bad.write_text( 'one two three' )
    with pytest.raises( MissingOrInvalidLUT ):
        load_table( str( bad ) )


def test_default_tables_cover_every_instrument():
    tables = default_tables()
    assert set( tables ) == set( Instrument )


def test_decompand_frame_applies_table():
    frame = RawFrame( np.full( ( 4, 4 ), 255, dtype=np.float32 ) )
    data_max = decompand_frame( frame, Instrument.M20_NAVCAM_LEFT, default_tables() )
    assert data_max == 4095
    assert np.all( frame.image == 4095 )


def test_decompand_frame_without_table_raises():
    frame = RawFrame( np.zeros( ( 4, 4 ) ) )
    with pytest.raises( MissingOrInvalidLUT ):
        decompand_frame( frame, Instrument.M20_NAVCAM_LEFT, {} )


def test_decompand_frame_disabled_or_deep_source_is_noop():
    frame = RawFrame( np.full( ( 4, 4 ), 100, dtype=np.float32 ) )
    assert decompand_frame( frame, Instrument.M20_NAVCAM_LEFT, default_tables(), apply_ilt=False ) == 255
    assert decompand_frame( frame, Instrument.M20_NAVCAM_LEFT, default_tables(), bit_depth=12 ) == 4095
    assert np.all( frame.image == 100 )
