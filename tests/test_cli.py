import os

import numpy as np

from marscal.cli import CalibrationOptions, create_parser, main, options_from_args

from conftest import NAVCAM_LEFT_NAME, write_raw


def test_options_from_args():
    args    = create_parser().parse_args( [ '-i', 'a.png', 'b.png', '-R', '1.5', '-n', '-r', '-t', '3' ] )
    options = options_from_args( args )
    assert isinstance( options, CalibrationOptions )
    assert options.weights.red == 1.5 and options.weights.green is None
    assert options.only_new and options.raw_color
    assert options.threads == 3
    assert args.inputs == [ 'a.png', 'b.png' ]


def test_invalid_weight_exits_with_error( tmp_path, capsys ):
    assert main( [ '-i', str( tmp_path / 'x.png' ), '-G', 'green' ] ) == 1
    assert 'Error' in capsys.readouterr().err


def test_unknown_profile_exits_with_error( tmp_path ):
    assert main( [ '-i', str( tmp_path / 'x.png' ), '-P', 'nope' ] ) == 1


def test_calibrates_inputs( tmp_path, capsys ):
    raw    = write_raw( tmp_path, NAVCAM_LEFT_NAME, np.full( ( 16, 16 ), 50 ), subframe_rect=[ 1, 1, 16, 16 ] )
    outdir = tmp_path / 'out'

    assert main( [ '-i', raw, str( tmp_path / 'NRF_missing.png' ), '-o', str( outdir ), '-B', '1.1' ] ) == 0
    assert os.path.exists( str( outdir / ( os.path.splitext( NAVCAM_LEFT_NAME )[0] + '-ecam.png' ) ) )
    assert '1 done, 0 skipped, 1 failed' in capsys.readouterr().out

    assert main( [ '-i', raw, '-o', str( outdir ), '-n' ] ) == 0
    assert '0 done, 1 skipped, 0 failed' in capsys.readouterr().out


def test_unwritable_output_dir_exits( tmp_path ):
    blocker = tmp_path / 'file'
    blocker.write_text( 'x' )
    raw = write_raw( tmp_path, NAVCAM_LEFT_NAME, np.zeros( ( 8, 8 ) ) )
    assert main( [ '-i', raw, '-o', str( blocker / 'out' ) ] ) == 2
