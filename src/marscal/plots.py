# marscal diagnostic plots

'''
plot_band_histograms displays the distribution of each band of a calibrated product

Uses the object oriented Figure API rather than pyplot so worker threads can
plot at the same time.
'''

import numpy as np
from matplotlib.figure import Figure

BAND_COLORS = [ 'r', 'g', 'b' ]


def plot_band_histograms( frame, save_path, bins=256 ):

    fig = Figure( figsize=[ 8, 5 ] )
    ax  = fig.add_subplot( 1, 1, 1 )

    image = frame.image
    valid = None if frame.alpha is None else frame.alpha > 0

    if image.ndim == 2:
        bands, colors = [ image ], [ 'k' ]
    else:
        bands, colors = [ image[:,:,i] for i in range( image.shape[2] ) ], BAND_COLORS

    for band, color in zip( bands, colors ):
        values = band[ valid ] if valid is not None else band.ravel()
        ax.hist( values, bins=bins, range=( 0, 65535 ), histtype='step', color=color )

    ax.set_yscale( 'log' )
    ax.set_xlabel( 'DN (16-bit)' )
    ax.set_ylabel( 'pixels' )
    fig.tight_layout()
    fig.savefig( save_path, dpi=100 )
    return save_path
