# marscal errors

'''
Error taxonomy for the calibration pipeline.

Calibration-data absence ( missing flats, masks or lookup tables ) is recovered
locally by the stage that needed the data. Only the I/O class errors reach the
batch driver.
'''


class CalibrationError( Exception ):
    pass


class MissingCalibrationArtifact( CalibrationError ):
    '''a flat field or mask could not be resolved or loaded'''


class MissingOrInvalidLUT( CalibrationError, ValueError ):
    '''no decompanding table for the instrument, or the table is malformed'''


class AlignmentError( CalibrationError ):
    '''a calibration artifact cannot be cropped onto the raw frame's window'''


class InputNotFound( CalibrationError, OSError ):
    pass


class OutputPathNotWritable( CalibrationError, OSError ):
    pass
