"""Pitch-class arithmetic: absolute pitch reduced modulo the octave."""

SEMITONES_PER_OCTAVE = 12

#: Absolute pitch modulo 12 (0=C, 1=C#/Db, ..., 11=B).
PitchClass = int


def pitch_class(value: int) -> PitchClass:
    """Reduce any integer into the 0-11 range, never returning a negative value."""
    return value % SEMITONES_PER_OCTAVE


def transpose_pitch_class(pc: PitchClass, half_steps: int) -> PitchClass:
    """
    Shift a pitch class by a signed number of half steps.

    Args:
        pc:         Starting pitch class (0-11).
        half_steps: Signed distance; any integer, including multiples of 12.

    Returns:
        The destination pitch class (0-11).
    """
    return pitch_class(pc + half_steps)
