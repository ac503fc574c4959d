"""
Error types raised by the transform core.
"""


class FFTError(Exception):
    """Base class for all transform errors."""


class InvalidSizeError(FFTError, ValueError):
    """Transform size is not a power of two, or is smaller than 2."""


class SizeMismatchError(FFTError, ValueError):
    """Buffer lengths disagree with the configured transform size."""


class NumericAssertionError(FFTError, AssertionError):
    """An internal numeric self-check failed (debug builds only)."""
