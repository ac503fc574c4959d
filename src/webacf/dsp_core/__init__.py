"""
DSP Core Module - Unitary FFT and the transforms derived from it

Hand-written radix-2 FFT over interleaved (re, im) buffers, in a scalar form
and a data-parallel form, plus the spectral analyses built on top of it.

Modules:
    - complex_buffer: interleaved complex buffer operations
    - bitrev: bit-reversal permutation tables and their cache
    - fft: scalar Cooley-Tukey engine (Numba JIT) and the FourierTransform interface
    - parallel_fft / backends: stage-parallel FFT on numpy, numba or torch
    - factory: FFTFactory, owner of shared tables and engines
    - derived: autocorrelation, convolution, cross-correlation, bispectrum
    - wavelet: frequency-domain Morlet kernels
    - smoothing: shift-stacked sub-bin spectra
    - windows: window functions and frame extraction
"""

from .errors import FFTError, InvalidSizeError, SizeMismatchError, NumericAssertionError
from .bitrev import BitReversalCache, build_bit_reversal, is_power_of_two
from .fft import FourierTransform, FFTEngine
from .backends import (
    ComputeBackend,
    NumpyBackend,
    NumbaBackend,
    TorchBackend,
    get_backend,
    available_backends,
)
from .parallel_fft import ParallelFFT
from .factory import FFTFactory
from .derived import (
    autocorrelation,
    convolve,
    convolve_complex,
    cross_correlation,
    bispectrum,
    triple_correlation,
)
from .wavelet import morlet_spectrum, morlet_width
from .smoothing import smooth_transform, smooth_acf
from .windows import get_window, hann, padded_slice, read_frame

__all__ = [
    # Errors
    'FFTError',
    'InvalidSizeError',
    'SizeMismatchError',
    'NumericAssertionError',
    # Transforms
    'BitReversalCache',
    'build_bit_reversal',
    'is_power_of_two',
    'FourierTransform',
    'FFTEngine',
    'ParallelFFT',
    'FFTFactory',
    # Backends
    'ComputeBackend',
    'NumpyBackend',
    'NumbaBackend',
    'TorchBackend',
    'get_backend',
    'available_backends',
    # Derived transforms
    'autocorrelation',
    'convolve',
    'convolve_complex',
    'cross_correlation',
    'bispectrum',
    'triple_correlation',
    'morlet_spectrum',
    'morlet_width',
    'smooth_transform',
    'smooth_acf',
    # Windows
    'get_window',
    'hann',
    'padded_slice',
    'read_frame',
]
