"""
Transforms derived from the unitary FFT: autocorrelation, fast convolution,
cross-correlation, bispectrum and triple correlation.

All functions take an optional FFTFactory. Pass one in to reuse engines and
bit-reversal tables across calls; without it a transient factory is created.
"""

import numpy as np
from typing import Optional

from . import complex_buffer as cb
from .errors import SizeMismatchError
from .factory import FFTFactory


def _factory(factory: Optional[FFTFactory]) -> FFTFactory:
    return factory if factory is not None else FFTFactory()


def _real_frame(frame) -> np.ndarray:
    frame = np.asarray(frame, dtype=np.float64)
    if frame.ndim != 1:
        raise SizeMismatchError(f"Input must be 1D, got shape {frame.shape}")
    return frame


def autocorrelation(frame: np.ndarray, factory: Optional[FFTFactory] = None) -> np.ndarray:
    """
    Autocorrelation of a real (already windowed) frame via Wiener-Khinchin.

    FFT -> |X|^2 -> FFT. The second transform is a forward one on purpose:
    |X|^2 is real and even, and for such a signal the forward and inverse
    DFTs coincide. The result is real; its value at lag 0 is the largest.

    Parameters
    ----------
    frame : np.ndarray
        Real samples, length a power of two
    factory : FFTFactory, optional
        Source of FFT engines

    Returns
    -------
    np.ndarray
        Unnormalized ACF (unitary scaling only), same length as frame
    """
    frame = _real_frame(frame)
    fft = _factory(factory).get(frame.shape[0])

    spectrum = fft.transform(cb.expand(frame))
    power = cb.squared_magnitude_reim(spectrum)

    if __debug__:
        cb.dcheck(cb.is_real(power), 'ACF: |X|^2 must be real')
        cb.dcheck(cb.is_conjugate_symmetric(power), 'ACF: |X|^2 must be even')

    acf = fft.transform(power)

    if __debug__:
        cb.dcheck(cb.is_real(acf), 'ACF: result must be real')

    return cb.re(acf)


def convolve_complex(signal_fft: np.ndarray, kernel_fft: np.ndarray,
                     factory: Optional[FFTFactory] = None) -> np.ndarray:
    """Inverse transform of the bin-wise product of two spectra."""
    signal_fft = cb.as_buffer(signal_fft)
    kernel_fft = cb.as_buffer(kernel_fft)
    if signal_fft.shape != kernel_fft.shape:
        raise SizeMismatchError(
            f"Signal and kernel spectra differ in length: "
            f"{signal_fft.shape[0]} != {kernel_fft.shape[0]}")

    # DFT[X ** Y] = DFT[X] * DFT[Y], where ** is circular convolution.
    product = cb.multiply(signal_fft, kernel_fft)
    return _factory(factory).inverse(product, product)


def convolve(signal_fft: np.ndarray, kernel_fft: np.ndarray,
             factory: Optional[FFTFactory] = None) -> np.ndarray:
    """
    Magnitude of the circular convolution of two signals, given their spectra.

    With unitary transforms the result is |x ** y| / sqrt(N). The convolution
    is circular: callers that analyze a finite excerpt must pad it on both
    sides (by at least the kernel's support) and discard the padding.
    """
    return cb.magnitude(convolve_complex(signal_fft, kernel_fft, factory))


def cross_correlation(a: np.ndarray, b: np.ndarray,
                      factory: Optional[FFTFactory] = None) -> np.ndarray:
    """Circular cross-correlation of two real frames: sum_n a[n] b[n + lag] / sqrt(N)."""
    a = _real_frame(a)
    b = _real_frame(b)
    if a.shape != b.shape:
        raise SizeMismatchError(f"Frame lengths differ: {a.shape[0]} != {b.shape[0]}")

    factory = _factory(factory)
    fa = cb.conjugate(factory.forward(cb.expand(a)))
    fb = factory.forward(cb.expand(b))
    return cb.re(convolve_complex(fa, fb, factory))


def bispectrum(frame: np.ndarray, factory: Optional[FFTFactory] = None,
               damping: Optional[float] = None) -> np.ndarray:
    """
    Bispectrum B(f1, f2) = X(f1) X(f2) conj(X(f1 + f2)) of a real frame.

    Returns an N x N complex surface as a flat interleaved buffer of length
    2 * N * N, row-major: row f2, column f1. Frequencies wrap modulo N.

    damping, if given, multiplies B by exp(-damping * (d1^2 + d2^2)) where
    d = min(f, N - f) / N. It is a tunable smoothing of high-frequency pairs
    and is off by default.
    """
    frame = _real_frame(frame)
    n = frame.shape[0]
    spectrum = cb.to_complex(_factory(factory).forward(cb.expand(frame)))

    f = np.arange(n)
    x1 = spectrum[np.newaxis, :]  # f1 along columns
    x2 = spectrum[:, np.newaxis]  # f2 along rows
    x12 = spectrum[(f[np.newaxis, :] + f[:, np.newaxis]) % n]
    surface = x1 * x2 * np.conj(x12)

    if damping is not None:
        d = np.minimum(f, n - f) / n
        surface *= np.exp(-damping * (d[np.newaxis, :] ** 2 + d[:, np.newaxis] ** 2))

    return cb.from_complex(surface)


def triple_correlation(frame: np.ndarray, factory: Optional[FFTFactory] = None,
                       damping: Optional[float] = None) -> np.ndarray:
    """
    Triple correlation of a real frame: the 2-D inverse DFT of its bispectrum.

    The 2-D inverse runs as a 'rows' pass followed by a 'cols' pass of the
    parallel FFT, wrapped in conjugations. With unitary scaling,

        result[t2, t1] = sum_n x[n] x[n + t1] x[n + t2] / sqrt(N)

    Returns
    -------
    np.ndarray
        Real array of shape (N, N)
    """
    frame = _real_frame(frame)
    n = frame.shape[0]
    factory = _factory(factory)

    surface = cb.conjugate(bispectrum(frame, factory, damping))
    rows = factory.parallel(n, n, 'rows')
    cols = factory.parallel(n, n, 'cols')

    img = rows.transform(surface)
    img = cols.transform(img, img)
    cb.conjugate(img)

    if __debug__:
        cb.dcheck(cb.is_real(img, eps=1e-4), 'Triple correlation must be real')

    return cb.re(img).reshape(n, n)
