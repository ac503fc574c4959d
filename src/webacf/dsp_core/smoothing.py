"""
Sub-bin resolution spectra by shift stacking.

A DFT of N samples has one bin per sample_rate / N Hz. By the DFT Shift
Theorem, multiplying the input by exp(-2*pi*i * t/N * s/S) before
transforming yields the spectrum sampled at bins k + s/S. Interleaving the
S shifted transforms gives S times the apparent frequency resolution at
S times the cost, without a longer analysis window.
"""

import numpy as np
from typing import Optional

from . import complex_buffer as cb
from .errors import SizeMismatchError
from .factory import FFTFactory


def smooth_transform(buf: np.ndarray, shifts: int,
                     factory: Optional[FFTFactory] = None) -> np.ndarray:
    """
    Shift-stacked forward DFT.

    out[i * shifts + s] holds bin i of the transform of the input shifted by
    -s / shifts, i.e. the spectrum at fractional bin i + s / shifts.

    Parameters
    ----------
    buf : np.ndarray
        Interleaved complex input, length 2N
    shifts : int
        Number of sub-bin shifts (1 gives the plain DFT)

    Returns
    -------
    np.ndarray
        Interleaved complex buffer of length 2N * shifts
    """
    if shifts < 1:
        raise ValueError(f"shifts must be >= 1, got {shifts}")
    buf = cb.as_buffer(buf)
    n = buf.shape[0] // 2
    fft = (factory if factory is not None else FFTFactory()).get(n)

    shifted = np.empty_like(buf)
    output = np.empty_like(buf)
    stacked = np.empty((n, shifts, 2), dtype=buf.dtype)

    for s in range(shifts):
        cb.shift(buf, -s / shifts, shifted)
        fft.transform(shifted, output)
        stacked[:, s, :] = output.reshape(n, 2)

    return stacked.ravel()


def smooth_acf(frame: np.ndarray, shifts: int, mask: Optional[np.ndarray] = None,
               factory: Optional[FFTFactory] = None) -> np.ndarray:
    """
    Autocorrelation computed from a shift-stacked power spectrum.

    The fine-grained power spectrum |X(k + s/S)|^2 is multiplied by a real
    per-bin mask (e.g. to isolate a frequency band) and then transformed
    forward at size N * shifts. A mask of length N is stretched to N * shifts
    so each base bin covers its sub-bins.

    Returns
    -------
    np.ndarray
        Real array of length N * shifts
    """
    frame = np.asarray(frame, dtype=np.float64)
    if frame.ndim != 1:
        raise SizeMismatchError(f"Input must be 1D, got shape {frame.shape}")
    n = frame.shape[0]
    factory = factory if factory is not None else FFTFactory()

    power = cb.squared_magnitude(smooth_transform(cb.expand(frame), shifts, factory))

    if mask is not None:
        mask = np.asarray(mask, dtype=np.float64)
        if mask.shape == (n,) and shifts > 1:
            mask = cb.stretch(mask, shifts)
        if mask.shape != power.shape:
            raise SizeMismatchError(
                f"Mask length {mask.shape[0]} must be {n} or {power.shape[0]}")
        power = power * mask

    acf = factory.forward(cb.expand(power))

    if __debug__ and mask is None:
        cb.dcheck(cb.is_real(acf, eps=1e-4), 'Smoothed ACF must be real')

    return cb.re(acf)
