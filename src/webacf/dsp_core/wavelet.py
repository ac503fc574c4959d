"""
Morlet wavelet kernels, generated directly in the frequency domain.

The Morlet wavelet W(t) = exp(i*w*t) * exp(-t^2 / 2) is a Gaussian-windowed
complex exponential. The FFT of a Gaussian is another Gaussian with a scaled
width, and the exp(i*w*t) factor shifts it, so the kernel's spectrum has a
closed form. Building it directly saves one forward FFT per analyzed row.

Reference: https://www.weisang.com/en/documentation/timefreqspectrumalgorithmscwt_en/
"""

import numpy as np
from typing import Optional

from .bitrev import check_size
from .errors import SizeMismatchError


def morlet_width(period: float, num_periods: float) -> float:
    """Time support of the wavelet in samples; the padding a CWT needs on each side."""
    return period * num_periods


def morlet_spectrum(
    size: int,
    period: float,
    num_periods: float,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Frequency-domain Morlet kernel for one analyzed period.

    For bins k in [0, size/2]:

        W[k] = sqrt(m * s) * pi^0.25 * exp(-0.5 * (m * (s * k / n - 1))^2)

    with m = 2*pi*num_periods, s = period and n = size. Bins past size/2 stay
    zero: the kernel is one-sided, which makes the convolution output the
    analytic signal of the analyzed band.

    Parameters
    ----------
    size : int
        Transform size (power of two), same as the analyzed signal
    period : float
        Analyzed period in samples (sample_rate / frequency)
    num_periods : float
        Number of periods under the Gaussian window (Q-factor)
    out : np.ndarray, optional
        Interleaved buffer of length 2 * size to reuse

    Returns
    -------
    np.ndarray
        Interleaved complex buffer of length 2 * size, imaginary part zero
    """
    n = check_size(size)
    if period <= 0:
        raise ValueError(f"period must be > 0, got {period}")
    if num_periods <= 0:
        raise ValueError(f"num_periods must be > 0, got {num_periods}")

    if out is None:
        out = np.zeros(2 * n)
    elif out.shape != (2 * n,):
        raise SizeMismatchError(f"Kernel buffer shape {out.shape} != ({2 * n},)")
    else:
        out.fill(0)

    s = float(period)
    m = 2 * np.pi * num_periods
    k = np.arange(n // 2 + 1)

    gaussian = np.pi ** 0.25 * np.exp(-0.5 * (m * (s * k / n - 1)) ** 2)
    out[0:n + 2:2] = np.sqrt(m * s) * gaussian
    return out
