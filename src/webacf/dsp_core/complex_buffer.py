"""
Interleaved Complex Buffers

A complex signal of N samples is stored as a flat float array of length 2N:
[re0, im0, re1, im1, ...]. Every function in this module takes and/or
produces buffers in that layout. Functions with an ``out`` argument write into
it when given and allocate a new array otherwise.

Self-check predicates (``is_real``, ``is_conjugate_symmetric``) use ``EPS``
and exist for debug assertions only; the math itself never rounds or clamps.
"""

import numpy as np
from typing import Optional

from .errors import NumericAssertionError, SizeMismatchError

EPS = 1e-6


def check_interleaved(buf: np.ndarray, name: str = 'buffer') -> None:
    """Raise SizeMismatchError unless *buf* is a 1-D array of even length."""
    if buf.ndim != 1 or buf.shape[0] % 2 != 0:
        raise SizeMismatchError(
            f"{name} must be a 1-D interleaved (re, im) array of even length, "
            f"got shape {buf.shape}")


def as_buffer(buf, dtype=None) -> np.ndarray:
    buf = np.asarray(buf)
    if dtype is not None:
        buf = buf.astype(dtype, copy=False)
    elif not np.issubdtype(buf.dtype, np.floating):
        buf = buf.astype(np.float64)
    check_interleaved(buf)
    return buf


def _output(out: Optional[np.ndarray], length: int, dtype) -> np.ndarray:
    if out is None:
        return np.empty(length, dtype=dtype)
    if out.shape != (length,):
        raise SizeMismatchError(f"Output length {out.shape} != ({length},)")
    return out


def expand(src: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Real[N] -> complex[2N] with a zero imaginary part."""
    src = np.asarray(src)
    if src.ndim != 1:
        raise SizeMismatchError(f"Input must be 1D, got shape {src.shape}")
    dtype = src.dtype if np.issubdtype(src.dtype, np.floating) else np.float64
    res = _output(out, 2 * src.shape[0], dtype)
    res[0::2] = src
    res[1::2] = 0
    return res


def conjugate(buf: np.ndarray) -> np.ndarray:
    """Negate every imaginary slot in place."""
    check_interleaved(buf)
    buf[1::2] *= -1
    return buf


def re(buf: np.ndarray) -> np.ndarray:
    check_interleaved(buf)
    return buf[0::2].copy()


def im(buf: np.ndarray) -> np.ndarray:
    check_interleaved(buf)
    return buf[1::2].copy()


def squared_magnitude(buf: np.ndarray) -> np.ndarray:
    """re^2 + im^2 per sample."""
    check_interleaved(buf)
    r = buf[0::2]
    i = buf[1::2]
    return r * r + i * i


def magnitude(buf: np.ndarray) -> np.ndarray:
    """sqrt(re^2 + im^2) per sample."""
    return np.sqrt(squared_magnitude(buf))


def squared_magnitude_reim(buf: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Same as squared_magnitude(), but keeps the interleaved layout (im = 0)."""
    return expand(squared_magnitude(buf), out)


def phase(buf: np.ndarray) -> np.ndarray:
    """
    Angle of each sample in (-pi, pi].

    The angle is 0 where the magnitude is 0; otherwise it is
    sign(im) * acos(re / |z|), with sign(0) taken as +1 so that negative
    reals map to pi rather than 0.
    """
    check_interleaved(buf)
    r = buf[0::2]
    i = buf[1::2]
    mag = np.sqrt(r * r + i * i)
    safe = np.where(mag > 0, mag, 1.0)
    angle = np.arccos(np.clip(r / safe, -1.0, 1.0))
    sign = np.where(i < 0, -1.0, 1.0)
    return np.where(mag > 0, sign * angle, 0.0)


def multiply(a: np.ndarray, b: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Elementwise complex product a * b."""
    check_interleaved(a, 'a')
    check_interleaved(b, 'b')
    if a.shape != b.shape:
        raise SizeMismatchError(f"Operand lengths differ: {a.shape[0]} != {b.shape[0]}")

    re1, im1 = a[0::2], a[1::2]
    re2, im2 = b[0::2], b[1::2]
    res_re = re1 * re2 - im1 * im2
    res_im = re1 * im2 + re2 * im1

    res = _output(out, a.shape[0], np.result_type(a, b))
    res[0::2] = res_re
    res[1::2] = res_im
    return res


def mix(a: np.ndarray, b: np.ndarray, weight: float = 1.0,
        out: Optional[np.ndarray] = None) -> np.ndarray:
    """Additive mixing: a + weight * b."""
    check_interleaved(a, 'a')
    check_interleaved(b, 'b')
    if a.shape != b.shape:
        raise SizeMismatchError(f"Operand lengths differ: {a.shape[0]} != {b.shape[0]}")
    res = _output(out, a.shape[0], np.result_type(a, b))
    np.add(a, weight * b, out=res)
    return res


def shift(buf: np.ndarray, phase: float, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Multiply sample i by exp(2*pi*i * i/N * phase).

    By the DFT Shift Theorem, the transform of the result is the original
    transform shifted by ``-phase`` bins, i.e. bin k of the result holds the
    spectrum at fractional frequency k - phase.
    """
    check_interleaved(buf)
    n = buf.shape[0] // 2
    a = 2 * np.pi * phase * np.arange(n) / n
    cos = np.cos(a)
    sin = np.sin(a)
    r = buf[0::2]
    i = buf[1::2]
    res_re = r * cos - i * sin
    res_im = r * sin + i * cos

    res = _output(out, buf.shape[0], buf.dtype)
    res[0::2] = res_re
    res[1::2] = res_im
    return res


def normalize(buf: np.ndarray) -> np.ndarray:
    """Scale in place by 1/sqrt(N), which makes the DFT unitary."""
    check_interleaved(buf)
    n = buf.shape[0] // 2
    buf *= 1.0 / np.sqrt(n)
    return buf


def exp_signal(size: int, freq: float, shift: float = 0.0, dtype=np.float64) -> np.ndarray:
    """exp(i * freq * (k - shift)) for k in [0, size)."""
    a = freq * (np.arange(size) - shift)
    res = np.empty(2 * size, dtype=dtype)
    res[0::2] = np.cos(a)
    res[1::2] = np.sin(a)
    return res


def gaussian(size: int, sigma: float, shift: float = 0.0, dtype=np.float64) -> np.ndarray:
    """Circular real Gaussian; samples past size/2 count as negative offsets."""
    k = np.arange(size)
    x = np.where(k < size / 2, k, k - size)
    res = np.zeros(2 * size, dtype=dtype)
    res[0::2] = np.exp(-0.5 * ((x - shift) / sigma) ** 2)
    return res


def stretch(src: np.ndarray, k: int) -> np.ndarray:
    """Repeat every sample k times: [a, b] -> [a, a, b, b] for k = 2."""
    if k < 1:
        raise ValueError(f"Stretch factor must be >= 1, got {k}")
    return np.repeat(np.asarray(src), k)


def to_complex(buf: np.ndarray) -> np.ndarray:
    check_interleaved(buf)
    return buf[0::2] + 1j * buf[1::2]


def from_complex(z: np.ndarray, dtype=np.float64) -> np.ndarray:
    z = np.asarray(z).ravel()
    res = np.empty(2 * z.shape[0], dtype=dtype)
    res[0::2] = z.real
    res[1::2] = z.imag
    return res


# ---------------------------------------------------------------------------
# Self-checks
# ---------------------------------------------------------------------------

def _tolerance(buf: np.ndarray, eps: float) -> float:
    peak = float(np.max(np.abs(buf))) if buf.size else 0.0
    return eps * max(1.0, peak)


def is_real(buf: np.ndarray, eps: float = EPS) -> bool:
    """True if every imaginary slot is within eps of zero."""
    check_interleaved(buf)
    return bool(np.all(np.abs(buf[1::2]) <= _tolerance(buf, eps)))


def is_conjugate_symmetric(buf: np.ndarray, eps: float = EPS) -> bool:
    """True if z[i] == conj(z[n - i]) for every i, within eps."""
    check_interleaved(buf)
    z = to_complex(buf)
    mirrored = np.conj(np.roll(z[::-1], 1))
    return bool(np.all(np.abs(z - mirrored) <= _tolerance(buf, eps)))


def dcheck(condition: bool, message: str = 'dcheck failed') -> None:
    """Raise NumericAssertionError when *condition* is false.

    Call sites wrap this in ``if __debug__:`` so ``python -O`` drops it.
    """
    if not condition:
        raise NumericAssertionError(message)
