"""
Unitary radix-2 FFT using Numba JIT

Scalar reference implementation of the iterative Cooley-Tukey
decimation-in-time transform over interleaved (re, im) buffers:

1. Bit-reversal permutation of the input into the output buffer
2. Butterfly stages s = 2, 4, 8, ..., N using precomputed unit roots
3. Scaling by 1/sqrt(N), which makes the transform unitary

The inverse transform has no separate code path: it is obtained from the
forward one by complex conjugation, which works because forward and inverse
share the same 1/sqrt(N) factor.
"""

import numpy as np
from abc import ABC, abstractmethod
from numba import jit
from typing import Optional

from .bitrev import BitReversalCache, check_size
from .complex_buffer import as_buffer, conjugate
from .errors import SizeMismatchError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@jit(nopython=True, cache=True)
def _bit_reverse(src: np.ndarray, res: np.ndarray, revidx: np.ndarray) -> None:
    """res[revidx[i]] = src[i] for every complex sample i."""
    for i in range(revidx.shape[0]):
        r = revidx[i]
        res[2 * r] = src[2 * i]
        res[2 * r + 1] = src[2 * i + 1]


@jit(nopython=True, cache=True)
def _butterflies(res: np.ndarray, uroots: np.ndarray) -> None:
    """
    In-place DIT butterflies (DSP Guide, ch. 12).

    uroots holds exp(2*pi*i*k/N) interleaved; the odd half is multiplied by
    its conjugate, exp(-2*pi*i*k/N).
    """
    n = uroots.shape[0] // 2
    s = 2
    while s <= n:
        half = s // 2
        for k in range(half):
            kth = n // s * k  # 0..n/2
            cos = uroots[2 * kth]
            sin = uroots[2 * kth + 1]

            for j in range(n // s):
                u = j * s + k
                v = u + half

                # E[k]
                e_re = res[2 * u]
                e_im = res[2 * u + 1]

                # O[k]
                o_re = res[2 * v]
                o_im = res[2 * v + 1]

                # O[k] * exp(-2*pi*i*k/s)
                t_re = o_re * cos + o_im * sin
                t_im = o_im * cos - o_re * sin

                res[2 * u] = e_re + t_re
                res[2 * u + 1] = e_im + t_im
                res[2 * v] = e_re - t_re
                res[2 * v + 1] = e_im - t_im
        s *= 2


@jit(nopython=True, cache=True)
def _scale(res: np.ndarray, factor: float) -> None:
    for i in range(res.shape[0]):
        res[i] *= factor


def unit_roots(size: int, dtype=np.float64) -> np.ndarray:
    """uroots[k] = exp(2*pi*i*k/size), interleaved."""
    a = 2 * np.pi * np.arange(size) / size
    res = np.empty(2 * size, dtype=dtype)
    res[0::2] = np.cos(a)
    res[1::2] = np.sin(a)
    return res


class FourierTransform(ABC):
    """
    A unitary complex DFT over interleaved buffers of length 2 * size.

    Implementations only provide the forward transform; inverse() is shared.
    """

    size: int

    @property
    @abstractmethod
    def name(self) -> str:
        """Implementation name"""

    @abstractmethod
    def transform(self, src: np.ndarray, res: Optional[np.ndarray] = None) -> np.ndarray:
        """Forward unitary DFT of src, written into res (allocated if None)."""

    def inverse(self, src: np.ndarray, res: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Inverse unitary DFT: conj(DFT(conj(src))).

        src must be a writable ndarray: it is conjugated in place for the
        duration of the call and restored before returning. res may be src
        itself.
        """
        if not isinstance(src, np.ndarray):
            raise TypeError(
                f"{self.name}.inverse conjugates its input in place and needs an ndarray, "
                f"got {type(src).__name__}")
        self.check_buffers(src, res)
        same = res is not None and np.shares_memory(src, res)

        conjugate(src)
        try:
            res = self.transform(src, res)
        finally:
            if not same:
                conjugate(src)
        return conjugate(res)

    def check_buffers(self, src: np.ndarray, res: Optional[np.ndarray]) -> None:
        expected = 2 * self.size
        if src.shape != (expected,):
            raise SizeMismatchError(
                f"{self.name}: input shape {src.shape} != ({expected},)")
        if res is not None and res.shape != (expected,):
            raise SizeMismatchError(
                f"{self.name}: output shape {res.shape} != ({expected},)")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(size={self.size})"


class FFTEngine(FourierTransform):
    """Sequential scalar FFT bound to one power-of-two size."""

    def __init__(self, size: int, bitrev_cache: Optional[BitReversalCache] = None,
                 dtype=np.float64):
        self.size = check_size(size)
        self.dtype = np.dtype(dtype)
        cache = bitrev_cache if bitrev_cache is not None else BitReversalCache()
        self.revidx = cache.get(self.size)
        self.uroots = unit_roots(self.size, self.dtype)
        logger.debug("FFTEngine ready: N=%d, dtype=%s", self.size, self.dtype)

    @property
    def name(self) -> str:
        return "FFTEngine"

    def transform(self, src: np.ndarray, res: Optional[np.ndarray] = None) -> np.ndarray:
        self.check_buffers(as_buffer(src), res)

        if res is None:
            res = np.empty(2 * self.size, dtype=self.dtype)

        src = np.asarray(src)
        if np.shares_memory(src, res):
            src = src.copy()
        src = np.ascontiguousarray(src, dtype=self.dtype)

        work = res if res.dtype == self.dtype and res.flags.c_contiguous else \
            np.empty(2 * self.size, dtype=self.dtype)

        _bit_reverse(src, work, self.revidx)
        _butterflies(work, self.uroots)
        _scale(work, 1.0 / np.sqrt(self.size))

        if work is not res:
            res[:] = work
        return res
