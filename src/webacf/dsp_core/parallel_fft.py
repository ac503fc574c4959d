"""
Data-parallel FFT

Same radix-2 algorithm as FFTEngine, restructured so that within each pass
every output element is an independent function of two input reads. A pass
can therefore run as one shader invocation, SIMD lane or thread per element;
passes run strictly in order (stage s + 1 reads what stage s wrote).

The complex buffer is laid out as a width x height 2-D grid (element
p = y * width + x). The layout selects which 1-D transforms are computed:

- None:   the whole grid is one flattened transform of size width * height
- 'rows': every row is transformed independently (size width)
- 'cols': every column is transformed independently (size height)

Passes, each reading one buffer and writing the other (ping-pong):
bit-reversal gather -> one butterfly pass per stage -> normalization.
"""

import threading
import numpy as np
from typing import List, Optional, Tuple

from .backends import ComputeBackend, GatherKernel, NumpyBackend
from .bitrev import BitReversalCache, check_size, is_power_of_two
from .complex_buffer import as_buffer
from .errors import InvalidSizeError
from .fft import FourierTransform, unit_roots
from ..utils.logging import get_logger

logger = get_logger(__name__)

LAYOUTS = (None, 'rows', 'cols')


def split_size(n: int) -> Tuple[int, int]:
    """Factor n = width * height with width >= height, both powers of two."""
    nlog2 = check_size(n).bit_length() - 1
    width = 2 ** ((nlog2 + 1) // 2)
    height = 2 ** (nlog2 // 2)
    return width, height


class ParallelFFT(FourierTransform):
    """Stage-parallel FFT over a 2-D buffer, run on a ComputeBackend."""

    def __init__(
        self,
        width: int,
        height: int = 1,
        layout: Optional[str] = None,
        backend: Optional[ComputeBackend] = None,
        bitrev_cache: Optional[BitReversalCache] = None,
    ):
        if layout not in LAYOUTS:
            raise ValueError(f"Unknown layout: {layout!r}. Choose from {LAYOUTS}")
        for dim in (width, height):
            if not is_power_of_two(dim):
                raise InvalidSizeError(f"Buffer dimensions must be powers of 2, got {width}x{height}")

        self.width = int(width)
        self.height = int(height)
        self.layout = layout
        self.size = self.width * self.height

        if layout == 'rows':
            n = self.width
        elif layout == 'cols':
            n = self.height
        else:
            n = self.size
        self.n = check_size(n, 'FFT length')

        self.backend = backend if backend is not None else NumpyBackend()
        cache = bitrev_cache if bitrev_cache is not None else BitReversalCache()
        self.revidx = cache.get(self.n)

        self.kernels = [self.backend.compile(k) for k in self.build_kernels()]

        # texture holds the input, texture1/2 are the ping-pong pair;
        # _lock serializes callers sharing them
        self.texture = self.backend.allocate(self.width, self.height, 2)
        self.texture1 = self.backend.allocate(self.width, self.height, 2)
        self.texture2 = self.backend.allocate(self.width, self.height, 2)
        self._lock = threading.Lock()

        logger.debug("ParallelFFT ready: %dx%d, layout=%s, n=%d, %d passes on %s",
                     self.width, self.height, layout, self.n, len(self.kernels),
                     self.backend.name)

    @classmethod
    def for_size(cls, n: int, backend: Optional[ComputeBackend] = None,
                 bitrev_cache: Optional[BitReversalCache] = None) -> 'ParallelFFT':
        """1-D transform of size n laid out on a near-square grid."""
        width, height = split_size(n)
        return cls(width, height, None, backend, bitrev_cache)

    @property
    def name(self) -> str:
        return "ParallelFFT"

    @property
    def num_stages(self) -> int:
        return self.n.bit_length() - 1

    def _line_addressing(self) -> Tuple[np.ndarray, np.ndarray, int]:
        """(position within its line, line base address, stride) per element."""
        p = np.arange(self.size, dtype=np.int64)
        x = p % self.width
        y = p // self.width

        if self.layout == 'rows':
            return x, y * self.width, 1
        if self.layout == 'cols':
            return y, x, self.width
        return p, np.zeros_like(p), 1

    def build_kernels(self) -> List[GatherKernel]:
        pos, base, stride = self._line_addressing()
        zeros = np.zeros(self.size)
        kernels = []

        # Bit reversal is an involution, so gathering from rev[pos]
        # is the same permutation as scattering to it.
        src = base + self.revidx[pos] * stride
        kernels.append(GatherKernel('bit_reverse', src, src, zeros, zeros))

        uroots = unit_roots(self.n)
        s = 2
        while s <= self.n:
            half = s // 2
            j = pos // s
            k = pos % half
            even = j * s + k
            odd = even + half
            sign = np.where(pos % s < half, 1.0, -1.0)

            # exp(-2*pi*i*k/s) = conj(uroots[k * n/s])
            kth = self.n // s * k
            tw_re = sign * uroots[2 * kth]
            tw_im = -sign * uroots[2 * kth + 1]

            kernels.append(GatherKernel(
                f'stage_{s}', base + even * stride, base + odd * stride, tw_re, tw_im))
            s *= 2

        identity = np.arange(self.size, dtype=np.int64)
        kernels.append(GatherKernel(
            'normalize', identity, identity, zeros, zeros, scale=1.0 / np.sqrt(self.n)))
        return kernels

    def transform(self, src: np.ndarray, res: Optional[np.ndarray] = None) -> np.ndarray:
        src = as_buffer(src)
        self.check_buffers(src, res)

        with self._lock:
            self.backend.upload(self.texture, src)

            self.backend.execute(self.kernels[0], self.texture, self.texture1)

            tex1, tex2 = self.texture1, self.texture2
            for kernel in self.kernels[1:]:
                self.backend.execute(kernel, tex1, tex2)
                tex1, tex2 = tex2, tex1

            out = self.backend.download(tex1)

        if res is None:
            return out.astype(src.dtype, copy=False)
        res[:] = out
        return res
