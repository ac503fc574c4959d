"""
FFTFactory: the service that owns shared transform resources.

One factory holds one BitReversalCache and memoizes engines by
(kind, size, layout), so every engine it hands out for a given size shares
the same read-only permutation table.
"""

import threading
import numpy as np
from typing import Dict, Optional, Tuple

from .backends import ComputeBackend, get_backend
from .bitrev import BitReversalCache
from .fft import FFTEngine, FourierTransform
from .parallel_fft import ParallelFFT, split_size
from ..utils.logging import get_logger

logger = get_logger(__name__)

KINDS = ('scalar', 'parallel')


class FFTFactory:
    """
    Creates and caches FourierTransform instances.

    Args:
        kind: Default engine for get(): 'scalar' or 'parallel'
        backend: ComputeBackend instance or name for parallel engines
        device: Torch device, used when backend == 'torch'
        dtype: Float dtype for scalar engines
    """

    def __init__(
        self,
        kind: str = 'scalar',
        backend='numpy',
        device: Optional[str] = None,
        dtype=np.float64,
    ):
        if kind not in KINDS:
            raise ValueError(f"Unknown engine kind: {kind}. Choose from {KINDS}")
        if isinstance(backend, ComputeBackend):
            self.backend = backend
        elif backend == 'torch':
            self.backend = get_backend('torch', device=device)
        else:
            self.backend = get_backend(backend)

        self.kind = kind
        self.dtype = np.dtype(dtype)
        self.bitrev_cache = BitReversalCache()
        self._engines: Dict[Tuple, FourierTransform] = {}
        self._lock = threading.Lock()

    def _memoize(self, key: Tuple, build) -> FourierTransform:
        engine = self._engines.get(key)
        if engine is not None:
            return engine
        with self._lock:
            engine = self._engines.get(key)
            if engine is None:
                engine = build()
                self._engines[key] = engine
                logger.debug("FFTFactory: new engine %r", engine)
        return engine

    def scalar(self, size: int) -> FFTEngine:
        return self._memoize(
            ('scalar', size, None),
            lambda: FFTEngine(size, self.bitrev_cache, self.dtype))

    def parallel(self, width: int, height: int = 1, layout: Optional[str] = None) -> ParallelFFT:
        return self._memoize(
            ('parallel', width, height, layout),
            lambda: ParallelFFT(width, height, layout, self.backend, self.bitrev_cache))

    def get(self, size: int) -> FourierTransform:
        """1-D transform of the given size, of this factory's default kind."""
        if self.kind == 'parallel':
            width, height = split_size(size)
            return self.parallel(width, height)
        return self.scalar(size)

    def forward(self, src: np.ndarray, res: Optional[np.ndarray] = None) -> np.ndarray:
        """Forward unitary DFT of an interleaved buffer of any supported size."""
        return self.get(np.shape(src)[0] // 2).transform(src, res)

    def inverse(self, src: np.ndarray, res: Optional[np.ndarray] = None) -> np.ndarray:
        return self.get(np.shape(src)[0] // 2).inverse(src, res)

    def __len__(self) -> int:
        return len(self._engines)

    def __repr__(self) -> str:
        return f"FFTFactory(kind={self.kind!r}, backend={self.backend!r})"
