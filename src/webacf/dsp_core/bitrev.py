"""
Bit-reversal permutation tables.

Tables are pure functions of the transform size, so a cache can hand the same
read-only array to every engine of that size. The cache is an explicit object:
engines built by one FFTFactory share its cache; an engine built on its own
gets a private one.
"""

import threading
import numpy as np
from typing import Dict

from .errors import InvalidSizeError
from ..utils.logging import get_logger

logger = get_logger(__name__)


def is_power_of_two(n) -> bool:
    return isinstance(n, (int, np.integer)) and not isinstance(n, bool) and n > 0 and (n & (n - 1)) == 0


def check_size(size, what: str = 'FFT size') -> int:
    """Validate a transform size: an integer power of two, >= 2."""
    if not is_power_of_two(size) or size < 2:
        raise InvalidSizeError(f"{what}: {size} != 2**k with k >= 1")
    return int(size)


def build_bit_reversal(size: int) -> np.ndarray:
    """table[k] = k with its log2(size) low bits reversed."""
    size = check_size(size)
    n_bits = size.bit_length() - 1
    k = np.arange(size, dtype=np.int64)
    r = np.zeros(size, dtype=np.int64)
    for i in range(n_bits):
        r = (r << 1) | ((k >> i) & 1)
    r.setflags(write=False)
    return r


class BitReversalCache:
    """
    Lazily built, never invalidated map: size -> bit-reversal table.

    First-time population is serialized with a lock; a table is built at
    most once per size per cache.
    """

    def __init__(self):
        self._tables: Dict[int, np.ndarray] = {}
        self._lock = threading.Lock()

    def get(self, size: int) -> np.ndarray:
        table = self._tables.get(size)
        if table is not None:
            return table

        with self._lock:
            table = self._tables.get(size)
            if table is None:
                table = build_bit_reversal(size)
                self._tables[size] = table
                logger.debug("Built bit-reversal table for N=%d", size)
        return table

    def __contains__(self, size: int) -> bool:
        return size in self._tables

    def __len__(self) -> int:
        return len(self._tables)
