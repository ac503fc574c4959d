"""
Summary statistics of analysis surfaces and bin/frequency conversions.
"""

import numpy as np
from dataclasses import dataclass, asdict
from typing import Dict, Union


@dataclass
class FrameStats:
    """min / max / mean / population std of one surface."""
    min: float
    max: float
    mean: float
    std: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def normalize(self, data: np.ndarray) -> np.ndarray:
        """Map data to [0, 1] using this surface's range; constant input maps to 0."""
        span = self.max - self.min
        if span <= 0:
            return np.zeros_like(data, dtype=np.float64)
        return (np.asarray(data, dtype=np.float64) - self.min) / span


def frame_stats(data: np.ndarray) -> FrameStats:
    """
    Compute statistics of an ACF, spectrum or bispectrum surface.

    Args:
        data: Real array of any shape (at least one element)

    Returns:
        FrameStats of all elements; NaNs are propagated
    """
    data = np.asarray(data, dtype=np.float64)
    if data.size == 0:
        raise ValueError("Cannot compute statistics of an empty array")

    return FrameStats(
        min=float(data.min()),
        max=float(data.max()),
        mean=float(data.mean()),
        std=float(data.std()),
    )


def bin_to_hz(k: Union[int, float, np.ndarray], fft_size: int, sample_rate: float):
    """Frequency of (fractional) bin k of an fft_size DFT."""
    return k * sample_rate / fft_size


def hz_to_bin(freq: Union[float, np.ndarray], fft_size: int, sample_rate: float):
    """Inverse of bin_to_hz; the result is fractional."""
    return freq * fft_size / sample_rate
