"""
Continuous wavelet transform (CWT) scalograms with Morlet wavelets.

The analyzed time window is padded on both sides, transformed once, and then
convolved with one frequency-domain Morlet kernel per analyzed frequency:

    conv_f = IFFT[ FFT[signal] * W_f ]

Each row costs one inverse FFT. The padding is as wide as the support of the
lowest-frequency wavelet, so the circular convolution never wraps samples
from one end of the window into the other.
"""

import math
import numpy as np
from typing import Callable, Optional

from webacf.dsp_core import complex_buffer as cb
from webacf.dsp_core.derived import convolve
from webacf.dsp_core.factory import FFTFactory
from webacf.dsp_core.wavelet import morlet_spectrum, morlet_width
from webacf.dsp_core.windows import padded_slice
from webacf.utils.logging import get_logger

logger = get_logger(__name__)

MIN_ZOOM = 0.01


def mix(x: float, y: float, a: float) -> float:
    """Same as GLSL mix()."""
    return y * a + x * (1 - a)


def log2mix(x: float, y: float, a: float) -> float:
    return 2 ** mix(math.log2(x), math.log2(y), a)


class CWTAnalyzer:
    """
    Morlet scalogram of a time window of an audio signal.

    Args:
        samples: Mono audio samples
        sample_rate: Sample rate in Hz
        num_periods: Number of periods under the wavelet's Gaussian window
        t_min: First analyzed sample
        t_max: End of the analyzed window (exclusive), defaults to len(samples)
        f_min: Lowest analyzed frequency in Hz
        f_max: Highest analyzed frequency in Hz, defaults to Nyquist
        factory: Source of FFT engines
    """

    def __init__(
        self,
        samples: np.ndarray,
        sample_rate: float,
        num_periods: float = 6.0,
        t_min: float = 0,
        t_max: Optional[float] = None,
        f_min: float = 110.0,
        f_max: Optional[float] = None,
        factory: Optional[FFTFactory] = None,
    ):
        samples = np.asarray(samples, dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError(f"Expected mono samples, got shape {samples.shape}")
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be > 0, got {sample_rate}")
        if num_periods <= 0:
            raise ValueError(f"num_periods must be > 0, got {num_periods}")

        self.samples = samples
        self.sample_rate = float(sample_rate)
        self.num_periods = float(num_periods)
        self.t_min = float(t_min)
        self.t_max = float(t_max if t_max is not None else samples.shape[0])
        self.f_min = float(f_min)
        self.f_max = float(f_max if f_max is not None else sample_rate / 2)
        self.factory = factory if factory is not None else FFTFactory()

        self._check_window()
        self.signal_fft = None

    @classmethod
    def from_config(cls, samples: np.ndarray, config, t_min: float = 0,
                    t_max: Optional[float] = None,
                    factory: Optional[FFTFactory] = None) -> 'CWTAnalyzer':
        """Build an analyzer from an AnalysisConfig."""
        if factory is None:
            factory = FFTFactory(backend=config.backend, device=config.device)
        return cls(samples, config.sample_rate, config.num_periods, t_min, t_max,
                   config.f_min, config.max_frequency, factory)

    def _check_window(self):
        if not self.t_max - self.t_min >= 1:
            raise ValueError(f"Empty time window [{self.t_min}, {self.t_max})")
        if not 0 < self.f_min < self.f_max:
            raise ValueError(f"Expected 0 < f_min < f_max, got [{self.f_min}, {self.f_max}]")

    def period(self, freq: Optional[float] = None) -> float:
        """Period in samples of the given frequency (f_min by default)."""
        return self.sample_rate / (freq if freq is not None else self.f_min)

    @property
    def padding(self) -> int:
        return int(math.floor(morlet_width(self.period(), self.num_periods)))

    @property
    def view_size(self) -> int:
        return int(math.floor(self.t_max - self.t_min))

    @property
    def size(self) -> int:
        """FFT size: the padded window rounded up to a power of two."""
        return 2 ** int(math.ceil(math.log2(self.view_size + 2 * self.padding)))

    def prepare(self) -> np.ndarray:
        """Forward-transform the padded window; reused by every row until the view changes."""
        if self.signal_fft is not None:
            return self.signal_fft

        base = int(math.floor(self.t_min)) - self.padding  # can be negative
        signal = padded_slice(self.samples, base, base + self.size)

        logger.info(
            "CWT: FFT over %d samples (%.2f s), padding %d, view %.1f..%.1f s, %.1f..%.1f Hz",
            self.size, self.size / self.sample_rate, self.padding,
            self.t_min / self.sample_rate, self.t_max / self.sample_rate,
            self.f_min, self.f_max)

        self.signal_fft = self.factory.forward(cb.expand(signal))
        self._kernel = np.zeros_like(self.signal_fft)
        return self.signal_fft

    def frequencies(self, rows: int) -> np.ndarray:
        """Row frequencies, log2-spaced from f_max (row 0) down to f_min."""
        if rows < 1:
            raise ValueError(f"rows must be >= 1, got {rows}")
        if rows == 1:
            return np.array([self.f_max])
        return np.geomspace(self.f_max, self.f_min, rows)

    def row(self, freq: float) -> np.ndarray:
        """|signal ** wavelet(freq)| over the analyzed window, padding dropped."""
        signal_fft = self.prepare()
        kernel = morlet_spectrum(self.size, self.period(freq), self.num_periods, out=self._kernel)
        conv = convolve(signal_fft, kernel, self.factory)
        return conv[self.padding:self.padding + self.view_size]

    def row_energy(self, freq: float, width: int) -> np.ndarray:
        """Mean of |conv|^2 over width equal groups of samples of the view."""
        if width < 1:
            raise ValueError(f"width must be >= 1, got {width}")
        view = self.row(freq)
        psize = view.shape[0] / width
        idx = np.minimum((np.arange(view.shape[0]) / psize).astype(np.int64), width - 1)
        return np.bincount(idx, weights=view ** 2 / psize, minlength=width)

    def scalogram(
        self,
        rows: int,
        width: int,
        cancel: Optional[Callable[[], bool]] = None,
        progress: Optional[Callable[[int, int], None]] = None,
    ) -> np.ndarray:
        """
        Energy image of shape (rows, width); row 0 is the highest frequency.

        cancel is polled before each row; once it returns True the remaining
        rows are left at zero. progress(done, rows) is called after each row.
        """
        freqs = self.frequencies(rows)
        image = np.zeros((rows, width))
        self.prepare()

        for y, freq in enumerate(freqs):
            if cancel is not None and cancel():
                logger.info("CWT: cancelled after %d of %d rows", y, rows)
                break
            image[y] = self.row_energy(freq, width)
            if progress is not None:
                progress(y + 1, rows)

        return image

    def zoom(self, x1: float, x2: float, y1: float, y2: float):
        """
        Narrow the view to a sub-rectangle of the current scalogram.

        x is the fraction of the time window, y the fraction of the image
        height (y = 0 is f_max). Frequencies interpolate on a log2 scale.
        """
        if x1 > x2:
            x1, x2 = x2, x1
        if y1 > y2:
            y1, y2 = y2, y1
        if x2 - x1 < MIN_ZOOM or y2 - y1 < MIN_ZOOM:
            raise ValueError("The selected area is too small")

        t_min, t_max = self.t_min, self.t_max
        self.t_min = mix(t_min, t_max, x1)
        self.t_max = mix(t_min, t_max, x2)

        f_min, f_max = self.f_min, self.f_max
        self.f_min = log2mix(f_min, f_max, 1 - y2)
        self.f_max = log2mix(f_min, f_max, 1 - y1)

        self._check_window()
        self.signal_fft = None
        logger.debug("CWT: zoomed to %.1f..%.1f, %.1f..%.1f Hz",
                     self.t_min, self.t_max, self.f_min, self.f_max)

    def pan(self, pages: int = 1):
        """Move the time window by whole window widths."""
        size = self.t_max - self.t_min
        self.t_min += pages * size
        self.t_max += pages * size
        self.signal_fft = None

    def __repr__(self) -> str:
        return (f"CWTAnalyzer(t=[{self.t_min:.0f}, {self.t_max:.0f}), "
                f"f=[{self.f_min:.1f}, {self.f_max:.1f}] Hz, num_periods={self.num_periods})")
