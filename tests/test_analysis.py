"""
Unit tests for CWT scalograms and frame statistics.

Run:
    pytest tests/test_analysis.py -v
"""

import math

import numpy as np
import pytest

from webacf.analysis import CWTAnalyzer, FrameStats, bin_to_hz, frame_stats, hz_to_bin
from webacf.dsp_core import FFTFactory
from webacf.utils.config import AnalysisConfig

SR = 8000


def tone(freq, n=4096, sr=SR):
    return np.sin(2 * np.pi * freq * np.arange(n) / sr)


class TestCWTAnalyzer:
    """Test suite for the Morlet scalogram."""

    def test_geometry(self):
        cwt = CWTAnalyzer(tone(1000), SR, num_periods=6.0, f_min=110.0)
        assert cwt.f_max == SR / 2
        assert cwt.padding == math.floor(SR / 110.0 * 6.0)
        assert cwt.view_size == 4096
        assert cwt.size == 8192
        assert cwt.size >= cwt.view_size + 2 * cwt.padding

    def test_frequencies(self):
        cwt = CWTAnalyzer(tone(1000), SR, f_min=125.0, f_max=4000.0)
        freqs = cwt.frequencies(6)
        assert np.isclose(freqs[0], 4000.0)
        assert np.isclose(freqs[-1], 125.0)
        assert np.allclose(freqs[:-1] / freqs[1:], 2.0)
        assert cwt.frequencies(1).tolist() == [4000.0]

    def test_row_length(self):
        cwt = CWTAnalyzer(tone(1000), SR, t_min=1000, t_max=3000)
        assert cwt.row(1000.0).shape == (2000,)

    def test_row_peaks_at_tone(self):
        cwt = CWTAnalyzer(tone(1000), SR)
        on = cwt.row(1000.0)
        off = cwt.row(250.0)
        assert on.mean() > 10 * off.mean()

    def test_scalogram_peak_row(self):
        cwt = CWTAnalyzer(tone(1000), SR, f_min=110.0, f_max=4000.0)
        rows, width = 48, 16
        image = cwt.scalogram(rows, width)
        assert image.shape == (rows, width)

        freqs = cwt.frequencies(rows)
        peak = freqs[np.argmax(image.mean(axis=1))]
        assert abs(math.log2(peak / 1000.0)) < 0.15, f"Peak row at {peak:.1f} Hz"

    def test_row_energy_averages(self):
        cwt = CWTAnalyzer(tone(1000), SR)
        view = cwt.row(1000.0)
        energy = cwt.row_energy(1000.0, 8)
        expected = (view ** 2).reshape(8, -1).mean(axis=1)
        assert np.allclose(energy, expected)

    def test_scalogram_progress_and_cancel(self):
        cwt = CWTAnalyzer(tone(1000), SR, f_min=500.0, f_max=2000.0)
        calls = []
        polls = []

        def cancel():
            polls.append(1)
            return len(polls) > 3

        image = cwt.scalogram(8, 4, cancel=cancel, progress=lambda done, total: calls.append((done, total)))
        assert calls == [(1, 8), (2, 8), (3, 8)]
        assert np.all(image[3:] == 0)
        assert all(image[y].any() for y in range(3))

    def test_transform_is_reused(self):
        cwt = CWTAnalyzer(tone(1000), SR)
        spectrum = cwt.prepare()
        cwt.row(500.0)
        assert cwt.prepare() is spectrum

    def test_zoom(self):
        cwt = CWTAnalyzer(tone(1000), SR, f_min=100.0, f_max=1600.0)
        cwt.prepare()
        cwt.zoom(0.75, 0.25, 0.5, 0.0)
        assert cwt.t_min == 1024.0
        assert cwt.t_max == 3072.0
        assert np.isclose(cwt.f_min, 400.0)
        assert np.isclose(cwt.f_max, 1600.0)
        assert cwt.signal_fft is None

    def test_zoom_too_small(self):
        cwt = CWTAnalyzer(tone(1000), SR)
        with pytest.raises(ValueError):
            cwt.zoom(0.5, 0.505, 0.0, 1.0)

    def test_pan(self):
        cwt = CWTAnalyzer(tone(1000), SR, t_min=0, t_max=1000)
        cwt.pan(2)
        assert (cwt.t_min, cwt.t_max) == (2000.0, 3000.0)
        assert cwt.row(1000.0).shape == (1000,)

    def test_from_config(self):
        config = AnalysisConfig(sample_rate=SR, num_periods=4.0, f_min=200.0)
        factory = FFTFactory()
        cwt = CWTAnalyzer.from_config(tone(1000), config, factory=factory)
        assert cwt.num_periods == 4.0
        assert cwt.f_min == 200.0
        assert cwt.f_max == SR / 2
        assert cwt.factory is factory

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            CWTAnalyzer(np.zeros((2, 100)), SR)
        with pytest.raises(ValueError):
            CWTAnalyzer(tone(1000), SR, f_min=5000.0)
        with pytest.raises(ValueError):
            CWTAnalyzer(tone(1000), SR, t_min=100, t_max=100)
        with pytest.raises(ValueError):
            CWTAnalyzer(tone(1000), SR, num_periods=0)


class TestStats:
    """Test suite for frame statistics and bin conversions."""

    def test_frame_stats(self):
        stats = frame_stats(np.array([[1.0, 2.0], [3.0, 4.0]]))
        assert stats == FrameStats(min=1.0, max=4.0, mean=2.5, std=math.sqrt(1.25))
        assert stats.to_dict() == {'min': 1.0, 'max': 4.0, 'mean': 2.5, 'std': math.sqrt(1.25)}

    def test_normalize(self):
        data = np.array([2.0, 4.0, 6.0])
        assert frame_stats(data).normalize(data).tolist() == [0.0, 0.5, 1.0]
        assert frame_stats(np.ones(3)).normalize(np.ones(3)).tolist() == [0.0, 0.0, 0.0]

    def test_empty(self):
        with pytest.raises(ValueError):
            frame_stats(np.array([]))

    def test_bin_conversions(self):
        assert bin_to_hz(64, 1024, 48000) == 3000.0
        assert hz_to_bin(3000.0, 1024, 48000) == 64.0
        bins = np.array([0.0, 10.5, 512.0])
        assert np.allclose(hz_to_bin(bin_to_hz(bins, 2048, 44100), 2048, 44100), bins)
