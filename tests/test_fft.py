"""
Unit tests for the scalar FFT engine and FFTFactory.

Reference values come from scipy.fft with norm='ortho' (the unitary DFT).

Run:
    pytest tests/test_fft.py -v
"""

import time

import numpy as np
import pytest
from scipy.fft import fft as scipy_fft, ifft as scipy_ifft

from webacf.dsp_core import complex_buffer as cb
from webacf.dsp_core import FFTEngine, FFTFactory, InvalidSizeError, SizeMismatchError


def complex_signal(rng, n):
    return rng.standard_normal(n) + 1j * rng.standard_normal(n)


class TestFFTEngine:
    """Test suite for the scalar radix-2 engine."""

    def test_matches_scipy_ortho(self, rng):
        for n in [2, 4, 8, 64, 256, 1024]:
            z = complex_signal(rng, n)
            res = FFTEngine(n).transform(cb.from_complex(z))
            error = np.abs(cb.to_complex(res) - scipy_fft(z, norm='ortho'))
            assert error.max() < 1e-10, f"FFT failed for N={n}: {error.max()}"

    def test_inverse_matches_scipy_ortho(self, rng):
        z = complex_signal(rng, 128)
        res = FFTEngine(128).inverse(cb.from_complex(z))
        assert np.allclose(cb.to_complex(res), scipy_ifft(z, norm='ortho'))

    def test_round_trip(self, rng):
        for n in [8, 512, 4096]:
            engine = FFTEngine(n)
            src = rng.standard_normal(2 * n)
            back = engine.inverse(engine.transform(src))
            assert np.abs(back - src).max() < 1e-9, f"Round trip failed for N={n}"

    def test_parseval(self, rng):
        engine = FFTEngine(1024)
        src = rng.standard_normal(2048)
        res = engine.transform(src)
        assert np.isclose(np.sum(src ** 2), np.sum(res ** 2))

    def test_linearity(self, rng):
        engine = FFTEngine(256)
        a = rng.standard_normal(512)
        b = rng.standard_normal(512)
        combined = engine.transform(2.5 * a - 0.5 * b)
        separate = 2.5 * engine.transform(a) - 0.5 * engine.transform(b)
        assert np.allclose(combined, separate)

    def test_impulse_is_flat(self):
        n = 64
        src = np.zeros(2 * n)
        src[0] = 1.0
        res = FFTEngine(n).transform(src)
        assert np.allclose(cb.re(res), 1 / np.sqrt(n))
        assert np.allclose(cb.im(res), 0.0)

    def test_step_n8(self):
        """[1, 1, 1, 1, 0, 0, 0, 0]: DC = 4/sqrt(8), Nyquist = 0."""
        x = np.array([1, 1, 1, 1, 0, 0, 0, 0], dtype=np.float64)
        res = FFTEngine(8).transform(cb.expand(x))
        mag = cb.magnitude(res)
        assert np.isclose(mag[0], 4 / np.sqrt(8))
        assert mag[4] < 1e-12
        assert np.allclose(cb.to_complex(res), scipy_fft(x, norm='ortho'))

    def test_transform_in_place(self, rng):
        engine = FFTEngine(32)
        src = rng.standard_normal(64)
        expected = engine.transform(src)
        buf = src.copy()
        res = engine.transform(buf, buf)
        assert res is buf
        assert np.allclose(buf, expected)

    def test_inverse_restores_input(self, rng):
        engine = FFTEngine(32)
        src = rng.standard_normal(64)
        saved = src.copy()
        engine.inverse(src)
        assert np.array_equal(src, saved)

    def test_inverse_in_place(self, rng):
        engine = FFTEngine(32)
        spectrum = rng.standard_normal(64)
        expected = engine.inverse(spectrum)
        res = engine.inverse(spectrum, spectrum)
        assert res is spectrum
        assert np.allclose(spectrum, expected)

    def test_float32(self, rng):
        z = complex_signal(rng, 512)
        res = FFTEngine(512, dtype=np.float32).transform(cb.from_complex(z))
        assert res.dtype == np.float32
        assert np.abs(cb.to_complex(res) - scipy_fft(z, norm='ortho')).max() < 1e-4

    def test_invalid_size(self):
        for n in [0, 1, 12, 1000]:
            with pytest.raises(InvalidSizeError):
                FFTEngine(n)

    def test_buffer_size_mismatch(self):
        engine = FFTEngine(16)
        with pytest.raises(SizeMismatchError):
            engine.transform(np.zeros(16))
        with pytest.raises(SizeMismatchError):
            engine.transform(np.zeros(32), np.zeros(30))
        with pytest.raises(SizeMismatchError):
            engine.inverse(np.zeros(64))

    def test_inverse_needs_ndarray(self):
        """transform takes any sequence, inverse conjugates in place so it does not."""
        engine = FFTEngine(4)
        samples = [1.0, 0.0] * 4
        assert np.allclose(engine.transform(samples), engine.transform(np.array(samples)))
        with pytest.raises(TypeError, match='ndarray'):
            engine.inverse(samples)
        with pytest.raises(TypeError):
            FFTFactory().inverse(samples)

    def test_fft_performance(self, rng):
        """Benchmark the engine against scipy."""
        print(f"\n[FFT Performance Benchmark]")
        print(f"{'Size':>6s} | {'Ours (ms)':>10s} | {'Scipy (ms)':>11s}")
        print("-" * 36)

        for n in [256, 1024, 4096]:
            engine = FFTEngine(n)
            src = rng.standard_normal(2 * n)
            z = cb.to_complex(src)
            engine.transform(src)  # JIT warm up

            n_iter = 50
            start = time.time()
            for _ in range(n_iter):
                engine.transform(src)
            time_ours = (time.time() - start) / n_iter * 1000

            start = time.time()
            for _ in range(n_iter):
                scipy_fft(z, norm='ortho')
            time_scipy = (time.time() - start) / n_iter * 1000

            print(f"{n:6d} | {time_ours:10.3f} | {time_scipy:11.3f}")


class TestFFTFactory:
    """Test suite for engine and table sharing."""

    def test_memoizes_engines(self):
        factory = FFTFactory()
        assert factory.scalar(64) is factory.scalar(64)
        assert factory.scalar(64) is not factory.scalar(128)
        assert len(factory) == 2

    def test_engines_share_bitrev_tables(self):
        factory = FFTFactory()
        engine = factory.scalar(256)
        assert engine.revidx is factory.bitrev_cache.get(256)
        assert 256 in factory.bitrev_cache

    def test_forward_inverse_pick_size(self, rng):
        factory = FFTFactory()
        for n in [8, 32]:
            z = complex_signal(rng, n)
            res = factory.forward(cb.from_complex(z))
            assert np.allclose(cb.to_complex(res), scipy_fft(z, norm='ortho'))
            assert np.allclose(factory.inverse(res), cb.from_complex(z))

    def test_parallel_kind_matches_scalar(self, rng):
        scalar = FFTFactory()
        parallel = FFTFactory(kind='parallel')
        src = rng.standard_normal(2 * 512)
        assert np.allclose(parallel.forward(src), scalar.forward(src), atol=1e-10)
        assert parallel.get(512).name == 'ParallelFFT'

    def test_invalid_kind(self):
        with pytest.raises(ValueError):
            FFTFactory(kind='gpu')
        with pytest.raises(ValueError):
            FFTFactory(backend='opencl')
