"""
webacf - FFT-based autocorrelation, bispectrum and wavelet analysis of audio frames.
"""

__version__ = '1.0.0'
