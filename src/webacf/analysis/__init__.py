"""
Analysis tools built on the DSP core: CWT scalograms and frame statistics.
"""

from .cwt import CWTAnalyzer
from .stats import FrameStats, frame_stats, bin_to_hz, hz_to_bin

__all__ = ['CWTAnalyzer', 'FrameStats', 'frame_stats', 'bin_to_hz', 'hz_to_bin']
