"""
Window functions and frame extraction.

The transforms never window internally: callers window each frame before
calling fft / autocorrelation. These helpers produce the windows and frames
the way the analysis tools expect them.
"""

import numpy as np
from typing import Optional, Union


def hann(x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Hann bump on [0, 1]: sin(pi*x)^2 inside the interval, 0 outside."""
    x = np.asarray(x, dtype=np.float64)
    w = np.where((x > 0) & (x < 1), np.sin(np.pi * x) ** 2, 0.0)
    return w if w.ndim else float(w)


def get_window(window: Union[str, np.ndarray], win_length: int) -> np.ndarray:
    """
    Generate a window function.

    Parameters
    ----------
    window : str or np.ndarray
        'hann', 'hamming', 'blackman', 'rect', or a custom window of length
        win_length
    win_length : int
        Length of the window

    Returns
    -------
    np.ndarray
        Window of length win_length

    Notes
    -----
    Periodic ("DFT-even") windows: normalized by N, not N-1, so that
    window[i] == hann(i / N) for the Hann window.
    """
    if isinstance(window, np.ndarray):
        if len(window) != win_length:
            raise ValueError(f"Custom window length {len(window)} != win_length {win_length}")
        return window

    n = np.arange(win_length)

    if window == 'hann':
        # w[n] = 0.5 * (1 - cos(2*pi*n / N))
        return 0.5 - 0.5 * np.cos(2 * np.pi * n / win_length)
    elif window == 'hamming':
        return 0.54 - 0.46 * np.cos(2 * np.pi * n / win_length)
    elif window == 'blackman':
        return (0.42
                - 0.5 * np.cos(2 * np.pi * n / win_length)
                + 0.08 * np.cos(4 * np.pi * n / win_length))
    elif window == 'rect':
        return np.ones(win_length)
    else:
        raise ValueError(f"Unknown window type: {window}")


def padded_slice(src: np.ndarray, start: int, stop: int,
                 out: Optional[np.ndarray] = None) -> np.ndarray:
    """Same as src[start:stop], but zero-padded where the range leaves src."""
    src = np.asarray(src)
    length = stop - start
    if out is None:
        out = np.zeros(length, dtype=np.float64)
    else:
        out.fill(0)

    lo = max(0, start)
    hi = min(src.shape[0], stop)
    if hi > lo:
        out[lo - start:hi - start] = src[lo:hi]
    return out


def read_frame(audio: np.ndarray, num_frames: int, frame_id: int, frame_size: int,
               window: Union[str, np.ndarray] = 'hann') -> np.ndarray:
    """
    Extract frame frame_id of num_frames evenly spaced frames and window it.

    Frame i starts at i * (len(audio) - frame_size) / num_frames.
    """
    audio = np.asarray(audio)
    if not 0 <= frame_id < num_frames:
        raise ValueError(f"frame_id {frame_id} out of range [0, {num_frames})")
    if frame_size > audio.shape[0]:
        raise ValueError(f"frame_size {frame_size} exceeds audio length {audio.shape[0]}")

    step = (audio.shape[0] - frame_size) / num_frames
    t = int(frame_id * step)
    return audio[t:t + frame_size] * get_window(window, frame_size)
