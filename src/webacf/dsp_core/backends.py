"""
Compute backends for the data-parallel FFT.

A backend is the minimal "GPU context" the parallel transform needs:

- allocate a 2-D float buffer of a given width, height and channel count
- compile a pass description into something it can run
- run a pass that computes every output element independently from a
  bounded set of input reads (ping-pong: src and dst are distinct buffers)

Every pass is a GatherKernel. Output element i is

    dst[i] = scale * (src[even[i]] + twiddle[i] * src[odd[i]])

with complex arithmetic over the two (re, im) channels. A bit-reversal pass
uses a zero twiddle, a normalization pass uses the identity index map.

Backends:
- numpy: vectorized gather over all elements at once (SIMD-style)
- numba: one prange iteration per output element (Numba JIT, parallel=True)
- torch: the same gather on a torch device ('cpu' or 'cuda')
"""

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from numba import jit, prange
from typing import Any, Dict, List, Optional

import torch


@dataclass
class GatherKernel:
    """One parallel pass over a width x height complex buffer."""

    name: str
    even: np.ndarray  # int64 read index per output element
    odd: np.ndarray  # int64 read index per output element
    twiddle_re: np.ndarray
    twiddle_im: np.ndarray
    scale: float = 1.0

    def __post_init__(self):
        n = self.even.shape[0]
        for field in (self.odd, self.twiddle_re, self.twiddle_im):
            if field.shape != (n,):
                raise ValueError(f"Kernel {self.name}: all per-element arrays must have length {n}")

    @property
    def num_elements(self) -> int:
        return self.even.shape[0]


@dataclass
class FrameBuffer:
    """A width x height x channels float buffer owned by a backend."""

    width: int
    height: int
    channels: int
    data: Any

    @property
    def capacity(self) -> int:
        return self.width * self.height * self.channels

    @property
    def name(self) -> str:
        return f"fb:{self.width}x{self.height}x{self.channels}"


class ComputeBackend(ABC):
    """Abstract base class for data-parallel compute backends"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier"""

    @abstractmethod
    def allocate(self, width: int, height: int, channels: int = 2) -> FrameBuffer:
        """Allocate a zero-filled buffer."""

    @abstractmethod
    def upload(self, buffer: FrameBuffer, data: np.ndarray) -> None:
        """Copy host data (flat, interleaved by channel) into buffer."""

    @abstractmethod
    def download(self, buffer: FrameBuffer) -> np.ndarray:
        """Copy buffer contents back to a flat float64 host array."""

    @abstractmethod
    def compile(self, kernel: GatherKernel) -> Any:
        """Prepare a kernel for repeated execution on this backend."""

    @abstractmethod
    def execute(self, compiled: Any, src: FrameBuffer, dst: FrameBuffer) -> None:
        """Run one pass: every dst element from src reads only."""

    def check_upload(self, buffer: FrameBuffer, data: np.ndarray) -> np.ndarray:
        data = np.asarray(data).ravel()
        if data.shape[0] != buffer.capacity:
            raise ValueError(f"Invalid host buffer length {data.shape[0]} for {buffer.name}")
        return data

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class NumpyBackend(ComputeBackend):
    """Vectorized gather: all output elements of a pass computed at once."""

    def __init__(self, dtype=np.float64):
        self.dtype = np.dtype(dtype)

    @property
    def name(self) -> str:
        return "numpy"

    def allocate(self, width, height, channels=2):
        return FrameBuffer(width, height, channels,
                           np.zeros((width * height, channels), dtype=self.dtype))

    def upload(self, buffer, data):
        data = self.check_upload(buffer, data)
        buffer.data[...] = data.reshape(buffer.data.shape)

    def download(self, buffer):
        return buffer.data.astype(np.float64).ravel()

    def compile(self, kernel):
        return kernel

    def execute(self, compiled, src, dst):
        k = compiled
        e = src.data[k.even]
        o = src.data[k.odd]
        res_re = e[:, 0] + k.twiddle_re * o[:, 0] - k.twiddle_im * o[:, 1]
        res_im = e[:, 1] + k.twiddle_re * o[:, 1] + k.twiddle_im * o[:, 0]
        dst.data[:, 0] = k.scale * res_re
        dst.data[:, 1] = k.scale * res_im


@jit(nopython=True, cache=True, parallel=True)
def _gather_pass(src, dst, even, odd, tw_re, tw_im, scale):
    """One independent computation per output element."""
    for i in prange(even.shape[0]):
        a = even[i]
        b = odd[i]
        o_re = src[b, 0]
        o_im = src[b, 1]
        dst[i, 0] = scale * (src[a, 0] + tw_re[i] * o_re - tw_im[i] * o_im)
        dst[i, 1] = scale * (src[a, 1] + tw_re[i] * o_im + tw_im[i] * o_re)


class NumbaBackend(NumpyBackend):
    """Per-element kernel compiled with Numba and run across CPU threads."""

    @property
    def name(self) -> str:
        return "numba"

    def compile(self, kernel):
        return GatherKernel(
            name=kernel.name,
            even=np.ascontiguousarray(kernel.even, dtype=np.int64),
            odd=np.ascontiguousarray(kernel.odd, dtype=np.int64),
            twiddle_re=np.ascontiguousarray(kernel.twiddle_re, dtype=self.dtype),
            twiddle_im=np.ascontiguousarray(kernel.twiddle_im, dtype=self.dtype),
            scale=float(kernel.scale),
        )

    def execute(self, compiled, src, dst):
        k = compiled
        _gather_pass(src.data, dst.data, k.even, k.odd,
                     k.twiddle_re, k.twiddle_im, k.scale)


class TorchBackend(ComputeBackend):
    """Gather passes on a torch device; buffers stay on the device between passes."""

    def __init__(self, device: Optional[str] = None, dtype: Optional[torch.dtype] = None):
        if device is None:
            device = 'cuda' if torch.cuda.is_available() else 'cpu'
        self.device = torch.device(device)
        if dtype is None:
            # float64 is slow or missing on most GPUs
            dtype = torch.float64 if self.device.type == 'cpu' else torch.float32
        self.dtype = dtype

    @property
    def name(self) -> str:
        return "torch"

    def allocate(self, width, height, channels=2):
        data = torch.zeros((width * height, channels), dtype=self.dtype, device=self.device)
        return FrameBuffer(width, height, channels, data)

    def upload(self, buffer, data):
        data = self.check_upload(buffer, data)
        host = torch.from_numpy(np.ascontiguousarray(data).reshape(buffer.data.shape))
        buffer.data.copy_(host.to(dtype=self.dtype))

    def download(self, buffer):
        return buffer.data.detach().to('cpu', torch.float64, copy=True).numpy().ravel()

    def compile(self, kernel):
        def to_device(a, dtype):
            return torch.as_tensor(np.ascontiguousarray(a), device=self.device).to(dtype)

        return {
            'name': kernel.name,
            'even': to_device(kernel.even, torch.long),
            'odd': to_device(kernel.odd, torch.long),
            'tw_re': to_device(kernel.twiddle_re, self.dtype),
            'tw_im': to_device(kernel.twiddle_im, self.dtype),
            'scale': float(kernel.scale),
        }

    def execute(self, compiled, src, dst):
        k = compiled
        e = src.data.index_select(0, k['even'])
        o = src.data.index_select(0, k['odd'])
        res_re = e[:, 0] + k['tw_re'] * o[:, 0] - k['tw_im'] * o[:, 1]
        res_im = e[:, 1] + k['tw_re'] * o[:, 1] + k['tw_im'] * o[:, 0]
        dst.data.copy_(torch.stack((res_re, res_im), dim=1) * k['scale'])

    def __repr__(self) -> str:
        return f"TorchBackend(device={self.device}, dtype={self.dtype})"


_BACKENDS: Dict[str, type] = {
    'numpy': NumpyBackend,
    'numba': NumbaBackend,
    'torch': TorchBackend,
}


def available_backends() -> List[str]:
    return sorted(_BACKENDS)


def get_backend(name: str = 'numpy', **kwargs) -> ComputeBackend:
    """
    Create a compute backend by name.

    Args:
        name: 'numpy', 'numba' or 'torch'
        **kwargs: Passed to the backend constructor (e.g. device='cuda')

    Returns:
        ComputeBackend instance
    """
    try:
        cls = _BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown backend: {name}. Choose from {available_backends()}") from None
    return cls(**kwargs)
