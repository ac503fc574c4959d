"""
Analysis configuration.

Values the transform core consumes from its caller: FFT size, sample rate,
wavelet Q-factor, number of sub-bin shifts and the compute backend. Stored as
YAML; the file named by $WEBACF_CONFIG, or configs/default.yaml, is the
default.
"""

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from webacf.dsp_core.backends import available_backends
from webacf.dsp_core.bitrev import check_size
from webacf.utils.logging import parse_level

PROJECT_ROOT = Path(__file__).resolve().parents[3]
CONFIG_ENV_VAR = 'WEBACF_CONFIG'
DTYPES = ('float32', 'float64')


@dataclass
class AnalysisConfig:
    """Caller-owned parameters of one analysis run."""

    fft_size: int = 2048
    sample_rate: int = 48000
    num_periods: float = 6.0  # CWT: periods under the Gaussian window
    num_shifts: int = 1  # sub-bin shifts for smoothed spectra
    f_min: float = 110.0
    f_max: Optional[float] = None  # None -> Nyquist
    backend: str = 'numpy'
    device: Optional[str] = None
    dtype: str = 'float64'
    bispectrum_size: int = 256  # N x N surface, kept small
    bispectrum_damping: Optional[float] = None
    log_level: str = 'INFO'

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> 'AnalysisConfig':
        d = dict(d or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {unknown}")
        config = cls(**d)
        config.validate()
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2.0

    @property
    def max_frequency(self) -> float:
        return self.f_max if self.f_max is not None else self.nyquist

    def validate(self) -> 'AnalysisConfig':
        check_size(self.fft_size)
        check_size(self.bispectrum_size, 'bispectrum_size')
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be > 0, got {self.sample_rate}")
        if self.num_periods <= 0:
            raise ValueError(f"num_periods must be > 0, got {self.num_periods}")
        if not isinstance(self.num_shifts, int) or self.num_shifts < 1:
            raise ValueError(f"num_shifts must be an integer >= 1, got {self.num_shifts}")
        if not 0 < self.f_min < self.max_frequency:
            raise ValueError(
                f"Expected 0 < f_min < f_max, got f_min={self.f_min}, f_max={self.max_frequency}")
        if self.max_frequency > self.nyquist:
            raise ValueError(f"f_max {self.f_max} exceeds Nyquist {self.nyquist}")
        if self.backend not in available_backends():
            raise ValueError(f"Unknown backend: {self.backend}. Choose from {available_backends()}")
        if self.dtype not in DTYPES:
            raise ValueError(f"dtype must be one of {DTYPES}, got {self.dtype}")
        if self.bispectrum_damping is not None and self.bispectrum_damping < 0:
            raise ValueError(f"bispectrum_damping must be >= 0, got {self.bispectrum_damping}")
        parse_level(self.log_level)
        return self


def default_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return PROJECT_ROOT / 'configs' / 'default.yaml'


def load_config(config_path: Union[str, Path, None] = None) -> AnalysisConfig:
    """Load configuration from YAML; built-in defaults if no file exists."""
    if config_path is None:
        path = default_config_path()
        if CONFIG_ENV_VAR not in os.environ and not path.exists():
            return AnalysisConfig().validate()
    else:
        path = Path(config_path)

    with open(path, 'r') as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return AnalysisConfig.from_dict(data)


def save_config(config: AnalysisConfig, config_path: Union[str, Path]) -> None:
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False)
