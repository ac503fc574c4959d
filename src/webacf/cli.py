#!/usr/bin/env python3
"""
webacf command line interface.

Runs one analysis over a frame of an audio file and saves the result as .npy.

Usage:
    webacf spectrum INPUT [--offset N] [--shifts S] [--output OUT.npy]
    webacf acf INPUT [--offset N]
    webacf bispectrum INPUT [--size 256]
    webacf cwt INPUT [--rows 64] [--width 256] [--length SAMPLES]

INPUT is a .npy array or a .wav file (first channel is analyzed).
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
from scipy.io import wavfile

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich import box

from webacf import __version__
from webacf.analysis import CWTAnalyzer, frame_stats
from webacf.dsp_core import (
    FFTError,
    FFTFactory,
    autocorrelation,
    complex_buffer as cb,
    get_window,
    padded_slice,
    smooth_transform,
    triple_correlation,
)
from webacf.utils.config import AnalysisConfig, load_config
from webacf.utils.logging import log_dict, parse_level, setup_logging

console = Console()

def load_audio(path: Path) -> Tuple[np.ndarray, Optional[int]]:
    """
    Read mono float samples from a .wav or .npy file.

    Returns:
        (samples, sample_rate); sample_rate is None for .npy input
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == '.npy':
        data = np.load(path)
        rate = None
    elif suffix == '.wav':
        rate, data = wavfile.read(path)
    else:
        raise ValueError(f"Unsupported input format: {path.suffix} (expected .wav or .npy)")

    if data.ndim == 2:
        data = data[:, 0]
    elif data.ndim != 1:
        raise ValueError(f"Expected 1D or 2D audio, got shape {data.shape}")

    # Integer PCM -> [-1, 1]
    if data.dtype == np.uint8:
        data = (data.astype(np.float64) - 128) / 128
    elif np.issubdtype(data.dtype, np.integer):
        data = data.astype(np.float64) / (np.iinfo(data.dtype).max + 1)
    else:
        data = data.astype(np.float64)

    return data, rate


def windowed_frame(samples: np.ndarray, offset: int, size: int) -> np.ndarray:
    """Hann-windowed frame of size samples starting at offset, zero-padded past the end."""
    return padded_slice(samples, offset, offset + size) * get_window('hann', size)


def create_factory(config: AnalysisConfig) -> FFTFactory:
    return FFTFactory(backend=config.backend, device=config.device, dtype=config.dtype)


def run_spectrum(samples, config, factory, args) -> np.ndarray:
    shifts = args.shifts if args.shifts is not None else config.num_shifts
    frame = windowed_frame(samples, args.offset, config.fft_size)
    spectrum = smooth_transform(cb.expand(frame), shifts, factory)
    power = cb.squared_magnitude(spectrum)
    return power[:power.shape[0] // 2]


def run_acf(samples, config, factory, args) -> np.ndarray:
    frame = windowed_frame(samples, args.offset, config.fft_size)
    return autocorrelation(frame, factory)


def run_bispectrum(samples, config, factory, args) -> np.ndarray:
    frame = windowed_frame(samples, args.offset, config.bispectrum_size)
    return triple_correlation(frame, factory, config.bispectrum_damping)


def run_cwt(samples, config, factory, args) -> np.ndarray:
    length = args.length if args.length is not None else samples.shape[0] - args.offset
    analyzer = CWTAnalyzer.from_config(
        samples, config, t_min=args.offset, t_max=args.offset + length, factory=factory)

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=30),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        refresh_per_second=4,
    ) as progress:
        task = progress.add_task("[cyan]Scalogram", total=args.rows)
        image = analyzer.scalogram(
            args.rows, args.width,
            progress=lambda done, total: progress.update(task, completed=done))

    return image


RUNNERS = {
    'spectrum': run_spectrum,
    'acf': run_acf,
    'bispectrum': run_bispectrum,
    'cwt': run_cwt,
}


def display_stats_table(command: str, result: np.ndarray, config: AnalysisConfig,
                        console: Console):
    """Display a summary of the computed surface."""
    stats = frame_stats(result)

    table = Table(
        title=f"[bold]{command}[/bold]",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Statistic", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("shape", " x ".join(str(d) for d in result.shape))
    table.add_row("fft size", str(config.fft_size))
    table.add_row("sample rate", f"{config.sample_rate} Hz")
    for name, value in stats.to_dict().items():
        table.add_row(name, f"{value:.6g}")

    console.print(table)
    return stats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='webacf',
        description="FFT-based autocorrelation, bispectrum and wavelet analysis")
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('input', type=str, help='Input .wav or .npy file')
    common.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to configuration file (default: $WEBACF_CONFIG or configs/default.yaml)'
    )
    common.add_argument('--offset', type=int, default=0, help='First sample of the frame')
    common.add_argument('--backend', type=str, default=None, help='Override compute backend')
    common.add_argument('--output', type=str, default=None, help='Save the result to this .npy file')
    common.add_argument('--log-file', type=str, default=None, help='Append logs to this file')
    common.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    # cwt sizes its transform from the analyzed span, so it has no --size
    sized = argparse.ArgumentParser(add_help=False)
    sized.add_argument('--size', type=int, default=None,
                       help='Override the frame size (bispectrum_size for bispectrum)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    p = subparsers.add_parser('spectrum', parents=[common, sized], help='Power spectrum of a frame')
    p.add_argument('--shifts', type=int, default=None, help='Sub-bin shifts (default: num_shifts)')

    subparsers.add_parser('acf', parents=[common, sized], help='Autocorrelation of a frame')
    subparsers.add_parser('bispectrum', parents=[common, sized], help='Triple correlation of a frame')

    p = subparsers.add_parser('cwt', parents=[common], help='Morlet wavelet scalogram')
    p.add_argument('--rows', type=int, default=64, help='Number of frequency rows')
    p.add_argument('--width', type=int, default=256, help='Number of time columns')
    p.add_argument('--length', type=int, default=None,
                   help='Analyzed samples (default: to the end of the input)')

    return parser


def resolve_config(args, sample_rate: Optional[int]) -> AnalysisConfig:
    """Config file values, overridden by the input's sample rate and CLI flags."""
    config = load_config(args.config)
    overrides = {}
    if sample_rate is not None:
        overrides['sample_rate'] = int(sample_rate)
    size = getattr(args, 'size', None)
    if size is not None:
        key = 'bispectrum_size' if args.command == 'bispectrum' else 'fft_size'
        overrides[key] = size
    if args.backend is not None:
        overrides['backend'] = args.backend
    if args.verbose:
        overrides['log_level'] = 'DEBUG'
    if overrides:
        config = dataclasses.replace(config, **overrides).validate()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(args.log_file, logging.DEBUG if args.verbose else logging.INFO,
                           name='webacf')

    try:
        samples, sample_rate = load_audio(Path(args.input))
        config = resolve_config(args, sample_rate)
        logger.setLevel(parse_level(config.log_level))
        log_dict(logger, config.to_dict(), title=f"webacf {args.command}: {args.input}")

        if not 0 <= args.offset < samples.shape[0]:
            raise ValueError(f"--offset {args.offset} outside input of {samples.shape[0]} samples")

        factory = create_factory(config)
        result = RUNNERS[args.command](samples, config, factory, args)

        stats = display_stats_table(args.command, result, config, console)
        logger.info(f"{args.command}: shape={result.shape} {stats.to_dict()}")

        if args.output:
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            np.save(output_path, result)
            console.print(f"[green]✓[/green] Result saved to {output_path}")
            logger.info(f"Result saved to {output_path}")

    except (FFTError, ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        console.print(Panel.fit(f"[bold red]Error: {e}[/bold red]", border_style="red"))
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
