"""
Unit tests for configuration and logging utilities.

Run:
    pytest tests/test_utils.py -v
"""

import logging

import pytest
import yaml

from webacf.dsp_core import InvalidSizeError
from webacf.utils.config import (
    CONFIG_ENV_VAR,
    AnalysisConfig,
    default_config_path,
    load_config,
    save_config,
)
from webacf.utils.logging import get_logger, log_dict, parse_level, setup_logging


def write_yaml(path, data):
    with open(path, 'w') as f:
        yaml.dump(data, f)
    return path


class TestConfig:
    """Test suite for AnalysisConfig loading and validation."""

    def test_defaults(self):
        config = AnalysisConfig().validate()
        assert config.fft_size == 2048
        assert config.sample_rate == 48000
        assert config.num_periods == 6.0
        assert config.num_shifts == 1
        assert config.f_min == 110.0
        assert config.max_frequency == 24000.0
        assert config.backend == 'numpy'
        assert config.bispectrum_damping is None

    def test_shipped_default_file(self):
        path = default_config_path()
        assert path.name == 'default.yaml'
        assert path.exists()
        assert load_config(path) == AnalysisConfig()

    def test_load_yaml(self, tmp_path):
        path = write_yaml(tmp_path / 'cfg.yaml', {
            'fft_size': 512,
            'sample_rate': 44100,
            'num_shifts': 4,
            'backend': 'numba',
        })
        config = load_config(path)
        assert config.fft_size == 512
        assert config.sample_rate == 44100
        assert config.num_shifts == 4
        assert config.backend == 'numba'
        assert config.num_periods == 6.0

    def test_env_override(self, tmp_path, monkeypatch):
        path = write_yaml(tmp_path / 'env.yaml', {'fft_size': 256})
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert default_config_path() == path
        assert load_config().fft_size == 256

    def test_env_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / 'missing.yaml'))
        with pytest.raises(OSError):
            load_config()

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text('')
        assert load_config(path) == AnalysisConfig()

    def test_save_and_load(self, tmp_path):
        config = AnalysisConfig(fft_size=1024, f_max=8000.0, bispectrum_damping=2.5)
        path = tmp_path / 'out' / 'saved.yaml'
        save_config(config, path)
        assert load_config(path) == config

    def test_unknown_key(self, tmp_path):
        path = write_yaml(tmp_path / 'bad.yaml', {'fft_sise': 512})
        with pytest.raises(ValueError, match='fft_sise'):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = write_yaml(tmp_path / 'list.yaml', [1, 2, 3])
        with pytest.raises(ValueError):
            load_config(path)

    def test_invalid_fft_size(self):
        with pytest.raises(InvalidSizeError):
            AnalysisConfig.from_dict({'fft_size': 1000})

    @pytest.mark.parametrize('values', [
        {'sample_rate': 0},
        {'num_periods': -1.0},
        {'num_shifts': 0},
        {'f_min': 0.0},
        {'f_min': 30000.0},
        {'f_max': 30000.0},
        {'backend': 'opencl'},
        {'dtype': 'int16'},
        {'bispectrum_damping': -1.0},
        {'log_level': 'LOUD'},
    ])
    def test_invalid_values(self, values):
        with pytest.raises(ValueError):
            AnalysisConfig.from_dict(values)


class TestLogging:
    """Test suite for logging setup."""

    def test_setup_logging_file(self, tmp_path):
        log_file = tmp_path / 'logs' / 'run.log'
        logger = setup_logging(str(log_file), level=logging.DEBUG, name='webacf.test')
        logger.debug('debug line')
        logger.warning('warning line')
        for handler in logger.handlers:
            handler.flush()

        text = log_file.read_text()
        assert 'debug line' in text
        assert 'WARNING' in text
        assert len(logger.handlers) == 2

    def test_setup_logging_replaces_handlers(self):
        setup_logging(name='webacf.test2')
        logger = setup_logging(name='webacf.test2')
        assert len(logger.handlers) == 1
        assert get_logger('webacf.test2') is logger

    def test_get_logger_namespace(self):
        assert get_logger().name == 'webacf'
        assert get_logger('webacf').name == 'webacf'
        assert get_logger('scripts.batch').name == 'webacf.scripts.batch'
        assert get_logger('webacf.dsp_core.fft').name == 'webacf.dsp_core.fft'

    def test_module_loggers_reach_package_handlers(self, tmp_path):
        from webacf.dsp_core import FFTFactory, factory
        assert factory.logger.name == 'webacf.dsp_core.factory'

        log_file = tmp_path / 'engines.log'
        logger = setup_logging(str(log_file), level='debug')
        try:
            FFTFactory().scalar(64)
            for handler in logger.handlers:
                handler.flush()
            assert 'FFTEngine ready: N=64' in log_file.read_text()
        finally:
            setup_logging(level='INFO')

    def test_parse_level(self):
        assert parse_level('debug') == logging.DEBUG
        assert parse_level('INFO') == logging.INFO
        assert parse_level(30) == 30
        with pytest.raises(ValueError):
            parse_level('LOUD')

    def test_log_dict(self, caplog):
        logger = get_logger('webacf.test3')
        with caplog.at_level(logging.INFO, logger='webacf.test3'):
            log_dict(logger, {'fft_size': 512, 'nested': {'f_min': 110.0}}, title='Config')
        assert 'fft_size: 512' in caplog.text
        assert '  f_min: 110' in caplog.text
