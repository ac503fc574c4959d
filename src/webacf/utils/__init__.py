"""
Utility modules.

Configuration lives in webacf.utils.config; it depends on the transform core,
which itself logs through this package, so it is not imported here.
"""

from .logging import setup_logging, get_logger, parse_level, log_dict

__all__ = ['setup_logging', 'get_logger', 'parse_level', 'log_dict']
