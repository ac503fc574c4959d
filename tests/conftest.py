import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(42)
