"""
Pytest configuration for the metabolism simulator tests.
"""
import sys
import os
import pytest

# Modules live at the repository root
root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, root)

import numpy as np
from params import Params, RunConfig


@pytest.fixture
def params():
    """Default kinetic constants."""
    return Params()


@pytest.fixture
def short_cfg():
    """Protocol short enough to keep the end-to-end tests quick."""
    return RunConfig(dt=0.1, phase_duration=20.0, window_length=15.0, fit_window=5.0,
                     repeats=4, seed=1234)


@pytest.fixture
def rng():
    return np.random.default_rng(20240601)
