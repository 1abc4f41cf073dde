"""Shared fixtures for the validity_core test suite."""

import importlib.util
from pathlib import Path

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def wide_ratings() -> pd.DataFrame:
    """Four judges rating three items on relevance and wording (k=4)."""
    return pd.DataFrame({
        'dimension': ['relevance'] * 4 + ['wording'] * 4,
        'CT1': [4, 4, 3, 4, 4, 4, 4, 4],
        'CT2': [1, 2, 2, 1, 3, 3, 4, 3],
        'CT3': [4, 3, 3, 3, 1, 1, 1, 1],
    })


@pytest.fixture
def two_factor_responses() -> pd.DataFrame:
    """Simulated 4-point Likert responses driven by two correlated factors."""
    rng = np.random.default_rng(7)
    n = 400
    f1 = rng.standard_normal(n)
    f2 = 0.3 * f1 + np.sqrt(1 - 0.3**2) * rng.standard_normal(n)

    columns = {}
    for prefix, factor in (('CT', f1), ('EC', f2)):
        for i in range(1, 5):
            latent = 0.85 * factor + 0.5 * rng.standard_normal(n)
            columns[f'{prefix}{i}'] = np.digitize(latent, [-0.8, 0.0, 0.8]) + 1

    df = pd.DataFrame(columns)
    df.insert(0, 'age', rng.integers(18, 60, n))
    return df


@pytest.fixture
def load_script():
    """Import an analysis script from the analyses/ directory by name."""
    def _load(name: str):
        path = ROOT / 'analyses' / f'{name}.py'
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module
    return _load
