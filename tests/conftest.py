"""
Shared fixtures for supportvector tests.
"""

import matplotlib
import numpy as np
import pandas as pd
import pytest

matplotlib.use("Agg")


@pytest.fixture
def species_df():
    """Three well-separated classes (iris-like)."""
    rng = np.random.RandomState(42)
    n = 40
    frames = []
    for label, centre in [("setosa", 0.0), ("versicolor", 4.0), ("virginica", 8.0)]:
        frames.append(pd.DataFrame({
            "petal_length": rng.normal(centre, 0.5, n),
            "petal_width": rng.normal(centre / 2, 0.5, n),
            "colour": rng.choice(["red", "blue"], n),
            "species": label,
        }))
    return pd.concat(frames, ignore_index=True)


@pytest.fixture
def regression_df():
    """Continuous outcome with a linear signal."""
    rng = np.random.RandomState(42)
    n = 150
    x1 = rng.uniform(0, 10, n)
    x2 = rng.uniform(0, 5, n)
    return pd.DataFrame({
        "x1": x1,
        "x2": x2,
        "wgt": rng.uniform(0.5, 2.0, n),
        "price": 3 * x1 + 2 * x2 + rng.normal(0, 1, n),
    })


@pytest.fixture
def count_df():
    """Non-negative integer outcome."""
    rng = np.random.RandomState(7)
    n = 120
    x = rng.uniform(0, 4, n)
    return pd.DataFrame({
        "x": x,
        "z": rng.normal(0, 1, n),
        "visits": np.round(x).astype(int),
    })


@pytest.fixture
def config():
    """Default config (AttrDict)."""
    from supportvector.utils.config import load_config
    return load_config(None)
