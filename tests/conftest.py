"""Shared test fixtures for noise map tests."""

from pathlib import Path
from typing import Callable

import numpy as np
import pytest

from noisemap.generators import NoiseGenerator
from noisemap.layer import NoiseLayer
from noisemap.types import NoiseAlgorithm, Size


class FixedGenerator(NoiseGenerator):
    """Returns a fixed array regardless of the sampling coordinates."""

    algorithm = NoiseAlgorithm.GRADIENT
    value_range = (-np.inf, np.inf)

    def __init__(self, values):
        super().__init__(seed=0)
        self.values = np.asarray(values, dtype=np.float64)
        self.calls = 0

    def sample_grid(self, xs, ys):
        self.calls += 1
        return self.values.copy()


class FailingGenerator(NoiseGenerator):
    """Raises on every sample."""

    algorithm = NoiseAlgorithm.SIMPLEX
    value_range = (-1.0, 1.0)

    def __init__(self):
        super().__init__(seed=0)

    def sample_grid(self, xs, ys):
        raise RuntimeError("generator exploded")


@pytest.fixture
def fixed_layer() -> Callable[[list[list[float]]], NoiseLayer]:
    """Factory for layers whose materialized map equals the given rows."""

    def make(rows: list[list[float]]) -> NoiseLayer:
        values = np.asarray(rows, dtype=np.float64)
        height, width = values.shape
        layer = NoiseLayer(Size(width=width, height=height), "gradient", seed=1)
        layer.generator = FixedGenerator(values)
        return layer

    return make


@pytest.fixture
def failing_layer() -> Callable[[Size], NoiseLayer]:
    """Factory for layers whose generator always raises."""

    def make(size: Size) -> NoiseLayer:
        layer = NoiseLayer(size, "simplex", seed=1)
        layer.generator = FailingGenerator()
        return layer

    return make


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A small two-layer config file."""
    path = tmp_path / "small.toml"
    path.write_text(
        """
width = 16
height = 8
importance = "uniform"
default_resolution = 4.0
max_workers = 2

[[layers]]
algorithm = "gradient"
seed = 42

[layers.gradient]
octaves = 2

[[layers]]
algorithm = "simplex"
seed = "coast"
resolution = 3.0

[smoothing]
kernel = "coarse"
passes = 1
"""
    )
    return path
