"""Core types shared by the noise map modules."""

from enum import Enum

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel

# Dense row-major grid of samples, indexed map[y, x]
NoiseMap = NDArray[np.float64]


class NoiseAlgorithm(str, Enum):
    """Coherent noise algorithm used by a layer."""

    GRADIENT = "gradient"
    SIMPLEX = "simplex"


class Size(BaseModel, frozen=True):
    """Immutable 2D map size in cells."""

    width: int
    height: int

    @property
    def shape(self) -> tuple[int, int]:
        """Array shape (rows, columns) of a map with this size."""
        return (self.height, self.width)

    def __hash__(self) -> int:
        return hash((self.width, self.height))

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"

    def __repr__(self) -> str:
        return f"Size(width={self.width}, height={self.height})"
