"""Neighborhood-averaging smoothing for noise maps.

Each pass replaces every cell with the mean of itself and its kernel
neighbors that fall inside the map. Neighbors outside the map are left out
of both the sum and the count. A pass reads only the previous pass's output.
"""

from enum import Enum

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import ndimage

from .exceptions import ConfigurationError
from .types import NoiseMap

# Offsets are (dx, dy); +X is East, +Y is South
_CARDINAL = ((0, -1), (1, 0), (0, 1), (-1, 0))
_DIAGONAL = ((-1, -1), (1, -1), (1, 1), (-1, 1))
_OUTER_RING = (
    (-1, -2), (0, -2), (1, -2),  # NNW, NN, NNE
    (2, -1), (2, 0), (2, 1),  # EEN, EE, EES
    (1, 2), (0, 2), (-1, 2),  # SSE, SS, SSW
    (-2, 1), (-2, 0), (-2, -1),  # WWS, WW, WWN
)


class SmoothingKernel(str, Enum):
    """Named neighbor sets used when smoothing.

    | Kernel         | Neighbors                          |
    | -------------- | ---------------------------------- |
    | ``COARSE``       | 4 adjacent cells                   |
    | ``SMOOTH``       | 8 adjacent cells                   |
    | ``EXTRA_SMOOTH`` | 8 adjacent cells + 12 outer ring   |
    """

    COARSE = "coarse"
    SMOOTH = "smooth"
    EXTRA_SMOOTH = "extra_smooth"

    @property
    def offsets(self) -> tuple[tuple[int, int], ...]:
        """Neighbor offsets ``(dx, dy)``, excluding the cell itself."""
        if self is SmoothingKernel.COARSE:
            return _CARDINAL
        if self is SmoothingKernel.SMOOTH:
            return _CARDINAL + _DIAGONAL
        return _CARDINAL + _DIAGONAL + _OUTER_RING

    def footprint(self) -> NDArray[np.float64]:
        """5x5 weight mask with 1.0 at the cell and each neighbor offset."""
        mask = np.zeros((5, 5), dtype=np.float64)
        mask[2, 2] = 1.0
        for dx, dy in self.offsets:
            mask[2 + dy, 2 + dx] = 1.0
        return mask


def smooth_map(
    noise_map: ArrayLike,
    kernel: SmoothingKernel | str,
    passes: int = 1,
) -> NoiseMap:
    """Smooth a noise map by averaging each cell with its neighbors.

    The input is never modified.

    Args:
        noise_map: 2D map of shape (height, width).
        kernel: ``SmoothingKernel`` or its name.
        passes: Number of sequential smoothing passes (0 returns a copy).

    Returns:
        Smoothed map with the same shape.

    Raises:
        ConfigurationError: If the map is not a non-empty 2D grid, the kernel
            is unknown or passes is negative.
    """
    try:
        kernel = SmoothingKernel(kernel)
    except ValueError as e:
        raise ConfigurationError(f"Unknown smoothing kernel: {kernel!r}") from e

    if isinstance(passes, bool) or not isinstance(passes, (int, np.integer)) or passes < 0:
        raise ConfigurationError(f"Passes must be a non-negative integer, got {passes!r}")

    result = np.array(noise_map, dtype=np.float64)
    if result.ndim != 2 or result.size == 0:
        raise ConfigurationError(
            f"Noise map must be a non-empty 2D grid, got shape {result.shape}"
        )

    if passes == 0:
        return result

    footprint = kernel.footprint()

    # Number of in-bounds cells under the kernel at each position
    counts = ndimage.convolve(
        np.ones_like(result), footprint, mode="constant", cval=0.0
    )

    for _ in range(passes):
        sums = ndimage.convolve(result, footprint, mode="constant", cval=0.0)
        result = sums / counts

    return result
