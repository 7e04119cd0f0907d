"""Coherent noise generator strategies.

Two interchangeable strategies sample 2D coherent noise for a seed:

- ``GradientNoise``: classic Perlin gradient noise with optional octaves,
  returning values in [0, 1].
- ``SimplexNoise``: OpenSimplex noise, returning values in [-1, 1].

Both expose ``sample(coordinates)`` for a single point and ``sample_grid``
for the outer product of two coordinate vectors. ``sample`` is evaluated
through ``sample_grid`` so both paths yield bit-identical values.
"""

import hashlib
import math
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray
from opensimplex import OpenSimplex

from .exceptions import ConfigurationError
from .types import NoiseAlgorithm, NoiseMap

DEFAULT_SEED_DIGITS = 10
MAX_SEED_DIGITS = 18

# Gradient directions for 2D Perlin noise, selected by hash & 7
_GRADIENTS = np.array(
    [
        (1.0, 1.0),
        (-1.0, 1.0),
        (1.0, -1.0),
        (-1.0, -1.0),
        (1.0, 0.0),
        (-1.0, 0.0),
        (0.0, 1.0),
        (0.0, -1.0),
    ],
    dtype=np.float64,
)


def normalize_seed(seed: int | str) -> int:
    """Convert a user-supplied seed to a non-negative integer.

    Digit strings are parsed as integers, other strings are hashed.

    Args:
        seed: Integer seed (>= 0) or string seed.

    Returns:
        Integer seed usable by every generator.

    Raises:
        ConfigurationError: If the seed is negative, empty or of another type.
    """
    if isinstance(seed, bool):
        raise ConfigurationError("Seed must be an integer or string, not bool")

    if isinstance(seed, (int, np.integer)):
        if seed < 0:
            raise ConfigurationError(f"Seed must be non-negative, got {seed}")
        return int(seed)

    if isinstance(seed, str):
        text = seed.strip()
        if not text:
            raise ConfigurationError("Seed string is empty")
        if text.isascii() and text.isdigit():
            return int(text)
        digest = hashlib.blake2b(text.encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big")

    raise ConfigurationError(f"Unsupported seed type: {type(seed).__name__}")


def random_seed(
    digits: int = DEFAULT_SEED_DIGITS,
    rng: np.random.Generator | None = None,
) -> int:
    """Generate a random seed with exactly ``digits`` decimal digits.

    Args:
        digits: Number of decimal digits (no leading zero).
        rng: Random number generator, a fresh one if omitted.

    Returns:
        Random integer seed.
    """
    if not 1 <= digits <= MAX_SEED_DIGITS:
        raise ConfigurationError(
            f"Seed digit count must be between 1 and {MAX_SEED_DIGITS}, got {digits}"
        )
    if rng is None:
        rng = np.random.default_rng()
    low = 10 ** (digits - 1) if digits > 1 else 1
    return int(rng.integers(low, 10**digits))


class NoiseGenerator(ABC):
    """Samples deterministic coherent noise for a fixed seed."""

    algorithm: NoiseAlgorithm
    value_range: tuple[float, float]
    setting_names: frozenset[str] = frozenset()

    def __init__(self, seed: int):
        self.seed = seed

    def sample(self, coordinates: Sequence[float]) -> float:
        """Sample noise at a single 2D point.

        Args:
            coordinates: ``(x, y)`` sampling coordinates.

        Returns:
            Noise value within ``value_range``.
        """
        if len(coordinates) != 2:
            raise ValueError(
                f"Expected 2 coordinates, got {len(coordinates)}"
            )
        x, y = coordinates
        grid = self.sample_grid(
            np.array([x], dtype=np.float64), np.array([y], dtype=np.float64)
        )
        return float(grid[0, 0])

    @abstractmethod
    def sample_grid(self, xs: ArrayLike, ys: ArrayLike) -> NoiseMap:
        """Sample noise over the outer product of two coordinate vectors.

        Args:
            xs: 1D x coordinates (columns).
            ys: 1D y coordinates (rows).

        Returns:
            Array of shape ``(len(ys), len(xs))`` where
            ``result[j, i]`` is the sample at ``(xs[i], ys[j])``.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(seed={self.seed})"


class GradientNoise(NoiseGenerator):
    """2D Perlin gradient noise, normalized to [0, 1].

    Octaves are summed with amplitude multiplied by ``persistence`` and
    frequency multiplied by ``lacunarity`` each step, then normalized by the
    total amplitude. Integer lattice points sample exactly 0.5.
    """

    algorithm = NoiseAlgorithm.GRADIENT
    value_range = (0.0, 1.0)
    setting_names = frozenset({"octaves", "persistence", "lacunarity"})

    def __init__(
        self,
        seed: int,
        octaves: int = 1,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
    ):
        super().__init__(seed)

        if isinstance(octaves, bool) or not isinstance(octaves, int) or octaves < 1:
            raise ConfigurationError(f"Octaves must be a positive integer, got {octaves!r}")
        if not math.isfinite(persistence) or persistence <= 0:
            raise ConfigurationError(f"Persistence must be positive, got {persistence}")
        if not math.isfinite(lacunarity) or lacunarity <= 0:
            raise ConfigurationError(f"Lacunarity must be positive, got {lacunarity}")

        self.octaves = octaves
        self.persistence = persistence
        self.lacunarity = lacunarity

        # Doubled permutation table avoids wrapping the second lookup
        perm = np.random.default_rng(seed).permutation(256)
        self._perm = np.concatenate([perm, perm]).astype(np.int64)

    def sample_grid(self, xs: ArrayLike, ys: ArrayLike) -> NoiseMap:
        xs = np.asarray(xs, dtype=np.float64).reshape(1, -1)
        ys = np.asarray(ys, dtype=np.float64).reshape(-1, 1)

        total = np.zeros((ys.size, xs.size), dtype=np.float64)
        amplitude = 1.0
        frequency = 1.0
        max_amplitude = 0.0

        for _ in range(self.octaves):
            total += amplitude * self._perlin(xs * frequency, ys * frequency)
            max_amplitude += amplitude
            amplitude *= self.persistence
            frequency *= self.lacunarity

        # Raw Perlin is bounded by [-1, 1] for this gradient set
        result = (total / max_amplitude + 1.0) * 0.5
        return np.clip(result, 0.0, 1.0)

    def _perlin(
        self,
        x: NDArray[np.float64],
        y: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """Single-octave Perlin noise in [-1, 1], broadcasting x against y."""
        x_floor = np.floor(x)
        y_floor = np.floor(y)
        xf = x - x_floor
        yf = y - y_floor
        xi = x_floor.astype(np.int64) & 255
        yi = y_floor.astype(np.int64) & 255

        perm = self._perm
        a = perm[xi]
        b = perm[xi + 1]

        n00 = self._dot(perm[a + yi], xf, yf)
        n10 = self._dot(perm[b + yi], xf - 1.0, yf)
        n01 = self._dot(perm[a + yi + 1], xf, yf - 1.0)
        n11 = self._dot(perm[b + yi + 1], xf - 1.0, yf - 1.0)

        u = _fade(xf)
        v = _fade(yf)

        nx0 = n00 + u * (n10 - n00)
        nx1 = n01 + u * (n11 - n01)
        return nx0 + v * (nx1 - nx0)

    @staticmethod
    def _dot(
        hashes: NDArray[np.int64],
        dx: NDArray[np.float64],
        dy: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        gradients = _GRADIENTS[hashes & 7]
        return gradients[..., 0] * dx + gradients[..., 1] * dy

    def __repr__(self) -> str:
        return (
            f"GradientNoise(seed={self.seed}, octaves={self.octaves}, "
            f"persistence={self.persistence}, lacunarity={self.lacunarity})"
        )


class SimplexNoise(NoiseGenerator):
    """OpenSimplex 2D noise in [-1, 1]."""

    algorithm = NoiseAlgorithm.SIMPLEX
    value_range = (-1.0, 1.0)

    def __init__(self, seed: int):
        super().__init__(seed)
        self._simplex = OpenSimplex(seed=seed)

    def sample_grid(self, xs: ArrayLike, ys: ArrayLike) -> NoiseMap:
        xs = np.asarray(xs, dtype=np.float64).reshape(-1)
        ys = np.asarray(ys, dtype=np.float64).reshape(-1)
        return np.asarray(self._simplex.noise2array(xs, ys), dtype=np.float64)


def _fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """Perlin's quintic fade curve 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


_GENERATORS: dict[NoiseAlgorithm, type[NoiseGenerator]] = {
    NoiseAlgorithm.GRADIENT: GradientNoise,
    NoiseAlgorithm.SIMPLEX: SimplexNoise,
}


def create_generator(
    algorithm: NoiseAlgorithm | str,
    seed: int | str,
    **settings: float,
) -> NoiseGenerator:
    """Create the generator strategy for an algorithm tag.

    Args:
        algorithm: ``NoiseAlgorithm`` or its string value.
        seed: Integer or string seed.
        **settings: Algorithm-specific settings (gradient: octaves,
            persistence, lacunarity).

    Returns:
        Configured generator.

    Raises:
        ConfigurationError: On unknown algorithm, invalid seed or settings.
    """
    try:
        algorithm = NoiseAlgorithm(algorithm)
    except ValueError as e:
        raise ConfigurationError(f"Unknown noise algorithm: {algorithm!r}") from e

    generator_cls = _GENERATORS[algorithm]
    unknown = set(settings) - generator_cls.setting_names
    if unknown:
        raise ConfigurationError(
            f"Unsupported settings for {algorithm.value} noise: {sorted(unknown)}"
        )

    return generator_cls(normalize_seed(seed), **settings)
