"""A single layer of coherent noise, materialized on demand."""

import math
import time
import uuid

import numpy as np
import structlog

from .exceptions import ConfigurationError, MaterializationError
from .generators import DEFAULT_SEED_DIGITS, create_generator, random_seed
from .types import NoiseAlgorithm, NoiseMap, Size

logger = structlog.get_logger()

DEFAULT_RESOLUTION = 20.0


class NoiseLayer:
    """A two-dimensional layer of noise to be used in layered composition.

    The generator strategy is chosen once at construction. The noise map is
    computed by ``materialize()`` and cached until ``reset()``. The cached
    map is read-only; only the layer itself replaces or clears it.
    """

    def __init__(
        self,
        size: Size,
        algorithm: NoiseAlgorithm | str,
        seed: int | str | None = None,
        resolution: float | None = None,
        seed_digits: int = DEFAULT_SEED_DIGITS,
        **settings: float,
    ):
        """Initialize NoiseLayer.

        Args:
            size: Size of the noise map.
            algorithm: Generator strategy to sample with.
            seed: Integer or string seed, random if omitted.
            resolution: Divisor applied to cell coordinates before sampling,
                ``DEFAULT_RESOLUTION`` if omitted. Larger is smoother.
            seed_digits: Digit count of a generated seed.
            **settings: Generator-specific settings.

        Raises:
            ConfigurationError: If size, resolution, seed or settings are invalid.
        """
        if size.width <= 0 or size.height <= 0:
            raise ConfigurationError(f"Layer size must be positive, got {size}")

        if resolution is None:
            resolution = DEFAULT_RESOLUTION
        if isinstance(resolution, bool) or not math.isfinite(resolution) or resolution <= 0:
            raise ConfigurationError(f"Resolution must be positive, got {resolution}")

        if seed is None:
            seed = random_seed(seed_digits)

        self.size = size
        self.resolution = float(resolution)
        self.settings = dict(settings)
        self.uid = uuid.uuid4().hex[:8]

        self.generator = create_generator(algorithm, seed, **self.settings)
        self.algorithm = self.generator.algorithm
        self.seed = seed

        self._data: NoiseMap | None = None

    @property
    def is_materialized(self) -> bool:
        """Whether the noise map has been generated."""
        return self._data is not None

    def materialize(self) -> None:
        """Generate and cache the noise map. No-op if already materialized.

        Raises:
            MaterializationError: If the generator fails or yields
                non-finite samples.
        """
        if self._data is not None:
            return

        start = time.perf_counter()
        xs = np.arange(self.size.width, dtype=np.float64) / self.resolution
        ys = np.arange(self.size.height, dtype=np.float64) / self.resolution

        try:
            values = np.asarray(self.generator.sample_grid(xs, ys), dtype=np.float64)
        except Exception as e:
            raise MaterializationError(self, f"{type(e).__name__}: {e}") from e

        if values.shape != self.size.shape:
            raise MaterializationError(
                self, f"generator returned shape {values.shape}, expected {self.size.shape}"
            )
        if not np.all(np.isfinite(values)):
            raise MaterializationError(self, "generator returned non-finite samples")

        values.flags.writeable = False
        self._data = values

        logger.debug(
            "layer_materialized",
            uid=self.uid,
            size=str(self.size),
            algorithm=self.algorithm.value,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )

    def data(self) -> NoiseMap | None:
        """Return the cached noise map, or None if not materialized."""
        return self._data

    def reset(self) -> None:
        """Discard the cached noise map so it can be materialized again."""
        self._data = None
        logger.debug("layer_reset", uid=self.uid)

    def reseed(self, seed: int | str) -> None:
        """Reset the layer and rebuild its generator with a new seed.

        Args:
            seed: Integer or string seed.
        """
        generator = create_generator(self.algorithm, seed, **self.settings)
        self.reset()
        self.generator = generator
        self.seed = seed

    def __str__(self) -> str:
        return f"NoiseLayer <{self.algorithm.value}> [{self.size}] - UID: {self.uid}"

    def __repr__(self) -> str:
        return (
            f"NoiseLayer(size={self.size!r}, algorithm={self.algorithm.value!r}, "
            f"seed={self.seed!r}, resolution={self.resolution})"
        )
