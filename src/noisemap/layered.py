"""Combines multiple noise layers into a single composite noise map.

Each layer contributes ``importance * value`` per cell; the composite is the
sum of contributions divided by the sum of importances::

    l0:  1.0  * 0.5  = 0.5
    l1:  0.5  * 0.3  = 0.15
    l2:  0.25 * 0.45 = 0.1125
         ----          ------
         1.75          0.7625  / 1.75 = 0.4357

Since this is a weighted average, every output cell lies between the
smallest and largest input value at that cell.
"""

import math
import numbers
import time
from concurrent import futures
from typing import Callable, Iterable

import numpy as np
import structlog

from .exceptions import (
    ComposeError,
    ConfigurationError,
    FormulaValidationError,
    LayerMaterializationError,
)
from .layer import NoiseLayer
from .types import NoiseMap, Size

logger = structlog.get_logger()

# (layer_index, previous_importance, layer_count) -> importance in [0.0, 1.0].
# previous_importance is NaN for the first layer.
ImportanceFormula = Callable[[int, float, int], float]


def halving_importance(index: int, previous: float, total: int) -> float:
    """Default formula: 1.0 for the first layer, then half of the previous."""
    if math.isnan(previous):
        return 1.0
    return previous / 2.0


def uniform_importance(index: int, previous: float, total: int) -> float:
    """Every layer contributes equally."""
    return 1.0


class LayeredNoise:
    """Layers multiple NoiseLayer instances into one composite noise map.

    Layers with a lower index have the largest effect under the default
    importance formula.
    """

    def __init__(
        self,
        size: Size,
        layers: Iterable[NoiseLayer] | None = None,
        max_workers: int | None = None,
    ):
        """Initialize LayeredNoise.

        Args:
            size: Size of the composite map; every layer must match it.
            layers: Initial layers, in order of decreasing importance.
            max_workers: Thread pool size for layer materialization.

        Raises:
            ConfigurationError: If the size is invalid or a layer's size differs.
        """
        if size.width <= 0 or size.height <= 0:
            raise ConfigurationError(f"Composite size must be positive, got {size}")
        if max_workers is not None and max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {max_workers}")

        self.size = size
        self.max_workers = max_workers
        self._layers: list[NoiseLayer] = []
        self._importance_formula: ImportanceFormula = halving_importance

        for layer in layers or ():
            self.add_layer(layer)

    @property
    def layers(self) -> tuple[NoiseLayer, ...]:
        """Layers in composition order."""
        return tuple(self._layers)

    def __len__(self) -> int:
        return len(self._layers)

    def add_layer(self, layer: NoiseLayer) -> None:
        """Append a noise layer.

        Raises:
            ConfigurationError: If the layer's size differs from the composite size.
        """
        if layer.size != self.size:
            raise ConfigurationError(
                f"Layer {layer} has size {layer.size}, expected {self.size}"
            )
        self._layers.append(layer)

    def set_importance_formula(self, formula: ImportanceFormula) -> None:
        """Override the formula deciding how much each layer contributes."""
        self._importance_formula = formula

    def reset_importance_formula(self) -> None:
        """Restore the default ``previous / 2`` importance formula."""
        self._importance_formula = halving_importance

    @staticmethod
    def default_importance_formula() -> ImportanceFormula:
        """Return the default importance formula."""
        return halving_importance

    def compose(self) -> NoiseMap:
        """Materialize pending layers and combine them into one noise map.

        Returns:
            New composite map of shape ``(height, width)``.

        Raises:
            LayerMaterializationError: If a layer fails to materialize.
            FormulaValidationError: If the importance formula yields a value
                that is not a finite number in [0.0, 1.0].
            ComposeError: If there are no layers or the importances sum to 0.
        """
        if not self._layers:
            raise ComposeError("Cannot compose a noise map without layers")

        start = time.perf_counter()
        logger.debug("compose_started", size=str(self.size), layers=len(self._layers))

        self._materialize_pending()
        importances = self._compute_importances()

        total_importance = math.fsum(importances)
        if total_importance == 0.0:
            raise ComposeError("Layer importances sum to 0.0, composite is undefined")

        # Accumulated in ascending layer order
        value_sum = np.zeros(self.size.shape, dtype=np.float64)
        for index, (layer, importance) in enumerate(zip(self._layers, importances)):
            data = layer.data()
            if data is None:
                raise ComposeError(
                    f"Noise layer #{index} ({layer}) was reset before composition"
                )
            value_sum += importance * data

        result = value_sum / total_importance

        logger.info(
            "compose_finished",
            size=str(self.size),
            layers=len(self._layers),
            total_importance=total_importance,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    def _materialize_pending(self) -> None:
        """Materialize all unmaterialized layers concurrently and wait for them."""
        pending = [
            (index, layer)
            for index, layer in enumerate(self._layers)
            if not layer.is_materialized
        ]
        if not pending:
            return

        with futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            tasks = {
                executor.submit(layer.materialize): (index, layer)
                for index, layer in pending
            }
            _, not_done = futures.wait(tasks, return_when=futures.FIRST_EXCEPTION)

            for task in not_done:
                task.cancel()

        # Every task that was not cancelled has finished once the pool exits
        failures = sorted(
            (
                (index, layer, task.exception())
                for task, (index, layer) in tasks.items()
                if not task.cancelled() and task.exception() is not None
            ),
            key=lambda failure: failure[0],
        )

        if failures:
            # Lowest failing index wins
            index, layer, error = failures[0]
            logger.error(
                "layer_materialization_failed",
                index=index,
                layer=str(layer),
                error=str(error),
            )
            raise LayerMaterializationError(index, layer) from error

    def _compute_importances(self) -> list[float]:
        """Evaluate the importance formula for every layer, validating each value."""
        total = len(self._layers)
        previous = math.nan
        importances: list[float] = []

        for index in range(total):
            value = self._importance_formula(index, previous, total)
            if not _is_valid_importance(value):
                logger.warning(
                    "importance_formula_rejected",
                    index=index,
                    value=repr(value),
                    previous=previous,
                )
                raise FormulaValidationError(index, value, previous, total)
            importances.append(float(value))
            previous = float(value)

        return importances

    def __str__(self) -> str:
        return f"LayeredNoise - {len(self._layers)} layers, size = {self.size}"


def _is_valid_importance(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    value = float(value)
    return math.isfinite(value) and 0.0 <= value <= 1.0
