"""Custom exceptions for noise map generation."""


class NoiseMapError(Exception):
    """Base exception for noise map errors."""

    pass


class ConfigurationError(NoiseMapError):
    """Raised when a size, resolution, seed, layer or kernel is invalid."""

    pass


class MaterializationError(NoiseMapError):
    """Raised when a layer's generator cannot produce its noise map."""

    def __init__(self, layer: object, reason: str):
        self.layer = layer
        self.reason = reason
        super().__init__(f"Failed to materialize {layer}: {reason}")


class ComposeError(NoiseMapError):
    """Raised when layers cannot be combined into a composite map."""

    pass


class FormulaValidationError(ComposeError):
    """Raised when the importance formula yields an invalid weight."""

    def __init__(self, index: int, value: object, previous: float, total: int):
        self.index = index
        self.value = value
        self.previous = previous
        self.total = total
        super().__init__(
            f"Importance formula returned {value!r} for layer {index} "
            f"(previous={previous}, layers={total}); "
            f"expected a finite number between 0.0 and 1.0"
        )


class LayerMaterializationError(ComposeError):
    """Raised when a layer fails to materialize during composition."""

    def __init__(self, index: int, layer: object):
        self.index = index
        self.layer = layer
        super().__init__(f"Noise layer #{index} ({layer}) failed to materialize")
