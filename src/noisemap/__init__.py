"""Layered coherent noise maps.

Generates noise layers with gradient or simplex noise, combines them into a
weighted composite and optionally smooths the result.
"""

from .config import (
    NoiseMapConfig,
    build_composer,
    generate_noise_map,
    load_config,
)
from .exceptions import (
    ComposeError,
    ConfigurationError,
    FormulaValidationError,
    LayerMaterializationError,
    MaterializationError,
    NoiseMapError,
)
from .generators import (
    GradientNoise,
    NoiseGenerator,
    SimplexNoise,
    create_generator,
    random_seed,
)
from .layer import NoiseLayer
from .layered import (
    ImportanceFormula,
    LayeredNoise,
    halving_importance,
    uniform_importance,
)
from .smoothing import SmoothingKernel, smooth_map
from .types import NoiseAlgorithm, NoiseMap, Size

__all__ = [
    "ComposeError",
    "ConfigurationError",
    "FormulaValidationError",
    "GradientNoise",
    "ImportanceFormula",
    "LayerMaterializationError",
    "LayeredNoise",
    "MaterializationError",
    "NoiseAlgorithm",
    "NoiseGenerator",
    "NoiseLayer",
    "NoiseMap",
    "NoiseMapConfig",
    "NoiseMapError",
    "SimplexNoise",
    "Size",
    "SmoothingKernel",
    "build_composer",
    "create_generator",
    "generate_noise_map",
    "halving_importance",
    "load_config",
    "random_seed",
    "smooth_map",
    "uniform_importance",
]
