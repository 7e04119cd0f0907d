"""Noise map configuration loading from TOML files."""

import tomllib
from pathlib import Path
from typing import Literal

import structlog
from pydantic import BaseModel, Field

from .generators import DEFAULT_SEED_DIGITS
from .layer import DEFAULT_RESOLUTION, NoiseLayer
from .layered import LayeredNoise, halving_importance, uniform_importance
from .smoothing import smooth_map
from .types import NoiseAlgorithm, NoiseMap, Size

logger = structlog.get_logger()

IMPORTANCE_FORMULAS = {
    "halving": halving_importance,
    "uniform": uniform_importance,
}


class GradientSettings(BaseModel):
    """Gradient noise parameters."""

    octaves: int = Field(default=1, description="Number of octaves to sum")
    persistence: float = Field(default=0.5, description="Amplitude multiplier per octave")
    lacunarity: float = Field(default=2.0, description="Frequency multiplier per octave")


class LayerConfig(BaseModel):
    """A single noise layer."""

    algorithm: NoiseAlgorithm = NoiseAlgorithm.GRADIENT
    seed: int | str | None = Field(default=None, description="Seed (random if omitted)")
    resolution: float | None = Field(
        default=None, description="Sampling divisor (map default if omitted)"
    )
    width: int | None = Field(default=None, description="Overrides map width")
    height: int | None = Field(default=None, description="Overrides map height")
    gradient: GradientSettings = Field(default_factory=GradientSettings)


class SmoothingConfig(BaseModel):
    """Smoothing applied to the composite map."""

    kernel: Literal["coarse", "smooth", "extra_smooth"] = "smooth"
    passes: int = Field(default=0, ge=0, description="Number of smoothing passes")


class NoiseMapConfig(BaseModel):
    """Complete noise map configuration."""

    width: int = Field(default=128, description="Map width in cells")
    height: int = Field(default=128, description="Map height in cells")
    importance: Literal["halving", "uniform"] = Field(
        default="halving", description="Layer importance formula"
    )
    default_resolution: float = Field(
        default=DEFAULT_RESOLUTION, description="Resolution for layers without one"
    )
    seed_digits: int = Field(
        default=DEFAULT_SEED_DIGITS, description="Digit count of generated seeds"
    )
    max_workers: int | None = Field(
        default=None, description="Threads used to materialize layers"
    )
    layers: list[LayerConfig] = Field(default_factory=list)
    smoothing: SmoothingConfig = Field(default_factory=SmoothingConfig)

    @property
    def size(self) -> Size:
        return Size(width=self.width, height=self.height)


def load_config(config_path: Path) -> NoiseMapConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed NoiseMapConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return NoiseMapConfig.model_validate(data)


def find_config(name: str) -> Path:
    """Find a config file by name.

    Searches in the following order:
    1. Exact path if name contains path separator or ends in .toml
    2. configs/{name}.toml
    3. configs/{name}

    Args:
        name: Config name or path.

    Returns:
        Path to the config file.

    Raises:
        FileNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    configs_dir = _configs_dir()

    config_path = configs_dir / f"{name}.toml"
    if config_path.exists():
        return config_path

    config_path = configs_dir / name
    if config_path.exists():
        return config_path

    raise FileNotFoundError(
        f"Config '{name}' not found in {configs_dir}. "
        f"Available configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """List available config names."""
    configs_dir = _configs_dir()
    if not configs_dir.exists():
        return []
    return sorted(p.stem for p in configs_dir.glob("*.toml"))


def _configs_dir() -> Path:
    return Path(__file__).parent.parent.parent / "configs"


def build_layer(layer_config: LayerConfig, config: NoiseMapConfig) -> NoiseLayer:
    """Create a NoiseLayer from its configuration.

    Size and resolution fall back to the map-level values.
    """
    size = Size(
        width=layer_config.width if layer_config.width is not None else config.width,
        height=layer_config.height if layer_config.height is not None else config.height,
    )
    resolution = (
        layer_config.resolution
        if layer_config.resolution is not None
        else config.default_resolution
    )

    settings = {}
    if layer_config.algorithm is NoiseAlgorithm.GRADIENT:
        settings = layer_config.gradient.model_dump()

    return NoiseLayer(
        size,
        layer_config.algorithm,
        seed=layer_config.seed,
        resolution=resolution,
        seed_digits=config.seed_digits,
        **settings,
    )


def build_composer(config: NoiseMapConfig) -> LayeredNoise:
    """Create a LayeredNoise with every configured layer added in order.

    Raises:
        ConfigurationError: If any layer is invalid or its size differs.
    """
    composer = LayeredNoise(config.size, max_workers=config.max_workers)
    composer.set_importance_formula(IMPORTANCE_FORMULAS[config.importance])

    for layer_config in config.layers:
        layer = build_layer(layer_config, config)
        composer.add_layer(layer)
        logger.debug(
            "layer_added",
            layer=str(layer),
            seed=layer.seed,
            resolution=layer.resolution,
        )

    return composer


def generate_noise_map(config: NoiseMapConfig) -> NoiseMap:
    """Compose all configured layers and apply the configured smoothing."""
    composite = build_composer(config).compose()
    if config.smoothing.passes:
        composite = smooth_map(composite, config.smoothing.kernel, config.smoothing.passes)
    return composite
