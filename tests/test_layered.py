"""Tests for LayeredNoise composition."""

import math

import numpy as np
import pytest

from noisemap.exceptions import (
    ComposeError,
    ConfigurationError,
    FormulaValidationError,
    LayerMaterializationError,
    MaterializationError,
)
from noisemap.layer import NoiseLayer
from noisemap.layered import LayeredNoise, halving_importance, uniform_importance
from noisemap.types import Size


SIZE = Size(width=20, height=12)


def make_layers(count: int, size: Size = SIZE) -> list[NoiseLayer]:
    algorithms = ["gradient", "simplex"]
    return [
        NoiseLayer(size, algorithms[i % 2], seed=1000 + i, resolution=3.0 + i)
        for i in range(count)
    ]


class TestImportanceFormulas:
    """Tests for the provided importance formulas."""

    def test_halving_sequence(self) -> None:
        previous = math.nan
        weights = []
        for index in range(4):
            previous = halving_importance(index, previous, 4)
            weights.append(previous)
        assert weights == [1.0, 0.5, 0.25, 0.125]

    def test_uniform(self) -> None:
        assert uniform_importance(0, math.nan, 3) == 1.0
        assert uniform_importance(2, 1.0, 3) == 1.0

    def test_default_formula(self) -> None:
        assert LayeredNoise.default_importance_formula() is halving_importance


class TestLayerManagement:
    """Tests for adding layers."""

    def test_add_layer_keeps_order(self) -> None:
        layers = make_layers(3)
        composer = LayeredNoise(SIZE)
        for layer in layers:
            composer.add_layer(layer)

        assert composer.layers == tuple(layers)
        assert len(composer) == 3

    def test_initial_layers(self) -> None:
        layers = make_layers(2)
        composer = LayeredNoise(SIZE, layers)
        assert composer.layers == tuple(layers)

    def test_mismatched_size_rejected(self) -> None:
        composer = LayeredNoise(SIZE)
        layer = NoiseLayer(Size(width=20, height=13), "gradient", seed=1)
        with pytest.raises(ConfigurationError, match="expected 20x12"):
            composer.add_layer(layer)
        assert len(composer) == 0

    def test_mismatched_initial_layer_rejected(self) -> None:
        layer = NoiseLayer(Size(width=5, height=5), "gradient", seed=1)
        with pytest.raises(ConfigurationError):
            LayeredNoise(SIZE, [layer])

    def test_invalid_size_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            LayeredNoise(Size(width=0, height=4))

    def test_invalid_worker_count_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            LayeredNoise(SIZE, max_workers=0)


class TestCompose:
    """Tests for composite generation."""

    def test_concrete_two_layer_scenario(self, fixed_layer) -> None:
        """(1 * 1 + 0.5 * 0) / 1.5 = 2/3 for every cell."""
        composer = LayeredNoise(Size(width=2, height=2))
        composer.add_layer(fixed_layer([[1.0, 1.0], [1.0, 1.0]]))
        composer.add_layer(fixed_layer([[0.0, 0.0], [0.0, 0.0]]))

        result = composer.compose()

        np.testing.assert_allclose(result, np.full((2, 2), 2.0 / 3.0))

    def test_three_layer_weighted_average(self, fixed_layer) -> None:
        composer = LayeredNoise(Size(width=1, height=1))
        composer.add_layer(fixed_layer([[0.5]]))
        composer.add_layer(fixed_layer([[0.3]]))
        composer.add_layer(fixed_layer([[0.45]]))

        result = composer.compose()

        expected = (1.0 * 0.5 + 0.5 * 0.3 + 0.25 * 0.45) / 1.75
        assert result[0, 0] == pytest.approx(expected)

    def test_materializes_pending_layers(self) -> None:
        layers = make_layers(3)
        composer = LayeredNoise(SIZE, layers, max_workers=2)

        result = composer.compose()

        assert result.shape == (12, 20)
        assert all(layer.is_materialized for layer in layers)

    def test_reuses_materialized_layers(self, fixed_layer) -> None:
        first = fixed_layer([[1.0, 2.0]])
        second = fixed_layer([[3.0, 4.0]])
        first.materialize()
        composer = LayeredNoise(Size(width=2, height=1), [first, second])

        composer.compose()
        composer.compose()

        assert first.generator.calls == 1
        assert second.generator.calls == 1

    def test_single_layer_identity(self) -> None:
        """One layer with weight 1.0 reproduces the layer's map."""
        layer = make_layers(1)[0]
        composer = LayeredNoise(SIZE, [layer])

        result = composer.compose()

        np.testing.assert_allclose(result, layer.data())

    def test_weighted_average_bounds(self) -> None:
        """Each output cell lies within the per-cell min and max of its inputs."""
        layers = make_layers(4)
        composer = LayeredNoise(SIZE, layers)

        result = composer.compose()

        stacked = np.stack([layer.data() for layer in layers])
        eps = 1e-12
        assert np.all(result >= stacked.min(axis=0) - eps)
        assert np.all(result <= stacked.max(axis=0) + eps)

    def test_result_is_new_array(self) -> None:
        layer = make_layers(1)[0]
        composer = LayeredNoise(SIZE, [layer])

        result = composer.compose()
        result[0, 0] = 99.0

        assert layer.data()[0, 0] != 99.0

    def test_deterministic(self) -> None:
        a = LayeredNoise(SIZE, make_layers(3)).compose()
        b = LayeredNoise(SIZE, make_layers(3)).compose()
        np.testing.assert_array_equal(a, b)

    def test_custom_formula_receives_arguments(self, fixed_layer) -> None:
        calls = []

        def formula(index, previous, total):
            calls.append((index, previous, total))
            return 0.5

        composer = LayeredNoise(Size(width=1, height=1))
        composer.add_layer(fixed_layer([[1.0]]))
        composer.add_layer(fixed_layer([[0.0]]))
        composer.set_importance_formula(formula)

        result = composer.compose()

        assert result[0, 0] == pytest.approx(0.5)
        assert calls[0][0] == 0 and math.isnan(calls[0][1]) and calls[0][2] == 2
        assert calls[1] == (1, 0.5, 2)

    def test_reset_importance_formula(self, fixed_layer) -> None:
        composer = LayeredNoise(Size(width=1, height=1))
        composer.add_layer(fixed_layer([[1.0]]))
        composer.add_layer(fixed_layer([[0.0]]))

        composer.set_importance_formula(uniform_importance)
        assert composer.compose()[0, 0] == pytest.approx(0.5)

        composer.reset_importance_formula()
        assert composer.compose()[0, 0] == pytest.approx(2.0 / 3.0)

    def test_zero_weight_layer_ignored(self, fixed_layer) -> None:
        composer = LayeredNoise(Size(width=1, height=1))
        composer.add_layer(fixed_layer([[0.8]]))
        composer.add_layer(fixed_layer([[-5.0]]))
        composer.set_importance_formula(lambda index, previous, total: 1.0 if index == 0 else 0.0)

        assert composer.compose()[0, 0] == pytest.approx(0.8)


class TestComposeErrors:
    """Tests for composition failures."""

    @pytest.mark.parametrize("bad_value", [1.5, -0.1, math.nan, math.inf, "0.5", None])
    def test_invalid_importance_rejected(self, fixed_layer, bad_value) -> None:
        composer = LayeredNoise(Size(width=1, height=1))
        composer.add_layer(fixed_layer([[1.0]]))
        composer.add_layer(fixed_layer([[0.0]]))
        composer.set_importance_formula(
            lambda index, previous, total: 1.0 if index == 0 else bad_value
        )

        with pytest.raises(FormulaValidationError) as exc_info:
            composer.compose()

        assert exc_info.value.index == 1
        assert exc_info.value.value is bad_value or (
            isinstance(bad_value, float) and math.isnan(exc_info.value.value)
        )

    def test_first_layer_rejection_identifies_index(self, fixed_layer) -> None:
        composer = LayeredNoise(Size(width=1, height=1), [fixed_layer([[1.0]])])
        composer.set_importance_formula(lambda index, previous, total: 2.0)

        with pytest.raises(FormulaValidationError, match="layer 0") as exc_info:
            composer.compose()
        assert exc_info.value.value == 2.0

    def test_no_layers(self) -> None:
        with pytest.raises(ComposeError, match="without layers"):
            LayeredNoise(SIZE).compose()

    def test_all_zero_importances(self, fixed_layer) -> None:
        composer = LayeredNoise(Size(width=1, height=1), [fixed_layer([[1.0]])])
        composer.set_importance_formula(lambda index, previous, total: 0.0)

        with pytest.raises(ComposeError, match="sum to 0.0"):
            composer.compose()

    def test_layer_failure_names_layer(self, failing_layer) -> None:
        good = make_layers(2)
        bad = failing_layer(SIZE)
        composer = LayeredNoise(SIZE, [good[0], bad, good[1]])

        with pytest.raises(LayerMaterializationError) as exc_info:
            composer.compose()

        assert exc_info.value.index == 1
        assert exc_info.value.layer is bad
        assert isinstance(exc_info.value.__cause__, MaterializationError)
        assert isinstance(exc_info.value, ComposeError)

    def test_lowest_failing_index_reported(self, failing_layer) -> None:
        composer = LayeredNoise(SIZE, [failing_layer(SIZE), failing_layer(SIZE)])

        with pytest.raises(LayerMaterializationError) as exc_info:
            composer.compose()

        assert exc_info.value.index == 0
