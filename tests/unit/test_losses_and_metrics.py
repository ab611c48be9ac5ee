import numpy as np
import pytest

from neurobuilder.core.errors import ConfigurationError, ShapeError
from neurobuilder.training.losses import REGISTRY, mse
from neurobuilder.training.metrics import (
    binary_accuracy,
    compute_metrics,
    default_metrics,
    validate_metric_names,
)


def test_mse_sums_over_columns_and_averages_over_rows():
    loss, grad = mse(np.array([[1.0], [0.0]]), np.array([[0.0], [0.0]]))
    assert loss == pytest.approx(0.5)
    assert grad.tolist() == [[2.0], [0.0]]

    loss, grad = mse(np.array([[1.0, 0.0]]), np.array([[0.0, 0.0]]))
    assert loss == pytest.approx(1.0)
    # gradient is divided by the output width
    assert grad.tolist() == [[1.0, 0.0]]


def test_loss_registry_resolves_and_checks_shapes():
    loss = REGISTRY.resolve("mse")
    with pytest.raises(ShapeError):
        loss(np.zeros((2, 1)), np.zeros((1, 1)))
    with pytest.raises(ConfigurationError):
        REGISTRY.resolve("hinge")
    assert "mse" in REGISTRY.names()


def test_binary_accuracy_thresholds_at_one_half():
    predictions = np.array([[0.9], [0.4], [0.51]])
    targets = np.array([[1.0], [0.0], [1.0]])
    assert binary_accuracy(predictions, targets) == 1.0
    assert binary_accuracy(np.array([[0.5]]), np.array([[1.0]])) == 1.0
    assert binary_accuracy(np.zeros((0, 1)), np.zeros((0, 1))) == 0.0


def test_binary_accuracy_needs_a_single_column():
    with pytest.raises(ShapeError):
        binary_accuracy(np.zeros((2, 2)), np.zeros((2, 2)))


def test_metric_names_are_validated_against_output_width():
    assert default_metrics(1) == ["accuracy"]
    assert default_metrics(3) == []
    validate_metric_names(["mae", "RMSE"], 3)
    with pytest.raises(ConfigurationError):
        validate_metric_names(["accuracy"], 2)
    with pytest.raises(ConfigurationError):
        validate_metric_names(["f1"], 1)


def test_compute_metrics_returns_named_values():
    values = compute_metrics(
        ["accuracy", "mae", "rmse"], np.array([[1.0], [0.0]]), np.array([[1.0], [1.0]])
    )
    assert values == {"accuracy": 0.5, "mae": 0.5, "rmse": pytest.approx(np.sqrt(0.5))}
