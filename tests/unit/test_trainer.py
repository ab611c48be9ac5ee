import numpy as np
import pytest

from neurobuilder.core.errors import ConfigurationError, UsageError
from neurobuilder.core.initializers import shuffle_in_place, xorshift
from neurobuilder.core.network import LayerSpec, build_network
from neurobuilder.data import Dataset, get_dataset
from neurobuilder.training.trainer import Trainer, TrainingConfig, TrainingStatus


def _xor_network(hidden=4, seed=42):
    return build_network(
        [
            LayerSpec("input", 2),
            LayerSpec("hidden", hidden, "tanh"),
            LayerSpec("output", 1, "sigmoid"),
        ],
        seed=seed,
    )


def test_training_on_xor_reduces_loss():
    trainer = Trainer(_xor_network())
    config = TrainingConfig(learning_rate=0.5, epochs=2000, batch_size=4, seed=42)
    curve = trainer.run(get_dataset("xor"), config)
    assert len(curve) == 2000
    assert curve[-1] < curve[0]
    assert trainer.state.status is TrainingStatus.IDLE
    assert trainer.state.epoch == 2000


def test_small_two_two_one_network_learns_on_xor():
    # two tanh units start on the symmetric plateau near 0.25
    trainer = Trainer(_xor_network(hidden=2, seed=42))
    config = TrainingConfig(learning_rate=2.0, epochs=3000, batch_size=4, seed=42)
    curve = trainer.run(get_dataset("xor"), config)
    assert np.all(np.isfinite(curve))
    assert curve[-1] < curve[0]


def test_each_epoch_shuffles_a_fresh_index_order(monkeypatch):
    seen = []
    original = Dataset.batches

    def _recording_batches(self, order, batch_size):
        seen.append(list(order))
        return original(self, order, batch_size)

    monkeypatch.setattr(Dataset, "batches", _recording_batches)
    dataset = get_dataset("linsep", n_points=9, seed=7)
    Trainer(_xor_network()).run(
        dataset, TrainingConfig(learning_rate=0.1, epochs=3, batch_size=4, seed=5)
    )

    rand = xorshift(5)
    expected = []
    for _ in range(3):
        order = list(range(9))
        shuffle_in_place(order, rand)
        expected.append(order)
    assert seen == expected


def test_training_on_linearly_separable_data_reaches_high_accuracy():
    dataset = get_dataset("linsep", n_points=200, seed=7)
    trainer = Trainer(_xor_network())
    config = TrainingConfig(learning_rate=0.5, epochs=500, batch_size=8, seed=42)
    trainer.run(dataset, config)
    assert trainer.state.last_report.metrics["accuracy"] > 0.85


def test_training_is_deterministic_for_a_seed():
    config = TrainingConfig(learning_rate=0.5, epochs=20, batch_size=2, seed=3)
    first = Trainer(_xor_network()).run(get_dataset("xor"), config)
    second = Trainer(_xor_network()).run(get_dataset("xor"), config)
    assert first == second


def test_empty_dataset_is_rejected():
    empty = Dataset(np.zeros((0, 2)), np.zeros((0, 1)))
    trainer = Trainer(_xor_network())
    with pytest.raises(ConfigurationError):
        trainer.run(empty, TrainingConfig(learning_rate=0.1, epochs=1, batch_size=1))


def test_dataset_width_must_match_network():
    dataset = Dataset.from_rows([[0, 0, 0]], [[1]])
    trainer = Trainer(_xor_network())
    with pytest.raises(ConfigurationError):
        trainer.run(dataset, TrainingConfig(learning_rate=0.1, epochs=1, batch_size=1))


def test_cancelling_from_a_callback_stops_after_that_epoch():
    trainer = Trainer(_xor_network())
    seen = []

    def _stop_at_three(epoch, metrics):
        seen.append(epoch)
        if epoch == 3:
            trainer.cancel()

    curve = trainer.run(
        get_dataset("xor"),
        TrainingConfig(learning_rate=0.5, epochs=50, batch_size=4),
        callbacks=[_stop_at_three],
    )
    assert seen == [1, 2, 3]
    assert len(curve) == 3
    assert trainer.state.status is TrainingStatus.CANCELLED


def test_closing_the_epoch_generator_counts_as_cancellation():
    trainer = Trainer(_xor_network())
    epochs = trainer.iter_epochs(
        get_dataset("xor"), TrainingConfig(learning_rate=0.5, epochs=50, batch_size=4)
    )
    report = next(epochs)
    assert report.epoch == 1
    assert trainer.state.status is TrainingStatus.RUNNING
    epochs.close()
    assert trainer.state.status is TrainingStatus.CANCELLED
    assert len(trainer.state.loss_curve) == 1


def test_second_run_while_suspended_is_rejected():
    trainer = Trainer(_xor_network())
    config = TrainingConfig(learning_rate=0.5, epochs=5, batch_size=4)
    epochs = trainer.iter_epochs(get_dataset("xor"), config)
    next(epochs)
    with pytest.raises(UsageError):
        trainer.iter_epochs(get_dataset("xor"), config)
    epochs.close()


def test_yield_every_controls_suspension_points():
    trainer = Trainer(_xor_network())
    config = TrainingConfig(learning_rate=0.5, epochs=12, batch_size=4, yield_every=5)
    reports = list(trainer.iter_epochs(get_dataset("xor"), config))
    assert [report.epoch for report in reports] == [5, 10, 12]
    assert len(trainer.state.loss_curve) == 12


def test_cancel_before_start_is_cleared_by_a_new_run():
    trainer = Trainer(_xor_network())
    trainer.cancel()
    curve = trainer.run(get_dataset("xor"), TrainingConfig(learning_rate=0.5, epochs=4, batch_size=4))
    assert len(curve) == 4


def test_reports_carry_loss_and_metrics():
    trainer = Trainer(_xor_network())
    config = TrainingConfig(learning_rate=0.5, epochs=2, batch_size=4, metrics=["accuracy", "mae"])
    report = list(trainer.iter_epochs(get_dataset("xor"), config))[-1]
    assert set(report.as_record()) == {"loss", "accuracy", "mae"}


def test_accuracy_on_multi_output_network_is_rejected_up_front():
    network = build_network(
        [LayerSpec("input", 2), LayerSpec("output", 2, "sigmoid")]
    )
    dataset = Dataset.from_rows([[0, 1]], [[0, 1]])
    config = TrainingConfig(learning_rate=0.1, epochs=1, batch_size=1, metrics=["accuracy"])
    with pytest.raises(ConfigurationError):
        Trainer(network).iter_epochs(dataset, config)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"learning_rate": 0.0, "epochs": 1, "batch_size": 1},
        {"learning_rate": 0.1, "epochs": 0, "batch_size": 1},
        {"learning_rate": 0.1, "epochs": 1, "batch_size": 0},
        {"learning_rate": 0.1, "epochs": 1, "batch_size": 1, "yield_every": 0},
    ],
)
def test_training_config_validation(kwargs):
    with pytest.raises(ConfigurationError):
        TrainingConfig(**kwargs)


def test_training_config_from_mapping():
    config = TrainingConfig.from_mapping({"lr": 0.3, "epochs": 7, "metrics": "accuracy, mae"})
    assert config.learning_rate == 0.3
    assert config.epochs == 7
    assert config.batch_size == 4
    assert list(config.metrics) == ["accuracy", "mae"]
