import numpy as np
import pytest

from neurobuilder.core.errors import ConfigurationError, FormatError
from neurobuilder.data import Dataset, available_datasets, get_dataset, parse_csv, register_dataset


def test_parse_csv_splits_features_and_target():
    dataset = parse_csv("0,0,0\n0,1,1\n1,0,1\n1,1,0")
    assert dataset.inputs.tolist() == [[0, 0], [0, 1], [1, 0], [1, 1]]
    assert dataset.targets.tolist() == [[0], [1], [1], [0]]
    assert dataset.provenance["header"] is False


def test_parse_csv_skips_header_and_blank_lines():
    dataset = parse_csv("x1, x2, label\n\n0.5, 1.5, 1\n  \n2,3,0\n")
    assert len(dataset) == 2
    assert dataset.inputs.tolist() == [[0.5, 1.5], [2.0, 3.0]]
    assert dataset.provenance["header"] is True


def test_scientific_notation_is_not_a_header():
    dataset = parse_csv("1e-3,2,1\n3,4,0")
    assert len(dataset) == 2
    assert dataset.inputs[0, 0] == pytest.approx(0.001)


def test_column_count_mismatch_names_the_row():
    with pytest.raises(FormatError, match="row 3"):
        parse_csv("1,2,3\n4,5,6\n7,8")


@pytest.mark.parametrize(
    "text",
    [
        "",
        "\n\n",
        "a,b,c\n",
        "1\n2\n",
        "1,2,3\n4,oops,6",
        "1,,3",
    ],
)
def test_malformed_csv_raises_format_error(text):
    with pytest.raises(FormatError):
        parse_csv(text)


def test_csv_dataset_loads_from_path(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a,b,c,y\n1,2,3,1\n4,5,6,0\n")
    dataset = get_dataset("csv", csv_path=str(path))
    assert dataset.input_size == 3
    assert dataset.provenance["path"] == str(path)
    with pytest.raises(ConfigurationError):
        get_dataset("csv")


def test_builtin_datasets():
    xor = get_dataset("xor")
    assert xor.targets.ravel().tolist() == [0, 1, 1, 0]

    linsep = get_dataset("linsep", n_points=50, seed=7)
    assert len(linsep) == 50
    expected = (linsep.inputs.sum(axis=1) > 1).astype(float)
    np.testing.assert_array_equal(linsep.targets.ravel(), expected)
    assert np.array_equal(linsep.inputs, get_dataset("linsep", n_points=50, seed=7).inputs)


def test_registry_rejects_unknown_names_and_accepts_new_factories():
    with pytest.raises(ConfigurationError):
        get_dataset("mnist")

    register_dataset("unit-ones", lambda **_: Dataset.from_rows([[1, 1]], [[1]]))
    assert "unit-ones" in available_datasets()
    assert len(get_dataset("unit-ones")) == 1


def test_dataset_rejects_row_count_mismatch():
    with pytest.raises(ConfigurationError):
        Dataset(np.zeros((2, 2)), np.zeros((3, 1)))


def test_batches_cover_the_order_with_a_short_tail():
    dataset = Dataset.from_rows([[i, i] for i in range(5)], [[i] for i in range(5)])
    batches = list(dataset.batches([4, 3, 2, 1, 0], 2))
    assert [len(batch.inputs) for batch in batches] == [2, 2, 1]
    assert batches[0].targets.ravel().tolist() == [4, 3]
