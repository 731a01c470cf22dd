import pytest
import numpy as np
from gridSOM import ProgressListener, count_rows, load_vectors
from gridSOM.loader import default_columns

csv_text = """id,sepal_length,sepal_width,petal_length,petal_width,species
1,5.1,3.5,1.4,0.2,Iris-setosa
2,4.9,n/a,1.4,0.2,Iris-setosa
3,7.0,3.2,4.7,1.4,Iris-versicolor
4,6.3,3.3
5,6.3,3.3,6.0,2.5,Iris-virginica
"""


class CountingListener(ProgressListener):
    def __init__(self):
        self.started = []
        self.completed = []
        self.memory = 0

    def start(self, name, total_steps):
        self.started.append((name, total_steps))

    def complete(self, name, success, message=""):
        self.completed.append((name, success))

    def memory_usage(self, used_mb, total_mb):
        self.memory += 1


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "iris.csv"
    path.write_text(csv_text)
    return str(path)


def test_count_rows(csv_file, tmp_path):
    assert count_rows(csv_file) == 5
    assert count_rows(str(tmp_path / "missing.csv")) == -1


def test_default_columns():
    assert default_columns(["id", "a", "b", "label"]) == ([1, 2], 3)
    with pytest.raises(ValueError):
        default_columns(["id", "label"])


def test_load_vectors_default_layout(csv_file):
    print("Testing default column layout", flush=True)
    vectors = load_vectors(csv_file)

    # the short row is skipped, the unparsable field falls back to 0.0
    assert len(vectors) == 4
    assert [v.label for v in vectors] == [
        "Iris-setosa",
        "Iris-setosa",
        "Iris-versicolor",
        "Iris-virginica",
    ]
    assert np.allclose(vectors[0].features, [5.1, 3.5, 1.4, 0.2])
    assert np.allclose(vectors[1].features, [4.9, 0.0, 1.4, 0.2])
    assert all(v.dimension == 4 for v in vectors)


def test_load_vectors_custom_mapping(csv_file):
    vectors = load_vectors(csv_file, feature_indices=[1, 3], label_index=-1, default=-1.0)
    assert len(vectors) == 4
    assert all(v.label == "" for v in vectors)
    assert np.allclose(vectors[2].features, [7.0, 4.7])


def test_load_vectors_reports_progress(csv_file):
    listener = CountingListener()
    load_vectors(csv_file, batch_size=2, listener=listener)
    assert listener.started == [(f"Loading data from {csv_file}", 5)]
    assert listener.completed == [("Data loading", True)]
    # once before loading, once per chunk of 2 rows
    assert listener.memory == 1 + 3


def test_load_vectors_sampling(tmp_path):
    print("Testing row sampling", flush=True)
    path = tmp_path / "big.csv"
    rows = ["id,x,y,label"] + [f"{i},{i},{2 * i},c{i % 3}" for i in range(1000)]
    path.write_text("\n".join(rows) + "\n")

    everything = load_vectors(str(path))
    assert len(everything) == 1000

    sampled = load_vectors(
        str(path), sampling_rate=0.3, rng=np.random.default_rng(1)
    )
    assert 200 < len(sampled) < 400
    xs = [v.features[0] for v in sampled]
    assert xs == sorted(xs)


def test_load_vectors_non_finite_fields(tmp_path):
    print("Testing non-finite fields", flush=True)
    path = tmp_path / "nan.csv"
    path.write_text("id,x,y,label\n1,0.5,0.5,c0\n2,nan,0.5,c0\n3,0.5,inf,c1\n")

    vectors = load_vectors(str(path))
    assert len(vectors) == 3
    assert all(np.all(np.isfinite(v.features)) for v in vectors)
    assert np.array_equal(vectors[1].features, [0.0, 0.5])
    assert np.array_equal(vectors[2].features, [0.5, 0.0])

    strict = load_vectors(str(path), default=None)
    assert [v.features.tolist() for v in strict] == [[0.5, 0.5]]


def test_load_vectors_bad_row_numbers(tmp_path, capsys):
    print("Testing row numbers of malformed rows", flush=True)
    path = tmp_path / "ragged.csv"
    path.write_text("id,x,y,label\n1,1,1,a\n2,1,1,a,extra\n3,1\n4,2,2,b\n")
    capsys.readouterr()

    vectors = load_vectors(str(path))
    out = capsys.readouterr().out
    assert [v.label for v in vectors] == ["a", "b"]
    assert "Error processing row 2: too many fields" in out
    assert "Error processing row 3: missing fields" in out


def test_load_vectors_invalid_arguments(csv_file, tmp_path):
    with pytest.raises(ValueError):
        load_vectors(csv_file, batch_size=0)
    with pytest.raises(ValueError):
        load_vectors(csv_file, sampling_rate=0.0)
    with pytest.raises(FileNotFoundError):
        load_vectors(str(tmp_path / "missing.csv"))


if __name__ == "__main__":
    pytest.main()
