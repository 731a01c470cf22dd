import pytest
import numpy as np
from gridSOM import Prototype, Vector, DimensionMismatchError


@pytest.fixture
def prototype():
    return Prototype(Vector([0.1, 0.2, 0.7], "w"), 0.0, 2, 3)


def test_prototype_initialization(prototype: Prototype):
    print("Testing prototype initialization", flush=True)
    assert prototype.x == 2
    assert prototype.y == 3
    assert prototype.distance == 0.0
    assert prototype.label == ""
    assert str(prototype) == "[]"


def test_invalid_construction():
    with pytest.raises(ValueError):
        Prototype(None)
    with pytest.raises(ValueError):
        Prototype(Vector([1.0]), 0.0, -1, 0)
    with pytest.raises(ValueError):
        Prototype(Vector([1.0]), -0.5, 0, 0)


def test_distance_rejects_negative(prototype: Prototype):
    prototype.distance = 1.5
    assert prototype.distance == 1.5
    with pytest.raises(ValueError):
        prototype.distance = -1.0
    with pytest.raises(ValueError):
        prototype.distance = float("nan")
    assert prototype.distance == 1.5


def test_label(prototype: Prototype):
    prototype.label = "setosa"
    assert str(prototype) == "[setosa]"
    prototype.label = None
    assert prototype.label == ""


def test_calculate_distance(prototype: Prototype):
    v = Vector([0.1, 0.2, 0.0])
    d = prototype.calculate_distance(v)
    assert d == pytest.approx(0.7)
    assert prototype.distance == pytest.approx(0.7)
    with pytest.raises(ValueError):
        prototype.calculate_distance(None)


def test_update_weights_zero_rate(prototype: Prototype):
    print("Testing weight update with rate 0", flush=True)
    before = prototype.weight.features
    prototype.update_weights(Vector([0.9, -0.3, 0.4]), 0.0)
    assert np.array_equal(prototype.weight.features, before)


def test_update_weights_unit_rate(prototype: Prototype):
    print("Testing weight update with rate 1", flush=True)
    target = Vector([0.9, -0.3, 0.4])
    prototype.update_weights(target, 1.0)
    assert np.array_equal(prototype.weight.features, target.features)


def test_update_weights_rule(prototype: Prototype):
    w = prototype.weight.features
    v = np.array([1.0, 1.0, 1.0])
    prototype.update_weights(Vector(v), 0.25)
    assert np.allclose(prototype.weight.features, w + 0.25 * (v - w))


def test_update_weights_replaces_vector(prototype: Prototype):
    old = prototype.weight
    old_features = old.features
    prototype.update_weights(Vector([1.0, 1.0, 1.0]), 0.5)
    assert prototype.weight is not old
    assert np.array_equal(old.features, old_features)
    assert prototype.weight.label == old.label


def test_update_weights_invalid(prototype: Prototype):
    with pytest.raises(ValueError):
        prototype.update_weights(Vector([1.0, 1.0, 1.0]), 1.5)
    with pytest.raises(ValueError):
        prototype.update_weights(Vector([1.0, 1.0, 1.0]), -0.1)
    with pytest.raises(DimensionMismatchError):
        prototype.update_weights(Vector([1.0, 1.0]), 0.5)
    with pytest.raises(ValueError):
        prototype.update_weights(None, 0.5)


def test_grid_distance():
    a = Prototype(Vector([0.0]), 0.0, 1, 1)
    b = Prototype(Vector([0.0]), 0.0, 4, 0)
    assert a.grid_distance(b) == 4
    assert b.grid_distance(a) == 4
    assert a.grid_distance(a) == 0


def test_is_neighbor_matches_grid_distance():
    print("Testing neighbor relation", flush=True)
    cells = [Prototype(Vector([0.0]), 0.0, x, y) for x in range(5) for y in range(10)]
    center = cells[23]
    for other in cells:
        for r in range(0, 15):
            assert center.is_neighbor(other, r) == (center.grid_distance(other) <= r)


def test_is_neighbor_invalid(prototype: Prototype):
    with pytest.raises(ValueError):
        prototype.is_neighbor(prototype, -1)
    with pytest.raises(ValueError):
        prototype.is_neighbor(None, 1)


if __name__ == "__main__":
    pytest.main()
