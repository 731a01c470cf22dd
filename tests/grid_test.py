import pytest
import numpy as np
from gridSOM import Grid, Neighborhood, Prototype, Vector

rng = np.random.default_rng(3)
rows = 4
columns = 10
dimension = 3
vectors = [Vector(rng.random(dimension)) for _ in range(rows * columns + 5)]


@pytest.fixture
def grid():
    return Grid.from_vectors(vectors, columns)


def test_grid_layout(grid: Grid):
    print("Testing grid layout", flush=True)
    assert grid.shape == (rows, columns)
    assert len(grid) == rows * columns
    for row in range(rows):
        for col in range(columns):
            p = grid[row, col]
            assert (p.x, p.y) == (row, col)
            assert p.weight is vectors[row * columns + col]
            assert p.distance == 0.0


def test_grid_iteration_is_row_major(grid: Grid):
    positions = [(p.x, p.y) for p in grid]
    assert positions == [(r, c) for r in range(rows) for c in range(columns)]
    assert len(list(grid.iter_rows())) == rows


def test_grid_too_few_vectors():
    with pytest.raises(ValueError):
        Grid.from_vectors(vectors[:9], 10)


def test_grid_rejects_ragged_rows():
    a = Prototype(Vector([0.0]), 0.0, 0, 0)
    b = Prototype(Vector([0.0]), 0.0, 0, 1)
    c = Prototype(Vector([0.0]), 0.0, 1, 0)
    with pytest.raises(ValueError):
        Grid([[a, b], [c]])


def test_weights(grid: Grid):
    weights = grid.weights()
    assert weights.shape == (rows, columns, dimension)
    assert np.array_equal(weights[2, 5], grid[2, 5].weight.features)


def test_row_distances(grid: Grid):
    print("Testing row-parallel distance kernel", flush=True)
    v = rng.random(dimension)
    distances = Grid.row_distances(grid.weights(), v)
    assert distances.shape == (rows, columns)
    for p in grid:
        assert distances[p.x, p.y] == pytest.approx(p.weight.distance(Vector(v)))


def neighborhood_of(grid, center, radius):
    return Neighborhood(center, [p for p in grid if p.is_neighbor(center, radius)])


def test_neighborhood_interior(grid: Grid):
    print("Testing neighborhood bounding box", flush=True)
    center = grid[2, 5]
    hood = neighborhood_of(grid, center, 1)
    assert hood.shape == (3, 3)
    assert hood.bounds == (1, 4, 3, 6)
    assert len(hood) == 5
    # corners of the box are outside the diamond
    assert hood.cells[0][0] is None
    assert hood.cells[0][2] is None
    assert hood.cells[2][0] is None
    assert hood.cells[2][2] is None
    assert hood.cells[1][1] is center
    assert center in hood
    assert grid[0, 0] not in hood


def test_neighborhood_clipped_at_corner(grid: Grid):
    center = grid[0, 0]
    hood = neighborhood_of(grid, center, 2)
    assert hood.bounds == (0, 0, 2, 2)
    assert len(hood) == 6
    members = {(p.x, p.y) for p in hood}
    assert members == {(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (2, 0)}


def test_neighborhood_iteration_skips_empty_cells(grid: Grid):
    hood = neighborhood_of(grid, grid[1, 4], 3)
    members = list(hood)
    assert all(p is not None for p in members)
    assert len(members) == len(hood)
    for p in members:
        assert p.grid_distance(grid[1, 4]) <= 3


def test_neighborhood_falls_back_to_center(grid: Grid):
    center = grid[3, 9]
    hood = Neighborhood(center, [])
    assert list(hood) == [center]
    assert hood.shape == (1, 1)


def test_neighborhood_box_contains_center(grid: Grid):
    for center in grid:
        for radius in range(0, 4):
            hood = neighborhood_of(grid, center, radius)
            min_x, min_y, max_x, max_y = hood.bounds
            assert min_x <= center.x <= max_x
            assert min_y <= center.y <= max_y
            assert hood.rows >= 1 and hood.columns >= 1


if __name__ == "__main__":
    pytest.main()
