## The prototype grid owned by the trainer, and the bounding-box neighborhood cut out of it

import numpy as np
from numba import njit, prange

from .prototype import Prototype
from .vector import Vector


class Grid:
    def __init__(self, prototypes: list[list[Prototype]]):
        """Wrap a rectangular matrix of prototypes.

        Args:
                prototypes (list[list[Prototype]]): rows of prototypes; every row must have the same length
        """
        if len(prototypes) == 0 or len(prototypes[0]) == 0:
            raise ValueError("A grid needs at least one row and one column")
        columns = len(prototypes[0])
        if any(len(row) != columns for row in prototypes):
            raise ValueError("All grid rows must have the same number of columns")

        self._cells = [list(row) for row in prototypes]
        self.rows = len(self._cells)
        self.columns = columns

    @classmethod
    def from_vectors(cls, vectors: list[Vector], columns: int = 10) -> "Grid":
        """Lay vectors row-major into a (len(vectors) // columns) x columns grid.

        Vectors beyond the last full row are not used.
        """
        rows = len(vectors) // columns
        if rows == 0:
            raise ValueError(
                f"Need at least {columns} vectors to build a grid, got {len(vectors)}"
            )

        cells = [
            [Prototype(vectors[row * columns + col], 0.0, row, col) for col in range(columns)]
            for row in range(rows)
        ]
        return cls(cells)

    def __getitem__(self, position):
        row, col = position
        return self._cells[row][col]

    def __iter__(self):
        for row in self._cells:
            yield from row

    def __len__(self):
        return self.rows * self.columns

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.columns

    def iter_rows(self):
        for row in self._cells:
            yield tuple(row)

    def weights(self) -> np.ndarray:
        """All weight vectors as a (rows, columns, D) array."""
        return np.array(
            [[prototype.weight.features for prototype in row] for row in self._cells]
        )

    def labels(self) -> list[list[str]]:
        return [[prototype.label for prototype in row] for row in self._cells]

    @staticmethod
    @njit(parallel=True)
    def row_distances(weights: np.ndarray, vector: np.ndarray) -> np.ndarray:
        """Euclidean distance of every cell to vector, one row per worker.

        Args:
                weights (np.ndarray): (rows, columns, D) weights of the grid
                vector (np.ndarray): 1d input vector of length D

        Returns:
                np.ndarray: (rows, columns) distances
        """
        rows = weights.shape[0]
        columns = weights.shape[1]
        distances = np.zeros((rows, columns))
        for r in prange(rows):
            for c in range(columns):
                diff = weights[r, c] - vector
                distances[r, c] = np.sqrt(np.sum(diff**2))
        return distances


class Neighborhood:
    def __init__(self, center: Prototype, members: list[Prototype]):
        """Re-lay a set of prototypes into their minimal bounding sub-grid.

        Cells of the box that hold no member stay None.

        Args:
                center (Prototype): the prototype the neighborhood was computed around
                members (list[Prototype]): prototypes inside the neighborhood; falls back to [center] if empty
        """
        if center is None:
            raise ValueError("Center prototype cannot be None")
        if len(members) == 0:
            members = [center]

        self.center = center
        self.min_x = min(p.x for p in members)
        self.min_y = min(p.y for p in members)
        max_x = max(p.x for p in members)
        max_y = max(p.y for p in members)
        self.rows = max_x - self.min_x + 1
        self.columns = max_y - self.min_y + 1

        self.cells = [[None] * self.columns for _ in range(self.rows)]
        for p in members:
            self.cells[p.x - self.min_x][p.y - self.min_y] = p
        self._size = len(members)

    def __len__(self):
        return self._size

    def __iter__(self):
        """Members only; the empty cells of the bounding box are skipped."""
        for row in self.cells:
            for p in row:
                if p is not None:
                    yield p

    def __contains__(self, prototype):
        return any(p is prototype for p in self)

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.columns

    @property
    def bounds(self) -> tuple[int, int, int, int]:
        """(min_x, min_y, max_x, max_y) of the bounding box, inclusive."""
        return (
            self.min_x,
            self.min_y,
            self.min_x + self.rows - 1,
            self.min_y + self.columns - 1,
        )
