## A single cell of the SOM grid: a weight vector pinned to a (row, column) position

from .vector import Vector, DimensionMismatchError


class Prototype:
    def __init__(self, weight: Vector, distance: float = 0.0, x: int = 0, y: int = 0):
        """Initialize a grid cell.

        Args:
                weight (Vector): The weight vector of this cell.
                distance (float, optional): Initial distance to the current input vector. Defaults to 0.0.
                x (int, optional): Row of the cell in the grid. Defaults to 0.
                y (int, optional): Column of the cell in the grid. Defaults to 0.
        """
        if weight is None:
            raise ValueError("Weight vector cannot be None")
        if x < 0 or y < 0:
            raise ValueError(f"Grid coordinates must be non-negative, got ({x}, {y})")

        self._weight = weight
        self._x = int(x)
        self._y = int(y)
        self.distance = distance
        self.label = ""

    def __str__(self):
        return f"[{self._label}]"

    def __repr__(self):
        return f"Prototype(x={self._x}, y={self._y}, distance={self._distance}, label={self._label!r})"

    @property
    def weight(self) -> Vector:
        return self._weight

    @property
    def x(self) -> int:
        return self._x

    @property
    def y(self) -> int:
        return self._y

    @property
    def distance(self) -> float:
        return self._distance

    @distance.setter
    def distance(self, value: float):
        if not value >= 0:
            raise ValueError(f"Distance must be a non-negative number, got {value}")
        self._distance = float(value)

    @property
    def label(self) -> str:
        return self._label

    @label.setter
    def label(self, value: str):
        self._label = value if value is not None else ""

    def calculate_distance(self, vector: Vector) -> float:
        """Cache and return the Euclidean distance between the weight and vector."""
        if vector is None:
            raise ValueError("Input vector cannot be None")
        self.distance = self._weight.distance(vector)
        return self._distance

    def update_weights(self, vector: Vector, learning_rate: float):
        """Move the weight toward vector: w <- w + learning_rate * (v - w).

        The weight is replaced by a new Vector; the old one is left untouched.

        Args:
                vector (Vector): the input vector pulling the weight
                learning_rate (float): adaptation step, within [0, 1]
        """
        if vector is None:
            raise ValueError("Input vector cannot be None")
        if learning_rate < 0 or learning_rate > 1:
            raise ValueError("Learning rate must be between 0 and 1")
        if vector.dimension != self._weight.dimension:
            raise DimensionMismatchError(
                "Input vector dimensions do not match weight vector dimensions"
            )

        # (1 - a) * w + a * v is w + a * (v - w), but exact at a = 0 and a = 1
        w = self._weight.features
        self._weight = Vector(
            (1.0 - learning_rate) * w + learning_rate * vector.features,
            self._weight.label,
        )

    def grid_distance(self, other: "Prototype") -> int:
        """Manhattan distance between the two cells on the grid."""
        if other is None:
            raise ValueError("Other prototype cannot be None")
        return abs(self._x - other._x) + abs(self._y - other._y)

    def is_neighbor(self, other: "Prototype", radius: int) -> bool:
        if other is None:
            raise ValueError("Other prototype cannot be None")
        if radius < 0:
            raise ValueError("Radius cannot be negative")
        return self.grid_distance(other) <= radius
