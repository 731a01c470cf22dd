## Feature vectors for the SOM: an immutable array of features plus an optional class label

import numpy as np


class DimensionMismatchError(ValueError):
    """Raised when two vectors of different dimension are combined."""


class FeatureParseError(ValueError):
    """Raised when a feature token cannot be parsed and no default value is given."""


class Vector:
    def __init__(self, features, label: str = ""):
        """Create a vector from explicit feature values.

        Args:
                features (array-like): 1d sequence of feature values, must not be empty.
                label (str, optional): Class label of the vector. None is stored as "". Defaults to "".
        """
        if features is None:
            raise ValueError("Feature values cannot be None")

        values = np.array(features, dtype=np.float64).ravel()
        if values.size == 0:
            raise ValueError("A vector needs at least one feature")
        if not np.all(np.isfinite(values)):
            raise ValueError("Feature values must be finite")
        values.flags.writeable = False

        self._features = values
        self._label = label if label is not None else ""

    @classmethod
    def from_tokens(
        cls,
        tokens: list[str],
        feature_indices: list[int] = None,
        label_index: int = None,
        default: float = None,
    ) -> "Vector":
        """Build a vector from the tokens of one delimited-text record.

        Without feature_indices, every token but the last is a feature and the last one is the label.

        Args:
                tokens (list[str]): The fields of the record.
                feature_indices (list[int], optional): Columns holding feature values. Defaults to None.
                label_index (int, optional): Column holding the label; None or a negative value means no label. Defaults to None.
                default (float, optional): Value used for fields that cannot be parsed. If None, such fields raise FeatureParseError. Defaults to None.

        Returns:
                Vector: the parsed vector
        """
        if tokens is None or len(tokens) == 0:
            raise ValueError("Input tokens cannot be None or empty")

        if feature_indices is None:
            if len(tokens) < 2:
                raise ValueError("Need at least one feature and a label")
            feature_indices = list(range(len(tokens) - 1))
            label_index = len(tokens) - 1

        if len(feature_indices) == 0:
            raise ValueError("Feature indices cannot be empty")
        for index in feature_indices:
            if index < 0 or index >= len(tokens):
                raise ValueError(f"Feature index out of bounds: {index}")
        if label_index is not None and label_index >= len(tokens):
            raise ValueError(f"Label index out of bounds: {label_index}")

        features = np.empty(len(feature_indices))
        for i, index in enumerate(feature_indices):
            try:
                value = float(tokens[index])
                if not np.isfinite(value):
                    raise ValueError(f"non-finite value {value}")
                features[i] = value
            except (TypeError, ValueError):
                if default is None:
                    raise FeatureParseError(
                        f"Failed to parse feature at index {index}: {tokens[index]!r}"
                    )
                features[i] = default

        if label_index is None or label_index < 0:
            label = ""
        else:
            label = str(tokens[label_index]).strip()

        return cls(features, label)

    @classmethod
    def random(cls, lower, upper, rng: np.random.Generator = None) -> "Vector":
        """Sample a vector uniformly within per-dimension bounds.

        Args:
                lower (array-like): Minimum value of each dimension.
                upper (array-like): Maximum value of each dimension.
                rng (np.random.Generator, optional): Random source. Defaults to a fresh default_rng().

        Returns:
                Vector: an unlabeled random vector
        """
        if lower is None or upper is None:
            raise ValueError("Bounds cannot be None")
        lower = np.asarray(lower, dtype=np.float64)
        upper = np.asarray(upper, dtype=np.float64)
        if lower.size == 0 or lower.shape != upper.shape:
            raise ValueError("Min and max bounds must be non-empty and of equal length")
        bad = np.flatnonzero(lower > upper)
        if bad.size > 0:
            raise ValueError(
                f"Min value must be less than or equal to max value for dimension {bad[0]}"
            )

        if rng is None:
            rng = np.random.default_rng()
        return cls(lower + rng.random(lower.size) * (upper - lower))

    @property
    def features(self) -> np.ndarray:
        """Independent, writable copy of the feature values."""
        return self._features.copy()

    @property
    def label(self) -> str:
        return self._label

    @property
    def dimension(self) -> int:
        return self._features.size

    def __len__(self):
        return self._features.size

    def __eq__(self, other):
        if not isinstance(other, Vector):
            return NotImplemented
        return self._label == other._label and np.array_equal(
            self._features, other._features
        )

    def __hash__(self):
        return hash((self._features.tobytes(), self._label))

    def __repr__(self):
        return f"Vector(features={self._features.tolist()}, label={self._label!r})"

    def distance(self, other: "Vector") -> float:
        """Euclidean distance to another vector of the same dimension.

        Args:
                other (Vector): the vector to compare against

        Returns:
                float: the Euclidean distance
        """
        if other is None:
            raise ValueError("Cannot calculate distance to None")
        if other.dimension != self.dimension:
            raise DimensionMismatchError(
                f"Cannot compare vectors of dimension {self.dimension} and {other.dimension}"
            )
        return float(np.sqrt(np.sum((self._features - other._features) ** 2)))

    def normalize(self) -> "Vector":
        """Return a unit-length copy; the zero vector normalizes to itself."""
        magnitude = np.sqrt(np.sum(self._features**2))
        if magnitude == 0:
            return Vector(np.zeros(self.dimension), self._label)
        return Vector(self._features / magnitude, self._label)
