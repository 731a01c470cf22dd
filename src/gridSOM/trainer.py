## Training engine of the SOM: prototype initialization, BMU search, neighborhood updates
## with an annealed learning rate and radius, and labeling of the trained grid

from collections import Counter
from enum import Enum

import numpy as np
from sklearn.metrics.pairwise import euclidean_distances

from .grid import Grid, Neighborhood
from .progress import ProgressListener, report_memory_usage
from .prototype import Prototype
from .vector import Vector, DimensionMismatchError

BMU_TOLERANCE = 1.0e-10
ORDERS = ("sequential", "random")


class TrainerStateError(RuntimeError):
    """Raised when a step is called before the step it depends on."""


class TrainerState(Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    TRAINING = "training"
    CONVERGED = "converged"
    LABELING = "labeling"
    DONE = "done"


def number_of_prototypes(N: int) -> int:
    """Given a dataset with N data points, return the number of prototypes in the grid:
    5 * sqrt(N), rounded down to a multiple of 10 so the grid fills whole rows of 10.

    Args:
        N (int): number of data points

    Returns:
        int: number of prototypes
    """
    count = int(5 * np.sqrt(N))
    return count - count % 10


def learning_rate_at(
    iteration: int, total: int, initial: float = 0.7, final: float = 0.07
) -> float:
    """Learning rate reached after a given iteration: linear decay clamped at final."""
    return max(final, initial * (1.0 - iteration / total))


def radius_at(
    iteration: int,
    total: int,
    initial: int = 3,
    final: int = 1,
    phase_fraction: float = 0.2,
) -> int:
    """Neighborhood radius at a given iteration.

    The first phase_fraction of the iterations is split in thirds running at the initial
    radius, the midpoint radius, and the final radius; the rest runs at the final radius.

    Args:
        iteration (int): current iteration, starting at 0
        total (int): total number of iterations
        initial (int, optional): radius of the first third. Defaults to 3.
        final (int, optional): radius of the last third and of the second phase. Defaults to 1.
        phase_fraction (float, optional): share of the iterations in the first phase. Defaults to 0.2.

    Returns:
        int: the radius
    """
    phase_iterations = int(phase_fraction * total)
    if iteration >= phase_iterations:
        return final
    third = phase_iterations // 3
    if iteration < third:
        return initial
    if iteration < 2 * third:
        return (initial + final) // 2
    return final


def canonical_label(index: int) -> str:
    """a, b, ..., z, aa, ab, ... for index 0, 1, ..., 25, 26, 27, ..."""
    if index < 0:
        raise ValueError("Label index cannot be negative")
    name = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        name = chr(ord("a") + remainder) + name
    return name


class Trainer:
    def __init__(
        self,
        vectors: list[Vector] = None,
        listener: ProgressListener = None,
        seed: int = None,
        rng: np.random.Generator = None,
        initial_learning_rate: float = 0.7,
        final_learning_rate: float = 0.07,
        initial_radius: int = 3,
        final_radius: int = 1,
        iteration_factor: int = 5,
        phase_fraction: float = 0.2,
        columns: int = 10,
        parallel_threshold: int = 1000,
    ):
        """Set up a trainer.

        Args:
                vectors (list[Vector], optional): Training data; can also be given later through load(). Defaults to None.
                listener (ProgressListener, optional): Receives progress at phase boundaries. Defaults to a no-op listener.
                seed (int, optional): Seed of the random source, ignored if rng is given. Defaults to None.
                rng (np.random.Generator, optional): Random source for sampling, shuffling and tie breaking. Defaults to None.
                initial_learning_rate (float): Learning rate of the first iteration. Default is 0.7.
                final_learning_rate (float): Floor of the learning rate. Default is 0.07.
                initial_radius (int): Neighborhood radius at the start of training. Default is 3.
                final_radius (int): Neighborhood radius at the end of training. Default is 1.
                iteration_factor (int): Number of iterations per training vector. Default is 5.
                phase_fraction (float): Share of the iterations spent shrinking the radius. Default is 0.2.
                columns (int): Number of columns of the grid. Default is 10.
                parallel_threshold (int): Grid size from which distances are computed in parallel. Default is 1000.
        """
        if not 0 <= final_learning_rate <= initial_learning_rate <= 1:
            raise ValueError(
                "Learning rates must satisfy 0 <= final_learning_rate <= initial_learning_rate <= 1"
            )
        if not 0 <= final_radius <= initial_radius:
            raise ValueError("Radii must satisfy 0 <= final_radius <= initial_radius")
        if iteration_factor <= 0:
            raise ValueError("iteration_factor must be positive")
        if not 0 <= phase_fraction <= 1:
            raise ValueError("phase_fraction must be between 0 and 1")
        if columns <= 0:
            raise ValueError("columns must be positive")

        self.listener = listener if listener is not None else ProgressListener()
        self.rng = rng if rng is not None else np.random.default_rng(seed)

        self.initial_learning_rate = initial_learning_rate
        self.final_learning_rate = final_learning_rate
        self.initial_radius = initial_radius
        self.final_radius = final_radius
        self.iteration_factor = iteration_factor
        self.phase_fraction = phase_fraction
        self.columns = columns
        self.parallel_threshold = parallel_threshold

        self.state = TrainerState.IDLE
        self.vectors = []
        self.normalized_vectors = []
        self._reset()

        if vectors is not None:
            self.load(vectors)

    def _reset(self):
        self.mean = None
        self.random_vectors = None
        self.grid = None
        self.best_matching_units = None
        self.neighborhood = None
        self.shuffled_indices = None
        self.learning_rate = self.initial_learning_rate
        self.radius = self.initial_radius
        self.iteration = 0
        self.total_iterations = 0

    def load(self, vectors: list[Vector]):
        """Store the original vectors and their unit-length copies.

        Args:
                vectors (list[Vector]): training data, all of one dimension
        """
        if vectors is None:
            raise ValueError("Vectors cannot be None")
        vectors = list(vectors)
        if len(vectors) > 0:
            dimension = vectors[0].dimension
            for i, v in enumerate(vectors):
                if v.dimension != dimension:
                    raise DimensionMismatchError(
                        f"Vector {i} has dimension {v.dimension}, expected {dimension}"
                    )

        self._reset()
        self.state = TrainerState.INITIALIZING
        self.vectors = vectors
        self.normalized_vectors = self._normalize(vectors)

    def _normalize(self, vectors: list[Vector]) -> list[Vector]:
        total = len(vectors)
        if total == 0:
            return []

        report_memory_usage(self.listener)
        self.listener.start("Normalizing data", total)
        normalized = []
        for i, v in enumerate(vectors):
            normalized.append(v.normalize())
            if (i + 1) % 100 == 0:
                self.listener.update(i + 1, total, f"Normalized {i + 1} data points")
        self.listener.update(total, total, f"Completed normalizing {total} data points")
        self.listener.complete(
            "Data normalization", True, f"Successfully normalized {total} data points"
        )
        return normalized

    def mean_vector(self) -> Vector:
        """Per-dimension mean of the normalized data."""
        if len(self.normalized_vectors) == 0:
            raise TrainerStateError("No normalized data available")

        features = np.array([v.features for v in self.normalized_vectors])
        self.mean = Vector(np.mean(features, axis=0))
        return self.mean

    def create_random_weight_vectors(self, upper: float, lower: float) -> list[Vector]:
        """Sample the initial prototype weights around the mean vector.

        Each dimension is drawn uniformly from [mean - lower, mean + upper]. The number of vectors
        is number_of_prototypes(N) for N training vectors.

        Args:
                upper (float): distance above the mean
                lower (float): distance below the mean

        Returns:
                list[Vector]: the sampled vectors
        """
        if self.mean is None:
            raise TrainerStateError("Mean vector must be calculated first")
        if upper < 0 or lower < 0:
            raise ValueError("Interval bounds cannot be negative")

        mean = self.mean.features
        count = number_of_prototypes(len(self.vectors))
        self.random_vectors = [
            Vector.random(mean - lower, mean + upper, self.rng) for _ in range(count)
        ]
        return self.random_vectors

    def generate_neuron_grid(self) -> Grid:
        """Lay the sampled vectors row-major into a grid of rows x columns prototypes."""
        if not self.random_vectors:
            raise TrainerStateError("Random weight vectors must be created first")

        size = (len(self.random_vectors) // self.columns) * self.columns
        report_memory_usage(self.listener)
        self.listener.start("Generating neuron grid", size)
        self.grid = Grid.from_vectors(self.random_vectors, self.columns)
        self.listener.update(size, size, f"Completed generating {size} prototypes")
        self.listener.complete(
            "Neuron grid generation", True, f"Successfully generated {size} prototypes"
        )
        report_memory_usage(self.listener)
        return self.grid

    def _require_grid(self):
        if self.grid is None:
            raise TrainerStateError("Neuron grid must be generated first")

    def calculate_distances(self, vector: Vector):
        """Distance of every prototype to vector, cached on the prototypes.

        Grids of parallel_threshold prototypes or more are processed row-parallel.
        """
        self._require_grid()
        if vector is None:
            raise ValueError("Vector cannot be None")

        total = len(self.grid)
        self.listener.start("Calculating distances", total)
        self._calculate_distances(vector, report=True)
        self.listener.complete(
            "Distance calculation",
            True,
            f"Successfully calculated distances for {total} prototypes",
        )

    def _calculate_distances(self, vector: Vector, report: bool = False):
        if len(self.grid) >= self.parallel_threshold:
            self._calculate_distances_parallel(vector)
        else:
            self._calculate_distances_sequential(vector, report)

    def _calculate_distances_sequential(self, vector: Vector, report: bool):
        total = len(self.grid)
        for count, prototype in enumerate(self.grid, start=1):
            prototype.calculate_distance(vector)
            if report and count % 100 == 0:
                self.listener.update(count, total, f"Calculated {count} distances")

    def _calculate_distances_parallel(self, vector: Vector):
        weights = self.grid.weights()
        if vector.dimension != weights.shape[2]:
            raise DimensionMismatchError(
                "Input vector dimensions do not match weight vector dimensions"
            )
        # every row is done once the kernel returns; only then are distances read
        distances = Grid.row_distances(weights, vector.features)
        for prototype in self.grid:
            prototype.distance = distances[prototype.x, prototype.y]

    def find_best_matching_units(self) -> list[Prototype]:
        """All prototypes within BMU_TOLERANCE of the smallest distance on the grid."""
        self._require_grid()
        total = len(self.grid)
        self.listener.start("Finding best matching units", total)
        bmus = self._find_best_matching_units()
        self.listener.complete(
            "BMU finding", True, f"Found {len(bmus)} best matching units"
        )
        return bmus

    def _find_best_matching_units(self) -> list[Prototype]:
        minimum = min(prototype.distance for prototype in self.grid)
        self.best_matching_units = [
            prototype
            for prototype in self.grid
            if abs(prototype.distance - minimum) <= BMU_TOLERANCE
        ]
        return self.best_matching_units

    def get_random_bmu_index(self) -> int:
        """Uniformly drawn index into best_matching_units."""
        if not self.best_matching_units:
            raise TrainerStateError("Best matching units list is empty")
        return int(self.rng.integers(len(self.best_matching_units)))

    def calculate_neighborhood(self, center: Prototype, radius: int) -> Neighborhood:
        """Prototypes within Manhattan distance radius of center, in their bounding box."""
        self._require_grid()
        if center is None:
            raise ValueError("Center prototype cannot be None")
        if radius < 0:
            raise ValueError("Radius cannot be negative")

        self.listener.start("Calculating neighborhood", 1)
        neighborhood = self._calculate_neighborhood(center, radius)
        self.listener.update(
            1, 1, f"Neighborhood calculated with {len(neighborhood)} prototypes"
        )
        self.listener.complete(
            "Neighborhood calculation",
            True,
            f"Neighborhood size: {len(neighborhood)} prototypes",
        )
        return neighborhood

    def _calculate_neighborhood(self, center: Prototype, radius: int) -> Neighborhood:
        members = [p for p in self.grid if p.is_neighbor(center, radius)]
        self.neighborhood = Neighborhood(center, members)
        return self.neighborhood

    def learning_rate_at(self, iteration: int, total: int) -> float:
        return learning_rate_at(
            iteration, total, self.initial_learning_rate, self.final_learning_rate
        )

    def radius_at(self, iteration: int, total: int) -> int:
        return radius_at(
            iteration,
            total,
            self.initial_radius,
            self.final_radius,
            self.phase_fraction,
        )

    def train(self, order: str = "sequential"):
        """Train the grid against the normalized data.

        Runs iteration_factor * N iterations; each iteration presents every training vector once.
        With order="random" the vectors are presented in one shuffled order, drawn on first use
        and kept for every iteration.
        Iteration 0 runs at the initial learning rate; after each iteration but the last the rate
        decays to learning_rate_at(iteration, total), used by the next iteration.

        Args:
                order (str, optional): "sequential" or "random". Defaults to "sequential".
        """
        self._require_grid()
        if len(self.normalized_vectors) == 0:
            raise TrainerStateError("Normalized data points must be available")
        if order not in ORDERS:
            raise ValueError(f"order must be one of {ORDERS}, got {order!r}")

        n = len(self.normalized_vectors)
        if order == "random":
            if self.shuffled_indices is None:
                self.shuffled_indices = self.rng.permutation(n)
            indices = self.shuffled_indices
        else:
            indices = np.arange(n)

        total = self.iteration_factor * n
        self.total_iterations = total
        self.learning_rate = self.initial_learning_rate
        self.state = TrainerState.TRAINING

        report_memory_usage(self.listener)
        self.listener.start("Training SOM", total)
        try:
            for iteration in range(total):
                self.iteration = iteration
                self.radius = self.radius_at(iteration, total)

                for index in indices:
                    self._train_step(self.normalized_vectors[index])

                # the decayed rate takes effect from the next iteration
                if iteration < total - 1:
                    self.learning_rate = min(
                        self.learning_rate, self.learning_rate_at(iteration, total)
                    )

                if (iteration + 1) % 10 == 0:
                    self.listener.update(
                        iteration + 1, total, f"Completed {iteration + 1} iterations"
                    )
                    if (iteration + 1) % 100 == 0:
                        report_memory_usage(self.listener)
        except Exception as e:
            self.listener.complete("SOM training", False, str(e))
            raise

        self.listener.update(total, total, f"Completed {total} iterations")
        self.listener.complete(
            "SOM training", True, f"Successfully trained SOM with {total} iterations"
        )
        self.state = TrainerState.CONVERGED

    def _train_step(self, vector: Vector):
        self._calculate_distances(vector)
        bmus = self._find_best_matching_units()
        bmu = bmus[self.get_random_bmu_index()]
        for prototype in self._calculate_neighborhood(bmu, self.radius):
            prototype.update_weights(vector, self.learning_rate)

    def assign_class_labels(self):
        """Label every prototype with the label of its closest original (non-normalized) vector.

        Ties go to the vector that comes first in the data.
        """
        self._require_grid()
        if len(self.vectors) == 0:
            raise TrainerStateError("Data points must be available")

        self.state = TrainerState.LABELING
        total = len(self.grid)
        report_memory_usage(self.listener)
        self.listener.start("Assigning class labels", total)

        weights = self.grid.weights().reshape(total, -1)
        originals = np.array([v.features for v in self.vectors])
        closest = np.argmin(euclidean_distances(weights, originals), axis=1)

        for count, prototype in enumerate(self.grid, start=1):
            prototype.label = self.vectors[closest[count - 1]].label
            if count % 10 == 0:
                self.listener.update(count, total, f"Assigned {count} labels")

        self.listener.update(total, total, f"Completed assigning {total} labels")
        self.listener.complete(
            "Class label assignment",
            True,
            f"Successfully assigned labels to {total} prototypes",
        )
        self.state = TrainerState.DONE

    def _unique_labels(self) -> list[str]:
        return list(dict.fromkeys(p.label for p in self.grid if p.label != ""))

    def rename_class_labels(self) -> dict[str, str]:
        """Replace the labels on the grid by a, b, c, ... in order of first appearance.

        Returns:
                dict[str, str]: original label -> canonical label
        """
        self._require_grid()
        mapping = {
            label: canonical_label(i) for i, label in enumerate(self._unique_labels())
        }
        for prototype in self.grid:
            if prototype.label in mapping:
                prototype.label = mapping[prototype.label]
        return mapping

    def count_class_labels(self) -> dict[str, int]:
        """Number of prototypes per label, in order of first appearance."""
        self._require_grid()
        return dict(Counter(p.label for p in self.grid if p.label != ""))

    def run(
        self,
        upper: float,
        lower: float,
        order: str = "sequential",
        vectors: list[Vector] = None,
    ) -> Grid:
        """Full pipeline: mean vector, initial weights, grid, training, labeling and renaming.

        Args:
                upper (float): distance above the mean for the initial weights
                lower (float): distance below the mean for the initial weights
                order (str, optional): "sequential" or "random". Defaults to "sequential".
                vectors (list[Vector], optional): data to load first. Defaults to None.

        Returns:
                Grid: the trained, labeled grid
        """
        if vectors is not None:
            self.load(vectors)
        self.mean_vector()
        self.create_random_weight_vectors(upper, lower)
        self.generate_neuron_grid()
        self.train(order)
        self.assign_class_labels()
        self.rename_class_labels()
        return self.grid
