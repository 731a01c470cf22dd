from .vector import Vector, DimensionMismatchError, FeatureParseError
from .prototype import Prototype
from .grid import Grid, Neighborhood
from .progress import ProgressListener, ConsoleProgressListener, report_memory_usage
from .trainer import (
    Trainer,
    TrainerState,
    TrainerStateError,
    number_of_prototypes,
    learning_rate_at,
    radius_at,
    canonical_label,
)
from .loader import load_vectors, count_rows

__version__ = "0.1.0"
