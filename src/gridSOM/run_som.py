## Script to load a delimited data file, train the SOM grid on it and print the labeled grid

import os
import sys
import argparse

from .loader import load_vectors
from .plotting import (
    format_label_counts,
    format_label_grid,
    format_mapping,
    plot_label_grid,
)
from .progress import ConsoleProgressListener, ProgressListener
from .trainer import Trainer, TrainerStateError
from .vector import Vector


def describe_data(vectors: list[Vector], count: int = 10) -> str:
    """Summary of the loaded data: size, dimension and the first few vectors.

    Args:
        vectors (list[Vector]): the loaded data
        count (int, optional): number of vectors to show. Defaults to 10.

    Returns:
        str: the summary
    """
    lines = [f"Number of data points: {len(vectors)}"]
    if len(vectors) > 0:
        lines.append(f"Number of dimensions: {vectors[0].dimension}")
    for v in vectors[:count]:
        lines.append(",".join(str(f) for f in v.features) + f",{v.label}")
    return "\n".join(lines)


def train_som(
    vectors: list[Vector],
    upper: float,
    lower: float,
    order: str = "sequential",
    seed: int = None,
    listener: ProgressListener = None,
) -> Trainer:
    """Run the full training pipeline on vectors and return the trainer holding the labeled grid.

    Args:
        vectors (list[Vector]): training data
        upper (float): distance above the mean for the initial weights
        lower (float): distance below the mean for the initial weights
        order (str, optional): "sequential" or "random". Defaults to "sequential".
        seed (int, optional): seed of the random source. Defaults to None.
        listener (ProgressListener, optional): progress listener. Defaults to None.

    Returns:
        Trainer: the trainer after labeling
    """
    trainer = Trainer(vectors, listener=listener, seed=seed)
    mean = trainer.mean_vector()
    print("Mean vector:", " ".join(str(m) for m in mean.features), flush=True)

    trainer.create_random_weight_vectors(upper, lower)
    trainer.generate_neuron_grid()
    print(
        f"Training SOM with {trainer.iteration_factor * len(vectors)} iterations...",
        flush=True,
    )
    trainer.train(order)
    print("SOM training completed.", flush=True)
    trainer.assign_class_labels()
    return trainer


def parse_args(argv: list[str] = None):
    """CLI argument parser for run_som.py script."""
    parser = argparse.ArgumentParser(description="SOM code")
    parser.add_argument(
        "--file", type=str, dest="file", required=True, help="Delimited data file"
    )
    parser.add_argument(
        "--upper",
        type=float,
        dest="upper",
        default=0.1,
        help="Upper bound of the interval around the mean for initial weights",
    )
    parser.add_argument(
        "--lower",
        type=float,
        dest="lower",
        default=0.1,
        help="Lower bound of the interval around the mean for initial weights",
    )
    parser.add_argument(
        "--order",
        type=str,
        dest="order",
        default="sequential",
        choices=["sequential", "random"],
        help="Order in which the training vectors are presented",
    )
    parser.add_argument(
        "--seed", type=int, dest="seed", default=None, help="Random seed"
    )
    parser.add_argument(
        "--feature_columns",
        type=int,
        dest="feature_columns",
        nargs="+",
        default=None,
        help="Columns holding the features. Default: all but the first and last",
    )
    parser.add_argument(
        "--label_column",
        type=int,
        dest="label_column",
        default=None,
        help="Column holding the label, -1 for none",
        required=False,
    )
    parser.add_argument(
        "--default",
        type=float,
        dest="default",
        default=0.0,
        help="Value used for fields that are not numbers",
    )
    parser.add_argument(
        "--delimiter", type=str, dest="delimiter", default=",", help="Field separator"
    )
    parser.add_argument(
        "--batch_size",
        type=int,
        dest="batch_size",
        default=1000,
        help="Rows read per chunk",
        required=False,
    )
    parser.add_argument(
        "--sampling_rate",
        type=float,
        dest="sampling_rate",
        default=1.0,
        help="Probability of keeping each row",
        required=False,
    )
    parser.add_argument(
        "--plot_path",
        type=str,
        dest="plot_path",
        default=None,
        help="Directory to save the label grid plot in",
        required=False,
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        dest="quiet",
        help="Do not print progress bars",
        required=False,
    )

    return parser.parse_args(argv)


def main(argv: list[str] = None):
    args = parse_args(argv)

    if not os.path.isfile(args.file):
        sys.exit(f"Error: File not found: {args.file}")
    if args.plot_path is not None and not os.path.isdir(args.plot_path):
        sys.exit(f"Error: Plot directory not found: {args.plot_path}")

    listener = ProgressListener() if args.quiet else ConsoleProgressListener()

    print(f"Processing file: {args.file}", flush=True)
    try:
        vectors = load_vectors(
            args.file,
            feature_indices=args.feature_columns,
            label_index=args.label_column,
            default=args.default,
            delimiter=args.delimiter,
            batch_size=args.batch_size,
            sampling_rate=args.sampling_rate,
            listener=listener,
        )
    except ValueError as e:
        sys.exit(f"Error loading data: {e}")
    if len(vectors) == 0:
        sys.exit("Error loading data: no data points were loaded")
    print("Data loaded successfully.", flush=True)
    print(describe_data(vectors), flush=True)

    try:
        trainer = train_som(
            vectors, args.upper, args.lower, args.order, args.seed, listener
        )
    except (ValueError, TrainerStateError) as e:
        sys.exit(f"Error training SOM: {e}")

    print("\nClassification results:", flush=True)
    mapping = trainer.rename_class_labels()
    print(format_mapping(mapping), flush=True)
    print(format_label_grid(trainer.grid), flush=True)

    print("\nClass distribution:", flush=True)
    print(format_label_counts(trainer.count_class_labels()), flush=True)

    if args.plot_path is not None:
        plot_label_grid(trainer.grid, args.plot_path)

    print("\nSOM processing completed successfully.", flush=True)
    return trainer


if __name__ == "__main__":
    main()
