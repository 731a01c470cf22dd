## Delimited-text ingestion: reads a CSV-like file in chunks and turns each row into a Vector

import os

import numpy as np
import pandas as pd

from .progress import ProgressListener, report_memory_usage
from .vector import Vector

# stands in for every field of a row with more fields than the header
TOO_MANY_FIELDS = "\x00too many fields"


def count_rows(path: str) -> int:
    """Number of data rows (header excluded) in a delimited file, or -1 if it cannot be read."""
    try:
        with open(path, "r") as f:
            lines = sum(1 for line in f if line.strip())
    except OSError:
        return -1
    return max(lines - 1, 0)


def default_columns(header: list[str]) -> tuple[list[int], int]:
    """Column mapping for files laid out as ID, feature..., label.

    Args:
        header (list[str]): column names of the file

    Returns:
        tuple[list[int], int]: feature column indices and the label column index
    """
    if len(header) < 3:
        raise ValueError(
            f"Expected an ID column, at least one feature and a label, got {len(header)} columns"
        )
    return list(range(1, len(header) - 1)), len(header) - 1


def load_vectors(
    path: str,
    feature_indices: list[int] = None,
    label_index: int = None,
    default: float = 0.0,
    delimiter: str = ",",
    batch_size: int = 1000,
    sampling_rate: float = 1.0,
    rng: np.random.Generator = None,
    listener: ProgressListener = None,
) -> list[Vector]:
    """Read a delimited file with a header row into a list of vectors.

    The file is read batch_size rows at a time. Rows that cannot be turned into a vector are
    reported and skipped; the rest of the file is still loaded.

    Args:
        path (str): path to the file
        feature_indices (list[int], optional): columns with feature values. Defaults to every column between the first (ID) and the last (label).
        label_index (int, optional): column with the label; a negative value means no label. Defaults to the last column when feature_indices is not given, otherwise no label.
        default (float, optional): value for fields that are not numbers. Defaults to 0.0.
        delimiter (str, optional): field separator. Defaults to ",".
        batch_size (int, optional): rows per chunk. Defaults to 1000.
        sampling_rate (float, optional): probability of keeping each row, in (0, 1]. Defaults to 1.0.
        rng (np.random.Generator, optional): random source for sampling. Defaults to None.
        listener (ProgressListener, optional): receives loading progress. Defaults to None.

    Returns:
        list[Vector]: the loaded vectors, in file order
    """
    if batch_size <= 0:
        raise ValueError("Batch size must be positive")
    if sampling_rate <= 0 or sampling_rate > 1:
        raise ValueError("Sampling rate must be between 0 and 1")
    if not os.path.isfile(path):
        raise FileNotFoundError(f"File not found: {path}")

    if listener is None:
        listener = ProgressListener()
    if rng is None:
        rng = np.random.default_rng()

    total = count_rows(path)
    report_memory_usage(listener)
    listener.start(f"Loading data from {path}", total)

    width = len(pd.read_csv(path, sep=delimiter, nrows=0).columns)
    reader = pd.read_csv(
        path,
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        engine="python",
        on_bad_lines=lambda fields: [TOO_MANY_FIELDS] * width,
        chunksize=batch_size,
    )

    vectors = []
    row_number = 0
    processed = 0
    for chunk in reader:
        if feature_indices is None:
            feature_indices, default_label = default_columns(list(chunk.columns))
            if label_index is None:
                label_index = default_label

        for tokens in chunk.itertuples(index=False, name=None):
            row_number += 1
            if sampling_rate < 1.0 and rng.random() > sampling_rate:
                continue
            # short rows come back padded with NaN
            if any(not isinstance(token, str) for token in tokens):
                print(f"Error processing row {row_number}: missing fields", flush=True)
                continue
            if tokens[0] == TOO_MANY_FIELDS:
                print(f"Error processing row {row_number}: too many fields", flush=True)
                continue
            try:
                vector = Vector.from_tokens(
                    list(tokens), feature_indices, label_index, default
                )
            except ValueError as e:
                print(f"Error processing row {row_number}: {e}", flush=True)
                continue

            vectors.append(vector)
            processed += 1
            if processed % 100 == 0:
                listener.update(processed, total, f"Processed {processed} data points")

        report_memory_usage(listener)

    listener.update(processed, total, f"Completed loading {processed} data points")
    listener.complete(
        "Data loading", True, f"Successfully loaded {processed} data points"
    )
    return vectors
