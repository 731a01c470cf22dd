## Text and matplotlib views of a labeled grid

import numpy as np
import matplotlib.pyplot as plt

plt.rcParams.update({"font.size": 12})

from .grid import Grid


def format_label_grid(grid: Grid) -> str:
    """One line per grid row, each cell printed as [label] and separated by tabs."""
    return "\n".join("\t".join(str(p) for p in row) for row in grid.iter_rows())


def format_mapping(mapping: dict[str, str]) -> str:
    return "\t".join(f"{old} = {new}" for old, new in mapping.items())


def format_label_counts(counts: dict[str, int]) -> str:
    return "\t".join(f"{label} = {count}" for label, count in counts.items())


def plot_label_grid(grid: Grid, file_path: str = None):
    """
    Plot the labels of the grid as a categorical map.

    Args:
        grid (Grid): A labeled grid.
        file_path (str, optional): The directory where label_grid.png is saved. If None, the plot is displayed. Defaults to None.

    Returns:
        None: This function does not return a value. It either displays the plot or saves it to a file.
    """
    labels = grid.labels()
    unique_labels = list(dict.fromkeys(l for row in labels for l in row))
    codes = np.array([[unique_labels.index(l) for l in row] for row in labels])

    fig, ax = plt.subplots(dpi=300)
    ax.pcolor(codes, cmap=plt.cm.tab20, vmin=0, vmax=max(len(unique_labels) - 1, 1))
    for ix in range(grid.rows):
        for iy in range(grid.columns):
            ax.text(
                iy + 0.5,
                ix + 0.5,
                labels[ix][iy],
                ha="center",
                va="center",
                fontsize=8,
            )

    ax.set_xticks(np.arange(grid.columns) + 0.5, minor=False)
    ax.set_yticks(np.arange(grid.rows) + 0.5, minor=False)
    ax.set_xticklabels(np.arange(grid.columns), minor=False)
    ax.set_yticklabels(np.arange(grid.rows), minor=False)
    ax.invert_yaxis()
    ax.set_aspect("equal")
    plt.xlabel("column")
    plt.ylabel("row")
    plt.title("Prototype labels")

    if file_path is None:
        plt.show()
    else:
        plt.savefig(f"{file_path}/label_grid.png")
        print("Saved label grid plot", flush=True)
    plt.close(fig)
