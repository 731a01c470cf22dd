## Example script to run the SOM code on synthetic three-class data
## using the multiprocessing module to parallelize the runs

import argparse
import itertools
from multiprocessing import Pool, cpu_count

import numpy as np

from gridSOM import Trainer, Vector


def make_three_class_data(
    number_per_class: int = 50, dimension: int = 4, noise: float = 0.1, seed: int = 0
) -> list[Vector]:
    """Three classes, each scattered around its own unit axis.

    Args:
        number_per_class (int, optional): vectors per class. Defaults to 50.
        dimension (int, optional): number of features, at least 3. Defaults to 4.
        noise (float, optional): width of the uniform noise added to every feature. Defaults to 0.1.
        seed (int, optional): random seed. Defaults to 0.

    Returns:
        list[Vector]: the labeled data, class by class
    """
    rng = np.random.default_rng(seed)
    data = []
    for k, name in enumerate(["first", "second", "third"]):
        for _ in range(number_per_class):
            features = rng.uniform(0.0, noise, dimension)
            features[k] += 1.0
            data.append(Vector(features, name))
    return data


def run_som(params, data):
    order, bound, seed = params
    trainer = Trainer(data, seed=seed)
    trainer.run(upper=bound, lower=bound, order=order)
    counts = trainer.count_class_labels()
    print(
        "order: {}, bound: {}, seed: {} -> {}".format(order, bound, seed, counts),
        flush=True,
    )
    return params, counts


def parse_args():
    """argument parser for the run_three_class_som.py script"""
    parser = argparse.ArgumentParser(
        description="Run SOM code given a range of parameters"
    )
    parser.add_argument(
        "--order",
        type=str,
        dest="order",
        nargs="+",
        help="Presentation order of the training vectors",
        default=["sequential", "random"],
    )
    parser.add_argument(
        "--bound",
        type=float,
        dest="bound",
        nargs="+",
        help="Half width of the interval around the mean for the initial weights",
        default=[0.05, 0.1, 0.2],
    )
    parser.add_argument(
        "--seed",
        type=int,
        dest="seed",
        nargs="+",
        help="Random seeds",
        default=[1, 2, 3],
    )
    parser.add_argument(
        "--number_per_class",
        type=int,
        dest="number_per_class",
        help="Vectors per class",
        default=50,
    )
    return parser.parse_args()


if __name__ == "__main__":

    args = parse_args()

    data = make_three_class_data(args.number_per_class)
    combinations = list(itertools.product(args.order, args.bound, args.seed))

    with Pool(cpu_count()) as p:
        items = [(c, data) for c in combinations]
        results = p.starmap(run_som, items)

    separated = sum(1 for _, counts in results if len(counts) == 3)
    print(f"{separated}/{len(results)} runs separated all three classes", flush=True)
