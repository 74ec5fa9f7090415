"""Basic usage example for sigfit.

This script builds a small signature fitting problem, evaluates the
log density on the unconstrained scale and hands the same model to
PyMC to estimate the exposures.
"""

import numpy as np
import pandas as pd
import pymc as pm

from sigfit import ProblemData, SigfitModel, build_pymc_model


def make_example_data(seed=0):
    """Simulate counts from two of three toy signatures."""
    rng = np.random.default_rng(seed)
    types = [f"type{i}" for i in range(1, 7)]
    signatures = pd.DataFrame(
        rng.dirichlet(np.ones(len(types)), size=3).T,
        index=types, columns=["SIG_A", "SIG_B", "SIG_C"])
    true_exposures = np.array([0.7, 0.3, 0.0])
    probs = signatures.to_numpy() @ true_exposures
    counts = pd.Series(rng.multinomial(500, probs), index=types)
    return signatures, counts


def main():
    signatures, counts = make_example_data()
    data = ProblemData.from_frames(signatures, counts)
    print(data)

    model = SigfitModel(data)
    y = model.unconstrain([1 / 3, 1 / 3, 1 / 3])
    print(f"log_prob at the uniform point: {model.log_prob(y):.3f}")
    print(model.constrained_series(y))

    with build_pymc_model(data):
        estimate = pm.find_MAP()
    print("MAP exposures:",
          dict(zip(data.signature_labels, estimate["exposures"])))


if __name__ == "__main__":
    main()
