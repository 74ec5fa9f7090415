"""Tests for the PyMC version of the model."""

import numpy as np
import pandas as pd
import pytest

import pymc as pm

from sigfit import InvalidInput, ProblemData, build_pymc_model
from sigfit.utils import check_simplex


def test_model_variables(mixed_data):
    model = build_pymc_model(mixed_data)

    assert [rv.name for rv in model.free_RVs] == ["exposures"]
    assert [rv.name for rv in model.observed_RVs] == ["counts"]
    assert [d.name for d in model.deterministics] == ["probs"]
    assert len(model.coords["signature"]) == mixed_data.S
    assert len(model.coords["category"]) == mixed_data.C


def test_prior_draws_are_simplices(mixed_data):
    model = build_pymc_model(mixed_data)
    exposures, probs = pm.draw([model["exposures"], model["probs"]],
                               random_seed=1)
    assert exposures.shape == (mixed_data.S,)
    assert probs.shape == (mixed_data.C,)
    assert check_simplex(exposures)
    assert check_simplex(probs)


def test_coords_use_labels():
    signatures = pd.DataFrame({"SBS1": [0.6, 0.4], "SBS5": [0.3, 0.7]},
                              index=["C>A", "C>T"])
    data = ProblemData.from_frames(signatures,
                                   pd.Series({"C>A": 2, "C>T": 5}))
    model = build_pymc_model(data)
    assert list(model.coords["signature"]) == ["SBS1", "SBS5"]
    assert list(model.coords["category"]) == ["C>A", "C>T"]


def test_zero_alpha_is_rejected():
    data = ProblemData.create(
        C=2, S=2, signatures=np.eye(2), counts=[1, 1], alpha=[0.0, 1.0])
    with pytest.raises(InvalidInput, match="alpha > 0"):
        build_pymc_model(data)
