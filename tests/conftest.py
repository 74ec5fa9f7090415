"""Shared fixtures for the sigfit tests."""

import numpy as np
import pytest

from sigfit import ProblemData, SigfitModel


@pytest.fixture
def identity_data():
    """Two categories, two signatures, all mutations in category 1."""
    return ProblemData.create(
        C=2, S=2,
        signatures=[[1, 0], [0, 1]],
        counts=[10, 0],
        alpha=[1, 1])


@pytest.fixture
def mixed_data():
    """Four categories and three overlapping signatures."""
    signatures = np.array([
        [0.50, 0.10, 0.25],
        [0.30, 0.20, 0.25],
        [0.15, 0.30, 0.25],
        [0.05, 0.40, 0.25],
    ])
    return ProblemData.create(
        C=4, S=3,
        signatures=signatures,
        counts=[12, 7, 0, 3],
        alpha=[0.5, 2.0, 3.0])


@pytest.fixture
def mixed_model(mixed_data):
    return SigfitModel(mixed_data)
