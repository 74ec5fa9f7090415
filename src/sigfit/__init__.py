"""sigfit: Bayesian fitting of mutational signature exposures.

This package provides the log density of the sigfit model, in which
the mutation counts of a sample follow a Multinomial distribution
whose probabilities are a mixture of known signatures weighted by
Dirichlet-distributed exposures, together with the stick-breaking
transform that lets gradient-based samplers work on an unconstrained
scale.

"""

__version__ = "0.1.0"

from sigfit.errors import InvalidInput, ComputationError
from sigfit.problem_data import ProblemData
from sigfit.model import SigfitModel
from sigfit.simplex import simplex_constrain, simplex_unconstrain
from sigfit.pymc_model import build_pymc_model

__all__ = [
    "InvalidInput",
    "ComputationError",
    "ProblemData",
    "SigfitModel",
    "simplex_constrain",
    "simplex_unconstrain",
    "build_pymc_model",
]
