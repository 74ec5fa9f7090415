"""Dirichlet and Multinomial log densities.

Each density is split in two parts:

- a kernel, written with PyTensor operations so that it can be
  differentiated, that depends on the parameters;
- a normalizing constant, computed once with NumPy/SciPy, that only
  depends on the data (``alpha`` and ``counts``) and can be dropped
  when a density proportional in the parameters is enough.

Terms whose coefficient is zero (``alpha_i == 1`` or ``n_i == 0``)
are left out of the kernels, so that a zero entry in the simplex
contributes ``0`` instead of ``0 * log(0) = nan``.
"""

import logging

import numpy as np
from scipy.special import gammaln

import pytensor.tensor as tt

from .errors import ComputationError


logger = logging.getLogger(__name__)


def dirichlet_logp_kernel(x, alpha):
    """Return ``sum((alpha - 1) * log(x))`` as a PyTensor scalar.

    Parameters
    ----------
    x : TensorVariable or array-like, shape (S,)
        Point of the simplex.
    alpha : np.ndarray, shape (S,)
        Concentration (data, not a tensor).

    """
    return dirichlet_logp_kernel_from_log(
        tt.log(tt.as_tensor_variable(x)), alpha)


def dirichlet_logp_kernel_from_log(log_x, alpha):
    """`dirichlet_logp_kernel` of a point given by its logarithm.

    Use it when ``log(x)`` is available in closed form: an entry of
    ``x`` that underflowed to 0 would otherwise turn a finite term
    into ``+inf`` when its ``alpha`` is below 1.
    """
    alpha = np.asarray(alpha, dtype=np.float64)
    idx = np.flatnonzero(alpha != 1.0)
    if idx.size == 0:
        return tt.as_tensor_variable(np.float64(0.0))
    log_x = tt.as_tensor_variable(log_x)
    return tt.sum(log_x[idx] * (alpha[idx] - 1.0))


def multinomial_logp_kernel(counts, probs):
    """Return ``sum(counts * log(probs))`` as a PyTensor scalar.

    A zero probability in a category with a positive count gives
    ``-inf``.

    Parameters
    ----------
    counts : np.ndarray, shape (C,)
        Observed counts (data, not a tensor).
    probs : TensorVariable or array-like, shape (C,)
        Event probabilities.

    """
    counts = np.asarray(counts)
    idx = np.flatnonzero(counts > 0)
    if idx.size == 0:
        return tt.as_tensor_variable(np.float64(0.0))
    probs = tt.as_tensor_variable(probs)
    return tt.sum(tt.log(probs[idx]) * counts[idx].astype(np.float64))


def dirichlet_log_normalizer(alpha) -> float:
    """Log of the inverse multivariate Beta function of `alpha`.

    ``gammaln(sum(alpha)) - sum(gammaln(alpha))``

    Raises
    ------
    ComputationError
        If `alpha` has zero entries, for which the Dirichlet
        distribution is improper and has no normalizing constant.

    """
    alpha = np.asarray(alpha, dtype=np.float64)
    if np.any(alpha <= 0):
        msg = ("The Dirichlet normalizing constant is undefined for "
               "concentrations with zero entries; evaluate without "
               "constant terms.")
        logger.error(msg)
        raise ComputationError(msg)
    return float(gammaln(alpha.sum()) - gammaln(alpha).sum())


def multinomial_log_coefficient(counts) -> float:
    """Log of the multinomial coefficient ``N! / prod(n_i!)``."""
    counts = np.asarray(counts, dtype=np.float64)
    return float(gammaln(counts.sum() + 1.0) - gammaln(counts + 1.0).sum())


def dirichlet_logp(x, alpha) -> float:
    """Full Dirichlet log density of a numeric point `x`."""
    x = np.asarray(x, dtype=np.float64)
    kernel = dirichlet_logp_kernel(x, alpha).eval()
    return dirichlet_log_normalizer(alpha) + float(kernel)


def multinomial_logp(counts, probs) -> float:
    """Full Multinomial log probability of `counts` given `probs`."""
    probs = np.asarray(probs, dtype=np.float64)
    kernel = multinomial_logp_kernel(counts, probs).eval()
    return multinomial_log_coefficient(counts) + float(kernel)
