"""Stick-breaking transform between R^(K-1) and the K-simplex.

The exposures of the model live on the probability simplex, while
gradient-based samplers move freely in an unconstrained space. This
module provides the bijection between both spaces:

    z_k = logistic(y_k - log(K - 1 - k)),       k = 0, ..., K-2
    x_k = z_k * (1 - x_0 - ... - x_{k-1})
    x_{K-1} = 1 - x_0 - ... - x_{K-2}

The offset ``log(K - 1 - k)`` makes ``y = 0`` map to the uniform
point ``x = (1/K, ..., 1/K)``. The log absolute determinant of the
Jacobian is

    sum_k [ log(1 - x_0 - ... - x_{k-1}) + log z_k + log(1 - z_k) ]

and is computed in closed form together with ``x``.

Everything is evaluated in log space with ``softplus``, so for large
``|y|`` the entries of ``x`` may underflow to exactly 0 while the sum
of ``x`` stays 1 and the log-Jacobian stays finite. Boundary points
have no finite preimage and are rejected by `simplex_unconstrain`.

- Functions
  ---------
  - stick_breaking_constrain :
      Symbolic (PyTensor) forward map returning ``(x, log_jacobian)``.
  - stick_breaking_log_constrain :
      Same, returning ``(log x, log_jacobian)``.
  - simplex_constrain :
      Numeric forward map.
  - simplex_unconstrain :
      Numeric inverse map with input validation.
"""

import logging

import numpy as np
from scipy.special import logit

import pytensor
import pytensor.tensor as tt

from .constants import simplex_tolerance
from .errors import InvalidInput
from .utils import PerThreadFunction


logger = logging.getLogger(__name__)


def stick_breaking_log_constrain(y):
    """Log of the simplex point of `y`, and the log-Jacobian.

    Same map as `stick_breaking_constrain` but returns ``log(x)``,
    which stays finite for every finite `y` even when an entry of
    ``x`` underflows to 0.

    Returns
    -------
    log_x : TensorVariable, shape (K,)
    log_jacobian : TensorVariable, scalar

    """
    y = tt.as_tensor_variable(y)
    n_free = y.shape[0]
    k = tt.arange(n_free)
    adj = y - tt.log(n_free - k)

    log_z = -tt.softplus(-adj)
    log1m_z = -tt.softplus(adj)
    # log of the stick left before breaking piece k, k = 0, ..., K-1
    log_stick = tt.concatenate(
        [tt.zeros((1,), dtype=log1m_z.dtype), tt.cumsum(log1m_z)])

    log_x = tt.concatenate([log_stick[:-1] + log_z, log_stick[-1:]])
    log_jacobian = tt.sum(log_stick[:-1] + log_z + log1m_z)
    return log_x, log_jacobian


def stick_breaking_constrain(y):
    """Map an unconstrained vector onto the simplex.

    Parameters
    ----------
    y : TensorVariable or array-like, shape (K-1,)
        Unconstrained coordinates. May be empty, in which case the
        result is the single point ``[1]``.

    Returns
    -------
    x : TensorVariable, shape (K,)
        Point of the simplex.
    log_jacobian : TensorVariable, scalar
        ``log |det dx/dy|`` restricted to the first K-1 coordinates.

    Notes
    -----
    The function is pure: it only builds a graph from `y` and holds
    no state, so it can be embedded in any larger PyTensor graph and
    differentiated with ``pytensor.grad``.

    """
    log_x, log_jacobian = stick_breaking_log_constrain(y)
    return tt.exp(log_x), log_jacobian


def _build_constrain_function():
    y = tt.dvector("y")
    x, log_jacobian = stick_breaking_constrain(y)
    return pytensor.function([y], [x, log_jacobian])


_constrain_function = PerThreadFunction(
    _build_constrain_function, name="simplex constrain")


def simplex_constrain(y, jacobian: bool = False):
    """Numeric version of `stick_breaking_constrain`.

    Parameters
    ----------
    y : array-like, shape (K-1,)
        Unconstrained coordinates.
    jacobian : bool, default False
        If True also return the log-Jacobian of the transform.

    Returns
    -------
    np.ndarray or (np.ndarray, float)
        The simplex point, and the log-Jacobian if requested.

    Examples
    --------
    >>> simplex_constrain([0.0, 0.0])
    array([0.33333333, 0.33333333, 0.33333333])

    """
    y = np.asarray(y, dtype=np.float64)
    if y.ndim != 1:
        msg = f"y must be one-dimensional, got shape {y.shape}"
        logger.error(msg)
        raise InvalidInput(msg)
    x, log_jacobian = _constrain_function(y)
    if jacobian:
        return x, float(log_jacobian)
    return x


def simplex_unconstrain(x, size: int | None = None,
                        tol: float = simplex_tolerance) -> np.ndarray:
    """Return the unconstrained coordinates of a simplex point.

    Inverse of `simplex_constrain`. Only used to initialize a
    parameter vector, never while evaluating the model.

    Parameters
    ----------
    x : array-like, shape (K,)
        Point of the simplex.
    size : int or None, default None
        Expected K. Not checked if None.
    tol : float, default `constants.simplex_tolerance`
        Absolute tolerance on ``|1 - sum(x)|``.

    Returns
    -------
    np.ndarray, shape (K-1,)

    Raises
    ------
    InvalidInput
        If `x` has the wrong size, non-finite or negative entries, a
        sum away from 1, or a zero entry (boundary points have no
        finite preimage).

    """
    x = np.asarray(x, dtype=np.float64)

    msg = None
    if x.ndim != 1 or x.size == 0:
        msg = f"x must be a non-empty vector, got shape {x.shape}"
    elif size is not None and x.size != size:
        msg = f"x must have {size} entries, got {x.size}"
    elif not np.all(np.isfinite(x)):
        msg = "x must be finite"
    elif np.any(x < 0):
        msg = f"x is not a valid simplex, it has negative entries: {x}"
    elif abs(1.0 - x.sum()) > tol:
        msg = (f"x is not a valid simplex, sum(x) = {x.sum():.10g} "
               f"differs from 1 by more than {tol:g}")
    elif np.any(x == 0):
        msg = (f"x lies on the boundary of the simplex and has no "
               f"unconstrained representation: {x}")
    if msg is not None:
        logger.error(msg)
        raise InvalidInput(msg)

    n_free = x.size - 1
    # stick left before breaking piece k
    stick = np.cumsum(x[::-1])[::-1]
    z = x[:-1] / stick[:-1]
    y = logit(z) + np.log(n_free - np.arange(n_free))
    if not np.all(np.isfinite(y)):
        msg = (f"x is too close to the boundary of the simplex to be "
               f"represented in floating point: {x}")
        logger.error(msg)
        raise InvalidInput(msg)
    return y
