"""Utility functions for sigfit.

This module contains helpers used across the package: numeric simplex
checks and a wrapper that gives every thread its own copy of a
compiled PyTensor function.
"""

import logging
import threading

import numpy as np

from .constants import simplex_tolerance


logger = logging.getLogger(__name__)


def check_simplex(x, tol: float = simplex_tolerance) -> bool:
    """Return whether `x` is a point of the probability simplex.

    Parameters
    ----------
    x : array-like
        Candidate point.
    tol : float, default `constants.simplex_tolerance`
        Absolute tolerance on ``|1 - sum(x)|``.

    Returns
    -------
    bool
        True if `x` is a non-empty vector of finite, non-negative
        entries summing to 1 within `tol`.

    Examples
    --------
    >>> check_simplex([0.25, 0.75])
    True
    >>> check_simplex([1.5, -0.5])
    False

    """
    x = np.asarray(x, dtype=np.float64)
    if x.ndim != 1 or x.size == 0:
        return False
    if not np.all(np.isfinite(x)) or np.any(x < 0):
        return False
    return bool(abs(1.0 - x.sum()) <= tol)


class PerThreadFunction:
    """Compiled PyTensor function with one private copy per thread.

    A compiled function reuses its storage for intermediate results
    between calls, so two threads must never call the same instance.
    The function is compiled once, on first use, and each calling
    thread receives its own copy with unshared storage.

    Parameters
    ----------
    build : callable
        Zero-argument callable returning a compiled
        ``pytensor.compile.function.types.Function``.
    name : str
        Label used in log messages.

    """

    def __init__(self, build, name: str = "function"):
        self._build = build
        self.name = name
        self._prototype = None
        self._lock = threading.Lock()
        self._local = threading.local()

    def __call__(self, *args):
        fn = getattr(self._local, "fn", None)
        if fn is None:
            fn = self._local.fn = self._thread_copy()
        return fn(*args)

    def _thread_copy(self):
        with self._lock:
            if self._prototype is None:
                logger.debug(f"Compiling {self.name}")
                self._prototype = self._build()
            return self._prototype.copy(share_memory=False)
