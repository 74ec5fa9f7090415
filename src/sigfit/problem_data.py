"""Immutable inputs of a signature fitting problem.

A fitting problem is defined by a matrix of reference signatures
(mutation categories × signatures), the observed mutation counts per
category and the concentration of the Dirichlet prior over the
exposures. `ProblemData` validates these inputs once, at
construction, and stores them as read-only arrays that can be shared
by any number of concurrent evaluations.

- Classes
  -------
  - ProblemData :
      Frozen container built through `ProblemData.create`,
      `ProblemData.from_dict` or `ProblemData.from_frames`.

Usage
-----
>>> data = ProblemData.create(
...     C=2, S=2,
...     signatures=[[1, 0], [0, 1]],
...     counts=[10, 0],
...     alpha=[1, 1])
>>> data.total_count
10
"""

from collections.abc import Mapping
from dataclasses import dataclass
import logging
import numbers

import numpy as np
import pandas as pd

from .errors import InvalidInput


logger = logging.getLogger(__name__)


def _invalid(msg):
    logger.error(msg)
    return InvalidInput(msg)


def _check_dimension(value, name):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise _invalid(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise _invalid(f"{name} must be greater than or equal to 1, "
                       f"got {value}")
    return int(value)


def _as_float_array(value, name):
    try:
        arr = np.array(value, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise _invalid(f"{name} must be numeric: {e}") from e
    return arr


def _read_only(arr):
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, repr=False, eq=False)
class ProblemData:
    """Validated inputs of the model.

    Attributes
    ----------
    C : int
        Number of mutation categories.
    S : int
        Number of reference signatures.
    signatures : np.ndarray, shape (C, S)
        Non-negative signature matrix; column ``s`` is the profile of
        signature ``s`` over mutation categories.
    counts : np.ndarray, shape (C,)
        Observed mutation counts per category.
    alpha : np.ndarray, shape (S,)
        Concentration of the Dirichlet prior over exposures.
    category_labels : tuple or None
        Mutation type labels when built from pandas objects.
    signature_labels : tuple or None
        Signature labels when built from pandas objects.

    All arrays are read-only; use the class methods to build
    instances instead of calling the constructor directly.
    """

    C: int
    S: int
    signatures: np.ndarray
    counts: np.ndarray
    alpha: np.ndarray
    category_labels: tuple | None = None
    signature_labels: tuple | None = None

    def __repr__(self):
        return (f"ProblemData(C={self.C}, S={self.S}, "
                f"total_count={self.total_count})")

    @property
    def total_count(self):
        """Total number of observed mutations."""
        return int(self.counts.sum())

    @classmethod
    def create(cls, C, S, signatures, counts, alpha, *,
               category_labels=None, signature_labels=None):
        """Validate inputs and build a `ProblemData`.

        Parameters
        ----------
        C : int
            Number of mutation categories, at least 1.
        S : int
            Number of signatures, at least 1.
        signatures : array-like, shape (C, S)
            Non-negative, finite signature matrix.
        counts : array-like, shape (C,)
            Non-negative integer counts.
        alpha : array-like, shape (S,)
            Non-negative, finite Dirichlet concentration.

        Returns
        -------
        ProblemData

        Raises
        ------
        InvalidInput
            If any dimension or domain constraint is violated. Values
            are never clamped into their domain.

        """
        C = _check_dimension(C, "C")
        S = _check_dimension(S, "S")

        sigs = _as_float_array(signatures, "signatures")
        if sigs.shape != (C, S):
            raise _invalid(f"signatures must have shape ({C}, {S}), "
                           f"got {sigs.shape}")
        if not np.all(np.isfinite(sigs)):
            raise _invalid("signatures must be finite")
        if np.any(sigs < 0):
            raise _invalid("signatures must be non-negative")

        raw_counts = _as_float_array(counts, "counts")
        if raw_counts.shape != (C,):
            raise _invalid(f"counts must have shape ({C},), "
                           f"got {raw_counts.shape}")
        if not np.all(np.isfinite(raw_counts)):
            raise _invalid("counts must be finite")
        if np.any(raw_counts < 0):
            raise _invalid("counts must be non-negative")
        if np.any(raw_counts != np.round(raw_counts)):
            raise _invalid("counts must be integers")
        int_counts = raw_counts.astype(np.int64)

        conc = _as_float_array(alpha, "alpha")
        if conc.shape != (S,):
            raise _invalid(f"alpha must have shape ({S},), "
                           f"got {conc.shape}")
        if not np.all(np.isfinite(conc)):
            raise _invalid("alpha must be finite")
        if np.any(conc < 0):
            raise _invalid("alpha must be greater than or equal to 0")

        if np.any(conc == 0):
            logger.warning(
                "alpha has zero entries; the Dirichlet prior is "
                "improper and only its kernel can be evaluated.")
        empty = np.flatnonzero(sigs.sum(axis=0) == 0)
        if empty.size:
            logger.warning(
                f"Signatures {(empty + 1).tolist()} are zero in every "
                "category.")
        if int_counts.sum() == 0:
            logger.warning("No mutations observed (all counts are 0).")

        for labels, n, name in ((category_labels, C, "category_labels"),
                                (signature_labels, S,
                                 "signature_labels")):
            if labels is not None and len(labels) != n:
                raise _invalid(f"{name} must have {n} entries, "
                               f"got {len(labels)}")

        return cls(
            C=C,
            S=S,
            signatures=_read_only(sigs),
            counts=_read_only(int_counts),
            alpha=_read_only(conc),
            category_labels=(tuple(category_labels)
                             if category_labels is not None else None),
            signature_labels=(tuple(signature_labels)
                              if signature_labels is not None else None))

    @classmethod
    def from_dict(cls, context: Mapping) -> "ProblemData":
        """Build from a mapping with keys C, S, signatures, counts, alpha.

        The values are the in-memory form of a data dump: scalars for
        the dimensions and nested sequences or arrays for the rest.

        """
        missing = [key for key in ("C", "S", "signatures", "counts",
                                   "alpha")
                   if key not in context]
        if missing:
            raise _invalid(f"variables missing from data: {missing}")
        return cls.create(context["C"], context["S"],
                          context["signatures"], context["counts"],
                          context["alpha"])

    @classmethod
    def from_frames(
            cls,
            signatures: pd.DataFrame,
            counts: pd.Series,
            alpha: pd.Series | np.ndarray | float | None = None
            ) -> "ProblemData":
        """Build from a labelled signature matrix and counts.

        Parameters
        ----------
        signatures : pd.DataFrame
            Signature matrix with mutation types as index and
            signature names as columns, as returned by the usual
            COSMIC-style loaders.
        counts : pd.Series
            Mutation counts indexed by mutation type. It is reordered
            to follow ``signatures.index``.
        alpha : pd.Series, array-like, float or None, default None
            Dirichlet concentration. A Series is aligned on the
            signature names, a scalar is broadcast and None means a
            flat prior (all ones).

        Raises
        ------
        InvalidInput
            If the mutation types of `signatures` and `counts` differ
            or `alpha` lacks a signature.

        """
        missing = signatures.index.difference(counts.index)
        if len(missing) > 0:
            raise _invalid(f"counts has no entry for mutation types "
                           f"{list(missing)}")
        extra = counts.index.difference(signatures.index)
        if len(extra) > 0:
            raise _invalid(f"counts has mutation types not in the "
                           f"signature matrix: {list(extra)}")
        counts = counts.loc[signatures.index]

        n_sigs = signatures.shape[1]
        if alpha is None:
            alpha = np.ones(n_sigs)
        elif isinstance(alpha, pd.Series):
            absent = signatures.columns.difference(alpha.index)
            if len(absent) > 0:
                raise _invalid(f"alpha has no entry for signatures "
                               f"{list(absent)}")
            alpha = alpha.loc[signatures.columns].to_numpy()
        elif np.ndim(alpha) == 0:
            alpha = np.full(n_sigs, alpha, dtype=np.float64)

        return cls.create(
            signatures.shape[0], n_sigs,
            signatures.to_numpy(), counts.to_numpy(), alpha,
            category_labels=list(signatures.index),
            signature_labels=list(signatures.columns))
