"""Signature fitting model: exposures of a sample to known signatures.

The generative model is

    exposures ~ Dirichlet(alpha)
    probs     = signatures @ exposures / sum(signatures @ exposures)
    counts    ~ Multinomial(sum(counts), probs)

`SigfitModel` evaluates its log density on the unconstrained scale
used by gradient-based samplers: the ``S - 1`` free coordinates are
mapped to the exposures with the stick-breaking transform of
:mod:`sigfit.simplex`, whose log-Jacobian is added when requested.

Every operation on the parameters is written with PyTensor, so an
external driver can differentiate the density from `logp_graph`. The
numeric entry points (`log_prob`, `write_constrained`, ...) compile
that graph once and give each thread its own copy of the compiled
function, so a single model can be shared by concurrent chains.

Examples
--------
>>> data = ProblemData.create(
...     C=2, S=2, signatures=[[1, 0], [0, 1]],
...     counts=[10, 0], alpha=[1, 1])
>>> model = SigfitModel(data)
>>> y = model.unconstrain([0.5, 0.5])
>>> model.log_prob(y, jacobian=False)
-6.931471805599453
>>> model.constrained_param_names()
['exposures.1', 'exposures.2', 'probs.1', 'probs.2']

"""

from collections.abc import Mapping
import logging

import numpy as np
import pandas as pd

import pytensor
import pytensor.tensor as tt

from .constants import (exposures_name, init_radius, model_name,
                        probs_name, random_seed, simplex_tolerance)
from .densities import (dirichlet_log_normalizer, dirichlet_logp_kernel,
                        dirichlet_logp_kernel_from_log,
                        multinomial_log_coefficient,
                        multinomial_logp_kernel)
from .errors import ComputationError, InvalidInput
from .problem_data import ProblemData
from .simplex import (simplex_constrain, simplex_unconstrain,
                      stick_breaking_log_constrain)
from .utils import PerThreadFunction, check_simplex


logger = logging.getLogger(__name__)


def mix_signatures(signatures, exposures):
    """Category probabilities of a mixture of signatures.

    Parameters
    ----------
    signatures : np.ndarray, shape (C, S)
        Signature matrix.
    exposures : TensorVariable, shape (S,)
        Mixing weights.

    Returns
    -------
    probs : TensorVariable, shape (C,)
        ``signatures @ exposures`` renormalized to sum to 1.
    total : TensorVariable, scalar
        Sum of the mixture before renormalization. When it is zero
        `probs` is undefined (nan).

    """
    mixture = tt.dot(signatures, exposures)
    total = tt.sum(mixture)
    return mixture / total, total


class SigfitModel:
    """Log density, transforms and metadata of the sigfit model.

    Parameters
    ----------
    data : ProblemData
        Validated problem inputs. They are only read, never modified.

    Attributes
    ----------
    data : ProblemData
        The problem this model evaluates.

    """

    def __init__(self, data: ProblemData):
        if not isinstance(data, ProblemData):
            msg = (f"data must be a ProblemData instance, got "
                   f"{type(data).__name__}")
            logger.error(msg)
            raise InvalidInput(msg)
        self.data = data

        self._multinomial_constant = multinomial_log_coefficient(
            data.counts)
        if np.all(data.alpha > 0):
            self._dirichlet_constant = dirichlet_log_normalizer(
                data.alpha)
        else:
            self._dirichlet_constant = None

        self._from_unconstrained = PerThreadFunction(
            self._build_from_unconstrained,
            name=f"{model_name} log density (unconstrained)")
        self._from_exposures = PerThreadFunction(
            self._build_from_exposures,
            name=f"{model_name} log density (constrained)")

        logger.info(
            f"Model {model_name} with {data.C} mutation categories, "
            f"{data.S} signatures and {data.total_count} mutations")

    def __repr__(self):
        return (f"SigfitModel(C={self.data.C}, S={self.data.S}, "
                f"num_params_r={self.num_params_r})")

    # ============================================================
    # Graph construction
    # ============================================================

    def _likelihood_terms(self, exposures):
        probs, total = mix_signatures(self.data.signatures, exposures)
        log_lik = multinomial_logp_kernel(self.data.counts, probs)
        return probs, total, log_lik

    def _unconstrained_terms(self, params):
        log_exposures, log_jacobian = stick_breaking_log_constrain(params)
        exposures = tt.exp(log_exposures)
        # log(exposures) stays finite where exposures underflow to 0
        log_prior = dirichlet_logp_kernel_from_log(log_exposures,
                                                   self.data.alpha)
        probs, total, log_lik = self._likelihood_terms(exposures)
        return exposures, probs, total, log_prior, log_lik, log_jacobian

    def _build_from_unconstrained(self):
        params = tt.dvector("params")
        return pytensor.function([params],
                                 list(self._unconstrained_terms(params)))

    def _build_from_exposures(self):
        exposures = tt.dvector(exposures_name)
        log_prior = dirichlet_logp_kernel(exposures, self.data.alpha)
        probs, total, log_lik = self._likelihood_terms(exposures)
        return pytensor.function([exposures],
                                 [probs, total, log_prior, log_lik])

    def logp_graph(self, jacobian: bool = True,
                   include_constant_terms: bool = False):
        """Symbolic log density on the unconstrained scale.

        Parameters
        ----------
        jacobian : bool, default True
            Include the log-Jacobian of the simplex transform.
        include_constant_terms : bool, default False
            Include the Dirichlet and Multinomial normalizing
            constants.

        Returns
        -------
        params : TensorVariable, shape (S-1,)
            Input variable of the graph.
        logp : TensorVariable, scalar
            Log density. Gradients can be obtained with
            ``pytensor.grad(logp, params)``.

        Notes
        -----
        The graph does not include the simplex check on ``probs``
        done by `log_prob`.

        """
        params = tt.dvector("params")
        _, _, _, log_prior, log_lik, log_jacobian = (
            self._unconstrained_terms(params))
        logp = log_prior + log_lik
        if jacobian:
            logp = logp + log_jacobian
        if include_constant_terms:
            logp = logp + self._constant_terms()
        return params, logp

    # ============================================================
    # Evaluation
    # ============================================================

    def _check_params(self, params):
        params = np.asarray(params, dtype=np.float64)
        if params.shape != (self.num_params_r,):
            msg = (f"Parameter vector must have shape "
                   f"({self.num_params_r},), got {params.shape}")
            logger.error(msg)
            raise InvalidInput(msg)
        if not np.all(np.isfinite(params)):
            msg = f"Parameter vector must be finite, got {params}"
            logger.error(msg)
            raise InvalidInput(msg)
        return params

    @staticmethod
    def _check_probs(probs, total):
        if not total > 0:
            msg = ("Degenerate mixture: the signatures weighted by the "
                   "exposures sum to zero in every category.")
            logger.error(msg)
            raise ComputationError(msg)
        if not check_simplex(probs, simplex_tolerance):
            msg = f"{probs_name} is not a valid simplex: {probs}"
            logger.error(msg)
            raise ComputationError(msg)

    def _constant_terms(self):
        if self._dirichlet_constant is None:
            # raises ComputationError
            dirichlet_log_normalizer(self.data.alpha)
        return self._dirichlet_constant + self._multinomial_constant

    def constant_terms(self) -> float:
        """Sum of the normalizing constants dropped by `log_prob`.

        This is the difference between ``log_prob(..., True)`` and
        ``log_prob(..., False)`` for the ``include_constant_terms``
        flag, at any parameter point.

        Raises
        ------
        ComputationError
            If ``alpha`` has zero entries.

        """
        return self._constant_terms()

    def log_prob(self, params, jacobian: bool = True,
                 include_constant_terms: bool = True) -> float:
        """Log density of the model at an unconstrained point.

        Parameters
        ----------
        params : array-like, shape (S-1,)
            Unconstrained parameter vector. Only read.
        jacobian : bool, default True
            Add the log-Jacobian of the simplex transform. Must be
            True when sampling on the unconstrained scale.
        include_constant_terms : bool, default True
            Add the Dirichlet and Multinomial normalizing constants.
            They do not depend on `params`, so samplers can leave them
            out.

        Returns
        -------
        float
            Log density; ``-inf`` when a category with observed
            mutations has probability zero.

        Raises
        ------
        InvalidInput
            If `params` has the wrong shape or non-finite entries.
        ComputationError
            If the mixture of signatures is degenerate or ``probs``
            is not a simplex, or if constant terms are requested with
            zero entries in ``alpha``.

        """
        params = self._check_params(params)
        _, probs, total, log_prior, log_lik, log_jacobian = (
            self._from_unconstrained(params))
        self._check_probs(probs, total)

        lp = _add_log_terms(log_prior, log_lik)
        if jacobian:
            lp += float(log_jacobian)
        if include_constant_terms:
            lp += self._constant_terms()
        return lp

    def log_prob_exposures(self, exposures,
                           include_constant_terms: bool = True) -> float:
        """Log density at a point given directly on the simplex.

        No transform is involved, hence no Jacobian. Points on the
        boundary of the simplex are accepted: the result is ``-inf``
        if a category with observed mutations gets probability zero,
        and otherwise ``+inf`` where a zero exposure has ``alpha``
        below 1 (the Dirichlet density is unbounded there).

        Raises
        ------
        InvalidInput
            If `exposures` is not a simplex point of size S.
        ComputationError
            As in `log_prob`.

        """
        exposures = np.asarray(exposures, dtype=np.float64)
        if (exposures.shape != (self.data.S,) or
                not check_simplex(exposures, simplex_tolerance)):
            msg = (f"{exposures_name} must be a simplex of size "
                   f"{self.data.S}, got {exposures}")
            logger.error(msg)
            raise InvalidInput(msg)

        probs, total, log_prior, log_lik = self._from_exposures(exposures)
        self._check_probs(probs, total)

        lp = _add_log_terms(log_prior, log_lik)
        if include_constant_terms:
            lp += self._constant_terms()
        return lp

    # ============================================================
    # Transforms and output
    # ============================================================

    def unconstrain(self, exposures) -> np.ndarray:
        """Unconstrained vector of length S-1 for given exposures."""
        return simplex_unconstrain(exposures, size=self.data.S)

    def transform_inits(self, context: Mapping) -> np.ndarray:
        """Unconstrained vector from initial values in a mapping.

        Parameters
        ----------
        context : Mapping
            Must contain the key ``"exposures"``.

        Raises
        ------
        InvalidInput
            If ``"exposures"`` is missing or is not a valid simplex.

        """
        if exposures_name not in context:
            msg = f"variable {exposures_name} missing"
            logger.error(msg)
            raise InvalidInput(msg)
        try:
            return self.unconstrain(context[exposures_name])
        except InvalidInput as e:
            raise InvalidInput(
                f"Error transforming variable {exposures_name}: {e}"
            ) from e

    def random_inits(self, rng: np.random.Generator | None = None,
                     radius: float = init_radius) -> np.ndarray:
        """Draw an initial unconstrained vector uniformly.

        Parameters
        ----------
        rng : numpy.random.Generator or None, default None
            Generator supplied by the driver. If None, a generator
            seeded with `constants.random_seed` is created.
        radius : float, default `constants.init_radius`
            Values are drawn in ``[-radius, radius]``.

        """
        if radius < 0:
            msg = f"radius must be non-negative, got {radius}"
            logger.error(msg)
            raise InvalidInput(msg)
        if rng is None:
            rng = np.random.default_rng(random_seed)
        return rng.uniform(-radius, radius, size=self.num_params_r)

    def write_constrained(self, params) -> dict[str, np.ndarray]:
        """Exposures and category probabilities for a parameter vector.

        Returns
        -------
        dict
            ``{"exposures": array of S, "probs": array of C}``

        """
        params = self._check_params(params)
        exposures, probs, total, _, _, _ = self._from_unconstrained(params)
        self._check_probs(probs, total)
        return {exposures_name: np.array(exposures),
                probs_name: np.array(probs)}

    def write_array(self, params, include_tparams: bool = True,
                    include_gqs: bool = True) -> np.ndarray:
        """Flat constrained output aligned with `constrained_param_names`.

        ``include_gqs`` is accepted for symmetry with the name
        functions; the model has no generated quantities. Without
        `include_tparams` only the exposures are computed, so a
        degenerate mixture is not an error.
        """
        if not include_tparams:
            return np.array(simplex_constrain(self._check_params(params)))
        values = self.write_constrained(params)
        return np.concatenate([values[exposures_name],
                               values[probs_name]])

    def constrained_series(self, params) -> pd.Series:
        """`write_array` as a Series indexed by parameter names."""
        return pd.Series(self.write_array(params),
                         index=self.constrained_param_names(),
                         name=model_name)

    # ============================================================
    # Metadata
    # ============================================================

    @staticmethod
    def model_name() -> str:
        return model_name

    @property
    def num_params_r(self) -> int:
        """Number of unconstrained parameters (S - 1)."""
        return self.data.S - 1

    def get_param_names(self) -> list[str]:
        return [exposures_name, probs_name]

    def get_dims(self) -> list[list[int]]:
        return [[self.data.S], [self.data.C]]

    def constrained_param_names(self, include_tparams: bool = True,
                                include_gqs: bool = True) -> list[str]:
        """Names of the entries returned by `write_array`.

        ``exposures.1`` ... ``exposures.S`` followed, when
        `include_tparams` is True, by ``probs.1`` ... ``probs.C``.
        """
        names = _indexed_names(exposures_name, self.data.S)
        if include_tparams:
            names += _indexed_names(probs_name, self.data.C)
        return names

    def unconstrained_param_names(self, include_tparams: bool = True,
                                  include_gqs: bool = True) -> list[str]:
        """Names of the unconstrained coordinates.

        ``exposures.1`` ... ``exposures.(S-1)`` followed, when
        `include_tparams` is True, by ``probs.1`` ... ``probs.(C-1)``.
        """
        names = _indexed_names(exposures_name, self.data.S - 1)
        if include_tparams:
            names += _indexed_names(probs_name, self.data.C - 1)
        return names


def _indexed_names(name, n):
    return [f"{name}.{k}" for k in range(1, n + 1)]


def _add_log_terms(log_prior, log_lik):
    # an impossible observation wins over a prior that is +inf on the
    # boundary of the simplex (alpha < 1)
    if np.isneginf(log_lik):
        return -np.inf
    return float(log_prior) + float(log_lik)
