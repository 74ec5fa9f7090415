"""PyMC version of the sigfit model.

`build_pymc_model` expresses the same generative model as
:class:`sigfit.model.SigfitModel` with PyMC distributions, so that the
generic PyMC drivers (``pm.sample``, ``pm.find_MAP``, variational
inference, ...) can be run on a `ProblemData` without further code.
Nothing is sampled here.

Note that PyMC uses its own simplex transform for the Dirichlet, so
log densities on the unconstrained scale differ from
`SigfitModel.log_prob` by the Jacobian term.
"""

import logging

import numpy as np

import pymc as pm
import pytensor.tensor as tt

from .constants import exposures_name, probs_name
from .errors import InvalidInput
from .problem_data import ProblemData


logger = logging.getLogger(__name__)


def build_pymc_model(data: ProblemData) -> pm.Model:
    """Build a PyMC model with exposures, probs and observed counts.

    Parameters
    ----------
    data : ProblemData
        Problem inputs.

    Returns
    -------
    pm.Model
        Model with a free variable ``exposures`` (dims
        ``"signature"``), a deterministic ``probs`` (dims
        ``"category"``) and the observed variable ``counts``.

    Raises
    ------
    InvalidInput
        If ``alpha`` has zero entries; PyMC's Dirichlet requires a
        strictly positive concentration.

    """
    if np.any(data.alpha <= 0):
        msg = ("PyMC's Dirichlet requires alpha > 0, got "
               f"{data.alpha.tolist()}")
        logger.error(msg)
        raise InvalidInput(msg)

    coords = {
        "signature": (list(data.signature_labels)
                      if data.signature_labels is not None
                      else list(range(1, data.S + 1))),
        "category": (list(data.category_labels)
                     if data.category_labels is not None
                     else list(range(1, data.C + 1))),
    }

    with pm.Model(coords=coords) as model:
        exposures = pm.Dirichlet(
            name=exposures_name, a=np.asarray(data.alpha),
            dims="signature")

        mixture = tt.dot(np.asarray(data.signatures), exposures)
        probs = pm.Deterministic(
            probs_name, mixture / tt.sum(mixture), dims="category")

        pm.Multinomial(
            name="counts",
            n=data.total_count,
            p=probs,
            observed=np.asarray(data.counts),
            dims="category",
        )

    return model
