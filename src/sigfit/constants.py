"""Constants that we use in multiple modules."""

import os


# Random seed, set to a value if you want to replicate the initial
# values drawn by `SigfitModel.random_inits`
random_seed = None
# random_seed = 777


# Absolute tolerance on |1 - sum(x)| when checking that a vector lies
# on the simplex. Same value as the constraint tolerance used by Stan.
# Can be overridden with the SIGFIT_SIMPLEX_TOLERANCE environment
# variable.
simplex_tolerance = float(
    os.environ.get("SIGFIT_SIMPLEX_TOLERANCE", 1e-8))


# Random initial values are drawn uniformly in
# [-init_radius, init_radius] on the unconstrained scale
init_radius = 2.0


model_name = "sigfit"

# Names of the parameter blocks, in output order
exposures_name = "exposures"
probs_name = "probs"
