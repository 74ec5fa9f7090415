"""Exceptions raised by sigfit."""


class InvalidInput(ValueError):
    """Malformed input detected before any arithmetic is done.

    Raised for dimensionally inconsistent or out-of-domain problem
    data, for points outside the simplex passed to the inverse
    transform, and for parameter vectors of the wrong length.
    """


class ComputationError(RuntimeError):
    """Internal inconsistency found while evaluating the model.

    A ``-inf`` log probability is a legitimate result and is never
    reported with this exception.
    """
