"""Exception types raised by the cavity polariton package."""


class PreconditionError(ValueError):
    """Inputs violate a precondition of a fit or model evaluation.

    Raised before any computation starts, e.g. mismatched mode / coupling
    arrays, too few points left after region masking, or too few LP/UP
    pairs for a dispersion fit.  Solver failures are not wrapped in this
    type; they propagate from ``scipy.optimize`` unchanged.
    """
