"""
Exceptions raised while fitting and summarising elution traces.

Per-sample failures (`InvalidInputError`, `FitConvergenceError`) are caught by
the batch routines in :mod:`purity.quant` and recorded on the sample's
`FitResult`. Undefined ratios (e.g. the purity of a fraction without modeled
signal) are never raised; they are reported as NaN.
"""


class DomainError(ValueError):
    """The log-normal density was evaluated at a non-positive volume."""


class InvalidInputError(ValueError):
    """An elution trace is empty, misaligned, or has invalid volumes."""


class FitConvergenceError(RuntimeError):
    """The mixture fit did not converge to a usable optimum."""


class AggregationError(RuntimeError):
    """Per-sample results could not be combined."""
