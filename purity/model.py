import collections
import numpy as np
from .exceptions import DomainError

# Smallest volume at which the density is evaluated when clipping.
EPS = 1E-12

PARAM_ORDER = ['mu1', 'sigma1', 'a1', 'mu2', 'sigma2', 'a2']

MixtureParameters = collections.namedtuple('MixtureParameters', PARAM_ORDER)
MixtureParameters.__doc__ = """
Parameters of a two-component log-normal mixture. Component 1 is expected 
to elute first (`mu1 < mu2`).
"""


def log_normal_pdf(x, mu, sigma, a, clip=False):
    R"""
    Computes the lineshape of a log-normal distribution scaled by an amplitude.

    Parameters
    ----------
    x : `float` or `numpy.ndarray`
        The elution volume(s). Must be positive.
    mu : `float`
        The location parameter (mean of the log volume).
    sigma : positive `float`
        The scale parameter (standard deviation of the log volume).
    a : positive `float`
        The amplitude, equal to the area under the density.
    clip : `bool`
        If True, non-positive volumes are clamped to a small positive value 
        instead of raising a `DomainError`.

    Returns
    -------
    scaled_pdf : `float` or `numpy.ndarray`, same shape as `x`
        The scaled log-normal density.

    Notes
    -----
    The density has the form

    .. math::
        I = \frac{a}{x \sigma \sqrt{2\pi}} e^{-\frac{(\ln x - \mu)^2}{2\sigma^2}}
    """
    x = np.asarray(x, dtype=float)
    if clip:
        x = np.clip(x, EPS, None)
    elif (x <= 0).any():
        raise DomainError(
            'The log-normal density is only defined for positive volumes.')
    norm = a / (x * sigma * np.sqrt(2 * np.pi))
    return norm * np.exp(-(np.log(x) - mu)**2 / (2 * sigma**2))


def mixture_pdf(x, mu1, sigma1, a1, mu2, sigma2, a2, clip=False):
    """
    Evaluates the sum of two independent log-normal densities at `x`.
    """
    return log_normal_pdf(x, mu1, sigma1, a1, clip=clip) + \
        log_normal_pdf(x, mu2, sigma2, a2, clip=clip)
