# tapegrad/ops/transcendental.py
import numpy as np
from scipy.special import erf as scipy_erf

from ..core.entry import Op
from .arithmetic import _unary


def exp(x):
    return _unary(x, np.exp, Op.EXP)


def log(x):
    return _unary(x, np.log, Op.LOG)


def sqrt(x):
    return _unary(x, np.sqrt, Op.SQRT)


def relu(x):
    """max(x, 0); the local partial is 1 for x > 0 and 0 otherwise."""
    return _unary(x, lambda a: np.maximum(a, 0), Op.RELU)


def erf(x):
    """Gauss error function; value from scipy, backward rule 2/sqrt(pi) * exp(-x**2)."""
    return _unary(x, scipy_erf, Op.ERF)
