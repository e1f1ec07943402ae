# tapegrad/__init__.py
# Tape-based reverse-mode automatic differentiation, with a forward-mode companion

from .config import TapeConfig, default_config
from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .ops import add, sub, mul, div, neg, pow, exp, log, sqrt, relu, erf

# Forward (tangent) mode
from . import tangent
from .tangent import Dual, derivative, gradient

__version__ = "0.1.0"

__all__ = _core_all + [
    # Config
    "TapeConfig",
    "default_config",
    # Operators
    "add", "sub", "mul", "div", "neg", "pow",
    "exp", "log", "sqrt", "relu", "erf",
    # Forward mode
    "tangent",
    "Dual",
    "derivative",
    "gradient",
]
