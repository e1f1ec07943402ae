# tapegrad/ops/__init__.py

# Convenience re-exports so users can do: from tapegrad.ops import mul, exp, ...
from .arithmetic import add, sub, mul, div, neg, pow
from .transcendental import exp, log, sqrt, relu, erf

__all__ = [
    "add", "sub", "mul", "div", "neg", "pow",
    "exp", "log", "sqrt", "relu", "erf",
]
