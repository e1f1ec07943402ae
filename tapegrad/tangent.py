# tapegrad/tangent.py
# Forward (tangent) mode evaluator, independent from the tape and grad()

from typing import Callable, List, Sequence, Tuple

import numpy as np


class Dual:
    """
    First-order tangent variable:
    v = value + der * t
    der = directional derivative along the seeded input
    """
    __slots__ = ("value", "der")

    def __init__(self, value, der=0.0):
        self.value = np.float32(value)
        self.der = np.float32(der)

    @classmethod
    def passive(cls, value):
        """A constant: its derivative is zero."""
        return cls(value, 0.0)

    def __repr__(self):
        return f"Dual({float(self.value)!r}, der={float(self.der)!r})"

    def __add__(a, b):
        if not isinstance(b, Dual): b = Dual(b)
        return Dual(a.value + b.value, a.der + b.der)
    __radd__ = __add__

    def __sub__(a, b):
        if not isinstance(b, Dual): b = Dual(b)
        return Dual(a.value - b.value, a.der - b.der)

    def __rsub__(b, a):
        if not isinstance(a, Dual): a = Dual(a)
        return Dual(a.value - b.value, a.der - b.der)

    def __mul__(a, b):
        if not isinstance(b, Dual): b = Dual(b)
        return Dual(a.value * b.value, b.value * a.der + a.value * b.der)
    __rmul__ = __mul__

    def recip(self):
        with np.errstate(all="ignore"):
            return Dual(1.0 / self.value, -self.der / self.value / self.value)

    def __truediv__(a, b):
        if not isinstance(b, Dual): b = Dual(b)
        return a * b.recip()

    def __rtruediv__(b, a):
        return Dual(a) * b.recip()

    def __neg__(a):
        return Dual(-a.value, -a.der)

    def pow(self, exp):
        with np.errstate(all="ignore"):
            value = self.value ** exp
            der = exp * self.value ** (exp - 1.0) * self.der
        return Dual(value, der)

    def __pow__(self, exp):
        return self.pow(exp)

    def sqrt(self):
        with np.errstate(all="ignore"):
            r = np.sqrt(self.value)
            return Dual(r, 0.5 / r * self.der)

    def relu(self):
        if self.value > 0.0:
            return self
        return Dual(0.0, 0.0)


def derivative(f: Callable[[Dual], Dual], x: float) -> Tuple[np.float32, np.float32]:
    """Value and derivative of a univariate f at x (seed der = 1)."""
    y = f(Dual(x, 1.0))
    return y.value, y.der


def gradient(f: Callable[..., Dual], xs: Sequence[float]) -> List[np.float32]:
    """
    Gradient of f(x0, x1, ...) by alternating seeding: one forward pass per
    input, with that input's derivative set to 1 and all others to 0.
    """
    args = [Dual.passive(x) for x in xs]
    out = []
    for i in range(len(args)):
        args[i] = Dual(args[i].value, 1.0)   # seed the desired partial
        out.append(f(*args).der)            # harvest the derivative
        args[i] = Dual.passive(args[i].value)
    return out
