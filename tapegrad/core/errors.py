# tapegrad/core/errors.py
"""
Exceptions raised by the tape and the gradient engine.

Expected outcomes (a variable that does not influence the loss) are never
raised; they come back as ``None`` from ``grad``. Everything below signals a
caller error.
"""


class TapeError(Exception):
    """Base class for all tape-related failures."""


class StaleVariableError(TapeError, LookupError):
    """A Variable created before ``Tape.clear()`` was handed to ``grad``."""


class TapeMismatchError(TapeError, ValueError):
    """Variables recorded on different tapes were combined."""


class NameCollisionError(TapeError, ValueError):
    """An explicit name was reused on a live tape (strict mode only)."""
