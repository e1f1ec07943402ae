# tapegrad/config.py
"""
Tape configuration.

Each Tape owns a private copy of a TapeConfig; the module-level
``default_config`` is what ``Tape()`` copies when no config is passed.
"""

from dataclasses import dataclass, replace
from typing import Optional

import numpy as np


@dataclass
class TapeConfig:
    """
    Attributes
    ----------
    strict_names : bool
        Reject an explicit Variable name that is already live on the tape.
        Off by default; meant for tests and debugging sessions.
    trace : bool
        Attach a LoggingObserver to every new tape, so each recorded operation
        and each accumulated gradient is logged at DEBUG level.
    dtype : type
        NumPy scalar type of Variable values and adjoints.
    """
    strict_names: bool = False
    trace: bool = False
    dtype: type = np.float32

    def copy(self, **changes) -> "TapeConfig":
        return replace(self, **changes)


default_config = TapeConfig()


def resolve(config: Optional[TapeConfig] = None) -> TapeConfig:
    """Return a private copy of `config`, or of the defaults when None."""
    return (config or default_config).copy()
