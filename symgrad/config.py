"""
Engine-wide settings for symgrad.

The engine keeps native IEEE-754 float behaviour: a zero operand under a
negative power gives inf, ``0 * inf`` gives nan, and so on. The only knob
here is how numpy *reports* those events while a tree is being evaluated.
"""

import logging
from typing import Dict, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt

logger = logging.getLogger(__name__)

# 'call' and 'log' need a callback registered through np.seterrcall, which the engine never does
ErrorMode = Literal['ignore', 'warn', 'raise', 'print']
ErrorCategory = Literal['divide', 'over', 'under', 'invalid']


def _default_errstate():
    return {'divide': 'ignore', 'over': 'ignore', 'under': 'ignore', 'invalid': 'ignore'}


class EngineConfig(BaseModel):
    """
    Validated holder for the engine settings.

    A single instance, ``symgrad.config``, is read at call time, so changes take
    effect immediately. Every assignment is validated; a rejected value raises
    ``pydantic.ValidationError`` and leaves the previous setting in place.

    Example:
        >>> from symgrad import config, Scalar
        >>> config.update(errstate={'divide': 'raise'})
        >>> Scalar(0.0).powi(-1).evaluate()  # raises FloatingPointError
        >>> config.reset()
    """

    model_config = ConfigDict(validate_assignment=True, extra='forbid')

    # passed verbatim to np.errstate around every top-level evaluate()/gradient()
    errstate: Dict[ErrorCategory, ErrorMode] = Field(default_factory=_default_errstate)
    # default tolerances for check_gradient
    rtol: NonNegativeFloat = 1e-9
    atol: NonNegativeFloat = 1e-12
    # derivative() warns above this order, since each product/power rule grows the tree
    max_order: NonNegativeInt = 8

    def reset(self):
        """Restore every setting to its default value."""
        defaults = type(self)()
        for name in type(self).model_fields:
            setattr(self, name, getattr(defaults, name))

    def update(self, **kwargs):
        """
        Change one or more settings.

        ``errstate`` is merged into the current mapping rather than replacing it,
        so ``update(errstate={'divide': 'raise'})`` leaves the other categories alone.

        Raises:
            KeyError: for a setting name that does not exist
            pydantic.ValidationError: for a value of the wrong type or range
        """
        unknown = set(kwargs) - set(type(self).model_fields)
        if unknown:
            raise KeyError(f"Unknown symgrad setting(s): {sorted(unknown)}")
        for key, value in kwargs.items():
            if key == 'errstate':
                value = {**self.errstate, **value}
            setattr(self, key, value)
            logger.debug("config %s set to %r", key, getattr(self, key))

    def float_errors(self):
        """Context manager applying the configured numpy floating-point policy."""
        return np.errstate(**self.errstate)


config = EngineConfig()


class _SymgradHandler(logging.StreamHandler):
    """Stream handler installed by setup_logging; lets repeat calls find it."""


def setup_logging(level="WARNING"):
    """
    Attach a human-readable stream handler to the ``symgrad`` logger.

    Calling it again only changes the level; no duplicate handlers are added.

    Args:
        level: Logging level name or number, e.g. "DEBUG"
    """
    root = logging.getLogger('symgrad')
    root.setLevel(level)
    if not any(isinstance(h, _SymgradHandler) for h in root.handlers):
        handler = _SymgradHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
        root.addHandler(handler)
    return root
