"""
Symgrad: a minimal symbolic differentiation engine for scalar expressions.

Expressions are trees of Scalar leaves combined with sums, products and
integer powers. Every tree can be evaluated, have its gradient computed
directly, or be differentiated into a new tree.
"""

from symgrad.engine import Expression, Scalar, Add, Mul, Powi
from symgrad.config import config, setup_logging
from symgrad.utils import trace, derivative, check_gradient

__version__ = "0.1.0"
__all__ = [
    "Expression", "Scalar", "Add", "Mul", "Powi",
    "config", "setup_logging",
    "trace", "derivative", "check_gradient",
]
