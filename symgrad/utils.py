"""
Helpers that work on whole expression trees.

These sit on top of the three node operations (evaluate, gradient,
differentiate) and never reach into node internals beyond children().
"""

import logging

import numpy as np

from symgrad.config import config
from symgrad.engine import Expression

logger = logging.getLogger(__name__)


def trace(root):
    """
    Collect every node and edge of an expression tree.

    Performs a depth-first traversal from root. Nodes are tracked by identity,
    so a subtree reachable through two parents would show up as a node with
    two incoming edges; in a well-formed symgrad tree that never happens.

    Args:
        root: An Expression

    Returns:
        tuple: (nodes, edges) where:
            - nodes: list of all nodes, parents before children
            - edges: list of (child, parent) tuples

    Example:
        >>> from symgrad import Scalar
        >>> e = Scalar(2.0) * Scalar(3.0) + Scalar(1.0)
        >>> nodes, edges = trace(e)
        >>> len(nodes)  # Add, Mul, and three leaves
        5
    """
    nodes, edges = [], []
    seen = set()

    def build(v):
        """Recursively add node and its operands."""
        if id(v) in seen:
            return
        seen.add(id(v))
        nodes.append(v)
        for child in v.children():
            edges.append((child, v))
            build(child)

    build(root)
    return nodes, edges


def derivative(expr, order=1):
    """
    Differentiate ``expr`` symbolically ``order`` times.

    The input tree is left untouched: differentiation starts from a clone.
    Every product or power rule roughly doubles the tree, so large orders
    get expensive fast; above ``config.max_order`` a warning is logged.

    Args:
        expr: An Expression
        order: Number of times to differentiate (0 returns a copy)

    Returns:
        A new Expression representing the order-th derivative

    Raises:
        ValueError: if order is negative

    Example:
        >>> from symgrad import Scalar
        >>> d2 = derivative(Scalar(2.0).powi(4), order=2)
        >>> d2.evaluate()  # 4 * 3 * 2^2 = 48.0
    """
    if not isinstance(expr, Expression):
        raise TypeError(f"derivative() expects an Expression, got {type(expr).__name__}")
    if order < 0:
        raise ValueError(f"order must be >= 0, got {order}")
    if order > config.max_order:
        logger.warning("derivative order %d exceeds max_order=%d; tree size may blow up",
                       order, config.max_order)

    result = expr.clone()
    for k in range(1, order + 1):
        result = result.differentiate()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("order %d derivative has %d nodes", k, len(trace(result)[0]))
    return result


def check_gradient(expr, rtol=None, atol=None):
    """
    Check that the direct gradient agrees with the evaluated derivative tree.

    For every well-formed tree, ``expr.gradient()`` and
    ``expr.clone().differentiate().evaluate()`` must match. nan matches nan
    and infinities match when their signs agree.

    Args:
        expr: An Expression
        rtol: Relative tolerance (default: config.rtol)
        atol: Absolute tolerance (default: config.atol)

    Returns:
        bool: True when both paths agree
    """
    rtol = config.rtol if rtol is None else rtol
    atol = config.atol if atol is None else atol

    direct = expr.gradient()
    symbolic = expr.clone().differentiate().evaluate()
    with config.float_errors():
        ok = bool(np.isclose(direct, symbolic, rtol=rtol, atol=atol, equal_nan=True))
    if not ok:
        logger.warning("gradient mismatch for %r: direct=%r, symbolic=%r", expr, direct, symbolic)
    return ok
