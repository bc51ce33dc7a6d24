import numbers

import numpy as np

from symgrad.config import config


class Expression:
    """
    Base class of every node in a symgrad expression tree.

    A tree is built bottom-up from Scalar leaves with ``+``, ``*`` and ``.powi(n)``.
    Each node supports three operations, all delegated recursively to its operands:

    - evaluate(): the numeric value of the tree
    - gradient(): the numeric value of the first derivative, without building a new tree
    - differentiate(): a new tree representing the derivative, itself differentiable

    Nodes are immutable and own their operands exclusively: no subtree is ever
    shared between two parents. copy.copy, copy.deepcopy and pickle all go
    through clone() or the constructor, so they never share nodes either.

    Subclasses implement _evaluate() and, optionally, _gradient(). These recurse
    into the operands' own _evaluate()/_gradient(); the public methods wrap the
    whole walk in the configured numpy error policy once.

    Example:
        >>> a = Scalar(3.0)
        >>> e = a * (Scalar(1.0) + Scalar(2.0)).powi(3)
        >>> e.evaluate()  # 81.0
        >>> e.gradient()  # 81.0
        >>> e.differentiate().evaluate()  # 81.0
    """

    __slots__ = ()

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} nodes are immutable")

    def evaluate(self):
        """Numeric value of the tree."""
        with config.float_errors():
            return self._evaluate()

    def gradient(self):
        """Numeric value of the derivative, computed without building a derivative tree."""
        with config.float_errors():
            return self._gradient()

    def differentiate(self):
        raise NotImplementedError

    def _evaluate(self):
        raise NotImplementedError

    def _gradient(self):
        # Fallback for nodes without a direct rule: evaluate a fresh derivative tree.
        return self.clone().differentiate()._evaluate()

    def clone(self):
        """Return a structurally identical tree that shares no nodes with this one."""
        raise NotImplementedError

    def children(self):
        """Direct operands of this node, left to right."""
        raise NotImplementedError

    def _args(self):
        """Constructor arguments that rebuild this node."""
        raise NotImplementedError

    def __copy__(self):
        # A shallow copy would share operands with the original.
        return self.clone()

    def __deepcopy__(self, memo):
        return self.clone()

    def __reduce__(self):
        return (type(self), self._args())

    # Composition layer

    @staticmethod
    def _wrap(other):
        """Turn a plain real number into a Scalar; return None for anything unusable."""
        if isinstance(other, Expression):
            return other
        if isinstance(other, numbers.Real):
            return Scalar(other)
        return None

    def __add__(self, other):
        other = self._wrap(other)
        if other is None:
            return NotImplemented
        return Add(self, other)

    def __radd__(self, other):
        other = self._wrap(other)
        if other is None:
            return NotImplemented
        return Add(other, self)

    def __mul__(self, other):
        other = self._wrap(other)
        if other is None:
            return NotImplemented
        return Mul(self, other)

    def __rmul__(self, other):
        other = self._wrap(other)
        if other is None:
            return NotImplemented
        return Mul(other, self)

    def powi(self, n):
        """Raise this expression to the fixed integer power ``n``."""
        return Powi(self, n)

    def __pow__(self, n):
        if not _is_integer(n):
            return NotImplemented
        return Powi(self, n)

    # Derived operations, built only from Add, Mul and Powi

    def __neg__(self):
        """Negation: -x = x * -1"""
        return self * -1

    def __sub__(self, other):
        """Subtraction: a - b = a + (-b)"""
        other = self._wrap(other)
        if other is None:
            return NotImplemented
        return self + (-other)

    def __rsub__(self, other):
        other = self._wrap(other)
        if other is None:
            return NotImplemented
        return other + (-self)

    def __truediv__(self, other):
        """Division: a / b = a * b^(-1)"""
        other = self._wrap(other)
        if other is None:
            return NotImplemented
        return self * other.powi(-1)

    def __rtruediv__(self, other):
        other = self._wrap(other)
        if other is None:
            return NotImplemented
        return other * self.powi(-1)


def _is_integer(n):
    return isinstance(n, numbers.Integral) and not isinstance(n, (bool, np.bool_))


def _check_operand(node, operand):
    if not isinstance(operand, Expression):
        raise TypeError(
            f"{node} operands must be Expression nodes, got {type(operand).__name__}"
        )
    return operand


class Scalar(Expression):
    """
    A constant leaf: the base case of every expression tree.

    Its derivative is always the zero Scalar, so its gradient is always 0.

    Example:
        >>> c = Scalar(2.0)
        >>> c.evaluate()  # 2.0
        >>> c.differentiate()  # Scalar(0.0)
    """

    __slots__ = ('_value',)

    def __init__(self, value):
        if isinstance(value, Expression) or not isinstance(value, numbers.Real):
            raise TypeError(f"Scalar value must be a real number, got {type(value).__name__}")
        object.__setattr__(self, '_value', np.float64(value))

    @property
    def value(self):
        return self._value

    def _evaluate(self):
        return self._value

    def differentiate(self):
        return Scalar(0.0)

    def _gradient(self):
        # Defined through differentiate() so the two paths cannot disagree.
        return self.differentiate()._evaluate()

    def clone(self):
        return Scalar(self._value)

    def children(self):
        return ()

    def _args(self):
        return (float(self._value),)

    def __repr__(self):
        return f"Scalar({float(self._value)!r})"


class Add(Expression):
    """
    Sum of two sub-expressions.

    evaluate:      l + r
    gradient:      l' + r'           (sum rule)
    differentiate: Add(d(l), d(r))
    """

    __slots__ = ('_left', '_right')

    def __init__(self, left, right):
        object.__setattr__(self, '_left', _check_operand('Add', left))
        object.__setattr__(self, '_right', _check_operand('Add', right))

    @property
    def left(self):
        return self._left

    @property
    def right(self):
        return self._right

    def _evaluate(self):
        return self._left._evaluate() + self._right._evaluate()

    def _gradient(self):
        return self._left._gradient() + self._right._gradient()

    def differentiate(self):
        # Each operand feeds one branch only, so nothing needs copying.
        return Add(self._left.differentiate(), self._right.differentiate())

    def clone(self):
        return Add(self._left.clone(), self._right.clone())

    def children(self):
        return (self._left, self._right)

    def _args(self):
        return (self._left, self._right)

    def __repr__(self):
        return f"Add({self._left!r}, {self._right!r})"


class Mul(Expression):
    """
    Product of two sub-expressions.

    The product rule, d(l*r) = d(l)*r + l*d(r), needs each operand twice: once
    differentiated and once verbatim on the opposite side. The verbatim copies
    are taken with clone() so the derivative never shares nodes with its input.

    Example:
        >>> e = (Scalar(2.0) + Scalar(5.0)) * Scalar(3.0)
        >>> e.evaluate()  # 21.0
        >>> e.differentiate()
        Add(Mul(Add(Scalar(0.0), Scalar(0.0)), Scalar(3.0)), Mul(Add(Scalar(2.0), Scalar(5.0)), Scalar(0.0)))
    """

    __slots__ = ('_left', '_right')

    def __init__(self, left, right):
        object.__setattr__(self, '_left', _check_operand('Mul', left))
        object.__setattr__(self, '_right', _check_operand('Mul', right))

    @property
    def left(self):
        return self._left

    @property
    def right(self):
        return self._right

    def _evaluate(self):
        return self._left._evaluate() * self._right._evaluate()

    def _gradient(self):
        """Product rule evaluated directly: l' * r + l * r'"""
        lhs = self._left._gradient() * self._right._evaluate()
        rhs = self._left._evaluate() * self._right._gradient()
        return lhs + rhs

    def differentiate(self):
        lhs = Mul(self._left.differentiate(), self._right.clone())
        rhs = Mul(self._left.clone(), self._right.differentiate())
        return Add(lhs, rhs)

    def clone(self):
        return Mul(self._left.clone(), self._right.clone())

    def children(self):
        return (self._left, self._right)

    def _args(self):
        return (self._left, self._right)

    def __repr__(self):
        return f"Mul({self._left!r}, {self._right!r})"


class Powi(Expression):
    """
    A sub-expression raised to a fixed integer exponent.

    The power rule treats the operand itself as the variable:

    evaluate:      x^n
    gradient:      n * x^(n-1)
    differentiate: Scalar(n) * x^(n-1)

    No special cases are made for n = 0 or a zero operand; results follow
    IEEE-754 (x^0 = 1, 0^-1 = inf, 0 * inf = nan).

    Args:
        operand: Any Expression
        n: Integer exponent (int or numpy integer)
    """

    __slots__ = ('_operand', '_n')

    def __init__(self, operand, n):
        if not _is_integer(n):
            raise TypeError(f"Powi exponent must be an integer, got {type(n).__name__}")
        object.__setattr__(self, '_operand', _check_operand('Powi', operand))
        object.__setattr__(self, '_n', int(n))

    @property
    def operand(self):
        return self._operand

    @property
    def n(self):
        return self._n

    def _evaluate(self):
        return np.float64(self._operand._evaluate()) ** self._n

    def _gradient(self):
        return np.float64(self._n) * np.float64(self._operand._evaluate()) ** (self._n - 1)

    def differentiate(self):
        return Mul(Scalar(float(self._n)), Powi(self._operand.clone(), self._n - 1))

    def clone(self):
        return Powi(self._operand.clone(), self._n)

    def children(self):
        return (self._operand,)

    def _args(self):
        return (self._operand, self._n)

    def __repr__(self):
        return f"Powi({self._operand!r}, {self._n})"
