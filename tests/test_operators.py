import numpy as np
import pytest

from symgrad import Add, Mul, Powi, Scalar


def test_numbers_are_wrapped():
    e = Scalar(2.0) + 3
    assert isinstance(e, Add) and isinstance(e.right, Scalar)
    assert e.evaluate() == 5.0

    e = 3 + Scalar(2.0)
    assert isinstance(e.left, Scalar) and e.left.value == 3.0

    e = 4 * Scalar(2.0)
    assert isinstance(e, Mul)
    assert e.evaluate() == 8.0
    assert (Scalar(2.0) * np.float64(0.5)).evaluate() == 1.0


def test_pow_operator_builds_powi():
    e = Scalar(3.0) ** 2
    assert isinstance(e, Powi) and e.n == 2
    assert e.evaluate() == 9.0
    assert (Scalar(2.0) ** np.int64(3)).evaluate() == 8.0


def test_pow_rejects_non_integer_exponent():
    with pytest.raises(TypeError):
        Scalar(2.0) ** 0.5
    with pytest.raises(TypeError):
        Scalar(2.0).powi(2.0)
    with pytest.raises(TypeError):
        Scalar(2.0).powi(True)


def test_derived_operators():
    a, b = Scalar(6.0), Scalar(2.0)
    assert (-a).evaluate() == -6.0
    assert (a - b).evaluate() == 4.0
    assert (10 - b).evaluate() == 8.0
    assert (a / b).evaluate() == 3.0
    assert (1 / b).evaluate() == 0.5


def test_derived_operators_only_use_core_nodes():
    e = (Scalar(6.0) - Scalar(2.0)) / Scalar(4.0)
    stack = [e]
    while stack:
        node = stack.pop()
        assert isinstance(node, (Scalar, Add, Mul, Powi))
        stack.extend(node.children())


def test_division_gradient():
    # gradient of the reciprocal node is -1 / x^2
    e = Scalar(1.0) / Scalar(2.0)
    assert e.gradient() == -0.25
    assert e.differentiate().evaluate() == -0.25


def test_composed_expression():
    e = ((Scalar(1.0) + Scalar(2.0)) * Scalar(3.0)).powi(3)
    assert e.evaluate() == 729.0
    assert e.gradient() == 3 * 9.0 ** 2
    assert e.differentiate().evaluate() == 243.0


def test_invalid_operands_raise_type_error():
    with pytest.raises(TypeError):
        Scalar(1.0) + "x"
    with pytest.raises(TypeError):
        Scalar(1.0) * None
    with pytest.raises(TypeError):
        Scalar(1.0) + 1j
    with pytest.raises(TypeError):
        Add(Scalar(1.0), 2.0)
    with pytest.raises(TypeError):
        Powi("x", 2)
    with pytest.raises(TypeError):
        Scalar("1.0")
    with pytest.raises(TypeError):
        Scalar(Scalar(1.0))
