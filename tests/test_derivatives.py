import numpy as np
import pytest

from expression_autodiff import Dataset, Interpreter, ReverseNodes, UnsupportedArityError, build_tree
from expression_autodiff.interpreter.derivatives import DERIVATIVES
from expression_autodiff.expression_tree import NodeType

from conftest import check_against_finite_differences

# operand samples kept away from poles and domain edges
UNARY_DOMAINS = {
    'exp': (-2.0, 2.0),
    'log': (0.2, 3.0),
    'log1p': (-0.5, 3.0),
    'logabs': (0.3, 3.0),
    'sin': (-3.0, 3.0),
    'cos': (-3.0, 3.0),
    'tan': (-1.2, 1.2),
    'tanh': (-2.0, 2.0),
    'asin': (-0.9, 0.9),
    'acos': (-0.9, 0.9),
    'atan': (-3.0, 3.0),
    'sqrt': (0.2, 4.0),
    'sqrtabs': (0.2, 4.0),
    'cbrt': (0.2, 4.0),
}


@pytest.mark.parametrize("name", sorted(UNARY_DOMAINS))
def test_unary_rule_matches_finite_differences(rng, name):
    lo, hi = UNARY_DOMAINS[name]
    x = rng.uniform(lo, hi, size=32)
    dataset = Dataset(x.reshape(-1, 1), ["x"])
    tree = build_tree((name, ('add', 'x', 0.0)))
    check_against_finite_differences(tree, dataset, [0.0])


@pytest.mark.parametrize("name", ['logabs', 'sqrtabs', 'cbrt'])
def test_unary_rule_on_negative_operands(rng, name):
    x = -rng.uniform(0.3, 3.0, size=16)
    dataset = Dataset(x.reshape(-1, 1), ["x"])
    tree = build_tree((name, ('add', 'x', 0.0)))
    check_against_finite_differences(tree, dataset, [0.0])


@pytest.mark.parametrize("name", ['sub', 'div', 'aq', 'pow'])
def test_binary_rule_matches_finite_differences(rng, name):
    X = rng.uniform(0.5, 2.0, size=(32, 2))
    dataset = Dataset(X, ["x0", "x1"])
    tree = build_tree((name, ('add', 'x0', 0.1), ('add', 'x1', -0.2)))
    jacobian = check_against_finite_differences(tree, dataset)
    assert jacobian.shape == (32, 2)


@pytest.mark.parametrize("name", ['add', 'mul'])
@pytest.mark.parametrize("arity", [2, 3, 4])
def test_nary_rule_matches_finite_differences(rng, name, arity):
    X = rng.uniform(0.5, 2.0, size=(16, arity))
    names = [f"x{k}" for k in range(arity)]
    dataset = Dataset(X, names)
    tree = build_tree((name, *(('mul', 1.0 + 0.5 * k, n) for k, n in enumerate(names))))
    check_against_finite_differences(tree, dataset)


def test_nary_mul_adjoint_is_product_of_other_children(rng):
    X = rng.uniform(0.5, 2.0, size=(8, 4))
    dataset = Dataset(X, ["a", "b", "c", "d"])
    tree = build_tree(('mul', 'a', 'b', ('sin', 'c'), 'd'))
    P = Interpreter(tree, dataset).adjoints()
    a, b, c, d = X.T
    s = np.sin(c)
    children = dict((tree[j].name, j) for _, j in tree.children(len(tree) - 1))
    np.testing.assert_allclose(P[:, children['a']], b * s * d)
    np.testing.assert_allclose(P[:, children['b']], a * s * d)
    np.testing.assert_allclose(P[:, children['sin']], a * b * d)
    np.testing.assert_allclose(P[:, children['d']], a * b * s)


def test_unary_division_rule():
    dataset = Dataset(np.array([[2.0], [-4.0]]), ["x"])
    tree = build_tree(('div', ('mul', 1.0, 'x')))
    check_against_finite_differences(tree, dataset)
    P = Interpreter(tree, dataset).adjoints()
    # d(1/x)/dx at the mul node
    np.testing.assert_allclose(P[:, 2], [-0.25, -0.0625])


def test_pow_with_negative_base_gives_nan_without_raising():
    dataset = Dataset(np.array([[-2.0, 0.5], [2.0, 0.5]]), ["x0", "x1"])
    tree = build_tree(('pow', ('add', 'x0', 0.0), ('add', 'x1', 0.0)))
    result, jacobian = Interpreter(tree, dataset).evaluate_jacobian()
    assert np.isnan(result[0])
    assert np.isnan(jacobian[0]).all()
    assert np.isfinite(jacobian[1]).all()


def test_aq_left_partial_is_nan_at_zero_numerator():
    dataset = Dataset(np.array([[0.0, 1.0]]), ["x0", "x1"])
    tree = build_tree(('aq', ('add', 'x0', 0.0), 'x1'))
    result, jacobian = Interpreter(tree, dataset).evaluate_jacobian()
    assert result[0] == 0.0
    assert np.isnan(jacobian[0, 0])


def test_division_rule_rejects_three_children():
    tree = build_tree(('div', 'a', 'b', 'c'))
    rows, n = 2, len(tree)
    values = np.ones((rows, n), order='F')
    rnodes = ReverseNodes.allocate(rows, n, tree.max_arity)
    rnodes.P[:, -1] = 1.0
    with pytest.raises(UnsupportedArityError):
        DERIVATIVES[NodeType.DIV](tree.nodes, values, rnodes, n - 1)


def test_every_operator_has_a_rule():
    for t in NodeType:
        if t in (NodeType.CONSTANT, NodeType.VARIABLE):
            assert t not in DERIVATIVES
        else:
            assert t in DERIVATIVES
