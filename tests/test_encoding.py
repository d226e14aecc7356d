import numpy as np
import pytest

from expression_autodiff import (
    Node, NodeType, Tree, TreeValidator, build_tree, child_indices, enumerate_children, subtree_indices
)

UNARY = ['exp', 'log', 'sin', 'cos', 'sqrt', 'tanh', 'cbrt']
BINARY = ['sub', 'div', 'aq', 'pow']
NARY = ['add', 'mul']


def random_expression(rng, depth):
    if depth == 0 or rng.random() < 0.25:
        if rng.random() < 0.5:
            return f"x{rng.integers(0, 3)}"
        return float(rng.normal())
    kind = rng.integers(0, 3)
    if kind == 0:
        return (UNARY[rng.integers(0, len(UNARY))], random_expression(rng, depth - 1))
    if kind == 1:
        return (BINARY[rng.integers(0, len(BINARY))],
                random_expression(rng, depth - 1), random_expression(rng, depth - 1))
    arity = int(rng.integers(2, 5))
    return (NARY[rng.integers(0, 2)], *(random_expression(rng, depth - 1) for _ in range(arity)))


def test_children_of_scenario_tree():
    tree = build_tree(('mul', ('add', 'x0', 0.0), 'x1'))

    # postfix layout: x1, c0, x0, add, mul
    assert [n.node_type for n in tree] == [
        NodeType.VARIABLE, NodeType.CONSTANT, NodeType.VARIABLE, NodeType.ADD, NodeType.MUL
    ]
    assert list(enumerate_children(tree.nodes, 4)) == [(0, 3), (1, 0)]
    assert list(enumerate_children(tree.nodes, 3)) == [(0, 2), (1, 1)]
    assert tree[3].length == 3
    assert tree.root.length == len(tree) == 5


def test_child_lengths_sum_to_parent_length(rng):
    for _ in range(50):
        tree = build_tree(random_expression(rng, 4))
        nodes = tree.nodes
        for i, n in enumerate(nodes):
            children = list(child_indices(nodes, i))
            assert len(children) == n.arity
            assert sum(nodes[j].length for j in children) == n.length - 1


def test_subtree_indices_cover_descendants(rng):
    for _ in range(20):
        tree = build_tree(random_expression(rng, 4))
        nodes = tree.nodes
        for i, n in enumerate(nodes):
            descendants = list(subtree_indices(nodes, i))
            assert len(descendants) == n.length - 1
            assert all(j < i for j in descendants)
            # every child is a descendant
            assert set(child_indices(nodes, i)) <= set(descendants)


def test_nary_children_are_left_to_right():
    tree = build_tree(('add', 'a', 'b', ('sin', 'c')))
    nodes = tree.nodes
    names = []
    for _, j in enumerate_children(nodes, len(nodes) - 1):
        names.append(nodes[j].name)
    assert names == ['a', 'b', 'sin']


def test_coefficient_slots_follow_position_order():
    tree = build_tree(('add', ('mul', 2.0, 'x'), 3.0))
    positions = tree.coefficient_positions()
    assert [tree[p].index for p in positions] == list(range(len(positions)))
    assert tree.coefficient_count == 2
    assert sorted(tree.get_coefficients()) == [2.0, 3.0]


def test_with_coefficients_returns_new_tree():
    tree = build_tree(('mul', 2.0, 'x'))
    changed = tree.with_coefficients([5.0])
    assert tree.get_coefficients()[0] == 2.0
    assert changed.get_coefficients()[0] == 5.0
    with pytest.raises(ValueError):
        tree.with_coefficients([1.0, 2.0])


def test_update_nodes_rejects_missing_children():
    with pytest.raises(ValueError):
        Tree([Node.variable_ref('x'), Node.function('sub')]).update_nodes()


def test_build_tree_rejects_unknown_operator():
    with pytest.raises(ValueError):
        build_tree(('frobnicate', 'x'))


def test_to_string():
    tree = build_tree(('div', ('add', 'x0', 1.0), ('sin', 'x1')))
    assert tree.to_string() == "((x0 + 1.000) / sin(x1))"
    assert build_tree(('div', 'x')).to_string() == "(1 / x)"


def test_validator_reports_broken_lengths():
    tree = build_tree(('add', 'x0', ('exp', 'x1')))
    assert TreeValidator.is_valid(tree)

    nodes = [n.copy() for n in tree]
    nodes[-1].length = 7
    problems = TreeValidator.validate(Tree(nodes))
    assert any("length" in p for p in problems)

    nodes = [n.copy() for n in tree]
    nodes[1].length = 5
    assert not TreeValidator.is_valid(Tree(nodes))


def test_validator_reports_unsupported_arity():
    tree = build_tree(('div', 'a', 'b', 'c'))
    assert TreeValidator.validate(tree) == []
    assert not TreeValidator.is_valid(tree)


def test_node_equality_and_copy():
    node = Node.constant(1.5, index=0)
    clone = node.copy()
    assert clone == node and clone is not node
    clone.value = 2.0
    assert clone != node
    assert Node.function('add', arity=3).arity == 3
    assert Node.function('mul').is_nary and not Node.function('sub').is_nary
    with pytest.raises(ValueError):
        Node.function('constant')


def test_div_requires_explicit_arity():
    with pytest.raises(ValueError, match="explicit arity"):
        Node.function('div')
    assert Node.function('div', arity=1).arity == 1
    assert Node.function('div', arity=2).arity == 2
