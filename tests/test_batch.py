import numpy as np
import pytest

from expression_autodiff import Dataset, EvaluationConfig, Range, build_tree, evaluate, evaluate_trees, spawn_generators

from test_encoding import random_expression


@pytest.fixture
def dataset(rng):
    return Dataset(rng.uniform(0.5, 2.0, size=(50, 3)), ["x0", "x1", "x2"])


def test_parallel_matches_individual_evaluation(rng, dataset):
    trees = [build_tree(random_expression(rng, 4)) for _ in range(30)]
    batch = evaluate_trees(trees, dataset, rows=Range(10, 45), n_jobs=4)
    assert batch.shape == (30, 35)
    for t, tree in enumerate(trees):
        np.testing.assert_array_equal(batch[t], evaluate(tree, dataset, rows=Range(10, 45)))


def test_serial_and_parallel_agree(rng, dataset):
    trees = [build_tree(random_expression(rng, 3)) for _ in range(12)]
    serial = evaluate_trees(trees, dataset, n_jobs=1)
    parallel = evaluate_trees(trees, dataset, config=EvaluationConfig(n_jobs=3))
    np.testing.assert_array_equal(serial, parallel)


def test_per_tree_coefficients(dataset):
    tree = build_tree(('mul', 1.0, 'x0'))
    out = evaluate_trees([tree, tree], dataset, coefficients=[[2.0], [-1.0]], n_jobs=2)
    x0 = dataset.get_values("x0")
    np.testing.assert_allclose(out[0], 2.0 * x0)
    np.testing.assert_allclose(out[1], -x0)

    with pytest.raises(ValueError):
        evaluate_trees([tree, tree], dataset, coefficients=[[2.0]])


def test_no_trees(dataset):
    assert evaluate_trees([], dataset).shape == (0, dataset.rows)


def test_worker_errors_surface(dataset):
    trees = [build_tree(('sin', 'x0')), build_tree(('div', 'x0', 'x1', 'x2'))]
    with pytest.raises(ValueError):
        evaluate_trees(trees, dataset, n_jobs=2)


def test_spawned_generators_are_reproducible():
    first = [g.random(4) for g in spawn_generators(42, 3)]
    second = [g.random(4) for g in spawn_generators(42, 3)]
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a, b)
    # streams differ from each other
    assert not np.array_equal(first[0], first[1])
