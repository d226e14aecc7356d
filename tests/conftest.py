import numpy as np
import pytest

from expression_autodiff import Dataset, Interpreter


def finite_difference_jacobian(interpreter, coefficients, rows=None, h=1e-6):
    """Central differences of the tree output with respect to each coefficient"""
    coefficients = np.asarray(coefficients, dtype=np.float64)
    columns = []
    for c in range(coefficients.shape[0]):
        step = np.zeros_like(coefficients)
        step[c] = h
        upper = interpreter.evaluate(coefficients + step, rows)
        lower = interpreter.evaluate(coefficients - step, rows)
        columns.append((upper - lower) / (2 * h))
    return np.column_stack(columns)


def check_against_finite_differences(tree, dataset, coefficients=None, rtol=1e-4, atol=1e-6):
    interpreter = Interpreter(tree, dataset)
    if coefficients is None:
        coefficients = tree.get_coefficients()
    _, jacobian = interpreter.evaluate_jacobian(coefficients)
    expected = finite_difference_jacobian(interpreter, coefficients)
    np.testing.assert_allclose(jacobian, expected, rtol=rtol, atol=atol)
    return jacobian


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def scenario_dataset():
    return Dataset(np.array([[2.0, 5.0], [3.0, 7.0]]), ["x0", "x1"])
