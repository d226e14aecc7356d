import numpy as np
import pytest

from expression_autodiff import (
    Dataset, Interpreter, LogLevel, UnsupportedArityError, build_tree, configure_logging, evaluate,
    optimize_coefficients
)


@pytest.fixture
def restore_logging():
    yield
    configure_logging(LogLevel.MINIMAL)


def test_arity_failures_are_logged(restore_logging, capsys):
    configure_logging(LogLevel.MINIMAL)
    dataset = Dataset(np.ones((2, 3)), ["a", "b", "c"])
    with pytest.raises(UnsupportedArityError):
        evaluate(build_tree(('div', 'a', 'b', 'c')), dataset)
    assert "div does not support arity 3" in capsys.readouterr().err


def test_non_finite_output_is_logged_when_verbose(restore_logging, capsys):
    configure_logging(LogLevel.VERBOSE)
    dataset = Dataset(np.array([[-1.0]]), ["x"])
    evaluate(build_tree(('log', 'x')), dataset)
    assert "Non-finite output for log(x)" in capsys.readouterr().err


def test_silent_level_suppresses_output(restore_logging, capsys):
    configure_logging(LogLevel.SILENT)
    dataset = Dataset(np.ones((2, 3)), ["a", "b", "c"])
    with pytest.raises(UnsupportedArityError):
        evaluate(build_tree(('div', 'a', 'b', 'c')), dataset)
    assert capsys.readouterr().err == ""


def test_failed_fit_is_a_warning(restore_logging, capsys):
    configure_logging(LogLevel.MINIMAL)
    dataset = Dataset(np.array([[1.0], [2.0], [3.0]]), ["x"])
    target = np.array([1.0, np.nan, 3.0])
    result = optimize_coefficients(build_tree(('mul', 1.0, 'x')), dataset, target)
    assert not result.success
    err = capsys.readouterr().err
    assert "WARNING" in err and "lm fit FAILED" in err


def test_non_finite_jacobian_output_is_logged_when_verbose(restore_logging, capsys):
    configure_logging(LogLevel.VERBOSE)
    dataset = Dataset(np.array([[-1.0], [2.0]]), ["x"])
    Interpreter(build_tree(('log', ('mul', 1.0, 'x'))), dataset).evaluate_jacobian()
    assert "Non-finite output" in capsys.readouterr().err


def test_non_finite_output_is_quiet_below_verbose(restore_logging, capsys):
    configure_logging(LogLevel.MINIMAL)
    dataset = Dataset(np.array([[-1.0], [2.0]]), ["x"])
    interpreter = Interpreter(build_tree(('log', ('mul', 1.0, 'x'))), dataset)
    interpreter.evaluate()
    interpreter.evaluate_jacobian()
    assert capsys.readouterr().err == ""


def test_arity_failure_inside_fit_is_logged_once(restore_logging, capsys):
    configure_logging(LogLevel.MINIMAL)
    dataset = Dataset(np.ones((5, 3)), ["a", "b", "c"])
    tree = build_tree(('add', ('div', 'a', 'b', 'c'), 1.0))
    with pytest.raises(UnsupportedArityError):
        optimize_coefficients(tree, dataset, np.ones(5), method='lm')
    err = capsys.readouterr().err
    assert err.count("does not support arity 3") == 1
    assert "fit FAILED" not in err
