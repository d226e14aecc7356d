"""
Coefficient fitting through scipy, fed with the analytic Jacobian.

Deciding when to fit, and how the optimizer steps, stays with the caller and
with scipy respectively; these helpers only wire the two together.
"""

import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.optimize import curve_fit, minimize, OptimizeWarning

from .config import EvaluationConfig
from .dataset import Dataset
from .errors import ExpressionAutodiffError
from .expression_tree.tree import Tree
from .interpreter.interpreter import Interpreter, RowsLike, as_range
from .likelihood import GaussianLikelihood, LikelihoodBase
from .logging_system import log_debug, log_fit


@dataclass
class OptimizationResult:
  coefficients: np.ndarray
  success: bool
  loss: float
  function_evaluations: int = 0
  jacobian_evaluations: int = 0
  message: str = ""


def _sum_of_squares(interpreter: Interpreter, coefficients, rows, target) -> float:
  residual = interpreter.evaluate(coefficients, rows) - target
  return 0.5 * float(np.dot(residual, residual))


def _fit_least_squares(interpreter: Interpreter, target, rows, iterations: int) -> OptimizationResult:
  rows = as_range(rows, interpreter.dataset)
  y = np.asarray(target, dtype=np.float64).reshape(-1)[rows.as_slice()]
  x0 = interpreter.tree.get_coefficients()
  counters = {'f': 0, 'j': 0}

  def model(_, *params):
    counters['f'] += 1
    return interpreter.evaluate(np.asarray(params), rows)

  def jacobian(_, *params):
    counters['j'] += 1
    return interpreter.evaluate_jacobian(np.asarray(params), rows)[1]

  try:
    with warnings.catch_warnings():
      warnings.simplefilter("error", OptimizeWarning)
      popt, _ = curve_fit(model, np.arange(rows.size), y, p0=x0, jac=jacobian,
                          method='lm', maxfev=iterations)
  except ExpressionAutodiffError:
    # arity and validation errors propagate unchanged
    raise
  except (OptimizeWarning, RuntimeError, ValueError, TypeError) as e:
    # non-finite residuals or no convergence: keep the initial coefficients
    log_debug(f"least squares failed for {interpreter.tree.to_string()}: {e}")
    return OptimizationResult(x0, False, _sum_of_squares(interpreter, x0, rows, y),
                              counters['f'], counters['j'], str(e))

  return OptimizationResult(np.asarray(popt, dtype=np.float64), True,
                            _sum_of_squares(interpreter, popt, rows, y),
                            counters['f'], counters['j'])


def _fit_likelihood(likelihood: LikelihoodBase, iterations: int) -> OptimizationResult:
  x0 = likelihood.interpreter.tree.get_coefficients()
  f_start, j_start = likelihood.function_evaluations, likelihood.jacobian_evaluations
  with np.errstate(all='ignore'):
    summary = minimize(likelihood, x0, jac=True, method='L-BFGS-B', options={'maxiter': iterations})
  f_evals = likelihood.function_evaluations - f_start
  j_evals = likelihood.jacobian_evaluations - j_start

  success = bool(summary.success) and bool(np.all(np.isfinite(summary.x)))
  if success:
    return OptimizationResult(np.asarray(summary.x, dtype=np.float64), True, float(summary.fun),
                              f_evals, j_evals, str(summary.message))
  # report the loss of the coefficients handed back, not of the abandoned iterate
  with np.errstate(all='ignore'):
    loss = likelihood(x0, gradient=False)[0]
  return OptimizationResult(x0, False, loss, f_evals, j_evals, str(summary.message))


def optimize_coefficients(tree: Tree, dataset: Dataset, target, rows: RowsLike = None,
                          method: str = 'lm', iterations: int = 100,
                          likelihood: Optional[LikelihoodBase] = None,
                          config: Optional[EvaluationConfig] = None,
                          rng: Optional[np.random.Generator] = None) -> OptimizationResult:
  """Fit the coefficients of ``tree`` to ``target``.

  ``method='lm'`` runs Levenberg-Marquardt through ``curve_fit``;
  ``method='lbfgs'`` minimises ``likelihood`` (Gaussian by default) with
  L-BFGS-B. The tree itself is not modified, apply the result with
  ``tree.with_coefficients(result.coefficients)``.
  """
  interpreter = Interpreter(tree, dataset, config)
  if interpreter.coefficient_count == 0:
    return OptimizationResult(np.zeros(0), False, float('nan'), message="tree has no coefficients")

  if method == 'lm':
    result = _fit_least_squares(interpreter, target, rows, iterations)
  elif method == 'lbfgs':
    if likelihood is None:
      likelihood = GaussianLikelihood(interpreter, target, rows, rng=rng)
    result = _fit_likelihood(likelihood, iterations)
  else:
    raise ValueError(f"Unknown optimization method: {method!r}")

  log_fit(method, tree.to_string(), result.success, result.loss,
          result.function_evaluations, result.jacobian_evaluations)
  return result
