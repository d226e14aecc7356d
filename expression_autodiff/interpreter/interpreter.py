import numpy as np
from typing import Optional, Tuple, Union

from ..config import EvaluationConfig
from ..dataset import Dataset, Range
from ..errors import InvalidTreeError
from ..expression_tree.tree import Tree
from ..expression_tree.utils.validator import TreeValidator
from ..logging_system import LogLevel, get_logger, log_debug
from .buffers import EvaluationBuffers, ReverseNodes
from .evaluator import forward
from .reverse import reverse, assemble_jacobian

RowsLike = Union[Range, range, Tuple[int, int], None]


def as_range(rows: RowsLike, dataset: Dataset) -> Range:
  if rows is None:
    return dataset.full_range()
  if isinstance(rows, Range):
    return rows
  if isinstance(rows, range):
    if rows.step != 1:
      raise ValueError("Row ranges must be contiguous")
    return Range(rows.start, rows.stop)
  start, end = rows
  return Range(int(start), int(end))


class Interpreter:
  """Evaluates and differentiates one tree against one dataset.

  The tree is only read. Scratch matrices live in ``buffers`` and are reused
  by every call, so an interpreter (or a shared ``EvaluationBuffers``) belongs
  to a single thread. Results handed back to the caller are copies unless an
  output array is passed in.
  """

  def __init__(self, tree: Tree, dataset: Dataset, config: Optional[EvaluationConfig] = None,
               buffers: Optional[EvaluationBuffers] = None):
    self.tree = tree
    self.dataset = dataset
    self.config = config or EvaluationConfig()
    self.buffers = buffers if buffers is not None else EvaluationBuffers()
    self._coefficient_count = tree.coefficient_count
    self._max_arity = tree.max_arity

  @property
  def coefficient_count(self) -> int:
    return self._coefficient_count

  def _prepare(self, coefficients, rows: RowsLike) -> Tuple[np.ndarray, Range]:
    if coefficients is None:
      coefficients = self.tree.get_coefficients()
    coefficients = np.asarray(coefficients, dtype=np.float64).reshape(-1)
    if coefficients.shape[0] < self._coefficient_count:
      raise ValueError(f"Tree uses {self._coefficient_count} coefficients, got {coefficients.shape[0]}")

    rows = as_range(rows, self.dataset)
    if rows.end > self.dataset.rows:
      raise ValueError(f"Range [{rows.start}, {rows.end}) exceeds dataset with {self.dataset.rows} rows")

    if self.config.check_tree:
      problems = TreeValidator.validate(self.tree, coefficients.shape[0])
      if problems:
        raise InvalidTreeError(problems)
    return coefficients, rows

  def _report_non_finite(self, result: np.ndarray):
    if get_logger().enabled(LogLevel.VERBOSE) and not np.isfinite(result).all():
      log_debug(f"Non-finite output for {self.tree.to_string()}")

  def _forward(self, coefficients: np.ndarray, rows: Range) -> np.ndarray:
    values = self.buffers.values(rows.size, len(self.tree))
    return forward(self.tree, self.dataset, rows, coefficients, values)

  def forward(self, coefficients=None, rows: RowsLike = None) -> np.ndarray:
    """Primal values of every node; a view into the scratch buffer."""
    return self._forward(*self._prepare(coefficients, rows))

  def evaluate(self, coefficients=None, rows: RowsLike = None, result: Optional[np.ndarray] = None) -> np.ndarray:
    """Tree output over ``rows``."""
    values = self.forward(coefficients, rows)
    primal = values[:, -1]
    if result is None:
      result = primal.copy()
    else:
      np.copyto(result, primal)
    self._report_non_finite(result)
    return result

  def _reverse(self, coefficients: np.ndarray, rows: Range) -> Tuple[np.ndarray, ReverseNodes]:
    values = self._forward(coefficients, rows)
    rnodes = self.buffers.reverse_nodes(values.shape[0], len(self.tree), self._max_arity)
    reverse(self.tree, values, rnodes)
    return values, rnodes

  def evaluate_jacobian(self, coefficients=None, rows: RowsLike = None,
                        jacobian: Optional[np.ndarray] = None,
                        result: Optional[np.ndarray] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Tree output and its Jacobian (rows x coefficients) with respect to the coefficients."""
    coefficients, rows = self._prepare(coefficients, rows)
    values, rnodes = self._reverse(coefficients, rows)
    n_rows, n_coefficients = values.shape[0], coefficients.shape[0]
    if jacobian is None:
      jacobian = np.empty((n_rows, n_coefficients), dtype=np.float64, order='F')
    elif jacobian.shape != (n_rows, n_coefficients):
      raise ValueError(f"Jacobian buffer has shape {jacobian.shape}, expected {(n_rows, n_coefficients)}")
    assemble_jacobian(self.tree, rnodes, jacobian)

    primal = values[:, -1]
    if result is None:
      result = primal.copy()
    else:
      np.copyto(result, primal)
    self._report_non_finite(result)
    return result, jacobian

  def adjoints(self, coefficients=None, rows: RowsLike = None) -> np.ndarray:
    """d(output)/d(node) for every node position, variable leaves included."""
    _, rnodes = self._reverse(*self._prepare(coefficients, rows))
    return rnodes.P.copy()


def evaluate(tree: Tree, dataset: Dataset, rows: RowsLike = None, coefficients=None) -> np.ndarray:
  return Interpreter(tree, dataset).evaluate(coefficients, rows)


def evaluate_jacobian(tree: Tree, dataset: Dataset, rows: RowsLike = None,
                      coefficients=None) -> Tuple[np.ndarray, np.ndarray]:
  return Interpreter(tree, dataset).evaluate_jacobian(coefficients, rows)
