"""
Forward (primal) pass.

Nodes are visited in increasing position; postfix order guarantees that the
columns of a node's children are already filled when the node is reached.
Domain errors are not intercepted: log(-1), 1/0 and friends come out as
NaN/Inf and are left for the caller's fitness policy.
"""

import numpy as np

from ..dataset import Dataset, Range
from ..errors import UnsupportedArityError
from ..expression_tree.tree import Tree
from ..expression_tree.core.operators import (
  NodeType, LEAF_TYPES, UNARY_FUNCTIONS, arity_supported,
  evaluate_logabs, evaluate_sqrtabs, analytic_quotient
)
from ..expression_tree.core.subtree import child_indices
from ..logging_system import log_critical


def _add(nodes, values, i, out):
  first, second, *rest = child_indices(nodes, i)
  np.add(values[:, first], values[:, second], out=out)
  for j in rest:
    np.add(out, values[:, j], out=out)


def _sub(nodes, values, i, out):
  j = i - 1
  k = j - nodes[j].length
  np.subtract(values[:, j], values[:, k], out=out)


def _mul(nodes, values, i, out):
  first, second, *rest = child_indices(nodes, i)
  np.multiply(values[:, first], values[:, second], out=out)
  for j in rest:
    np.multiply(out, values[:, j], out=out)


def _div(nodes, values, i, out):
  j = i - 1
  if nodes[i].arity == 1:
    np.divide(1.0, values[:, j], out=out)
  else:
    k = j - nodes[j].length
    np.divide(values[:, j], values[:, k], out=out)


def _aq(nodes, values, i, out):
  j = i - 1
  k = j - nodes[j].length
  analytic_quotient(values[:, j], values[:, k], out)


def _pow(nodes, values, i, out):
  j = i - 1
  k = j - nodes[j].length
  np.power(values[:, j], values[:, k], out=out)


def _unary(function):
  def apply(nodes, values, i, out):
    function(values[:, i - 1], out=out)
  return apply


FORWARD = {
  NodeType.ADD: _add,
  NodeType.SUB: _sub,
  NodeType.MUL: _mul,
  NodeType.DIV: _div,
  NodeType.AQ: _aq,
  NodeType.POW: _pow,
  NodeType.LOGABS: _unary(evaluate_logabs),
  NodeType.SQRTABS: _unary(evaluate_sqrtabs),
}
FORWARD.update({t: _unary(f) for t, f in UNARY_FUNCTIONS.items()})

_missing = [t.name for t in NodeType if t not in LEAF_TYPES and t not in FORWARD]
if _missing:
  raise RuntimeError(f"No forward rule for: {', '.join(_missing)}")


def check_arity(node, position: int):
  if not arity_supported(node.node_type, node.arity):
    error = UnsupportedArityError(node.node_type, node.arity, position)
    log_critical(str(error))
    raise error


def forward(tree: Tree, dataset: Dataset, rows: Range, coefficients: np.ndarray, values: np.ndarray) -> np.ndarray:
  """Fill ``values`` (rows x nodes) with the primal value of every node.

  Column ``i`` holds node ``i``; the last column is the tree output.
  """
  nodes = tree.nodes
  if values.shape != (rows.size, len(nodes)):
    raise ValueError(f"Values buffer has shape {values.shape}, expected {(rows.size, len(nodes))}")

  with np.errstate(all='ignore'):
    for i, n in enumerate(nodes):
      out = values[:, i]
      if n.node_type == NodeType.CONSTANT:
        out.fill(coefficients[n.index])
      elif n.node_type == NodeType.VARIABLE:
        np.copyto(out, dataset.get_values(n.variable, rows))
      else:
        check_arity(n, i)
        FORWARD[n.node_type](nodes, values, i, out)
  return values
