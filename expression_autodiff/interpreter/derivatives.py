"""
Reverse-mode derivative rules, one per operator.

Every rule has the signature ``rule(nodes, values, rnodes, i)`` and writes
``rnodes.D[:, k, i] = P_i * d(node_i)/d(child_k)`` for each child slot ``k``,
where ``P_i = rnodes.P[:, i]`` is the adjoint already assigned to node ``i``.
Child slot 0 sits at ``i - 1``; for binary nodes slot 1 starts at
``i - 1 - nodes[i - 1].length``.
"""

import numpy as np

from ..errors import UnsupportedArityError
from ..expression_tree.core.operators import (
  NodeType, LEAF_TYPES, analytic_quotient_derivative, product_excluding
)
from ..expression_tree.core.subtree import enumerate_children, child_indices


def _binary_children(nodes, i):
  j = i - 1
  return j, j - nodes[j].length


def _add(nodes, values, rnodes, i):
  p = rnodes.P[:, i]
  for k, _ in enumerate_children(nodes, i):
    np.copyto(rnodes.D[:, k, i], p)


def _sub(nodes, values, rnodes, i):
  p = rnodes.P[:, i]
  np.copyto(rnodes.D[:, 0, i], p)
  np.negative(p, out=rnodes.D[:, 1, i])


def _mul(nodes, values, rnodes, i):
  p = rnodes.P[:, i]
  if nodes[i].arity == 2:
    j, k = _binary_children(nodes, i)
    np.multiply(p, values[:, k], out=rnodes.D[:, 0, i])
    np.multiply(p, values[:, j], out=rnodes.D[:, 1, i])
  else:
    positions = np.fromiter(child_indices(nodes, i), dtype=np.int64, count=nodes[i].arity)
    for k in range(positions.shape[0]):
      product_excluding(values, positions, k, p, rnodes.D[:, k, i])


def _div(nodes, values, rnodes, i):
  n = nodes[i]
  if n.arity > 2:
    raise UnsupportedArityError(n.node_type, n.arity, i)

  p = rnodes.P[:, i]
  if n.arity == 1:
    x = values[:, i - 1]
    np.divide(-p, x * x, out=rnodes.D[:, 0, i])
  else:
    j, k = _binary_children(nodes, i)
    numerator, denominator = values[:, j], values[:, k]
    np.divide(p, denominator, out=rnodes.D[:, 0, i])
    np.divide(-p * numerator, denominator * denominator, out=rnodes.D[:, 1, i])


def _aq(nodes, values, rnodes, i):
  j, k = _binary_children(nodes, i)
  analytic_quotient_derivative(rnodes.P[:, i], values[:, j], values[:, k], values[:, i],
                               rnodes.D[:, 0, i], rnodes.D[:, 1, i])


def _pow(nodes, values, rnodes, i):
  # negative base with a fractional exponent gives NaN through log(x); kept as is
  p = rnodes.P[:, i]
  j, k = _binary_children(nodes, i)
  base, exponent = values[:, j], values[:, k]
  np.multiply(p * exponent, np.power(base, exponent - 1), out=rnodes.D[:, 0, i])
  np.multiply(p * values[:, i], np.log(base), out=rnodes.D[:, 1, i])


def _unary(local):
  """Rule for f(x); ``local(x, out)`` returns df/dx from the operand and the result"""
  def rule(nodes, values, rnodes, i):
    np.multiply(rnodes.P[:, i], local(values[:, i - 1], values[:, i]), out=rnodes.D[:, 0, i])
  return rule


DERIVATIVES = {
  NodeType.ADD: _add,
  NodeType.SUB: _sub,
  NodeType.MUL: _mul,
  NodeType.DIV: _div,
  NodeType.AQ: _aq,
  NodeType.POW: _pow,
  NodeType.EXP: _unary(lambda x, out: out),
  NodeType.LOG: _unary(lambda x, out: 1.0 / x),
  NodeType.LOG1P: _unary(lambda x, out: 1.0 / (x + 1.0)),
  NodeType.LOGABS: _unary(lambda x, out: np.sign(x) / np.abs(x)),
  NodeType.SIN: _unary(lambda x, out: np.cos(x)),
  NodeType.COS: _unary(lambda x, out: -np.sin(x)),
  NodeType.TAN: _unary(lambda x, out: out * out + 1.0),
  NodeType.TANH: _unary(lambda x, out: 1.0 - out * out),
  NodeType.ASIN: _unary(lambda x, out: 1.0 / np.sqrt(1.0 - x * x)),
  NodeType.ACOS: _unary(lambda x, out: -1.0 / np.sqrt(1.0 - x * x)),
  NodeType.ATAN: _unary(lambda x, out: 1.0 / (1.0 + x * x)),
  NodeType.SQRT: _unary(lambda x, out: 1.0 / (2.0 * out)),
  NodeType.SQRTABS: _unary(lambda x, out: np.sign(x) / (2.0 * out)),
  NodeType.CBRT: _unary(lambda x, out: 1.0 / (3.0 * out * out)),
}

_missing = [t.name for t in NodeType if t not in LEAF_TYPES and t not in DERIVATIVES]
if _missing:
  raise RuntimeError(f"No derivative rule for: {', '.join(_missing)}")
