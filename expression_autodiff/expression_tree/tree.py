import numpy as np
from numbers import Real
from typing import Iterable, Iterator, List, Optional, Sequence

from .core.node import Node
from .core.operators import NodeType, INFIX_SYMBOLS
from .core.subtree import enumerate_children, child_indices


class Tree:
  """Expression stored as a postfix sequence of nodes (children before parents).

  The tree is treated as read-only by the interpreter; editing helpers return
  new trees. ``nodes[-1]`` is the root.
  """

  __slots__ = ('_nodes', '_string_cache')

  def __init__(self, nodes: Iterable[Node]):
    self._nodes = tuple(nodes)
    self._string_cache: Optional[str] = None
    if not self._nodes:
      raise ValueError("A tree needs at least one node")

  @property
  def nodes(self) -> Sequence[Node]:
    return self._nodes

  def __len__(self) -> int:
    return len(self._nodes)

  def __getitem__(self, i: int) -> Node:
    return self._nodes[i]

  def __iter__(self) -> Iterator[Node]:
    return iter(self._nodes)

  @property
  def root(self) -> Node:
    return self._nodes[-1]

  @property
  def max_arity(self) -> int:
    return max(n.arity for n in self._nodes)

  def children(self, i: int):
    return enumerate_children(self._nodes, i)

  def coefficient_positions(self) -> List[int]:
    return [i for i, n in enumerate(self._nodes) if n.is_constant]

  @property
  def coefficient_count(self) -> int:
    return max((n.index + 1 for n in self._nodes if n.is_constant), default=0)

  def get_coefficients(self) -> np.ndarray:
    """Initial coefficient values, indexed by slot"""
    coefficients = np.zeros(self.coefficient_count, dtype=np.float64)
    for n in self._nodes:
      if n.is_constant and n.index >= 0:
        coefficients[n.index] = n.value
    return coefficients

  def with_coefficients(self, coefficients) -> 'Tree':
    coefficients = np.asarray(coefficients, dtype=np.float64)
    if coefficients.shape != (self.coefficient_count,):
      raise ValueError(f"Expected {self.coefficient_count} coefficients, got shape {coefficients.shape}")
    nodes = [n.copy() for n in self._nodes]
    for n in nodes:
      if n.is_constant and n.index >= 0:
        n.value = float(coefficients[n.index])
    return Tree(nodes)

  def variables(self) -> List:
    seen = []
    for n in self._nodes:
      if n.is_variable and n.variable not in seen:
        seen.append(n.variable)
    return seen

  def update_nodes(self) -> 'Tree':
    """Recompute subtree lengths and number coefficient slots in position order.

    This is the only place lengths are derived; every other consumer trusts them.
    """
    nodes = [n.copy() for n in self._nodes]
    slot = 0
    for i, n in enumerate(nodes):
      n.length = 1
      j = i - 1
      for _ in range(n.arity):
        if j < 0:
          raise ValueError(f"Node {i} ({n.name}) is missing children")
        n.length += nodes[j].length
        j -= nodes[j].length
      if n.is_constant:
        n.index = slot
        slot += 1
    if nodes[-1].length != len(nodes):
      raise ValueError(f"Root spans {nodes[-1].length} of {len(nodes)} nodes")
    return Tree(nodes)

  def to_string(self, coefficients=None, precision: int = 3) -> str:
    if self._string_cache is None or coefficients is not None:
      values = self.get_coefficients() if coefficients is None else np.asarray(coefficients, dtype=np.float64)
      text = self._format(len(self._nodes) - 1, values, precision)
      if coefficients is not None:
        return text
      self._string_cache = text
    return self._string_cache

  def _format(self, i: int, coefficients: np.ndarray, precision: int) -> str:
    n = self._nodes[i]
    if n.is_constant:
      value = coefficients[n.index] if 0 <= n.index < len(coefficients) else n.value
      return f"{value:.{precision}f}"
    if n.is_variable:
      return n.name
    args = [self._format(j, coefficients, precision) for j in child_indices(self._nodes, i)]
    if n.node_type == NodeType.DIV and n.arity == 1:
      return f"(1 / {args[0]})"
    if n.node_type in INFIX_SYMBOLS:
      return "(" + f" {INFIX_SYMBOLS[n.node_type]} ".join(args) + ")"
    return f"{n.name}({', '.join(args)})"

  def __eq__(self, other) -> bool:
    if not isinstance(other, Tree):
      return False
    return self._nodes == other._nodes

  def __hash__(self) -> int:
    return hash(self._nodes)

  def __repr__(self) -> str:
    return f"Tree({self.to_string()})"


def _emit(expr, nodes: List[Node]):
  if isinstance(expr, Node):
    if not expr.is_leaf:
      raise ValueError("Only leaf nodes can be passed directly, wrap operators in a tuple")
    nodes.append(expr.copy())
  elif isinstance(expr, str):
    nodes.append(Node.variable_ref(expr))
  elif isinstance(expr, Real):
    nodes.append(Node.constant(float(expr)))
  elif isinstance(expr, (tuple, list)) and expr:
    operator, *args = expr
    # slot 0 must end right before the parent, so children go in reversed
    for arg in reversed(args):
      _emit(arg, nodes)
    nodes.append(Node.function(operator, arity=len(args)))
  else:
    raise ValueError(f"Cannot build a tree node from {expr!r}")


def build_tree(expr) -> Tree:
  """Build a tree from a nested description.

  Strings become variable references, numbers become coefficients (slots are
  numbered in postfix position order) and ``(operator, *children)`` tuples
  become operator nodes, e.g. ``('mul', ('add', 'x0', 1.0), 'x1')``.
  """
  nodes: List[Node] = []
  _emit(expr, nodes)
  return Tree(nodes).update_nodes()
