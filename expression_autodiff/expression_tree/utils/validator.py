from typing import List, Optional

from ..core.operators import arity_supported
from ..tree import Tree


class TreeValidator:
  """Structural checks for postfix trees.

  The interpreter trusts ``length`` fields; this is the opt-in bounds check
  used when ``EvaluationConfig.check_tree`` is set. Arity problems are left
  to the interpreter, which reports them as ``UnsupportedArityError``.
  """

  @staticmethod
  def validate(tree: Tree, coefficient_count: Optional[int] = None, check_arity: bool = False) -> List[str]:
    nodes = tree.nodes
    problems = []

    for i, n in enumerate(nodes):
      if check_arity and not arity_supported(n.node_type, n.arity):
        problems.append(f"node {i} ({n.name}) has unsupported arity {n.arity}")

      if n.is_leaf:
        if n.arity != 0 or n.length != 1:
          problems.append(f"leaf {i} ({n.name}) has arity {n.arity} and length {n.length}")
        if n.is_constant and n.index < 0:
          problems.append(f"coefficient {i} has no slot")
        if n.is_constant and coefficient_count is not None and n.index >= coefficient_count:
          problems.append(f"coefficient {i} uses slot {n.index} but only {coefficient_count} given")
        if n.is_variable and n.variable is None:
          problems.append(f"variable {i} has no column reference")
        continue

      expected = 1
      j = i - 1
      for k in range(n.arity):
        if j < 0:
          problems.append(f"node {i} ({n.name}) is missing child {k}")
          break
        if nodes[j].length < 1:
          problems.append(f"node {j} has non-positive length {nodes[j].length}")
          break
        expected += nodes[j].length
        j -= nodes[j].length
      else:
        if n.length != expected:
          problems.append(f"node {i} ({n.name}) has length {n.length}, children add up to {expected}")

    if nodes[-1].length != len(nodes):
      problems.append(f"root spans {nodes[-1].length} of {len(nodes)} nodes")

    return problems

  @staticmethod
  def is_valid(tree: Tree, coefficient_count: Optional[int] = None) -> bool:
    return not TreeValidator.validate(tree, coefficient_count, check_arity=True)
