"""
Reverse pass and Jacobian assembly.

The pass walks positions from the root down. A node's parent always sits at a
higher position and every node has exactly one parent, so each adjoint is
assigned once, by its parent, before the node itself is visited.
"""

import numpy as np

from ..expression_tree.tree import Tree
from ..expression_tree.core.subtree import enumerate_children
from .buffers import ReverseNodes
from .derivatives import DERIVATIVES
from .evaluator import check_arity


def reverse(tree: Tree, values: np.ndarray, rnodes: ReverseNodes) -> ReverseNodes:
  """Propagate adjoints from the root to every node.

  ``values`` must come from a completed forward pass over the same rows.
  Afterwards ``rnodes.P[:, i]`` is d(root)/d(node i) for every position.
  """
  nodes = tree.nodes
  n = len(nodes)
  if values.shape != (rnodes.rows, n) or rnodes.nodes != n:
    raise ValueError(f"Reverse buffers {rnodes.P.shape} do not match values {values.shape}")
  if rnodes.max_arity < tree.max_arity:
    raise ValueError(f"Reverse buffers hold {rnodes.max_arity} partials per node, tree needs {tree.max_arity}")

  P, D = rnodes.P, rnodes.D
  P[:, n - 1] = 1.0

  with np.errstate(all='ignore'):
    for i in range(n - 1, -1, -1):
      node = nodes[i]
      if node.is_leaf:
        continue
      check_arity(node, i)
      DERIVATIVES[node.node_type](nodes, values, rnodes, i)
      for k, j in enumerate_children(nodes, i):
        np.copyto(P[:, j], D[:, k, i])
  return rnodes


def assemble_jacobian(tree: Tree, rnodes: ReverseNodes, jacobian: np.ndarray) -> np.ndarray:
  """Write d(root)/d(coefficient c) into ``jacobian[:, c]``.

  The adjoint of a coefficient leaf already is the full chain-ruled derivative;
  leaves sharing a slot add up.
  """
  if jacobian.shape[0] != rnodes.rows:
    raise ValueError(f"Jacobian has {jacobian.shape[0]} rows, expected {rnodes.rows}")
  jacobian.fill(0.0)
  for i, node in enumerate(tree.nodes):
    if node.is_constant:
      jacobian[:, node.index] += rnodes.P[:, i]
  return jacobian
