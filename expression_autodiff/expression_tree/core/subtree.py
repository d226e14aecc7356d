"""
Index arithmetic over postfix-encoded trees.

Every node's children precede it. Child slot 0 is the subtree ending right
before its parent, at ``i - 1``; slot ``k + 1`` ends just before slot ``k``
starts, i.e. at ``j - nodes[j].length`` where ``j`` is the end of slot ``k``.
Nothing here validates the ``length`` fields.
"""

from typing import Iterator, Sequence, Tuple

from .node import Node


def enumerate_children(nodes: Sequence[Node], i: int) -> Iterator[Tuple[int, int]]:
  """Yield ``(slot, position)`` for the direct children of node ``i``."""
  j = i - 1
  for k in range(nodes[i].arity):
    yield k, j
    j -= nodes[j].length


def child_indices(nodes: Sequence[Node], i: int) -> Iterator[int]:
  for _, j in enumerate_children(nodes, i):
    yield j


def subtree_indices(nodes: Sequence[Node], i: int) -> Iterator[int]:
  """Yield the positions of every descendant of node ``i``, in increasing order."""
  return iter(range(subtree_start(nodes, i), i))


def subtree_start(nodes: Sequence[Node], i: int) -> int:
  """Position of the first (leftmost in storage) node of the subtree rooted at ``i``"""
  return i - nodes[i].length + 1
