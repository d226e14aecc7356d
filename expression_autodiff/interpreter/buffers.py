from typing import Optional
import numpy as np


class ReverseNodes:
  """Per-node reverse-pass storage.

  ``P[:, i]`` is the adjoint of node ``i`` (sensitivity of the root to it) and
  ``D[:, k, i]`` the adjoint contribution node ``i`` passes to its child slot
  ``k``. Both are column-major so every column is contiguous.
  """

  __slots__ = ('P', 'D')

  def __init__(self, P: np.ndarray, D: np.ndarray):
    if P.shape[0] != D.shape[0] or P.shape[1] != D.shape[2]:
      raise ValueError(f"Adjoint shape {P.shape} does not match partials shape {D.shape}")
    self.P = P
    self.D = D

  @classmethod
  def allocate(cls, rows: int, nodes: int, max_arity: int) -> 'ReverseNodes':
    P = np.zeros((rows, nodes), dtype=np.float64, order='F')
    D = np.zeros((rows, max(max_arity, 1), nodes), dtype=np.float64, order='F')
    return cls(P, D)

  @property
  def rows(self) -> int:
    return self.P.shape[0]

  @property
  def nodes(self) -> int:
    return self.P.shape[1]

  @property
  def max_arity(self) -> int:
    return self.D.shape[1]


class EvaluationBuffers:
  """Grow-only scratch storage reused across evaluations of the same caller.

  The returned arrays are views into storage that the next request may
  overwrite, so one instance must not be shared between threads.
  """

  def __init__(self):
    self._values: Optional[np.ndarray] = None
    self._adjoints: Optional[np.ndarray] = None
    self._partials: Optional[np.ndarray] = None

  @staticmethod
  def _fits(buffer: Optional[np.ndarray], shape) -> bool:
    return buffer is not None and all(have >= need for have, need in zip(buffer.shape, shape))

  @staticmethod
  def _grown(buffer: Optional[np.ndarray], shape):
    if buffer is None:
      return shape
    return tuple(max(have, need) for have, need in zip(buffer.shape, shape))

  def values(self, rows: int, nodes: int) -> np.ndarray:
    if not self._fits(self._values, (rows, nodes)):
      self._values = np.empty(self._grown(self._values, (rows, nodes)), dtype=np.float64, order='F')
    return self._values[:rows, :nodes]

  def reverse_nodes(self, rows: int, nodes: int, max_arity: int) -> ReverseNodes:
    arity = max(max_arity, 1)
    if not self._fits(self._adjoints, (rows, nodes)):
      self._adjoints = np.empty(self._grown(self._adjoints, (rows, nodes)), dtype=np.float64, order='F')
    if not self._fits(self._partials, (rows, arity, nodes)):
      self._partials = np.empty(self._grown(self._partials, (rows, arity, nodes)), dtype=np.float64, order='F')
    return ReverseNodes(self._adjoints[:rows, :nodes], self._partials[:rows, :arity, :nodes])

  def nbytes(self) -> int:
    return sum(b.nbytes for b in (self._values, self._adjoints, self._partials) if b is not None)

  def clear(self):
    self._values = None
    self._adjoints = None
    self._partials = None
