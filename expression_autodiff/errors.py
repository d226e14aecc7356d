"""Exceptions raised by the evaluation and differentiation engine."""

from typing import Optional


class ExpressionAutodiffError(Exception):
  """Base class for engine errors"""


class UnsupportedArityError(ExpressionAutodiffError, ValueError):
  """An operator was used with a number of children it has no rule for."""

  def __init__(self, node_type, arity: int, position: Optional[int] = None):
    self.node_type = node_type
    self.arity = arity
    self.position = position
    name = getattr(node_type, 'name', str(node_type)).lower()
    where = f" at position {position}" if position is not None else ""
    super().__init__(f"{name} does not support arity {arity}{where}")


class InvalidTreeError(ExpressionAutodiffError, ValueError):
  """Tree failed structural validation (only checked when requested)."""

  def __init__(self, problems):
    self.problems = list(problems)
    super().__init__("invalid tree: " + "; ".join(self.problems))
