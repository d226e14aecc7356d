from typing import Optional, Union
from .operators import NodeType, LEAF_TYPES, NARY_TYPES, ARITY_LIMITS, lookup_operator

VariableId = Union[str, int]


class Node:
  """One symbol of a postfix-encoded expression.

  ``length`` is the size of the subtree rooted at this node, the node itself
  included. Together with ``arity`` it is all that is needed to find the
  children, see :mod:`.subtree`.
  """

  __slots__ = ('node_type', 'arity', 'length', 'index', 'value', 'variable')

  def __init__(self, node_type: NodeType, arity: int = 0, length: int = 1,
               index: int = -1, value: float = 0.0, variable: Optional[VariableId] = None):
    self.node_type = NodeType(node_type)
    self.arity = int(arity)
    self.length = int(length)
    self.index = int(index)
    self.value = float(value)
    self.variable = variable

  @classmethod
  def constant(cls, value: float = 0.0, index: int = -1) -> 'Node':
    return cls(NodeType.CONSTANT, index=index, value=value)

  @classmethod
  def variable_ref(cls, variable: VariableId) -> 'Node':
    return cls(NodeType.VARIABLE, variable=variable)

  @classmethod
  def function(cls, operator, arity: Optional[int] = None) -> 'Node':
    """Operator node; ``arity`` defaults to the smallest the operator accepts
    (2 for add/mul). div must be given one explicitly, 1 is a reciprocal."""
    node_type = lookup_operator(operator)
    if node_type in LEAF_TYPES:
      raise ValueError(f"{node_type.name.lower()} is a leaf, use constant()/variable_ref()")
    if arity is None:
      if node_type == NodeType.DIV:
        raise ValueError("div needs an explicit arity: 1 (reciprocal) or 2 (quotient)")
      arity = ARITY_LIMITS[node_type][0]
    return cls(node_type, arity=arity)

  @property
  def is_leaf(self) -> bool:
    return self.node_type in LEAF_TYPES

  @property
  def is_constant(self) -> bool:
    return self.node_type == NodeType.CONSTANT

  @property
  def is_variable(self) -> bool:
    return self.node_type == NodeType.VARIABLE

  @property
  def is_nary(self) -> bool:
    return self.node_type in NARY_TYPES

  @property
  def name(self) -> str:
    if self.is_variable:
      return f"X{self.variable}" if isinstance(self.variable, int) else str(self.variable)
    return self.node_type.name.lower()

  def copy(self) -> 'Node':
    return Node(self.node_type, self.arity, self.length, self.index, self.value, self.variable)

  def __eq__(self, other) -> bool:
    if not isinstance(other, Node):
      return NotImplemented
    return (self.node_type == other.node_type and self.arity == other.arity
            and self.length == other.length and self.index == other.index
            and self.value == other.value and self.variable == other.variable)

  def __hash__(self) -> int:
    return hash((self.node_type, self.arity, self.length, self.index, self.value, self.variable))

  def __repr__(self) -> str:
    if self.is_constant:
      return f"Node(constant, index={self.index}, value={self.value:g})"
    if self.is_variable:
      return f"Node(variable, {self.variable!r})"
    return f"Node({self.name}, arity={self.arity}, length={self.length})"
