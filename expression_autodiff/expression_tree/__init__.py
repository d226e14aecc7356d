"""Expression Tree Module

Postfix tree encoding and the index arithmetic used to walk it.
"""

from .tree import Tree, build_tree
from .core.node import Node
from .core.operators import (
    NodeType,
    ARITY_LIMITS,
    BINARY_OP_MAP,
    UNARY_OP_MAP,
    OPERATOR_MAP,
    arity_supported,
    lookup_operator
)
from .core.subtree import enumerate_children, child_indices, subtree_indices
from .utils import TreeValidator, to_sympy, from_sympy

__all__ = [
    "Tree", "build_tree", "Node",
    "NodeType", "ARITY_LIMITS", "BINARY_OP_MAP", "UNARY_OP_MAP", "OPERATOR_MAP",
    "arity_supported", "lookup_operator",
    "enumerate_children", "child_indices", "subtree_indices",
    "TreeValidator", "to_sympy", "from_sympy"
]
