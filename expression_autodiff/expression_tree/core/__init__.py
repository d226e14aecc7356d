"""Core expression tree components."""

from .node import Node
from .operators import (
    NodeType, ARITY_LIMITS, LEAF_TYPES, NARY_TYPES, BINARY_OP_MAP, UNARY_OP_MAP, OPERATOR_MAP,
    arity_supported, lookup_operator
)
from .subtree import enumerate_children, child_indices, subtree_indices, subtree_start

__all__ = [
    'Node', 'NodeType', 'ARITY_LIMITS', 'LEAF_TYPES', 'NARY_TYPES',
    'BINARY_OP_MAP', 'UNARY_OP_MAP', 'OPERATOR_MAP',
    'arity_supported', 'lookup_operator',
    'enumerate_children', 'child_indices', 'subtree_indices', 'subtree_start'
]
