# Python

"""Expression Autodiff Package

Postfix-encoded expression trees with a vectorised forward evaluator and
reverse-mode differentiation with respect to the tree coefficients.
"""

from .expression_tree import (
  Tree, Node, NodeType, build_tree, enumerate_children, child_indices, subtree_indices,
  TreeValidator, to_sympy, from_sympy
)
from .dataset import Dataset, Range, Variable
from .config import EvaluationConfig
from .errors import ExpressionAutodiffError, UnsupportedArityError, InvalidTreeError
from .interpreter import (
  Interpreter, EvaluationBuffers, ReverseNodes, evaluate, evaluate_jacobian,
  evaluate_trees, spawn_generators
)
from .likelihood import GaussianLikelihood, PoissonLikelihood
from .constant_optimization import optimize_coefficients, OptimizationResult
from .logging_system import LogLevel, configure_logging, get_logger, set_log_level

__version__ = "0.1.0"
__all__ = [
  "Tree", "Node", "NodeType", "build_tree",
  "enumerate_children", "child_indices", "subtree_indices",
  "TreeValidator", "to_sympy", "from_sympy",
  "Dataset", "Range", "Variable", "EvaluationConfig",
  "ExpressionAutodiffError", "UnsupportedArityError", "InvalidTreeError",
  "Interpreter", "EvaluationBuffers", "ReverseNodes", "evaluate", "evaluate_jacobian",
  "evaluate_trees", "spawn_generators",
  "GaussianLikelihood", "PoissonLikelihood",
  "optimize_coefficients", "OptimizationResult",
  "LogLevel", "configure_logging", "get_logger", "set_log_level"
]
