"""Forward evaluation and reverse-mode differentiation of postfix trees."""

from .buffers import EvaluationBuffers, ReverseNodes
from .evaluator import forward, FORWARD
from .derivatives import DERIVATIVES
from .reverse import reverse, assemble_jacobian
from .interpreter import Interpreter, evaluate, evaluate_jacobian, as_range
from .batch import evaluate_trees, spawn_generators

__all__ = [
    'EvaluationBuffers', 'ReverseNodes',
    'forward', 'FORWARD', 'DERIVATIVES',
    'reverse', 'assemble_jacobian',
    'Interpreter', 'evaluate', 'evaluate_jacobian', 'as_range',
    'evaluate_trees', 'spawn_generators'
]
