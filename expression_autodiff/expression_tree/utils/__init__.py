"""Utilities for expression trees."""

from .validator import TreeValidator
from .sympy_utils import to_sympy, from_sympy, variable_symbol, coefficient_symbol

__all__ = [
    'TreeValidator',
    'to_sympy', 'from_sympy', 'variable_symbol', 'coefficient_symbol'
]
