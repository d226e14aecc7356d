import sympy as sp
import numpy as np

from ...errors import UnsupportedArityError
from ..core.operators import NodeType, arity_supported
from ..core.subtree import child_indices
from ..tree import Tree, build_tree

_UNARY_TO_SYMPY = {
  NodeType.EXP: sp.exp,
  NodeType.LOG: sp.log,
  NodeType.LOG1P: lambda x: sp.log(1 + x),
  NodeType.LOGABS: lambda x: sp.log(sp.Abs(x)),
  NodeType.SIN: sp.sin,
  NodeType.COS: sp.cos,
  NodeType.TAN: sp.tan,
  NodeType.TANH: sp.tanh,
  NodeType.ASIN: sp.asin,
  NodeType.ACOS: sp.acos,
  NodeType.ATAN: sp.atan,
  NodeType.SQRT: sp.sqrt,
  NodeType.SQRTABS: lambda x: sp.sqrt(sp.Abs(x)),
  # principal root: matches the numeric cbrt for non-negative arguments only
  NodeType.CBRT: sp.cbrt,
}

_SYMPY_TO_UNARY = {
  sp.exp: 'exp', sp.log: 'log', sp.sin: 'sin', sp.cos: 'cos', sp.tan: 'tan',
  sp.tanh: 'tanh', sp.asin: 'asin', sp.acos: 'acos', sp.atan: 'atan'
}


def variable_symbol(variable) -> sp.Symbol:
  if isinstance(variable, (int, np.integer)):
    return sp.Symbol(f'x{int(variable)}', real=True)
  return sp.Symbol(str(variable), real=True)


def coefficient_symbol(index: int) -> sp.Symbol:
  return sp.Symbol(f'c{index}', real=True)


def to_sympy(tree: Tree, coefficients=None, symbolic_coefficients: bool = False) -> sp.Expr:
  """Convert a tree to a SymPy expression.

  With ``symbolic_coefficients`` every coefficient leaf becomes a ``c<slot>``
  symbol, which is what the tests differentiate against.
  """
  nodes = tree.nodes
  values = tree.get_coefficients() if coefficients is None else np.asarray(coefficients, dtype=np.float64)
  converted = []

  # postfix order means every child is converted before its parent
  for i, n in enumerate(nodes):
    if n.is_constant:
      converted.append(coefficient_symbol(n.index) if symbolic_coefficients else sp.Float(values[n.index]))
      continue
    if n.is_variable:
      converted.append(variable_symbol(n.variable))
      continue
    if not arity_supported(n.node_type, n.arity):
      raise UnsupportedArityError(n.node_type, n.arity, i)

    args = [converted[j] for j in child_indices(nodes, i)]
    t = n.node_type
    if t == NodeType.ADD:
      expr = sp.Add(*args)
    elif t == NodeType.SUB:
      expr = args[0] - args[1]
    elif t == NodeType.MUL:
      expr = sp.Mul(*args)
    elif t == NodeType.DIV:
      expr = 1 / args[0] if n.arity == 1 else args[0] / args[1]
    elif t == NodeType.AQ:
      expr = args[0] / sp.sqrt(1 + args[1] ** 2)
    elif t == NodeType.POW:
      expr = sp.Pow(args[0], args[1])
    else:
      expr = _UNARY_TO_SYMPY[t](args[0])
    converted.append(expr)

  return converted[-1]


def _describe(expr):
  if expr.is_Symbol:
    return str(expr)
  if expr.is_number:
    return float(expr)
  if isinstance(expr, sp.Add):
    return ('add', *(_describe(a) for a in expr.args))
  if isinstance(expr, sp.Mul):
    return ('mul', *(_describe(a) for a in expr.args))
  if isinstance(expr, sp.Pow):
    base, exponent = expr.args
    if exponent == sp.Rational(1, 2):
      if isinstance(base, sp.Abs):
        return ('sqrtabs', _describe(base.args[0]))
      return ('sqrt', _describe(base))
    if exponent == sp.Rational(1, 3):
      return ('cbrt', _describe(base))
    if exponent == -1:
      return ('div', _describe(base))
    return ('pow', _describe(base), _describe(exponent))
  if isinstance(expr, sp.log) and isinstance(expr.args[0], sp.Abs):
    return ('logabs', _describe(expr.args[0].args[0]))
  if expr.func in _SYMPY_TO_UNARY:
    return (_SYMPY_TO_UNARY[expr.func], _describe(expr.args[0]))
  raise ValueError(f"Cannot convert {expr} ({expr.func.__name__}) to a tree")


def from_sympy(expr) -> Tree:
  """Build a tree from a SymPy expression or string.

  Sums and products stay n-ary, ``x**-1`` becomes a reciprocal, and numbers
  become coefficients numbered in postfix order.
  """
  if isinstance(expr, str):
    expr = sp.sympify(expr.replace('^', '**'))
  return build_tree(_describe(expr))
