import numpy as np
import numba
from enum import IntEnum

class NodeType(IntEnum):
  # Arithmetic
  ADD = 0
  SUB = 1
  MUL = 2
  DIV = 3
  AQ = 4
  POW = 5
  # Unary functions
  EXP = 6
  LOG = 7
  LOG1P = 8
  LOGABS = 9
  SIN = 10
  COS = 11
  TAN = 12
  TANH = 13
  ASIN = 14
  ACOS = 15
  ATAN = 16
  SQRT = 17
  SQRTABS = 18
  CBRT = 19
  # Leaves
  CONSTANT = 20
  VARIABLE = 21

# Smallest and largest number of children each symbol accepts (None = unbounded)
ARITY_LIMITS = {
  NodeType.ADD: (2, None),
  NodeType.SUB: (2, 2),
  NodeType.MUL: (2, None),
  NodeType.DIV: (1, 2),  # 1 = reciprocal; Node.function requires the arity explicitly
  NodeType.AQ: (2, 2),
  NodeType.POW: (2, 2),
  NodeType.CONSTANT: (0, 0),
  NodeType.VARIABLE: (0, 0),
}
for _t in NodeType:
  ARITY_LIMITS.setdefault(_t, (1, 1))

LEAF_TYPES = frozenset({NodeType.CONSTANT, NodeType.VARIABLE})
NARY_TYPES = frozenset({NodeType.ADD, NodeType.MUL})

# Mapping dictionaries
BINARY_OP_MAP = {
  '+': NodeType.ADD, '-': NodeType.SUB, '*': NodeType.MUL, '/': NodeType.DIV,
  '^': NodeType.POW, 'aq': NodeType.AQ
}
UNARY_OP_MAP = {
  'exp': NodeType.EXP, 'log': NodeType.LOG, 'log1p': NodeType.LOG1P,
  'logabs': NodeType.LOGABS, 'sin': NodeType.SIN, 'cos': NodeType.COS,
  'tan': NodeType.TAN, 'tanh': NodeType.TANH, 'asin': NodeType.ASIN,
  'acos': NodeType.ACOS, 'atan': NodeType.ATAN, 'sqrt': NodeType.SQRT,
  'sqrtabs': NodeType.SQRTABS, 'cbrt': NodeType.CBRT
}
OPERATOR_MAP = {
  'add': NodeType.ADD, 'sub': NodeType.SUB, 'mul': NodeType.MUL, 'div': NodeType.DIV,
  'pow': NodeType.POW, **BINARY_OP_MAP, **UNARY_OP_MAP
}

# Infix symbols used by the string formatter
INFIX_SYMBOLS = {
  NodeType.ADD: '+', NodeType.SUB: '-', NodeType.MUL: '*', NodeType.DIV: '/', NodeType.POW: '^'
}


def arity_supported(node_type: NodeType, arity: int) -> bool:
  lo, hi = ARITY_LIMITS[node_type]
  return arity >= lo and (hi is None or arity <= hi)


def lookup_operator(name) -> NodeType:
  if isinstance(name, NodeType):
    return name
  try:
    return OPERATOR_MAP[name.lower()]
  except KeyError:
    raise ValueError(f"Unknown operator: {name!r}") from None


# Elementwise unary kernels, all writing into the destination column
UNARY_FUNCTIONS = {
  NodeType.EXP: np.exp,
  NodeType.LOG: np.log,
  NodeType.LOG1P: np.log1p,
  NodeType.SIN: np.sin,
  NodeType.COS: np.cos,
  NodeType.TAN: np.tan,
  NodeType.TANH: np.tanh,
  NodeType.ASIN: np.arcsin,
  NodeType.ACOS: np.arccos,
  NodeType.ATAN: np.arctan,
  NodeType.SQRT: np.sqrt,
  NodeType.CBRT: np.cbrt,
}


def evaluate_logabs(operand, out):
  np.abs(operand, out=out)
  return np.log(out, out=out)


def evaluate_sqrtabs(operand, out):
  np.abs(operand, out=out)
  return np.sqrt(out, out=out)


# numba kernels: error_model='numpy' so x/0 yields inf/nan instead of raising,
# and no fastmath so non-finite values propagate untouched.
@numba.njit(cache=True, error_model='numpy')
def analytic_quotient(numerator, denominator, out):
  for r in range(out.shape[0]):
    b = denominator[r]
    out[r] = numerator[r] / np.sqrt(1.0 + b * b)
  return out


@numba.njit(cache=True, error_model='numpy')
def analytic_quotient_derivative(adjoint, numerator, denominator, result, d_num, d_den):
  for r in range(result.shape[0]):
    a = numerator[r]
    q = result[r]
    d_num[r] = adjoint[r] * q / a
    d_den[r] = -adjoint[r] * denominator[r] * q * q * q / (a * a)


@numba.njit(cache=True, error_model='numpy')
def product_excluding(values, positions, skip, adjoint, out):
  """out = adjoint * prod(values[:, positions[m]] for m != skip)"""
  for r in range(out.shape[0]):
    acc = adjoint[r]
    for m in range(positions.shape[0]):
      if m != skip:
        acc *= values[r, positions[m]]
    out[r] = acc
  return out
