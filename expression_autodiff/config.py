"""
Evaluation settings shared by the interpreter, batch evaluation and the
likelihood adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


@dataclass
class EvaluationConfig:
  check_tree: bool = False       # validate lengths/arity before every pass
  batch_size: int = 0            # rows per likelihood mini-batch, 0 = whole range
  n_jobs: Optional[int] = None   # workers for multi-tree evaluation
  seed: Optional[int] = None     # root seed for spawned random streams

  def __post_init__(self):
    if self.batch_size < 0:
      raise ValueError(f"batch_size must be >= 0, got {self.batch_size}")
    if self.n_jobs is not None and self.n_jobs < 1:
      raise ValueError(f"n_jobs must be >= 1, got {self.n_jobs}")

  @classmethod
  def from_dict(cls, values: Dict[str, Any]) -> 'EvaluationConfig':
    """Build a config, ignoring keys that are not settings."""
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in values.items() if k in known})
