"""
Evaluation of many trees at once.

A single tree is evaluated sequentially; parallelism is across trees, each
worker owning its own interpreter and buffers. numpy releases the GIL in the
elementwise kernels, so threads are enough.
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence

import numpy as np

from ..config import EvaluationConfig
from ..dataset import Dataset
from ..expression_tree.tree import Tree
from ..logging_system import log_batch
from .interpreter import Interpreter, RowsLike, as_range


def spawn_generators(seed: Optional[int], n: int) -> List[np.random.Generator]:
  """Independent random streams, one per worker, reproducible from ``seed``."""
  return [np.random.default_rng(s) for s in np.random.SeedSequence(seed).spawn(n)]


def evaluate_trees(trees: Sequence[Tree], dataset: Dataset, rows: RowsLike = None,
                   coefficients: Optional[Sequence] = None,
                   config: Optional[EvaluationConfig] = None,
                   n_jobs: Optional[int] = None) -> np.ndarray:
  """Evaluate every tree over ``rows``; row ``t`` of the result belongs to ``trees[t]``.

  ``coefficients`` optionally gives one coefficient vector per tree, otherwise
  each tree's own initial values are used.
  """
  config = config or EvaluationConfig()
  rows = as_range(rows, dataset)
  if coefficients is not None and len(coefficients) != len(trees):
    raise ValueError(f"Got {len(coefficients)} coefficient vectors for {len(trees)} trees")

  result = np.empty((len(trees), rows.size), dtype=np.float64)
  if not trees:
    return result

  def work(t: int):
    interpreter = Interpreter(trees[t], dataset, config)
    c = None if coefficients is None else coefficients[t]
    interpreter.evaluate(c, rows, result=result[t])

  n_jobs = n_jobs or config.n_jobs or 1
  if n_jobs == 1 or len(trees) == 1:
    for t in range(len(trees)):
      work(t)
    return result

  start = time.perf_counter()
  with ThreadPoolExecutor(max_workers=n_jobs) as executor:
    futures = [executor.submit(work, t) for t in range(len(trees))]
    for fut in as_completed(futures):
      fut.result()
  log_batch(len(trees), rows.size, n_jobs, time.perf_counter() - start)
  return result
