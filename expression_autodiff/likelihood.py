"""
Likelihood objectives built on the interpreter's Jacobian.

These are the loss/gradient callbacks an external optimizer (scipy's L-BFGS,
a hand-written SGD loop, ...) drives. Each call may look at a random
contiguous mini-batch of the training range; the batch position comes from
an explicit ``numpy.random.Generator`` so concurrent callers stay
reproducible with their own streams.
"""

from typing import Optional, Tuple

import numpy as np

from .dataset import Range
from .interpreter.interpreter import Interpreter, RowsLike, as_range


class LikelihoodBase:
    """
    Shared bookkeeping: target, training range, mini-batch selection, counters.
    """

    def __init__(self, interpreter: Interpreter, target, rows: RowsLike = None,
                 batch_size: Optional[int] = None, rng: Optional[np.random.Generator] = None):
        self.interpreter = interpreter
        self.target = np.asarray(target, dtype=np.float64).reshape(-1)
        if self.target.shape[0] != interpreter.dataset.rows:
            raise ValueError(f"Target has {self.target.shape[0]} rows, dataset has {interpreter.dataset.rows}")

        self.range = as_range(rows, interpreter.dataset)
        if batch_size is None:
            batch_size = interpreter.config.batch_size
        self.batch_size = self.range.size if batch_size == 0 else min(batch_size, self.range.size)
        self.rng = rng if rng is not None else np.random.default_rng(interpreter.config.seed)

        self._jacobian = np.empty((self.batch_size, self.num_parameters), dtype=np.float64, order='F')
        self._prediction = np.empty(self.batch_size, dtype=np.float64)
        self.function_evaluations = 0
        self.jacobian_evaluations = 0

    @property
    def num_parameters(self) -> int:
        return self.interpreter.coefficient_count

    @property
    def num_observations(self) -> int:
        return self.range.size

    def select_random_range(self) -> Range:
        if self.batch_size >= self.range.size:
            return self.range
        offset = int(self.rng.integers(0, self.range.size - self.batch_size, endpoint=True))
        return self.range.subrange(offset, self.batch_size)

    def _predict(self, x, rows: Range, gradient: bool) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        self.function_evaluations += 1
        if gradient:
            self.jacobian_evaluations += 1
            return self.interpreter.evaluate_jacobian(x, rows, jacobian=self._jacobian, result=self._prediction)
        return self.interpreter.evaluate(x, rows, result=self._prediction), None

    def __call__(self, x, gradient: bool = True):
        """Return ``(loss, gradient)``; the gradient is ``None`` when not requested."""
        raise NotImplementedError


class GaussianLikelihood(LikelihoodBase):
    """Sum of squared residuals scaled by a fixed noise level ``sigma``"""

    def __init__(self, interpreter: Interpreter, target, rows: RowsLike = None,
                 batch_size: Optional[int] = None, rng: Optional[np.random.Generator] = None,
                 sigma: float = 1.0):
        super().__init__(interpreter, target, rows, batch_size, rng)
        if sigma <= 0:
            raise ValueError(f"sigma must be positive, got {sigma}")
        self.sigma = float(sigma)

    def __call__(self, x, gradient: bool = True):
        rows = self.select_random_range()
        prediction, jacobian = self._predict(x, rows, gradient)
        error = prediction - self.target[rows.as_slice()]
        residual = error / (self.sigma * self.sigma)
        loss = 0.5 * float(np.dot(error, residual))
        if jacobian is None:
            return loss, None
        return loss, jacobian.T @ residual

    @staticmethod
    def compute_likelihood(prediction, target, sigma: float = 1.0) -> float:
        """Negative log-likelihood including the normalisation term"""
        r = (np.asarray(prediction, dtype=np.float64) - np.asarray(target, dtype=np.float64)) / sigma
        return float(0.5 * np.sum(r * r + np.log(2.0 * np.pi * sigma * sigma)))

    @staticmethod
    def compute_fisher_matrix(prediction, jacobian, sigma: float = 1.0) -> np.ndarray:
        jacobian = np.asarray(jacobian, dtype=np.float64)
        return jacobian.T @ jacobian / (sigma * sigma)


class PoissonLikelihood(LikelihoodBase):
    """Poisson negative log-likelihood for count targets.

    With ``log_input`` the tree models the log-rate, otherwise the rate itself.
    """

    def __init__(self, interpreter: Interpreter, target, rows: RowsLike = None,
                 batch_size: Optional[int] = None, rng: Optional[np.random.Generator] = None,
                 log_input: bool = True):
        super().__init__(interpreter, target, rows, batch_size, rng)
        self.log_input = log_input

    def __call__(self, x, gradient: bool = True):
        rows = self.select_random_range()
        prediction, jacobian = self._predict(x, rows, gradient)
        t = self.target[rows.as_slice()]
        with np.errstate(all='ignore'):
            if self.log_input:
                rate = np.exp(prediction)
                loss = float(np.sum(rate - t * prediction))
                weights = rate - t
            else:
                loss = float(np.sum(prediction - t * np.log(prediction)))
                weights = 1.0 - t / prediction
        if jacobian is None:
            return loss, None
        return loss, jacobian.T @ weights

    @staticmethod
    def compute_likelihood(prediction, target, log_input: bool = True) -> float:
        p = np.asarray(prediction, dtype=np.float64)
        t = np.asarray(target, dtype=np.float64)
        with np.errstate(all='ignore'):
            if log_input:
                return float(np.sum(np.exp(p) - p * t))
            return float(np.sum(p - t * np.log(p)))

    @staticmethod
    def compute_fisher_matrix(prediction, jacobian, log_input: bool = True) -> np.ndarray:
        p = np.asarray(prediction, dtype=np.float64)
        jacobian = np.asarray(jacobian, dtype=np.float64)
        scale = np.exp(p) if log_input else 1.0 / p
        return (scale[:, None] * jacobian).T @ jacobian
