"""
Logging for the expression autodiff engine

Level-gated wrapper around the ``expression_autodiff`` logger. The evaluation
passes are hot loops, so they only report hard failures (unsupported arity)
and, when asked for everything, non-finite outputs. Fits and multi-tree runs
get one summary line each.
"""

import logging
import sys
from typing import Optional
from enum import Enum
from datetime import datetime


class LogLevel(Enum):
    """Verbosity levels for the engine"""
    SILENT = 0      # Nothing at all
    MINIMAL = 1     # Arity failures and failed fits
    MODERATE = 2    # Fit outcomes
    DETAILED = 3    # Multi-tree evaluation summaries
    VERBOSE = 4     # Non-finite outputs and optimizer internals


class AutodiffLogger:
    """
    Engine logger writing to stderr (and optionally a file)
    """

    def __init__(self, log_level: LogLevel = LogLevel.MINIMAL,
                 log_to_file: bool = False, log_file_path: Optional[str] = None):
        self.log_level = log_level

        self.logger = logging.getLogger('expression_autodiff')
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()
        self.logger.propagate = False

        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s', datefmt='%H:%M:%S')

        if self.log_level != LogLevel.SILENT:
            stream = logging.StreamHandler(sys.stderr)
            stream.setFormatter(formatter)
            self.logger.addHandler(stream)

        if log_to_file:
            if log_file_path is None:
                log_file_path = f"expression_autodiff_{datetime.now():%Y%m%d_%H%M%S}.log"
            file_handler = logging.FileHandler(log_file_path)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    def enabled(self, required_level: LogLevel) -> bool:
        return self.log_level != LogLevel.SILENT and self.log_level.value >= required_level.value

    def critical(self, message: str):
        """Malformed trees; shown at every level except silent"""
        if self.log_level != LogLevel.SILENT:
            self.logger.error(f"CRITICAL: {message}")

    def warning(self, message: str):
        if self.enabled(LogLevel.MINIMAL):
            self.logger.warning(message)

    def info(self, message: str, required_level: LogLevel = LogLevel.MODERATE):
        if self.enabled(required_level):
            self.logger.info(message)

    def debug(self, message: str):
        if self.enabled(LogLevel.VERBOSE):
            self.logger.debug(f"DEBUG: {message}")

    def fit_summary(self, method: str, expression: str, success: bool, loss: float,
                    function_evaluations: int, jacobian_evaluations: int):
        """One line per coefficient fit; failures are warnings"""
        message = (f"{method} fit {'ok' if success else 'FAILED'}: {expression} "
                   f"loss={loss:.6g} f_evals={function_evaluations} j_evals={jacobian_evaluations}")
        if success:
            self.info(message, LogLevel.MODERATE)
        else:
            self.warning(message)

    def batch_summary(self, n_trees: int, rows: int, workers: int, elapsed: float):
        if self.enabled(LogLevel.DETAILED):
            self.logger.info(f"Evaluated {n_trees} trees x {rows} rows on {workers} workers ({elapsed:.3f}s)")


_global_logger: Optional[AutodiffLogger] = None


def get_logger() -> AutodiffLogger:
    """Get or create the global logger instance"""
    global _global_logger
    if _global_logger is None:
        _global_logger = AutodiffLogger()
    return _global_logger


def set_log_level(level: LogLevel):
    global _global_logger
    if _global_logger is None:
        _global_logger = AutodiffLogger(log_level=level)
    else:
        _global_logger.log_level = level


def configure_logging(log_level: LogLevel = LogLevel.MINIMAL,
                      log_to_file: bool = False,
                      log_file_path: Optional[str] = None) -> AutodiffLogger:
    """Replace the global logger, e.g. to add a log file"""
    global _global_logger
    _global_logger = AutodiffLogger(log_level, log_to_file, log_file_path)
    return _global_logger


def log_critical(message: str):
    get_logger().critical(message)


def log_debug(message: str):
    get_logger().debug(message)


def log_fit(method: str, expression: str, success: bool, loss: float,
            function_evaluations: int, jacobian_evaluations: int):
    get_logger().fit_summary(method, expression, success, loss, function_evaluations, jacobian_evaluations)


def log_batch(n_trees: int, rows: int, workers: int, elapsed: float):
    get_logger().batch_summary(n_trees, rows, workers, elapsed)
