"""
Columnar dataset view consumed by the interpreter.

Values are stored column-major so that the rows of one variable form a
contiguous block; ``get_values`` hands out read-only views into it.
Loading, shuffling and normalisation live outside this package.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

VariableKey = Union[str, int]


@dataclass(frozen=True)
class Range:
    """Half-open row interval ``[start, end)``"""
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid range [{self.start}, {self.end})")

    @property
    def size(self) -> int:
        return self.end - self.start

    def __len__(self) -> int:
        return self.size

    def as_slice(self) -> slice:
        return slice(self.start, self.end)

    def split(self, mid: int) -> Tuple['Range', 'Range']:
        if not self.start <= mid <= self.end:
            raise ValueError(f"Split point {mid} outside [{self.start}, {self.end})")
        return Range(self.start, mid), Range(mid, self.end)

    def subrange(self, offset: int, size: int) -> 'Range':
        """Range of ``size`` rows starting ``offset`` rows into this one"""
        if offset < 0 or offset + size > self.size:
            raise ValueError(f"Subrange ({offset}, {size}) does not fit in {self}")
        return Range(self.start + offset, self.start + offset + size)


@dataclass(frozen=True)
class Variable:
    name: str
    index: int


class Dataset:
    """
    Read-only numeric table addressed by variable name or column index.
    """

    def __init__(self, values, variable_names: Optional[Sequence[str]] = None):
        values = np.asarray(values, dtype=np.float64)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        if values.ndim != 2:
            raise ValueError(f"Dataset values must be 2-dimensional, got shape {values.shape}")

        self._values = np.asfortranarray(values).copy(order='F')
        self._values.setflags(write=False)

        if variable_names is None:
            variable_names = [f"X{i}" for i in range(values.shape[1])]
        variable_names = [str(name) for name in variable_names]
        if len(variable_names) != values.shape[1]:
            raise ValueError(f"Got {len(variable_names)} names for {values.shape[1]} columns")
        if len(set(variable_names)) != len(variable_names):
            raise ValueError("Variable names must be unique")

        self._variables: List[Variable] = [Variable(name, i) for i, name in enumerate(variable_names)]
        self._by_name: Dict[str, Variable] = {v.name: v for v in self._variables}

    @classmethod
    def from_columns(cls, columns: Dict[str, Sequence[float]]) -> 'Dataset':
        names = list(columns)
        return cls(np.column_stack([np.asarray(columns[n], dtype=np.float64) for n in names]), names)

    @property
    def rows(self) -> int:
        return self._values.shape[0]

    @property
    def cols(self) -> int:
        return self._values.shape[1]

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def variables(self) -> List[Variable]:
        return list(self._variables)

    @property
    def variable_names(self) -> List[str]:
        return [v.name for v in self._variables]

    def full_range(self) -> Range:
        return Range(0, self.rows)

    def get_variable(self, key: VariableKey) -> Variable:
        if isinstance(key, (int, np.integer)):
            if not 0 <= key < self.cols:
                raise KeyError(f"Column index {key} out of range for {self.cols} columns")
            return self._variables[int(key)]
        try:
            return self._by_name[key]
        except KeyError:
            raise KeyError(f"Unknown variable {key!r}") from None

    def get_values(self, key: VariableKey, rows: Optional[Range] = None) -> np.ndarray:
        """Contiguous read-only view of one column restricted to ``rows``"""
        if rows is None:
            rows = self.full_range()
        if rows.end > self.rows:
            raise ValueError(f"Range {rows} exceeds dataset with {self.rows} rows")
        return self._values[rows.as_slice(), self.get_variable(key).index]

    def __repr__(self) -> str:
        return f"Dataset(rows={self.rows}, variables={self.variable_names})"
