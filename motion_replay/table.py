from __future__ import annotations

from collections.abc import Sequence

import numpy as np


class TimeSeriesTable:
    """
    Time-indexed table with labelled columns.

    data has shape (rows, columns) for scalar values, or
    (rows, columns, *value_shape) for vector (3,) / rotation (3, 3) values.
    metadata holds string key/values (e.g. inDegrees=yes).
    """

    def __init__(
        self,
        time: Sequence[float] | np.ndarray,
        labels: Sequence[str],
        data: np.ndarray,
        metadata: dict[str, str] | None = None,
    ) -> None:
        t = np.asarray(time, dtype=float).reshape(-1)
        labels = [str(l) for l in labels]
        arr = np.asarray(data, dtype=float)
        if arr.ndim == 1 and t.size == 0:
            arr = arr.reshape(0, len(labels))
        if arr.ndim < 2:
            raise ValueError(f'Table data must be at least 2-D (rows, columns), got shape {arr.shape}.')
        if arr.shape[0] != t.size:
            raise ValueError(f'Table has {t.size} time values but {arr.shape[0]} data rows.')
        if arr.shape[1] != len(labels):
            raise ValueError(f'Table has {len(labels)} labels but {arr.shape[1]} data columns.')
        dupes = sorted({l for l in labels if labels.count(l) > 1})
        if dupes:
            raise ValueError(f'Table column labels must be unique; duplicated: {dupes}')

        self._time = t
        self._labels = labels
        self._data = arr
        self.metadata: dict[str, str] = dict(metadata or {})

    @classmethod
    def from_columns(
        cls,
        time: Sequence[float] | np.ndarray,
        columns: dict[str, Sequence[float] | np.ndarray],
        metadata: dict[str, str] | None = None,
    ) -> TimeSeriesTable:
        labels = list(columns)
        t = np.asarray(time, dtype=float).reshape(-1)
        if not labels:
            return cls(t, [], np.zeros((t.size, 0), dtype=float), metadata)
        data = np.stack([np.asarray(columns[l], dtype=float) for l in labels], axis=1)
        return cls(t, labels, data, metadata)

    @classmethod
    def from_rows(
        cls,
        time: Sequence[float],
        labels: Sequence[str],
        rows: Sequence[Sequence],
        value_shape: tuple[int, ...] = (),
        metadata: dict[str, str] | None = None,
    ) -> TimeSeriesTable:
        if len(rows) == 0:
            data = np.zeros((0, len(labels)) + tuple(value_shape), dtype=float)
        else:
            data = np.asarray(rows, dtype=float).reshape((len(rows), len(labels)) + tuple(value_shape))
        return cls(time, labels, data, metadata)

    # --- shape ---

    @property
    def num_rows(self) -> int:
        return int(self._time.size)

    @property
    def num_columns(self) -> int:
        return len(self._labels)

    @property
    def value_shape(self) -> tuple[int, ...]:
        return tuple(self._data.shape[2:])

    def __len__(self) -> int:
        return self.num_rows

    # --- access ---

    @property
    def time(self) -> np.ndarray:
        return self._time.copy()

    @property
    def column_labels(self) -> list[str]:
        return list(self._labels)

    @property
    def data(self) -> np.ndarray:
        return self._data.copy()

    def has_column(self, label: str) -> bool:
        return label in self._labels

    def column_index(self, label: str) -> int:
        try:
            return self._labels.index(label)
        except ValueError:
            raise KeyError(f'No column labelled {label!r}.') from None

    def get_column(self, label: str) -> np.ndarray:
        return self._data[:, self.column_index(label)].copy()

    def get_row(self, index: int) -> np.ndarray:
        return self._data[index].copy()

    @property
    def in_degrees(self) -> bool:
        return str(self.metadata.get('inDegrees', 'no')).strip().lower() == 'yes'

    def __repr__(self) -> str:
        return (
            f'TimeSeriesTable(rows={self.num_rows}, columns={self.num_columns}, '
            f'value_shape={self.value_shape})'
        )
