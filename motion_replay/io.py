"""CSV reading and writing for time-series tables."""

from __future__ import annotations

import csv
from pathlib import Path

import numpy as np

from motion_replay.table import TimeSeriesTable

TIME_COLUMN = 'time'
VEC3_SUFFIXES = ('_x', '_y', '_z')


def _detect_delimiter(header_line: str) -> str:
    semicolons = header_line.count(';')
    commas = header_line.count(',')
    return ';' if semicolons >= commas and semicolons > 0 else ','


def _parse_number(s: str) -> float:
    s = s.strip()
    if not s:
        return float('nan')
    return float(s)


def _parse_metadata(line: str, metadata: dict[str, str]) -> None:
    body = line.lstrip('#').strip()
    if '=' not in body:
        return
    key, value = body.split('=', 1)
    metadata[key.strip()] = value.strip()


def read_table_csv(path: Path) -> TimeSeriesTable:
    """
    Read a scalar table. Lines starting with '#' before the header carry
    metadata as key=value (e.g. "#inDegrees=yes"). The first non-comment line
    is the header and must contain a "time" column.
    """
    text = path.read_text(encoding='utf-8')
    metadata: dict[str, str] = {}
    lines: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith('#'):
            if not lines:
                _parse_metadata(line, metadata)
            continue
        lines.append(line)

    if not lines:
        raise ValueError(f'{path.name}: no header line.')

    delimiter = _detect_delimiter(lines[0])
    headers = [h.strip() for h in lines[0].split(delimiter)]
    lowered = [h.lower() for h in headers]
    if TIME_COLUMN not in lowered:
        raise ValueError(f'{path.name}: missing {TIME_COLUMN!r} column in header {headers}.')
    col_time = lowered.index(TIME_COLUMN)
    labels = [h for i, h in enumerate(headers) if i != col_time]

    time: list[float] = []
    rows: list[list[float]] = []
    for n, line in enumerate(lines[1:], start=2):
        parts = line.split(delimiter)
        if len(parts) != len(headers):
            raise ValueError(f'{path.name}: row {n} has {len(parts)} fields, expected {len(headers)}.')
        values = [_parse_number(p) for p in parts]
        time.append(values[col_time])
        rows.append([v for i, v in enumerate(values) if i != col_time])

    return TimeSeriesTable.from_rows(time, labels, rows, metadata=metadata)


def _expanded_headers(table: TimeSeriesTable) -> list[str]:
    shape = table.value_shape
    if shape == ():
        return table.column_labels
    if shape == (3,):
        return [f'{label}{s}' for label in table.column_labels for s in VEC3_SUFFIXES]
    raise ValueError(f'Cannot write table with value shape {shape} to CSV.')


def table_to_columns(table: TimeSeriesTable) -> dict[str, np.ndarray]:
    """Flatten a table into {header: column}, using the CSV header names."""
    headers = _expanded_headers(table)
    flat = table.data.reshape(table.num_rows, len(headers))
    return {h: flat[:, j] for j, h in enumerate(headers)}


def write_table_csv(path: Path, table: TimeSeriesTable) -> None:
    """Write a scalar or Vec3 table; vector columns become <label>_x/_y/_z."""
    columns = table_to_columns(table)
    time = table.time

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open('w', newline='', encoding='utf-8') as f:
        for key, value in table.metadata.items():
            f.write(f'#{key}={value}\n')
        w = csv.writer(f)
        w.writerow([TIME_COLUMN] + list(columns))
        for i in range(table.num_rows):
            row = [f'{time[i]:.6f}']
            row += [f'{col[i]:.9g}' for col in columns.values()]
            w.writerow(row)
