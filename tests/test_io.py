"""
Unit tests for CSV tables and plotting.
"""

from pathlib import Path

import numpy as np
import pytest

from motion_replay.io import read_table_csv, table_to_columns, write_table_csv
from motion_replay.plotting import plot_imu_signals, plot_table
from motion_replay.table import TimeSeriesTable


class TestReadTableCsv:
    """Header, delimiter and metadata handling"""

    def test_comma_separated(self, tmp_path: Path) -> None:
        path = tmp_path / 'states.csv'
        path.write_text('time,/a/value,/a/speed\n0.0,1.0,2.0\n0.1,3.0,4.0\n', encoding='utf-8')

        table = read_table_csv(path)
        assert table.column_labels == ['/a/value', '/a/speed']
        assert table.time.tolist() == [0.0, 0.1]
        assert table.get_column('/a/speed').tolist() == [2.0, 4.0]

    def test_semicolon_separated_with_metadata(self, tmp_path: Path) -> None:
        path = tmp_path / 'states.csv'
        path.write_text('#inDegrees=yes\n# source = lab\n/a/value;time\n45;0.5\n', encoding='utf-8')

        table = read_table_csv(path)
        assert table.in_degrees
        assert table.metadata['source'] == 'lab'
        assert table.column_labels == ['/a/value']
        assert table.time.tolist() == [0.5]

    def test_header_only(self, tmp_path: Path) -> None:
        path = tmp_path / 'controls.csv'
        path.write_text('time,/forceset/motor\n', encoding='utf-8')
        table = read_table_csv(path)
        assert table.num_rows == 0
        assert table.num_columns == 1

    def test_missing_time_column(self, tmp_path: Path) -> None:
        path = tmp_path / 'bad.csv'
        path.write_text('t,/a/value\n0.0,1.0\n', encoding='utf-8')
        with pytest.raises(ValueError, match='time'):
            read_table_csv(path)

    def test_ragged_row(self, tmp_path: Path) -> None:
        path = tmp_path / 'bad.csv'
        path.write_text('time,/a/value\n0.0,1.0,2.0\n', encoding='utf-8')
        with pytest.raises(ValueError, match='row 2'):
            read_table_csv(path)


class TestWriteTableCsv:
    """Scalar and Vec3 output"""

    def test_scalar_table_read_back(self, tmp_path: Path) -> None:
        table = TimeSeriesTable.from_columns([0.0, 0.5], {'/j|angle': [0.25, -1.5]}, {'inDegrees': 'no'})
        path = tmp_path / 'out' / 'outputs.csv'
        write_table_csv(path, table)

        back = read_table_csv(path)
        assert back.column_labels == ['/j|angle']
        assert back.get_column('/j|angle').tolist() == [0.25, -1.5]
        assert back.metadata == {'inDegrees': 'no'}

    def test_vec3_columns_expanded(self, tmp_path: Path) -> None:
        data = np.arange(6, dtype=float).reshape(1, 2, 3)
        table = TimeSeriesTable([0.0], ['/a', '/b'], data)
        path = tmp_path / 'imu.csv'
        write_table_csv(path, table)

        header = path.read_text(encoding='utf-8').splitlines()[0]
        assert header == 'time,/a_x,/a_y,/a_z,/b_x,/b_y,/b_z'
        assert table_to_columns(table)['/b_y'].tolist() == [4.0]

    def test_header_only_table(self, tmp_path: Path) -> None:
        table = TimeSeriesTable([], ['/a'], np.zeros((0, 1, 3)))
        path = tmp_path / 'empty.csv'
        write_table_csv(path, table)

        back = read_table_csv(path)
        assert back.column_labels == ['/a_x', '/a_y', '/a_z']
        assert back.num_rows == 0

    def test_rotation_table_rejected(self, tmp_path: Path) -> None:
        table = TimeSeriesTable([0.0], ['/a'], np.zeros((1, 1, 3, 3)))
        with pytest.raises(ValueError):
            write_table_csv(tmp_path / 'r.csv', table)


class TestPlotting:
    """PNG files are produced"""

    def test_plot_table(self, tmp_path: Path) -> None:
        table = TimeSeriesTable.from_columns([0.0, 0.1], {'/a|x': [0.0, 1.0], '/b|x': [1.0, 0.0]})
        out = tmp_path / 'outputs.png'
        plot_table(table, out)
        assert out.stat().st_size > 0

    def test_plot_imu_signals(self, tmp_path: Path) -> None:
        table = TimeSeriesTable([0.0, 0.1], ['/imu'], np.ones((2, 1, 3)))
        out = tmp_path / 'imu.png'
        plot_imu_signals(table, out)
        assert out.stat().st_size > 0

    def test_plot_table_rejects_vectors(self, tmp_path: Path) -> None:
        table = TimeSeriesTable([0.0], ['/imu'], np.ones((1, 1, 3)))
        with pytest.raises(ValueError):
            plot_table(table, tmp_path / 'x.png')
