"""
Unit tests for TimeSeriesTable and component path parsing.
"""

import numpy as np
import pytest

from motion_replay.errors import DiscreteVariableLabelError
from motion_replay.paths import ComponentPath
from motion_replay.table import TimeSeriesTable


class TestTimeSeriesTable:
    """Shape checks and column access"""

    def test_from_columns(self) -> None:
        table = TimeSeriesTable.from_columns([0.0, 1.0], {'a': [1.0, 2.0], 'b': [3.0, 4.0]})
        assert table.num_rows == 2
        assert table.num_columns == 2
        assert table.get_row(1).tolist() == [2.0, 4.0]

    def test_duplicate_labels_rejected(self) -> None:
        with pytest.raises(ValueError, match='duplicated'):
            TimeSeriesTable([0.0], ['a', 'a'], np.zeros((1, 2)))

    def test_row_count_must_match_time(self) -> None:
        with pytest.raises(ValueError):
            TimeSeriesTable([0.0, 1.0], ['a'], np.zeros((3, 1)))

    def test_unknown_column(self) -> None:
        table = TimeSeriesTable.from_columns([0.0], {'a': [1.0]})
        with pytest.raises(KeyError):
            table.get_column('b')

    def test_data_is_a_copy(self) -> None:
        table = TimeSeriesTable.from_columns([0.0], {'a': [1.0]})
        table.data[0, 0] = 99.0
        assert table.get_column('a')[0] == 1.0

    def test_in_degrees_metadata(self) -> None:
        assert TimeSeriesTable.from_columns([0.0], {'a': [1.0]}, {'inDegrees': 'Yes'}).in_degrees
        assert not TimeSeriesTable.from_columns([0.0], {'a': [1.0]}).in_degrees


class TestComponentPath:
    """<path_to_component>/<name> labels"""

    def test_split(self) -> None:
        path = ComponentPath.parse('/forceset/soleus/override_actuation')
        assert path.parent == '/forceset/soleus'
        assert path.name == 'override_actuation'
        assert str(path) == '/forceset/soleus/override_actuation'

    def test_relative_path(self) -> None:
        assert ComponentPath.parse('forceset/soleus/x').parent == 'forceset/soleus'

    @pytest.mark.parametrize('label', ['override_actuation', '/forceset/soleus/', '/override_actuation'])
    def test_malformed(self, label: str) -> None:
        with pytest.raises(DiscreteVariableLabelError):
            ComponentPath.parse(label)
