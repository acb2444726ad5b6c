from __future__ import annotations

import logging
from collections.abc import Iterator

import numpy as np

from motion_replay.engine import ROTATIONAL, Coordinate, Model, SystemState
from motion_replay.errors import MissingColumnsError, PreconditionError, UnknownLabelError
from motion_replay.labels import create_system_y_index_map
from motion_replay.table import TimeSeriesTable

logger = logging.getLogger(__name__)


def _rotational_labels(model: Model) -> set[str]:
    labels: set[str] = set()
    for c in model.component_list(Coordinate):
        if c.motion_type == ROTATIONAL:
            labels.add(f'{c.absolute_path}/value')
            labels.add(f'{c.absolute_path}/speed')
    return labels


class StateReconstructor:
    """
    Build a full SystemState from each row of a states table.

    Columns are matched to y slots by label once, up front. Model state
    variables without a column keep their default values (only when
    allow_missing_columns is set). Prescribed motions are enforced after the
    row is loaded.

    The row is not projected onto the model's kinematic constraints; a
    trajectory that violates them yields wrong constraint-dependent outputs.
    """

    def __init__(
        self,
        model: Model,
        states_table: TimeSeriesTable,
        *,
        allow_missing_columns: bool = False,
        allow_extra_columns: bool = False,
    ) -> None:
        if states_table.value_shape != ():
            raise PreconditionError('States table must hold scalar columns.')

        self.model = model
        self.table = states_table

        y_index_map = create_system_y_index_map(model)
        labels = states_table.column_labels

        missing = [name for name in y_index_map if name not in labels]
        if missing and not allow_missing_columns:
            raise MissingColumnsError(
                f'States table is missing {len(missing)} state variable(s) of the model: {missing}. '
                'Use allow_missing_columns=True to keep default values for them.'
            )
        extra = [l for l in labels if l not in y_index_map]
        if extra and not allow_extra_columns:
            raise UnknownLabelError(
                f'States table has column(s) that are not state variables of the model: {extra}. '
                'Use allow_extra_columns=True to ignore them.'
            )
        if missing:
            logger.debug('States table lacks %d state variable(s); using defaults.', len(missing))
        if extra:
            logger.debug('Ignoring %d non-state column(s) in states table.', len(extra))

        used = [l for l in labels if l in y_index_map]
        columns = [states_table.column_index(l) for l in used]
        self._slots = np.array([y_index_map[l] for l in used], dtype=int)

        scale = np.ones(len(used), dtype=float)
        if states_table.in_degrees:
            rotational = _rotational_labels(model)
            for i, label in enumerate(used):
                if label in rotational:
                    scale[i] = np.pi / 180.0
        self._rows = states_table.data[:, columns] * scale[np.newaxis, :]
        self._time = states_table.time

    def __len__(self) -> int:
        return self.table.num_rows

    def state_at(self, index: int) -> SystemState:
        state = self.model.initialize_state()
        state.set_time(float(self._time[index]))
        y = np.array(state.y, dtype=float)
        y[self._slots] = self._rows[index]
        state.set_y(y)
        self.model.prescribe(state)
        return state

    def __iter__(self) -> Iterator[SystemState]:
        for i in range(len(self)):
            yield self.state_at(i)


def states_from_table(
    model: Model,
    states_table: TimeSeriesTable,
    *,
    allow_missing_columns: bool = False,
    allow_extra_columns: bool = False,
) -> list[SystemState]:
    reconstructor = StateReconstructor(
        model,
        states_table,
        allow_missing_columns=allow_missing_columns,
        allow_extra_columns=allow_extra_columns,
    )
    return list(reconstructor)
