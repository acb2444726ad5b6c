from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from motion_replay.engine import Component, Model, SystemState
from motion_replay.errors import (
    ComponentNotFoundError,
    DiscreteVariableLabelError,
    PreconditionError,
    RowCountMismatchError,
    UnknownLabelError,
)
from motion_replay.labels import create_system_control_index_map
from motion_replay.paths import ComponentPath
from motion_replay.table import TimeSeriesTable

logger = logging.getLogger(__name__)


def check_row_counts(
    states_table: TimeSeriesTable,
    controls_table: TimeSeriesTable,
    discrete_variables_table: TimeSeriesTable | None = None,
) -> None:
    """Row counts only; equal counts with different time stamps are not detected."""
    if states_table.num_rows != controls_table.num_rows:
        raise RowCountMismatchError(
            'Expected the states and controls tables to contain the same number of rows, but the '
            f'states table contains {states_table.num_rows} rows and the controls table contains '
            f'{controls_table.num_rows} rows.'
        )
    if discrete_variables_table is not None and discrete_variables_table.num_columns:
        if discrete_variables_table.num_rows != states_table.num_rows:
            raise RowCountMismatchError(
                'Expected the discrete variables table to contain the same number of rows as the '
                'states and controls tables, but it contains '
                f'{discrete_variables_table.num_rows} rows and the states table contains '
                f'{states_table.num_rows} rows.'
            )


class ControlInjector:
    """
    Writes one controls-table row into a state's control vector.

    Model controls without a column are 0.0.
    """

    def __init__(self, model: Model, controls_table: TimeSeriesTable) -> None:
        if controls_table.value_shape != ():
            raise PreconditionError('Controls table must hold scalar columns.')
        self.model = model
        self.table = controls_table

        control_map = create_system_control_index_map(model)
        labels = controls_table.column_labels
        unknown = [l for l in labels if l not in control_map]
        if unknown:
            raise UnknownLabelError(
                f'Controls table has column(s) that are not controls of the model: {unknown}. '
                f'Known controls: {sorted(control_map)}'
            )
        absent = [name for name in control_map if name not in labels]
        if absent:
            logger.debug('No column for control(s) %s; using 0.0.', absent)

        self._slots = np.array([control_map[l] for l in labels], dtype=int)
        self._rows = controls_table.data
        self._num_controls = model.num_controls

    def controls_at(self, index: int) -> np.ndarray:
        controls = np.zeros(self._num_controls, dtype=float)
        controls[self._slots] = self._rows[index]
        return controls

    def inject(self, state: SystemState, index: int) -> None:
        """The state must already be realized through Velocity."""
        self.model.set_controls(state, self.controls_at(index))


@dataclass(frozen=True)
class _DiscreteColumn:
    label: str
    component: Component
    name: str


class DiscreteVariableInjector:
    """
    Writes discrete variable values from a table whose columns are labelled
    <path_to_component>/<discrete_variable_name>. Owning components are
    resolved once per column.
    """

    def __init__(self, model: Model, discrete_variables_table: TimeSeriesTable) -> None:
        if discrete_variables_table.value_shape != ():
            raise PreconditionError('Discrete variables table must hold scalar columns.')
        self.model = model
        self.table = discrete_variables_table

        columns: list[_DiscreteColumn] = []
        for label in discrete_variables_table.column_labels:
            path = ComponentPath.parse(label)
            try:
                component = model.get_component(path.parent)
            except ComponentNotFoundError as e:
                raise DiscreteVariableLabelError(
                    f'Discrete variable column {label!r}: no component at {path.parent!r}.'
                ) from e
            if path.name not in component.discrete_variable_names():
                raise DiscreteVariableLabelError(
                    f'Discrete variable column {label!r}: {path.parent} has no discrete variable '
                    f'{path.name!r} (has {component.discrete_variable_names()}).'
                )
            columns.append(_DiscreteColumn(label, component, path.name))

        self._columns = columns
        self._rows = discrete_variables_table.data

    def inject(self, state: SystemState, index: int) -> None:
        row = self._rows[index]
        for i, col in enumerate(self._columns):
            col.component.set_discrete_variable_value(state, col.name, float(row[i]))
