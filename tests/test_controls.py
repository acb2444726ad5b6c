"""
Unit tests for control and discrete variable injection.
"""

import numpy as np
import pytest

from conftest import MOTOR, empty_controls, motor_controls, pendulum_states
from motion_replay.controls import ControlInjector, DiscreteVariableInjector, check_row_counts
from motion_replay.engine import Model
from motion_replay.errors import (
    ControlOrderError,
    DiscreteVariableLabelError,
    RowCountMismatchError,
    UnknownLabelError,
)
from motion_replay.table import TimeSeriesTable


class TestRowCounts:
    """Tables are aligned by row count only"""

    def test_equal_counts_pass(self) -> None:
        check_row_counts(pendulum_states([0.0, 0.1]), motor_controls([0.0, 0.0]))

    def test_different_time_stamps_not_detected(self) -> None:
        check_row_counts(pendulum_states([0.0, 0.1], time=[0.0, 1.0]), motor_controls([0.0, 0.0], time=[5.0, 6.0]))

    def test_controls_mismatch(self) -> None:
        with pytest.raises(RowCountMismatchError, match='2 rows'):
            check_row_counts(pendulum_states([0.0, 0.1]), motor_controls([0.0, 0.0, 0.0]))

    def test_discretes_mismatch(self) -> None:
        discretes = TimeSeriesTable.from_columns([0.0], {f'{MOTOR}/override_actuation': [1.0]})
        with pytest.raises(RowCountMismatchError):
            check_row_counts(pendulum_states([0.0, 0.1]), motor_controls([0.0, 0.0]), discretes)

    def test_empty_discretes_table_ignored(self) -> None:
        discretes = TimeSeriesTable.from_columns([0.0], {})
        check_row_counts(pendulum_states([0.0, 0.1]), motor_controls([0.0, 0.0]), discretes)


class TestControlInjector:
    """Controls-table row -> model control vector"""

    def test_row_written_to_its_slot(self, pendulum: Model) -> None:
        injector = ControlInjector(pendulum, motor_controls([0.3, 0.7]))
        assert np.array_equal(injector.controls_at(1), [0.7])

    def test_missing_control_is_exactly_zero(self, actuated: Model) -> None:
        table = TimeSeriesTable.from_columns([0.0, 0.1], {'/forceset/muscle': [0.4, 0.6]})
        injector = ControlInjector(actuated, table)
        for i in range(2):
            controls = injector.controls_at(i)
            assert controls[0] == 0.0
            assert controls[1] == table.get_column('/forceset/muscle')[i]

    def test_empty_controls_table_gives_zeros(self, actuated: Model) -> None:
        injector = ControlInjector(actuated, empty_controls(3))
        assert np.array_equal(injector.controls_at(2), np.zeros(5))

    def test_unknown_control_label_raises(self, pendulum: Model) -> None:
        table = TimeSeriesTable.from_columns([0.0], {'/forceset/ghost': [1.0]})
        with pytest.raises(UnknownLabelError, match='ghost'):
            ControlInjector(pendulum, table)

    def test_misordered_model_rejected(self, misordered: Model) -> None:
        with pytest.raises(ControlOrderError):
            ControlInjector(misordered, empty_controls(1))

    def test_inject_sets_state_controls(self, pendulum: Model) -> None:
        injector = ControlInjector(pendulum, motor_controls([0.3]))
        state = pendulum.initialize_state()
        pendulum.realize_velocity(state)
        injector.inject(state, 0)
        assert pendulum.get_controls(state)[0] == 0.3


class TestDiscreteVariableInjector:
    """<component path>/<discrete variable name> columns"""

    def test_value_written(self, pendulum: Model) -> None:
        table = TimeSeriesTable.from_columns([0.0], {f'{MOTOR}/override_actuation': [2.5]})
        state = pendulum.initialize_state()
        DiscreteVariableInjector(pendulum, table).inject(state, 0)

        motor = pendulum.get_component(MOTOR)
        assert motor.get_discrete_variable_value(state, 'override_actuation') == 2.5

    def test_unknown_component_raises(self, pendulum: Model) -> None:
        table = TimeSeriesTable.from_columns([0.0], {'/forceset/ghost/override_actuation': [1.0]})
        with pytest.raises(DiscreteVariableLabelError, match='ghost'):
            DiscreteVariableInjector(pendulum, table)

    def test_unknown_variable_raises(self, pendulum: Model) -> None:
        table = TimeSeriesTable.from_columns([0.0], {f'{MOTOR}/stiffness': [1.0]})
        with pytest.raises(DiscreteVariableLabelError, match='stiffness'):
            DiscreteVariableInjector(pendulum, table)

    def test_label_without_path_raises(self, pendulum: Model) -> None:
        table = TimeSeriesTable.from_columns([0.0], {'override_actuation': [1.0]})
        with pytest.raises(DiscreteVariableLabelError):
            DiscreteVariableInjector(pendulum, table)
