from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Iterator

from motion_replay.controls import ControlInjector, DiscreteVariableInjector, check_row_counts
from motion_replay.engine import Model, OutputType, SystemState
from motion_replay.reporting import OutputSelector, attached_reporter
from motion_replay.table import TimeSeriesTable
from motion_replay.trajectory import StateReconstructor

logger = logging.getLogger(__name__)


def replay(
    model: Model,
    states_table: TimeSeriesTable,
    controls_table: TimeSeriesTable,
    discrete_variables_table: TimeSeriesTable | None = None,
    *,
    allow_missing_columns: bool = True,
    allow_extra_columns: bool = False,
) -> Iterator[SystemState]:
    """
    Yield one state per states-table row, realized through Report.

    Per row: reconstruct (incl. prescribed motions) -> realize Velocity ->
    controls -> discrete variables -> realize Report.

    The model's system must be built (init_system()) before iterating. Tables
    are aligned by row index; their time columns are not compared.
    """
    check_row_counts(states_table, controls_table, discrete_variables_table)

    states = StateReconstructor(
        model,
        states_table,
        allow_missing_columns=allow_missing_columns,
        allow_extra_columns=allow_extra_columns,
    )
    controls = ControlInjector(model, controls_table)
    discretes = None
    if discrete_variables_table is not None and discrete_variables_table.num_columns:
        discretes = DiscreteVariableInjector(model, discrete_variables_table)

    for i in range(len(states)):
        state = states.state_at(i)
        # Controls live in the Velocity-stage cache; they must be set after realizing it.
        model.realize_velocity(state)
        controls.inject(state, i)
        if discretes is not None:
            discretes.inject(state, i)
        model.realize_report(state)
        yield state


def analyze(
    model: Model,
    states_table: TimeSeriesTable,
    controls_table: TimeSeriesTable,
    output_paths: Iterable[str],
    value_type: OutputType = OutputType.DOUBLE,
    discrete_variables_table: TimeSeriesTable | None = None,
    *,
    allow_missing_columns: bool = True,
    allow_extra_columns: bool = False,
) -> TimeSeriesTable:
    """
    Evaluate the outputs whose paths match `output_paths` (regular expressions,
    e.g. ".*activation") at every row of the states/controls tables.

    Only outputs of `value_type` are reported; other matches are skipped with a
    warning. Controls missing from the controls table are 0. Discrete variable
    columns are labelled <path_to_component>/<discrete_variable_name>.

    The trajectory is not projected onto kinematic constraints, so it must
    already satisfy them for constraint-dependent outputs to be right.

    The replay runs on a copy of `model`; the caller's model and its states
    are left untouched.
    """
    model = copy.deepcopy(model)
    selector = OutputSelector(list(output_paths), value_type)
    with attached_reporter(model, selector) as reporter:
        for state in replay(
            model,
            states_table,
            controls_table,
            discrete_variables_table,
            allow_missing_columns=allow_missing_columns,
            allow_extra_columns=allow_extra_columns,
        ):
            logger.debug('Reported t=%g', state.time)
        table = reporter.get_table()

    logger.debug('Analyzed %d rows x %d outputs.', table.num_rows, table.num_columns)
    return table
