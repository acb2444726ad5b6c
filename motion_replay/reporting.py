from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

import numpy as np

from motion_replay.engine import Component, Model, Output, OutputType, SystemState
from motion_replay.table import TimeSeriesTable

logger = logging.getLogger(__name__)


@dataclass
class OutputSelector:
    """Regular expressions over output paths ("<component path>|<output name>") plus a value type."""

    patterns: list[str]
    value_type: OutputType = OutputType.DOUBLE
    _compiled: list[re.Pattern] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.patterns, str):
            self.patterns = [self.patterns]
        self.patterns = list(self.patterns)
        self._compiled = [re.compile(p) for p in self.patterns]

    def matches(self, path: str) -> bool:
        """Whole-string match against any pattern (not a substring search)."""
        return any(rx.fullmatch(path) for rx in self._compiled)


class TableReporter(Component):
    """Captures the value of each registered output on every Report realization."""

    def __init__(self, value_type: OutputType, name: str = 'table_reporter') -> None:
        super().__init__(name)
        self.value_type = value_type
        self._reported: list[Output] = []
        self._time: list[float] = []
        self._rows: list[np.ndarray] = []

    def add_to_report(self, output: Output) -> None:
        if output.value_type != self.value_type:
            raise TypeError(
                f'Output {output.path} has type {output.type_name}; '
                f'this reporter collects {self.value_type.value}.'
            )
        self._reported.append(output)

    @property
    def column_labels(self) -> list[str]:
        return [o.path for o in self._reported]

    def clear(self) -> None:
        self._time.clear()
        self._rows.clear()

    def _realize_report(self, state: SystemState) -> None:
        shape = self.value_type.value_shape
        row = np.zeros((len(self._reported),) + shape, dtype=float)
        for i, output in enumerate(self._reported):
            row[i] = output.get_value(state)
        self._time.append(state.time)
        self._rows.append(row)

    def get_table(self) -> TimeSeriesTable:
        return TimeSeriesTable.from_rows(
            self._time, self.column_labels, self._rows, self.value_type.value_shape
        )


def find_matching_outputs(model: Model, selector: OutputSelector) -> list[Output]:
    """
    Pass 1: walk the component tree and collect outputs whose path matches a
    pattern. Matching outputs of another value type are skipped with a warning.
    """
    matched: list[Output] = []
    for comp in model.component_list():
        if isinstance(comp, TableReporter):
            continue
        for name in comp.output_names():
            output = comp.get_output(name)
            if not selector.matches(output.path):
                continue
            if output.value_type == selector.value_type:
                logger.debug('Adding output %s of type %s.', output.path, output.type_name)
                matched.append(output)
            else:
                logger.warning('Ignoring output %s of type %s.', output.path, output.type_name)
    return matched


def attach_reporter(
    model: Model,
    outputs: Iterable[Output],
    value_type: OutputType,
    name: str = 'table_reporter',
) -> TableReporter:
    """
    Pass 2: register outputs, add the reporter to the model and rebuild the
    system. On a failed rebuild the reporter is removed again.
    """
    reporter = TableReporter(value_type, name=name)
    for output in outputs:
        reporter.add_to_report(output)
    model.add_component(reporter)
    try:
        model.init_system()
    except Exception:
        model.remove_component(reporter)
        raise
    return reporter


def detach_reporter(model: Model, reporter: TableReporter) -> None:
    model.remove_component(reporter)
    model.init_system()


@contextmanager
def attached_reporter(model: Model, selector: OutputSelector) -> Iterator[TableReporter]:
    """Collect matching outputs, attach a reporter for them, and remove it on exit."""
    model.init_system()
    outputs = find_matching_outputs(model, selector)
    reporter = attach_reporter(model, outputs, selector.value_type)
    try:
        yield reporter
    finally:
        detach_reporter(model, reporter)
