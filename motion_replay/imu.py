"""Synthetic IMU accelerometer signals from a replayed motion."""

from __future__ import annotations

import copy
import logging
import re
from collections.abc import Iterable

import numpy as np

from motion_replay.analyze import replay
from motion_replay.engine import Frame, Model, OutputType
from motion_replay.errors import ComponentNotFoundError, PreconditionError, UnknownLabelError
from motion_replay.reporting import OutputSelector, attached_reporter
from motion_replay.table import TimeSeriesTable

logger = logging.getLogger(__name__)

LINEAR_ACCELERATION = 'linear_acceleration'


def _resolve_frames(model: Model, frame_paths: list[str]) -> list[Frame]:
    dupes = sorted({p for p in frame_paths if frame_paths.count(p) > 1})
    if dupes:
        raise PreconditionError(f'Frame paths must be unique; duplicated: {dupes}')

    frames: list[Frame] = []
    for path in frame_paths:
        try:
            comp = model.get_component(path)
        except ComponentNotFoundError as e:
            raise UnknownLabelError(f'No frame at path {path!r}.') from e
        if not isinstance(comp, Frame):
            raise PreconditionError(f'{path!r} is a {type(comp).__name__}, not a frame.')
        frames.append(comp)
    return frames


def create_synthetic_imu_acceleration_signals(
    model: Model,
    states_table: TimeSeriesTable,
    controls_table: TimeSeriesTable,
    frame_paths: Iterable[str],
) -> TimeSeriesTable:
    """
    Accelerometer-like signal for each frame:

      a_imu = R_GF^T (a_F - g)

    a_F is the frame's linear_acceleration output (ground), g the model
    gravity (ground), R_GF the frame's orientation at the same sample.

    Accelerations need Dynamics, so masses and inertias must be complete.
    States and controls tables must share their time points and satisfy the
    model's kinematic constraints.

    Runs on a copy of `model`, which is left untouched.
    """
    frame_paths = list(frame_paths)
    model = copy.deepcopy(model)
    model.init_system()
    frames = _resolve_frames(model, frame_paths)

    patterns = [re.escape(f.absolute_path) + re.escape('|' + LINEAR_ACCELERATION) for f in frames]
    selector = OutputSelector(patterns, OutputType.VEC3)
    gravity = model.get_gravity()

    rotations: list[np.ndarray] = []
    with attached_reporter(model, selector) as reporter:
        for state in replay(model, states_table, controls_table):
            rotations.append(np.stack([f.get_rotation_in_ground(state) for f in frames]))
        accel = reporter.get_table()

    n_rows = accel.num_rows
    columns = [accel.column_index(f'{f.absolute_path}|{LINEAR_ACCELERATION}') for f in frames]
    a_ground = accel.data[:, columns, :]

    signals = np.zeros((n_rows, len(frames), 3), dtype=float)
    for i in range(n_rows):
        for j in range(len(frames)):
            signals[i, j] = rotations[i][j].T @ (a_ground[i, j] - gravity)

    logger.debug('Synthesized IMU signals for %d frame(s) over %d rows.', len(frames), n_rows)
    return TimeSeriesTable(accel.time, frame_paths, signals)
