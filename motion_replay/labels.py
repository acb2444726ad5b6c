"""Label <-> slot correspondences between named columns and the model's flat vectors."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np

from motion_replay.engine import Actuator, Coordinate, Model
from motion_replay.errors import (
    ControlOrderError,
    InternalConsistencyError,
    PreconditionError,
    UnknownLabelError,
)

logger = logging.getLogger(__name__)

_PROBE_VALUE = 1.0


def create_state_variable_names_with_y_indices(model: Model) -> tuple[list[str], dict[int, int]]:
    """
    State variable paths in y order, plus {position in that list: y slot}.

    Slots are discovered by probing: zero y, set one variable by name, and find
    the single slot that changed. Slots no variable claims (e.g. spare
    quaternion slots) are skipped.
    """
    state = model.initialize_state()
    zeros = np.zeros(state.ny, dtype=float)

    owner_of_slot: dict[int, str] = {}
    for name in model.get_state_variable_names():
        state.set_y(zeros)
        model.set_state_variable_value(state, name, _PROBE_VALUE)
        changed = np.flatnonzero(state.y)
        if changed.size != 1:
            raise InternalConsistencyError(
                f'State variable {name!r} touched {changed.size} y slots; expected exactly one.'
            )
        slot = int(changed[0])
        if slot in owner_of_slot:
            raise InternalConsistencyError(
                f'State variables {owner_of_slot[slot]!r} and {name!r} share y slot {slot}.'
            )
        owner_of_slot[slot] = name

    slots = sorted(owner_of_slot)
    skipped = state.ny - len(slots)
    if skipped:
        logger.debug('Skipping %d unaddressable y slot(s) of %d.', skipped, state.ny)

    names = [owner_of_slot[s] for s in slots]
    return names, {i: s for i, s in enumerate(slots)}


def create_state_variable_names_in_system_order(model: Model) -> list[str]:
    names, _ = create_state_variable_names_with_y_indices(model)
    return names


def create_system_y_index_map(model: Model) -> dict[str, int]:
    """State variable path -> index into SystemState.y."""
    names, y_indices = create_state_variable_names_with_y_indices(model)
    return {name: y_indices[i] for i, name in enumerate(names)}


def create_control_names_with_indices(model: Model) -> tuple[list[str], list[int]]:
    """
    Control names for actuators that apply force, and the index of each in the
    model control vector.

    One control: the actuator path. Several: path + "_<i>" (e.g. "/forceset/push_0").
    Actuators that do not apply force are skipped but still occupy slots.
    """
    names: list[str] = []
    indices: list[int] = []
    count = 0
    for actu in model.component_list(Actuator):
        nc = actu.num_controls
        if actu.applies_force:
            path = actu.absolute_path
            if nc == 1:
                names.append(path)
                indices.append(count)
            else:
                for i in range(nc):
                    names.append(f'{path}_{i}')
                    indices.append(count + i)
        count += nc
    return names, indices


def create_control_names_from_model(model: Model) -> list[str]:
    names, _ = create_control_names_with_indices(model)
    return names


def check_order_system_controls(model: Model) -> None:
    """
    Walk actuators in tree order, write consecutive markers through each
    actuator's own control accessor, and require the flat control vector to
    read back 0, 1, 2, ...
    """
    n = model.num_controls
    model_controls = np.zeros(n, dtype=float)
    count = 0
    for actu in model.component_list(Actuator):
        nc = actu.num_controls
        actu.add_in_controls(np.arange(count, count + nc, dtype=float), model_controls)
        count += nc

    if count != n or not np.array_equal(model_controls, np.arange(n, dtype=float)):
        raise ControlOrderError(
            'Internal error: the order of controls in the model does not match the order of '
            'actuators in the model. Keeping every actuator in the model\'s forceset avoids this.'
        )


def create_system_control_index_map(model: Model) -> dict[str, int]:
    """Control name -> index in the model control vector. Checks control order first."""
    check_order_system_controls(model)
    names, indices = create_control_names_with_indices(model)
    return dict(zip(names, indices))


def check_labels_match_model_states(model: Model, labels: Iterable[str]) -> None:
    known = set(model.get_state_variable_names())
    for label in labels:
        if label not in known:
            raise UnknownLabelError(
                f'Expected label {label!r} to name a state variable of the model, but it does not.'
            )


def update_state_labels_40(model: Model, labels: Iterable[str]) -> list[str]:
    """
    Rewrite legacy state names as state variable paths:

      pelvis_tilt          -> /jointset/ground_pelvis/pelvis_tilt/value
      pelvis_tilt_u        -> /jointset/ground_pelvis/pelvis_tilt/speed
      soleus.activation    -> /forceset/soleus/activation

    Labels that match nothing are returned unchanged.
    """
    labels = list(labels)
    dupes = sorted({l for l in labels if labels.count(l) > 1})
    if dupes:
        raise PreconditionError(f'State labels must be unique; duplicated: {dupes}')

    legacy: dict[str, str] = {}
    for comp in model.component_list():
        if isinstance(comp, Coordinate):
            legacy[comp.name] = f'{comp.absolute_path}/value'
            legacy[f'{comp.name}_u'] = f'{comp.absolute_path}/speed'
            continue
        for sv in comp.state_variables:
            legacy[f'{comp.name}.{sv.name}'] = sv.path

    updated = [legacy.get(l, l) for l in labels]
    for old, new in zip(labels, updated):
        if old != new:
            logger.debug('State label %s -> %s', old, new)
    return updated
