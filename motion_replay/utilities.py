"""Motion replay utilities.

This module re-exports the public operations from their sub-modules.
"""

from __future__ import annotations

# Replay / report driver
from motion_replay.analyze import analyze, replay

# Injection of controls and discrete variables
from motion_replay.controls import ControlInjector, DiscreteVariableInjector, check_row_counts

# IMU synthesis
from motion_replay.imu import create_synthetic_imu_acceleration_signals

# Label resolution and control order checks
from motion_replay.labels import (
    check_labels_match_model_states,
    check_order_system_controls,
    create_control_names_from_model,
    create_control_names_with_indices,
    create_state_variable_names_in_system_order,
    create_state_variable_names_with_y_indices,
    create_system_control_index_map,
    create_system_y_index_map,
    update_state_labels_40,
)

# Output collection
from motion_replay.reporting import (
    OutputSelector,
    TableReporter,
    attach_reporter,
    attached_reporter,
    detach_reporter,
    find_matching_outputs,
)

# State reconstruction
from motion_replay.trajectory import StateReconstructor, states_from_table


__all__ = [
    # Labels
    'create_state_variable_names_in_system_order',
    'create_state_variable_names_with_y_indices',
    'create_system_y_index_map',
    'create_control_names_from_model',
    'create_control_names_with_indices',
    'create_system_control_index_map',
    'check_order_system_controls',
    'check_labels_match_model_states',
    'update_state_labels_40',
    # States
    'StateReconstructor',
    'states_from_table',
    # Controls
    'ControlInjector',
    'DiscreteVariableInjector',
    'check_row_counts',
    # Reporting
    'OutputSelector',
    'TableReporter',
    'find_matching_outputs',
    'attach_reporter',
    'detach_reporter',
    'attached_reporter',
    # Drivers
    'replay',
    'analyze',
    'create_synthetic_imu_acceleration_signals',
]
