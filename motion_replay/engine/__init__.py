"""Planar multibody engine the replay utilities run against."""

from __future__ import annotations

from motion_replay.engine.actuators import (
    ActivationCoordinateActuator,
    Actuator,
    BodyForceActuator,
    CoordinateActuator,
)
from motion_replay.engine.component import (
    Component,
    ComponentSet,
    DiscreteVariable,
    Output,
    OutputType,
    StateVariable,
)
from motion_replay.engine.frames import Body, Frame, Ground, PhysicalOffsetFrame
from motion_replay.engine.joints import (
    ROTATIONAL,
    TRANSLATIONAL,
    Coordinate,
    FreeJoint,
    Joint,
    PinJoint,
    SliderJoint,
)
from motion_replay.engine.model import G0, Model
from motion_replay.engine.stage import Stage, StageError
from motion_replay.engine.state import SystemState


__all__ = [
    'G0',
    'Model',
    'SystemState',
    'Stage',
    'StageError',
    # Components
    'Component',
    'ComponentSet',
    'Output',
    'OutputType',
    'StateVariable',
    'DiscreteVariable',
    # Frames
    'Frame',
    'Ground',
    'Body',
    'PhysicalOffsetFrame',
    # Joints
    'ROTATIONAL',
    'TRANSLATIONAL',
    'Coordinate',
    'Joint',
    'PinJoint',
    'SliderJoint',
    'FreeJoint',
    # Actuators
    'Actuator',
    'CoordinateActuator',
    'ActivationCoordinateActuator',
    'BodyForceActuator',
]
