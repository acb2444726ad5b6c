"""Shared model and table fixtures."""

import numpy as np
import pytest

from motion_replay.engine import (
    ActivationCoordinateActuator,
    Body,
    BodyForceActuator,
    CoordinateActuator,
    FreeJoint,
    Model,
    PinJoint,
    SliderJoint,
)
from motion_replay.table import TimeSeriesTable


THETA_VALUE = '/jointset/pin/theta/value'
THETA_SPEED = '/jointset/pin/theta/speed'
MOTOR = '/forceset/motor'


def make_pendulum(length: float = 1.0, mass: float = 1.0, inertia: float = 0.0) -> Model:
    """Point-like rod hanging `length` below a ground pin at theta = 0."""
    model = Model('pendulum')
    rod = model.add_body(Body('rod', mass, mass_center=(0.0, 0.0), inertia=inertia))
    rod.add_offset_frame('imu')
    rod.add_offset_frame('imu_rotated', angle=np.pi / 2)
    model.add_joint(PinJoint('pin', model.ground, rod, (0.0, 0.0), (0.0, length), coordinate_name='theta'))
    model.add_force(CoordinateActuator('motor', model.get_component('/jointset/pin/theta'), optimal_force=10.0))
    model.init_system()
    return model


@pytest.fixture
def pendulum() -> Model:
    return make_pendulum()


@pytest.fixture
def double_pendulum() -> Model:
    """Elbow joint declared before the shoulder joint it hangs from."""
    model = Model('double_pendulum')
    upper = model.add_body(Body('upper', 1.0))
    lower = model.add_body(Body('lower', 1.0))
    model.add_joint(PinJoint('elbow', upper, lower, (0.0, -0.5), (0.0, 0.5), coordinate_name='elbow_flexion'))
    model.add_joint(PinJoint('shoulder', model.ground, upper, (0.0, 0.0), (0.0, 0.5), coordinate_name='shoulder_flexion'))
    model.init_system()
    return model


@pytest.fixture
def free_body() -> Model:
    model = Model('free_body')
    box = model.add_body(Body('box', 2.0, inertia=0.1))
    model.add_joint(FreeJoint('float', model.ground, box))
    model.init_system()
    return model


@pytest.fixture
def actuated() -> Model:
    """Slider cart with a motor, an activation-driven muscle, a planar push and a passive actuator."""
    model = Model('actuated')
    cart = model.add_body(Body('cart', 2.0))
    slide = model.add_joint(SliderJoint('slide', model.ground, cart, axis=(1.0, 0.0), coordinate_name='x'))
    model.add_force(CoordinateActuator('motor', slide.coordinate, optimal_force=10.0))
    model.add_force(
        ActivationCoordinateActuator(
            'muscle', slide.coordinate, optimal_force=100.0, activation_time_constant=0.02, default_activation=0.1
        )
    )
    model.add_force(BodyForceActuator('push', cart, optimal_force=1.0))
    model.add_force(CoordinateActuator('passive', slide.coordinate, applies_force=False))
    model.init_system()
    return model


@pytest.fixture
def misordered() -> Model:
    """One actuator outside the forceset next to one inside it."""
    model = Model('misordered')
    cart = model.add_body(Body('cart', 1.0))
    slide = model.add_joint(SliderJoint('slide', model.ground, cart, coordinate_name='x'))
    model.add_component(CoordinateActuator('outside', slide.coordinate))
    model.add_force(CoordinateActuator('inside', slide.coordinate))
    model.init_system()
    return model


def pendulum_states(thetas, speeds=None, time=None, metadata=None) -> TimeSeriesTable:
    thetas = np.asarray(thetas, dtype=float)
    speeds = np.zeros_like(thetas) if speeds is None else np.asarray(speeds, dtype=float)
    time = np.arange(thetas.size) * 0.01 if time is None else time
    return TimeSeriesTable.from_columns(time, {THETA_VALUE: thetas, THETA_SPEED: speeds}, metadata)


def motor_controls(values, time=None) -> TimeSeriesTable:
    values = np.asarray(values, dtype=float)
    time = np.arange(values.size) * 0.01 if time is None else time
    return TimeSeriesTable.from_columns(time, {MOTOR: values})


def empty_controls(n_rows: int) -> TimeSeriesTable:
    return TimeSeriesTable.from_columns(np.arange(n_rows) * 0.01, {})
