from __future__ import annotations

import math

import numpy as np

from motion_replay.engine.component import Component, OutputType
from motion_replay.engine.frames import Body
from motion_replay.engine.joints import Coordinate
from motion_replay.engine.kinematics import vec3
from motion_replay.engine.stage import Stage


class Actuator(Component):
    """
    Force element driven by `num_controls` entries of the model control vector.

    The model assigns `control_index` (first slot) in Model.init_system().
    Actuators with applies_force=False still own control slots.
    """

    num_controls = 1

    def __init__(self, name: str, applies_force: bool = True) -> None:
        super().__init__(name)
        self.applies_force = bool(applies_force)
        self.control_index = -1

    def _control_slice(self) -> slice:
        if self.control_index < 0:
            raise RuntimeError(f'{self.absolute_path}: controls not allocated; call Model.init_system().')
        return slice(self.control_index, self.control_index + self.num_controls)

    def get_controls(self, model_controls: np.ndarray) -> np.ndarray:
        return np.asarray(model_controls, dtype=float)[self._control_slice()].copy()

    def add_in_controls(self, actuator_controls, model_controls: np.ndarray) -> None:
        values = np.asarray(actuator_controls, dtype=float).reshape(-1)
        if values.size != self.num_controls:
            raise ValueError(
                f'{self.absolute_path} has {self.num_controls} controls, got {values.size} values.'
            )
        model_controls[self._control_slice()] += values

    def compute_actuation(self, state, controls: np.ndarray):
        raise NotImplementedError

    def apply_force(self, state, actuation, tau: np.ndarray, body_forces: dict[str, np.ndarray]) -> None:
        raise NotImplementedError

    def state_derivatives(self, state, controls: np.ndarray) -> dict[int, float]:
        """z-slot -> time derivative; only actuators with auxiliary states override this."""
        return {}

    def _actuation(self, state):
        actuation = state.cached(Stage.DYNAMICS, 'actuation', f'Actuation of {self.absolute_path}')
        return actuation[self.absolute_path]


class CoordinateActuator(Actuator):
    """
    Generalized force on one coordinate: actuation = control * optimal_force.

    Discrete variable `override_actuation`: when finite, replaces the computed
    actuation (NaN = not overridden).
    """

    def __init__(
        self,
        name: str,
        coordinate: Coordinate,
        optimal_force: float = 1.0,
        applies_force: bool = True,
    ) -> None:
        super().__init__(name, applies_force)
        self.coordinate = coordinate
        self.optimal_force = float(optimal_force)
        self._declare_discrete_variable('override_actuation', math.nan, Stage.DYNAMICS)
        self._declare_output('actuation', OutputType.DOUBLE, Stage.DYNAMICS, 'get_actuation')
        self._declare_output('power', OutputType.DOUBLE, Stage.DYNAMICS, 'get_power')

    def _unoverridden_actuation(self, state, controls: np.ndarray) -> float:
        return float(controls[0]) * self.optimal_force

    def compute_actuation(self, state, controls: np.ndarray) -> float:
        override = self.get_discrete_variable_value(state, 'override_actuation')
        if math.isfinite(override):
            return float(override)
        return self._unoverridden_actuation(state, controls)

    def apply_force(self, state, actuation, tau: np.ndarray, body_forces: dict[str, np.ndarray]) -> None:
        tau[self.coordinate.mobility] += float(actuation)

    def get_actuation(self, state) -> float:
        return float(self._actuation(state))

    def get_power(self, state) -> float:
        return self.get_actuation(state) * self.coordinate.get_speed(state)


class ActivationCoordinateActuator(CoordinateActuator):
    """
    Coordinate actuator with first-order activation dynamics:

      d(activation)/dt = (excitation - activation) / activation_time_constant
      actuation = activation * optimal_force
    """

    def __init__(
        self,
        name: str,
        coordinate: Coordinate,
        optimal_force: float = 1.0,
        activation_time_constant: float = 0.01,
        default_activation: float = 0.0,
        applies_force: bool = True,
    ) -> None:
        super().__init__(name, coordinate, optimal_force, applies_force)
        if activation_time_constant <= 0.0:
            raise ValueError(f'{name}: activation_time_constant must be > 0.')
        self.activation_time_constant = float(activation_time_constant)
        self._activation = self._declare_state_variable('activation', 'z', default_activation)
        self._declare_output('activation', OutputType.DOUBLE, Stage.TIME, 'get_activation')

    def get_activation(self, state) -> float:
        return float(state.y[self._activation.slot])

    def _unoverridden_actuation(self, state, controls: np.ndarray) -> float:
        return self.get_activation(state) * self.optimal_force

    def state_derivatives(self, state, controls: np.ndarray) -> dict[int, float]:
        rate = (float(controls[0]) - self.get_activation(state)) / self.activation_time_constant
        return {self._activation.slot: rate}


class BodyForceActuator(Actuator):
    """Ground-frame force (fx, fy) on a body's mass center; two controls."""

    num_controls = 2

    def __init__(self, name: str, body: Body, optimal_force: float = 1.0, applies_force: bool = True) -> None:
        super().__init__(name, applies_force)
        self.body = body
        self.optimal_force = float(optimal_force)
        self._declare_output('force', OutputType.VEC3, Stage.DYNAMICS, 'get_force')

    def compute_actuation(self, state, controls: np.ndarray) -> np.ndarray:
        return np.asarray(controls, dtype=float) * self.optimal_force

    def apply_force(self, state, actuation, tau: np.ndarray, body_forces: dict[str, np.ndarray]) -> None:
        path = self.body.absolute_path
        body_forces[path] = body_forces.get(path, np.zeros(2, dtype=float)) + actuation

    def get_force(self, state) -> np.ndarray:
        return vec3(self._actuation(state))
