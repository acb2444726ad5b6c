from __future__ import annotations

import numpy as np

from motion_replay.engine.component import Component, OutputType
from motion_replay.engine.frames import Body, Frame, _vec2
from motion_replay.engine.kinematics import JointMotion
from motion_replay.engine.stage import Stage

ROTATIONAL = 'rotational'
TRANSLATIONAL = 'translational'


class Coordinate(Component):
    """
    Generalized coordinate: one q ("value") and one u ("speed").

    prescribed_function: optional f(t, nu) returning the nu-th time derivative
    (scipy CubicSpline / PPoly style). When present, Model.prescribe() sets
    value and speed from it and its acceleration is not solved for.
    """

    def __init__(
        self,
        name: str,
        motion_type: str,
        default_value: float = 0.0,
        default_speed: float = 0.0,
        prescribed_function=None,
    ) -> None:
        super().__init__(name)
        if motion_type not in (ROTATIONAL, TRANSLATIONAL):
            raise ValueError(f'Coordinate {name}: motion_type must be {ROTATIONAL!r} or {TRANSLATIONAL!r}.')
        self.motion_type = motion_type
        self.prescribed_function = prescribed_function
        self.mobility = -1

        self._value = self._declare_state_variable('value', 'q', default_value)
        self._speed = self._declare_state_variable('speed', 'u', default_speed)

        self._declare_output('value', OutputType.DOUBLE, Stage.POSITION, 'get_value')
        self._declare_output('speed', OutputType.DOUBLE, Stage.VELOCITY, 'get_speed')
        self._declare_output('acceleration', OutputType.DOUBLE, Stage.ACCELERATION, 'get_acceleration')

    @property
    def is_prescribed(self) -> bool:
        return self.prescribed_function is not None

    @property
    def default_value(self) -> float:
        return self._value.default

    @default_value.setter
    def default_value(self, value: float) -> None:
        self._value.default = float(value)

    @property
    def default_speed(self) -> float:
        return self._speed.default

    @default_speed.setter
    def default_speed(self, speed: float) -> None:
        self._speed.default = float(speed)

    @property
    def value_slot(self) -> int:
        return self._value.slot

    @property
    def speed_slot(self) -> int:
        return self._speed.slot

    def get_value(self, state) -> float:
        return float(state.y[self._value.slot])

    def set_value(self, state, value: float) -> None:
        state.set_y_slot(self._value.slot, value)

    def get_speed(self, state) -> float:
        return float(state.y[self._speed.slot])

    def set_speed(self, state, speed: float) -> None:
        state.set_y_slot(self._speed.slot, speed)

    def get_acceleration(self, state) -> float:
        udot = state.cached(Stage.ACCELERATION, 'udot', f'Acceleration of {self.absolute_path}')
        return float(udot[self.mobility])

    def prescribed_value(self, t: float, derivative: int = 0) -> float:
        return float(self.prescribed_function(t, derivative))


class Joint(Component):
    """Connects a parent frame to a child body; owns its coordinates."""

    # q slots reserved beyond one per coordinate (never addressed by a state variable)
    num_spare_q_slots = 0

    def __init__(
        self,
        name: str,
        parent_frame: Frame,
        child: Body,
        location_in_parent=(0.0, 0.0),
        location_in_child=(0.0, 0.0),
    ) -> None:
        super().__init__(name)
        if not isinstance(child, Body):
            raise TypeError(f'Joint {name}: child must be a Body, got {type(child).__name__}.')
        self.parent_frame = parent_frame
        self.child = child
        self.location_in_parent = _vec2(location_in_parent, f'Joint {name} location_in_parent')
        self.location_in_child = _vec2(location_in_child, f'Joint {name} location_in_child')

    def _add_coordinate(self, coord: Coordinate) -> Coordinate:
        return self.add_subcomponent(coord)

    @property
    def coordinates(self) -> list[Coordinate]:
        return [c for c in self._subcomponents if isinstance(c, Coordinate)]

    def relative_motion(self, q: np.ndarray, u: np.ndarray, udot: np.ndarray) -> JointMotion:
        raise NotImplementedError


class PinJoint(Joint):
    def __init__(
        self,
        name: str,
        parent_frame: Frame,
        child: Body,
        location_in_parent=(0.0, 0.0),
        location_in_child=(0.0, 0.0),
        coordinate_name: str = 'rz',
        default_value: float = 0.0,
    ) -> None:
        super().__init__(name, parent_frame, child, location_in_parent, location_in_child)
        self.coordinate = self._add_coordinate(Coordinate(coordinate_name, ROTATIONAL, default_value))
        self._declare_output('joint_angle', OutputType.DOUBLE, Stage.POSITION, 'get_joint_angle')

    def get_joint_angle(self, state) -> float:
        return self.coordinate.get_value(state)

    def relative_motion(self, q: np.ndarray, u: np.ndarray, udot: np.ndarray) -> JointMotion:
        z = np.zeros(2, dtype=float)
        return JointMotion(z, z, z, float(q[0]), float(u[0]), float(udot[0]))


class SliderJoint(Joint):
    """Translation along `axis`, expressed in the parent frame."""

    def __init__(
        self,
        name: str,
        parent_frame: Frame,
        child: Body,
        location_in_parent=(0.0, 0.0),
        location_in_child=(0.0, 0.0),
        axis=(1.0, 0.0),
        coordinate_name: str = 'tx',
        default_value: float = 0.0,
    ) -> None:
        super().__init__(name, parent_frame, child, location_in_parent, location_in_child)
        axis = _vec2(axis, f'Joint {name} axis')
        norm = float(np.linalg.norm(axis))
        if norm == 0.0:
            raise ValueError(f'Joint {name}: axis must be non-zero.')
        self.axis = axis / norm
        self.coordinate = self._add_coordinate(Coordinate(coordinate_name, TRANSLATIONAL, default_value))

    def relative_motion(self, q: np.ndarray, u: np.ndarray, udot: np.ndarray) -> JointMotion:
        return JointMotion(
            self.axis * float(q[0]),
            self.axis * float(u[0]),
            self.axis * float(udot[0]),
            0.0,
            0.0,
            0.0,
        )


class FreeJoint(Joint):
    """
    Planar free joint: tx, ty (parent frame) and rz.

    Like a quaternion mobilizer it reserves one extra q slot that no
    coordinate owns.
    """

    num_spare_q_slots = 1

    def __init__(
        self,
        name: str,
        parent_frame: Frame,
        child: Body,
        location_in_parent=(0.0, 0.0),
        location_in_child=(0.0, 0.0),
        coordinate_names: tuple[str, str, str] = ('tx', 'ty', 'rz'),
    ) -> None:
        super().__init__(name, parent_frame, child, location_in_parent, location_in_child)
        tx, ty, rz = coordinate_names
        self._add_coordinate(Coordinate(tx, TRANSLATIONAL))
        self._add_coordinate(Coordinate(ty, TRANSLATIONAL))
        self._add_coordinate(Coordinate(rz, ROTATIONAL))

    def relative_motion(self, q: np.ndarray, u: np.ndarray, udot: np.ndarray) -> JointMotion:
        return JointMotion(
            np.array([q[0], q[1]], dtype=float),
            np.array([u[0], u[1]], dtype=float),
            np.array([udot[0], udot[1]], dtype=float),
            float(q[2]),
            float(u[2]),
            float(udot[2]),
        )
