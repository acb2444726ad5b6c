from __future__ import annotations

import numpy as np

from motion_replay.engine.component import Component, OutputType
from motion_replay.engine.kinematics import FrameKinematics, rot3, vec3
from motion_replay.engine.stage import Stage


def _vec2(v, what: str) -> np.ndarray:
    arr = np.asarray(v, dtype=float).reshape(-1)
    if arr.size == 3:
        if arr[2] != 0.0:
            raise ValueError(f'{what} must lie in the x-y plane, got {arr.tolist()}.')
        arr = arr[:2]
    if arr.size != 2:
        raise ValueError(f'{what} must have 2 (or planar 3) components, got {arr.tolist()}.')
    return arr


class Frame(Component):
    """A reference frame whose kinematics can be reported in ground."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self._declare_output('position', OutputType.VEC3, Stage.POSITION, 'get_position_in_ground')
        self._declare_output('rotation', OutputType.ROTATION, Stage.POSITION, 'get_rotation_in_ground')
        self._declare_output('velocity', OutputType.VEC3, Stage.VELOCITY, 'get_velocity_in_ground')
        self._declare_output(
            'angular_velocity', OutputType.VEC3, Stage.VELOCITY, 'get_angular_velocity_in_ground'
        )
        self._declare_output(
            'linear_acceleration', OutputType.VEC3, Stage.ACCELERATION, 'get_linear_acceleration_in_ground'
        )
        self._declare_output(
            'angular_acceleration',
            OutputType.VEC3,
            Stage.ACCELERATION,
            'get_angular_acceleration_in_ground',
        )

    def base_body(self) -> Body | None:
        raise NotImplementedError

    def kinematics_from(self, bodies: dict[str, FrameKinematics]) -> FrameKinematics:
        raise NotImplementedError

    def add_offset_frame(self, name: str, translation=(0.0, 0.0), angle: float = 0.0) -> PhysicalOffsetFrame:
        return self.add_subcomponent(PhysicalOffsetFrame(name, self, translation, angle))

    def _kinematics(self, state, stage: Stage) -> FrameKinematics:
        bodies = state.cached(stage, 'bodies', f'Kinematics of {self.absolute_path}')
        return self.kinematics_from(bodies)

    def get_position_in_ground(self, state) -> np.ndarray:
        return vec3(self._kinematics(state, Stage.POSITION).position)

    def get_rotation_in_ground(self, state) -> np.ndarray:
        return rot3(self._kinematics(state, Stage.POSITION).angle)

    def get_velocity_in_ground(self, state) -> np.ndarray:
        return vec3(self._kinematics(state, Stage.VELOCITY).velocity)

    def get_angular_velocity_in_ground(self, state) -> np.ndarray:
        return np.array([0.0, 0.0, self._kinematics(state, Stage.VELOCITY).angular_velocity])

    def get_linear_acceleration_in_ground(self, state) -> np.ndarray:
        return vec3(self._kinematics(state, Stage.ACCELERATION).acceleration)

    def get_angular_acceleration_in_ground(self, state) -> np.ndarray:
        return np.array([0.0, 0.0, self._kinematics(state, Stage.ACCELERATION).angular_acceleration])

    def express_vector_in_ground(self, state, v) -> np.ndarray:
        return self.get_rotation_in_ground(state) @ np.asarray(v, dtype=float)

    def express_vector_in_frame(self, state, v_ground) -> np.ndarray:
        return self.get_rotation_in_ground(state).T @ np.asarray(v_ground, dtype=float)


class Ground(Frame):
    def __init__(self, name: str = 'ground') -> None:
        super().__init__(name)

    def base_body(self) -> Body | None:
        return None

    def kinematics_from(self, bodies: dict[str, FrameKinematics]) -> FrameKinematics:
        return FrameKinematics()


class Body(Frame):
    """
    Rigid body moving in the x-y plane.

    inertia: moment of inertia about the mass center, around z (kg m^2).
    """

    def __init__(self, name: str, mass: float, mass_center=(0.0, 0.0), inertia: float = 0.0) -> None:
        super().__init__(name)
        self.mass = float(mass)
        self.mass_center = _vec2(mass_center, f'Body {name} mass_center')
        self.inertia = float(inertia)
        if self.mass < 0.0 or self.inertia < 0.0:
            raise ValueError(f'Body {name}: mass and inertia must be >= 0.')

    def base_body(self) -> Body | None:
        return self

    def kinematics_from(self, bodies: dict[str, FrameKinematics]) -> FrameKinematics:
        return bodies[self.absolute_path]


class PhysicalOffsetFrame(Frame):
    """Frame rigidly fixed to a parent frame at a translation and rotation."""

    def __init__(self, name: str, parent: Frame, translation=(0.0, 0.0), angle: float = 0.0) -> None:
        super().__init__(name)
        self.parent = parent
        self.translation = _vec2(translation, f'Frame {name} translation')
        self.angle = float(angle)

    def base_body(self) -> Body | None:
        return self.parent.base_body()

    def kinematics_from(self, bodies: dict[str, FrameKinematics]) -> FrameKinematics:
        return self.parent.kinematics_from(bodies).shift(self.translation, self.angle)
