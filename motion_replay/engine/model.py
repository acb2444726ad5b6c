from __future__ import annotations

import numpy as np

from motion_replay.engine.actuators import Actuator
from motion_replay.engine.component import C, Component, ComponentSet, StateVariable
from motion_replay.engine.frames import Body, Ground
from motion_replay.engine.joints import Coordinate, Joint
from motion_replay.engine.kinematics import forward_kinematics, mass_properties, solve_udot
from motion_replay.engine.stage import Stage, StageError
from motion_replay.engine.state import SystemState
from motion_replay.errors import ComponentNotFoundError


G0 = 9.80665


class Model(Component):
    """
    Planar multibody model.

    Tree (in this order): ground, bodyset, jointset, componentset, forceset.

    init_system() builds the computational system:
      - mobilizers ordered by depth from ground (declaration order breaks ties),
      - y = [q | u | z]; q slots per mobilizer include its spare slots,
      - controls allocated over get_actuators(): forceset first, then any
        actuator found elsewhere in the tree.
    """

    def __init__(self, name: str = 'model', gravity=(0.0, -G0, 0.0)) -> None:
        super().__init__(name)
        self.gravity = np.asarray(gravity, dtype=float).reshape(3)
        if self.gravity[2] != 0.0:
            raise ValueError(f'Model {name}: gravity must lie in the x-y plane, got z = {self.gravity[2]}.')
        self.ground = self.add_subcomponent(Ground())
        self.bodyset = self.add_subcomponent(ComponentSet('bodyset'))
        self.jointset = self.add_subcomponent(ComponentSet('jointset'))
        self.componentset = self.add_subcomponent(ComponentSet('componentset'))
        self.forceset = self.add_subcomponent(ComponentSet('forceset'))

        self._system_version = 0
        self._initialized = False
        self._mobilizers: list[Joint] = []
        self._coordinates: list[Coordinate] = []
        self._bodies: list[Body] = []
        self._actuators: list[Actuator] = []
        self._state_variable_map: dict[str, StateVariable] = {}
        self._default_state: SystemState | None = None

    # --- building ---

    def add_body(self, body: Body) -> Body:
        self._initialized = False
        return self.bodyset.add(body)

    def add_joint(self, joint: Joint) -> Joint:
        self._initialized = False
        return self.jointset.add(joint)

    def add_force(self, force: C) -> C:
        self._initialized = False
        return self.forceset.add(force)

    def add_component(self, comp: C) -> C:
        self._initialized = False
        return self.componentset.add(comp)

    def remove_component(self, comp: Component) -> None:
        self._initialized = False
        self.componentset.remove_subcomponent(comp)

    # --- system construction ---

    def _joint_depths(self, joints: list[Joint]) -> dict[int, int]:
        by_child: dict[int, Joint] = {}
        for j in joints:
            if j.child.root() is not self:
                raise ValueError(f'Joint {j.absolute_path}: child {j.child.name!r} is not part of the model.')
            if id(j.child) in by_child:
                raise ValueError(f'Body {j.child.absolute_path} is the child of more than one joint.')
            by_child[id(j.child)] = j

        depths: dict[int, int] = {}

        def depth(j: Joint, seen: tuple[int, ...]) -> int:
            if id(j) in depths:
                return depths[id(j)]
            if id(j) in seen:
                raise ValueError(f'Joint {j.absolute_path} is part of a kinematic loop.')
            if j.parent_frame.root() is not self:
                raise ValueError(f'Joint {j.absolute_path}: parent frame is not part of the model.')
            base = j.parent_frame.base_body()
            if base is None:
                d = 1
            else:
                if id(base) not in by_child:
                    raise ValueError(f'Body {base.absolute_path} is not connected to the model by a joint.')
                d = depth(by_child[id(base)], seen + (id(j),)) + 1
            depths[id(j)] = d
            return d

        for j in joints:
            depth(j, ())
        return depths

    def init_system(self) -> SystemState:
        for comp in self.component_list():
            comp._finalize(self)

        bodies = list(self.component_list(Body))
        joints = list(self.component_list(Joint))
        depths = self._joint_depths(joints)
        children = {id(j.child) for j in joints}
        for b in bodies:
            if id(b) not in children:
                raise ValueError(f'Body {b.absolute_path} is not connected to the model by a joint.')

        mobilizers = sorted(joints, key=lambda j: depths[id(j)])
        coordinates = [c for j in mobilizers for c in j.coordinates]

        nq = 0
        for j in mobilizers:
            for c in j.coordinates:
                c._value.slot = nq
                nq += 1
            nq += j.num_spare_q_slots
        nu = len(coordinates)
        for i, c in enumerate(coordinates):
            c.mobility = i
            c._speed.slot = nq + i

        state_variables: dict[str, StateVariable] = {}
        nz = 0
        for comp in self.component_list():
            for sv in comp.state_variables:
                if sv.kind == 'z':
                    sv.slot = nq + nu + nz
                    nz += 1
                elif not isinstance(comp, Coordinate):
                    raise ValueError(f'Only coordinates may own q/u state variables ({sv.path}).')
                state_variables[sv.path] = sv

        actuators = self.get_actuators()
        n_controls = 0
        for a in actuators:
            a.control_index = n_controls
            n_controls += a.num_controls

        discrete = {
            dv.key: dv.default
            for comp in self.component_list()
            for dv in comp._discrete_variables.values()
        }

        self._system_version += 1
        self._mobilizers = mobilizers
        self._coordinates = coordinates
        self._bodies = bodies
        self._actuators = actuators
        self._state_variable_map = state_variables

        state = SystemState(nq, nu, nz, n_controls, discrete, self._system_version)
        y = np.zeros(nq + nu + nz, dtype=float)
        for sv in state_variables.values():
            y[sv.slot] = sv.default
        state.set_y(y)
        self._default_state = state
        self._initialized = True
        return state.copy()

    def _require_system(self) -> None:
        if not self._initialized:
            raise RuntimeError(f'Model {self.name!r}: call init_system() after changing the model.')

    def initialize_state(self) -> SystemState:
        self._require_system()
        return self._default_state.copy()

    # --- queries ---

    @property
    def num_controls(self) -> int:
        self._require_system()
        return self._default_state.num_controls

    def get_actuators(self) -> list[Actuator]:
        in_forceset = [a for a in self.forceset.component_list(Actuator)]
        seen = {id(a) for a in in_forceset}
        elsewhere = [a for a in self.component_list(Actuator) if id(a) not in seen]
        return in_forceset + elsewhere

    def get_coordinates(self) -> list[Coordinate]:
        """Coordinates in mobility order."""
        self._require_system()
        return list(self._coordinates)

    def get_bodies(self) -> list[Body]:
        return list(self.component_list(Body))

    def get_component(self, path: str) -> Component:
        comp = self.find_component(path if str(path).startswith('/') else '/' + str(path))
        if comp is self:
            raise ComponentNotFoundError(f'Path {path!r} names the model itself, not a component.')
        return comp

    def get_gravity(self) -> np.ndarray:
        return self.gravity.copy()

    def get_state_variable_names(self) -> list[str]:
        """State variable paths in component tree order (not y order)."""
        self._require_system()
        return list(self._state_variable_map)

    def _state_variable(self, path: str) -> StateVariable:
        self._require_system()
        if path not in self._state_variable_map:
            raise KeyError(f'No state variable named {path!r}.')
        return self._state_variable_map[path]

    def get_state_variable_value(self, state: SystemState, path: str) -> float:
        return float(state.y[self._state_variable(path).slot])

    def set_state_variable_value(self, state: SystemState, path: str, value: float) -> None:
        self._check_state(state)
        state.set_y_slot(self._state_variable(path).slot, value)

    # --- controls ---

    def get_controls(self, state: SystemState) -> np.ndarray:
        self._check_state(state)
        return state.controls

    def set_controls(self, state: SystemState, controls: np.ndarray) -> None:
        """Controls can only be set once the state is realized through Velocity."""
        self._check_state(state)
        state.set_controls(controls)

    # --- prescribed motion ---

    def prescribe(self, state: SystemState) -> None:
        """Overwrite value and speed of prescribed coordinates from their functions of time."""
        self._check_state(state)
        t = state.time
        for c in self._coordinates:
            if c.is_prescribed:
                c.set_value(state, c.prescribed_value(t, 0))
                c.set_speed(state, c.prescribed_value(t, 1))

    # --- realization ---

    def _check_state(self, state: SystemState) -> None:
        self._require_system()
        if state.system_version != self._system_version:
            raise StageError(
                f'State belongs to system version {state.system_version}, but model {self.name!r} '
                f'is at version {self._system_version}; create states after init_system().'
            )

    def realize(self, state: SystemState, stage: Stage) -> None:
        self._check_state(state)
        for s in range(int(state.realized_through) + 1, int(stage) + 1):
            self._realize_stage(state, Stage(s))
            state.advance_to(Stage(s))

    def realize_time(self, state: SystemState) -> None:
        self.realize(state, Stage.TIME)

    def realize_position(self, state: SystemState) -> None:
        self.realize(state, Stage.POSITION)

    def realize_velocity(self, state: SystemState) -> None:
        self.realize(state, Stage.VELOCITY)

    def realize_dynamics(self, state: SystemState) -> None:
        self.realize(state, Stage.DYNAMICS)

    def realize_acceleration(self, state: SystemState) -> None:
        self.realize(state, Stage.ACCELERATION)

    def realize_report(self, state: SystemState) -> None:
        self.realize(state, Stage.REPORT)

    def _mobility_q(self, state: SystemState) -> np.ndarray:
        return np.array([state.y[c.value_slot] for c in self._coordinates], dtype=float)

    def _mobility_u(self, state: SystemState) -> np.ndarray:
        return np.array(state.u, dtype=float)

    def _realize_stage(self, state: SystemState, stage: Stage) -> None:
        nu = len(self._coordinates)
        zero = np.zeros(nu, dtype=float)

        if stage == Stage.POSITION:
            bodies = forward_kinematics(self._mobilizers, self._mobility_q(state), zero, zero)
            state.cache(stage)['bodies'] = bodies

        elif stage == Stage.VELOCITY:
            bodies = forward_kinematics(
                self._mobilizers, self._mobility_q(state), self._mobility_u(state), zero
            )
            state.cache(stage)['bodies'] = bodies

        elif stage == Stage.DYNAMICS:
            self._realize_dynamics_stage(state)

        elif stage == Stage.ACCELERATION:
            self._realize_acceleration_stage(state)

        elif stage == Stage.REPORT:
            for comp in self.component_list():
                comp._realize_report(state)

    def _realize_dynamics_stage(self, state: SystemState) -> None:
        controls = state.controls
        tau = np.zeros(len(self._coordinates), dtype=float)
        body_forces: dict[str, np.ndarray] = {}
        actuation = {}
        for a in self._actuators:
            value = a.compute_actuation(state, a.get_controls(controls))
            actuation[a.absolute_path] = value
            if a.applies_force:
                a.apply_force(state, value, tau, body_forces)

        cache = state.cache(Stage.DYNAMICS)
        cache['controls'] = controls
        cache['actuation'] = actuation
        cache['tau'] = tau
        cache['body_forces'] = body_forces

    def _realize_acceleration_stage(self, state: SystemState) -> None:
        q = self._mobility_q(state)
        u = self._mobility_u(state)
        dyn = state.cache(Stage.DYNAMICS)

        mp = mass_properties(self._mobilizers, self._bodies, q, u)
        g = self.gravity[:2]
        rhs = dyn['tau'] - mp.bias
        for b in self._bodies:
            path = b.absolute_path
            f = b.mass * g + dyn['body_forces'].get(path, np.zeros(2, dtype=float))
            rhs = rhs + mp.jv[path].T @ f

        prescribed = np.array([c.is_prescribed for c in self._coordinates], dtype=bool)
        udot_p = np.array(
            [c.prescribed_value(state.time, 2) if c.is_prescribed else 0.0 for c in self._coordinates],
            dtype=float,
        )
        udot = solve_udot(mp.mass_matrix, rhs, prescribed, udot_p)

        zdot = np.zeros(state.nz, dtype=float)
        offset = state.nq + state.nu
        for a in self._actuators:
            for slot, rate in a.state_derivatives(state, a.get_controls(dyn['controls'])).items():
                zdot[slot - offset] = rate

        cache = state.cache(Stage.ACCELERATION)
        cache['mass_matrix'] = mp.mass_matrix
        cache['udot'] = udot
        cache['zdot'] = zdot
        cache['bodies'] = forward_kinematics(self._mobilizers, q, u, udot)
