"""
Tests for the planar multibody engine.

Covers stage bookkeeping on SystemState and checks realized accelerations
against closed-form pendulum and slider dynamics.
"""

import logging

import numpy as np
import pytest

from conftest import make_pendulum
from motion_replay.engine import G0, Body, Model, PinJoint, Stage, StageError
from motion_replay.engine.kinematics import solve_udot
from motion_replay.errors import ComponentNotFoundError


class TestStageBookkeeping:
    """Monotonic realization and invalidation"""

    def test_fresh_state_is_instance(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        assert state.realized_through == Stage.INSTANCE

    def test_realize_walks_every_stage(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.realize_report(state)
        assert state.realized_through == Stage.REPORT

    def test_advance_skipping_a_stage_raises(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        with pytest.raises(StageError):
            state.advance_to(Stage.POSITION)

    def test_speed_change_drops_back_to_position(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.realize_acceleration(state)
        pendulum.get_component('/jointset/pin/theta').set_speed(state, 1.0)
        assert state.realized_through == Stage.POSITION

    def test_time_change_drops_back_to_instance(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.realize_velocity(state)
        state.set_time(1.0)
        assert state.realized_through == Stage.INSTANCE

    def test_output_before_its_stage_raises(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.realize_velocity(state)
        output = pendulum.get_component('/bodyset/rod').get_output('linear_acceleration')
        with pytest.raises(StageError):
            output.get_value(state)

    def test_stale_state_after_rebuild_raises(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.init_system()
        with pytest.raises(StageError):
            pendulum.realize_position(state)


class TestControls:
    """Controls live in the Velocity cache"""

    def test_set_controls_before_velocity_raises(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        with pytest.raises(StageError):
            pendulum.set_controls(state, np.array([1.0]))

    def test_controls_default_to_zero(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.realize_velocity(state)
        assert np.array_equal(pendulum.get_controls(state), np.zeros(1))

    def test_set_controls_invalidates_dynamics(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.realize_acceleration(state)
        pendulum.set_controls(state, np.array([0.5]))
        assert state.realized_through == Stage.VELOCITY
        assert pendulum.get_controls(state)[0] == 0.5

    def test_velocity_invalidation_clears_controls(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.realize_velocity(state)
        pendulum.set_controls(state, np.array([0.5]))
        pendulum.get_component('/jointset/pin/theta').set_speed(state, 0.1)
        pendulum.realize_velocity(state)
        assert pendulum.get_controls(state)[0] == 0.0

    def test_wrong_control_count_raises(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.realize_velocity(state)
        with pytest.raises(ValueError):
            pendulum.set_controls(state, np.zeros(3))


class TestPendulumDynamics:
    """Single pendulum against theta_ddot = -m g L sin(theta) / (m L^2 + I)"""

    @pytest.mark.parametrize('theta', [0.0, 0.3, -1.2])
    def test_angular_acceleration(self, theta: float) -> None:
        model = make_pendulum(length=1.0, mass=1.0, inertia=0.5)
        state = model.initialize_state()
        coord = model.get_component('/jointset/pin/theta')
        coord.set_value(state, theta)
        model.realize_acceleration(state)

        expected = -G0 * np.sin(theta) / 1.5
        assert coord.get_acceleration(state) == pytest.approx(expected, abs=1e-9)

    def test_motor_torque_adds_to_gravity(self) -> None:
        model = make_pendulum(length=1.0, mass=1.0, inertia=0.0)
        state = model.initialize_state()
        model.realize_velocity(state)
        model.set_controls(state, np.array([0.2]))
        model.realize_acceleration(state)

        coord = model.get_component('/jointset/pin/theta')
        assert coord.get_acceleration(state) == pytest.approx(2.0, abs=1e-9)

    def test_centripetal_acceleration_points_at_pivot(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.get_component('/jointset/pin/theta').set_speed(state, 2.0)
        pendulum.realize_acceleration(state)

        rod = pendulum.get_component('/bodyset/rod')
        assert np.allclose(rod.get_linear_acceleration_in_ground(state), [0.0, 4.0, 0.0])

    def test_rod_position_hangs_below_pivot(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.realize_position(state)
        rod = pendulum.get_component('/bodyset/rod')
        assert np.allclose(rod.get_position_in_ground(state), [0.0, -1.0, 0.0])

    def test_express_vector_between_frames(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.realize_position(state)
        imu = pendulum.get_component('/bodyset/rod/imu_rotated')
        assert np.allclose(imu.express_vector_in_frame(state, [0.0, 1.0, 0.0]), [1.0, 0.0, 0.0])
        assert np.allclose(imu.express_vector_in_ground(state, [1.0, 0.0, 0.0]), [0.0, 1.0, 0.0])

    def test_joint_angle_output_reads_coordinate(self, pendulum: Model) -> None:
        state = pendulum.initialize_state()
        pendulum.get_component('/jointset/pin/theta').set_value(state, 0.7)
        pendulum.realize_position(state)
        joint = pendulum.get_component('/jointset/pin')
        assert joint.get_output('joint_angle').get_value(state) == 0.7


class TestActuatedSlider:
    """Cart on a horizontal slider: x_ddot = total force / mass"""

    CONTROLS = np.array([1.0, 0.5, 4.0, 7.0, 100.0])

    def _realized(self, model: Model):
        state = model.initialize_state()
        model.realize_velocity(state)
        model.set_controls(state, self.CONTROLS)
        model.realize_acceleration(state)
        return state

    def test_control_count(self, actuated: Model) -> None:
        assert actuated.num_controls == 5

    def test_acceleration_sums_applied_forces(self, actuated: Model) -> None:
        state = self._realized(actuated)
        coord = actuated.get_component('/jointset/slide/x')
        # motor 10 + muscle 0.1 * 100 + push fx 4; passive applies nothing
        assert coord.get_acceleration(state) == pytest.approx(12.0)

    def test_activation_derivative(self, actuated: Model) -> None:
        state = self._realized(actuated)
        zdot = state.cached(Stage.ACCELERATION, 'zdot', 'zdot')
        assert zdot[0] == pytest.approx((0.5 - 0.1) / 0.02)

    def test_override_replaces_actuation(self, actuated: Model) -> None:
        state = actuated.initialize_state()
        motor = actuated.get_component('/forceset/motor')
        motor.set_discrete_variable_value(state, 'override_actuation', -3.0)
        actuated.realize_velocity(state)
        actuated.set_controls(state, self.CONTROLS)
        actuated.realize_dynamics(state)
        assert motor.get_actuation(state) == -3.0

    def test_body_force_output(self, actuated: Model) -> None:
        state = self._realized(actuated)
        push = actuated.get_component('/forceset/push')
        assert np.allclose(push.get_output('force').get_value(state), [4.0, 7.0, 0.0])


class TestModelTree:
    """Component paths and system construction"""

    def test_component_paths(self, pendulum: Model) -> None:
        assert pendulum.get_component('/bodyset/rod/imu').absolute_path == '/bodyset/rod/imu'
        assert pendulum.get_component('jointset/pin/theta').name == 'theta'

    def test_relative_lookup_with_parent_step(self, pendulum: Model) -> None:
        theta = pendulum.get_component('/jointset/pin/theta')
        assert theta.find_component('../..').absolute_path == '/jointset'

    def test_unknown_path_raises(self, pendulum: Model) -> None:
        with pytest.raises(ComponentNotFoundError):
            pendulum.get_component('/bodyset/nope')

    def test_free_joint_reserves_spare_slot(self, free_body: Model) -> None:
        state = free_body.initialize_state()
        assert (state.nq, state.nu, state.nz) == (4, 3, 0)

    def test_unjointed_body_rejected(self) -> None:
        model = Model('loose')
        model.add_body(Body('floating', 1.0))
        with pytest.raises(ValueError):
            model.init_system()

    def test_body_with_two_parent_joints_rejected(self) -> None:
        model = Model('twice')
        body = model.add_body(Body('b', 1.0))
        model.add_joint(PinJoint('j1', model.ground, body))
        model.add_joint(PinJoint('j2', model.ground, body))
        with pytest.raises(ValueError):
            model.init_system()

    def test_out_of_plane_gravity_rejected(self) -> None:
        with pytest.raises(ValueError, match='x-y plane'):
            Model('tilted', gravity=(0.0, 0.0, -9.8))


class TestSolveUdot:
    """Free mobilities from M udot = rhs"""

    def test_prescribed_mobility_passes_through(self) -> None:
        M = np.array([[2.0, 0.0], [0.0, 4.0]])
        udot = solve_udot(M, np.array([6.0, 8.0]), np.array([True, False]), np.array([5.0, 0.0]))
        assert udot.tolist() == [5.0, 2.0]

    def test_singular_mass_matrix_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            udot = solve_udot(np.zeros((1, 1)), np.zeros(1), np.array([False]), np.zeros(1))
        assert 'Singular mass matrix' in caplog.text
        assert udot.tolist() == [0.0]
