from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

logger = logging.getLogger(__name__)


def rot2(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s], [s, c]], dtype=float)


def rot3(angle: float) -> np.ndarray:
    """Rotation about the ground z axis; all motion is in the x-y plane."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]], dtype=float)


def perp(v: np.ndarray) -> np.ndarray:
    """z x v for a planar vector."""
    return np.array([-v[1], v[0]], dtype=float)


def vec3(v2: np.ndarray) -> np.ndarray:
    return np.array([v2[0], v2[1], 0.0], dtype=float)


def _zeros2() -> np.ndarray:
    return np.zeros(2, dtype=float)


@dataclass
class FrameKinematics:
    """Planar pose, velocity and acceleration of a frame, expressed in ground."""

    position: np.ndarray = field(default_factory=_zeros2)
    angle: float = 0.0
    velocity: np.ndarray = field(default_factory=_zeros2)
    angular_velocity: float = 0.0
    acceleration: np.ndarray = field(default_factory=_zeros2)
    angular_acceleration: float = 0.0

    def shift(self, offset: np.ndarray, angle_offset: float = 0.0) -> FrameKinematics:
        """Kinematics of a frame fixed to this one at `offset` (local coordinates)."""
        r = rot2(self.angle) @ np.asarray(offset, dtype=float)
        w = self.angular_velocity
        return FrameKinematics(
            position=self.position + r,
            angle=self.angle + float(angle_offset),
            velocity=self.velocity + w * perp(r),
            angular_velocity=w,
            acceleration=self.acceleration + self.angular_acceleration * perp(r) - w * w * r,
            angular_acceleration=self.angular_acceleration,
        )


@dataclass
class JointMotion:
    """Child-vs-parent motion across a joint: translation in the parent frame plus a rotation."""

    translation: np.ndarray
    translation_dot: np.ndarray
    translation_ddot: np.ndarray
    angle: float
    angle_dot: float
    angle_ddot: float


def child_kinematics(
    parent: FrameKinematics,
    location_in_parent: np.ndarray,
    location_in_child: np.ndarray,
    motion: JointMotion,
) -> FrameKinematics:
    """
    Walk parent frame -> joint frame on parent -> translated joint frame -> child origin:

      a_O' = a_P + alpha_P z x r - w_P^2 r + 2 w_P z x d_rel + dd_rel,   r = r_joint + d
      a_C  = a_O' + alpha z x r2 - w^2 r2,                              r2 = -R(phi) loc_child
    """
    R_p = rot2(parent.angle)
    wp, ap = parent.angular_velocity, parent.angular_acceleration

    r = R_p @ np.asarray(location_in_parent, dtype=float) + R_p @ motion.translation
    d_rel = R_p @ motion.translation_dot
    dd_rel = R_p @ motion.translation_ddot

    p_o = parent.position + r
    v_o = parent.velocity + wp * perp(r) + d_rel
    a_o = parent.acceleration + ap * perp(r) - wp * wp * r + 2.0 * wp * perp(d_rel) + dd_rel

    angle = parent.angle + motion.angle
    w = wp + motion.angle_dot
    alpha = ap + motion.angle_ddot

    r2 = -(rot2(angle) @ np.asarray(location_in_child, dtype=float))
    return FrameKinematics(
        position=p_o + r2,
        angle=angle,
        velocity=v_o + w * perp(r2),
        angular_velocity=w,
        acceleration=a_o + alpha * perp(r2) - w * w * r2,
        angular_acceleration=alpha,
    )


def forward_kinematics(
    mobilizers: list,
    q: np.ndarray,
    u: np.ndarray,
    udot: np.ndarray,
) -> dict[str, FrameKinematics]:
    """
    Body kinematics keyed by body path. `mobilizers` must be ordered parent-first;
    q/u/udot are indexed by coordinate mobility index.
    """
    bodies: dict[str, FrameKinematics] = {}
    for joint in mobilizers:
        idx = [c.mobility for c in joint.coordinates]
        motion = joint.relative_motion(q[idx], u[idx], udot[idx])
        parent_kin = joint.parent_frame.kinematics_from(bodies)
        bodies[joint.child.absolute_path] = child_kinematics(
            parent_kin, joint.location_in_parent, joint.location_in_child, motion
        )
    return bodies


@dataclass
class MassProperties:
    """Acceleration-level partials of every body's mass center."""

    mass_matrix: np.ndarray  # (nu, nu)
    bias: np.ndarray  # (nu,) generalized inertial forces at udot = 0
    jv: dict[str, np.ndarray]  # body path -> (2, nu)
    jw: dict[str, np.ndarray]  # body path -> (nu,)


def mass_properties(mobilizers: list, bodies: list, q: np.ndarray, u: np.ndarray) -> MassProperties:
    """
    Accelerations are affine in udot: a = J udot + b. Columns of J come from
    unit udot perturbations; the mass matrix and velocity bias follow from

      M = sum(m Jv^T Jv + I Jw Jw^T),   bias = sum(m Jv^T bv + I Jw bw)
    """
    nu = u.size
    zero = np.zeros(nu, dtype=float)
    base = forward_kinematics(mobilizers, q, u, zero)

    def com(kin: dict[str, FrameKinematics], body) -> FrameKinematics:
        return kin[body.absolute_path].shift(body.mass_center)

    b_v = {b.absolute_path: com(base, b).acceleration for b in bodies}
    b_w = {b.absolute_path: base[b.absolute_path].angular_acceleration for b in bodies}
    jv = {b.absolute_path: np.zeros((2, nu), dtype=float) for b in bodies}
    jw = {b.absolute_path: np.zeros(nu, dtype=float) for b in bodies}

    for k in range(nu):
        e = zero.copy()
        e[k] = 1.0
        kin = forward_kinematics(mobilizers, q, u, e)
        for b in bodies:
            path = b.absolute_path
            jv[path][:, k] = com(kin, b).acceleration - b_v[path]
            jw[path][k] = kin[path].angular_acceleration - b_w[path]

    M = np.zeros((nu, nu), dtype=float)
    bias = np.zeros(nu, dtype=float)
    for b in bodies:
        path = b.absolute_path
        M += b.mass * (jv[path].T @ jv[path]) + b.inertia * np.outer(jw[path], jw[path])
        bias += b.mass * (jv[path].T @ b_v[path]) + b.inertia * jw[path] * b_w[path]

    return MassProperties(mass_matrix=M, bias=bias, jv=jv, jw=jw)


def solve_udot(
    M: np.ndarray,
    rhs: np.ndarray,
    prescribed: np.ndarray,
    udot_prescribed: np.ndarray,
) -> np.ndarray:
    """Solve M udot = rhs for the free mobilities; prescribed ones are given."""
    udot = np.where(prescribed, udot_prescribed, 0.0).astype(float)
    free = ~prescribed
    if not np.any(free):
        return udot

    A = M[np.ix_(free, free)]
    r = rhs[free] - M[np.ix_(free, prescribed)] @ udot[prescribed]
    try:
        udot[free] = np.linalg.solve(A, r)
    except np.linalg.LinAlgError:
        logger.warning(
            'Singular mass matrix over %d free mobilities; using a least-squares acceleration. '
            'Check that every body has mass and inertia.',
            int(np.count_nonzero(free)),
        )
        udot[free] = np.linalg.lstsq(A, r, rcond=None)[0]
    return udot
