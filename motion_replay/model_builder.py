"""Build a planar Model from the "model" block of a JSON config."""

from __future__ import annotations

import numpy as np
from scipy.interpolate import CubicSpline

from motion_replay.engine import (
    ActivationCoordinateActuator,
    Body,
    BodyForceActuator,
    Coordinate,
    CoordinateActuator,
    Frame,
    FreeJoint,
    Joint,
    Model,
    PinJoint,
    SliderJoint,
)
from motion_replay.settings import req_float, req_floats, req_list, req_str


def prescribed_spline(spec: dict, where: str) -> CubicSpline:
    """
    Cubic spline through {"times": [...], "values": [...]}; evaluated as f(t, nu)
    so speed and acceleration come from its derivatives.
    """
    times = np.asarray(req_list(spec, ['times']), dtype=float)
    values = np.asarray(req_list(spec, ['values']), dtype=float)
    if times.size < 2 or times.size != values.size:
        raise ValueError(f'{where}.prescribed needs >= 2 times and one value per time.')
    if np.any(np.diff(times) <= 0.0):
        raise ValueError(f'{where}.prescribed.times must be strictly increasing.')
    return CubicSpline(times, values, bc_type=spec.get('bc_type', 'not-a-knot'))


def _resolve_frame(model: Model, bodies: dict[str, Body], name: str, where: str) -> Frame:
    if name == 'ground':
        return model.ground
    if name in bodies:
        return bodies[name]
    frame = model.get_component(name)
    if not isinstance(frame, Frame):
        raise ValueError(f'{where}: {name!r} is not a frame.')
    return frame


def _build_joint(model: Model, bodies: dict[str, Body], cfg: dict, where: str) -> Joint:
    kind = req_str(cfg, ['type'])
    name = req_str(cfg, ['name'])
    parent = _resolve_frame(model, bodies, req_str(cfg, ['parent']), where)
    child_name = req_str(cfg, ['child'])
    if child_name not in bodies:
        raise ValueError(f'{where}.child: unknown body {child_name!r}.')
    child = bodies[child_name]

    loc_p = cfg.get('location_in_parent', [0.0, 0.0])
    loc_c = cfg.get('location_in_child', [0.0, 0.0])
    coords_cfg = cfg.get('coordinates', [])

    if kind == 'pin':
        coord_name = coords_cfg[0]['name'] if coords_cfg else 'rz'
        joint: Joint = PinJoint(name, parent, child, loc_p, loc_c, coordinate_name=coord_name)
    elif kind == 'slider':
        coord_name = coords_cfg[0]['name'] if coords_cfg else 'tx'
        joint = SliderJoint(
            name, parent, child, loc_p, loc_c, axis=cfg.get('axis', [1.0, 0.0]), coordinate_name=coord_name
        )
    elif kind == 'free':
        names = tuple(c['name'] for c in coords_cfg) if coords_cfg else ('tx', 'ty', 'rz')
        if len(names) != 3:
            raise ValueError(f'{where}.coordinates: a free joint has exactly 3 coordinates.')
        joint = FreeJoint(name, parent, child, loc_p, loc_c, coordinate_names=names)
    else:
        raise ValueError(f'{where}.type: unknown joint type {kind!r}.')

    for i, (coord, c_cfg) in enumerate(zip(joint.coordinates, coords_cfg)):
        coord.default_value = float(c_cfg.get('default_value', 0.0))
        coord.default_speed = float(c_cfg.get('default_speed', 0.0))
        if 'prescribed' in c_cfg:
            coord.prescribed_function = prescribed_spline(c_cfg['prescribed'], f'{where}.coordinates[{i}]')
    return joint


def _find_coordinate(model: Model, name: str, where: str) -> Coordinate:
    matches = [c for c in model.component_list(Coordinate) if c.name == name or c.absolute_path == name]
    if len(matches) != 1:
        raise ValueError(f'{where}.coordinate: expected one coordinate named {name!r}, found {len(matches)}.')
    return matches[0]


def _build_actuator(model: Model, bodies: dict[str, Body], cfg: dict, where: str):
    kind = req_str(cfg, ['type'])
    name = req_str(cfg, ['name'])
    applies_force = bool(cfg.get('applies_force', True))
    optimal_force = float(cfg.get('optimal_force', 1.0))

    if kind == 'coordinate':
        coord = _find_coordinate(model, req_str(cfg, ['coordinate']), where)
        return CoordinateActuator(name, coord, optimal_force, applies_force)
    if kind == 'activation_coordinate':
        coord = _find_coordinate(model, req_str(cfg, ['coordinate']), where)
        return ActivationCoordinateActuator(
            name,
            coord,
            optimal_force,
            activation_time_constant=req_float(cfg, ['activation_time_constant']),
            default_activation=float(cfg.get('default_activation', 0.0)),
            applies_force=applies_force,
        )
    if kind == 'body_force':
        body_name = req_str(cfg, ['body'])
        if body_name not in bodies:
            raise ValueError(f'{where}.body: unknown body {body_name!r}.')
        return BodyForceActuator(name, bodies[body_name], optimal_force, applies_force)
    raise ValueError(f'{where}.type: unknown actuator type {kind!r}.')


def build_model(config: dict) -> Model:
    """
    Build the model described by config["model"]:

      bodies    -> bodyset (with optional offset "frames")
      joints    -> jointset (pin / slider / free, optional coordinate defaults
                   and prescribed splines)
      actuators -> forceset (or componentset when "set" is "componentset")
    """
    cfg = config['model']
    model = Model(req_str(cfg, ['name']), gravity=req_floats(cfg, ['gravity'], 3))

    bodies: dict[str, Body] = {}
    for b_cfg in req_list(cfg, ['bodies']):
        body = Body(
            req_str(b_cfg, ['name']),
            req_float(b_cfg, ['mass']),
            mass_center=b_cfg.get('mass_center', [0.0, 0.0]),
            inertia=float(b_cfg.get('inertia', 0.0)),
        )
        for f_cfg in b_cfg.get('frames', []):
            body.add_offset_frame(
                req_str(f_cfg, ['name']),
                translation=f_cfg.get('translation', [0.0, 0.0]),
                angle=float(f_cfg.get('angle', 0.0)),
            )
        bodies[body.name] = model.add_body(body)

    for i, j_cfg in enumerate(req_list(cfg, ['joints'])):
        model.add_joint(_build_joint(model, bodies, j_cfg, f'model.joints[{i}]'))

    for i, a_cfg in enumerate(cfg.get('actuators', [])):
        actu = _build_actuator(model, bodies, a_cfg, f'model.actuators[{i}]')
        target = a_cfg.get('set', 'forceset')
        if target == 'forceset':
            model.add_force(actu)
        elif target == 'componentset':
            model.add_component(actu)
        else:
            raise ValueError(f'model.actuators[{i}].set must be "forceset" or "componentset".')

    model.init_system()
    return model
