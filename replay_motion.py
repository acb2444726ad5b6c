#!/usr/bin/env -S uv run

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from motion_replay.engine import OutputType
from motion_replay.env import env_bool, env_log_level
from motion_replay.io import read_table_csv, write_table_csv
from motion_replay.model_builder import build_model
from motion_replay.plotting import plot_imu_signals, plot_table
from motion_replay.settings import read_config, resolve_path
from motion_replay.utilities import (
    analyze,
    create_control_names_from_model,
    create_state_variable_names_with_y_indices,
    create_synthetic_imu_acceleration_signals,
)


DEFAULT_OUTPUT_DIR = 'output'
PLOT_ENV = 'MOTION_REPLAY_PLOT'


def _load_model(args: argparse.Namespace):
    cfg = read_config(resolve_path(args.config) if args.config else None)
    return build_model(cfg)


def _should_plot(args: argparse.Namespace) -> bool:
    if args.plot:
        return True
    return bool(env_bool(PLOT_ENV))


def cmd_labels(args: argparse.Namespace) -> None:
    model = _load_model(args)
    names, y_index = create_state_variable_names_with_y_indices(model)

    print(f'Model {model.name!r}: {len(names)} state variables, {model.num_controls} controls')
    print('\nState variables (system order):')
    for i, name in enumerate(names):
        print(f'  y[{y_index[i]:3d}]  {name}')
    print('\nControls:')
    for i, name in enumerate(create_control_names_from_model(model)):
        print(f'  u[{i:3d}]  {name}')


def cmd_analyze(args: argparse.Namespace) -> None:
    model = _load_model(args)
    states = read_table_csv(resolve_path(args.states))
    controls = read_table_csv(resolve_path(args.controls))
    discretes = read_table_csv(resolve_path(args.discretes)) if args.discretes else None

    table = analyze(
        model,
        states,
        controls,
        args.outputs,
        OutputType.parse(args.value_type),
        discretes,
        allow_extra_columns=args.allow_extra_columns,
    )

    out_dir = resolve_path(args.out)
    out_csv = out_dir / 'outputs.csv'
    write_table_csv(out_csv, table)
    print(f'Analyzed {table.num_rows} rows, {table.num_columns} outputs -> {out_csv}')
    for label in table.column_labels:
        print(f'  {label}')

    if _should_plot(args) and table.value_shape == ():
        out_png = out_dir / 'outputs.png'
        plot_table(table, out_png)
        print(f'Plot -> {out_png}')


def cmd_imu(args: argparse.Namespace) -> None:
    model = _load_model(args)
    states = read_table_csv(resolve_path(args.states))
    controls = read_table_csv(resolve_path(args.controls))

    table = create_synthetic_imu_acceleration_signals(model, states, controls, args.frames)

    out_dir = resolve_path(args.out)
    out_csv = out_dir / 'imu_accelerations.csv'
    write_table_csv(out_csv, table)
    print(f'Synthesized {table.num_columns} IMU signal(s) over {table.num_rows} rows -> {out_csv}')

    if _should_plot(args):
        out_png = out_dir / 'imu_accelerations.png'
        plot_imu_signals(table, out_png)
        print(f'Plot -> {out_png}')


def main() -> None:
    logging.basicConfig(level=env_log_level(), format='%(levelname)s %(name)s: %(message)s')

    parser = argparse.ArgumentParser(description='Replay a recorded motion through a model and report outputs.')
    parser.add_argument('--config', type=str, default=None, help='Model config JSON (default: config.json).')
    sub = parser.add_subparsers(dest='command', required=True)

    p_labels = sub.add_parser('labels', help='List state variable and control labels in system order.')
    p_labels.set_defaults(func=cmd_labels)

    p_analyze = sub.add_parser('analyze', help='Report model outputs along a states/controls trajectory.')
    p_analyze.add_argument('--states', required=True, help='States CSV.')
    p_analyze.add_argument('--controls', required=True, help='Controls CSV.')
    p_analyze.add_argument('--discretes', default=None, help='Discrete variables CSV.')
    p_analyze.add_argument(
        '--outputs', nargs='+', required=True, help='Output path regexes, e.g. ".*joint_angle".'
    )
    p_analyze.add_argument(
        '--value-type',
        default=OutputType.DOUBLE.value,
        choices=[t.value for t in OutputType],
        help='Only report outputs of this type.',
    )
    p_analyze.add_argument(
        '--allow-extra-columns', action='store_true', help='Ignore states columns the model does not have.'
    )
    p_analyze.add_argument('--out', default=DEFAULT_OUTPUT_DIR)
    p_analyze.add_argument('--plot', action='store_true')
    p_analyze.set_defaults(func=cmd_analyze)

    p_imu = sub.add_parser('imu', help='Synthesize accelerometer signals for frames.')
    p_imu.add_argument('--states', required=True, help='States CSV.')
    p_imu.add_argument('--controls', required=True, help='Controls CSV.')
    p_imu.add_argument('--frames', nargs='+', required=True, help='Frame paths, e.g. /bodyset/thigh/imu.')
    p_imu.add_argument('--out', default=DEFAULT_OUTPUT_DIR)
    p_imu.add_argument('--plot', action='store_true')
    p_imu.set_defaults(func=cmd_imu)

    args = parser.parse_args()
    args.func(args)


if __name__ == '__main__':
    main()
