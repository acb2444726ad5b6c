from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use('Agg')

import matplotlib.pyplot as plt

from motion_replay.table import TimeSeriesTable


AXIS_NAMES = ('x', 'y', 'z')


def plot_table(table: TimeSeriesTable, out_path: Path, title: str = 'Model Outputs vs Time') -> None:
    """Plot every scalar column of an output table against time."""
    if table.value_shape != ():
        raise ValueError(f'plot_table expects scalar columns, got value shape {table.value_shape}.')
    time = table.time
    data = table.data

    fig, ax = plt.subplots(figsize=(12, 6))
    for j, label in enumerate(table.column_labels):
        ax.plot(time, data[:, j], label=label, linewidth=1.2)

    ax.set_xlabel('Time (s)')
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    if table.num_columns:
        ax.legend(ncol=2, fontsize=8)

    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close(fig)


def plot_imu_signals(table: TimeSeriesTable, out_path: Path) -> None:
    """One subplot per IMU frame; x/y/z accelerometer components."""
    if table.value_shape != (3,):
        raise ValueError(f'plot_imu_signals expects Vec3 columns, got value shape {table.value_shape}.')
    time = table.time
    data = table.data
    n = max(table.num_columns, 1)

    fig, axes = plt.subplots(n, 1, figsize=(12, 3.5 * n), sharex=True, squeeze=False)
    for j, label in enumerate(table.column_labels):
        ax = axes[j, 0]
        for k, axis in enumerate(AXIS_NAMES):
            ax.plot(time, data[:, j, k], label=axis, linewidth=1.2)
        ax.axhline(y=0, color='gray', linewidth=0.8, linestyle='--')
        ax.set_ylabel('Accel (m/s^2)')
        ax.set_title(label)
        ax.grid(True, alpha=0.3)
        ax.legend(fontsize=8)
    axes[-1, 0].set_xlabel('Time (s)')

    plt.tight_layout()
    plt.savefig(out_path, dpi=160, bbox_inches='tight')
    plt.close(fig)
