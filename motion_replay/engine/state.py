from __future__ import annotations

from typing import Any

import numpy as np

from motion_replay.engine.stage import Stage, StageError


class SystemState:
    """
    One instant of the system:

      y = [q slots | u slots | z slots]

    plus discrete variable values, the model control vector and the cached
    results of every realized stage.

    `realized_through` only moves forward through `advance_to()`. Any setter
    invalidates the cache from the stage its quantity feeds:
      - time        -> Time
      - q           -> Position
      - u           -> Velocity
      - z, controls -> Dynamics
      - discretes   -> their declared stage (Dynamics by default)

    Controls are cached at Velocity; invalidating Velocity or below drops them.
    """

    def __init__(
        self,
        nq: int,
        nu: int,
        nz: int,
        num_controls: int,
        discrete: dict[str, float],
        system_version: int,
    ) -> None:
        self.nq = int(nq)
        self.nu = int(nu)
        self.nz = int(nz)
        self.num_controls = int(num_controls)
        self.system_version = int(system_version)

        self._time = 0.0
        self._y = np.zeros(self.nq + self.nu + self.nz, dtype=float)
        self._discrete: dict[str, float] = dict(discrete)
        self._controls: np.ndarray | None = None
        self._cache: dict[Stage, dict[str, Any]] = {}
        self._realized_through = Stage.INSTANCE

    # --- stage bookkeeping ---

    @property
    def realized_through(self) -> Stage:
        return self._realized_through

    def advance_to(self, stage: Stage) -> None:
        stage = Stage(stage)
        if stage != self._realized_through + 1:
            raise StageError(
                f'Cannot advance from {self._realized_through.label()} to {stage.label()}; '
                'stages are realized one at a time.'
            )
        self._realized_through = stage

    def invalidate(self, stage: Stage) -> None:
        stage = Stage(stage)
        if self._realized_through >= stage:
            self._realized_through = Stage(stage - 1)
        for s in [s for s in self._cache if s >= stage]:
            del self._cache[s]
        if stage <= Stage.VELOCITY:
            self._controls = None

    def require(self, stage: Stage, what: str) -> None:
        if self._realized_through < stage:
            raise StageError(
                f'{what} requires stage {Stage(stage).label()}, but the state is only realized '
                f'through {self._realized_through.label()}.'
            )

    def cache(self, stage: Stage) -> dict[str, Any]:
        """Writable cache entry for a stage being realized."""
        return self._cache.setdefault(Stage(stage), {})

    def cached(self, stage: Stage, key: str, what: str) -> Any:
        self.require(stage, what)
        return self._cache[Stage(stage)][key]

    # --- time ---

    @property
    def time(self) -> float:
        return self._time

    def set_time(self, t: float) -> None:
        self._time = float(t)
        self.invalidate(Stage.TIME)

    # --- continuous state ---

    @property
    def ny(self) -> int:
        return self._y.size

    @property
    def y(self) -> np.ndarray:
        """Read-only view of the continuous state vector."""
        view = self._y.view()
        view.flags.writeable = False
        return view

    @property
    def q(self) -> np.ndarray:
        return self.y[: self.nq]

    @property
    def u(self) -> np.ndarray:
        return self.y[self.nq : self.nq + self.nu]

    @property
    def z(self) -> np.ndarray:
        return self.y[self.nq + self.nu :]

    def slot_stage(self, slot: int) -> Stage:
        if slot < 0 or slot >= self.ny:
            raise IndexError(f'y slot {slot} out of range (ny={self.ny}).')
        if slot < self.nq:
            return Stage.POSITION
        if slot < self.nq + self.nu:
            return Stage.VELOCITY
        return Stage.DYNAMICS

    def set_y(self, y: np.ndarray) -> None:
        y = np.asarray(y, dtype=float)
        if y.shape != self._y.shape:
            raise ValueError(f'y must have shape {self._y.shape}, got {y.shape}.')
        self._y[:] = y
        self.invalidate(Stage.POSITION)

    def set_y_slot(self, slot: int, value: float) -> None:
        stage = self.slot_stage(slot)
        self._y[slot] = float(value)
        self.invalidate(stage)

    # --- discrete variables ---

    def discrete_value(self, key: str) -> float:
        if key not in self._discrete:
            raise KeyError(f'No discrete variable {key!r} in this state.')
        return self._discrete[key]

    def set_discrete_value(self, key: str, value: float, stage: Stage = Stage.DYNAMICS) -> None:
        if key not in self._discrete:
            raise KeyError(f'No discrete variable {key!r} in this state.')
        self._discrete[key] = float(value)
        self.invalidate(stage)

    # --- controls ---

    @property
    def controls(self) -> np.ndarray:
        self.require(Stage.VELOCITY, 'Reading controls')
        if self._controls is None:
            return np.zeros(self.num_controls, dtype=float)
        return self._controls.copy()

    def set_controls(self, controls: np.ndarray) -> None:
        self.require(Stage.VELOCITY, 'Setting controls')
        controls = np.asarray(controls, dtype=float)
        if controls.shape != (self.num_controls,):
            raise ValueError(
                f'Expected {self.num_controls} controls, got array of shape {controls.shape}.'
            )
        self._controls = controls.copy()
        self.invalidate(Stage.DYNAMICS)

    def copy(self) -> SystemState:
        other = SystemState(
            self.nq, self.nu, self.nz, self.num_controls, self._discrete, self.system_version
        )
        other._time = self._time
        other._y[:] = self._y
        other._controls = None if self._controls is None else self._controls.copy()
        other._cache = {s: dict(v) for s, v in self._cache.items()}
        other._realized_through = self._realized_through
        return other

    def __repr__(self) -> str:
        return (
            f'SystemState(t={self._time:g}, ny={self.ny}, '
            f'realized_through={self._realized_through.label()})'
        )
