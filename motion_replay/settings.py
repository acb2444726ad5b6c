"""Single source of truth for config + repo paths.

Policy:
- No fallback/default config values in code for required keys.
- If required config keys are missing, terminate with a clear error.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


REPO_ROOT = Path(__file__).parent.parent
DEFAULT_CONFIG_JSON = REPO_ROOT / 'config.json'

JOINT_TYPES = ('pin', 'slider', 'free')
ACTUATOR_TYPES = ('coordinate', 'activation_coordinate', 'body_force')


def resolve_path(p: str) -> Path:
    path = Path(p)
    return path if path.is_absolute() else (REPO_ROOT / path)


def load_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding='utf-8'))


def _require_path(cfg: dict, keys: list[str]) -> Any:
    cur: Any = cfg
    prefix: list[str] = []
    for k in keys:
        prefix.append(k)
        if not isinstance(cur, dict) or k not in cur:
            raise KeyError(f'Missing required config key: {".".join(prefix)}')
        cur = cur[k]
    return cur


def req_str(cfg: dict, keys: list[str]) -> str:
    v = _require_path(cfg, keys)
    if not isinstance(v, str) or not v.strip():
        raise ValueError(f'Config key {".".join(keys)} must be a non-empty string.')
    return v


def req_float(cfg: dict, keys: list[str]) -> float:
    v = _require_path(cfg, keys)
    try:
        return float(v)
    except Exception as e:
        raise ValueError(f'Config key {".".join(keys)} must be a float-like value.') from e


def req_list(cfg: dict, keys: list[str]) -> list:
    v = _require_path(cfg, keys)
    if not isinstance(v, list):
        raise ValueError(f'Config key {".".join(keys)} must be a list.')
    return v


def req_floats(cfg: dict, keys: list[str], n: int) -> list[float]:
    v = req_list(cfg, keys)
    try:
        out = [float(x) for x in v]
    except Exception as e:
        raise ValueError(f'Config key {".".join(keys)} must be a list of numbers.') from e
    if len(out) != n:
        raise ValueError(f'Config key {".".join(keys)} must have {n} values, got {len(out)}.')
    return out


def read_config(path: Path | None = None) -> dict:
    cfg = load_json(path if path is not None else DEFAULT_CONFIG_JSON)
    validate_config(cfg)
    return cfg


def validate_config(cfg: dict) -> None:
    # Existence/type checks (no defaults).
    req_str(cfg, ['model', 'name'])
    req_floats(cfg, ['model', 'gravity'], 3)

    for i, _ in enumerate(req_list(cfg, ['model', 'bodies'])):
        req_str(cfg['model']['bodies'][i], ['name'])
        req_float(cfg['model']['bodies'][i], ['mass'])

    for i, _ in enumerate(req_list(cfg, ['model', 'joints'])):
        joint = cfg['model']['joints'][i]
        kind = req_str(joint, ['type'])
        if kind not in JOINT_TYPES:
            raise ValueError(f'model.joints[{i}].type must be one of {JOINT_TYPES}, got {kind!r}.')
        req_str(joint, ['name'])
        req_str(joint, ['parent'])
        req_str(joint, ['child'])

    for i, _ in enumerate(cfg['model'].get('actuators', [])):
        actu = cfg['model']['actuators'][i]
        kind = req_str(actu, ['type'])
        if kind not in ACTUATOR_TYPES:
            raise ValueError(f'model.actuators[{i}].type must be one of {ACTUATOR_TYPES}, got {kind!r}.')
        req_str(actu, ['name'])
