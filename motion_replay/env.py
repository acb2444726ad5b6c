from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = 'MOTION_REPLAY_LOG_LEVEL'


def env_str(name: str) -> str | None:
    v = os.getenv(name, None)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def env_bool(name: str) -> bool | None:
    v = env_str(name)
    if v is None:
        return None
    s = v.strip().lower()
    if s in {'1', 'true', 'yes', 'y', 'on'}:
        return True
    if s in {'0', 'false', 'no', 'n', 'off'}:
        return False
    raise ValueError(f'Invalid boolean env var {name}={v!r}. Use true/false, 1/0, yes/no.')


def env_log_level(name: str = LOG_LEVEL_ENV, default: int = logging.INFO) -> int:
    v = env_str(name)
    if v is None:
        return default
    if v.isdigit():
        return int(v)
    level = logging.getLevelName(v.upper())
    if not isinstance(level, int):
        raise ValueError(f'Invalid log level env var {name}={v!r}. Use DEBUG/INFO/WARNING/ERROR.')
    return level
