"""Runtime settings resolved from the environment and an optional `.env` file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from calldata_builder import constants

logger = logging.getLogger(__name__)

_ENV_PREFIX = "CALLDATA_BUILDER_"


def load_dotenv(path: Path) -> dict[str, str]:
    """
    Minimal .env loader:
    - supports KEY=VALUE (an optional leading `export ` is ignored)
    - strips surrounding quotes
    - ignores blank lines and `#` comments
    - does not expand variables
    """
    out: dict[str, str] = {}
    if not path.exists():
        return out

    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export ") :]
        k, v = (part.strip() for part in line.split("=", 1))
        if not k:
            continue
        if len(v) >= 2 and v[0] == v[-1] and v[0] in ("'", '"'):
            v = v[1:-1]
        out[k] = v
    return out


@dataclass(frozen=True)
class Settings:
    log_dir: Path
    log_level: str
    default_target: str | None


def load_settings(dotenv_path: Path | None = None, environ: dict[str, str] | None = None) -> Settings:
    """
    Resolve settings. Process environment wins over the `.env` file, which
    wins over the defaults in :mod:`calldata_builder.constants`.
    """
    env = dict(os.environ if environ is None else environ)
    file_values: dict[str, str] = {}
    if dotenv_path is not None:
        file_values = load_dotenv(dotenv_path)
        logger.debug("Loaded %d value(s) from %s", len(file_values), dotenv_path)

    def _get(name: str, default: str | None) -> str | None:
        key = _ENV_PREFIX + name
        if env.get(key):
            return env[key]
        if file_values.get(key):
            return file_values[key]
        return default

    level = (_get("LOG_LEVEL", constants.DEFAULT_LOG_LEVEL) or "WARNING").upper()
    if not isinstance(logging.getLevelName(level), int):
        logger.warning("Unknown log level %r, falling back to WARNING", level)
        level = "WARNING"

    return Settings(
        log_dir=Path(_get("LOG_DIR", constants.DEFAULT_LOG_DIR) or constants.DEFAULT_LOG_DIR),
        log_level=level,
        default_target=_get("TARGET", constants.DEFAULT_TARGET),
    )
