#!/usr/bin/env python3
"""
config.py

Environment configuration for decl_kg commands.

:func:`load_config` reads the ``DECLKG_*`` variables into a
:class:`DeclKGConfig`. CLI flags override these values, and these values
override the built-in defaults.

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from decl_kg.declkg import SOURCE_EXTENSIONS
from decl_kg.errors import ConfigError

ENV_ROOT = "DECLKG_ROOT"
ENV_EXTENSIONS = "DECLKG_EXTENSIONS"
ENV_WORKERS = "DECLKG_WORKERS"
ENV_SCAN_TIMEOUT = "DECLKG_SCAN_TIMEOUT"
ENV_DB = "DECLKG_DB"
ENV_LANCEDB = "DECLKG_LANCEDB"
ENV_MODEL = "DECLKG_MODEL"
ENV_VERBOSE = "DECLKG_VERBOSE"


@dataclass
class DeclKGConfig:
    """Engine settings resolved from the environment; CLI flags override these."""

    root: Optional[Path] = None
    extensions: tuple[str, ...] = SOURCE_EXTENSIONS
    workers: int = 1
    scan_timeout: Optional[float] = None
    db_path: Optional[Path] = None
    lancedb_dir: Optional[Path] = None
    model: str = "all-MiniLM-L6-v2"
    verbose: bool = False


def load_config(env: Optional[Mapping[str, str]] = None) -> DeclKGConfig:
    """
    Read ``DECLKG_*`` variables into a :class:`DeclKGConfig`.

    :param env: Mapping to read instead of ``os.environ``.
    :raises ConfigError: on a value that cannot be interpreted.
    """
    env = os.environ if env is None else env
    config = DeclKGConfig()

    if env.get(ENV_ROOT):
        config.root = Path(env[ENV_ROOT]).expanduser()
    if env.get(ENV_EXTENSIONS):
        config.extensions = _as_extensions(env[ENV_EXTENSIONS])
    if env.get(ENV_WORKERS):
        workers = _as_int(env[ENV_WORKERS])
        if workers is None or workers < 1:
            raise ConfigError(f"{ENV_WORKERS} must be an integer >= 1, got {env[ENV_WORKERS]!r}")
        config.workers = workers
    if env.get(ENV_SCAN_TIMEOUT):
        timeout = _as_float(env[ENV_SCAN_TIMEOUT])
        if timeout is None or timeout <= 0:
            raise ConfigError(
                f"{ENV_SCAN_TIMEOUT} must be a positive number, got {env[ENV_SCAN_TIMEOUT]!r}"
            )
        config.scan_timeout = timeout
    if env.get(ENV_DB):
        config.db_path = Path(env[ENV_DB]).expanduser()
    if env.get(ENV_LANCEDB):
        config.lancedb_dir = Path(env[ENV_LANCEDB]).expanduser()
    if env.get(ENV_MODEL):
        config.model = env[ENV_MODEL]
    if env.get(ENV_VERBOSE):
        verbose = _as_bool(env[ENV_VERBOSE])
        if verbose is None:
            raise ConfigError(f"{ENV_VERBOSE} must be a boolean, got {env[ENV_VERBOSE]!r}")
        config.verbose = verbose
    return config


def _as_extensions(value: str) -> tuple[str, ...]:
    exts = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        exts.append(item if item.startswith(".") else f".{item}")
    if not exts:
        raise ConfigError(f"{ENV_EXTENSIONS} lists no extensions")
    return tuple(exts)


def _as_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except ValueError:
        return None


def _as_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


def _as_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered in {"true", "yes", "1", "on"}:
        return True
    if lowered in {"false", "no", "0", "off"}:
        return False
    return None
