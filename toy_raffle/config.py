"""Configuration loading for the toy raffle."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Optional

import yaml

from .storage import StateFiles


CONFIG_FILENAME = "config.yaml"
DRAW_LOGGER_NAME = "toy_raffle.draws"
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_FILE_KEYS = ("available_toys", "won_toy_ids", "won_toys", "last_session_time")


class ConfigError(RuntimeError):
    """Raised when the raffle configuration is invalid."""


@dataclass(frozen=True)
class RaffleConfig:
    """Normalized raffle configuration values."""

    files: StateFiles = StateFiles()
    seed: Optional[int] = None
    clamp_weights: bool = False
    load_history: bool = False
    log_level: str = "WARNING"
    draw_log: Optional[Path] = None


def _resolve_path(value, base_dir: Path, name: str) -> Path:
    if not isinstance(value, (str, Path)):
        raise ConfigError(f"{name} must be a path string.")
    path = Path(value).expanduser()
    return path if path.is_absolute() else (base_dir / path)


def _parse_files(data, data_dir: Path) -> StateFiles:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("files must be a mapping of state file names.")
    unknown = set(data) - set(_FILE_KEYS)
    if unknown:
        raise ConfigError(f"Unknown files entries: {', '.join(sorted(unknown))}")

    names: dict[str, str] = {}
    for key in _FILE_KEYS:
        value = data.get(key, getattr(StateFiles, key))
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"files.{key} must be a non-empty file name.")
        names[key] = value.strip()
    return StateFiles(directory=data_dir, **names)


def _parse_logging(data, base_dir: Path) -> tuple[str, Optional[Path]]:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("logging must be a mapping.")

    level = str(data.get("level", "WARNING")).upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(f"logging.level must be one of {', '.join(sorted(_LOG_LEVELS))}.")

    draw_log_raw = data.get("draw_log")
    draw_log = None if draw_log_raw is None else _resolve_path(draw_log_raw, base_dir, "logging.draw_log")
    return level, draw_log


def _parse_seed(value) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError("seed must be an integer or null.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError("seed must be an integer or null.") from exc


def parse_config(data: dict, base_dir: Path) -> RaffleConfig:
    """Validate a raw configuration mapping.

    Relative paths are resolved against ``base_dir``.
    """

    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping.")

    data_dir = _resolve_path(data.get("data_dir", "."), base_dir, "data_dir")
    level, draw_log = _parse_logging(data.get("logging"), base_dir)

    for key in ("clamp_weights", "load_history"):
        if not isinstance(data.get(key, False), bool):
            raise ConfigError(f"{key} must be true or false.")

    return RaffleConfig(
        files=_parse_files(data.get("files"), data_dir),
        seed=_parse_seed(data.get("seed")),
        clamp_weights=data.get("clamp_weights", False),
        load_history=data.get("load_history", False),
        log_level=level,
        draw_log=draw_log,
    )


def load_config(config_path: Optional[Path] = None) -> RaffleConfig:
    """Load the raffle configuration from YAML and validate it.

    Without ``config_path`` the working directory's ``config.yaml`` is used
    when present and defaults apply otherwise.
    """

    if config_path is None:
        path = Path.cwd() / CONFIG_FILENAME
        if not path.exists():
            return parse_config({}, Path.cwd())
    else:
        path = Path(config_path).expanduser()
        if not path.is_absolute():
            path = path.resolve()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to read config file {path}: {exc}") from exc

    return parse_config(data, path.parent)


def configure_logging(config: RaffleConfig) -> None:
    """Apply the log level and attach the draw audit log file if requested."""

    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(config.log_level)

    draw_logger = logging.getLogger(DRAW_LOGGER_NAME)
    if config.draw_log is None or draw_logger.handlers:
        return
    config.draw_log.parent.mkdir(parents=True, exist_ok=True)
    draw_logger.setLevel(logging.INFO)
    handler = logging.FileHandler(config.draw_log, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s | %(message)s"))
    draw_logger.addHandler(handler)
    draw_logger.propagate = False
