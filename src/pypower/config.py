"""
Configuration for pypower.

Settings come from an optional YAML file; every key has a default so the
application runs without one.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from pypower.errors import ConfigError
from pypower.models import DEFAULT_GOVERNORS, ProfileKind

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "pypower" / "config.yaml"
DEFAULT_SWITCH_COMMAND = ("sudo", "-n", "cpupower", "frequency-set", "-g", "{governor}")


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    Attributes:
        refresh_interval: Seconds between periodic System Reader calls.
        switch_timeout: Seconds a switch may stay pending before the UI gives up on it.
        power_supply_root: Directory holding one entry per power-supply device.
        governor_path: File holding the active scaling governor of cpu0.
        switch_command: Argv template for the privileged switch command.
        governors: Governor name for each profile.
        log_file: Optional file to append log records to.
        log_level: Name of the root log level.
    """

    refresh_interval: float = 5.0
    switch_timeout: float = 15.0
    power_supply_root: Path = Path("/sys/class/power_supply")
    governor_path: Path = Path("/sys/devices/system/cpu/cpu0/cpufreq/scaling_governor")
    switch_command: tuple[str, ...] = DEFAULT_SWITCH_COMMAND
    governors: dict[ProfileKind, str] = field(default_factory=lambda: dict(DEFAULT_GOVERNORS))
    log_file: Path | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.refresh_interval <= 0:
            raise ConfigError(f"refresh_interval must be positive, got {self.refresh_interval}")
        if self.switch_timeout <= 0:
            raise ConfigError(f"switch_timeout must be positive, got {self.switch_timeout}")
        if not any("{governor}" in arg for arg in self.switch_command):
            raise ConfigError("switch_command must contain a '{governor}' placeholder")
        missing = [kind.value for kind in ProfileKind if not self.governors.get(kind)]
        if missing:
            raise ConfigError(f"governors missing for: {', '.join(missing)}")
        if len(set(self.governors.values())) != len(self.governors):
            raise ConfigError("each profile needs a distinct governor")
        if not isinstance(getattr(logging, self.log_level.upper(), None), int):
            raise ConfigError(f"unknown log_level: {self.log_level}")


def _coerce(raw: dict[str, Any]) -> dict[str, Any]:
    """Turn YAML values into the types Settings expects."""
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, value in raw.items():
        if key in ("refresh_interval", "switch_timeout"):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{key} must be a number")
            values[key] = float(value)
        elif key == "log_file":
            values[key] = None if value is None else Path(str(value)).expanduser()
        elif key in ("power_supply_root", "governor_path"):
            if not isinstance(value, str) or not value:
                raise ConfigError(f"{key} must be a path")
            values[key] = Path(value).expanduser()
        elif key == "switch_command":
            if not isinstance(value, list) or not all(isinstance(arg, str) for arg in value):
                raise ConfigError("switch_command must be a list of strings")
            values[key] = tuple(value)
        elif key == "governors":
            if not isinstance(value, dict):
                raise ConfigError("governors must be a mapping")
            governors = dict(DEFAULT_GOVERNORS)
            for name, governor in value.items():
                if not isinstance(governor, str) or not governor:
                    raise ConfigError(f"governor for {name} must be a non-empty string")
                try:
                    governors[ProfileKind(name)] = str(governor)
                except ValueError:
                    raise ConfigError(f"unknown profile in governors: {name}") from None
            values[key] = governors
        elif key == "log_level":
            values[key] = str(value)
    return values


def load_settings(path: Path | None = None) -> Settings:
    """
    Load settings from a YAML file.

    Args:
        path: Config file to read. Defaults to ``~/.config/pypower/config.yaml``.
            A missing file yields the default settings.

    Raises:
        ConfigError: The file is unreadable, not valid YAML or has invalid values.
    """
    path = path or DEFAULT_CONFIG_PATH
    if not path.exists():
        log.debug("No config file at %s, using defaults", path)
        return Settings()

    try:
        with open(path, "r") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Error loading configuration {path}: {exc}") from exc

    if raw is None:
        return Settings()
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration {path} must be a mapping")
    return Settings(**_coerce(raw))
