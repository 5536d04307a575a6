"""
Configuration module for OpenCP.

This module provides configuration management for the OpenCP library:
solver settings, iteration limits, numerical tolerances and logging.

Configuration can be set via:
1. Environment variables (OPENCP_*)
2. Config file (./opencp.toml or ~/.opencp/config.toml)
3. Programmatic API

Example:
    >>> from opencp.config import config
    >>> config.get_tolerance("optimality")
    1e-06
    >>> config.iteration_limit = 50
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _default_tolerances() -> dict[str, float]:
    return {
        "optimality": 1e-6,
        "reduced_cost": 1e-8,
        "integrality": 1e-6,
        "feasibility": 1e-9,
    }


def _env_float(name: str) -> Optional[float]:
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    return float(value)


@dataclass
class OpenCPConfig:
    """
    Configuration for the OpenCP library.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        default_solver: LP/MIP oracle backend (only 'highs' ships)
        time_limit: Per-solve oracle time limit in seconds (None = no limit)
        verbosity: Oracle output level (0 = silent)
        iteration_limit: Default iteration limit for the cutting-plane loop
        tolerances: Numerical tolerances
    """

    log_level: str = "INFO"
    default_solver: str = "highs"
    time_limit: Optional[float] = None
    verbosity: int = 0
    iteration_limit: int = 100

    tolerances: dict[str, float] = field(default_factory=_default_tolerances)

    def __post_init__(self):
        """Fill missing tolerances and normalise the log level."""
        merged = _default_tolerances()
        merged.update(self.tolerances)
        self.tolerances = merged
        self.log_level = str(self.log_level).upper()

    @classmethod
    def from_env(cls) -> 'OpenCPConfig':
        """Create a config with OPENCP_* environment overrides applied."""
        cfg = cls()
        level = os.environ.get('OPENCP_LOG_LEVEL')
        if level:
            cfg.log_level = level.upper()
        time_limit = _env_float('OPENCP_TIME_LIMIT')
        if time_limit is not None:
            cfg.time_limit = time_limit
        iteration_limit = os.environ.get('OPENCP_ITERATION_LIMIT')
        if iteration_limit:
            cfg.iteration_limit = int(iteration_limit)
        return cfg

    # =========================================================================
    # Tolerance helpers
    # =========================================================================

    def get_tolerance(self, name: str) -> float:
        """Get a tolerance value by name."""
        return self.tolerances.get(name, 1e-6)

    def set_tolerance(self, name: str, value: float) -> None:
        """Set a tolerance value."""
        if value < 0:
            raise ValueError(f"Tolerance {name!r} must be non-negative, got {value}")
        self.tolerances[name] = value

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "log_level": self.log_level,
            "default_solver": self.default_solver,
            "time_limit": self.time_limit,
            "verbosity": self.verbosity,
            "iteration_limit": self.iteration_limit,
            "tolerances": self.tolerances.copy(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> 'OpenCPConfig':
        """Create config from dictionary."""
        time_limit = d.get("time_limit")
        return cls(
            log_level=d.get("log_level", "INFO"),
            default_solver=d.get("default_solver", "highs"),
            time_limit=float(time_limit) if time_limit not in (None, "") else None,
            verbosity=int(d.get("verbosity", 0)),
            iteration_limit=int(d.get("iteration_limit", 100)),
            tolerances=dict(d.get("tolerances", {})),
        )

    def save(self, path: Optional[Path] = None) -> None:
        """
        Save configuration to a TOML file.

        Args:
            path: Path to save to (default: ./opencp.toml)
        """
        if path is None:
            path = Path("opencp.toml")

        lines = [
            "# OpenCP Configuration",
            "",
            "[general]",
            f'log_level = "{self.log_level}"',
            f'default_solver = "{self.default_solver}"',
            f"verbosity = {self.verbosity}",
            f"iteration_limit = {self.iteration_limit}",
        ]
        if self.time_limit is not None:
            lines.append(f"time_limit = {self.time_limit}")

        lines.extend(["", "[tolerances]"])
        for name, value in self.tolerances.items():
            lines.append(f"{name} = {value!r}")

        Path(path).write_text("\n".join(lines) + "\n")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'OpenCPConfig':
        """
        Load configuration from a TOML file.

        Only the flat subset written by save() is understood: sections,
        `key = value` pairs, quoted strings, ints and floats.

        Args:
            path: Path to load from (default: ./opencp.toml or ~/.opencp/config.toml)

        Returns:
            Loaded configuration (or default if file not found)
        """
        if path is None:
            local_config = Path("opencp.toml")
            user_config = Path.home() / ".opencp" / "config.toml"

            if local_config.exists():
                path = local_config
            elif user_config.exists():
                path = user_config
            else:
                return cls()

        path = Path(path)
        if not path.exists():
            return cls()

        config_dict: dict[str, Any] = {"tolerances": {}}
        current_section = None

        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if line.startswith("[") and line.endswith("]"):
                current_section = line[1:-1]
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = _parse_scalar(value.strip())

                if current_section == "tolerances":
                    config_dict["tolerances"][key] = float(value)
                else:
                    config_dict[key] = value

        return cls.from_dict(config_dict)


def _parse_scalar(raw: str) -> Any:
    if raw.startswith('"') and raw.endswith('"'):
        return raw[1:-1]
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


# Global configuration instance
config = OpenCPConfig.from_env()


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure root logging for scripts and benchmarks.

    Library modules only create loggers; call this from entry points.

    Args:
        level: Level name (defaults to config.log_level)

    Returns:
        The 'opencp' package logger
    """
    logging.basicConfig(
        level=(level or config.log_level).upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        force=True,
    )
    return logging.getLogger("opencp")
