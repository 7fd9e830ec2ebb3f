"""Configuration parsing from /etc/default/hwmon-fand and CLI arguments."""

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from hwmon_fand.wiring import DEFAULT_FANS_FILE

DEFAULT_CONFIG_PATH = "/etc/default/hwmon-fand"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="hwmon-fand",
        description="Speed-tracking fan control for Linux hwmon devices",
    )
    parser.add_argument(
        "--fans-file",
        help="YAML file describing sensors and fans",
    )
    parser.add_argument(
        "--sensor-interval",
        type=float,
        help="Seconds between sensor reads",
    )
    parser.add_argument(
        "--control-interval",
        type=float,
        help="Seconds between fan speed adjustments",
    )
    parser.add_argument(
        "--warmup",
        type=float,
        help="Seconds to collect samples before the first adjustment",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        help="Log level (overrides config file)",
    )
    return parser.parse_args(argv)


@dataclass
class Config:
    """Daemon configuration."""

    fans_file: str = str(DEFAULT_FANS_FILE)
    sensor_interval: float = 3.0
    control_interval: float = 10.0
    warmup: float = 10.0
    log_level: str = "INFO"
    debug: bool = False

    def __post_init__(self) -> None:
        if self.sensor_interval <= 0:
            raise ValueError(f"Sensor interval must be positive, got {self.sensor_interval}")

        if self.control_interval <= 0:
            raise ValueError(f"Control interval must be positive, got {self.control_interval}")

        if self.warmup < 0:
            raise ValueError(f"Warmup must not be negative, got {self.warmup}")

        if not Path(self.fans_file).is_file():
            raise ValueError(f"Fans file '{self.fans_file}' does not exist")

        if self.debug:
            self.log_level = "DEBUG"

        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{self.log_level}'. Must be one of: {', '.join(LOG_LEVELS)}"
            )

    @classmethod
    def load(cls, argv: list[str] | None = None) -> "Config":
        """Load configuration from environment file, env vars, and CLI args.

        Priority (highest to lowest):
        1. CLI arguments
        2. Environment variables (set by systemd EnvironmentFile)
        3. /etc/default/hwmon-fand file
        4. Dataclass defaults
        """
        file_env = {k: v for k, v in dotenv_values(DEFAULT_CONFIG_PATH).items() if v is not None}

        def env(key: str) -> str | None:
            if key in os.environ:
                return os.environ[key]
            return file_env.get(key)

        kwargs: dict[str, object] = {}

        if (v := env("FANS_FILE")) is not None:
            kwargs["fans_file"] = v

        for key, field_name in (
            ("SENSOR_INTERVAL", "sensor_interval"),
            ("CONTROL_INTERVAL", "control_interval"),
            ("WARMUP", "warmup"),
        ):
            if (v := env(key)) is not None:
                try:
                    kwargs[field_name] = float(v)
                except ValueError:
                    pass

        if (v := env("LOG_LEVEL")) is not None:
            kwargs["log_level"] = v.upper()

        if (v := env("DEBUG")) is not None:
            kwargs["debug"] = v.lower() in ("true", "1", "yes")

        # CLI arguments override everything
        args = _parse_cli_args(argv)

        if args.fans_file is not None:
            kwargs["fans_file"] = args.fans_file

        if args.sensor_interval is not None:
            kwargs["sensor_interval"] = args.sensor_interval

        if args.control_interval is not None:
            kwargs["control_interval"] = args.control_interval

        if args.warmup is not None:
            kwargs["warmup"] = args.warmup

        if args.log_level is not None:
            kwargs["log_level"] = args.log_level

        if args.debug is True:
            kwargs["debug"] = True

        return cls(**kwargs)

    def setup_logging(self) -> None:
        """Log one timestamped line per event to stdout."""
        logging.basicConfig(
            level=getattr(logging, self.log_level),
            stream=sys.stdout,
            format="%(asctime)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S %z",
        )
