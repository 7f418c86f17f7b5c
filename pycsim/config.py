from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Optional
import yaml
from pathlib import Path

from .errors import ConfigError
from .utils.logging import get_logger

logger = get_logger(__name__)

# Addresses are 64-bit; set-index and block-offset bits must fit inside one.
ADDRESS_BITS = 64


def _check_unsigned(name: str, value) -> int:
    # bool is an int subclass, but "-E true" is never a valid associativity
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Invalid option argument -- '{name}': expected an integer, got {value!r}", option=name)
    if value < 0:
        raise ConfigError(f"Invalid option argument -- '{name}': must be non-negative, got {value}", option=name)
    return value


@dataclass(frozen=True)
class CacheGeometry:
    """Immutable cache shape for one simulation run.

    s: number of set index bits (there are 2**s sets)
    E: number of lines per set (associativity)
    b: number of block offset bits (blocks are 2**b bytes)
    """
    s: int
    E: int
    b: int

    def __post_init__(self):
        _check_unsigned("s", self.s)
        _check_unsigned("E", self.E)
        _check_unsigned("b", self.b)
        if self.E == 0:
            raise ConfigError("Invalid option argument -- 'E': associativity must be at least 1", option="E")
        if self.s + self.b > ADDRESS_BITS:
            raise ConfigError(
                f"Arguments s, b represent > {ADDRESS_BITS} addressable bits (s={self.s}, b={self.b})",
                option="s",
            )

    @property
    def set_num(self) -> int:
        return 1 << self.s

    @property
    def block_size(self) -> int:
        return 1 << self.b

    def to_dict(self) -> dict:
        return {
            "s": self.s,
            "E": self.E,
            "b": self.b,
            "set_num": self.set_num,
            "block_size": self.block_size,
        }


@dataclass
class SimConfig:
    """Cache simulator run configuration (CLI and YAML layered)."""
    # Cache geometry, mandatory
    s: Optional[int] = None
    E: Optional[int] = None
    b: Optional[int] = None

    # Trace source, mandatory
    trace: str = ""

    # Print the outcome of every access
    verbose: bool = False

    # Config file
    config_file: str = ""

    # Reporting; no artifacts are written when report_dir is empty
    report_dir: str = ""
    ascii_chart: bool = False

    @property
    def geometry(self) -> CacheGeometry:
        self.validate()
        return CacheGeometry(s=self.s, E=self.E, b=self.b)

    def validate(self):
        """Raises ConfigError if the run cannot be started with these values."""
        missing = [f"-{name}" for name in ("s", "E", "b") if getattr(self, name) is None]
        if not self.trace:
            missing.append("-t")
        if missing:
            raise ConfigError(f"Mandatory arguments missing: {', '.join(missing)}", option=missing[0].lstrip("-"))
        if not isinstance(self.trace, str):
            raise ConfigError(f"Invalid option argument -- 't': expected a file name, got {self.trace!r}", option="t")
        # Range and width checks live with the geometry
        CacheGeometry(s=self.s, E=self.E, b=self.b)

    def update_from_yaml(self, yaml_path: str):
        """Updates config fields from a YAML file."""
        try:
            with open(yaml_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Config file {yaml_path}: {e.strerror or e}") from e
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise ConfigError(f"Config file {yaml_path}: invalid YAML: {e}") from e
        if yaml_config is None:
            return
        if not isinstance(yaml_config, dict):
            raise ConfigError(f"Config file {yaml_path} must contain a mapping, got {type(yaml_config).__name__}")
        names = {f.name for f in fields(self)}
        for key, value in yaml_config.items():
            if key in names:
                setattr(self, key, value)
            else:
                logger.debug("Ignoring unknown config key '%s' in %s", key, yaml_path)

    @classmethod
    def from_args(cls, args) -> SimConfig:
        """Factory method to create a validated SimConfig from parsed argparse arguments."""
        config = cls()

        # 1. Load from YAML config file if provided
        if hasattr(args, 'config') and args.config:
            config.config_file = args.config
            if Path(config.config_file).exists():
                config.update_from_yaml(config.config_file)
            else:
                logger.warning("Config file %s not found.", config.config_file)

        # 2. Override with command-line arguments
        names = {f.name for f in fields(config)} - {"config_file"}
        arg_dict = vars(args)
        for key, value in arg_dict.items():
            if value is not None and key in names:
                setattr(config, key, value)

        config.validate()
        return config
