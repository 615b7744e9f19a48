from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
import yaml

from .utils.logging import get_logger

logger = get_logger(__name__)

# Tags are held in uint64 arrays
MAX_ADDRESS_WIDTH = 64


@dataclass(frozen=True)
class CacheGeometry:
    """Shape of the simulated cache: 2^s sets of E ways holding 2^b byte blocks."""
    set_bits: int
    block_bits: int
    associativity: int
    address_width: int = 64

    # Derived properties
    num_sets: int = field(init=False)
    block_size: int = field(init=False)

    def __post_init__(self):
        if self.set_bits < 0:
            raise ValueError("Number of set index bits must not be negative.")
        if self.block_bits < 0:
            raise ValueError("Number of block offset bits must not be negative.")
        if self.associativity < 1:
            raise ValueError("Associativity must be at least 1.")
        if not 1 <= self.address_width <= MAX_ADDRESS_WIDTH:
            raise ValueError(f"Address width must be between 1 and {MAX_ADDRESS_WIDTH} bits.")
        if self.set_bits + self.block_bits > self.address_width:
            raise ValueError(
                f"Set and block bits ({self.set_bits} + {self.block_bits}) "
                f"do not fit in a {self.address_width}-bit address.")

        object.__setattr__(self, "num_sets", 1 << self.set_bits)
        object.__setattr__(self, "block_size", 1 << self.block_bits)

    @property
    def tag_bits(self) -> int:
        return self.address_width - self.set_bits - self.block_bits


@dataclass
class SimConfig:
    """pyv-csim run configuration."""
    # Cache geometry
    set_bits: int = 0
    block_bits: int = 0
    associativity: int = 1
    address_width: int = 64

    # Input trace
    trace: str = ""

    # Config file
    config_file: str = ""

    # Reporting
    report_dir: str = ""
    verbose: bool = False
    keep_events: bool = True

    # Re-verify bookkeeping after every access (slow)
    check_invariants: bool = False

    def geometry(self) -> CacheGeometry:
        """Builds the validated cache geometry for this run."""
        return CacheGeometry(
            set_bits=self.set_bits,
            block_bits=self.block_bits,
            associativity=self.associativity,
            address_width=self.address_width,
        )

    def update_from_yaml(self, yaml_path: str):
        """Updates config fields from a YAML file."""
        with open(yaml_path, 'r') as f:
            try:
                yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Could not parse config file {yaml_path}: {e}") from e
        if not isinstance(yaml_config, dict):
            raise ValueError(f"Config file {yaml_path} must contain a mapping.")
        field_types = {f.name: type(f.default) for f in fields(self)}
        for key, value in yaml_config.items():
            expected = field_types.get(key)
            if expected is not None:
                # bool is an int subclass, so compare exact types
                if type(value) is not expected:
                    raise ValueError(
                        f"Config key '{key}' in {yaml_path} must be {expected.__name__}, "
                        f"got {type(value).__name__} {value!r}.")
                setattr(self, key, value)
            else:
                logger.warning("Ignoring unknown config key '%s' in %s", key, yaml_path)

    @classmethod
    def from_args(cls, args) -> SimConfig:
        """Factory method to create a SimConfig from parsed argparse arguments."""
        config = cls()

        # 1. Load from YAML config file if provided
        if hasattr(args, 'config') and args.config:
            config.config_file = args.config
            if Path(config.config_file).exists():
                config.update_from_yaml(config.config_file)
            else:
                logger.warning("Config file %s not found.", config.config_file)

        # 2. Override with command-line arguments
        field_names = {f.name for f in fields(config)}
        for key, value in vars(args).items():
            if value is not None and key in field_names:
                setattr(config, key, value)

        return config
