from __future__ import annotations
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from .errors import ConfigurationError
from .runtime.policies import ReplacementPolicy
from .runtime.address import Geometry
from .utils.logging import get_logger

logger = get_logger(__name__)

# Inclusive bounds accepted from the command line or a YAML file.
LIMITS = {
    "address_bits": (1, 64),
    "block_size": (1, 1024),
    "num_sets": (1, 1024),
    "ways": (1, 32),
}


@dataclass
class SimConfig:
    """Cache simulator configuration."""
    # Geometry
    address_bits: int = 16   # N: address space of 2^N bytes
    block_size: int = 4      # B: rounded up to a power of two
    num_sets: int = 4        # I: rounded up to a power of two
    ways: int = 1
    policy: str = "lru"

    # Inputs
    trace_file: str = ""
    config_file: str = ""
    seed: int | None = None

    # Reporting
    report_dir: str = "out/default_run"
    verbose: bool = False
    viz: bool = False
    viz_file: str = "cache_visualization.html"

    @property
    def replacement_policy(self) -> ReplacementPolicy:
        return ReplacementPolicy.from_name(self.policy)

    @property
    def geometry(self) -> Geometry:
        """Address layout after rounding block size and set count to powers of two."""
        return Geometry.from_request(self.address_bits, self.block_size, self.num_sets)

    @property
    def effective_block_size(self) -> int:
        return self.geometry.block_size

    @property
    def effective_num_sets(self) -> int:
        return self.geometry.num_sets

    def validate(self) -> SimConfig:
        """Checks every scalar against its bounds and resolves the policy name."""
        for key, (low, high) in LIMITS.items():
            value = getattr(self, key)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigurationError(f"{key} must be an integer, got {value!r}.")
            if not low <= value <= high:
                raise ConfigurationError(f"{key}={value} is outside the range [{low}, {high}].")
        ReplacementPolicy.from_name(self.policy)
        # Raises ConfigurationError when the tag would need a negative width.
        Geometry.from_request(self.address_bits, self.block_size, self.num_sets)
        return self

    def update_from_yaml(self, yaml_path: str):
        """Updates config fields from a YAML file."""
        with open(yaml_path, 'r') as f:
            yaml_config = yaml.safe_load(f) or {}
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"Config file {yaml_path} must contain a mapping.")
        known = {fld.name for fld in fields(self)}
        for key, value in yaml_config.items():
            if key in known:
                setattr(self, key, value)
            else:
                logger.warning(f"Ignoring unknown config key '{key}' in {yaml_path}.")

    @classmethod
    def from_args(cls, args) -> SimConfig:
        """Factory method to create a SimConfig from parsed argparse arguments."""
        config = cls()

        # 1. Load from YAML config file if provided
        if getattr(args, 'config', None):
            config.config_file = args.config
            if Path(config.config_file).exists():
                config.update_from_yaml(config.config_file)
            else:
                logger.warning(f"Config file {config.config_file} not found.")

        # 2. Override with command-line arguments
        for key, value in vars(args).items():
            if value is not None and hasattr(config, key):
                setattr(config, key, value)

        return config.validate()
