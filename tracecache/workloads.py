from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

from .config import SimConfig


@dataclass
class Workload:
    """A named address trace together with the cache it was written for."""
    name: str
    addresses: List[str]
    address_bits: int
    block_size: int
    num_sets: int
    ways: int = 1
    policy: str = "lru"

    def to_config(self, **overrides) -> SimConfig:
        config = SimConfig(
            address_bits=self.address_bits,
            block_size=self.block_size,
            num_sets=self.num_sets,
            ways=self.ways,
            policy=self.policy,
        )
        for key, value in overrides.items():
            setattr(config, key, value)
        return config.validate()


HOMEWORK_WORKLOADS: Dict[str, Workload] = {
    "hw1": Workload(
        name="HW1 - Direct Mapping",
        addresses=["x00", "xFD", "x01", "xB4", "x2B", "xB5",
                   "x02", "xBC", "xBE", "x03", "x58", "xBF", "x2C"],
        address_bits=32, block_size=8, num_sets=16, ways=1,
    ),
    "hw2": Workload(
        name="HW2 - Cache Analysis",
        addresses=["x00", "x04", "x10", "x08", "x84", "xE8",
                   "xA0", "x400", "x14", "x8C", "xC1C", "xB4", "x884"],
        address_bits=32, block_size=32, num_sets=16, ways=1,
    ),
    "hw3": Workload(
        name="HW3 - Set Associative",
        addresses=["x03", "xB4", "x2B", "x02", "xBE", "x58",
                   "xBF", "x0E", "x1F", "xB5", "xBF", "xBA", "x2E", "xCE"],
        address_bits=32, block_size=8, num_sets=16, ways=3,
    ),
}
