from __future__ import annotations
import itertools
import random
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from ..config import SimConfig
from ..errors import ConfigurationError
from ..utils.logging import get_logger
from .address import AddressDecoder, Geometry, ParsedAddress
from .cache_set import CacheSet
from .policies import ReplacementPolicy
from .stats import CacheStats

logger = get_logger(__name__)


def format_hex(value: int) -> str:
    """Formats a field the way traces write addresses: x + uppercase hex."""
    return f"x{value:X}"


@dataclass(frozen=True)
class AccessOutcome:
    """What happened to a single access of the trace."""
    address: str
    full_address: int
    index: int
    tag: int
    offset: int
    hit: bool
    is_cold: bool
    is_conflict: bool
    way: int
    victim_way: int | None
    evicted_tag: int | None
    elapsed_time: float  # microseconds

    @property
    def result(self) -> str:
        return "H" if self.hit else "M"

    @property
    def miss_type(self) -> str:
        if self.hit:
            return "Hit"
        return "Cold" if self.is_cold else "Conflict"

    @property
    def index_hex(self) -> str:
        return format_hex(self.index)

    @property
    def tag_hex(self) -> str:
        return format_hex(self.tag)

    @property
    def binary(self) -> str:
        return ParsedAddress(self.tag, self.index, self.offset, self.full_address, self.is_cold).to_binary_string()


class CacheEngine:
    """
    A set-associative cache replaying an address trace one access at a time.

    Block size and set count are rounded up to powers of two before the
    address layout is derived. The engine keeps the stats and the outcome of
    every access for reporting.
    """
    def __init__(self, address_bits: int, block_size: int, num_sets: int, ways: int = 1,
                 policy: ReplacementPolicy | str = ReplacementPolicy.LRU, seed: int | None = None,
                 clock: Callable[[], float] = time.time):
        for name, value in (("address_bits", address_bits), ("block_size", block_size),
                            ("num_sets", num_sets), ("ways", ways)):
            if value <= 0:
                raise ConfigurationError(f"Cache parameters must be positive ({name}={value}).")

        self.address_bits = address_bits
        self.requested_block_size = block_size
        self.requested_num_sets = num_sets
        self.geometry = Geometry.from_request(address_bits, block_size, num_sets)
        self.block_size = self.geometry.block_size
        self.num_sets = self.geometry.num_sets
        self.ways = ways
        self.policy = ReplacementPolicy.from_name(policy)

        self.decoder = AddressDecoder(address_bits, self.block_size, self.num_sets)
        self.sequence = itertools.count(1)
        self.sets: List[CacheSet] = [
            CacheSet(ways, self.block_size, self.policy, sequence=self.sequence,
                     rng=random.Random(None if seed is None else seed + i), clock=clock)
            for i in range(self.num_sets)
        ]
        self.access_count = 0
        self.optimal_primed = False
        self.stats = CacheStats()
        self.outcomes: List[AccessOutcome] = []

        logger.info(
            f"Cache: 2^{address_bits} address space, {self.num_sets} sets x {ways} ways, "
            f"{self.block_size}B blocks, policy={self.policy} "
            f"(offset={self.decoder.offset_bits}, index={self.decoder.index_bits}, tag={self.decoder.tag_bits} bits)"
        )

    @classmethod
    def from_config(cls, config: SimConfig) -> CacheEngine:
        """Factory method to create an engine from a validated SimConfig."""
        return cls(
            address_bits=config.address_bits,
            block_size=config.block_size,
            num_sets=config.num_sets,
            ways=config.ways,
            policy=config.replacement_policy,
            seed=config.seed,
        )

    def prime_optimal(self, addresses: Sequence[str]):
        """Hands each set the future accesses that map to it. Call before the first access."""
        per_set: Dict[int, List[Tuple[int, int]]] = {i: [] for i in range(self.num_sets)}
        for position, text in enumerate(addresses):
            tag, index, _ = self.decoder.split(self.decoder.parse_value(text))
            per_set[index].append((position, tag))
        for index, cache_set in enumerate(self.sets):
            cache_set.set_optimal_trace(per_set[index])
        self.optimal_primed = True
        logger.info(f"Primed OPTIMAL replacement with {len(addresses)} future accesses.")

    def access(self, address: str) -> AccessOutcome:
        start = time.perf_counter()

        parsed = self.decoder.decode(address)
        position = self.access_count
        self.access_count += 1

        if self.policy is ReplacementPolicy.OPTIMAL and not self.optimal_primed and position == 0:
            logger.warning("OPTIMAL policy used without a primed trace; victim choices are arbitrary.")

        cache_set = self.sets[parsed.index]
        hit, way = cache_set.lookup(parsed.tag, position)
        is_cold = not hit and parsed.is_cold
        is_conflict = not hit and not parsed.is_cold

        victim_way = None
        evicted_tag = None
        if not hit:
            way = cache_set.find_victim(parsed.tag)
            victim = cache_set.lines[way]
            if victim.valid:
                evicted_tag = victim.tag
                logger.debug(f"Set {format_hex(parsed.index)}: evicting tag {format_hex(victim.tag)} from way {way}")
            cache_set.insert(way, parsed.tag)
            victim_way = way

        elapsed_us = (time.perf_counter() - start) * 1e6

        outcome = AccessOutcome(
            address=address,
            full_address=parsed.full_address,
            index=parsed.index,
            tag=parsed.tag,
            offset=parsed.offset,
            hit=hit,
            is_cold=is_cold,
            is_conflict=is_conflict,
            way=way,
            victim_way=victim_way,
            evicted_tag=evicted_tag,
            elapsed_time=elapsed_us,
        )
        self.stats.record(outcome)
        self.outcomes.append(outcome)
        return outcome

    def get_stats(self) -> CacheStats:
        return self.stats

    def describe(self) -> Dict[str, int | str]:
        """Requested and effective geometry, for reports."""
        return {
            "address_bits": self.address_bits,
            "requested_block_size": self.requested_block_size,
            "block_size": self.block_size,
            "requested_num_sets": self.requested_num_sets,
            "num_sets": self.num_sets,
            "ways": self.ways,
            "policy": self.policy.value,
            "offset_bits": self.decoder.offset_bits,
            "index_bits": self.decoder.index_bits,
            "tag_bits": self.decoder.tag_bits,
        }
