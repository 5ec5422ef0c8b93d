from __future__ import annotations
import itertools
import random
import time
from typing import Callable, Iterable, Iterator, List, Tuple

from .policies import ReplacementPolicy, ReplacementState


class CacheLine:
    """Represents a single line in a cache set."""
    def __init__(self, block_size: int):
        self.tag = 0
        self.valid = False
        self.dirty = False
        self.last_used_seq = 0
        self.access_count = 0
        self.inserted_at = 0.0
        # Models storage only; the simulator never reads block contents.
        self.payload = bytearray(block_size)

    def __repr__(self) -> str:
        return (f"CacheLine(tag={self.tag:#x}, valid={self.valid}, "
                f"last_used_seq={self.last_used_seq}, access_count={self.access_count})")


class CacheSet:
    """
    A fixed number of ways plus the replacement state of one policy.

    `sequence` is the access counter shared by every set of a cache so that
    `last_used_seq` values are comparable cache-wide.
    """
    def __init__(self, ways: int, block_size: int, policy: ReplacementPolicy,
                 sequence: Iterator[int] | None = None, rng: random.Random | None = None,
                 clock: Callable[[], float] = time.time):
        self.ways = ways
        self.policy = policy
        self.lines: List[CacheLine] = [CacheLine(block_size) for _ in range(ways)]
        self.sequence = sequence if sequence is not None else itertools.count(1)
        self.clock = clock
        self.replacement = ReplacementState(policy, ways, rng=rng, clock=clock)

    def lookup(self, tag: int, position: int | None = None) -> Tuple[bool, int | None]:
        """
        Scans the ways for a valid line holding `tag`.
        Returns (hit, way); way is None on a miss.
        """
        if position is not None:
            self.replacement.advance(position)
        for way, line in enumerate(self.lines):
            if line.valid and line.tag == tag:
                line.last_used_seq = next(self.sequence)
                line.access_count += 1
                self.replacement.on_access(way, tag)
                return True, way
        return False, None

    def find_victim(self, new_tag: int) -> int:
        """Picks the way that `new_tag` will be stored in. Empty ways are used first."""
        for way, line in enumerate(self.lines):
            if not line.valid:
                self.replacement.on_cold_fill(way)
                return way
        return self.replacement.select_victim(self.lines)

    def insert(self, way: int, new_tag: int):
        """Fills `way` with `new_tag`, replacing whatever it held."""
        line = self.lines[way]
        line.tag = new_tag
        line.valid = True
        line.dirty = False
        line.last_used_seq = next(self.sequence)
        line.access_count = 1
        line.inserted_at = self.clock()
        self.replacement.on_fill(way)

    def set_optimal_trace(self, trace: Iterable[Tuple[int, int]]):
        """Primes the OPTIMAL policy with the (position, tag) pairs that map to this set."""
        self.replacement.load_future(trace)

    def valid_tags(self) -> List[int]:
        return [line.tag for line in self.lines if line.valid]

    def occupancy(self) -> int:
        return sum(1 for line in self.lines if line.valid)
