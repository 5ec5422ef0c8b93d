from __future__ import annotations
import bisect
import random
import time
from collections import Counter, deque
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Sequence, Tuple

from ..errors import ConfigurationError, UnknownPolicyError

if TYPE_CHECKING:
    from .cache_set import CacheLine

ARC_FREQUENCY_WEIGHT = 0.7
ARC_AGE_WEIGHT = 0.3


class ReplacementPolicy(str, Enum):
    """Victim selection algorithms a cache set can use once it is full."""

    LRU = "LRU"          # Least Recently Used
    MRU = "MRU"          # Most Recently Used
    OPTIMAL = "OPTIMAL"  # Belady, needs the whole trace up front
    RANDOM = "RANDOM"
    FIFO = "FIFO"
    PLRU = "PLRU"        # Binary tree pseudo-LRU
    LFU = "LFU"          # Least Frequently Used (per tag)
    ARC = "ARC"          # Weighted frequency/age score, not adaptive replacement

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str | ReplacementPolicy) -> ReplacementPolicy:
        """Resolves a case-insensitive policy name such as 'lru' or 'Optimal'."""
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().upper())
        except ValueError:
            choices = ", ".join(p.value.lower() for p in cls)
            raise ConfigurationError(f"Unknown replacement policy '{name}' (choose from {choices}).") from None


def plru_depth(ways: int) -> int:
    """Depth of the PLRU tree, ceil(log2(ways))."""
    return (ways - 1).bit_length()


class ReplacementState:
    """
    Per-set bookkeeping for the active replacement policy.

    Each policy keeps only the auxiliary state it needs: an insertion-order queue
    of slots for FIFO, a flat array of tree bits for PLRU, a tag frequency table
    for LFU and a tag -> future positions index for OPTIMAL. LRU, MRU and ARC
    derive their choice from the line fields alone.
    """
    def __init__(self, policy: ReplacementPolicy, ways: int, rng: random.Random | None = None,
                 clock: Callable[[], float] = time.time):
        self.policy = policy
        self.ways = ways
        self.rng = rng or random.Random()
        self.clock = clock

        self.fifo_queue: deque = deque()
        self.plru_depth = plru_depth(ways)
        # Implicit complete binary tree: children of node n are 2n+1 and 2n+2.
        self.plru_bits: List[bool] = [False] * ((1 << self.plru_depth) - 1)
        self.frequency: Counter = Counter()
        self.future_positions: Dict[int, List[int]] = {}
        self.current_position = 0

        self._victim_policies: Dict[ReplacementPolicy, Callable[[Sequence[CacheLine]], int]] = {
            ReplacementPolicy.LRU: self._lru_victim,
            ReplacementPolicy.MRU: self._mru_victim,
            ReplacementPolicy.RANDOM: self._random_victim,
            ReplacementPolicy.FIFO: self._fifo_victim,
            ReplacementPolicy.PLRU: self._plru_victim,
            ReplacementPolicy.LFU: self._lfu_victim,
            ReplacementPolicy.ARC: self._arc_victim,
            ReplacementPolicy.OPTIMAL: self._optimal_victim,
        }

    # --- Notifications from the owning set ---

    def advance(self, position: int):
        """Moves the OPTIMAL cursor to the trace position of the current access."""
        self.current_position = position

    def on_access(self, way: int, tag: int):
        """Records a hit on `way` holding `tag`."""
        if self.policy is ReplacementPolicy.PLRU:
            self._plru_touch(way)
        elif self.policy is ReplacementPolicy.LFU:
            self.frequency[tag] += 1

    def on_fill(self, way: int):
        """Records a fill of `way`. LFU frequencies only grow on hits."""
        if self.policy is ReplacementPolicy.PLRU:
            self._plru_touch(way)

    def on_cold_fill(self, way: int):
        """Called when an empty slot is handed out ahead of the policy."""
        if self.policy is ReplacementPolicy.FIFO:
            self.fifo_queue.append(way)

    def select_victim(self, lines: Sequence[CacheLine]) -> int:
        """Chooses a way to evict from a set whose lines are all valid."""
        victim_func = self._victim_policies.get(self.policy)
        if victim_func is None:
            raise UnknownPolicyError(f"Unknown replacement policy: {self.policy!r}")
        return victim_func(lines)

    # --- OPTIMAL preprocessing ---

    def load_future(self, trace: Iterable[Tuple[int, int]]):
        """Indexes (position, tag) pairs so next uses can be found by binary search."""
        self.future_positions = {}
        for position, tag in trace:
            self.future_positions.setdefault(tag, []).append(position)
        for positions in self.future_positions.values():
            positions.sort()

    def next_use(self, tag: int) -> int | None:
        """First trace position after the cursor at which `tag` is accessed again."""
        positions = self.future_positions.get(tag)
        if not positions:
            return None
        i = bisect.bisect_left(positions, self.current_position + 1)
        return positions[i] if i < len(positions) else None

    # --- Victim selection ---

    def _lru_victim(self, lines: Sequence[CacheLine]) -> int:
        return min(range(len(lines)), key=lambda w: lines[w].last_used_seq)

    def _mru_victim(self, lines: Sequence[CacheLine]) -> int:
        victim = 0
        for way, line in enumerate(lines):
            if line.last_used_seq > lines[victim].last_used_seq:
                victim = way
        return victim

    def _random_victim(self, lines: Sequence[CacheLine]) -> int:
        return self.rng.randrange(len(lines))

    def _fifo_victim(self, lines: Sequence[CacheLine]) -> int:
        victim = self.fifo_queue.popleft()
        self.fifo_queue.append(victim)
        return victim

    def _plru_victim(self, lines: Sequence[CacheLine]) -> int:
        node = 0
        way = 0
        for _ in range(self.plru_depth):
            if self.plru_bits[node]:
                way = (way << 1) | 1
                node = 2 * node + 2
            else:
                way = way << 1
                node = 2 * node + 1
        return way % len(lines)

    def _plru_touch(self, way: int):
        # Point every bit on the path away from the accessed way.
        node = 0
        for level in range(self.plru_depth - 1, -1, -1):
            went_right = (way >> level) & 1
            self.plru_bits[node] = not went_right
            node = 2 * node + 1 + went_right

    def _lfu_victim(self, lines: Sequence[CacheLine]) -> int:
        return min(range(len(lines)), key=lambda w: self.frequency[lines[w].tag])

    def _arc_victim(self, lines: Sequence[CacheLine]) -> int:
        now = self.clock()

        def score(line: CacheLine) -> float:
            age_seconds = int(now - line.inserted_at)
            return line.access_count * ARC_FREQUENCY_WEIGHT + age_seconds * ARC_AGE_WEIGHT

        return min(range(len(lines)), key=lambda w: score(lines[w]))

    def _optimal_victim(self, lines: Sequence[CacheLine]) -> int:
        victim = 0
        furthest = -1
        for way, line in enumerate(lines):
            next_position = self.next_use(line.tag)
            if next_position is None:
                return way
            if next_position > furthest:
                victim = way
                furthest = next_position
        return victim
