from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:
    from .cache import AccessOutcome


@dataclass
class CacheStats:
    """Running hit/miss counters, hit-rate trajectory and address histogram of one run."""
    total_accesses: int = 0
    hits: int = 0
    misses: int = 0
    cold_misses: int = 0
    conflict_misses: int = 0
    capacity_misses: int = 0
    hit_rate_history: List[float] = field(default_factory=list)
    address_frequency: Dict[int, int] = field(default_factory=dict)
    # Wall-clock measurements differ between otherwise identical runs.
    total_access_time_us: float = field(default=0.0, compare=False)

    def record(self, outcome: AccessOutcome):
        self.total_accesses += 1
        if outcome.hit:
            self.hits += 1
        else:
            self.misses += 1
            if outcome.is_cold:
                self.cold_misses += 1
            elif outcome.is_conflict:
                self.conflict_misses += 1
            else:
                self.capacity_misses += 1

        self.hit_rate_history.append(self.get_hit_rate())
        self.address_frequency[outcome.full_address] = self.address_frequency.get(outcome.full_address, 0) + 1
        self.total_access_time_us += outcome.elapsed_time

    def get_hit_rate(self) -> float:
        """Hit percentage (0-100); 0.0 before any access."""
        if self.total_accesses == 0:
            return 0.0
        return self.hits / self.total_accesses * 100.0

    @property
    def miss_rate(self) -> float:
        if self.total_accesses == 0:
            return 0.0
        return self.misses / self.total_accesses * 100.0

    @property
    def average_access_time_us(self) -> float:
        if self.total_accesses == 0:
            return 0.0
        return self.total_access_time_us / self.total_accesses

    def miss_breakdown(self) -> Dict[str, float]:
        """Share of each miss class as a percentage of all misses."""
        if self.misses == 0:
            return {}
        return {
            "Cold": self.cold_misses * 100.0 / self.misses,
            "Conflict": self.conflict_misses * 100.0 / self.misses,
            "Capacity": self.capacity_misses * 100.0 / self.misses,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_accesses": self.total_accesses,
            "hits": self.hits,
            "misses": self.misses,
            "cold_misses": self.cold_misses,
            "conflict_misses": self.conflict_misses,
            "capacity_misses": self.capacity_misses,
            "hit_rate": self.get_hit_rate(),
            "miss_rate": self.miss_rate,
            "average_access_time_us": self.average_access_time_us,
            "hit_rate_history": list(self.hit_rate_history),
            "address_frequency": {f"x{addr:X}": count for addr, count in sorted(self.address_frequency.items())},
        }
