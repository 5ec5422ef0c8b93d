from __future__ import annotations
from dataclasses import replace
from typing import Dict, Iterable, List, Sequence, Tuple

from ..config import SimConfig
from ..utils.logging import get_logger
from .cache import AccessOutcome, CacheEngine
from .policies import ReplacementPolicy
from .stats import CacheStats

logger = get_logger(__name__)


def run(addresses: Sequence[str], config: SimConfig) -> Tuple[List[AccessOutcome], CacheStats]:
    """
    Replays an address trace against a cache built from `config`.

    This is the main entry point for a simulation. The OPTIMAL policy is primed
    with the whole trace before the first access.
    """
    engine = CacheEngine.from_config(config)
    if engine.policy is ReplacementPolicy.OPTIMAL:
        engine.prime_optimal(addresses)

    for address in addresses:
        engine.access(address)

    logger.info(f"Replayed {engine.stats.total_accesses} accesses: "
                f"{engine.stats.hits} hits, {engine.stats.misses} misses "
                f"({engine.stats.get_hit_rate():.2f}% hit rate)")
    return engine.outcomes, engine.stats


def compare_policies(addresses: Sequence[str], config: SimConfig,
                     policies: Iterable[ReplacementPolicy | str] | None = None) -> Dict[str, CacheStats]:
    """Runs the same trace and geometry under each policy; keys are policy names."""
    if policies is None:
        policies = list(ReplacementPolicy)

    results: Dict[str, CacheStats] = {}
    for policy in policies:
        policy = ReplacementPolicy.from_name(policy)
        _, stats = run(addresses, replace(config, policy=policy.value))
        results[policy.value] = stats
    return results
