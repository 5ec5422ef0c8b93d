from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping

from ..config import SimConfig
from ..runtime.cache import AccessOutcome
from ..runtime.stats import CacheStats
from . import viz


def config_summary(config: SimConfig) -> Dict[str, Any]:
    """Requested and effective (power-of-two rounded) cache parameters."""
    return {
        "address_bits": config.address_bits,
        "block_size": config.block_size,
        "effective_block_size": config.effective_block_size,
        "num_sets": config.num_sets,
        "effective_num_sets": config.effective_num_sets,
        "ways": config.ways,
        "policy": config.replacement_policy.value,
        "trace_file": config.trace_file,
        "seed": config.seed,
    }


def generate_report_json(outcomes: List[AccessOutcome], stats: CacheStats, config: SimConfig) -> Dict[str, Any]:
    """Generates a JSON-compatible dictionary from the access outcomes."""
    timeline = []
    for i, o in enumerate(outcomes):
        timeline.append({
            'access': i,
            'address': o.address,
            'index': o.index_hex,
            'tag': o.tag_hex,
            'offset': o.offset,
            'binary': o.binary,
            'result': o.result,
            'type': o.miss_type,
            'way': o.way,
            'evicted_tag': None if o.evicted_tag is None else f"x{o.evicted_tag:X}",
            'access_time_us': o.elapsed_time,
        })

    return {
        "config": config_summary(config),
        "stats": stats.to_dict(),
        "miss_breakdown": stats.miss_breakdown(),
        "timeline": timeline,
    }


def format_config_block(config: SimConfig) -> str:
    lines = [
        "Cache Configuration:",
        "-------------------",
        f"Address space: 2^{config.address_bits} bytes",
        f"Block size: {config.effective_block_size} bytes (requested {config.block_size})",
        f"Number of sets: {config.effective_num_sets} (requested {config.num_sets})",
        f"Associativity: {config.ways}-way",
        f"Replacement Policy: {config.replacement_policy.value.lower()}",
    ]
    return "\n".join(lines) + "\n"


def format_results_table(outcomes: List[AccessOutcome], stats: CacheStats) -> str:
    """Per-access table followed by the run statistics."""
    out = [f"{'Index':>10}{'Tag':>10}{'Result':>8}{'Access Time':>15}{'Type':>10}", "-" * 60]
    for o in outcomes:
        out.append(f"{o.index_hex:>10}{o.tag_hex:>10}{o.result:>8}{o.elapsed_time:>13.2f}µs{o.miss_type:>10}")

    out += [
        "",
        "Cache Statistics:",
        "-----------------",
        f"Total Accesses: {stats.total_accesses}",
        f"Hits: {stats.hits}",
        f"Misses: {stats.misses}",
        f"Hit Rate: {stats.get_hit_rate():.2f}%",
        f"Cold Misses: {stats.cold_misses}",
        f"Conflict Misses: {stats.conflict_misses}",
        f"Capacity Misses: {stats.capacity_misses}",
        f"Average Access Time: {stats.average_access_time_us:.2f}µs",
    ]

    breakdown = stats.miss_breakdown()
    if breakdown:
        out += ["", "Miss Breakdown:", "---------------"]
        counts = {"Cold": stats.cold_misses, "Conflict": stats.conflict_misses, "Capacity": stats.capacity_misses}
        for kind, share in breakdown.items():
            out.append(f"{kind}: {counts[kind]} ({share:.2f}%)")
    return "\n".join(out)


def format_comparison_table(results: Mapping[str, CacheStats]) -> str:
    """One row per policy, sorted by the order given."""
    out = [f"{'Policy':<10}{'Hits':>8}{'Misses':>8}{'Cold':>8}{'Conflict':>10}{'Hit Rate':>10}", "-" * 54]
    for policy, stats in results.items():
        out.append(f"{policy:<10}{stats.hits:>8}{stats.misses:>8}{stats.cold_misses:>8}"
                   f"{stats.conflict_misses:>10}{stats.get_hit_rate():>9.2f}%")
    return "\n".join(out)


def generate_report(outcomes: List[AccessOutcome], stats: CacheStats, config: SimConfig):
    """Generates all report artifacts."""
    report_data = generate_report_json(outcomes, stats, config)
    output_dir = Path(config.report_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    with open(output_dir / "report.json", "w") as f:
        json.dump(report_data, f, indent=4)

    if config.verbose:
        print(format_config_block(config))
    print(format_results_table(outcomes, stats))
    print()
    print(viz.export_access_pattern_ascii(outcomes))

    if config.viz:
        viz_path = Path(config.viz_file)
        if not viz_path.is_absolute():
            viz_path = output_dir / viz_path
        viz.export_dashboard(outcomes, stats, str(viz_path))
        print(f"\nVisualization saved to: {viz_path}")

    print(f"\nReports generated in {output_dir.absolute()}")
    return report_data
