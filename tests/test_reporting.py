import json
import pytest
from pathlib import Path
from tracecache.runtime.simulator import run, compare_policies
from tracecache.utils.reporting import (generate_report_json, generate_report, format_results_table,
                                        format_config_block, format_comparison_table)


@pytest.fixture
def hw1_run(hw1):
    config = hw1.to_config()
    outcomes, stats = run(hw1.addresses, config)
    return outcomes, stats, config


def test_generate_report_json(hw1_run):
    outcomes, stats, config = hw1_run
    report = generate_report_json(outcomes, stats, config)

    assert report["config"]["effective_block_size"] == 8
    assert report["config"]["policy"] == "LRU"
    assert report["stats"]["hits"] == 7
    assert report["miss_breakdown"]["Cold"] == 100.0

    timeline = report["timeline"]
    assert len(timeline) == 13
    assert timeline[1] == {**timeline[1], 'address': 'xFD', 'index': 'xF', 'tag': 'x1', 'result': 'M', 'type': 'Cold'}
    assert timeline[2]['result'] == 'H'
    assert timeline[2]['evicted_tag'] is None
    assert timeline[1]['binary'] == f"Tag: {1:032b} Index: {15:016b} Offset: {5:08b}"


def test_format_results_table(hw1_run):
    outcomes, stats, _ = hw1_run
    table = format_results_table(outcomes, stats)

    assert "Index" in table and "Access Time" in table
    assert "Total Accesses: 13" in table
    assert "Hits: 7" in table
    assert "Misses: 6" in table
    assert "Hit Rate: 53.85%" in table
    assert "Cold: 6 (100.00%)" in table
    assert "Conflict: 0 (0.00%)" in table


def test_no_miss_breakdown_without_misses():
    from tracecache.runtime.stats import CacheStats
    assert "Miss Breakdown" not in format_results_table([], CacheStats())


def test_format_config_block(hw1):
    block = format_config_block(hw1.to_config(block_size=5))
    assert "Address space: 2^32 bytes" in block
    assert "Block size: 8 bytes (requested 5)" in block
    assert "Associativity: 1-way" in block
    assert "Replacement Policy: lru" in block


def test_format_comparison_table(hw1):
    results = compare_policies(hw1.addresses, hw1.to_config(), ["lru", "optimal"])
    table = format_comparison_table(results)
    assert "LRU" in table
    assert "OPTIMAL" in table
    assert "53.85%" in table


def test_generate_report_full(hw1_run, tmp_path: Path, capsys):
    """Tests the main generate_report function that writes all artifacts."""
    outcomes, stats, config = hw1_run
    config.report_dir = str(tmp_path)
    config.viz = True
    config.verbose = True

    generate_report(outcomes, stats, config)

    report = json.loads((tmp_path / "report.json").read_text())
    assert report["stats"]["total_accesses"] == 13

    html_file = tmp_path / "cache_visualization.html"
    assert html_file.exists()

    captured = capsys.readouterr()
    assert "Cache Configuration:" in captured.out
    assert "Cache Statistics:" in captured.out
    assert "Cache Access Pattern" in captured.out
    assert "Visualization saved to" in captured.out
