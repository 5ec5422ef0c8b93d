from __future__ import annotations
import argparse

from ..config import SimConfig
from ..errors import ConfigurationError
from ..runtime.policies import ReplacementPolicy
from ..runtime.simulator import run as run_sim, compare_policies
from ..trace import read_trace
from ..utils.logging import get_logger, set_verbose
from ..utils.reporting import (format_comparison_table, format_config_block,
                               format_results_table, generate_report)
from ..workloads import HOMEWORK_WORKLOADS

logger = get_logger("tracecache.cli")

POLICY_CHOICES = [p.value.lower() for p in ReplacementPolicy]


def load_addresses(config: SimConfig):
    if not config.trace_file:
        raise ConfigurationError("A trace file is required (-f/--file or trace_file in the YAML config).")
    return read_trace(config.trace_file)


def cmd_run(args):
    """Handles the 'run' command."""
    config = SimConfig.from_args(args)
    set_verbose(config.verbose)
    logger.debug(f"Configuration: {config}")

    addresses = load_addresses(config)
    outcomes, stats = run_sim(addresses, config)
    generate_report(outcomes, stats, config)
    return 0


def cmd_compare(args):
    """Handles the 'compare' command."""
    config = SimConfig.from_args(args)
    set_verbose(config.verbose)

    addresses = load_addresses(config)
    policies = args.policies.split(",") if args.policies else None
    results = compare_policies(addresses, config, policies)

    print(format_config_block(config))
    print(format_comparison_table(results))
    return 0


def cmd_fixtures(args):
    """Handles the 'fixtures' command."""
    names = [args.name] if args.name else list(HOMEWORK_WORKLOADS)
    for name in names:
        if name not in HOMEWORK_WORKLOADS:
            raise ConfigurationError(f"Unknown fixture '{name}'.")
        workload = HOMEWORK_WORKLOADS[name]
        config = workload.to_config()
        outcomes, stats = run_sim(workload.addresses, config)
        print(f"=== {workload.name} ===")
        print(format_config_block(config))
        print(format_results_table(outcomes, stats))
        print()
    return 0


def add_geometry_arguments(p: argparse.ArgumentParser):
    # Defaults are None so that values from a YAML config survive.
    p.add_argument("-f", "--file", type=str, default=None, dest="trace_file",
                   help="Input file with one address per line (e.g. x1F)")
    p.add_argument("-c", "--config", type=str, default=None,
                   help="Path to YAML config file to override defaults")
    p.add_argument("-N", type=int, default=None, dest="address_bits",
                   help="Address space size in 2^N bytes (1-64, default 16)")
    p.add_argument("-B", type=int, default=None, dest="block_size",
                   help="Block size in bytes, rounded up to a power of two (1-1024, default 4)")
    p.add_argument("-I", type=int, default=None, dest="num_sets",
                   help="Number of sets, rounded up to a power of two (1-1024, default 4)")
    p.add_argument("-w", "--ways", type=int, default=None,
                   help="Number of ways/associativity (1-32, default 1)")
    p.add_argument("--seed", type=int, default=None,
                   help="Seed for the RANDOM policy")
    p.add_argument("-v", "--verbose", action="store_true", default=None,
                   help="Enable verbose output")


def build_parser():
    p = argparse.ArgumentParser(
        prog="tracecache",
        description="Set-associative cache simulator with multiple replacement policies",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- Run Command ---
    pr = sub.add_parser("run", help="Replay a trace and report hits and misses",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    add_geometry_arguments(pr)
    pr.add_argument("-p", "--policy", type=str.lower, default=None, choices=POLICY_CHOICES,
                    help="Replacement policy")
    pr.add_argument("--report", type=str, default=None, dest="report_dir",
                    help="Directory to save simulation reports")
    pr.add_argument("--viz", action="store_true", default=None,
                    help="Generate an HTML visualization")
    pr.add_argument("--viz-file", type=str, default=None, dest="viz_file",
                    help="Visualization output file (relative paths land in the report directory)")
    pr.set_defaults(func=cmd_run)

    # --- Compare Command ---
    pc = sub.add_parser("compare", help="Replay a trace under several policies",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    add_geometry_arguments(pc)
    pc.add_argument("--policies", type=str, default=None,
                    help="Comma-separated policies to compare (default: all)")
    pc.set_defaults(func=cmd_compare)

    # --- Fixtures Command ---
    pf = sub.add_parser("fixtures", help="Replay the built-in homework traces",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    pf.add_argument("name", nargs="?", default=None,
                    help=f"Run a single fixture ({', '.join(sorted(HOMEWORK_WORKLOADS))})")
    pf.set_defaults(func=cmd_fixtures)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except (ValueError, OSError) as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
