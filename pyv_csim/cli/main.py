from __future__ import annotations
import argparse
from ..cache.address import block_offset, decode_address
from ..config import CacheGeometry, SimConfig
from ..runtime.simulator import run as run_sim
from ..trace.parser import address_fits, iter_trace
from ..utils.logging import get_logger, set_verbose
from ..utils.reporting import format_summary, generate_report

logger = get_logger(__name__)


def cmd_run(args):
    """Handles the 'run' command."""
    # Create simulator config from args
    try:
        config = SimConfig.from_args(args)
    except ValueError as e:
        logger.error("%s", e)
        return 1
    set_verbose(config.verbose)

    if not config.trace:
        logger.error("A trace file is required (-t or 'trace' in the config file).")
        return 1

    # Events are only needed for the report artifacts
    config.keep_events = bool(config.report_dir)

    # 1. Replay the trace
    try:
        with open(config.trace, "r") as f:
            records = iter_trace(f, config.address_width)
            events, stats = run_sim(records, config)
    except OSError as e:
        logger.error("Error opening %s: %s", config.trace, e.strerror or e)
        return 1
    except ValueError as e:
        logger.error("%s", e)
        return 1

    # 2. Report
    print(format_summary(stats))
    if config.report_dir:
        generate_report(events, config, stats)
    return 0


def cmd_decode(args):
    """Handles the 'decode' command."""
    try:
        geometry = CacheGeometry(set_bits=args.set_bits, block_bits=args.block_bits,
                                 associativity=1, address_width=args.address_width)
        address = int(args.address, 16)
    except ValueError as e:
        logger.error("%s", e)
        return 1
    if not address_fits(address, geometry.address_width):
        logger.error("Address %s does not fit in %d bits", args.address, geometry.address_width)
        return 1

    set_index, tag = decode_address(address, geometry)
    print(f"address: {address:#x} set: {set_index} tag: {tag:#x} "
          f"offset: {block_offset(address, geometry)}")
    return 0


def build_parser():
    p = argparse.ArgumentParser(
        prog="pyv-csim",
        description="Trace-driven set-associative cache simulator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- Run Command ---
    pr = sub.add_parser("run", help="Replay a memory trace and print cache statistics",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)

    # Config file
    pr.add_argument("-c", "--config", type=str, default=None,
                    help="Path to YAML config file to override defaults")

    # Core args (set default=None to allow override from YAML)
    pr.add_argument("-s", type=int, default=None, dest="set_bits",
                    help="Number of set index bits (2^s sets)")
    pr.add_argument("-E", type=int, default=None, dest="associativity",
                    help="Associativity (lines per set)")
    pr.add_argument("-b", type=int, default=None, dest="block_bits",
                    help="Number of block offset bits (2^b byte blocks)")
    pr.add_argument("-t", type=str, default=None, dest="trace",
                    help="Trace file to replay")
    pr.add_argument("-v", "--verbose", action="store_true", default=None,
                    help="Log the outcome of every access")
    pr.add_argument("--report", type=str, default=None, dest="report_dir",
                    help="Directory to save report.json and report.html")
    pr.add_argument("--check-invariants", action="store_true", default=None,
                    dest="check_invariants",
                    help="Verify cache bookkeeping after every access")
    pr.set_defaults(func=cmd_run)

    # --- Decode Command ---
    pdec = sub.add_parser("decode", help="Split an address into set, tag and offset",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    pdec.add_argument("address", help="Hexadecimal address")
    pdec.add_argument("-s", type=int, required=True, dest="set_bits",
                    help="Number of set index bits")
    pdec.add_argument("-b", type=int, required=True, dest="block_bits",
                    help="Number of block offset bits")
    pdec.add_argument("--address-width", type=int, default=64, dest="address_width",
                    help="Address width in bits")
    pdec.set_defaults(func=cmd_decode)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
