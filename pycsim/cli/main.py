from __future__ import annotations
import argparse
from ..config import CacheGeometry, SimConfig
from ..errors import CacheSimError
from ..runtime.decoder import AddressDecoder
from ..runtime.simulator import run as run_sim
from ..trace.parser import load_trace
from ..utils.logging import get_logger
from ..utils.reporting import format_summary, generate_report, print_verbose

logger = get_logger("pycsim")


def _unsigned(text: str) -> int:
    """argparse type for non-negative integers, read like strtoul(text, NULL, 0).

    '0x' is hex and a leading '0' is octal; Python's '0b' and '0o' also work.
    """
    digits = text.strip()
    try:
        if len(digits) > 1 and digits[0] == "0" and digits[1].isdigit():
            value = int(digits, 8)
        else:
            value = int(digits, 0)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {text!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative: {text!r}")
    return value


def _hex_address(text: str) -> int:
    try:
        value = int(text, 16)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid hex address: {text!r}") from exc
    if not 0 <= value < 1 << 64:
        raise argparse.ArgumentTypeError(f"address out of 64-bit range: {text!r}")
    return value


def cmd_run(args):
    """Handles the 'run' command."""
    config = SimConfig.from_args(args)
    logger.debug("Configuration: %s", config)

    # 1. Load the whole trace before touching the cache
    trace = load_trace(config.trace)

    # 2. Run simulation
    record = config.verbose or bool(config.report_dir)
    outcomes, stats = run_sim(trace, config, record=record)

    # 3. Output
    if config.verbose:
        print_verbose(outcomes)
    print(format_summary(stats))

    if config.report_dir:
        generate_report(outcomes, config, stats)
    return 0


def cmd_decode(args):
    """Handles the 'decode' command."""
    decoder = AddressDecoder(CacheGeometry(s=args.s, E=1, b=args.b))
    for address in args.addresses:
        set_index, tag = decoder.decode(address)
        block = decoder.block_address(set_index, tag)
        print(f"{address:x} set={set_index} tag={tag:x} block={block:x}")
    return 0


def build_parser():
    p = argparse.ArgumentParser(
        prog="pycsim",
        description="Set-associative cache simulator (LRU, write-back, write-allocate)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- Run Command ---
    pr = sub.add_parser("run", help="Replay a memory trace through the cache",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)

    # Config file
    pr.add_argument("-c", "--config", type=str, default=None,
                    help="Path to YAML config file to override defaults")

    # Core args (set default=None to allow override from YAML)
    pr.add_argument("-s", type=_unsigned, default=None, dest="s",
                    help="Number of set index bits (there are 2**s sets)")
    pr.add_argument("-E", type=_unsigned, default=None, dest="E",
                    help="Number of lines per set (associativity)")
    pr.add_argument("-b", type=_unsigned, default=None, dest="b",
                    help="Number of block bits (blocks are 2**b bytes)")
    pr.add_argument("-t", "--trace", type=str, default=None,
                    help="File name of the memory trace to process")
    pr.add_argument("-v", "--verbose", action="store_true", default=None,
                    help="Verbose mode: report effects of each memory operation")

    report_group = pr.add_argument_group('Reporting Arguments')
    report_group.add_argument("--report", type=str, default=None, dest="report_dir",
                              help="Directory to save report.json and sets.html")
    report_group.add_argument("--ascii-chart", action="store_true", default=None, dest="ascii_chart",
                              help="Print an ASCII per-set activity chart with the report")

    pr.set_defaults(func=cmd_run)

    # --- Decode Command ---
    pd_ = sub.add_parser("decode", help="Show the set index and tag of addresses",
                         formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    pd_.add_argument("-s", type=_unsigned, required=True, dest="s",
                     help="Number of set index bits")
    pd_.add_argument("-b", type=_unsigned, required=True, dest="b",
                     help="Number of block bits")
    pd_.add_argument("addresses", nargs="+", type=_hex_address,
                     help="Hexadecimal addresses without prefix")
    pd_.set_defaults(func=cmd_decode)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except CacheSimError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
