from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from log2csv import __version__
from log2csv.config.loader import ConfigError, load_config
from log2csv.logging.init import enable_debug, log_summary, setup_logging
from log2csv.pattern.compiler import (
    EmptyPatternError,
    InvalidPatternError,
    NoNamedGroupsError,
    compile_pattern,
)
from log2csv.services.emitter import WriteError
from log2csv.services.pipeline import open_streams, run
from log2csv.services.summary import render_summary_line
from log2csv.stream.reader import ReadError

"""CLI entrypoint.

Flow:
- Load .env (does not override variables already set)
- Resolve the pattern (-regexp flag, else LOG2CSV_REGEXP)
- Load the optional YAML config (--config, else LOG2CSV_CONFIG)
- Compile the pattern before touching the output
- Stream input -> CSV, then optionally log the SUMMARY line on stderr
"""

EXIT_SUCCESS = 0
EXIT_IO_FAILURE = 1
EXIT_USAGE = 2  # argparse も引数エラー時は 2 で終了する
EXIT_INVALID_PATTERN = 3
EXIT_NO_NAMED_GROUPS = 4

ENV_REGEXP = "LOG2CSV_REGEXP"
ENV_CONFIG = "LOG2CSV_CONFIG"

USAGE_EPILOG = r"""Description:
  Reads log lines from STDIN, extracts named capture groups using the provided regular expression,
  and writes a CSV to STDOUT.

Examples:
  log2csv -regexp '^(?P<Timestamp>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?\+\d{2}:\d{2})\s+(?P<Hostname>\S+)\s+(?P<Facility>\S+):\s+\[(?P<Kernel_Time>[\d\.]+)\]\s+\[(?P<Action>UFW\s+\S+)\]\s+IN=(?P<IN>\S*)\s+OUT=(?P<OUT>\S*)\s+MAC=(?P<MAC>\S+)\s+SRC=(?P<SRC>\S+)\s+DST=(?P<DST>\S+)\s+LEN=(?P<LEN>\d+)\s+(?:(?:TOS=(?P<TOS>0x[0-9A-Fa-f]{2})\s+)?(?:PREC=(?P<PREC>0x[0-9A-Fa-f]{2})\s+)?(?:TTL=(?P<TTL>\d+)\s+)?ID=(?P<ID>\d+)\s+(?:(?P<DF>DF)\s+)?|(?:TC=(?P<TC>\d+)\s+)?(?:HOPLIMIT=(?P<HOPLIMIT>\d+)\s+)?(?:FLOWLBL=(?P<FLOWLBL>[0-9A-Fa-fx]+)\s+)? )PROTO=(?P<PROTO>[A-Za-z0-9]+)\s+(?:(?:SPT|SP)=(?P<SPT>\d+)\s+)?(?:(?:DPT|DP)=(?P<DPT>\d+)\s+)?(?:WINDOW=(?P<WINDOW>\d+)\s+)?(?:RES=(?P<RES>0x[0-9A-Fa-f]{2})\s+)?(?:(?P<TCP_Flags>(?:SYN|ACK|FIN|RST|PSH|URG|CWR|ECE)(?:\s+(?:SYN|ACK|FIN|RST|PSH|URG|CWR|ECE))*))?(?:\s+URGP=(?P<URGP>\d+))?(?:\s+TYPE=(?P<ICMP_TYPE>\d+))?(?:\s+CODE=(?P<ICMP_CODE>\d+))?(?:\s+SEQ=(?P<ICMP_SEQ>\d+))?(?:\s+LEN=(?P<L4_LEN>\d+))?\s*$' < /var/log/ufw.log
"""


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env via python-dotenv; variables already set win unless override."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="log2csv",
        description="Extract named regular-expression captures from log lines into CSV",
        epilog=USAGE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "-regexp", "--regexp", "-r",
        dest="regexp",
        default=None,
        help="regular expression with named capture groups, e.g. '(?P<ts>...) (?P<level>...)'",
    )
    p.add_argument("--config", type=Path, default=None, help="YAML config file (reader limits, separator, ...)")
    p.add_argument("--input", type=Path, default=None, help="Read log lines from FILE instead of STDIN")
    p.add_argument("--output", type=Path, default=None, help="Write CSV to FILE instead of STDOUT")
    p.add_argument("--summary", action="store_true", help="Log a SUMMARY line on STDERR after the run")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _parse_args(argv: list[str]) -> tuple[argparse.ArgumentParser, argparse.Namespace]:
    parser = _build_parser()
    return parser, parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む ([] はテストからの明示的な空引数)
    if argv is None:
        argv = sys.argv[1:]
    parser, args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    pattern_text = args.regexp if args.regexp is not None else os.getenv(ENV_REGEXP, "")
    try:
        pattern = compile_pattern(pattern_text)
    except EmptyPatternError as e:
        parser.print_help(sys.stderr)
        logger.error(f"usage: {e}")
        return EXIT_USAGE
    except InvalidPatternError as e:
        logger.error(f"pattern: {e}")
        return EXIT_INVALID_PATTERN
    except NoNamedGroupsError as e:
        logger.error(f"pattern: {e}")
        return EXIT_NO_NAMED_GROUPS

    config_env = os.getenv(ENV_CONFIG)
    config_path = args.config or (Path(config_env) if config_env else None)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_USAGE
    if config_path is not None:
        logger.debug(f"config loaded: {config_path}")

    try:
        with open_streams(args.input, args.output) as (src, dst):
            result = run(pattern, src, dst, cfg)
    except ReadError as e:
        logger.error(f"read: {e}")
        return EXIT_IO_FAILURE
    except WriteError as e:
        logger.error(f"write: {e}")
        return EXIT_IO_FAILURE

    if args.summary:
        # log_summary が "SUMMARY " を付与するので取り除く
        summary_content = render_summary_line(result)[len("SUMMARY "):]
        log_summary(summary_content)
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
