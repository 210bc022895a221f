# rotator_cli.py
from __future__ import annotations

import argparse
import logging
import re
import sys
from typing import BinaryIO, List, Optional

from env_loader import env_flag, env_str, load_project_env
from rotator_errors import ConfigError, RotatorError
from rotator_logging import LOGGER, config_logger
from tee_rotate import DEFAULT_BUFFER_SIZE, DEFAULT_MAX_HISTORY, build_config, run

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([kmg]?)(i?b)?\s*$", re.IGNORECASE)
_SIZE_MULT = {"": 1, "k": 1024, "m": 1024 ** 2, "g": 1024 ** 3}


def parse_size(raw: str) -> int:
    """'4096', '512K', '10M', '1G', '10MiB' -> bytes"""
    m = _SIZE_RE.match(str(raw))
    if not m:
        raise argparse.ArgumentTypeError(f"invalid size: {raw!r}")
    return int(m.group(1)) * _SIZE_MULT[m.group(2).lower()]


def _int(raw: str) -> int:
    try:
        return int(str(raw).strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {raw!r}")


def add_rotator_arguments(ap: argparse.ArgumentParser) -> None:
    """rotator_cli / run_with_rotation 공용 옵션. 기본값은 ROTATOR_* 환경변수(.env 포함)."""
    ap.add_argument("--output-file", default=env_str("ROTATOR_OUTPUT_FILE", "output.log"))
    ap.add_argument(
        "--rotation-directory",
        default=env_str("ROTATOR_ROTATION_DIRECTORY", ""),
        help="archive directory (default: parent directory of --output-file)",
    )
    ap.add_argument(
        "-g", "--gunzip", "--compress",
        dest="gunzip",
        action="store_true",
        default=env_flag("ROTATOR_GUNZIP", False),
        help="gzip archives (<name>.<N>.gz)",
    )
    ap.add_argument(
        "-m", "--max-history",
        type=_int,
        default=env_str("ROTATOR_MAX_HISTORY", str(DEFAULT_MAX_HISTORY)),
        help="number of archives kept; 0 discards rotated data",
    )
    ap.add_argument(
        "--max-size",
        type=parse_size,
        default=env_str("ROTATOR_MAX_SIZE", "10M"),
        help="rotate once the live file grows past this many bytes (K/M/G suffixes allowed)",
    )
    ap.add_argument(
        "--buffer-size",
        type=parse_size,
        default=env_str("ROTATOR_BUFFER_SIZE", str(DEFAULT_BUFFER_SIZE)),
        help="bytes per read from stdin",
    )
    ap.add_argument("--log-config", default=env_str("ROTATOR_LOG_CONFIG", "") or None)
    ap.add_argument("--log-level", default=env_str("ROTATOR_LOG_LEVEL", "INFO"))
    ap.add_argument("--env-file", default=None, help="extra .env file loaded before defaults")


def preload_env(argv: Optional[List[str]]) -> List[str]:
    # --env-file 은 나머지 옵션의 기본값을 바꾸므로 먼저 본다
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--env-file", default=None)
    known, _ = pre.parse_known_args(argv)
    return load_project_env(known.env_file)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="stdout-rotator",
        description="Allows to apply log-rotate to console output programs",
    )
    add_rotator_arguments(ap)
    return ap


def config_from_args(args: argparse.Namespace):
    return build_config(
        output_file=args.output_file,
        rotation_directory=args.rotation_directory,
        gunzip=args.gunzip,
        max_history=args.max_history,
        max_size=args.max_size,
        buffer_size=args.buffer_size,
    )


def report_error(err: RotatorError) -> None:
    logging.getLogger(LOGGER).error("%s", err)
    sys.stderr.write(f"{err}\n")
    sys.stderr.flush()


def main(
    argv: Optional[List[str]] = None,
    source: Optional[BinaryIO] = None,
    sink: Optional[BinaryIO] = None,
) -> int:
    loaded_envs = preload_env(argv)
    args = build_parser().parse_args(argv)

    try:
        logger = config_logger(args.log_config, args.log_level)
        config = config_from_args(args)
    except ConfigError as e:
        report_error(e)
        return EXIT_CONFIG

    logger.info("Parsed command line arguments: %s", config.model_dump())
    if loaded_envs:
        logger.debug("loaded env files: %s", loaded_envs)

    try:
        run(config, source=source, sink=sink)
    except RotatorError as e:
        report_error(e)
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
