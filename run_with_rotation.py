# run_with_rotation.py
from __future__ import annotations

import argparse
import subprocess
import sys
from typing import BinaryIO, List, Optional

from rotator_cli import (
    EXIT_CONFIG,
    EXIT_FAILURE,
    add_rotator_arguments,
    config_from_args,
    preload_env,
    report_error,
)
from rotator_errors import ConfigError, FilesystemError, RotatorError
from rotator_logging import config_logger
from tee_rotate import run


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="run-with-rotation",
        description="Run a command and tee its console output into a rotating log file",
    )
    add_rotator_arguments(ap)
    ap.add_argument("cmd", nargs=argparse.REMAINDER, help="use: -- <command...>")
    return ap


def main(argv: Optional[List[str]] = None, sink: Optional[BinaryIO] = None) -> int:
    loaded_envs = preload_env(argv)
    ap = build_parser()
    args = ap.parse_args(argv)

    cmd = args.cmd
    if cmd and cmd[0] == "--":
        cmd = cmd[1:]
    if not cmd:
        sys.stderr.write("Usage: run_with_rotation.py [options] -- <cmd...>\n")
        sys.stderr.write("Example: run_with_rotation.py --output-file logs/collect.log -g -- python worker.py\n")
        return EXIT_CONFIG

    try:
        logger = config_logger(args.log_config, args.log_level)
        config = config_from_args(args)
    except ConfigError as e:
        report_error(e)
        return EXIT_CONFIG

    logger.info("CMD: %s", " ".join(cmd))
    if loaded_envs:
        logger.debug("loaded env files: %s", loaded_envs)

    # child stdout+stderr -> pipe -> (our stdout, rotating file)
    try:
        p = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, bufsize=0)
    except OSError as e:
        report_error(FilesystemError("start command", cmd[0], e))
        return EXIT_FAILURE

    assert p.stdout is not None
    try:
        run(config, source=p.stdout, sink=sink)
    except RotatorError as e:
        report_error(e)
        p.kill()
        p.wait()
        return EXIT_FAILURE
    finally:
        p.stdout.close()

    rc = p.wait()
    logger.info("command exited rc=%d", rc)
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
