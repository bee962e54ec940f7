from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Sequence

from rich.console import Console
from rich.logging import RichHandler

from tide.config import ConfigError, RunConfig, resolve_config
from tide.console import BANNER, print_report
from tide.loadgen.runner import run_load

__version__ = "1.0.0"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tide", description="A concurrent HTTP load testing tool")
    parser.add_argument("--url", required=True, metavar="URL", help="Target URL")
    parser.add_argument(
        "-n",
        "--concurrency",
        type=int,
        default=5,
        help="Number of concurrent requests per interval (must be > 0)",
    )
    parser.add_argument(
        "-t",
        "--duration",
        type=int,
        default=10,
        help="Duration for which the program should run (in seconds)",
    )
    parser.add_argument("--timeout", type=int, default=10, help="Timeout for each HTTP request (in seconds)")
    parser.add_argument("--retries", type=int, default=2, help="Number of retries for failed requests (>= 0)")
    parser.add_argument("--config", default=None, help="Config file (default: $TIDE_CONFIG or config.toml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-tick details")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    console = Console()
    console.print(BANNER, highlight=False)

    cli_config = RunConfig(
        url=args.url,
        concurrency=args.concurrency,
        duration_sec=args.duration,
        timeout_sec=args.timeout,
        max_retries=args.retries,
    )
    try:
        cli_config.validate()
        config = resolve_config(cli_config, args.config).validate()
    except ConfigError as exc:
        logger.error("Argument error: %s", exc)
        return 1

    console.print(
        f"Running for {config.duration_sec}s with concurrency={config.concurrency}, "
        f"timeout={config.timeout_sec}s, retries={config.max_retries}\n",
        highlight=False,
    )
    report = asyncio.run(run_load(config))
    print_report(report, console)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
