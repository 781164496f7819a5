#!/usr/bin/env python3
"""
Contract Watch - CLI Entry Point
================================

Runs one check of the monitored contract and exits. Meant to be invoked by
a scheduler (cron or a GitHub Actions `schedule:` workflow).

Modes:
    - page:   fingerprint the block explorer page of the contract
    - supply: read totalSupply() through an RPC endpoint

Outputs (for the workflow): alert, message, timestamp, categories

Usage:
    # Run with settings from the environment / .env
    python scripts/run_monitor.py

    # Watch a token's total supply
    python scripts/run_monitor.py --mode supply --contract 0x...

    # Inspect or reset the stored state
    python scripts/run_monitor.py --show-state
    python scripts/run_monitor.py --reset
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from contract_watch.config import Config, MonitorMode
from contract_watch.db import StateStore
from contract_watch.monitor import MonitorService

EXIT_CONFIG_ERROR = 2


def setup_logging(log_level: str = "INFO", log_file: Path = None):
    """Configure logging for the monitor."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Optional file handler
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        root_logger.info(f"Logging to: {log_file}")

    # Reduce noise from HTTP / RPC libraries
    for name in ("urllib3", "requests", "web3", "aiohttp"):
        logging.getLogger(name).setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Contract Watch - on-chain change monitor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_monitor.py                          # Page mode, settings from env
  python scripts/run_monitor.py --mode supply            # totalSupply() via RPC_URL
  python scripts/run_monitor.py --dry-run                # Don't forward to Telegram
  python scripts/run_monitor.py --show-state             # Print stored document
  python scripts/run_monitor.py --reset                  # Force a new baseline
        """
    )

    parser.add_argument(
        '--mode',
        choices=[m.value for m in MonitorMode],
        help='What to observe (default: MONITOR_MODE or page)'
    )
    parser.add_argument('--contract', help='Contract address (default: CONTRACT_ADDRESS)')
    parser.add_argument('--watch', help='Secondary address to look for in page content (default: WATCH_ADDRESS)')
    parser.add_argument('--data-file', type=Path, help='State document path (default: DATA_FILE)')
    parser.add_argument('--output-file', type=Path, help='Workflow output file (default: GITHUB_OUTPUT)')
    parser.add_argument('--rpc', help='RPC endpoint (default: RPC_URL)')
    parser.add_argument('--explorer', help='Block explorer base URL (default: EXPLORER_URL)')

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Log level (default: LOG_LEVEL or INFO)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Log alerts instead of forwarding them to Telegram'
    )
    parser.add_argument(
        '--reset',
        action='store_true',
        help='Delete the stored document before running (next check is a baseline)'
    )
    parser.add_argument(
        '--show-state',
        action='store_true',
        help='Print the stored document and exit'
    )
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Apply CLI flags on top of the environment config."""
    if args.mode:
        config.mode = MonitorMode(args.mode)
    if args.contract:
        config.contract_address = args.contract
    if args.watch is not None:
        config.watch_address = args.watch or None
    if args.data_file:
        config.data_file = args.data_file
    if args.output_file:
        config.output_file = args.output_file
    if args.rpc:
        config.rpc_url = args.rpc
    if args.explorer:
        config.explorer_url = args.explorer
    if args.log_level:
        config.log_level = args.log_level
    if args.dry_run:
        config.dry_run = True
    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(Config.from_env(), args)
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(config.log_level, config.log_file)
    logger = logging.getLogger(__name__)

    store = StateStore(config.data_file)

    if args.show_state:
        raw = store.read_raw()
        print(raw if raw is not None else f"No stored document at {config.data_file}")
        return 0

    if args.reset and store.reset():
        logger.info("Stored document removed, this run establishes a new baseline")

    service = MonitorService(config, store=store)
    return service.run()


if __name__ == "__main__":
    sys.exit(main())
