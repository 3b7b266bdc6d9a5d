# src/floorwatch/main.py
import argparse
import asyncio
import sys

import structlog
from dotenv import load_dotenv

from floorwatch.config import Config, load_config
from floorwatch.cycle import Notifier, WatchCycle
from floorwatch.data.history import HistoryFile
from floorwatch.errors import ConfigError, DeliveryError
from floorwatch.ingest.client import ClientConfig, MarketplaceClient
from floorwatch.notify.console import ConsoleNotifier
from floorwatch.notify.telegram import TelegramNotifier, TelegramNotifierConfig
from floorwatch.scheduler import PeriodicScheduler, SchedulerConfig
from floorwatch.utils.logging import configure_logging

load_dotenv()
log = structlog.get_logger()

EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="floorwatch",
        description="Watch NFT collection floor prices and alert on Telegram.",
    )
    parser.add_argument("-c", "--config", default="config.json", help="config file (default: config.json)")
    parser.add_argument("--interval", type=float, default=None,
                        help="seconds between cycles (overrides poll_interval_s)")
    parser.add_argument("--once", action="store_true", help="run a single cycle and exit")
    parser.add_argument("--dry-run", action="store_true",
                        help="print alerts to stdout instead of sending them")
    parser.add_argument("--no-startup-ping", action="store_true",
                        help="don't announce startup through the notifier")
    parser.add_argument("--log-level", default="INFO", type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-json", action="store_true", help="render logs as JSON lines")
    return parser


def build_notifier(cfg: Config, dry_run: bool) -> TelegramNotifier | ConsoleNotifier:
    if dry_run or cfg.telegram is None:
        return ConsoleNotifier()
    return TelegramNotifier(TelegramNotifierConfig(
        bot_token=cfg.telegram.bot_id,
        chat_id=cfg.telegram.recipient_id,
    ))


# ---------------------------
# Startup ping helper
# ---------------------------

async def startup_ping(notifier: Notifier, cfg: Config) -> None:
    slugs = sum(len(s.slugs) for s in cfg.stores)
    try:
        await notifier.send(f"✅ floorwatch started: {slugs} collections across {len(cfg.stores)} stores.")
    except DeliveryError as e:
        log.warning("startup_ping_failed", err=str(e))


# ---------------------------
# Main
# ---------------------------

async def run(cfg: Config, *, once: bool = False, dry_run: bool = False, ping: bool = True) -> None:
    client = MarketplaceClient(ClientConfig(timeout_s=cfg.request_timeout_s))
    notifier = build_notifier(cfg, dry_run)
    cycle = WatchCycle(
        stores=cfg.stores,
        history_file=HistoryFile(cfg.history_path),
        fetcher=client,
        notifier=notifier,
    )
    scheduler = PeriodicScheduler(
        cycle.run_cycle,
        SchedulerConfig(interval_s=cfg.poll_interval_s, max_cycles=1 if once else None),
    )

    await client.start()
    await notifier.start()
    try:
        log.info(
            "floorwatch_started",
            stores=[s.name for s in cfg.stores],
            interval_s=cfg.poll_interval_s,
            history=cfg.history_path,
            dry_run=dry_run,
        )
        if ping and not once:
            await startup_ping(notifier, cfg)
        await scheduler.run()
    finally:
        # graceful shutdown to avoid unclosed sessions
        await scheduler.stop()
        await notifier.stop()
        await client.stop()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, json=args.log_json)
    try:
        cfg = load_config(args.config, require_telegram=not args.dry_run, poll_interval_s=args.interval)
    except ConfigError as e:
        log.error("config_invalid", path=args.config, err=str(e))
        return EXIT_CONFIG_ERROR

    try:
        asyncio.run(run(cfg, once=args.once, dry_run=args.dry_run, ping=not args.no_startup_ping))
    except KeyboardInterrupt:
        log.info("floorwatch_interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
