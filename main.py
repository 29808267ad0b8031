from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from typing import Optional, Sequence

import uvloop
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from santa.core.config import Settings, load_settings
from santa.core.errors import AllocatorError, ConfigInvalid, IOFailure
from santa.core.logging import setup_logging
from santa.db import get_session, init_archive, repo
from santa.services import randomness
from santa.services.allocation import Allocation, ArchiveEnvelope, format_mapping
from santa.services.allocator import Allocator
from santa.services.archive import FORMAT_YAML, OUTPUT_FORMATS, read_envelope, reveal, write_envelope
from santa.services.config_file import load_config, parse_duration


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Allocate Secret Santa recipients behind anonymous aliases."
    )
    parser.add_argument("config", nargs="?", help="Path to the allocation config YAML")
    parser.add_argument("-o", "--output", default=None, help="Write the allocation archive to this file")
    parser.add_argument(
        "-f",
        "--format",
        choices=OUTPUT_FORMATS,
        default=FORMAT_YAML,
        help="Archive file format",
    )
    parser.add_argument("--timeout", default=None, help="Override the config timeout, e.g. 10s or 500ms")
    parser.add_argument("--seed", type=int, default=None, help="Seed the random source")
    parser.add_argument("--database-url", default=None, help="Also store the archive in this database")
    parser.add_argument("--reveal", metavar="ARCHIVE", default=None, help="Reveal an archive file")
    parser.add_argument(
        "--reveal-latest",
        action="store_true",
        help="Reveal the latest archive stored in the database",
    )
    parser.add_argument("--name", default=None, help="Only reveal the recipient of this participant")
    return parser


def print_views(allocation: Allocation) -> None:
    print(format_mapping("Aliases:", allocation.alias_book()))
    print()
    print(format_mapping("Allocations:", allocation.name_to_name()))
    print()
    print(format_mapping("Allocated passwords:", allocation.gift_sheet()))


def print_reveal(allocation: Allocation, name: Optional[str]) -> None:
    if name is None:
        print(allocation.describe(), end="")
        return
    key = name.strip().lower()
    if key not in allocation.allocations:
        raise ConfigInvalid(f"No allocation found for [{key}].")
    print(f"{key} -> {allocation.allocations[key]}")


def parse_timeout(value: str) -> timedelta:
    try:
        timeout = parse_duration(value)
    except ValueError:
        try:
            timeout = timedelta(seconds=float(value))
        except (ValueError, OverflowError) as exc:
            raise ConfigInvalid(f"Invalid timeout {value!r}.") from exc
    if timeout <= timedelta(0):
        raise ConfigInvalid("timeout must have a value greater than 0")
    return timeout


def store_in_database(database_url: str, envelope: ArchiveEnvelope) -> None:
    try:
        init_archive(database_url)
        with get_session() as session:
            record = repo.save_envelope(session, envelope)
            record_id = record.id
    except SQLAlchemyError as exc:
        raise IOFailure(f"Unable to store allocation in database: {exc}") from exc
    logger.bind(record_id=record_id).info("Allocation archive stored in database")


def load_latest_from_database(database_url: str) -> ArchiveEnvelope:
    try:
        init_archive(database_url)
        with get_session() as session:
            envelope = repo.get_latest_envelope(session)
    except SQLAlchemyError as exc:
        raise IOFailure(f"Unable to read allocation from database: {exc}") from exc
    if envelope is None:
        raise IOFailure("No allocation archive stored in the database.")
    return envelope


async def run_allocation(args: argparse.Namespace, settings: Settings) -> None:
    config = load_config(args.config)
    if args.timeout is not None:
        config = config.model_copy(update={"timeout": parse_timeout(args.timeout)})

    allocator = Allocator.from_config(
        config,
        worker_count=settings.worker_count,
        max_picks=settings.max_picks,
    )
    allocation = await allocator.allocate_async()

    if args.output is None:
        print_views(allocation)

    database_url = args.database_url or settings.database_url
    if args.output is None and database_url is None:
        return

    envelope = allocator.envelope(allocation)
    if args.output is not None:
        write_envelope(envelope, args.output, args.format)
    if database_url is not None:
        store_in_database(database_url, envelope)


async def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.config is None and args.reveal is None and not args.reveal_latest:
        parser.error("a config path is required unless --reveal or --reveal-latest is given")

    try:
        settings = load_settings()
        setup_logging(settings.log_level, settings.log_path)
        if args.seed is not None:
            randomness.seed(args.seed)

        if args.reveal is not None:
            print_reveal(reveal(read_envelope(args.reveal)), args.name)
        elif args.reveal_latest:
            database_url = args.database_url or settings.database_url
            if database_url is None:
                raise ConfigInvalid("--reveal-latest needs --database-url or DATABASE_URL.")
            print_reveal(reveal(load_latest_from_database(database_url)), args.name)
        else:
            await run_allocation(args, settings)
    except AllocatorError as exc:
        print(f"{exc.category}: {exc}", file=sys.stderr)
        return 1
    return 0


def run() -> None:
    sys.exit(uvloop.run(main()))


if __name__ == "__main__":
    run()
