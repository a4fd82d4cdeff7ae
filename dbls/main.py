import argparse
from dataclasses import replace
import logging
import sys

from dbls.config import (
    AppConfig,
    ConnectionDefaults,
    load_config,
    log_path,
    password_from_environment,
    read_settings,
    save_config,
    settings_path,
)
from dbls.logging_setup import setup_logging
from dbls.postgres_driver import PostgresClient
from dbls.tui import DatabaseBrowserApp


logger = logging.getLogger(__name__)


def _add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--host")
    parser.add_argument("--port")
    parser.add_argument("--user")
    parser.add_argument("--database")
    parser.add_argument("--page-size", type=int)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbls",
        description="Browse, filter and delete Postgres rows from the terminal.",
    )
    subparsers = parser.add_subparsers(dest="command")

    init_parser = subparsers.add_parser(
        "init-config",
        help="Write the settings file with the given defaults.",
    )
    _add_connection_arguments(init_parser)
    init_parser.add_argument("--force", action="store_true")

    _add_connection_arguments(parser)
    return parser


def apply_arguments(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    if args.page_size is not None and args.page_size <= 0:
        raise ValueError("Page size must be greater than 0.")
    connection = config.connection
    return replace(
        config,
        page_size=args.page_size or config.page_size,
        log_level=args.log_level or config.log_level,
        connection=ConnectionDefaults(
            host=connection.host if args.host is None else args.host,
            port=connection.port if args.port is None else args.port,
            user=connection.user if args.user is None else args.user,
            database=connection.database if args.database is None else args.database,
        ),
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # init-config persists only the file and the flags, never PG* overrides.
    try:
        base_config = read_settings() if args.command == "init-config" else load_config()
        config = apply_arguments(base_config, args)
    except ValueError as error:
        print(f"dbls: {error}", file=sys.stderr)
        return 2

    if args.command == "init-config":
        if settings_path().exists() and not args.force:
            print(
                f"Settings already exist: {settings_path()} (use --force to overwrite)",
                file=sys.stderr,
            )
            return 1
        save_config(config)
        print(f"Saved settings: {settings_path()}")
        return 0

    setup_logging(config.log_level, log_path())
    logger.info("Starting dbls (page size %s)", config.page_size)
    app = DatabaseBrowserApp(
        config,
        PostgresClient(),
        password=password_from_environment(),
    )
    app.run()
    logger.info("dbls stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
