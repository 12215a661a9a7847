"""
Command-line entry point for the Book Catalog admin shell.

Usage:
    book-catalog [--catalog NAME] [--user NAME] [--table NAME]
                 [--host HOST] [--port PORT] [--quiet] [--log-level LEVEL]

Anything not given on the command line is prompted for; the password is
always prompted. The process exits with status 0 when the caller chooses
"Exit" and 1 when startup fails.
"""

import argparse
import getpass
import logging
import sys
from collections.abc import Callable

from pydantic import ValidationError

from . import __version__
from .bootstrap import Credentials, bootstrap
from .config import LOG_LEVELS, ClientConfig, get_config
from .console import Console
from .dispatcher import CommandDispatcher
from .errors import CatalogError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="book-catalog",
        description="Interactive administrative shell for a PostgreSQL book catalog",
    )
    parser.add_argument("--catalog", help="Database to administer (prompted if omitted)")
    parser.add_argument("--user", help="Username to connect as (prompted if omitted)")
    parser.add_argument("--table", help="Book table to operate on (prompted if omitted)")
    parser.add_argument("--host", help="Override the configured server host")
    parser.add_argument("--port", type=int, help="Override the configured server port")
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not show backend notices while operations run",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="Override the configured log level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_overrides(config: ClientConfig, args: argparse.Namespace) -> ClientConfig:
    """Layer command-line options over the environment-based configuration."""
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.quiet:
        overrides["show_notices"] = False
    if args.log_level:
        overrides["log_level"] = args.log_level
    if not overrides:
        return config
    return config.model_copy(update=overrides)


def configure_logging(config: ClientConfig) -> None:
    # stderr keeps stdout for the menu
    logging.basicConfig(
        level=config.effective_log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def run(
    args: argparse.Namespace,
    config: ClientConfig,
    input_func: Callable[[str], str] = input,
    password_func: Callable[[str], str] = getpass.getpass,
) -> int:
    """Bootstrap the session and run the menu until the caller exits."""
    try:
        credentials = Credentials(
            catalog=args.catalog or input_func("Enter database name: "),
            username=args.user or input_func("Enter username: "),
            password=password_func("Enter password: "),
        )
        result = bootstrap(credentials, config)
    except (CatalogError, ValidationError) as e:
        logger.debug("Startup failed", exc_info=True)
        print(f"Critical error: {e}", file=sys.stderr)
        return 1

    session = result.session
    try:
        print("Connection successful.")
        table = args.table or input_func("Enter table name for operations: ")

        dispatcher = CommandDispatcher(
            result.role,
            session,
            notice_observer=lambda notice: print(notice, file=sys.stderr, flush=True),
            show_notices=config.show_notices,
        )
        Console(dispatcher, table, input_func=input_func).run()
    except (KeyboardInterrupt, EOFError):
        print(file=sys.stderr)
        return 1
    finally:
        session.close()

    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = apply_overrides(get_config(), args)
    configure_logging(config)
    return run(args, config, password_func=getpass.getpass)


if __name__ == "__main__":
    sys.exit(main())
