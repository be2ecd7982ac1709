"""Command-line interface for the user service."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from userservice.config import ConfigurationError, Settings, load_settings
from userservice.records import RecordsError, load_records

logger = logging.getLogger("userservice.main")

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="In-memory user service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP user API")
    serve_parser.add_argument(
        "--env-file",
        default=None,
        help="Path to the .env file (default: USERSERVICE_ENV_FILE or env/.env)",
    )
    serve_parser.add_argument(
        "--host",
        default=None,
        help="Bind address for the API (default: API_HOST or 0.0.0.0)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: API_PORT or 8080)",
    )

    csv_parser = subparsers.add_parser("csv", help="Convert a CSV export into records")
    csv_parser.add_argument(
        "--env-file",
        default=None,
        help="Path to the .env file (default: USERSERVICE_ENV_FILE or env/.env)",
    )
    csv_parser.add_argument(
        "--path",
        default=None,
        help="CSV file to read (default: CSV_FILE_PATH)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "csv"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _serve(settings: Settings, *, host: str | None, port: int | None) -> int:
    from userservice.service import create_app
    import uvicorn

    bind_host = host or settings.host
    bind_port = port or settings.port
    logger.info("Starting user API on http://%s:%s", bind_host, bind_port)

    app = create_app()
    uvicorn.run(
        app,
        host=bind_host,
        port=bind_port,
        log_level=settings.log_level.lower(),
    )
    return 0


def _convert_csv(settings: Settings, *, path: str | None) -> int:
    source = Path(path).expanduser() if path else settings.csv_file_path
    if source is None:
        logger.error("No CSV file configured. Pass --path or set CSV_FILE_PATH.")
        return 1

    logger.info("Reading CSV records from %s", source)
    try:
        records = load_records(source)
    except RecordsError as exc:
        logger.error("%s", exc)
        return 1

    print("Processed data:")
    for record in records:
        print(
            f"ID: {record.id}, Name: {record.name}, Value: {record.value:f}, "
            f"Category: {record.category}, Timestamp: {record.timestamp}"
        )
    print(f"Processed {len(records)} records successfully!")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)

    args = _parse_args(argv)

    try:
        settings = load_settings(args.env_file)
    except ConfigurationError as exc:
        logger.error("Error loading configuration: %s", exc)
        return 1

    logging.getLogger().setLevel(settings.log_level)

    if args.command == "csv":
        return _convert_csv(settings, path=args.path)
    return _serve(settings, host=args.host, port=args.port)


if __name__ == "__main__":
    raise SystemExit(main())
