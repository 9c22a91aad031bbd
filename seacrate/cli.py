"""Command line interface: initialise, validate and serve an instance."""

from __future__ import annotations

import argparse
import base64
import json
import sqlite3
from pathlib import Path

from seacrate import hashing, shamir
from seacrate.config import Config, load_config
from seacrate.database import DatabaseEngine, open_database
from seacrate.encryption import EncryptionEngine, EncryptionError, new_encryption_engine

VERSION = "0.1.0"
DEFAULT_CONFIG = "config.yml"
DEFAULT_RESULTS = "results.json"
KEY_SIZE = 32
LISTEN_HOST = "0.0.0.0"
LISTEN_PORT = 3000


def engines_from_config(config: Config) -> tuple[DatabaseEngine, EncryptionEngine]:
    """Open the database and create the (sealed) encryption engine of ``config``."""
    database_engine = open_database(config.database)
    try:
        encryption_engine = new_encryption_engine(config.encryption)
    except Exception:
        database_engine.close()
        raise
    return database_engine, encryption_engine


def initialize(
    config: Config,
    key_part_count: int,
    threshold_count: int,
    output_path: str | Path,
) -> list[str]:
    """Create the instance keys, store their metadata and write the key parts.

    A random master key is encrypted with a random decryption key; the
    decryption key is split into ``key_part_count`` shares, ``threshold_count``
    of which unseal the instance. The base64 shares are written as JSON to
    ``output_path`` and returned.
    """
    database_engine, encryption_engine = engines_from_config(config)
    with database_engine:
        master_key = encryption_engine.generate_key(KEY_SIZE)
        decryption_key = encryption_engine.generate_key(KEY_SIZE)

        encryption_engine.set_key(decryption_key)
        encrypted_master_key = encryption_engine.encrypt_data(master_key)

        digest, salt = hashing.generate_hash(decryption_key)
        parts = shamir.split(decryption_key, key_part_count, threshold_count)

        database_engine.create_meta("initialized", "yes")
        database_engine.create_meta("thresholdCount", str(threshold_count))
        database_engine.create_meta("decryptionKeyHash", f"{salt.hex()}${digest.hex()}")
        database_engine.create_meta("masterKey", encrypted_master_key.hex())

    keys = [base64.b64encode(part).decode("ascii") for part in parts]
    Path(output_path).write_text(
        json.dumps({"keys": keys}, separators=(",", ":")), encoding="utf-8"
    )
    return keys


def _ask_count(prompt: str) -> int:
    print(prompt)
    answer = input().strip()
    try:
        return int(answer)
    except ValueError as exc:
        raise ValueError(f"expected a whole number, got {answer!r}") from exc


def _run_init(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    key_part_count = _ask_count("How many key part do you wish to generate ?")
    threshold_count = _ask_count(
        "How many key part are required to unseal the instance ?"
    )
    initialize(config, key_part_count, threshold_count, args.output)
    print(f"Create file `{args.output}`")
    return 0


def _run_server(args: argparse.Namespace) -> int:
    from seacrate.api import create_app

    config = load_config(args.config)
    database_engine, encryption_engine = engines_from_config(config)
    with database_engine:
        app = create_app(encryption_engine, database_engine)
        app.run(host=LISTEN_HOST, port=LISTEN_PORT)
    return 0


def _run_validate(args: argparse.Namespace) -> int:
    load_config(args.config)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seacrate",
        description="Seacrate is an easy secret management application",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"configuration file (default: {DEFAULT_CONFIG})",
    )
    commands = parser.add_subparsers(dest="command", metavar="command")

    init_parser = commands.add_parser(
        "init", help="Init the application database and create an encryption key"
    )
    init_parser.add_argument(
        "--output",
        default=DEFAULT_RESULTS,
        help=f"where to write the key parts (default: {DEFAULT_RESULTS})",
    )
    init_parser.set_defaults(handler=_run_init)

    commands.add_parser("run", help="Start the server").set_defaults(
        handler=_run_server
    )
    commands.add_parser(
        "validate", help="Validate the configuration file is valid"
    ).set_defaults(handler=_run_validate)
    commands.add_parser(
        "version", help="Obtain information about version and compilation"
    ).set_defaults(handler=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "version":
        print(f"Seacrate version {VERSION}")
        return 0
    try:
        return args.handler(args)
    except (ValueError, OSError, EOFError, EncryptionError, sqlite3.Error) as exc:
        print(exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())