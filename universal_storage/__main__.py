"""Command-line interface for universal storage."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .core.config import SettingsError, load_settings
from .errors import StorageError
from .factory import build_storage


def _parse_properties(pairs: List[str]) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise SettingsError(f"Invalid property '{pair}', expected key=value")
        properties[key.strip()] = value
    return properties


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="universal-storage",
        description="Store, retrieve and remove files on the configured storage provider",
    )
    parser.add_argument(
        '--settings',
        type=Path,
        help="JSON settings file (provider, root, tmp, dropbox.access_token)"
    )
    parser.add_argument(
        '-D',
        dest='properties',
        action='append',
        default=[],
        metavar='KEY=VALUE',
        help="Setting override used when the settings file does not define it"
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help="Enable debug logging"
    )

    commands = parser.add_subparsers(dest='command', required=True)

    store = commands.add_parser('store', help="Upload a local file")
    store.add_argument('source', type=Path)
    store.add_argument('target', nargs='?', default=None, help="Folder within the root")

    remove = commands.add_parser('remove', help="Remove a file")
    remove.add_argument('path')

    mkdir = commands.add_parser('mkdir', help="Create a folder")
    mkdir.add_argument('path')

    rmdir = commands.add_parser('rmdir', help="Remove a folder")
    rmdir.add_argument('path')

    retrieve = commands.add_parser('retrieve', help="Download a file into the tmp folder")
    retrieve.add_argument('path')

    commands.add_parser('clean', help="Empty the tmp folder")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface."""

    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.settings, _parse_properties(args.properties))
        storage = build_storage(settings)
    except SettingsError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    try:
        if args.command == 'store':
            outcome = storage.store_file(args.source, args.target)
            print(f"[OK] Stored {outcome.remote_path} ({outcome.size} bytes)")
        elif args.command == 'remove':
            outcome = storage.remove_file(args.path)
            print(f"[OK] Removed {outcome.remote_path}")
        elif args.command == 'mkdir':
            outcome = storage.create_folder(args.path)
            print(f"[OK] Created {outcome.remote_path}")
        elif args.command == 'rmdir':
            outcome = storage.remove_folder(args.path)
            if outcome is not None:
                print(f"[OK] Removed {outcome.remote_path}")
        elif args.command == 'retrieve':
            local = storage.retrieve_file(args.path)
            print(f"[OK] Retrieved {local}")
        elif args.command == 'clean':
            storage.clean()
            print(f"[OK] Cleaned {settings.tmp}")
    except StorageError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1
    finally:
        storage.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
