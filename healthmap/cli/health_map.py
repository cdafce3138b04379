#!/usr/bin/env python3
"""
Health Map CLI.

Command-line tools for listing, placing, annotating and removing a pet's
health map markers, and for exporting the flattened health map.

Usage:
    python -m healthmap.cli.health_map list --database pets.healthmap --pet-id <id>
    python -m healthmap.cli.health_map add -d pets.healthmap --pet-id <id> \
        --x 0.5 --y 0.4 --note "Rash"
    python -m healthmap.cli.health_map export -d pets.healthmap --pet-id <id>
"""

import argparse
import json
import logging
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

from healthmap.cli.utils import format_marker_line, validate_database_path
from healthmap.core.logging_config import CLI_PROFILE, setup_logging
from healthmap.services.asset_store import AssetStore
from healthmap.services.background_provider import BackgroundProvider
from healthmap.services.db_service import DatabaseService
from healthmap.services.marker_store import MarkerStore
from healthmap.services.persistence_gateway import PersistenceGateway
from healthmap.services.photo_service import PhotoService
from healthmap.services.worker import InlineExecutor

logger = logging.getLogger(__name__)

# Keeps the headless application alive for the rest of the process
_gui_app = None


@dataclass
class Session:
    """Services opened for one CLI invocation."""

    db_service: DatabaseService
    gateway: PersistenceGateway
    store: MarkerStore
    failures: List[str] = field(default_factory=list)

    def pet_exists(self) -> bool:
        if self.db_service.get_pet(self.store.pet_id) is None:
            print(f"✗ Pet not found: {self.store.pet_id}")
            return False
        return True

    def report_failure(self) -> bool:
        """Prints the last rollback message, if any. True if one occurred."""
        if self.failures:
            print(f"✗ Error: {self.failures[-1]}")
            return True
        return False


@contextmanager
def open_session(args) -> Iterator[Session]:
    """
    Opens the database and a loaded marker store for ``args.pet_id``.
    Persistence runs inline, so every change is stored (or rolled back)
    before the store call returns.
    """
    db_service = DatabaseService(args.database)
    db_service.connect()
    try:
        asset_root = os.path.dirname(os.path.abspath(args.database))
        photo_service = PhotoService(db_service, AssetStore(asset_root))
        gateway = PersistenceGateway(db_service, photo_service)
        store = MarkerStore(args.pet_id, gateway, InlineExecutor())
        session = Session(db_service, gateway, store)
        store.operation_failed.connect(session.failures.append)
        store.load()
        yield session
    finally:
        db_service.close()


def list_markers(args) -> int:
    """List a pet's markers."""
    try:
        with open_session(args) as session:
            if not session.pet_exists():
                return 1
            markers = session.store.list()
            if args.json:
                print(json.dumps([m.to_dict() for m in markers], indent=2))
            else:
                print(f"\nFound {len(markers)} marker(s):\n")
                for index, marker in enumerate(markers, start=1):
                    print(format_marker_line(index, marker))
            return 0
    except Exception as e:
        logger.error(f"Failed to list markers: {e}")
        if args.verbose:
            raise
        return 1


def add_marker(args) -> int:
    """Place a marker at fractional coordinates."""
    try:
        with open_session(args) as session:
            if not session.pet_exists():
                return 1
            marker = session.store.place(args.x, args.y, (args.note or "").strip())
            if session.report_failure():
                return 1
            print(f"✓ Placed marker: {marker.id}")
            print(f"  Position: ({marker.x:.3f}, {marker.y:.3f})")
            if marker.note:
                print(f"  Note: {marker.note}")
            return 0
    except ValueError as e:
        print(f"✗ Error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Failed to add marker: {e}")
        if args.verbose:
            raise
        return 1


def update_note(args) -> int:
    """Replace a marker's note."""
    try:
        with open_session(args) as session:
            if session.store.get(args.id) is None:
                print(f"✗ Marker not found: {args.id}")
                return 1
            session.store.update(args.id, (args.note or "").strip())
            if session.report_failure():
                return 1
            print(f"✓ Updated marker: {args.id}")
            return 0
    except Exception as e:
        logger.error(f"Failed to update marker: {e}")
        if args.verbose:
            raise
        return 1


def remove_marker(args) -> int:
    """Remove one marker."""
    try:
        with open_session(args) as session:
            if session.store.get(args.id) is None:
                print(f"✗ Marker not found: {args.id}")
                return 1
            session.store.remove(args.id)
            if session.report_failure():
                return 1
            print(f"✓ Removed marker: {args.id}")
            return 0
    except Exception as e:
        logger.error(f"Failed to remove marker: {e}")
        if args.verbose:
            raise
        return 1


def clear_markers(args) -> int:
    """Remove every marker of the pet."""
    try:
        with open_session(args) as session:
            if not session.pet_exists():
                return 1
            count = len(session.store)
            if count == 0:
                print("Nothing to clear.")
                return 0
            if not args.force:
                print(f"About to remove {count} marker(s) for pet {args.pet_id}")
                if input("Are you sure? (y/n): ").lower() != "y":
                    return 0
            session.store.clear()
            if session.report_failure():
                return 1
            print(f"✓ Cleared {count} marker(s)")
            return 0
    except Exception as e:
        logger.error(f"Failed to clear markers: {e}")
        if args.verbose:
            raise
        return 1


def ensure_gui_application() -> None:
    """Rendering needs a QGuiApplication; headless runs use offscreen."""
    global _gui_app
    from PySide6.QtGui import QGuiApplication

    if QGuiApplication.instance() is None:
        os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
        _gui_app = QGuiApplication([sys.argv[0]])


def _as_url(value: str) -> str:
    if "://" in value:
        return value
    return Path(value).resolve().as_uri()


def export_health_map(args) -> int:
    """Flatten the health map to PNG and store it as a pet photo."""
    try:
        ensure_gui_application()
        from healthmap.services.export_pipeline import HealthMapExporter

        with open_session(args) as session:
            if not session.pet_exists():
                return 1

            background = BackgroundProvider()
            if args.photo:
                background.set_photo(_as_url(args.photo))

            exporter = HealthMapExporter(session.store, background, session.gateway)
            result = exporter.flatten()
            if not result.success:
                print(f"✗ Error: {result.message}")
                return 1

            photo = result.data.get("photo")
            print(f"✓ Exported health map: {photo.id if photo else '(unknown id)'}")
            if args.output:
                Path(args.output).write_bytes(result.data["image"])
                print(f"  Written to: {args.output}")
            return 0
    except Exception as e:
        logger.error(f"Failed to export health map: {e}")
        if args.verbose:
            raise
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage pet health maps")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--database", "-d", required=True)
        sub.add_argument("--pet-id", "-p", required=True)

    list_p = subparsers.add_parser("list", help="List markers")
    add_common(list_p)
    list_p.add_argument("--json", action="store_true")
    list_p.set_defaults(func=list_markers)

    add_p = subparsers.add_parser("add", help="Place a marker")
    add_common(add_p)
    add_p.add_argument("--x", type=float, required=True, help="Fraction 0..1")
    add_p.add_argument("--y", type=float, required=True, help="Fraction 0..1")
    add_p.add_argument("--note", "-n", default="")
    add_p.set_defaults(func=add_marker)

    note_p = subparsers.add_parser("note", help="Change a marker's note")
    add_common(note_p)
    note_p.add_argument("--id", required=True)
    note_p.add_argument("--note", "-n", default="")
    note_p.set_defaults(func=update_note)

    remove_p = subparsers.add_parser("remove", help="Remove a marker")
    add_common(remove_p)
    remove_p.add_argument("--id", required=True)
    remove_p.set_defaults(func=remove_marker)

    clear_p = subparsers.add_parser("clear", help="Remove all markers")
    add_common(clear_p)
    clear_p.add_argument("--force", "-f", action="store_true")
    clear_p.set_defaults(func=clear_markers)

    export_p = subparsers.add_parser("export", help="Export the flattened map")
    add_common(export_p)
    export_p.add_argument("--photo", help="Background photo path or URL")
    export_p.add_argument("--output", "-o", help="Also write the PNG here")
    export_p.set_defaults(func=export_health_map)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the health map CLI tool."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(debug_mode=args.verbose, profile=CLI_PROFILE)

    if hasattr(args, "database"):
        if not validate_database_path(args.database):
            sys.exit(1)

    if hasattr(args, "func"):
        sys.exit(args.func(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
