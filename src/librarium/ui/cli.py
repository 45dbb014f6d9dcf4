from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from librarium.app import apply_import_file, detect_import_diff, export_library
from librarium.config import ConfigurationError, configure_logging, get_storage_config
from librarium.domain.errors import InvalidSelectionError, InvalidSnapshotError
from librarium.domain.reconciliation import (
    Priority,
    Selection,
    coerce_selection,
    export_file_name,
    parse_snapshot_json,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export and reconcile Librarium snapshots")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser("export", help="Write the library to a snapshot file")
    export.add_argument(
        "--user-id",
        type=str,
        help="Owner whose library is exported (defaults to config)",
    )
    export.add_argument(
        "--output",
        type=Path,
        help="Target file (defaults to the export directory with a dated file name)",
    )

    diff = subparsers.add_parser("diff", help="Compare a snapshot file with the library")
    diff.add_argument("file", type=Path, help="Snapshot file to compare")
    diff.add_argument(
        "--user-id",
        type=str,
        help="Owner whose library is compared (defaults to config)",
    )

    merge = subparsers.add_parser("import", help="Merge a snapshot file into the library")
    merge.add_argument("file", type=Path, help="Snapshot file to merge")
    merge.add_argument(
        "--user-id",
        type=str,
        help="Owner whose library receives the import (defaults to config)",
    )
    merge.add_argument(
        "--select",
        action="append",
        default=[],
        metavar="ID=PRIORITY",
        help="Pick a side for one identity, e.g. 'Shelf:Physical=import' (repeatable)",
    )
    merge.add_argument(
        "--selections",
        type=Path,
        help="JSON file with a list of {entity_id, priority} selections",
    )
    merge.add_argument(
        "--prefer",
        choices=[priority.value for priority in Priority],
        help="Pick one side for every identity of the diff before --select is applied",
    )

    return parser.parse_args(list(argv))


def _parse_select(value: str) -> Selection:
    entity_id, separator, priority = value.rpartition("=")
    if not separator:
        raise InvalidSelectionError(f"Invalid selection (expected ID=PRIORITY): {value}")
    return coerce_selection({"entity_id": entity_id, "priority": priority})


def _load_selections(path: Path) -> list[Selection]:
    try:
        raw: object = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidSelectionError(f"Selections file is not valid JSON: {exc.msg}") from exc
    if not isinstance(raw, list):
        raise InvalidSelectionError("Selections file must contain a JSON array")
    selections: list[Selection] = []
    for item in raw:
        if not isinstance(item, dict):
            raise InvalidSelectionError("Every selection must be a JSON object")
        selections.append(coerce_selection(item))
    return selections


def _collect_selections(args: argparse.Namespace) -> list[Selection]:
    selections = _load_selections(args.selections) if args.selections else []
    selections.extend(_parse_select(value) for value in args.select)
    return selections


def _run_export(args: argparse.Namespace) -> None:
    snapshot = export_library(owner_id=args.user_id)
    target: Path = args.output or (
        get_storage_config().export_dir() / export_file_name(date.today())
    )
    target.write_text(
        json.dumps(snapshot.to_payload(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    log.info("Wrote snapshot to %s", target)


def _run_diff(args: argparse.Namespace) -> None:
    snapshot = parse_snapshot_json(args.file.read_bytes())
    result = detect_import_diff(snapshot, owner_id=args.user_id)
    sys.stdout.write(json.dumps(result.to_payload(), ensure_ascii=False, indent=2) + "\n")


def _run_import(args: argparse.Namespace, selections: list[Selection]) -> None:
    snapshot = parse_snapshot_json(args.file.read_bytes())
    stats = apply_import_file(
        snapshot,
        owner_id=args.user_id,
        selections=selections,
        prefer=Priority(args.prefer) if args.prefer else None,
    )
    log.info(
        "Import finished: added=%s, modified=%s, deleted=%s",
        stats.added,
        stats.modified,
        stats.deleted,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    selections: list[Selection] = []
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        configure_logging()
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "import":
            selections = _collect_selections(parsed_args)
    except (ValueError, OSError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "export":
            _run_export(parsed_args)
        elif parsed_args.command == "diff":
            _run_diff(parsed_args)
        elif parsed_args.command == "import":
            _run_import(parsed_args, selections)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except (InvalidSnapshotError, InvalidSelectionError):
        log.exception("Import document rejected")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
