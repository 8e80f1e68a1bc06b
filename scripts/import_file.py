#!/usr/bin/env python3
"""
Reconcile a CSV import file from the shell and optionally commit it.

Usage:
    python scripts/import_file.py KIND path/to/file.csv [--commit]

KIND is one of: batches, distributions, registrations
"""

import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, ".")

from booktracker import create_app
from booktracker.errors import BookTrackerError
from booktracker.models import ImportKind
from booktracker.services import BulkImportService


def import_file(kind: str, csv_path: str, commit: bool = False):
    app = create_app()

    with app.app_context():
        print(f"Reconciling {kind} from {csv_path}...")

        with open(csv_path, "rb") as f:
            content = f.read()

        try:
            bulk_import = BulkImportService.preview(kind, content, filename=os.path.basename(csv_path))
        except BookTrackerError as e:
            print(f"Error: {e.message}")
            return 1

        for row in bulk_import.rows:
            if row.is_valid:
                print(f"  Row {row.row_number}: ok")
            else:
                print(f"  Row {row.row_number}: {row.message}")

        print(f"{bulk_import.valid_rows} valid, {bulk_import.error_rows} with errors "
              f"(import #{bulk_import.id})")

        if not commit:
            print("Preview only. Re-run with --commit to apply the valid rows.")
            return 0

        if not bulk_import.can_commit:
            print("Nothing to commit.")
            return 1

        try:
            bulk_import = BulkImportService.commit(bulk_import.id)
        except BookTrackerError as e:
            print(f"Error: {e.message}")
            return 1

        print(f"Done! Committed {bulk_import.committed_rows} rows.")

    return 0


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a != "--commit"]
    if len(args) < 2 or args[0] not in ImportKind.ALL:
        print("Usage: python scripts/import_file.py KIND path/to/file.csv [--commit]")
        print(f"KIND is one of: {', '.join(ImportKind.ALL)}")
        sys.exit(1)

    sys.exit(import_file(args[0], args[1], commit="--commit" in sys.argv))
