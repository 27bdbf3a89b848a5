# Path: scripts/import_images.py
# Purpose: CLI tool to load a folder of images into the repository.
# Layer: scripts.
# Details: Wires settings, logging, the rule store, and the folder importer together.

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import AppSettings, configure_logging
from core.repository import RuleStore
from core.repository.importer import FolderImporter


def main() -> None:
    """Import images from a folder into the repository database."""

    parser = argparse.ArgumentParser(description="Import a folder of images into the repository")
    parser.add_argument("folder", type=Path, help="Folder containing images to import")
    parser.add_argument("--group", type=str, default=None, help="Group name assigned to every imported image")
    parser.add_argument("--no-recursive", action="store_true", help="Only import files directly inside the folder")
    parser.add_argument("--database", type=Path, default=None, help="Override the repository database path")
    args = parser.parse_args()

    settings = AppSettings.from_env()
    if args.database is not None:
        settings = settings.model_copy(update={"database_path": args.database})
    configure_logging(settings.log_level)

    store = RuleStore.from_settings(settings)
    report = FolderImporter(store).import_folder(
        args.folder,
        group_name=args.group,
        recursive=not args.no_recursive,
        show_progress=True,
    )

    print(f"Imported {len(report.created)} images into {settings.database_path}")
    for path, reason in report.failed.items():
        print(f"skipped {path}: {reason}")


if __name__ == "__main__":
    main()
