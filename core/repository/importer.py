# Path: core/repository/importer.py
# Purpose: Scan folders for image files and load them into the repository in bulk.
# Layer: core/repository.
# Details: Each file becomes one repository image named after its stem; failures are collected, not raised.

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from tqdm import tqdm

from core.errors import ValidationError
from .store import RuleStore

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}


@dataclass
class ImportReport:
    """Outcome of a folder import."""

    created: List[int] = field(default_factory=list)
    failed: Dict[Path, str] = field(default_factory=dict)


def guess_mime_type(path: Path) -> Optional[str]:
    """Return the mime type implied by the file extension, if known."""

    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is None and path.suffix.lower() == ".webp":
        return "image/webp"
    return mime_type


def iter_image_files(root: Path, recursive: bool = True) -> Iterable[Path]:
    """Yield supported image files under root, sorted for a stable import order."""

    pattern = "**/*" if recursive else "*"
    for path in sorted(root.glob(pattern)):
        if path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS:
            yield path


class FolderImporter:
    """Create repository images from the files of a folder."""

    def __init__(self, store: RuleStore) -> None:
        self.store = store

    def import_folder(
        self,
        root: Path,
        group_name: Optional[str] = None,
        recursive: bool = True,
        show_progress: bool = False,
    ) -> ImportReport:
        """
        Import every supported image under ``root``.

        External calls:
        - core/repository/store.py::RuleStore.create_image - validates and stores each file.
        """

        if not root.is_dir():
            raise ValidationError(f"Folder {root} does not exist")

        report = ImportReport()
        files = list(iter_image_files(root, recursive=recursive))
        for path in tqdm(files, desc="Importing images", unit="img", disable=not show_progress):
            try:
                image = self.store.create_image(
                    name=path.stem,
                    data=path.read_bytes(),
                    file_name=path.name,
                    mime_type=guess_mime_type(path) or "",
                    group_name=group_name,
                )
            except (ValidationError, OSError) as exc:
                logger.warning("Skipping %s: %s", path, exc)
                report.failed[path] = str(exc)
                continue
            report.created.append(image.id)
        return report
