"""Turns an uploaded codebase (zip archive or a single source file) into readable code files."""
from __future__ import annotations
import logging
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import List

log = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".js", ".ts", ".jsx", ".tsx", ".swift", ".kt", ".java", ".py", ".go", ".rs"}


@dataclass
class CodeFile:
    name: str  # Path relative to the extraction root
    extension: str  # Without the leading dot
    content: str

    def to_dict(self) -> dict:
        return {"name": self.name, "extension": self.extension, "content": self.content}


def _safe_extract(archive: zipfile.ZipFile, dest: Path) -> None:
    dest_resolved = dest.resolve()
    for member in archive.infolist():
        target = (dest / member.filename).resolve()
        if target != dest_resolved and dest_resolved not in target.parents:
            raise OSError(f"Archive member escapes extraction directory: {member.filename}")
    archive.extractall(dest)


def extract_code_files(source: Path, dest: Path, max_chars: int = 10000) -> List[CodeFile]:
    """
    Unpack ``source`` into ``dest`` and read every supported source file.

    Zip archives are extracted; any other file is copied as-is. File contents
    are truncated to ``max_chars`` characters.
    """
    source = Path(source)
    if not source.is_file():
        raise FileNotFoundError(f"Uploaded codebase not found: {source}")

    dest.mkdir(parents=True, exist_ok=True)
    if zipfile.is_zipfile(source):
        try:
            with zipfile.ZipFile(source) as archive:
                _safe_extract(archive, dest)
        except zipfile.BadZipFile as e:
            raise OSError(f"Could not extract archive {source.name}: {e}") from e
    else:
        shutil.copy2(source, dest / source.name)

    files = []
    for path in sorted(p for p in dest.rglob("*") if p.is_file()):
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            continue
        content = path.read_text(encoding="utf-8", errors="replace")
        files.append(CodeFile(
            name=path.relative_to(dest).as_posix(),
            extension=path.suffix.lower().lstrip("."),
            content=content[:max_chars],
        ))

    log.info("Extracted %d code files from %s", len(files), source.name)
    return files
