from __future__ import annotations
import shutil
from pathlib import Path
from typing import List, Tuple
from appforge.core.config import settings


class WorkspaceManager:
    """Per-job directory tree holding uploads, extracted sources, outputs and the archive."""

    def __init__(self, job_id: str, base_dir: str | Path | None = None):
        self.job_id = job_id
        self.root = Path(base_dir or settings.workspaces_dir) / job_id
        self.upload_dir = self.root / "uploads"
        self.extract_dir = self.root / "extracted"
        self.output_dir = self.root / "output"
        self.archive_path = self.root / f"{job_id}.zip"

    def ensure(self) -> None:
        for d in (self.root, self.upload_dir, self.extract_dir, self.output_dir):
            d.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def ensure_dir(path: Path) -> Path:
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def resolve_inside(base: Path, rel_path: str) -> Path:
        """Join ``rel_path`` onto ``base``, refusing absolute paths and ``..`` escapes."""
        if not rel_path or Path(rel_path).is_absolute():
            raise ValueError(f"Refusing to write outside the output directory: {rel_path!r}")
        base_resolved = base.resolve()
        target = (base / rel_path).resolve()
        if target != base_resolved and base_resolved not in target.parents:
            raise ValueError(f"Refusing to write outside the output directory: {rel_path!r}")
        return target

    def write_file(self, rel_path: str, content: str, base: Path | None = None) -> Path:
        target = self.resolve_inside(base or self.output_dir, rel_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return target

    @staticmethod
    def read_tree(root: Path) -> List[Tuple[str, str]]:
        entries = []
        for path in sorted(p for p in root.rglob("*") if p.is_file()):
            entries.append((path.relative_to(root).as_posix(), path.read_text(encoding="utf-8", errors="replace")))
        return entries

    def remove(self) -> None:
        if self.root.exists():
            shutil.rmtree(self.root)
