"""File writer for platform generation."""
from pathlib import Path
from typing import List
from appforge.generators.types import GeneratedFile
from appforge.workspace.manager import WorkspaceManager


def write_files(files: List[GeneratedFile], out_dir: Path) -> List[str]:
    """
    Write generated files to the output directory.

    Args:
        files: List of GeneratedFile objects to write
        out_dir: Base output directory path

    Returns:
        Relative paths of the files written, in order. A path is only
        listed once its file has been written.
    """
    out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for file in files:
        file_path = WorkspaceManager.resolve_inside(out_dir, file.path)
        # Create parent directories if needed
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(file.content, encoding="utf-8")
        written.append(file.path)
    return written
