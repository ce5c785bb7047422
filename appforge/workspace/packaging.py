from __future__ import annotations
import zipfile
from pathlib import Path
from appforge.core.errors import PackagingError


def package_directory(directory: Path, archive_path: Path) -> Path:
    """Zip the contents of ``directory`` (paths relative to it) into ``archive_path``."""
    directory = Path(directory)
    if not directory.is_dir():
        raise PackagingError(f"Nothing to package, {directory} is not a directory")

    archive_path = Path(archive_path)
    try:
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
            for path in sorted(directory.rglob("*")):
                if path.is_file() and path != archive_path:
                    zf.write(path, path.relative_to(directory).as_posix())
    except (OSError, zipfile.BadZipFile) as e:
        raise PackagingError(f"Packaging failed: {e}") from e
    return archive_path
