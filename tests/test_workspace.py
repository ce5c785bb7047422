"""Tests for upload extraction, workspace paths and packaging."""
import zipfile

import pytest

from appforge.core.errors import PackagingError
from appforge.workspace.manager import WorkspaceManager
from appforge.workspace.packaging import package_directory
from appforge.workspace.uploads import extract_code_files


def test_extract_zip_filters_and_truncates(tmp_path):
    source = tmp_path / "upload.zip"
    with zipfile.ZipFile(source, "w") as zf:
        zf.writestr("src/App.tsx", "x" * 50)
        zf.writestr("src/styles.css", "body {}")
        zf.writestr("lib/main.go", "package main")
        zf.writestr("docs/notes.txt", "hello")

    files = extract_code_files(source, tmp_path / "extracted", max_chars=10)

    assert [f.name for f in files] == ["lib/main.go", "src/App.tsx"]
    assert files[1].extension == "tsx"
    assert files[1].content == "x" * 10


def test_extract_single_file(tmp_path):
    source = tmp_path / "server.py"
    source.write_text("print('hi')")
    files = extract_code_files(source, tmp_path / "extracted")
    assert [f.to_dict() for f in files] == [{"name": "server.py", "extension": "py", "content": "print('hi')"}]


def test_extract_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        extract_code_files(tmp_path / "nope.zip", tmp_path / "extracted")


def test_extract_rejects_zip_slip(tmp_path):
    source = tmp_path / "evil.zip"
    with zipfile.ZipFile(source, "w") as zf:
        zf.writestr("../escaped.js", "alert(1)")
    with pytest.raises(OSError):
        extract_code_files(source, tmp_path / "deep" / "extracted")
    assert not (tmp_path / "deep" / "escaped.js").exists()


def test_resolve_inside(tmp_path):
    assert WorkspaceManager.resolve_inside(tmp_path, "a/b.txt") == (tmp_path / "a" / "b.txt").resolve()
    for bad in ("../x.txt", "/etc/passwd", "a/../../x.txt", ""):
        with pytest.raises(ValueError):
            WorkspaceManager.resolve_inside(tmp_path, bad)


def test_workspace_layout_and_remove(tmp_path):
    ws = WorkspaceManager("J1", base_dir=tmp_path)
    ws.ensure()
    assert ws.output_dir.is_dir() and ws.extract_dir.is_dir() and ws.upload_dir.is_dir()

    ws.write_file("nested/file.txt", "content")
    assert ws.read_tree(ws.output_dir) == [("nested/file.txt", "content")]

    ws.remove()
    assert not ws.root.exists()


def test_package_directory(tmp_path):
    out = tmp_path / "output"
    (out / "ios").mkdir(parents=True)
    (out / "ios" / "App.swift").write_text("struct App {}")
    (out / "README.md").write_text("# demo")

    archive = package_directory(out, tmp_path / "J1.zip")

    with zipfile.ZipFile(archive) as zf:
        assert sorted(zf.namelist()) == ["README.md", "ios/App.swift"]
        assert zf.read("ios/App.swift") == b"struct App {}"
        assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in zf.infolist())


def test_package_missing_directory(tmp_path):
    with pytest.raises(PackagingError):
        package_directory(tmp_path / "missing", tmp_path / "out.zip")
