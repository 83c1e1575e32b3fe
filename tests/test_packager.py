import io
import os
import zipfile
from pathlib import Path

import pytest

from content_tree.packager import (
    DEFAULT_CONTENT_TYPE,
    collect_files,
    guess_content_type,
    package_workspace,
    read_file_artifact,
    resolve_lesson_file,
)
from csync.core.errors import FilesystemError
from csync.utils.slugs import sanitize_filename, slugify


def _workspace(tmp_path: Path) -> Path:
    workspace = tmp_path / "workspace"
    (workspace / "src").mkdir(parents=True)
    (workspace / "empty").mkdir()
    (workspace / "main.py").write_text("print('hi')\n", encoding="utf-8")
    (workspace / "src" / "util.py").write_text("X = 1\n", encoding="utf-8")
    return workspace


def test_package_workspace_stores_every_entry_uncompressed(tmp_path: Path) -> None:
    archive_bytes = package_workspace(_workspace(tmp_path))

    with zipfile.ZipFile(io.BytesIO(archive_bytes)) as archive:
        names = archive.namelist()
        assert names == ["empty/", "main.py", "src/", "src/util.py"]
        assert all(info.compress_type == zipfile.ZIP_STORED for info in archive.infolist())
        assert archive.read("src/util.py") == b"X = 1\n"


def test_package_workspace_keeps_dotfiles_by_default(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    (workspace / ".env.example").write_text("KEY=\n", encoding="utf-8")

    with zipfile.ZipFile(io.BytesIO(package_workspace(workspace))) as archive:
        assert ".env.example" in archive.namelist()


def test_package_workspace_honours_exclusions(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    (workspace / "node_modules").mkdir()
    (workspace / "node_modules" / "dep.js").write_text("", encoding="utf-8")

    archive_bytes = package_workspace(workspace, excluded=("node_modules",))

    with zipfile.ZipFile(io.BytesIO(archive_bytes)) as archive:
        assert not any(name.startswith("node_modules") for name in archive.namelist())


def test_package_workspace_rejects_escaping_symlink(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    outside = tmp_path / "secret.txt"
    outside.write_text("nope", encoding="utf-8")
    os.symlink(outside, workspace / "leak.txt")

    with pytest.raises(FilesystemError) as excinfo:
        package_workspace(workspace)

    assert excinfo.value.path == workspace / "leak.txt"


def test_package_workspace_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(FilesystemError):
        package_workspace(tmp_path / "missing")


def test_collect_files_skips_directories_and_exclusions(tmp_path: Path) -> None:
    resources = tmp_path / "resources"
    (resources / "img").mkdir(parents=True)
    (resources / ".git").mkdir()
    (resources / ".git" / "HEAD").write_text("ref", encoding="utf-8")
    (resources / "img" / "diagram.png").write_bytes(b"\x89PNG")
    (resources / "notes.txt").write_text("notes", encoding="utf-8")

    files = collect_files(resources, excluded=(".git",))

    assert [path.relative_to(resources).as_posix() for path in files] == ["img/diagram.png", "notes.txt"]


def test_read_file_artifact_infers_content_type(tmp_path: Path) -> None:
    path = tmp_path / "guide.md"
    path.write_text("# Guide", encoding="utf-8")

    artifact = read_file_artifact(path)

    assert artifact.data == b"# Guide"
    assert artifact.content_type == "text/markdown"
    assert artifact.source == path
    assert guess_content_type("blob.unknownext") == DEFAULT_CONTENT_TYPE


def test_resolve_lesson_file_only_accepts_files_inside_lesson(tmp_path: Path) -> None:
    lesson = tmp_path / "lesson"
    (lesson / "tests").mkdir(parents=True)
    (lesson / "tests" / "check.py").write_text("assert True\n", encoding="utf-8")
    (tmp_path / "outside.py").write_text("", encoding="utf-8")

    assert resolve_lesson_file(lesson, "tests/check.py") == (lesson / "tests" / "check.py").resolve()
    assert resolve_lesson_file(lesson, "true") is None
    assert resolve_lesson_file(lesson, "tests") is None
    assert resolve_lesson_file(lesson, "../outside.py") is None
    assert resolve_lesson_file(lesson, 3) is None
    assert resolve_lesson_file(lesson, "   ") is None


def test_resolve_lesson_file_treats_unusable_paths_as_literals(tmp_path: Path) -> None:
    lesson = tmp_path / "lesson"
    lesson.mkdir()

    assert resolve_lesson_file(lesson, "x" * 300) is None
    assert resolve_lesson_file(lesson, "expected output " * 20) is None
    assert resolve_lesson_file(lesson, "bad\x00name.py") is None


def test_slug_helpers() -> None:
    assert slugify("Getting Started") == "getting-started"
    assert slugify("What's next?") == "what-s-next-"
    assert slugify("(Intro)") == "-intro-"
    assert slugify("  C++ & You!  ") == "-c-you-"
    assert sanitize_filename("tests/check.py") == "tests_check.py"
    assert sanitize_filename("///") == "file"
