"""Turn lesson directories and files into uploadable byte payloads."""

from __future__ import annotations

import io
import mimetypes
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence

from csync.core.errors import FilesystemError

ZIP_CONTENT_TYPE = "application/zip"
MARKDOWN_CONTENT_TYPE = "text/markdown"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

mimetypes.add_type(MARKDOWN_CONTENT_TYPE, ".md")


@dataclass(slots=True)
class Artifact:
    """Bytes ready for upload plus the content-type hint."""

    data: bytes
    content_type: str
    source: Path | None = None


def guess_content_type(path: Path | str) -> str:
    content_type, _ = mimetypes.guess_type(str(path))
    return content_type or DEFAULT_CONTENT_TYPE


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def iter_tree(root: Path, *, excluded: Iterable[str] = ()) -> List[Path]:
    """Every entry under ``root`` in lexical order, skipping excluded names."""

    skip = set(excluded)
    entries: List[Path] = []

    def _walk(directory: Path) -> None:
        try:
            children = sorted(directory.iterdir(), key=lambda item: item.name)
        except OSError as exc:
            raise FilesystemError(f"Unable to list directory: {exc}", path=directory) from exc
        for child in children:
            if child.name in skip:
                continue
            entries.append(child)
            if child.is_dir() and not child.is_symlink():
                _walk(child)

    _walk(root)
    return entries


def package_workspace(workspace_dir: Path, *, excluded: Sequence[str] = ()) -> bytes:
    """Build an uncompressed zip of every entry under ``workspace_dir``.

    Entry names are POSIX paths relative to ``workspace_dir``. An entry whose
    resolved location falls outside the directory (e.g. a symlink pointing
    elsewhere) is rejected with ``FilesystemError``.
    """

    if not workspace_dir.is_dir():
        raise FilesystemError("Workspace directory missing", path=workspace_dir)
    root = workspace_dir.resolve()
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as archive:
        for entry in iter_tree(workspace_dir, excluded=excluded):
            resolved = entry.resolve()
            if not _is_within(resolved, root):
                raise FilesystemError(
                    f"Workspace entry escapes the workspace directory ({resolved})",
                    path=entry,
                )
            arcname = entry.relative_to(workspace_dir).as_posix()
            try:
                if resolved.is_dir():
                    archive.writestr(zipfile.ZipInfo(arcname + "/"), b"")
                else:
                    archive.writestr(arcname, resolved.read_bytes())
            except OSError as exc:
                raise FilesystemError(f"Unable to read workspace entry: {exc}", path=entry) from exc
    return buffer.getvalue()


def collect_files(root: Path, *, excluded: Sequence[str] = ()) -> List[Path]:
    """Regular files under ``root`` in lexical walk order.

    Like ``package_workspace``, a file resolving outside ``root`` is rejected.
    """

    resolved_root = root.resolve()
    files: List[Path] = []
    for entry in iter_tree(root, excluded=excluded):
        if not entry.is_file():
            continue
        if not _is_within(entry.resolve(), resolved_root):
            raise FilesystemError(f"File escapes {root.name}/ ({entry.resolve()})", path=entry)
        files.append(entry)
    return files


def read_file_artifact(path: Path) -> Artifact:
    """Raw bytes of a single file with an extension-inferred content-type."""

    try:
        data = path.read_bytes()
    except OSError as exc:
        raise FilesystemError(f"Unable to read file: {exc}", path=path) from exc
    return Artifact(data=data, content_type=guess_content_type(path), source=path)


def resolve_lesson_file(lesson_dir: Path, value: object) -> Path | None:
    """Return the file a condition value names, or ``None`` for literals.

    Only strings that resolve to a regular file inside ``lesson_dir`` count.
    A value the filesystem cannot even look up (too long, embedded NUL) is a
    literal too.
    """

    if not isinstance(value, str):
        return None
    candidate_text = value.strip()
    if not candidate_text:
        return None
    try:
        candidate = (lesson_dir / candidate_text).resolve()
        if not _is_within(candidate, lesson_dir.resolve()):
            return None
        return candidate if candidate.is_file() else None
    except (OSError, ValueError):
        return None


__all__ = [
    "Artifact",
    "DEFAULT_CONTENT_TYPE",
    "MARKDOWN_CONTENT_TYPE",
    "ZIP_CONTENT_TYPE",
    "guess_content_type",
    "collect_files",
    "iter_tree",
    "package_workspace",
    "read_file_artifact",
    "resolve_lesson_file",
]
