"""File system operations: reading sources, walking the tree, writing documents."""

import os
import pathlib
import shutil
import tempfile
from collections.abc import Callable, Iterable, Iterator

import pathspec

from linedoc.constants import ALWAYS_IGNORE_PATTERNS, DOCUMENT_SUFFIX
from linedoc.errors import FatalIOError


def read_lines(file_path: pathlib.Path) -> Iterator[tuple[int, str]]:
    """Yield (line_number, text) pairs for a file, 1-based.

    Line terminators are removed. Each call opens the file afresh.

    Raises:
        OSError: If the file cannot be opened or read
        UnicodeDecodeError: If the file is not valid UTF-8
    """
    with open(file_path, encoding="utf-8", newline="") as f:
        for number, line in enumerate(f, start=1):
            yield number, line.rstrip("\r\n")


def get_exclude_spec(
    scan_root: pathlib.Path, patterns: Iterable[str] = (), use_gitignore: bool = False
) -> pathspec.PathSpec:
    """Combine ALWAYS_IGNORE_PATTERNS, extra patterns and the root .gitignore.

    Args:
        scan_root: Directory whose .gitignore is consulted
        patterns: Additional gitwildmatch patterns
        use_gitignore: Whether to read scan_root/.gitignore

    Returns:
        PathSpec matching paths relative to scan_root
    """
    all_patterns = sorted(ALWAYS_IGNORE_PATTERNS)
    all_patterns.extend(patterns)

    gitignore_path = scan_root / ".gitignore"
    if use_gitignore and gitignore_path.is_file():
        with open(gitignore_path, encoding="utf-8", errors="ignore") as f:
            all_patterns.extend(f.read().splitlines())

    return pathspec.PathSpec.from_lines("gitignore", all_patterns)


def collect_files(
    scan_root: pathlib.Path,
    extension: str,
    exclude_spec: pathspec.PathSpec | None = None,
    skip_dirs: Iterable[pathlib.Path] = (),
    onerror: Callable[[OSError], None] | None = None,
) -> list[pathlib.Path]:
    """Collect every file under scan_root whose name ends with extension.

    Directories are visited in sorted order and symlinks are followed, so the
    result is lexicographic by relative path and stable across runs.

    Args:
        scan_root: Directory to start scanning from
        extension: Case-sensitive file name suffix
        exclude_spec: PathSpec of paths (relative to scan_root) to prune
        skip_dirs: Directories never descended into, e.g. the work root
        onerror: Called with the OSError of each subdirectory that cannot be
            listed; the subdirectory is skipped

    Returns:
        List of matching file paths, each joined onto scan_root
    """
    if not scan_root.is_dir():
        raise FatalIOError(f"Directory not found: {scan_root}")
    try:
        os.listdir(scan_root)
    except OSError as e:
        raise FatalIOError(f"Could not read {scan_root}: {e}") from e

    skipped = {d.resolve() for d in skip_dirs}
    visited: set[pathlib.Path] = set()
    files_to_process = []

    walker = os.walk(scan_root, topdown=True, onerror=onerror, followlinks=True)
    for root, dirs, files in walker:
        root_path = pathlib.Path(root)

        # Symlink cycles would otherwise loop forever
        real_root = root_path.resolve()
        if real_root in visited:
            dirs.clear()
            continue
        visited.add(real_root)

        for d in list(dirs):
            dir_path = root_path / d
            relative_dir = dir_path.relative_to(scan_root).as_posix() + "/"
            if dir_path.resolve() in skipped or (
                exclude_spec is not None and exclude_spec.match_file(relative_dir)
            ):
                dirs.remove(d)
        dirs.sort()

        for filename in sorted(files):
            if not filename.endswith(extension):
                continue
            file_path = root_path / filename
            if exclude_spec is not None and exclude_spec.match_file(
                file_path.relative_to(scan_root).as_posix()
            ):
                continue
            files_to_process.append(file_path)

    return sorted(files_to_process, key=lambda p: p.relative_to(scan_root).parts)


def prepare_work_root(work_root: pathlib.Path, clean: bool = False) -> None:
    """Create work_root, optionally removing what was there before.

    Raises:
        FatalIOError: If the directory cannot be created or written to
    """
    try:
        if clean and work_root.exists():
            shutil.rmtree(work_root)
        work_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FatalIOError(f"Could not prepare {work_root}: {e}") from e
    if not os.access(work_root, os.W_OK | os.X_OK):
        raise FatalIOError(f"Directory not writable: {work_root}")


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def write_document(path: pathlib.Path, content: str) -> None:
    """Replace the file at path with content, creating parent folders.

    The content goes to a temporary sibling first and is moved over path in
    one step, so a failed write never leaves a truncated document behind.

    Raises:
        OSError: If the folders or the file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        with open(fd, "w", encoding="utf-8", newline="\n") as md_file:
            md_file.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        pathlib.Path(tmp_name).unlink(missing_ok=True)
        raise


def remove_document(path: pathlib.Path) -> bool:
    """Delete a previously written document. Returns True if one was there."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def remove_stale_documents(
    work_root: pathlib.Path,
    labels: tuple[str, ...],
    keep: Iterable[pathlib.Path],
    protect: Iterable[pathlib.Path] = (),
) -> list[pathlib.Path]:
    """Delete documents under work_root that the current run did not produce.

    Only names linedoc itself writes are touched: at depth i a folder or
    ".md" file must be named "{labels[i]} ...". Folders left empty are
    removed as well.

    Args:
        work_root: Root of the output tree
        labels: Label whitelist of the run
        keep: Paths of the documents written by this run
        protect: Directories never descended into, e.g. the scan root

    Returns:
        The removed document paths

    Raises:
        OSError: If a stale document or folder cannot be removed
    """
    keep = set(keep)
    protected = {d.resolve() for d in protect}
    removed: list[pathlib.Path] = []

    def prune(directory: pathlib.Path, depth: int) -> None:
        prefix = labels[depth] + " "
        for entry in sorted(directory.iterdir()):
            if not entry.name.startswith(prefix):
                continue
            if entry.is_dir() and not entry.is_symlink():
                if depth + 1 < len(labels) and entry.resolve() not in protected:
                    prune(entry, depth + 1)
                    if not any(entry.iterdir()):
                        entry.rmdir()
            elif entry.name.endswith(DOCUMENT_SUFFIX) and entry not in keep:
                entry.unlink()
                removed.append(entry)

    if work_root.is_dir():
        prune(work_root, 0)
    return removed
