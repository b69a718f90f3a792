"""
Path derivation and atomic output helpers shared by all pipeline stages.

Stages never modify a file in place. Each one derives a sibling path for its
output and publishes it with an atomic rename, so the existence of a file at
its canonical path always means the stage that owns it completed.
"""
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

PARTIAL_SUFFIX = ".partial"
FALLBACK_SUFFIX = ".fallback"


def strip_extension(path: Path) -> Path:
    """Sibling path with the last extension removed (``a.b.sgm`` -> ``a.b``)."""
    return path.with_name(path.stem)


def insert_marker(path: Path, marker: str) -> Path:
    """Sibling path with ``marker`` inserted before the extension (``train.en`` -> ``train.tok.en``)."""
    if path.suffix:
        return path.with_name(f"{path.stem}.{marker}{path.suffix}")
    return path.with_name(f"{path.name}.{marker}")


def has_marker(path: Path, marker: str) -> bool:
    """Check whether ``marker`` is one of the dot-separated segments of the filename."""
    return marker in path.name.split(".")


def extension(path: Path) -> str:
    """The last extension without its dot, or an empty string."""
    return path.suffix[1:] if path.suffix else ""


def partial_path(path: Path) -> Path:
    """Temporary sibling a stage writes to before publishing ``path``."""
    return path.with_name(f"{path.name}{PARTIAL_SUFFIX}")


def fallback_marker(path: Path) -> Path:
    """Sidecar file flagging ``path`` as a verbatim fallback copy."""
    return path.with_name(f"{path.name}{FALLBACK_SUFFIX}")


def is_fallback(path: Path) -> bool:
    return fallback_marker(path).exists()


def is_bookkeeping(path: Path) -> bool:
    """True for temporary outputs and fallback markers, which are never corpus files."""
    return path.name.endswith(PARTIAL_SUFFIX) or path.name.endswith(FALLBACK_SUFFIX)


def output_ready(path: Path, retry_fallbacks: bool = False) -> bool:
    """
    Check whether a stage output is already complete.

    Args:
        path: Canonical output path
        retry_fallbacks: Treat outputs produced by a fallback copy as missing

    Returns:
        True if the stage producing ``path`` can be skipped
    """
    if not path.exists():
        return False
    if retry_fallbacks and is_fallback(path):
        return False
    return True


def remove_path(path: Path) -> None:
    """Remove a file or directory tree if it exists."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


@contextmanager
def atomic_output(path: Path, fallback: bool = False) -> Iterator[Path]:
    """
    Yield a temporary sibling of ``path`` and publish it on success.

    The temporary path is removed if the body raises, including on
    ``KeyboardInterrupt``, so ``path`` itself only ever appears complete.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    partial = partial_path(path)
    remove_path(partial)
    try:
        yield partial
    except BaseException:
        remove_path(partial)
        raise
    publish(partial, path, fallback=fallback)


def publish(partial: Path, path: Path, fallback: bool = False) -> None:
    """
    Atomically move a finished temporary output to its canonical path.

    A real output clears any fallback marker left for ``path``. A fallback
    copy keeps it.
    """
    if not fallback:
        remove_path(fallback_marker(path))
    if path.is_dir():
        shutil.rmtree(path)
    os.replace(partial, path)


def copy_through(source: Path, destination: Path) -> Path:
    """
    Copy ``source`` verbatim to ``destination`` and flag it as a fallback copy.

    The marker is written before the copy is published, so a copy at
    ``destination`` is never left unmarked.

    Returns:
        The destination path
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    fallback_marker(destination).touch()
    with atomic_output(destination, fallback=True) as partial:
        shutil.copyfile(source, partial)
    return destination


def list_regular_files(path: Path) -> List[Path]:
    """
    Flatten ``path`` into the regular files it contains.

    A regular file is returned as a single-element list. Directories are
    walked recursively and never appear in the result themselves.
    """
    if path.is_file():
        return [path]
    return sorted(p for p in path.rglob("*") if p.is_file())


def count_lines(path: Path) -> int:
    """Count newline-terminated lines, plus a trailing unterminated one."""
    count = 0
    last: Optional[bytes] = None
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1 << 20), b""):
            count += chunk.count(b"\n")
            last = chunk
    if last and not last.endswith(b"\n"):
        count += 1
    return count
