"""Filesystem helpers for persisting key and certificate bytes."""

import os
import secrets
import shutil
import tempfile
from pathlib import Path

from .errors import StorageFailure

STAGING_MARKER = "staging"
BACKUP_MARKER = "old"


def read_bytes_if_present(path: Path) -> bytes | None:
    """Read a file, returning None only when it does not exist.

    Raises:
        StorageFailure: If the file exists but cannot be read
    """
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StorageFailure(f"failed to read '{path}': {e}") from e


def _fsync_dir(directory: Path) -> None:
    dir_fd = os.open(str(directory), os.O_DIRECTORY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)


def _write_synced(path: Path, data: bytes, mode: int) -> None:
    fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    with os.fdopen(fd, "wb") as fh:
        fh.write(data)
        fh.flush()
        os.fsync(fh.fileno())
    os.chmod(path, mode)


def atomic_write_bytes(path: Path, data: bytes, mode: int = 0o644) -> Path:
    """Write bytes so that readers see either the old file or the complete new one.

    Writes to a temp file in the same directory, fsyncs it, renames it over
    the destination and fsyncs the directory.

    Args:
        path: Destination file path
        data: Bytes to write
        mode: File permission mode applied before the rename

    Returns:
        The written path

    Raises:
        StorageFailure: If any step fails; the temp file is removed
    """
    parent = path.parent
    tmp_name = None

    try:
        parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            delete=False, dir=str(parent), prefix=f".{path.name}."
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())

        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
        tmp_name = None

        _fsync_dir(parent)
        return path

    except OSError as e:
        raise StorageFailure(f"failed to write '{path}': {e}") from e
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)


def atomic_write_dir(path: Path, files: dict[str, tuple[bytes, int]]) -> Path:
    """Publish a set of files as one directory, all at once.

    The files are written and fsynced in a hidden staging directory next to
    `path`, which is then renamed to `path`. An existing `path` is moved to a
    hidden backup first and restored if the rename fails, so readers see the
    old set, the new set, or (after a crash between the two renames) no set,
    never a mix of the two.

    Callers serialise writers of the same `path`.

    Args:
        path: Destination directory
        files: File name -> (bytes, permission mode)

    Returns:
        The published directory

    Raises:
        StorageFailure: If any step fails; staging files are removed
    """
    parent = path.parent
    staging = None
    backup = None
    committed = False

    try:
        parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(dir=str(parent), prefix=f".{path.name}.{STAGING_MARKER}-"))
        for filename, (data, mode) in files.items():
            _write_synced(staging / filename, data, mode)
        _fsync_dir(staging)

        if path.exists():
            backup = parent / f".{path.name}.{BACKUP_MARKER}-{secrets.token_hex(8)}"
            os.rename(path, backup)
        try:
            os.rename(staging, path)
        except OSError:
            if backup is not None:
                os.rename(backup, path)
                backup = None
            raise
        staging = None
        committed = True

        _fsync_dir(parent)
        return path

    except OSError as e:
        raise StorageFailure(f"failed to publish '{path}': {e}") from e
    finally:
        if staging is not None:
            shutil.rmtree(staging, ignore_errors=True)
        if committed and backup is not None:
            shutil.rmtree(backup, ignore_errors=True)


def remove_stale_staging(path: Path) -> list[Path]:
    """Remove staging directories left behind for `path` by interrupted writers.

    Callers hold the lock that serialises writers of `path`.
    """
    removed = []
    if not path.parent.is_dir():
        return removed
    for stale in path.parent.glob(f".{path.name}.{STAGING_MARKER}-*"):
        try:
            shutil.rmtree(stale)
        except OSError as e:
            raise StorageFailure(f"failed to remove '{stale}': {e}") from e
        removed.append(stale)
    return removed
