"""Thread- and process-level mutual exclusion keyed by lock file path."""

from pathlib import Path

from filelock import FileLock, Timeout

from .errors import StorageFailure


class PathLock:
    """Exclusive lock on a lock file, held across threads and processes.

    Each PathLock opens its own lock file handle, so two threads of one
    process exclude each other the same way two processes do.

    Usage:
        with PathLock(root / ".bootstrap.lock"):
            ...
    """

    def __init__(self, path: Path, timeout: float = -1) -> None:
        """Initialize the lock.

        Args:
            path: Lock file; created with its parent directories on entry
            timeout: Seconds to wait before failing; negative waits forever
        """
        self.path = path
        self.timeout = timeout
        self._lock = FileLock(str(path), timeout=timeout)

    def __enter__(self) -> "PathLock":
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._lock.acquire()
        except Timeout as e:
            raise StorageFailure(f"timed out after {self.timeout}s locking '{self.path}'") from e
        except OSError as e:
            raise StorageFailure(f"failed to lock '{self.path}': {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._lock.release()
