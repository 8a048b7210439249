"""Persistent, monotonically increasing serial number allocation."""

import secrets
from pathlib import Path

from .errors import CaStoreCorrupt
from .fs_io import atomic_write_bytes, read_bytes_if_present
from .locking import PathLock

# RFC 5280 caps serials at 20 octets; leave headroom above the random start
_INITIAL_SERIAL_BITS = 63


class SerialCounter:
    """Serial counter persisted as a hex string, like openssl's ca.srl file."""

    def __init__(self, serial_path: Path, lock_path: Path) -> None:
        self.serial_path = serial_path
        self.lock_path = lock_path

    def allocate(self) -> int:
        """Atomically increment the stored serial and return the new value.

        A missing file starts from a random 63-bit value. The new value is
        written back before it is returned, so a crash can skip serials but
        never reuse one.

        Raises:
            CaStoreCorrupt: If the serial file is not a positive hex integer
            StorageFailure: If the serial file cannot be read or written
        """
        with PathLock(self.lock_path):
            current = self._read()
            if current is None:
                current = secrets.randbits(_INITIAL_SERIAL_BITS)
            serial = current + 1
            atomic_write_bytes(self.serial_path, f"{serial:X}\n".encode("ascii"))
            return serial

    def _read(self) -> int | None:
        data = read_bytes_if_present(self.serial_path)
        if data is None:
            return None
        try:
            value = int(data.decode("ascii").strip(), 16)
        except (UnicodeDecodeError, ValueError) as e:
            raise CaStoreCorrupt(f"serial file '{self.serial_path}' is not a hex integer") from e
        if value < 0:
            raise CaStoreCorrupt(f"serial file '{self.serial_path}' holds a negative serial")
        return value
