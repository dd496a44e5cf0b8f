"""An exclusive, non-blocking lock file preventing concurrent runs."""

from __future__ import annotations

import fcntl
import os
import re
from pathlib import Path
from typing import IO

DEFAULT_LOCK_FILE = "/var/lock/resticm.lock"

_PID_PATTERN = re.compile(r"\s*([+-]?\d+)")


class LockError(Exception):
    """The lock could not be acquired, released or removed."""


def default_lock_path() -> str:
    """Return the lock path suited to the current user's privileges."""
    if os.geteuid() == 0:
        return DEFAULT_LOCK_FILE
    try:
        home = Path.home()
    except (KeyError, RuntimeError):
        return "/tmp/resticm.lock"
    return str(home / ".local" / "share" / "resticm" / "resticm.lock")


class Lock:
    """A file lock held with ``flock`` for the lifetime of a run."""

    def __init__(self, path: str = "") -> None:
        self.path = path or default_lock_path()
        self._file: IO[str] | None = None

    def __enter__(self) -> Lock:
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def acquire(self) -> None:
        """Take the lock without blocking and write this process's PID to it."""
        try:
            Path(self.path).parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise LockError(f"failed to create lock directory: {exc}") from exc

        try:
            fd = os.open(self.path, os.O_CREAT | os.O_RDWR, 0o666)
        except OSError as exc:
            raise LockError(f"failed to open lock file: {exc}") from exc
        handle = os.fdopen(fd, "r+", encoding="ascii")

        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            handle.close()
            raise LockError(
                f"another instance is already running (lock file: {self.path})"
            ) from None
        except OSError as exc:
            handle.close()
            raise LockError(f"failed to acquire lock: {exc}") from exc

        try:
            handle.truncate(0)
            handle.seek(0)
            handle.write(f"{os.getpid()}\n")
            handle.flush()
        except OSError:
            pass
        self._file = handle

    def release(self) -> None:
        """Drop the lock and delete the lock file; does nothing if not held."""
        if self._file is None:
            return
        try:
            fcntl.flock(self._file.fileno(), fcntl.LOCK_UN)
        except OSError as exc:
            raise LockError(f"failed to release lock: {exc}") from exc
        self._file.close()
        try:
            os.remove(self.path)
        except OSError:
            pass
        self._file = None

    def is_locked(self) -> bool:
        """Return True if some open file currently holds the lock."""
        if not os.path.exists(self.path):
            return False
        try:
            fd = os.open(self.path, os.O_RDWR)
        except PermissionError:
            return True
        except OSError:
            return os.path.exists(self.path)
        try:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except OSError:
                return True
            fcntl.flock(fd, fcntl.LOCK_UN)
            return False
        finally:
            os.close(fd)

    def force_unlock(self) -> None:
        """Delete a stale lock file; a missing file is not an error."""
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise LockError(f"failed to remove lock file: {exc}") from exc

    def get_pid(self) -> int:
        """Return the PID recorded in the lock file."""
        text = Path(self.path).read_text(encoding="ascii", errors="replace")
        match = _PID_PATTERN.match(text)
        if match is None:
            raise ValueError(f"no PID in lock file {self.path}")
        return int(match.group(1))

    def print_lock_info(self) -> None:
        """Print who holds the lock, if anyone."""
        if not self.is_locked():
            print("No active lock")
            return
        try:
            pid = self.get_pid()
        except (OSError, ValueError):
            print(f"Lock file exists: {self.path} (could not read PID)")
            return
        print(f"⚠️  Lock file: {self.path}")
        print(f"   PID: {pid}")
        print(f"   Status: {_process_status(pid)}")


def _process_status(pid: int) -> str:
    try:
        os.kill(pid, 0)
    except (OSError, OverflowError):
        return "Process not found (stale lock)"
    return "Process is running"