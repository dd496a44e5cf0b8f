"""Checks that configuration files are private and properly owned."""

from __future__ import annotations

import os
import stat


class InsecurePermissionsError(Exception):
    """A configuration file is readable or writable by others."""

    def __init__(self, path: str, got: int, expected: str, message: str) -> None:
        self.path = path
        self.got = got
        self.expected = expected
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"{self.message}: {self.path} (got {self.got:04o}, expected {self.expected})\n\n"
            "🔒 To fix this issue:\n"
            f"   sudo chown root:root {self.path}\n"
            f"   sudo chmod 600 {self.path}\n\n"
            "💡 Permissions must be 600 (rw-------) or 400 (r--------)"
        )


class OwnershipError(Exception):
    """A configuration file is owned by someone other than root or the user."""

    def __init__(
        self, path: str, file_owner_uid: int, expected_uid: int, message: str
    ) -> None:
        self.path = path
        self.file_owner_uid = file_owner_uid
        self.expected_uid = expected_uid
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"{self.message}: {self.path} (owned by UID {self.file_owner_uid}, "
            f"expected root or UID {self.expected_uid})\n\n"
            "🔒 To fix this issue:\n"
            f"   sudo chown root:root {self.path}\n"
            f"   sudo chmod 600 {self.path}"
        )


def validate_file_permissions(path: str) -> None:
    """Raise unless ``path`` has mode 600 or 400 and a trusted owner."""
    info = os.stat(path)
    perms = stat.S_IMODE(info.st_mode) & 0o777
    if perms not in (0o600, 0o400):
        raise InsecurePermissionsError(
            path=path,
            got=perms,
            expected="0600 or 0400",
            message="configuration file has insecure permissions",
        )
    if os.name != "nt":
        _check_file_owner(info, path)


def _check_file_owner(info: os.stat_result, path: str) -> None:
    current_uid = os.getuid()
    if info.st_uid in (0, current_uid):
        return
    sudo_user = os.environ.get("SUDO_USER", "")
    if sudo_user:
        import pwd

        try:
            if pwd.getpwnam(sudo_user).pw_uid == info.st_uid:
                return
        except KeyError:
            pass
    raise OwnershipError(
        path=path,
        file_owner_uid=info.st_uid,
        expected_uid=current_uid,
        message="configuration file not owned by root or current user",
    )


def ensure_secure_file(path: str, data: bytes | str) -> None:
    """Write ``data`` to ``path``, creating it readable only by its owner."""
    payload = data.encode() if isinstance(data, str) else data
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as handle:
        handle.write(payload)


def is_root() -> bool:
    """Return True if the process runs with an effective UID of 0."""
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def require_root() -> None:
    """Raise PermissionError unless running as root."""
    if not is_root():
        raise PermissionError("this command must be run as root or with sudo")