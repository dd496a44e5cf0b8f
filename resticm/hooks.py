"""Running user-supplied hook scripts around backup operations."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


class _HookLogger(Protocol):
    def info(self, fmt: str, *args: Any) -> None: ...

    def error(self, fmt: str, *args: Any) -> None: ...


class HookError(Exception):
    """A hook could not be run or finished unsuccessfully."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


@dataclass
class HookRunner:
    """Executes the configured hook scripts."""

    pre_backup: str = ""
    post_backup: str = ""
    on_error: str = ""
    on_success: str = ""
    dry_run: bool = False
    env: dict[str, str] = field(default_factory=dict)
    verbose: bool = False
    logger: _HookLogger | None = None

    def run(self, path: str, extra_env: Mapping[str, str] | None = None) -> str:
        """Run the hook at ``path`` and return its combined output.

        An empty path or a missing file means no hook is configured and
        yields an empty string.
        """
        if not path:
            return ""
        try:
            info = os.stat(path)
        except FileNotFoundError:
            return ""
        except OSError as exc:
            raise HookError(f"cannot access hook {path}: {exc}") from exc

        if info.st_mode & 0o111 == 0:
            raise HookError(
                f"hook {path} exists but is not executable (chmod +x {path})"
            )

        if self.dry_run:
            print(f"🪝 [DRY-RUN] Would execute hook: {path}")
            return ""

        print(f"🪝 Executing hook: {path}")
        if self.logger is not None:
            self.logger.info("Executing hook: %s", path)

        environment = {**os.environ, **self.env, **(extra_env or {})}
        try:
            completed = subprocess.run(
                [path], env=environment, capture_output=True, check=False
            )
        except OSError as exc:
            self._report_failure(path, exc)
            raise HookError(f"hook {path} failed: {exc}\nOutput: ") from exc

        output = completed.stdout.decode(errors="replace")
        if completed.stderr:
            output += completed.stderr.decode(errors="replace")

        if completed.returncode != 0:
            reason = f"exit status {completed.returncode}"
            self._report_failure(path, reason)
            raise HookError(
                f"hook {path} failed: {reason}\nOutput: {output}", output
            )

        print(f"✅ Hook completed: {path}")
        if self.logger is not None:
            self.logger.info("Hook completed: %s", path)
        return output

    def _report_failure(self, path: str, reason: object) -> None:
        print(f"❌ Hook failed: {path}")
        if self.logger is not None:
            self.logger.error("Hook failed: %s - %s", path, reason)

    def run_pre_backup(self) -> None:
        self.run(self.pre_backup)

    def run_post_backup(
        self, success: bool, backup_error: BaseException | None = None
    ) -> None:
        """Run the post-backup hook with the backup outcome in its environment."""
        env = {"BACKUP_STATUS": "success" if success else "failure"}
        if not success and backup_error is not None:
            env["BACKUP_ERROR"] = str(backup_error)
        self.run(self.post_backup, env)

    def run_on_error(self, error: BaseException) -> None:
        self.run(self.on_error, {"ERROR": str(error)})

    def run_on_success(self) -> None:
        self.run(self.on_success)