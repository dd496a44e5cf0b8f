"""Rendering restic credentials as shell export commands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

_FOOTER = (
    "# Environment variables exported successfully\n"
    "# You can now use restic commands directly\n"
)


class ExportFormat(str, Enum):
    """Shell syntax to emit."""

    BASH = "bash"
    FISH = "fish"
    POWERSHELL = "powershell"


def escape_shell(text: str) -> str:
    """Escape single quotes for bash, sh and fish single-quoted strings."""
    return text.replace("'", "'\\''")


def escape_powershell(text: str) -> str:
    """Escape single quotes for PowerShell single-quoted strings."""
    return text.replace("'", "''")


@dataclass
class EnvExporter:
    """The environment variables restic needs for one repository."""

    repository: str
    password: str
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""

    def _variables(self) -> list[tuple[str, str]]:
        pairs = [
            ("RESTIC_REPOSITORY", self.repository),
            ("RESTIC_PASSWORD", self.password),
        ]
        if self.aws_access_key_id:
            pairs.append(("AWS_ACCESS_KEY_ID", self.aws_access_key_id))
        if self.aws_secret_access_key:
            pairs.append(("AWS_SECRET_ACCESS_KEY", self.aws_secret_access_key))
        return pairs

    def export(self, fmt: ExportFormat | str) -> str:
        """Return the commands that set the variables in the given shell."""
        try:
            shell = ExportFormat(fmt)
        except ValueError:
            value = fmt.value if isinstance(fmt, Enum) else fmt
            raise ValueError(
                f"unsupported format: {value} (supported: bash, fish, powershell)"
            ) from None

        if shell is ExportFormat.BASH:
            lines = (
                f"export {name}='{escape_shell(value)}'\n"
                for name, value in self._variables()
            )
        elif shell is ExportFormat.FISH:
            lines = (
                f"set -x {name} '{escape_shell(value)}'\n"
                for name, value in self._variables()
            )
        else:
            lines = (
                f"$env:{name} = '{escape_powershell(value)}'\n"
                for name, value in self._variables()
            )
        return "".join(lines) + _FOOTER