"""Tracking when the last full-data repository check was performed."""

from __future__ import annotations

import hashlib
import os
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path

import yaml

_SYSTEM_STATE_DIR = Path("/var/lib/resticm")

_TIMESTAMP = re.compile(
    r"(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?\s*(Z|z|[+-]\d{2}:?\d{2})?"
)


@dataclass
class DeepCheckState:
    """What is stored about the last deep check of one repository."""

    repository: str
    last_check: datetime


def _default_base_dir() -> Path:
    if os.geteuid() == 0:
        return _SYSTEM_STATE_DIR
    return Path.home() / ".config" / "resticm"


def _parse_timestamp(text: str) -> datetime:
    match = _TIMESTAMP.fullmatch(text.strip())
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    day, clock, fraction, zone = match.groups()
    micros = (fraction or "")[:6].ljust(6, "0")
    if zone is None or zone in ("Z", "z"):
        offset = "+00:00"
    elif ":" in zone:
        offset = zone
    else:
        offset = f"{zone[:3]}:{zone[3:]}"
    return datetime.fromisoformat(f"{day}T{clock}.{micros}{offset}")


def _to_datetime(value: object) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time())
    elif isinstance(value, str):
        moment = _parse_timestamp(value)
    else:
        raise ValueError(f"invalid last_check value: {value!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if moment.year == 1 and moment == datetime(1, 1, 1, tzinfo=timezone.utc):
        return None
    return moment


class DeepCheckTracker:
    """Remembers, per repository, when a deep check last ran."""

    def __init__(self, repository_url: str, base_dir: str | Path | None = None) -> None:
        short_hash = hashlib.sha256(repository_url.encode()).digest()[:4].hex()
        directory = Path(base_dir) if base_dir is not None else _default_base_dir()
        self.repository = repository_url
        self.path = directory / f"deep_check_{short_hash}.yaml"

    def last_check(self) -> datetime | None:
        """Return when the last deep check ran, or None if never recorded."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        data = yaml.safe_load(raw)
        if data is None:
            return None
        if not isinstance(data, dict):
            raise ValueError(f"invalid deep check state in {self.path}")
        repository = data.get("repository")
        if ("" if repository is None else str(repository)) != self.repository:
            # Written for another repository with the same short hash.
            return None
        return _to_datetime(data.get("last_check"))

    def record_check(self) -> None:
        """Record that a deep check has just been performed."""
        state = DeepCheckState(
            repository=self.repository, last_check=datetime.now().astimezone()
        )
        text = yaml.safe_dump(
            {
                "repository": state.repository,
                "last_check": state.last_check.isoformat(),
            },
            sort_keys=False,
            allow_unicode=True,
        )
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)

    def should_run_deep_check(self, interval_days: int) -> bool:
        """Return True if more than ``interval_days`` passed since the last check."""
        if interval_days <= 0:
            return False
        try:
            last = self.last_check()
        except (OSError, ValueError, yaml.YAMLError):
            return True
        if last is None:
            return True
        deadline = last + timedelta(days=interval_days)
        return datetime.now(timezone.utc) > deadline


def format_duration(delta: timedelta) -> str:
    """Format ``delta`` as whole days, or as hours and minutes when under a day."""
    total_seconds = delta.total_seconds()
    days = int(total_seconds / 3600 / 24)
    if days > 0:
        return f"{days} days"

    micros = delta // timedelta(microseconds=1)
    minute = 60_000_000
    sign = -1 if micros < 0 else 1
    whole, rest = divmod(abs(micros), minute)
    if rest * 2 >= minute:
        whole += 1
    if whole == 0:
        return "0s"
    hours, minutes = divmod(whole, 60)
    text = f"{hours}h{minutes}m0s" if hours else f"{minutes}m0s"
    return f"-{text}" if sign < 0 else text