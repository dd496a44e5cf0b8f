"""Persisted selection of the active configuration file and backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

_SYSTEM_CONFIG_DIR = Path("/etc/resticm")
_CONFIG_SUFFIXES = (".yaml", ".yml")


class ContextError(Exception):
    """The context file could not be read, parsed or written."""


@dataclass
class Context:
    """The current context state."""

    config_file: str = ""
    active_backend: str = ""


def _user_config_dir() -> Path:
    return Path.home() / ".config" / "resticm"


def context_path() -> Path:
    """Return the location of the context file."""
    return _user_config_dir() / "context.yaml"


def _text(value: object) -> str:
    return "" if value is None else str(value)


def load_context() -> Context:
    """Load the stored context; a missing file yields an empty context."""
    path = context_path()
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Context()
    except OSError as exc:
        raise ContextError(f"failed to read context: {exc}") from exc

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ContextError(f"failed to parse context: {exc}") from exc

    if data is None:
        return Context()
    if not isinstance(data, dict):
        raise ContextError("failed to parse context: expected a mapping")
    return Context(
        config_file=_text(data.get("config_file")),
        active_backend=_text(data.get("active_backend")),
    )


def save_context(ctx: Context) -> None:
    """Write ``ctx`` to the context file, readable only by its owner."""
    path = context_path()
    try:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as exc:
        raise ContextError(f"failed to create context directory: {exc}") from exc

    text = yaml.safe_dump(
        {"config_file": ctx.config_file, "active_backend": ctx.active_backend},
        sort_keys=False,
        allow_unicode=True,
    )
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
    except OSError as exc:
        raise ContextError(f"failed to write context: {exc}") from exc


def reset_context() -> None:
    """Remove the context file if it exists."""
    try:
        context_path().unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise ContextError(f"failed to remove context: {exc}") from exc


def _load_or_empty() -> Context:
    try:
        return load_context()
    except ContextError:
        return Context()


def set_config_file(config_file: str) -> None:
    """Record ``config_file`` as the active configuration file."""
    ctx = _load_or_empty()
    ctx.config_file = config_file
    save_context(ctx)


def set_active_backend(backend: str) -> None:
    """Record ``backend`` as the active backend."""
    ctx = _load_or_empty()
    ctx.active_backend = backend
    save_context(ctx)


def get_active_backend() -> str:
    """Return the active backend stored in the context."""
    return load_context().active_backend


def _yaml_files(directory: Path) -> list[str]:
    try:
        entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
    except OSError:
        return []
    return [
        str(entry)
        for entry in entries
        if entry.suffix in _CONFIG_SUFFIXES and not entry.is_dir()
    ]


def list_configs() -> list[str]:
    """Return the YAML config files in the user and system config directories."""
    return _yaml_files(_user_config_dir()) + _yaml_files(_SYSTEM_CONFIG_DIR)