"""Building blocks for restic backups: logging, hooks, file checks, notifications, context, environment export, locking and check tracking."""

__version__ = "0.1.0"

__all__ = [
    "context",
    "crossaccount",
    "deepcheck",
    "env",
    "hooks",
    "lock",
    "logger",
    "notify",
    "validation",
]