# resticm

A library of building blocks for running and managing restic backups.

## What it provides

- `resticm.logger`: a small, thread-safe levelled logger. `Level` orders
  `DEBUG < INFO < WARN < ERROR`; `parse_level` maps names such as `"warning"`
  to a level (unknown names give `INFO`); `configure(LogConfig(...))` builds a
  `Logger` writing plain-text or JSON lines to the console and/or an appended
  log file. `Logger.with_prefix` returns a logger sharing the same outputs, and
  `Logger.fatal` logs and then raises `SystemExit(1)`. Module-level `debug`,
  `info`, `warn`, `error` and `fatal` use the logger set with `set_default`.
- `resticm.hooks`: `HookRunner` runs pre-backup, post-backup, on-error and
  on-success scripts and returns their combined output. The post-backup hook
  receives `BACKUP_STATUS` (`success` or `failure`) and, on failure,
  `BACKUP_ERROR`; the on-error hook receives `ERROR`. An empty path or a
  missing file is skipped; a hook that is not executable or exits non-zero
  raises `HookError`. With `dry_run=True` hooks are announced, not run.
- `resticm.validation`: `validate_file_permissions` requires mode 600 or 400
  and an owner that is root, the current user or the invoking `SUDO_USER`,
  raising `InsecurePermissionsError` or `OwnershipError`.
  `ensure_secure_file` writes a file created with mode 600; `is_root` and
  `require_root` check the effective UID.
- `resticm.notify`: `Notifier` (built directly or with
  `Notifier.from_config(NotifyConfig(...))`) sends success and error
  notifications through `SlackProvider`, `DiscordProvider`,
  `GoogleChatProvider`, `NtfyProvider`, `UptimeKumaProvider` or a generic JSON
  `WebhookProvider`. `create_provider` picks a provider from a
  `ProviderConfig` type name and returns `None` for unknown types. Delivery
  failures raise `NotificationError`.
- `resticm.context`: remembers the active configuration file and backend in
  `~/.config/resticm/context.yaml` (`load_context`, `save_context`,
  `reset_context`, `set_config_file`, `set_active_backend`,
  `get_active_backend`), and `list_configs` lists `.yaml`/`.yml` files in
  `~/.config/resticm` and `/etc/resticm`.
- `resticm.env`: `EnvExporter` renders `RESTIC_REPOSITORY`,
  `RESTIC_PASSWORD` and, when set, `AWS_ACCESS_KEY_ID` and
  `AWS_SECRET_ACCESS_KEY` as commands for bash, fish or PowerShell
  (`ExportFormat`), with single quotes escaped by `escape_shell` or
  `escape_powershell`.
- `resticm.lock`: `Lock`, an exclusive, non-blocking `flock` lock file that
  records the holder's PID. It can be used as a context manager; `is_locked`,
  `get_pid`, `force_unlock` and `print_lock_info` inspect or clear it.
  `default_lock_path` gives `/var/lock/resticm.lock` for root and
  `~/.local/share/resticm/resticm.lock` otherwise.
- `resticm.deepcheck`: `DeepCheckTracker` records, per repository, when a full
  data check last ran and `should_run_deep_check(days)` says when one is due;
  `format_duration` renders a `timedelta` as days or hours and minutes.
- `resticm.crossaccount`: `is_cross_account_s3` detects copies between S3
  repositories that use different access keys, which restic cannot perform
  directly; `CrossAccountS3Error` explains the rclone workaround.

## Examples

Guard a backup run with a lock:

```python
from resticm.lock import Lock, LockError

try:
    with Lock("/tmp/resticm-example.lock"):
        ...  # run the backup
except LockError as exc:
    print(exc)
```

Print environment exports for a shell:

```python
from resticm.env import EnvExporter, ExportFormat

password = "password"
exporter = EnvExporter(repository="/srv/restic-repo", password=password)
print(exporter.export(ExportFormat.FISH))
```

Quote a value for a POSIX shell:

```python
from resticm.env import escape_shell

escape_shell("it's")  # "it'\\''s"
```

Check whether a repository is on S3:

```python
from resticm.crossaccount import is_s3_repository

is_s3_repository("s3:s3.amazonaws.com/source-bucket")  # True
```

## What it does not do

The package has no command-line program, does not run restic itself (no
backup, forget, prune, copy or snapshot listing), and does not read the main
backup configuration with its repositories and backends. It provides the
pieces listed above for a program that does those things.

## Requirements

Python 3.10 or later, with PyYAML and Requests. File locking and ownership
checks rely on POSIX facilities.