# logrotor

`logrotor` provides `Logger`, a log file that you write bytes to and that
rotates itself. It works in one of two modes.

* **Size mode** is the default. When a write would push the file past
  `max_size` megabytes, the current file is renamed to a timestamped backup
  beside it, such as `app-2024-05-01T12-30-45.123.log`. Writing then continues
  in a fresh file.
* **Pattern mode** is used when `pattern` is set. `pattern` is a strftime file
  name, for example `/var/log/app-%Y-%m-%d.log`. The name is worked out from
  the current time on every write. When that name changes, the active file is
  moved to the name of the period that just ended, and a fresh file is started.

After each rotation, a background thread cleans up the backups in the log
file's directory:

* backups beyond the newest `max_backups` are removed; a backup and its
  gzipped copy count as one;
* backups whose modification time is more than `max_age` days old are removed;
* the remaining backups are gzipped when `compress` is true.

## Installation

```
pip install logrotor
```

The package has no runtime dependencies.

## Usage

```python
from logrotor.logger import Logger

with Logger(path="/var/log/myapp/app.log",
            max_size=10,      # megabytes
            max_backups=5,
            max_age=28,       # days
            compress=True) as log:
    log.write(b"service started\n")
```

`write` takes bytes and returns the number of bytes written. Leaving the
`with` block, or calling `close()`, closes the file. The next write opens it
again and appends to it.

To rotate outside the normal rules, for example when the process receives
`SIGHUP`, call `rotate()`:

```python
log.rotate()
```

Pattern mode:

```python
log = Logger(path="/var/log/myapp/app.log",
             pattern="/var/log/myapp/app-%Y-%m-%d.log",
             max_backups=7)
```

For backups made in pattern mode to be found again by the cleanup pass, two
conditions apply:

* the pattern must contain the log file's base name followed by a dash
  (`app-` above) and must end with the same extension;
* the timestamp part may use only `%Y`, `%m`, `%d`, `%H`, `%M` and `%S`.

### Options

| Field         | Meaning                                                                                        |
|---------------|------------------------------------------------------------------------------------------------|
| `path`        | File to write to. If empty, `<program>-logrotor.log` in the system temp directory is used.      |
| `max_size`    | Size in megabytes before rotation in size mode. 0 means 100.                                    |
| `max_age`     | Days to keep backups, judged by modification time. 0 keeps them all.                            |
| `max_backups` | Number of backups to keep. 0 keeps them all.                                                    |
| `local_time`  | Use local time rather than UTC in size-mode backup timestamps.                                  |
| `compress`    | Gzip backups after rotation.                                                                    |
| `pattern`     | strftime file name for time-based rotation. Empty selects size mode.                            |
| `clock`       | Callable returning the current time as a timezone-aware `datetime`. Defaults to local now.      |

In size mode, a single write larger than the maximum size raises `ValueError`.
File system failures raise `OSError`.

### Other methods

Other `Logger` methods:

* `filename()` returns the active file's path.
* `directory()` returns the directory that holds the file and its backups.
* `max_bytes()` returns the rotation threshold in bytes.
* `prefix_and_ext()` returns the backup name prefix and extension.
* `old_log_files()` lists the backups as `LogInfo` records (`timestamp`,
  `name`, `mod_time`), newest timestamp first.
* `mill_run_once()` runs the cleanup pass at once, in the calling thread, and
  raises the first error it met.

### Helpers

* `logrotor.logger.backup_name(name, local, now)` builds a timestamped backup
  name.
* `logrotor.logger.compress_log_file(src, dst)` gzips `src` into `dst` and
  removes `src`.
* `logrotor.timefmt` formats and parses backup timestamps with
  `format_backup_time` and `parse_backup_time`. It also parses names built
  from a pattern, with `strftime_to_parse_pattern` and `parse_with_pattern`.
* `logrotor.ownership.chown(name, info)` recreates a file with the mode and
  owner recorded in a stat result. This only has an effect on Linux.

## What it does not do

* `logrotor` has no command-line tool.
* `Logger` is not a `logging.Handler`, and it accepts bytes, not text. To use
  it with the standard `logging` module, write a handler that encodes each
  record and calls `write`.
* Errors in the background cleanup thread are not reported. Call
  `mill_run_once()` yourself to see them.