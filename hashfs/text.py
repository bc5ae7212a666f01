"""Centralized user-facing text for HashFS CLI."""

from __future__ import annotations

class Styles:
    ERROR = "red"
    WARNING = "yellow"
    SUCCESS = "green"
    INFO = "dim"


class Messages:
    APP_HELP = "HashFS – keep a SQLite index of file sizes, timestamps and SHA-256 hashes."
    HELP_PATH = "Directory to walk recursively (defaults to the current directory)."
    HELP_DATABASE = "SQLite database holding the index (defaults to the configured file)."
    HELP_TOJSON = "Skip the walk and print the stored index as a JSON tree."

    ERROR_STORE_OPEN = "Unable to open index database {path} ({reason})."
    ERROR_STORE_MISSING = "Index database {path} does not exist."
    ERROR_TOJSON_EXTRA = "--tojson accepts at most one argument: the database file."

    INFO_INDEX_RUNNING = "Indexing files under {path} into {database}..."
    INFO_READ_PROGRESS = "Read: {count}"
    INFO_PROCESSED = "Processed: {count}: {tally}"
    INFO_DRAINING = "Processing final files"
    INFO_REMOVING = "Removing: {total}"
    INFO_REMOVED = "Removed: {count} / {total}"
    INFO_INDEX_DONE = "Indexed {count} files; removed {removed} stale records."

    WARNING_RUNNING_LONG = "Running ({elapsed}): {path}"
    WARNING_ABANDONED = "Abandoned after {elapsed}, no longer counted against the limit: {path}"
    WARNING_FINISHED_LONG = "Finished ({elapsed}): {path}"
    WARNING_WAITING = "Timed out waiting for worker ({running} workers)."
    WARNING_UNIT_FAILED = "Failed processing {path}: {reason}"
    WARNING_WALK_ERROR = "Cannot list {path}: {reason}"
