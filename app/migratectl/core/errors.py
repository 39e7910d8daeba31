"""Base exception for migratectl.

Pre-flight failures (configuration, manifest, lock) derive from
MigrationError so callers can catch them in one place.
"""


class MigrationError(Exception):
    """Base error for failures that stop a run before any step executes."""
