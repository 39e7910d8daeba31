"""migratectl - Backup and restore orchestration for moving to a new Windows machine."""

__version__ = "0.3.0"
