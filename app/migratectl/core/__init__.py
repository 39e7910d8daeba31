"""Core functionality for migratectl.

Persistence (ledger, checksums, manifest), path validation, target
locking, configuration and the workflow engine that ties them together.
"""
