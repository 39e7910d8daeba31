"""Bundled data files for migratectl."""
