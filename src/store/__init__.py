"""Snapshot storage layer.

This package persists dated ranking snapshots, the latest pointer,
and dated change reports.
"""
