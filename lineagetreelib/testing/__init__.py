"""Testing utilities for LineageTreeLib consumers."""

from .fixtures import RecordingQueryExecutor, make_record, zero_stats

__all__ = ['RecordingQueryExecutor', 'make_record', 'zero_stats']
