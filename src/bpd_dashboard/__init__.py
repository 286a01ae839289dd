"""BPD dashboard: task, program and team tracking backed by a remote store."""

__version__ = "3.4.0"
