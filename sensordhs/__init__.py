"""Time utilities, synchronisation primitives, thread groups, buffer pipes, metrics and zero-run metadata storage."""

__version__ = "0.1.0"