"""Access control and conflict-of-interest evaluation for legal practice software."""

__version__ = "0.1.0"
