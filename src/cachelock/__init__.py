"""Cache-backed named locks, retry policies and locked jobs."""

__all__ = ["__version__"]

__version__ = "0.1.0"
