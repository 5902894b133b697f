"""liftlog: local-first workout tracking with best-effort sync."""

__version__ = "0.1.0"
