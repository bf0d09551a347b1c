"""tcelflow: local task tracker with dual-backend persistence."""

__version__ = "0.1.0"
