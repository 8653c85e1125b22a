"""Workforce classification and cross-source consistency checks."""

__version__ = "0.1.0"
