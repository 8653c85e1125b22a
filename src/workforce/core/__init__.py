"""Core types and configuration shared across workforce modules."""
