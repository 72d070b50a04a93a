"""Deterministic simulation core for a hex-grid cell-biology sandbox."""

__version__ = "0.1.0"
