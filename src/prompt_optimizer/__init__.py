"""Deterministic prompt analysis, scoring, compilation and context compression."""

__version__ = "0.1.0"
