"""NIRA companion server: memory-backed conversational companion."""

__version__ = "0.1.0"
