"""Bookworm: a voice-driven reading companion backend."""

__version__ = "1.0.0"
