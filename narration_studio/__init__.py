"""Narration studio: keeps slide narration text and slide audio consistent."""

__version__ = "0.1.0"
