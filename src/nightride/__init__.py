"""Nightride - terminal controller for the Nightride FM synthwave radio."""

__version__ = "0.1.0"
