"""Compile notes and their linked neighbours into one prompt-ready context."""

__version__ = "0.1.0"
