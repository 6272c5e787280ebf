"""Ecocleans voice and text booking assistant."""

__version__ = "0.1.0"
