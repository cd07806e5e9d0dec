"""Leadflow - quiz scoring and lead qualification workflow engine."""

__version__ = "1.0.0"
