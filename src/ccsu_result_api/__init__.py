"""Exam result lookup service for the CCS University result portal."""

__version__ = "0.1.0"
