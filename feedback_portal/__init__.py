"""Feedback portal engine: board state, comment threads, and filtering over a hosted backend."""

__version__ = "0.1.0"
