"""
Month Archive CLI Package

Command-line interface for the month archive job.
"""

__all__ = [
    "main"
]

from .main import main
