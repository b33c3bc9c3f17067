"""
Command-line interface module.

CLI tools for decoding sequences, training models and inspecting them.
"""

from .main import app

__all__ = [
    "app"
]
